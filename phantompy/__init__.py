import logging

from envelop import Environment

from .exceptions import PhantomError, RemoteExecutionError, SignatureError, TransportError
from .page import Page
from .phantom import Phantom
from .transport import InvocationMode, Subscription, Transport


env = Environment()

log_level = env.get('LOGLEVEL', 'WARN').upper()


_logger = logging.getLogger('phantompy')
_handler = logging.StreamHandler()
_formatter = logging.Formatter('%(asctime)s - [%(levelname)s:%(name)s] - %(message)s', '%m-%d-%Y %H:%M:%S')
_handler.setFormatter(_formatter)
_handler.setLevel(logging.DEBUG)
_logger.addHandler(_handler)
_logger.setLevel(log_level)
_logger.propagate = False


__all__ = [
    'InvocationMode',
    'Page',
    'Phantom',
    'PhantomError',
    'RemoteExecutionError',
    'SignatureError',
    'Subscription',
    'Transport',
    'TransportError',
]
