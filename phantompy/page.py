import functools
import logging

from concurrent.futures import Future

from .exceptions import RemoteExecutionError, SignatureError, TransportError
from .transport import InvocationMode
from .utils import camel_to_snake


logger = logging.getLogger(__name__)


# Remote operations phantom runs in the background. Everything else replies right away.
ASYNC_METHODS = (
    'includeJs',
    'open',
)

METHODS = (
    'addCookie',
    'clearCookies',
    'close',
    'deleteCookie',
    'evaluate',
    'evaluateAsync',
    'evaluateJavaScript',
    'injectJs',
    'openUrl',
    'reload',
    'render',
    'renderBase64',
    'sendEvent',
    'setContent',
    'setProxy',
    'stop',
    'switchToFrame',
    'switchToMainFrame',
    'goBack',
    'uploadFile',
)


class Page:
    """A page living in phantom. Every method is forwarded to the phantom process.

    Besides the methods defined here, the class gets one method per remote operation listed in
    ``ASYNC_METHODS`` and ``METHODS`` (``page.open(url)``, ``page.render_base64('PNG')``, ...), each also
    reachable under its remote name (``page.renderBase64('PNG')``). All of them return a ``concurrent.futures.Future`` with the remote result.
    """

    def __init__(self, phantom, page_id):
        self._phantom = phantom
        self._target = 'page${}'.format(page_id)

    def __repr__(self):
        return '<Page {}>'.format(self._target)

    @property
    def target(self):
        """The identifier phantom knows this page by."""
        return self._target

    # Events #

    def on(self, event, *args):
        """Add an event listener to the page.

        Can be called as ``on(event, listener, *args)`` or ``on(event, run_on_phantom, listener, *args)``.

        Args:
            event (str): The name of the event (e.g. "onResourceRequested").
            run_on_phantom (bool, optional): Whether the listener runs inside phantom. Defaults to False.
            listener: The listener. A local listener is called with the page as its first argument,
                followed by the event arguments and then ``args``. When ``run_on_phantom`` is True the
                listener is shipped to phantom as script source, so it cannot see any local state;
                it only gets the event arguments and ``args``.
            args: Extra arguments passed to the listener on every call.

        Returns:
            The Subscription created by the transport.

        Raises:
            SignatureError: If the arguments don't match either call shape.
        """
        if not args:
            raise SignatureError('No listener given for event "{}"'.format(event))

        if callable(args[0]):
            return self.on_local(event, args[0], *args[1:])

        run_on_phantom = args[0]
        if not isinstance(run_on_phantom, bool):
            raise SignatureError('Expected a listener or a boolean run_on_phantom flag, got {!r}'
                                 .format(run_on_phantom))
        if len(args) < 2:
            raise SignatureError('No listener given for event "{}"'.format(event))

        if run_on_phantom:
            return self.on_remote(event, args[1], *args[2:])
        return self.on_local(event, args[1], *args[2:])

    def on_local(self, event, listener, *args):
        """Add a listener that runs in this process. It is called as ``listener(page, *event_args, *args)``."""
        if not callable(listener):
            raise SignatureError('Listener for event "{}" must be callable'.format(event))

        page = self

        @functools.wraps(listener)
        def callback(*event_args):
            return listener(page, *event_args)

        return self._phantom.subscribe(event, self._target, False, callback, list(args))

    def on_remote(self, event, listener, *args):
        """Add a listener that runs inside phantom. ``listener`` is forwarded untouched."""
        if not (isinstance(listener, str) or callable(listener)):
            raise SignatureError('Listener for event "{}" must be script source or callable'.format(event))
        return self._phantom.subscribe(event, self._target, True, listener, list(args))

    def off(self, event):
        """Remove the listeners for an event. Removing an event with no listeners is fine."""
        self._phantom.unsubscribe(event, self._target)

    # Invocation primitives #

    def invoke_method(self, operation, *args):
        """Invoke a remote operation that replies as soon as it is done."""
        return self._execute(operation, args, InvocationMode.SYNC)

    def invoke_async_method(self, operation, *args):
        """Invoke a long running remote operation (phantom won't block other commands on it)."""
        return self._execute(operation, args, InvocationMode.ASYNC)

    def define_method(self, name, definition):
        """Define a method on the page object inside phantom.

        Args:
            name (str): The method name.
            definition (str): The script source of the function.
        """
        return self.invoke_method('defineMethod', name, definition)

    def cookies(self):
        return self.property('cookies')

    def _execute(self, operation, args, mode):
        logger.debug('%s %s on %s', mode.value, operation, self._target)
        try:
            return self._phantom.execute(self._target, operation, list(args), mode)
        except (TransportError, RemoteExecutionError) as e:
            future = Future()
            future.set_running_or_notify_cancel()
            future.set_exception(e)
            return future

    # Defined last: `property` shadows the builtin for the rest of the class body.

    def property(self, key, *value):
        """Get a page property, or set it when a value is given."""
        return self._accessor('property', key, value)

    def setting(self, key, *value):
        """Get a page setting, or set it when a value is given."""
        return self._accessor('setting', key, value)

    def _accessor(self, operation, key, value):
        if len(value) > 1:
            raise SignatureError('{}() takes a key and an optional value'.format(operation))
        return self.invoke_method(operation, key, *value)


def _forwarder(operation, primitive):
    def forward(self, *args):
        return getattr(self, primitive)(operation, *args)

    forward.__name__ = camel_to_snake(operation)
    forward.__qualname__ = 'Page.' + forward.__name__
    forward.__doc__ = 'Invoke ``{}`` on the page inside phantom.'.format(operation)
    return forward


def _install(operations, primitive):
    for operation in operations:
        forward = _forwarder(operation, primitive)
        setattr(Page, forward.__name__, forward)
        # Also reachable under the remote name (page.renderBase64)
        setattr(Page, operation, forward)


_install(ASYNC_METHODS, 'invoke_async_method')
_install(METHODS, 'invoke_method')
