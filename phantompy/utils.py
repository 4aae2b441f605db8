import re
import socket


_UPPER_RE = re.compile(r'(?<!^)(?=[A-Z])')


def get_free_port():
    """Get free port."""
    sock = socket.socket()
    sock.bind(('localhost', 0))
    port = sock.getsockname()[1]
    sock.close()
    return port


def camel_to_snake(name):
    """Turn a remote operation name like ``renderBase64`` into ``render_base64``."""
    return _UPPER_RE.sub('_', name).lower()
