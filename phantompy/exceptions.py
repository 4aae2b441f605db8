class PhantomError(Exception):
    """Base class for all phantompy errors."""


class TransportError(PhantomError):
    """The channel to the phantom process failed (closed, refused, timed out, or the process died)."""


class RemoteExecutionError(PhantomError):
    """Raised when phantom reports that a remote operation failed.

    The payload sent back by phantom is kept verbatim on ``error``.
    """

    def __init__(self, error):
        self.error = error
        if isinstance(error, dict) and 'message' in error:
            message = error['message']
        else:
            message = str(error)
        super().__init__('Remote operation failed: {}'.format(message))


class SignatureError(PhantomError, TypeError):
    """A call was made with arguments that cannot be resolved (raised before anything is sent)."""
