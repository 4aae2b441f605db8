from abc import ABC, abstractmethod
from enum import Enum


class InvocationMode(Enum):
    """How phantom should treat a remote operation.

    SYNC operations reply as soon as they finish. ASYNC operations are long running
    (navigation, script inclusion) and phantom completes them in the background, but
    from the caller's side both resolve to a single eventual result.
    """
    SYNC = 'sync'
    ASYNC = 'async'


class Subscription:
    """Handle for an event listener registered with a transport."""

    def __init__(self, event, target, run_on_phantom, listener, args, future=None):
        self.event = event
        self.target = target
        self.run_on_phantom = run_on_phantom
        self.listener = listener
        self.args = list(args)
        self.future = future

    def __repr__(self):
        where = 'phantom' if self.run_on_phantom else 'local'
        return '<Subscription {} on {} ({})>'.format(self.event, self.target, where)


class Transport(ABC):
    """What a page needs from whatever talks to the phantom process."""

    @abstractmethod
    def execute(self, target, operation, args, mode=InvocationMode.SYNC):
        """Send ``operation(*args)`` to ``target``.

        Returns:
            A ``concurrent.futures.Future`` resolving to the remote result. Channel failures
            resolve it with ``TransportError`` and remote failures with ``RemoteExecutionError``.
        """

    @abstractmethod
    def subscribe(self, event, target, run_on_phantom, listener, args):
        """Register ``listener`` for ``event`` on ``target`` and return a ``Subscription``."""

    @abstractmethod
    def unsubscribe(self, event, target):
        """Drop every listener for ``event`` on ``target``. Unknown events are ignored."""
