import logging
import subprocess
import time

from concurrent.futures import TimeoutError as FutureTimeoutError

from . import settings
from .connection import Connection
from .exceptions import PhantomError, TransportError
from .page import Page
from .utils import get_free_port


logger = logging.getLogger(__name__)

PHANTOM_TARGET = 'phantom'


class Phantom:
    """Runs a phantom process and hands out pages living in it.

    Args:
        executable_path (str, optional): The phantom executable. Defaults to ``settings.PHANTOMJS_PATH``.
        bridge_path (str, optional): The bridge script phantom runs to serve the websocket endpoint.
            Defaults to ``settings.BRIDGE_SCRIPT_PATH``.
        args (list, optional): Extra command line arguments for phantom (e.g. ``['--ignore-ssl-errors=true']``).
        page_class (type, optional): Class used for pages. Defaults to ``Page``.
    """

    def __init__(self, executable_path=None, bridge_path=None, args=None, page_class=None):
        self._PAGE_CLASS = page_class or Page
        executable_path = executable_path or settings.PHANTOMJS_PATH
        bridge_path = bridge_path or settings.BRIDGE_SCRIPT_PATH
        if not bridge_path:
            raise PhantomError('No bridge script configured; pass bridge_path or set PHANTOM_BRIDGE_SCRIPT')

        self._port = get_free_port()
        cmd = [executable_path]
        if args is not None:
            cmd.extend(args)
        cmd.extend([bridge_path, str(self._port)])

        logger.info('Starting phantom: %s', ' '.join(cmd))
        try:
            self.process = subprocess.Popen(cmd, stdout=subprocess.PIPE, stderr=subprocess.STDOUT)
        except OSError as e:
            raise PhantomError('Could not start phantom with {}: {}'.format(executable_path, e))
        self.exited = False
        self.websocket_endpoint = 'ws://localhost:{}/'.format(self._port)
        try:
            self.connection = self._wait_for_connection(self.websocket_endpoint)
        except TransportError:
            self.process.terminate()
            raise

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.exit()

    def create_page(self, timeout=None):
        """Create a new page in phantom.

        Blocks until phantom replies with the new page's id.

        Args:
            timeout (float, optional): Seconds to wait. Defaults to the command's own timeout
                (``settings.MESSAGE_TIMEOUT``).

        Returns:
            A Page.

        Raises:
            TransportError: If phantom doesn't reply in time.
        """
        future = self.connection.execute(PHANTOM_TARGET, 'createPage', [])
        try:
            page_id = future.result(timeout=timeout)
        except FutureTimeoutError:
            raise TransportError('Timed out waiting for phantom to create a page')
        return self._PAGE_CLASS(self.connection, page_id)

    def cookies(self):
        """All the cookies phantom holds, across pages."""
        return self.connection.execute(PHANTOM_TARGET, 'property', ['cookies'])

    def exit(self, timeout=5):
        """Ask phantom to quit, then make sure the process is gone."""
        if self.exited:
            return
        self.exited = True
        self.connection.execute(PHANTOM_TARGET, 'exit', [])
        self.connection.close()
        self.process.terminate()
        try:
            self.process.wait(timeout=timeout)
        except subprocess.TimeoutExpired:
            self.process.kill()

    def _wait_for_connection(self, endpoint):
        PAUSE = 0.05
        waited = 0.0
        while waited < settings.LAUNCH_TIMEOUT:
            if self.process.poll() is not None:
                raise TransportError('Phantom exited with code {} before accepting connections'
                                     .format(self.process.returncode))
            try:
                return Connection(endpoint)
            except TransportError:
                time.sleep(PAUSE)
                waited += PAUSE
        raise TransportError('Timed out waiting for phantom to open')
