import json
import logging
import queue

from concurrent.futures import Future
from threading import Lock, Thread, Timer

import websocket
from websocket._exceptions import WebSocketException

from . import settings
from .exceptions import RemoteExecutionError, SignatureError, TransportError
from .transport import InvocationMode, Subscription, Transport


logger = logging.getLogger(__name__)


class Connection(Transport):
    """Websocket channel to the bridge script running inside phantom."""

    def __init__(self, endpoint):
        self.endpoint = endpoint
        try:
            self._ws = websocket.create_connection(self.endpoint, enable_multithread=True)
        except (OSError, WebSocketException) as e:
            raise TransportError('Could not connect to phantom at {}: {}'.format(self.endpoint, e))
        self.connected = True

        self.messages = {}
        self.events_queue = queue.Queue()
        self.event_handlers = {}

        self._message_id = 0
        self._id_lock = Lock()

        self._recv_thread = Thread(target=self._recv_loop)
        self._recv_thread.daemon = True
        self._recv_thread.start()

        self._handle_event_thread = Thread(target=self._handle_event_loop)
        self._handle_event_thread.daemon = True
        self._handle_event_thread.start()

    @property
    def ws(self):
        return self._ws

    def _recv_loop(self):
        while self.connected:
            try:
                message_raw = self._ws.recv()
            except (WebSocketException, OSError) as e:
                logger.debug(e)
                self._on_closed('Connection with phantom was closed: {}'.format(e))
                break
            if not message_raw:
                continue
            logger.debug('RECV - %s' % message_raw[:1000])
            try:
                self._on_message(json.loads(message_raw))
            except (ValueError, TypeError) as e:
                logger.warning('Ignoring malformed message from phantom (%s): %s', e, message_raw[:1000])

    def _on_message(self, message):
        if not isinstance(message, dict):
            raise TypeError('expected an object, got {}'.format(type(message).__name__))

        # Responses to messages sent from this connection
        if 'id' in message:
            sent_msg = self.messages.pop(message['id'], None)
            if sent_msg is None:
                logger.debug('Dropping response to unknown or expired message %s', message['id'])
            elif 'error' in message:
                sent_msg.set_exception(RemoteExecutionError(message['error']))
            else:
                sent_msg.set_result(message.get('result'))

        # Events fired by pages for local listeners
        elif 'event' in message:
            self.events_queue.put(message)

    def _handle_event_loop(self):
        while self.connected:
            try:
                event = self.events_queue.get(timeout=1)
            except queue.Empty:
                continue

            key = (event['event'], event.get('target'))
            for cb, args in list(self.event_handlers.get(key, [])):
                try:
                    cb(*(list(event.get('args', [])) + args))
                except Exception:
                    logger.exception('Listener for %s on %s raised', *key)

            self.events_queue.task_done()

    def execute(self, target, operation, args, mode=InvocationMode.SYNC):
        message_dict = {'target': target, 'name': operation, 'params': list(args), 'mode': mode.value}
        if mode is InvocationMode.ASYNC:
            timeout = settings.ASYNC_MESSAGE_TIMEOUT
        else:
            timeout = settings.MESSAGE_TIMEOUT
        sent_msg = Message(message_dict, self, timeout)
        sent_msg.send()
        return sent_msg.future

    def subscribe(self, event, target, run_on_phantom, listener, args):
        descriptor = {'type': event, 'runOnPhantom': run_on_phantom}
        if run_on_phantom:
            if not isinstance(listener, str):
                raise SignatureError('Listeners that run on phantom must be given as script source')
            descriptor['event'] = listener
            descriptor['args'] = list(args)
        else:
            self.event_handlers.setdefault((event, target), []).append((listener, list(args)))

        future = self.execute(target, 'addEvent', [descriptor])
        return Subscription(event, target, run_on_phantom, listener, args, future)

    def unsubscribe(self, event, target):
        self.event_handlers.pop((event, target), None)
        future = self.execute(target, 'removeEvent', [{'type': event}])
        future.add_done_callback(_log_failure)

    def next_message_id(self):
        with self._id_lock:
            id_ = self._message_id
            self._message_id += 1
        return id_

    def close(self):
        if not self.connected:
            return
        self._on_closed('Connection with phantom was closed')
        self._ws.close()

    def _on_closed(self, reason):
        self.connected = False
        for id_ in list(self.messages):
            message = self.messages.pop(id_, None)
            if message is not None:
                message.set_exception(TransportError(reason))
        self.event_handlers.clear()


class Message:
    def __init__(self, message_dict, connection, timeout):
        self._connection = connection
        self._message_dict = message_dict
        self._timeout = timeout
        self._id = self._connection.next_message_id()
        self._timer = None
        self.future = Future()
        # Nothing can cancel a command already handed to phantom
        self.future.set_running_or_notify_cancel()

    @property
    def id(self):
        return self._id

    def send(self):
        self._message_dict['id'] = self._id

        if not self._connection.connected or not self._connection.ws.connected:
            self.set_exception(TransportError('Connection with phantom is closed'))
            return

        try:
            payload = json.dumps(self._message_dict)
        except (TypeError, ValueError) as e:
            self.set_exception(TransportError('Could not serialize {}: {}'.format(self._message_dict['name'], e)))
            return

        self._connection.messages[self._id] = self
        self._timer = Timer(self._timeout, self._on_timeout)
        self._timer.daemon = True
        self._timer.start()

        logger.debug('SEND - %s' % payload)
        try:
            self._connection.ws.send(payload)
        except (WebSocketException, OSError) as e:
            if self._connection.messages.pop(self._id, None) is not None:
                self.set_exception(TransportError('Could not send {} to phantom: {}'
                                                  .format(self._message_dict['name'], e)))

    def set_result(self, result):
        self._cancel_timer()
        self.future.set_result(result)

    def set_exception(self, exception):
        self._cancel_timer()
        self.future.set_exception(exception)

    def _cancel_timer(self):
        if self._timer is not None:
            self._timer.cancel()

    def _on_timeout(self):
        # Whoever pops the message first owns completing its future
        if self._connection.messages.pop(self._id, None) is not None:
            self.future.set_exception(TransportError('Timed out waiting for {} response from phantom'
                                                     .format(self._message_dict['name'])))


def _log_failure(future):
    error = future.exception()
    if error is not None:
        logger.warning('Unsubscribing failed: %s', error)
