from unittest import TestCase, mock

from phantompy.exceptions import SignatureError, TransportError
from phantompy.page import ASYNC_METHODS, METHODS, Page
from phantompy.transport import InvocationMode
from phantompy.utils import camel_to_snake

from ..test_helpers import RecordingTransport


class GeneratedMethodsCase(TestCase):
    def setUp(self):
        self.transport = RecordingTransport(result='ok')
        self.page = Page(self.transport, 7)

    def test_target(self):
        # A page's target is built from its id
        self.assertEqual(self.page.target, 'page$7')

    def test_method_sets_are_disjoint(self):
        self.assertFalse(set(ASYNC_METHODS) & set(METHODS))

    def test_every_operation_has_a_method(self):
        for operation in ASYNC_METHODS + METHODS:
            self.assertTrue(callable(getattr(Page, camel_to_snake(operation), None)), operation)

    def test_async_methods_call_invoke_async_method_once(self):
        for operation in ASYNC_METHODS:
            with mock.patch.object(self.page, 'invoke_async_method') as invoke_async, \
                    mock.patch.object(self.page, 'invoke_method') as invoke:
                getattr(self.page, camel_to_snake(operation))('a', 2, None)
            invoke_async.assert_called_once_with(operation, 'a', 2, None)
            invoke.assert_not_called()

    def test_sync_methods_call_invoke_method_once(self):
        for operation in METHODS:
            with mock.patch.object(self.page, 'invoke_async_method') as invoke_async, \
                    mock.patch.object(self.page, 'invoke_method') as invoke:
                getattr(self.page, camel_to_snake(operation))('a', 2, None)
            invoke.assert_called_once_with(operation, 'a', 2, None)
            invoke_async.assert_not_called()

    def test_forwarded_commands(self):
        # When I call a generated method...
        future = self.page.open('http://example.com')
        # ... the transport receives one async command with the arguments in order
        self.assertEqual(self.transport.executed,
                         [('page$7', 'open', ['http://example.com'], InvocationMode.ASYNC)])
        self.assertEqual(future.result(timeout=1), 'ok')

        self.transport.executed = []
        self.page.render_base64('PNG')
        self.assertEqual(self.transport.executed, [('page$7', 'renderBase64', ['PNG'], InvocationMode.SYNC)])

    def test_target_is_never_changed(self):
        for operation in ASYNC_METHODS + METHODS:
            getattr(self.page, camel_to_snake(operation))()
        self.page.property('title')
        self.page.setting('userAgent', 'x')
        self.page.on('onLoadFinished', lambda page, status: None)
        self.page.on('onLoadFinished', True, 'function() {}')
        self.page.off('onLoadFinished')

        targets = {call[0] for call in self.transport.executed}
        targets |= {call[1] for call in self.transport.subscribed}
        targets |= {call[1] for call in self.transport.unsubscribed}
        self.assertEqual(targets, {'page$7'})

    def test_remote_names(self):
        # Every operation is also available under the name phantom uses for it
        for operation in ASYNC_METHODS + METHODS:
            self.assertIs(getattr(Page, operation), getattr(Page, camel_to_snake(operation)))

        self.page.renderBase64('PNG')
        self.page.evaluateJavaScript('function() { return 1; }')
        self.page.includeJs('http://example.com/lib.js')
        self.assertEqual(self.transport.executed, [
            ('page$7', 'renderBase64', ['PNG'], InvocationMode.SYNC),
            ('page$7', 'evaluateJavaScript', ['function() { return 1; }'], InvocationMode.SYNC),
            ('page$7', 'includeJs', ['http://example.com/lib.js'], InvocationMode.ASYNC),
        ])

    def test_generated_method_metadata(self):
        self.assertEqual(Page.include_js.__name__, 'include_js')
        self.assertIn('includeJs', Page.include_js.__doc__)


class AccessorCase(TestCase):
    def setUp(self):
        self.transport = RecordingTransport()
        self.page = Page(self.transport, 1)

    def test_property_get_and_set(self):
        self.page.property('x')
        self.page.property('x', 5)
        self.assertEqual(self.transport.executed, [
            ('page$1', 'property', ['x'], InvocationMode.SYNC),
            ('page$1', 'property', ['x', 5], InvocationMode.SYNC),
        ])

    def test_setting_get_and_set(self):
        self.page.setting('userAgent')
        self.page.setting('userAgent', 'agent')
        self.assertEqual([call[1:3] for call in self.transport.executed],
                         [('setting', ['userAgent']), ('setting', ['userAgent', 'agent'])])

    def test_property_too_many_args(self):
        with self.assertRaises(SignatureError):
            self.page.property('x', 1, 2)
        self.assertEqual(self.transport.executed, [])

    def test_cookies(self):
        self.page.cookies()
        self.assertEqual(self.transport.executed, [('page$1', 'property', ['cookies'], InvocationMode.SYNC)])

    def test_define_method(self):
        self.page.define_method('getTitle', 'function() { return document.title; }')
        self.assertEqual(self.transport.executed, [
            ('page$1', 'defineMethod', ['getTitle', 'function() { return document.title; }'], InvocationMode.SYNC)
        ])


class EventCase(TestCase):
    def setUp(self):
        self.transport = RecordingTransport()
        self.page = Page(self.transport, 3)

    def test_on_with_listener_only(self):
        calls = []

        def handler(page, *args):
            calls.append((page, args))

        # When I pass a callable as the second argument...
        self.page.on('onClick', handler)
        # ... the listener runs locally with no extra args
        event, target, run_on_phantom, callback, args = self.transport.subscribed[0]
        self.assertEqual((event, target, run_on_phantom, args), ('onClick', 'page$3', False, []))

        # ... and is bound to the page
        self.assertIsNot(callback, handler)
        callback('x', 1)
        self.assertEqual(calls, [(self.page, ('x', 1))])

    def test_on_local_with_extra_args(self):
        self.page.on('onClick', lambda page, a, b: None, 'a', 'b')
        self.assertEqual(self.transport.subscribed[0][4], ['a', 'b'])

    def test_on_local_closes_over_state(self):
        seen = []
        self.page.on('onUrlChanged', False, lambda page, url: seen.append(url))
        callback = self.transport.subscribed[0][3]
        self.assertFalse(self.transport.subscribed[0][2])
        callback('http://example.com/')
        self.assertEqual(seen, ['http://example.com/'])

    def test_on_run_on_phantom(self):
        def handler():
            pass

        self.page.on('onClick', True, handler, 1, 2)
        self.assertEqual(self.transport.subscribed, [('onClick', 'page$3', True, handler, [1, 2])])

    def test_on_run_on_phantom_with_script_source(self):
        source = 'function(requestData, networkRequest, pattern) { networkRequest.abort(); }'
        subscription = self.page.on('onResourceRequested', True, source, 'css')
        self.assertIs(self.transport.subscribed[0][3], source)
        self.assertEqual(subscription.args, ['css'])
        self.assertTrue(subscription.run_on_phantom)

    def test_on_local_and_remote_entry_points(self):
        self.page.on_remote('onClick', 'function() {}', 1)
        self.page.on_local('onClick', lambda page: None)
        self.assertEqual([call[2] for call in self.transport.subscribed], [True, False])

    def test_on_signature_errors(self):
        with self.assertRaises(SignatureError):
            self.page.on('onClick')
        with self.assertRaises(SignatureError):
            self.page.on('onClick', True)
        with self.assertRaises(SignatureError):
            self.page.on('onClick', 'not a flag', lambda page: None)
        with self.assertRaises(SignatureError):
            self.page.on('onClick', False, 'not callable')
        with self.assertRaises(SignatureError):
            self.page.on('onClick', True, 42)
        # Nothing reached the transport
        self.assertEqual(self.transport.subscribed, [])

    def test_off_twice(self):
        self.page.off('onClick')
        self.page.off('onClick')
        self.assertEqual(self.transport.unsubscribed, [('onClick', 'page$3'), ('onClick', 'page$3')])


class ErrorCase(TestCase):
    def test_transport_error_becomes_failed_future(self):
        transport = RecordingTransport(raise_on_execute=TransportError('phantom died'))
        page = Page(transport, 1)

        # Calling the method does not raise...
        future = page.open('http://example.com')
        # ... the error comes out of the future instead
        with self.assertRaises(TransportError):
            future.result(timeout=1)
        self.assertFalse(future.cancel())

    def test_failed_future_from_property(self):
        page = Page(RecordingTransport(raise_on_execute=TransportError('closed')), 1)
        self.assertIsInstance(page.cookies().exception(timeout=1), TransportError)
