"""
Test suite for the core layer
Tests: HTTP gateway, error normalization, persisted auth slice, store base classes
"""
from datetime import date
from decimal import Decimal
from unittest.mock import Mock
import json
import requests
from django.core.cache import cache
from django.test import SimpleTestCase

from papaloma.core.api import ApiClient, clean_params, INVALID_RESPONSE_MESSAGE
from papaloma.core.exceptions import (
    ApiError, AuthError, NetworkError, GatewayError,
    DEFAULT_ERROR_MESSAGE, KIND_API, KIND_AUTH, KIND_NETWORK,
)
from papaloma.core.serializers import first_error_message
from papaloma.core.storage import AuthStorage, empty_auth_state
from papaloma.core.store import ApiStore, StateContainer
from papaloma.core.test_utils import FakeApi, TestDataFactory, capture_state_changes, capture_toasts
from papaloma.core.utils import find_by_id, response_list, response_value


class ApiClientTests(SimpleTestCase):
    """Test request building and response normalization"""

    def setUp(self):
        self.session = Mock()
        self.token = 'jwt-token-123'
        self.on_unauthorized = Mock()
        self.api = ApiClient(
            base_url='http://testserver/api/',
            timeout=5,
            token_provider=lambda: self.token,
            on_unauthorized=self.on_unauthorized,
            session=self.session,
        )

    def respond(self, status_code=200, body=None):
        self.session.request.return_value = TestDataFactory.make_response(status_code, body)

    def sent(self):
        args, kwargs = self.session.request.call_args
        return args, kwargs

    def test_bearer_token_attached(self):
        """Test the stored token is sent as a bearer header"""
        self.respond(body=TestDataFactory.envelope(data=[]))
        self.api.barang.get_all()
        args, kwargs = self.sent()
        self.assertEqual(args, ('GET', 'http://testserver/api/barang'))
        self.assertEqual(kwargs['headers']['Authorization'], 'Bearer jwt-token-123')
        self.assertEqual(kwargs['headers']['Content-Type'], 'application/json')
        self.assertEqual(kwargs['timeout'], 5)

    def test_no_token_no_header(self):
        """Test anonymous requests carry no Authorization header"""
        self.token = None
        self.respond(body=TestDataFactory.envelope(data={'token': 'abc'}))
        self.api.auth.login('admin@papaloma.id', 'rahasia123')
        args, kwargs = self.sent()
        self.assertNotIn('Authorization', kwargs['headers'])
        self.assertEqual(json.loads(kwargs['data']), {'email': 'admin@papaloma.id', 'password': 'rahasia123'})

    def test_payload_forwarded_unchanged(self):
        """Test write payloads reach the transport as given"""
        payload = {'barangId': 4, 'jumlah': 2, 'tanggal': '2024-06-01', 'alasan': 'terpakai'}
        self.respond(body=TestDataFactory.envelope(data={'id': 9}))
        self.api.transaksi_keluar.create(payload)
        args, kwargs = self.sent()
        self.assertEqual(args, ('POST', 'http://testserver/api/transaksi-keluar'))
        self.assertEqual(json.loads(kwargs['data']), payload)

    def test_decimal_and_date_encoded(self):
        """Test Decimal and date values from the form serializers are sent as JSON strings"""
        self.respond(body=TestDataFactory.envelope(data={'id': 9}))
        self.api.barang.create({'hargaPerUnit': Decimal('15000'), 'tanggalKadaluarsa': date(2024, 6, 1)})
        args, kwargs = self.sent()
        self.assertEqual(json.loads(kwargs['data']), {'hargaPerUnit': '15000', 'tanggalKadaluarsa': '2024-06-01'})

    def test_bodyless_request(self):
        """Test reads send no body"""
        self.respond(body=TestDataFactory.envelope(data=[]))
        self.api.barang.get_all()
        args, kwargs = self.sent()
        self.assertIsNone(kwargs['data'])

    def test_query_params_cleaned(self):
        """Test unset params are dropped and booleans encoded"""
        self.respond(body=TestDataFactory.envelope(data=[]))
        self.api.barang.get_all({'search': 'gula', 'kategoriId': None, 'lowStock': True})
        args, kwargs = self.sent()
        self.assertEqual(kwargs['params'], {'search': 'gula', 'lowStock': 'true'})

    def test_envelope_returned(self):
        """Test a success envelope comes back as a plain dict with pagination"""
        pagination = TestDataFactory.pagination(page=2, limit=10, total=35)
        self.respond(body=TestDataFactory.envelope(data=[{'id': 1}], message='OK', pagination=pagination))
        envelope = self.api.users.get_all({'page': 2})
        self.assertTrue(envelope['success'])
        self.assertEqual(envelope['data'], [{'id': 1}])
        self.assertEqual(envelope['message'], 'OK')
        self.assertEqual(envelope['pagination'], {'page': 2, 'limit': 10, 'total': 35, 'totalPages': 4})

    def test_empty_body_is_success(self):
        """Test a 204 without body is an empty success envelope"""
        self.respond(status_code=204)
        envelope = self.api.notifications.delete_all()
        self.assertEqual(envelope, {'success': True, 'message': '', 'data': None, 'pagination': None})

    def test_unauthorized_runs_handler(self):
        """Test any 401 tears the session down before raising"""
        self.respond(status_code=401, body={'success': False, 'message': 'Token tidak valid'})
        with self.assertRaises(AuthError) as ctx:
            self.api.dashboard.get_stats()
        self.on_unauthorized.assert_called_once_with()
        self.assertEqual(ctx.exception.kind, KIND_AUTH)
        self.assertEqual(ctx.exception.message, 'Token tidak valid')
        self.assertEqual(ctx.exception.status_code, 401)

    def test_server_message_surfaced(self):
        """Test the server's message is passed through verbatim"""
        self.respond(status_code=400, body={'success': False, 'message': 'Stok tidak mencukupi. Stok tersedia: 3'})
        with self.assertRaises(ApiError) as ctx:
            self.api.transaksi_keluar.create({'barangId': 1, 'jumlah': 10})
        self.assertEqual(ctx.exception.kind, KIND_API)
        self.assertEqual(ctx.exception.message, 'Stok tidak mencukupi. Stok tersedia: 3')
        self.on_unauthorized.assert_not_called()

    def test_status_message_without_body(self):
        """Test a failure without a message falls back to the status text"""
        self.respond(status_code=500)
        with self.assertRaises(ApiError) as ctx:
            self.api.barang.get_all()
        self.assertEqual(ctx.exception.message, 'Request failed with status code 500')
        self.assertEqual(ctx.exception.status_code, 500)

    def test_success_false_on_ok_status(self):
        """Test success=false is a failure even with a 2xx status"""
        self.respond(body={'success': False, 'message': 'Kategori masih digunakan'})
        with self.assertRaises(ApiError) as ctx:
            self.api.kategori.delete(3)
        self.assertEqual(ctx.exception.message, 'Kategori masih digunakan')

    def test_malformed_envelope(self):
        """Test a body that is not an envelope is rejected"""
        self.respond(body=[1, 2, 3])
        with self.assertRaises(ApiError) as ctx:
            self.api.barang.get_all()
        self.assertEqual(ctx.exception.message, INVALID_RESPONSE_MESSAGE)

    def test_network_error(self):
        """Test transport failures become NetworkError with the transport text"""
        self.session.request.side_effect = requests.exceptions.ConnectionError('Connection refused')
        with self.assertRaises(NetworkError) as ctx:
            self.api.barang.get_all()
        self.assertEqual(ctx.exception.kind, KIND_NETWORK)
        self.assertEqual(ctx.exception.message, 'Connection refused')
        self.assertIsNone(ctx.exception.status_code)

    def test_timeout_without_text(self):
        """Test a silent transport failure uses the generic message"""
        self.session.request.side_effect = requests.exceptions.Timeout()
        with self.assertRaises(NetworkError) as ctx:
            self.api.dashboard.get_stats()
        self.assertEqual(ctx.exception.message, DEFAULT_ERROR_MESSAGE)

    def test_reset_token_path_escaped(self):
        """Test the reset token is escaped into the path"""
        self.respond(body=TestDataFactory.envelope(data={'valid': True}))
        self.api.auth.verify_reset_token('abc/def')
        args, kwargs = self.sent()
        self.assertEqual(args[1], 'http://testserver/api/auth/verify-reset-token/abc%2Fdef')

    def test_endpoint_paths(self):
        """Test a sample of resource paths and methods"""
        self.respond(body=TestDataFactory.envelope())
        expectations = [
            (lambda: self.api.notifications.mark_as_read(7), 'PUT', '/notifications/7/read'),
            (lambda: self.api.notifications.mark_all_as_read(), 'PUT', '/notifications/read-all'),
            (lambda: self.api.users.toggle_status(2), 'POST', '/users/2/toggle-status'),
            (lambda: self.api.transaksi_masuk.get_monthly_trend(2024), 'GET', '/transaksi-masuk/monthly-trend'),
            (lambda: self.api.laporan.get_penyusutan_report(), 'GET', '/laporan/penyusutan'),
            (lambda: self.api.activity_logs.get_my_logs(20), 'GET', '/activity-logs/me'),
        ]
        for call, method, path in expectations:
            call()
            args, kwargs = self.sent()
            self.assertEqual(args, (method, f'http://testserver/api{path}'))


class CleanParamsTests(SimpleTestCase):
    def test_empty(self):
        self.assertIsNone(clean_params(None))
        self.assertIsNone(clean_params({'search': None}))

    def test_booleans(self):
        self.assertEqual(clean_params({'read': False, 'page': 1}), {'read': 'false', 'page': 1})


class GatewayErrorTests(SimpleTestCase):
    def test_default_message(self):
        error = GatewayError()
        self.assertEqual(error.message, DEFAULT_ERROR_MESSAGE)
        self.assertEqual(str(error), DEFAULT_ERROR_MESSAGE)

    def test_kinds(self):
        self.assertEqual(NetworkError('x').kind, KIND_NETWORK)
        self.assertEqual(AuthError('x').kind, KIND_AUTH)
        self.assertEqual(ApiError('x').kind, KIND_API)


class AuthStorageTests(SimpleTestCase):
    """Test the persisted auth slice"""

    def setUp(self):
        cache.clear()
        self.storage = AuthStorage(alias='default')

    def test_empty_load(self):
        self.assertEqual(self.storage.load(), empty_auth_state())
        self.assertIsNone(self.storage.get_token())

    def test_save_and_load(self):
        user = TestDataFactory.create_user(name='Siti')
        self.storage.save(user=user, token='jwt-abc', is_authenticated=True)
        restored = AuthStorage(alias='default').load()
        self.assertEqual(restored, {'user': user, 'token': 'jwt-abc', 'isAuthenticated': True})
        self.assertEqual(self.storage.get_token(), 'jwt-abc')

    def test_clear(self):
        self.storage.save(user=None, token='jwt-abc', is_authenticated=True)
        self.storage.clear()
        self.assertEqual(self.storage.load(), empty_auth_state())

    def test_garbage_is_anonymous(self):
        cache.set(self.storage.key, 'not-a-dict')
        self.assertEqual(self.storage.load(), empty_auth_state())


class Counter(StateContainer):
    initial_state = {'value': 0, 'tags': []}


class CounterStore(ApiStore):
    initial_state = {'entries': [], 'is_loading': False, 'is_loading_entries': False, 'error': None}
    invalidates = {'entry': ('fetch_entries',)}

    async def fetch_entries(self):
        return await self._fetch(
            'entries',
            self.api.barang.get_all,
            lambda response: {'entries': response_list(response)},
            loading='is_loading_entries',
        )

    async def add_entry(self, data):
        return await self._mutate('entry', lambda: self.api.barang.create(data), 'Tersimpan')


class StateContainerTests(SimpleTestCase):
    def test_initial_state_not_shared(self):
        first, second = Counter(), Counter()
        first.tags.append('x')
        self.assertEqual(second.tags, [])

    def test_set_broadcasts(self):
        counter = Counter()
        with capture_state_changes(counter) as changes:
            counter.set(value=3)
        self.assertEqual(counter.value, 3)
        self.assertEqual(changes, [{'value': 3}])
        self.assertEqual(counter.get_state(), {'value': 3, 'tags': []})

    def test_unknown_field(self):
        with self.assertRaises(AttributeError):
            Counter().set(missing=1)

    def test_notify(self):
        with capture_toasts() as toasts:
            Counter().notify('info', 'Halo')
        self.assertEqual(toasts, [('info', 'Halo')])


class ApiStoreTests(SimpleTestCase):
    """Test fetch replacement, failure handling and write-then-refetch"""

    def setUp(self):
        self.api = FakeApi()
        self.store = CounterStore(self.api, discard_stale=False)

    async def test_fetch_replaces_slice(self):
        self.store.set(entries=[{'id': 1}])
        self.api.respond('barang.get_all', TestDataFactory.envelope(data=[{'id': 2}]))
        self.assertTrue(await self.store.fetch_entries())
        self.assertEqual(self.store.entries, [{'id': 2}])
        self.assertIsNone(self.store.error)

    async def test_fetch_failure_keeps_slice(self):
        self.store.set(entries=[{'id': 1}])
        self.api.respond('barang.get_all', NetworkError('Network Error'))
        with capture_toasts() as toasts:
            self.assertFalse(await self.store.fetch_entries())
        self.assertEqual(self.store.entries, [{'id': 1}])
        self.assertEqual(self.store.error, 'Network Error')
        self.assertEqual(toasts, [('error', 'Network Error')])

    async def test_mutation_refetches(self):
        self.api.respond('barang.get_all', TestDataFactory.envelope(data=[{'id': 5}]))
        with capture_toasts() as toasts:
            self.assertTrue(await self.store.add_entry({'name': 'Garam'}))
        self.assertEqual(self.api.endpoints(), ['barang.create', 'barang.get_all'])
        self.assertEqual(self.store.entries, [{'id': 5}])
        self.assertFalse(self.store.is_loading)
        self.assertEqual(toasts, [('success', 'Tersimpan')])

    async def test_failed_mutation_skips_refetch(self):
        self.api.respond('barang.create', ApiError('Gagal menyimpan'))
        self.assertFalse(await self.store.add_entry({'name': 'Garam'}))
        self.assertEqual(self.api.endpoints(), ['barang.create'])
        self.assertEqual(self.store.error, 'Gagal menyimpan')
        self.assertFalse(self.store.is_loading)

    async def test_unexpected_error_lowers_loading(self):
        """Test a crash inside a write propagates with the loading flag lowered"""
        def crash(*args):
            raise RuntimeError('boom')

        self.api.respond('barang.create', crash)
        with self.assertRaises(RuntimeError):
            await self.store.add_entry({'name': 'Garam'})
        self.assertFalse(self.store.is_loading)

    async def test_unexpected_fetch_error_lowers_loading(self):
        def crash(*args):
            raise RuntimeError('boom')

        self.store.set(entries=[{'id': 1}])
        self.api.respond('barang.get_all', crash)
        with self.assertRaises(RuntimeError):
            await self.store.fetch_entries()
        self.assertFalse(self.store.is_loading_entries)
        self.assertEqual(self.store.entries, [{'id': 1}])


class UtilsTests(SimpleTestCase):
    def test_find_by_id(self):
        entries = [{'id': 1}, {'id': 2}]
        self.assertEqual(find_by_id(entries, 2), {'id': 2})
        self.assertIsNone(find_by_id(entries, 3))

    def test_response_list(self):
        self.assertEqual(response_list({'data': [1]}), [1])
        self.assertEqual(response_list({'data': {'kategori': [1]}}, 'kategori'), [1])
        self.assertEqual(response_list({'data': None}), [])
        self.assertEqual(response_list({'data': {'other': []}}, 'kategori'), [])

    def test_response_value(self):
        self.assertEqual(response_value({'data': {'count': 4}}, 'count', 0), 4)
        self.assertEqual(response_value({'data': None}, 'count', 0), 0)

    def test_first_error_message(self):
        errors = {'name': [], 'email': ['Email tidak valid'], 'password': ['Password minimal 6 karakter']}
        self.assertEqual(first_error_message(errors), 'Email tidak valid')
        self.assertEqual(first_error_message({}, 'fallback'), 'fallback')
