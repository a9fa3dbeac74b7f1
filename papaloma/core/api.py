"""
HTTP gateway to the Papaloma Inventory REST API.

Single chokepoint for every outbound call: base URL, JSON content type, fixed
timeout, bearer token from the persisted auth slice, and error normalization.
Resource groups expose one method per remote operation; each is a plain
request builder (no retries, no caching).
"""
from urllib.parse import quote
import json
import logging
import requests
from django.conf import settings
from django.core.serializers.json import DjangoJSONEncoder

from .exceptions import ApiError, AuthError, NetworkError, DEFAULT_ERROR_MESSAGE
from .serializers import EnvelopeSerializer

logger = logging.getLogger(__name__)

INVALID_RESPONSE_MESSAGE = 'Respons server tidak valid'


def clean_params(params):
    """Drop unset query parameters and encode booleans the way the server expects"""
    if not params:
        return None
    cleaned = {}
    for key, value in params.items():
        if value is None:
            continue
        if isinstance(value, bool):
            value = 'true' if value else 'false'
        cleaned[key] = value
    return cleaned or None


class ApiClient:
    """
    Gateway to the remote API.

    Args:
        base_url: API root, defaults to settings.PAPALOMA_API_URL
        timeout: seconds per request, defaults to settings.PAPALOMA_API_TIMEOUT
        token_provider: callable returning the current bearer token or None
        on_unauthorized: callable run on any 401 before the error is raised;
            it must clear the persisted auth slice and send the user to login
        session: requests.Session (or compatible) used for I/O
    """

    def __init__(self, base_url=None, timeout=None, token_provider=None, on_unauthorized=None, session=None):
        self.base_url = (base_url or settings.PAPALOMA_API_URL).rstrip('/')
        self.timeout = settings.PAPALOMA_API_TIMEOUT if timeout is None else timeout

        if token_provider is None or on_unauthorized is None:
            from .storage import AuthStorage
            storage = AuthStorage()
            token_provider = token_provider or storage.get_token
            on_unauthorized = on_unauthorized or storage.clear

        self.token_provider = token_provider
        self.on_unauthorized = on_unauthorized
        self.session = session or requests.Session()

        self.auth = AuthApi(self)
        self.users = UsersApi(self)
        self.kategori = KategoriApi(self)
        self.barang = BarangApi(self)
        self.transaksi_masuk = TransaksiMasukApi(self)
        self.transaksi_keluar = TransaksiKeluarApi(self)
        self.dashboard = DashboardApi(self)
        self.notifications = NotificationsApi(self)
        self.activity_logs = ActivityLogsApi(self)
        self.laporan = LaporanApi(self)

    def build_headers(self):
        headers = {'Content-Type': 'application/json'}
        token = self.token_provider()
        if token:
            headers['Authorization'] = f'Bearer {token}'
        return headers

    def request(self, method, path, params=None, data=None):
        """
        Perform one request and return the validated envelope as a dict:
        {'success', 'message', 'data', 'pagination'}.

        The body is encoded with DjangoJSONEncoder, so Decimal and date values
        coming out of the form serializers are sent as strings.

        Raises:
            NetworkError: transport failure or timeout
            AuthError: 401 (after the unauthorized handler has run)
            ApiError: any other failure, carrying the server's message
        """
        url = f'{self.base_url}{path}'
        params = clean_params(params)
        logger.debug(f"{method} {url} params={params}")

        try:
            response = self.session.request(
                method,
                url,
                params=params,
                data=self.encode_body(data),
                headers=self.build_headers(),
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            logger.warning(f"{method} {path} failed before a response arrived: {str(e)}")
            raise NetworkError(str(e) or DEFAULT_ERROR_MESSAGE) from e

        return self.handle_response(method, path, response)

    @staticmethod
    def encode_body(data):
        if data is None:
            return None
        return json.dumps(data, cls=DjangoJSONEncoder)

    def handle_response(self, method, path, response):
        body = self.parse_body(response)

        if response.status_code == 401:
            logger.warning(f"{method} {path} returned 401, ending session")
            self.on_unauthorized()
            raise AuthError(self.extract_message(body, response), status_code=401)

        if not response.ok:
            message = self.extract_message(body, response)
            logger.warning(f"{method} {path} returned {response.status_code}: {message}")
            raise ApiError(message, status_code=response.status_code)

        if body is None and not response.content:
            return {'success': True, 'message': '', 'data': None, 'pagination': None}

        serializer = EnvelopeSerializer(data=body)
        if not isinstance(body, dict) or not serializer.is_valid():
            logger.warning(f"{method} {path} returned a malformed envelope")
            raise ApiError(INVALID_RESPONSE_MESSAGE, status_code=response.status_code)

        envelope = dict(serializer.validated_data)
        if envelope['pagination'] is not None:
            envelope['pagination'] = dict(envelope['pagination'])
        if not envelope['success']:
            raise ApiError(envelope['message'] or DEFAULT_ERROR_MESSAGE, status_code=response.status_code)
        return envelope

    @staticmethod
    def parse_body(response):
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return None

    @staticmethod
    def extract_message(body, response):
        if isinstance(body, dict) and body.get('message'):
            return str(body['message'])
        if response.status_code:
            return f'Request failed with status code {response.status_code}'
        return DEFAULT_ERROR_MESSAGE


class Resource:
    def __init__(self, client):
        self.client = client

    def _get(self, path, params=None):
        return self.client.request('GET', path, params=params)

    def _post(self, path, data=None):
        return self.client.request('POST', path, data=data)

    def _put(self, path, data=None):
        return self.client.request('PUT', path, data=data)

    def _delete(self, path):
        return self.client.request('DELETE', path)


class AuthApi(Resource):
    def login(self, email, password):
        return self._post('/auth/login', {'email': email, 'password': password})

    def logout(self):
        return self._post('/auth/logout')

    def get_me(self):
        return self._get('/auth/me')

    def update_profile(self, data):
        return self._put('/auth/profile', data)

    def change_password(self, data):
        return self._put('/auth/change-password', data)

    def forgot_password(self, email):
        return self._post('/auth/forgot-password', {'email': email})

    def verify_reset_token(self, token):
        return self._get(f"/auth/verify-reset-token/{quote(str(token), safe='')}")

    def reset_password(self, token, new_password):
        return self._post('/auth/reset-password', {'token': token, 'newPassword': new_password})


class UsersApi(Resource):
    def get_all(self, params=None):
        return self._get('/users', params)

    def get_by_id(self, user_id):
        return self._get(f'/users/{user_id}')

    def create(self, data):
        return self._post('/users', data)

    def update(self, user_id, data):
        return self._put(f'/users/{user_id}', data)

    def delete(self, user_id):
        return self._delete(f'/users/{user_id}')

    def reset_password(self, user_id, new_password):
        return self._post(f'/users/{user_id}/reset-password', {'newPassword': new_password})

    def toggle_status(self, user_id):
        return self._post(f'/users/{user_id}/toggle-status')


class KategoriApi(Resource):
    def get_all(self):
        return self._get('/kategori')

    def get_by_id(self, kategori_id):
        return self._get(f'/kategori/{kategori_id}')

    def create(self, data):
        return self._post('/kategori', data)

    def update(self, kategori_id, data):
        return self._put(f'/kategori/{kategori_id}', data)

    def delete(self, kategori_id):
        return self._delete(f'/kategori/{kategori_id}')

    def get_distribution(self):
        return self._get('/kategori/distribution')


class BarangApi(Resource):
    def get_all(self, params=None):
        return self._get('/barang', params)

    def get_by_id(self, barang_id):
        return self._get(f'/barang/{barang_id}')

    def create(self, data):
        return self._post('/barang', data)

    def update(self, barang_id, data):
        return self._put(f'/barang/{barang_id}', data)

    def delete(self, barang_id):
        return self._delete(f'/barang/{barang_id}')

    def get_low_stock(self):
        return self._get('/barang/low-stock')

    def get_damaged(self):
        return self._get('/barang/damaged')

    def get_top_used(self, limit=None):
        return self._get('/barang/top-used', {'limit': limit})


class TransaksiApi(Resource):
    """Shared endpoints of the stock-in and stock-out ledgers"""
    path = None

    def get_all(self, params=None):
        return self._get(self.path, params)

    def get_by_id(self, transaksi_id):
        return self._get(f'{self.path}/{transaksi_id}')

    def create(self, data):
        return self._post(self.path, data)

    def get_monthly_trend(self, year=None):
        return self._get(f'{self.path}/monthly-trend', {'year': year})

    def get_total_current_month(self):
        return self._get(f'{self.path}/total-current-month')


class TransaksiMasukApi(TransaksiApi):
    path = '/transaksi-masuk'


class TransaksiKeluarApi(TransaksiApi):
    path = '/transaksi-keluar'

    def get_by_reason(self, date_from=None, date_to=None):
        return self._get(f'{self.path}/by-reason', {'dateFrom': date_from, 'dateTo': date_to})


class DashboardApi(Resource):
    def get_stats(self):
        return self._get('/dashboard/stats')

    def get_chart_data(self, year=None):
        return self._get('/dashboard/chart-data', {'year': year})

    def get_kategori_distribution(self):
        return self._get('/dashboard/kategori-distribution')

    def get_low_stock_items(self):
        return self._get('/dashboard/low-stock')

    def get_top_used_items(self, limit=None):
        return self._get('/dashboard/top-used', {'limit': limit})

    def get_recent_activities(self, limit=None):
        return self._get('/dashboard/recent-activities', {'limit': limit})


class NotificationsApi(Resource):
    def get_all(self, params=None):
        return self._get('/notifications', params)

    def get_unread_count(self):
        return self._get('/notifications/unread-count')

    def mark_as_read(self, notification_id):
        return self._put(f'/notifications/{notification_id}/read')

    def mark_all_as_read(self):
        return self._put('/notifications/read-all')

    def delete(self, notification_id):
        return self._delete(f'/notifications/{notification_id}')

    def delete_all(self):
        return self._delete('/notifications')


class ActivityLogsApi(Resource):
    def get_all(self, params=None):
        return self._get('/activity-logs', params)

    def get_my_logs(self, limit=None):
        return self._get('/activity-logs/me', {'limit': limit})


class LaporanApi(Resource):
    def get_stok_report(self, kategori_id=None):
        return self._get('/laporan/stok', {'kategoriId': kategori_id})

    def get_masuk_report(self, date_from=None, date_to=None):
        return self._get('/laporan/masuk', {'dateFrom': date_from, 'dateTo': date_to})

    def get_keluar_report(self, date_from=None, date_to=None):
        return self._get('/laporan/keluar', {'dateFrom': date_from, 'dateTo': date_to})

    def get_penyusutan_report(self):
        return self._get('/laporan/penyusutan')

    def get_comprehensive_report(self, date_from=None, date_to=None):
        return self._get('/laporan/comprehensive', {'dateFrom': date_from, 'dateTo': date_to})
