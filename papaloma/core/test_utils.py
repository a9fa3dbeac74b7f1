"""
Test utilities: factories for server payloads and a recording stand-in for the
gateway
"""
from contextlib import contextmanager
import itertools
import json
import random
import string
import threading
import requests

from .signals import toast, state_changed

_ids = itertools.count(1)


class TestDataFactory:
    """Factory class for creating server-shaped test data"""

    @staticmethod
    def random_string(length=10):
        """Generate a random string"""
        return ''.join(random.choices(string.ascii_letters + string.digits, k=length))

    @staticmethod
    def next_id():
        return next(_ids)

    @staticmethod
    def envelope(data=None, message='', pagination=None, success=True):
        """Build a response envelope the way the gateway returns it"""
        return {
            'success': success,
            'message': message,
            'data': data,
            'pagination': pagination,
        }

    @staticmethod
    def pagination(page=1, limit=10, total=0, total_pages=None):
        if total_pages is None:
            total_pages = (total + limit - 1) // limit if limit else 0
        return {'page': page, 'limit': limit, 'total': total, 'totalPages': total_pages}

    @staticmethod
    def create_kategori(kategori_id=None, name=None, description=None):
        """Create a category payload"""
        if not name:
            name = f'Kategori_{TestDataFactory.random_string(6)}'
        return {
            'id': kategori_id or TestDataFactory.next_id(),
            'name': name,
            'description': description or f'Test kategori {name}',
            'barang_count': 0,
            'created_at': '2024-01-01T00:00:00.000Z',
            'updated_at': '2024-01-01T00:00:00.000Z',
        }

    @staticmethod
    def create_barang(barang_id=None, name=None, stok=10, stok_minimum=5, kondisi='baik', kategori=None):
        """Create an item payload"""
        if not name:
            name = f'Barang_{TestDataFactory.random_string(6)}'
        if not kategori:
            kategori = TestDataFactory.create_kategori()
        return {
            'id': barang_id or TestDataFactory.next_id(),
            'name': name,
            'kategori': {'id': kategori['id'], 'name': kategori['name']},
            'satuan': 'kg',
            'stok': stok,
            'stokMinimum': stok_minimum,
            'hargaPerUnit': 15000,
            'lokasi': 'Gudang Utama',
            'kondisi': kondisi,
            'createdAt': '2024-01-01T00:00:00.000Z',
            'updatedAt': '2024-01-01T00:00:00.000Z',
        }

    @staticmethod
    def create_transaksi(barang, jumlah=1, supplier=None, alasan=None):
        """Create a stock-in (supplier given) or stock-out (alasan given) entry"""
        entry = {
            'id': TestDataFactory.next_id(),
            'barang': {'id': barang['id'], 'name': barang['name'], 'satuan': barang['satuan'],
                       'kategori': barang['kategori']},
            'jumlah': jumlah,
            'tanggal': '2024-06-01',
            'catatan': None,
            'createdBy': {'id': 1, 'name': 'Admin', 'email': 'admin@papaloma.id', 'role': 'super_admin'},
            'createdAt': '2024-06-01T08:00:00.000Z',
        }
        if alasan is not None:
            entry['alasan'] = alasan
        else:
            entry['supplier'] = supplier or f'Supplier_{TestDataFactory.random_string(4)}'
        return entry

    @staticmethod
    def create_user(user_id=None, name=None, email=None, role='admin', status='active'):
        """Create a user payload"""
        if not name:
            name = f'User {TestDataFactory.random_string(6)}'
        if not email:
            email = f'{TestDataFactory.random_string(8).lower()}@papaloma.id'
        return {
            'id': user_id or TestDataFactory.next_id(),
            'name': name,
            'email': email,
            'role': role,
            'status': status,
            'last_login': None,
            'created_at': '2024-01-01T00:00:00.000Z',
            'updated_at': '2024-01-01T00:00:00.000Z',
        }

    @staticmethod
    def create_notification(notification_id=None, read=0, type='info', title=None):
        """Create a notification payload (read travels as 0/1)"""
        return {
            'id': notification_id or TestDataFactory.next_id(),
            'user_id': 1,
            'type': type,
            'title': title or f'Notifikasi {TestDataFactory.random_string(4)}',
            'message': 'Stok menipis',
            'read': read,
            'created_at': '2024-06-01T08:00:00.000Z',
        }

    @staticmethod
    def make_response(status_code=200, body=None, url='http://testserver/api'):
        """Build a real requests.Response carrying a JSON body"""
        response = requests.Response()
        response.status_code = status_code
        response.url = url
        response._content = b'' if body is None else json.dumps(body).encode('utf-8')
        response.headers['Content-Type'] = 'application/json'
        return response


class FakeResource:
    """Stands in for one gateway resource group; every method call is recorded"""

    def __init__(self, api, name):
        self._api = api
        self._name = name

    def __getattr__(self, method):
        if method.startswith('_'):
            raise AttributeError(method)

        def call(*args):
            return self._api.dispatch(f'{self._name}.{method}', args)
        call.__name__ = method
        return call


class FakeApi:
    """
    Recording stand-in for ApiClient.

    Script answers per endpoint ('barang.get_all', 'auth.login', ...) with
    `respond()`. Each answer is an envelope dict, a GatewayError instance to
    raise, or a callable receiving the call's arguments. Answers are consumed
    in order and the last one repeats. Unscripted endpoints answer with an
    empty successful envelope.
    """
    RESOURCES = (
        'auth', 'users', 'kategori', 'barang', 'transaksi_masuk', 'transaksi_keluar',
        'dashboard', 'notifications', 'activity_logs', 'laporan',
    )

    def __init__(self):
        self.calls = []
        self.responses = {}
        self._lock = threading.Lock()
        for name in self.RESOURCES:
            setattr(self, name, FakeResource(self, name))

    def respond(self, endpoint, *answers):
        self.responses[endpoint] = list(answers)
        return self

    def dispatch(self, endpoint, args):
        with self._lock:
            self.calls.append((endpoint, args))
            answers = self.responses.get(endpoint)
            if not answers:
                answer = TestDataFactory.envelope()
            elif len(answers) > 1:
                answer = answers.pop(0)
            else:
                answer = answers[0]

        if isinstance(answer, Exception):
            raise answer
        if callable(answer):
            answer = answer(*args)
            if isinstance(answer, Exception):
                raise answer
        return answer

    def endpoints(self):
        return [endpoint for endpoint, _ in self.calls]

    def calls_to(self, endpoint):
        return [args for name, args in self.calls if name == endpoint]

    def reset_calls(self):
        with self._lock:
            self.calls = []


@contextmanager
def capture_toasts():
    """Collect (level, message) for every toast sent inside the block"""
    captured = []

    def receiver(sender, level=None, message=None, **kwargs):
        captured.append((level, message))

    toast.connect(receiver, weak=False)
    try:
        yield captured
    finally:
        toast.disconnect(receiver)


@contextmanager
def capture_state_changes(store):
    """Collect the change dicts broadcast by one store"""
    captured = []

    def receiver(sender, store=None, changes=None, **kwargs):
        if store is watched:
            captured.append(dict(changes))

    watched = store
    state_changed.connect(receiver, weak=False)
    try:
        yield captured
    finally:
        state_changed.disconnect(receiver)
