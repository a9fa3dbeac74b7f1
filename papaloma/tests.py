"""
Test suite for the composition root
Tests: Session expiry on 401 through the real gateway, Boot revalidation
"""
from unittest.mock import Mock
from django.core.cache import cache
from django.test import SimpleTestCase

from papaloma.app import PapalomaApp
from papaloma.core.signals import session_expired
from papaloma.core.storage import AuthStorage, empty_auth_state
from papaloma.core.test_utils import TestDataFactory


class PapalomaAppTests(SimpleTestCase):
    def setUp(self):
        cache.clear()
        self.storage = AuthStorage(alias='default')
        self.user = TestDataFactory.create_user(name='Siti', email='siti@papaloma.id')
        self.storage.save(user=self.user, token='jwt-lama', is_authenticated=True)

        self.app = PapalomaApp(storage=self.storage, document_classes=set())
        self.session = Mock()
        self.app.api.session = self.session

        self.expired = []
        session_expired.connect(self.on_expired)

    def tearDown(self):
        session_expired.disconnect(self.on_expired)

    def on_expired(self, sender, redirect_to=None, **kwargs):
        self.expired.append(redirect_to)

    def respond(self, status_code=200, body=None):
        self.session.request.return_value = TestDataFactory.make_response(status_code, body)

    def test_restores_session(self):
        self.assertTrue(self.app.auth.is_authenticated)
        self.assertEqual(self.app.auth.user, self.user)
        self.assertIsNone(self.app.location)

    async def test_unauthorized_from_any_store_ends_session(self):
        """Test a 401 on an inventory read clears the persisted slice and goes to login"""
        self.respond(401, {'success': False, 'message': 'Token tidak valid atau sudah kadaluarsa'})

        await self.app.inventory.fetch_items()

        args, kwargs = self.session.request.call_args
        self.assertEqual(kwargs['headers']['Authorization'], 'Bearer jwt-lama')
        self.assertEqual(self.storage.load(), empty_auth_state())
        self.assertFalse(self.app.auth.is_authenticated)
        self.assertIsNone(self.app.auth.token)
        self.assertEqual(self.app.location, '/login')
        self.assertEqual(self.expired, ['/login'])
        self.assertEqual(self.app.inventory.error, 'Token tidak valid atau sudah kadaluarsa')
        self.assertEqual(self.app.inventory.items, [])

    async def test_no_token_after_expiry(self):
        self.respond(401, {'success': False, 'message': 'Token tidak valid'})
        await self.app.notifications.fetch_unread_count()

        self.respond(200, TestDataFactory.envelope(data={'count': 0}))
        await self.app.notifications.fetch_unread_count()
        args, kwargs = self.session.request.call_args
        self.assertNotIn('Authorization', kwargs['headers'])

    async def test_boot_keeps_valid_session(self):
        self.respond(200, TestDataFactory.envelope(data={'user': self.user}))
        self.assertTrue(await self.app.boot())
        self.assertEqual(self.app.auth.user, self.user)
        self.assertIsNone(self.app.location)

    async def test_boot_drops_rejected_session(self):
        self.respond(401, {'success': False, 'message': 'Token tidak valid'})
        self.assertFalse(await self.app.boot())
        self.assertEqual(self.storage.load(), empty_auth_state())
        self.assertEqual(self.app.location, '/login')

    async def test_handle_unauthorized_on_loop(self):
        self.app.handle_unauthorized()
        self.assertFalse(self.app.auth.is_authenticated)
        self.assertEqual(self.app.location, '/login')
        self.assertEqual(self.expired, ['/login'])

    def test_stores_share_gateway(self):
        for store in (self.app.auth, self.app.inventory, self.app.users, self.app.notifications,
                      self.app.reports, self.app.activity):
            self.assertIs(store.api, self.app.api)
