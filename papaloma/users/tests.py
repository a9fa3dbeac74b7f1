"""
Test suite for the admin accounts store
Tests: User listing, Create/Update/Delete with refetch, Password reset, Status toggle
"""
from django.test import SimpleTestCase

from papaloma.core.exceptions import ApiError
from papaloma.core.test_utils import FakeApi, TestDataFactory, capture_toasts
from papaloma.users.store import UserStore


class UserStoreTests(SimpleTestCase):
    def setUp(self):
        self.api = FakeApi()
        self.store = UserStore(self.api)
        self.admin = TestDataFactory.create_user(name='Budi', email='budi@papaloma.id')
        self.refetched = [self.admin, TestDataFactory.create_user(role='super_admin')]
        self.api.respond('users.get_all', TestDataFactory.envelope(
            data=self.refetched,
            pagination=TestDataFactory.pagination(total=2),
        ))

    async def test_fetch_users(self):
        params = {'role': 'admin', 'status': 'active', 'search': 'budi'}
        await self.store.fetch_users(params)
        self.assertEqual(self.api.calls_to('users.get_all'), [(params,)])
        self.assertEqual(self.store.users, self.refetched)
        self.assertEqual(self.store.pagination['total'], 2)
        self.assertFalse(self.store.is_loading)

    async def test_create_user(self):
        data = {'name': 'Budi', 'email': 'budi@papaloma.id', 'password': 'rahasia123', 'role': 'admin'}
        with capture_toasts() as toasts:
            self.assertTrue(await self.store.create_user(data))
        self.assertEqual(self.api.endpoints(), ['users.create', 'users.get_all'])
        self.assertEqual(self.api.calls_to('users.create'), [(data,)])
        self.assertEqual(self.store.users, self.refetched)
        self.assertIn(('success', 'User berhasil ditambahkan'), toasts)

    async def test_create_user_short_password(self):
        data = {'name': 'Budi', 'email': 'budi@papaloma.id', 'password': '123'}
        self.assertFalse(await self.store.create_user(data))
        self.assertEqual(self.store.error, 'Password minimal 6 karakter')
        self.assertEqual(self.api.calls, [])

    async def test_create_user_rejected(self):
        self.store.set(users=[self.admin])
        self.api.respond('users.create', ApiError('Email sudah terdaftar', status_code=400))
        data = {'name': 'Budi', 'email': 'budi@papaloma.id', 'password': 'rahasia123'}
        self.assertFalse(await self.store.create_user(data))
        self.assertEqual(self.store.users, [self.admin])
        self.assertEqual(self.store.error, 'Email sudah terdaftar')
        self.assertFalse(self.store.is_loading)

    async def test_update_user_partial(self):
        self.assertTrue(await self.store.update_user(self.admin['id'], {'status': 'inactive'}))
        self.assertEqual(self.api.calls_to('users.update'), [(self.admin['id'], {'status': 'inactive'})])
        self.assertEqual(self.api.endpoints(), ['users.update', 'users.get_all'])

    async def test_delete_user(self):
        self.assertTrue(await self.store.delete_user(self.admin['id']))
        self.assertEqual(self.api.endpoints(), ['users.delete', 'users.get_all'])

    async def test_toggle_status(self):
        with capture_toasts() as toasts:
            self.assertTrue(await self.store.toggle_status(self.admin['id']))
        self.assertEqual(self.api.endpoints(), ['users.toggle_status', 'users.get_all'])
        self.assertIn(('success', 'Status user berhasil diubah'), toasts)

    async def test_reset_password_leaves_list(self):
        """Test a password reset does not touch the mirrored list"""
        self.store.set(users=[self.admin])
        self.assertTrue(await self.store.reset_password(self.admin['id'], 'baru12345'))
        self.assertEqual(self.api.endpoints(), ['users.reset_password'])
        self.assertEqual(self.api.calls_to('users.reset_password'), [(self.admin['id'], 'baru12345')])
        self.assertEqual(self.store.users, [self.admin])
        self.assertFalse(self.store.is_loading)
