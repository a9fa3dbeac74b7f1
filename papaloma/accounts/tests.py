"""
Test suite for the auth store
Tests: Login, Logout, Session revalidation, Persistence, Profile and password flows
"""
from django.core.cache import cache
from django.test import SimpleTestCase

from papaloma.accounts.store import AuthStore, ANONYMOUS, AUTHENTICATING, AUTHENTICATED
from papaloma.core.exceptions import ApiError, AuthError, NetworkError
from papaloma.core.storage import AuthStorage, empty_auth_state
from papaloma.core.test_utils import FakeApi, TestDataFactory, capture_toasts


class AuthStoreTestCase(SimpleTestCase):
    def setUp(self):
        cache.clear()
        self.storage = AuthStorage(alias='default')
        self.api = FakeApi()
        self.store = AuthStore(self.api, self.storage)
        self.user = TestDataFactory.create_user(name='Siti Aminah', email='siti@papaloma.id', role='super_admin')

    def respond_login(self, token='jwt-abc'):
        self.api.respond('auth.login', TestDataFactory.envelope(
            data={'user': self.user, 'token': token},
            message='Login berhasil',
        ))


class LoginTests(AuthStoreTestCase):
    """Test login"""

    async def test_login_success(self):
        self.respond_login()
        with capture_toasts() as toasts:
            result = await self.store.login('siti@papaloma.id', 'rahasia123')

        self.assertTrue(result)
        self.assertEqual(self.api.calls_to('auth.login'), [('siti@papaloma.id', 'rahasia123')])
        self.assertEqual(self.store.user, self.user)
        self.assertEqual(self.store.token, 'jwt-abc')
        self.assertTrue(self.store.is_authenticated)
        self.assertFalse(self.store.is_loading)
        self.assertIsNone(self.store.error)
        self.assertEqual(self.store.status, AUTHENTICATED)
        self.assertIn(('success', 'Login berhasil!'), toasts)

    async def test_login_persists_slice(self):
        self.respond_login()
        await self.store.login('siti@papaloma.id', 'rahasia123')
        self.assertEqual(self.storage.load(), {'user': self.user, 'token': 'jwt-abc', 'isAuthenticated': True})

    async def test_login_rejected(self):
        self.api.respond('auth.login', ApiError('Email atau password salah', status_code=400))
        with capture_toasts() as toasts:
            result = await self.store.login('siti@papaloma.id', 'salah123')

        self.assertFalse(result)
        self.assertEqual(self.store.error, 'Email atau password salah')
        self.assertFalse(self.store.is_authenticated)
        self.assertIsNone(self.store.token)
        self.assertFalse(self.store.is_loading)
        self.assertEqual(self.store.status, ANONYMOUS)
        self.assertEqual(self.storage.load(), empty_auth_state())
        self.assertEqual(toasts, [('error', 'Email atau password salah')])

    async def test_login_network_failure(self):
        self.api.respond('auth.login', NetworkError('Network Error'))
        self.assertFalse(await self.store.login('siti@papaloma.id', 'rahasia123'))
        self.assertEqual(self.store.error, 'Network Error')

    async def test_invalid_email_not_sent(self):
        result = await self.store.login('bukan-email', 'rahasia123')
        self.assertFalse(result)
        self.assertEqual(self.store.error, 'Email tidak valid')
        self.assertEqual(self.api.calls, [])

    async def test_short_password_not_sent(self):
        result = await self.store.login('siti@papaloma.id', '123')
        self.assertFalse(result)
        self.assertEqual(self.store.error, 'Password minimal 6 karakter')
        self.assertEqual(self.api.calls, [])

    def test_status_while_authenticating(self):
        self.store.set(is_loading=True)
        self.assertEqual(self.store.status, AUTHENTICATING)

    def test_clear_error(self):
        self.store.set(error='Terjadi kesalahan')
        self.store.clear_error()
        self.assertIsNone(self.store.error)


class LogoutTests(AuthStoreTestCase):
    """Test logout"""

    async def test_logout(self):
        self.respond_login()
        await self.store.login('siti@papaloma.id', 'rahasia123')
        with capture_toasts() as toasts:
            await self.store.logout()

        self.assertIn('auth.logout', self.api.endpoints())
        self.assertIsNone(self.store.user)
        self.assertIsNone(self.store.token)
        self.assertFalse(self.store.is_authenticated)
        self.assertEqual(self.storage.load(), empty_auth_state())
        self.assertEqual(toasts, [('success', 'Logout berhasil')])

    async def test_logout_remote_failure_ignored(self):
        """Test the local session is dropped even when the server is unreachable"""
        self.respond_login()
        await self.store.login('siti@papaloma.id', 'rahasia123')
        self.api.respond('auth.logout', NetworkError('Network Error'))
        with capture_toasts() as toasts:
            await self.store.logout()

        self.assertFalse(self.store.is_authenticated)
        self.assertIsNone(self.store.token)
        self.assertEqual(self.storage.load(), empty_auth_state())
        self.assertEqual(toasts, [('success', 'Logout berhasil')])


class SessionTests(AuthStoreTestCase):
    """Test revalidation and persistence of the session"""

    async def test_fetch_user_without_token(self):
        await self.store.fetch_user()
        self.assertEqual(self.api.calls, [])

    async def test_login_then_fetch_user(self):
        """Test both auth read paths agree on the user"""
        self.respond_login()
        self.api.respond('auth.get_me', TestDataFactory.envelope(data={'user': dict(self.user)}))
        await self.store.login('siti@papaloma.id', 'rahasia123')
        logged_in_user = self.store.user

        await self.store.fetch_user()

        self.assertEqual(self.store.user, logged_in_user)
        self.assertEqual(self.store.token, 'jwt-abc')
        self.assertTrue(self.store.is_authenticated)
        self.assertFalse(self.store.is_loading)

    async def test_fetch_user_rejected(self):
        """Test a rejected token ends the session silently"""
        self.respond_login()
        await self.store.login('siti@papaloma.id', 'rahasia123')
        self.api.respond('auth.get_me', AuthError('Token tidak valid', status_code=401))
        with capture_toasts() as toasts:
            await self.store.fetch_user()

        self.assertIsNone(self.store.user)
        self.assertIsNone(self.store.token)
        self.assertFalse(self.store.is_authenticated)
        self.assertFalse(self.store.is_loading)
        self.assertEqual(self.storage.load(), empty_auth_state())
        self.assertEqual(toasts, [])

    async def test_session_survives_restart(self):
        self.respond_login()
        await self.store.login('siti@papaloma.id', 'rahasia123')

        restarted = AuthStore(FakeApi(), AuthStorage(alias='default'))
        self.assertEqual(restarted.user, self.user)
        self.assertEqual(restarted.token, 'jwt-abc')
        self.assertTrue(restarted.is_authenticated)
        self.assertEqual(restarted.status, AUTHENTICATED)

    def test_reset(self):
        self.storage.save(user=self.user, token='jwt-abc', is_authenticated=True)
        self.store.hydrate()
        self.store.reset()
        self.assertEqual(self.store.status, ANONYMOUS)
        self.assertEqual(self.storage.load(), empty_auth_state())


class ProfileTests(AuthStoreTestCase):
    """Test profile and password flows"""

    async def test_update_profile(self):
        self.respond_login()
        await self.store.login('siti@papaloma.id', 'rahasia123')
        updated = dict(self.user, name='Siti A.')
        self.api.respond('auth.update_profile', TestDataFactory.envelope(data={'user': updated}))

        with capture_toasts() as toasts:
            result = await self.store.update_profile({'name': 'Siti A.'})

        self.assertTrue(result)
        self.assertEqual(self.api.calls_to('auth.update_profile'), [({'name': 'Siti A.'},)])
        self.assertEqual(self.store.user, updated)
        self.assertEqual(self.storage.load()['user'], updated)
        self.assertIn(('success', 'Profil berhasil diperbarui'), toasts)

    async def test_change_password_mismatch(self):
        result = await self.store.change_password({
            'currentPassword': 'rahasia123',
            'newPassword': 'baru12345',
            'confirmPassword': 'beda12345',
        })
        self.assertFalse(result)
        self.assertEqual(self.store.error, 'Password tidak cocok')
        self.assertEqual(self.api.calls, [])

    async def test_change_password(self):
        data = {'currentPassword': 'rahasia123', 'newPassword': 'baru12345', 'confirmPassword': 'baru12345'}
        self.assertTrue(await self.store.change_password(data))
        self.assertEqual(self.api.calls_to('auth.change_password'), [(data,)])

    async def test_forgot_password(self):
        self.api.respond('auth.forgot_password', TestDataFactory.envelope(
            data={'resetToken': 'tok-1', 'resetUrl': 'http://localhost:5173/reset-password/tok-1'},
        ))
        data = await self.store.forgot_password('siti@papaloma.id')
        self.assertEqual(data['resetToken'], 'tok-1')
        self.assertFalse(self.store.is_loading)

    async def test_forgot_password_failure(self):
        self.api.respond('auth.forgot_password', ApiError('Email tidak terdaftar'))
        self.assertIsNone(await self.store.forgot_password('siti@papaloma.id'))
        self.assertEqual(self.store.error, 'Email tidak terdaftar')

    async def test_verify_reset_token(self):
        self.api.respond('auth.verify_reset_token', TestDataFactory.envelope(
            data={'valid': True, 'email': 'siti@papaloma.id'},
        ))
        self.assertEqual(
            await self.store.verify_reset_token('tok-1'),
            {'valid': True, 'email': 'siti@papaloma.id'},
        )

    async def test_verify_reset_token_failure(self):
        self.api.respond('auth.verify_reset_token', ApiError('Token tidak valid atau sudah kadaluarsa'))
        self.assertEqual(await self.store.verify_reset_token('tok-1'), {'valid': False, 'email': ''})
        self.assertEqual(await self.store.verify_reset_token(''), {'valid': False, 'email': ''})

    async def test_reset_password(self):
        result = await self.store.reset_password('tok-1', 'baru12345', 'baru12345')
        self.assertTrue(result)
        self.assertEqual(self.api.calls_to('auth.reset_password'), [('tok-1', 'baru12345')])
