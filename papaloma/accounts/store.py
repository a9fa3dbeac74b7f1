"""
Auth store: the signed-in session.

Anonymous -> Authenticating (login in flight) -> Authenticated (token + user).
The user/token/isAuthenticated part of the state is persisted through
AuthStorage so a restarted client resumes the session.
"""
from functools import partial
import logging
from rest_framework import serializers

from papaloma.core.exceptions import GatewayError, DEFAULT_ERROR_MESSAGE
from papaloma.core.serializers import first_error_message
from papaloma.core.store import ApiStore
from .serializers import (
    LoginSerializer, ProfileSerializer, ChangePasswordSerializer,
    ForgotPasswordSerializer, ResetPasswordSerializer,
)

logger = logging.getLogger(__name__)

ANONYMOUS = 'anonymous'
AUTHENTICATING = 'authenticating'
AUTHENTICATED = 'authenticated'

PERSISTED_FIELDS = ('user', 'token', 'is_authenticated')


class AuthStore(ApiStore):
    initial_state = {
        'user': None,
        'token': None,
        'is_authenticated': False,
        'is_loading': False,
        'error': None,
    }

    def __init__(self, api, storage, **kwargs):
        super().__init__(api, **kwargs)
        self.storage = storage
        self.hydrate()

    def hydrate(self):
        """Restore the persisted slice"""
        persisted = self.storage.load()
        super().set(
            user=persisted['user'],
            token=persisted['token'],
            is_authenticated=persisted['isAuthenticated'],
        )

    def set(self, **changes):
        super().set(**changes)
        if any(field in changes for field in PERSISTED_FIELDS):
            self.persist()

    def persist(self):
        if self.user is None and not self.token and not self.is_authenticated:
            self.storage.clear()
        else:
            self.storage.save(user=self.user, token=self.token, is_authenticated=self.is_authenticated)

    @property
    def status(self):
        if self.is_authenticated and self.token:
            return AUTHENTICATED
        if self.is_loading and not self.token:
            return AUTHENTICATING
        return ANONYMOUS

    def reset(self):
        """Drop the session locally (no remote call)"""
        self.set(user=None, token=None, is_authenticated=False, error=None)

    def clear_error(self):
        self.set(error=None)

    async def login(self, email, password):
        def apply(response):
            data = response['data'] or {}
            return {
                'user': data.get('user'),
                'token': data.get('token'),
                'is_authenticated': True,
                'error': None,
            }

        return await self._mutate(
            None,
            partial(self.api.auth.login, email, password),
            'Login berhasil!',
            serializer=LoginSerializer(data={'email': email, 'password': password}),
            apply=apply,
        )

    async def logout(self):
        try:
            await self._call(self.api.auth.logout)
        except GatewayError as e:
            logger.info(f"Remote logout failed, clearing the local session anyway: {e.message}")
        self.reset()
        self.notify('success', 'Logout berhasil')

    async def fetch_user(self):
        """Revalidate the stored token; any rejection ends the session"""
        if not self.token:
            return

        self.set(is_loading=True)
        try:
            response = await self._call(self.api.auth.get_me)
        except GatewayError as e:
            logger.info(f"Stored session rejected: {e.message}")
            self.set(user=None, token=None, is_authenticated=False, is_loading=False)
            return

        data = response['data'] or {}
        self.set(user=data.get('user'), is_loading=False)

    async def update_profile(self, data):
        return await self._mutate(
            None,
            partial(self.api.auth.update_profile, data),
            'Profil berhasil diperbarui',
            serializer=ProfileSerializer(data=data),
            apply=lambda response: {'user': (response['data'] or {}).get('user', self.user)},
        )

    async def change_password(self, data):
        return await self._mutate(
            None,
            partial(self.api.auth.change_password, data),
            'Password berhasil diubah',
            serializer=ChangePasswordSerializer(data=data),
        )

    async def forgot_password(self, email):
        """
        Request a reset link. Returns the response data (in demo mode it
        carries resetToken/resetUrl) or None on failure.
        """
        self.set(is_loading=True, error=None)
        try:
            ForgotPasswordSerializer(data={'email': email}).is_valid(raise_exception=True)
            response = await self._call(partial(self.api.auth.forgot_password, email))
        except serializers.ValidationError as e:
            self._fail(first_error_message(e.detail, DEFAULT_ERROR_MESSAGE), 'is_loading')
            return None
        except GatewayError as e:
            self._fail(e.message, 'is_loading')
            return None

        self.set(is_loading=False)
        self.notify('success', 'Instruksi reset password telah dikirim')
        return response['data'] or {}

    async def verify_reset_token(self, token):
        """Returns {'valid': bool, 'email': str}; any failure means invalid"""
        if not token:
            return {'valid': False, 'email': ''}
        try:
            response = await self._call(partial(self.api.auth.verify_reset_token, token))
        except GatewayError as e:
            logger.info(f"Reset token rejected: {e.message}")
            return {'valid': False, 'email': ''}

        data = response['data'] or {}
        return {'valid': bool(data.get('valid')), 'email': data.get('email') or ''}

    async def reset_password(self, token, new_password, confirm_password):
        payload = {'token': token, 'newPassword': new_password, 'confirmPassword': confirm_password}
        return await self._mutate(
            None,
            partial(self.api.auth.reset_password, token, new_password),
            'Password berhasil direset',
            serializer=ResetPasswordSerializer(data=payload),
        )
