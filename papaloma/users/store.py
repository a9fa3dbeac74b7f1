"""
Admin accounts store. Same write-then-refetch shape as the inventory lists,
over a single users list. Passwords are never mirrored.
"""
from functools import partial

from papaloma.core.store import ApiStore
from papaloma.core.utils import response_list
from .serializers import UserCreateSerializer, UserUpdateSerializer, ResetUserPasswordSerializer


class UserStore(ApiStore):
    initial_state = {
        'users': [],
        'pagination': None,
        'is_loading': False,
        'error': None,
    }

    invalidates = {
        'user': ('fetch_users',),
    }

    def clear_error(self):
        self.set(error=None)

    async def fetch_users(self, params=None):
        """params: status, role, search, page, limit"""
        await self._fetch(
            'users',
            partial(self.api.users.get_all, params),
            lambda response: {
                'users': response_list(response),
                'pagination': response.get('pagination'),
            },
            loading='is_loading',
        )

    async def create_user(self, data):
        return await self._mutate(
            'user',
            partial(self.api.users.create, data),
            'User berhasil ditambahkan',
            serializer=UserCreateSerializer(data=data),
        )

    async def update_user(self, user_id, data):
        return await self._mutate(
            'user',
            partial(self.api.users.update, user_id, data),
            'User berhasil diperbarui',
            serializer=UserUpdateSerializer(data=data, partial=True),
        )

    async def delete_user(self, user_id):
        return await self._mutate(
            'user',
            partial(self.api.users.delete, user_id),
            'User berhasil dihapus',
        )

    async def reset_password(self, user_id, new_password):
        return await self._mutate(
            None,
            partial(self.api.users.reset_password, user_id, new_password),
            'Password berhasil direset',
            serializer=ResetUserPasswordSerializer(data={'newPassword': new_password}),
        )

    async def toggle_status(self, user_id):
        return await self._mutate(
            'user',
            partial(self.api.users.toggle_status, user_id),
            'Status user berhasil diubah',
        )
