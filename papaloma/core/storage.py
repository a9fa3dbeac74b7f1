"""
Durable storage for the auth slice ({user, token, isAuthenticated}).

Stored under one fixed key in a Django cache alias that never expires, so the
session survives a restart of the client. Every outbound request reads the
token from here; the auth store writes it.
"""
from django.conf import settings
from django.core.cache import caches
import logging

logger = logging.getLogger(__name__)


def empty_auth_state():
    return {'user': None, 'token': None, 'isAuthenticated': False}


class AuthStorage:
    """Persisted auth slice backed by the Django cache framework"""

    def __init__(self, alias=None, key=None):
        self.alias = alias or settings.PAPALOMA_AUTH_CACHE
        self.key = key or settings.PAPALOMA_AUTH_STORAGE_KEY

    @property
    def cache(self):
        return caches[self.alias]

    def load(self):
        """Return the persisted slice, or an anonymous one when nothing is stored"""
        stored = self.cache.get(self.key)
        if not isinstance(stored, dict):
            return empty_auth_state()
        state = empty_auth_state()
        state.update({field: stored.get(field) for field in state if field in stored})
        state['isAuthenticated'] = bool(state['isAuthenticated'])
        return state

    def save(self, user=None, token=None, is_authenticated=False):
        self.cache.set(self.key, {
            'user': user,
            'token': token,
            'isAuthenticated': bool(is_authenticated),
        }, timeout=None)

    def clear(self):
        self.cache.delete(self.key)
        logger.debug(f"Cleared persisted auth slice '{self.key}'")

    def get_token(self):
        """Token provider for the gateway"""
        return self.load().get('token')
