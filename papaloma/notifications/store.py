"""
Notification store.

Unlike the other stores this one patches its local list instead of
refetching: the server confirms each write first, then the matching entries
and the unread counter are updated in place. A failed write leaves the local
state as it was.
"""
from functools import partial
import logging

from papaloma.core.exceptions import GatewayError
from papaloma.core.store import ApiStore
from papaloma.core.utils import find_by_id, response_list, response_value

logger = logging.getLogger(__name__)

TYPE_WARNING = 'warning'
TYPE_INFO = 'info'
TYPE_SUCCESS = 'success'
TYPE_DANGER = 'danger'


def is_read(notification):
    """The read flag travels as 0/1"""
    return bool(notification.get('read'))


class NotificationStore(ApiStore):
    initial_state = {
        'notifications': [],
        'unread_count': 0,
        'is_loading': False,
        'error': None,
    }

    def clear_error(self):
        self.set(error=None)

    async def fetch_notifications(self, params=None):
        """params: read, type, page, limit"""
        await self._fetch(
            'notifications',
            partial(self.api.notifications.get_all, params),
            lambda response: {'notifications': response_list(response)},
            loading='is_loading',
            quiet=True,
        )

    async def fetch_unread_count(self):
        await self._fetch(
            'unread_count',
            self.api.notifications.get_unread_count,
            lambda response: {'unread_count': response_value(response, 'count', 0)},
            quiet=True,
        )

    async def _confirm(self, call):
        """Run the remote write; on failure record it and report False"""
        try:
            await self._call(call)
        except GatewayError as e:
            logger.info(f"Notification update failed: {e.message}")
            self._fail(e.message)
            return False
        return True

    async def mark_as_read(self, notification_id):
        known = find_by_id(self.notifications, notification_id)
        if known is not None and is_read(known):
            return True

        if not await self._confirm(partial(self.api.notifications.mark_as_read, notification_id)):
            return False

        # The list may have been replaced while the request was in flight
        entry = find_by_id(self.notifications, notification_id)
        if entry is None:
            await self.fetch_unread_count()
            return True
        if is_read(entry):
            return True

        self.set(
            notifications=[
                {**n, 'read': 1} if n.get('id') == notification_id else n
                for n in self.notifications
            ],
            unread_count=max(0, self.unread_count - 1),
        )
        return True

    async def mark_all_as_read(self):
        if not await self._confirm(self.api.notifications.mark_all_as_read):
            return False

        self.set(
            notifications=[{**n, 'read': 1} for n in self.notifications],
            unread_count=0,
        )
        self.notify('success', 'Semua notifikasi ditandai sudah dibaca')
        return True

    async def delete_notification(self, notification_id):
        if not await self._confirm(partial(self.api.notifications.delete, notification_id)):
            return False

        entry = find_by_id(self.notifications, notification_id)
        unread_count = self.unread_count
        if entry is not None and not is_read(entry):
            unread_count = max(0, unread_count - 1)
        self.set(
            notifications=[n for n in self.notifications if n.get('id') != notification_id],
            unread_count=unread_count,
        )
        self.notify('success', 'Notifikasi berhasil dihapus')
        return True

    async def delete_all_notifications(self):
        if not await self._confirm(self.api.notifications.delete_all):
            return False

        self.set(notifications=[], unread_count=0)
        self.notify('success', 'Semua notifikasi berhasil dihapus')
        return True
