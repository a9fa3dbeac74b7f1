"""
Test suite for the notification store
Tests: Listing, Unread counter, Mark read, Mark all read, Delete
"""
from django.test import SimpleTestCase

from papaloma.core.exceptions import ApiError, NetworkError
from papaloma.core.test_utils import FakeApi, TestDataFactory, capture_toasts
from papaloma.notifications.store import NotificationStore, is_read


class NotificationStoreTestCase(SimpleTestCase):
    def setUp(self):
        self.api = FakeApi()
        self.store = NotificationStore(self.api)
        self.unread = TestDataFactory.create_notification(notification_id=1, read=0, type='warning')
        self.other_unread = TestDataFactory.create_notification(notification_id=2, read=0)
        self.read = TestDataFactory.create_notification(notification_id=3, read=1)
        self.store.set(notifications=[self.unread, self.other_unread, self.read], unread_count=2)

    def unread_entries(self):
        return [n for n in self.store.notifications if not is_read(n)]


class FetchTests(NotificationStoreTestCase):
    async def test_fetch_notifications(self):
        fresh = [TestDataFactory.create_notification()]
        self.api.respond('notifications.get_all', TestDataFactory.envelope(data=fresh))
        await self.store.fetch_notifications({'read': False, 'limit': 10})
        self.assertEqual(self.api.calls_to('notifications.get_all'), [({'read': False, 'limit': 10},)])
        self.assertEqual(self.store.notifications, fresh)
        self.assertFalse(self.store.is_loading)

    async def test_fetch_unread_count(self):
        self.api.respond('notifications.get_unread_count', TestDataFactory.envelope(data={'count': 7}))
        await self.store.fetch_unread_count()
        self.assertEqual(self.store.unread_count, 7)

    async def test_fetch_failure_is_quiet(self):
        """Test background polling failures keep the list and raise no toast"""
        self.api.respond('notifications.get_all', NetworkError('Network Error'))
        with capture_toasts() as toasts:
            await self.store.fetch_notifications()
        self.assertEqual(len(self.store.notifications), 3)
        self.assertEqual(self.store.error, 'Network Error')
        self.assertEqual(toasts, [])


class MarkAsReadTests(NotificationStoreTestCase):
    async def test_mark_as_read(self):
        self.assertTrue(await self.store.mark_as_read(1))
        self.assertEqual(self.api.calls_to('notifications.mark_as_read'), [(1,)])
        self.assertTrue(is_read(self.store.notifications[0]))
        self.assertEqual(self.store.notifications[0]['read'], 1)
        self.assertEqual(self.store.unread_count, 1)
        self.assertEqual(len(self.unread_entries()), self.store.unread_count)

    async def test_mark_as_read_twice(self):
        """Test marking the same entry again changes nothing"""
        await self.store.mark_as_read(1)
        self.assertTrue(await self.store.mark_as_read(1))
        self.assertEqual(len(self.api.calls_to('notifications.mark_as_read')), 1)
        self.assertEqual(self.store.unread_count, 1)

    async def test_mark_read_entry(self):
        self.assertTrue(await self.store.mark_as_read(3))
        self.assertEqual(self.api.calls, [])
        self.assertEqual(self.store.unread_count, 2)

    async def test_mark_as_read_failure(self):
        self.api.respond('notifications.mark_as_read', ApiError('Notifikasi tidak ditemukan', status_code=404))
        with capture_toasts() as toasts:
            self.assertFalse(await self.store.mark_as_read(1))
        self.assertFalse(is_read(self.store.notifications[0]))
        self.assertEqual(self.store.unread_count, 2)
        self.assertEqual(self.store.error, 'Notifikasi tidak ditemukan')
        self.assertEqual(toasts, [('error', 'Notifikasi tidak ditemukan')])

    async def test_mark_unknown_entry_recounts(self):
        self.api.respond('notifications.get_unread_count', TestDataFactory.envelope(data={'count': 1}))
        self.assertTrue(await self.store.mark_as_read(99))
        self.assertEqual(self.api.endpoints(), ['notifications.mark_as_read', 'notifications.get_unread_count'])
        self.assertEqual(self.store.unread_count, 1)

    async def test_counter_never_negative(self):
        self.store.set(unread_count=0)
        await self.store.mark_as_read(1)
        self.assertEqual(self.store.unread_count, 0)


class BulkTests(NotificationStoreTestCase):
    async def test_mark_all_as_read(self):
        with capture_toasts() as toasts:
            self.assertTrue(await self.store.mark_all_as_read())
        self.assertEqual(self.unread_entries(), [])
        self.assertEqual(self.store.unread_count, 0)
        self.assertEqual(toasts, [('success', 'Semua notifikasi ditandai sudah dibaca')])

    async def test_mark_all_as_read_failure(self):
        self.api.respond('notifications.mark_all_as_read', NetworkError('Network Error'))
        self.assertFalse(await self.store.mark_all_as_read())
        self.assertEqual(len(self.unread_entries()), 2)
        self.assertEqual(self.store.unread_count, 2)

    async def test_delete_unread(self):
        self.assertTrue(await self.store.delete_notification(1))
        self.assertEqual([n['id'] for n in self.store.notifications], [2, 3])
        self.assertEqual(self.store.unread_count, 1)

    async def test_delete_read(self):
        self.assertTrue(await self.store.delete_notification(3))
        self.assertEqual([n['id'] for n in self.store.notifications], [1, 2])
        self.assertEqual(self.store.unread_count, 2)

    async def test_delete_failure(self):
        self.api.respond('notifications.delete', ApiError('Gagal menghapus notifikasi'))
        self.assertFalse(await self.store.delete_notification(1))
        self.assertEqual(len(self.store.notifications), 3)
        self.assertEqual(self.store.unread_count, 2)

    async def test_delete_all(self):
        with capture_toasts() as toasts:
            self.assertTrue(await self.store.delete_all_notifications())
        self.assertEqual(self.store.notifications, [])
        self.assertEqual(self.store.unread_count, 0)
        self.assertEqual(toasts, [('success', 'Semua notifikasi berhasil dihapus')])
