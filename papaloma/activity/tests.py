import asyncio
import threading
from django.test import SimpleTestCase

from papaloma.core.test_utils import FakeApi, TestDataFactory
from papaloma.activity.store import ActivityLogStore, MY_LOGS_LIMIT


class ActivityLogStoreTests(SimpleTestCase):
    def setUp(self):
        self.api = FakeApi()
        self.store = ActivityLogStore(self.api)
        self.logs = [
            {'id': 1, 'action': 'create', 'entity_type': 'barang', 'entity_id': 4, 'user_name': 'Budi'},
            {'id': 2, 'action': 'login', 'entity_type': 'auth', 'entity_id': None, 'user_name': 'Budi'},
        ]

    async def test_fetch_logs(self):
        params = {'entityType': 'barang', 'page': 1, 'limit': 20}
        pagination = TestDataFactory.pagination(limit=20, total=2)
        self.api.respond('activity_logs.get_all', TestDataFactory.envelope(data=self.logs, pagination=pagination))
        await self.store.fetch_logs(params)
        self.assertEqual(self.api.calls_to('activity_logs.get_all'), [(params,)])
        self.assertEqual(self.store.logs, self.logs)
        self.assertEqual(self.store.pagination, pagination)

    async def test_fetch_my_logs(self):
        self.api.respond('activity_logs.get_my_logs', TestDataFactory.envelope(data={'logs': self.logs[:1]}))
        await self.store.fetch_my_logs()
        self.assertEqual(self.api.calls_to('activity_logs.get_my_logs'), [(MY_LOGS_LIMIT,)])
        self.assertEqual(self.store.my_logs, self.logs[:1])
        self.assertEqual(self.store.logs, [])
        self.assertFalse(self.store.is_loading_my_logs)

    async def test_own_logs_do_not_end_log_page_loading(self):
        release = threading.Event()

        def slow_logs(params):
            release.wait(5)
            return TestDataFactory.envelope(data=self.logs)

        self.api.respond('activity_logs.get_all', slow_logs)
        self.api.respond('activity_logs.get_my_logs', TestDataFactory.envelope(data={'logs': self.logs[:1]}))

        async def my_logs_then_release():
            await self.store.fetch_my_logs()
            self.assertFalse(self.store.is_loading_my_logs)
            self.assertTrue(self.store.is_loading_logs)
            release.set()

        await asyncio.gather(self.store.fetch_logs(), my_logs_then_release())
        self.assertFalse(self.store.is_loading_logs)
        self.assertEqual(self.store.logs, self.logs)
