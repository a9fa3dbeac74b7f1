"""
Composition root: one persisted auth slice, one gateway and one instance of
every store, wired together explicitly.

    import papaloma
    papaloma.setup()

    from papaloma.app import PapalomaApp
    app = PapalomaApp()
    await app.boot()
    await app.auth.login('admin@papaloma.id', 'rahasia123')
    await app.inventory.fetch_all_dashboard_data()
"""
import asyncio
import logging
from asgiref.sync import async_to_sync
from django.conf import settings

from papaloma.accounts.store import AuthStore
from papaloma.activity.store import ActivityLogStore
from papaloma.core.api import ApiClient
from papaloma.core.signals import session_expired
from papaloma.core.storage import AuthStorage
from papaloma.inventory.store import InventoryStore
from papaloma.notifications.store import NotificationStore
from papaloma.reports.store import ReportStore
from papaloma.ui.store import UIStore
from papaloma.users.store import UserStore

logger = logging.getLogger(__name__)


class PapalomaApp:
    def __init__(self, api=None, storage=None, document_classes=None, discard_stale=None):
        self.storage = storage or AuthStorage()
        self.location = None
        self.api = api or ApiClient(
            token_provider=self.storage.get_token,
            on_unauthorized=self.handle_unauthorized,
        )

        self.auth = AuthStore(self.api, self.storage, discard_stale=discard_stale)
        self.inventory = InventoryStore(self.api, discard_stale=discard_stale)
        self.users = UserStore(self.api, discard_stale=discard_stale)
        self.notifications = NotificationStore(self.api, discard_stale=discard_stale)
        self.reports = ReportStore(self.api, discard_stale=discard_stale)
        self.activity = ActivityLogStore(self.api, discard_stale=discard_stale)
        self.ui = UIStore(document_classes)

    def navigate(self, path):
        logger.debug(f"Navigating to {path}")
        self.location = path

    def handle_unauthorized(self):
        """
        Gateway hook for any 401. Runs on the gateway's worker thread: the
        persisted slice is cleared right away, the store and location are
        updated on the event loop.
        """
        self.storage.clear()
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            async_to_sync(self._end_session)()
        else:
            self.end_session()

    async def _end_session(self):
        self.end_session()

    def end_session(self):
        login_url = settings.PAPALOMA_LOGIN_URL
        logger.info("Session rejected by the server, returning to login")
        self.auth.reset()
        self.navigate(login_url)
        session_expired.send(sender=self.__class__, redirect_to=login_url)

    async def boot(self):
        """Revalidate a restored session; returns whether it is still signed in"""
        await self.auth.fetch_user()
        return self.auth.is_authenticated
