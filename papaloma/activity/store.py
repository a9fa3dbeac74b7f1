"""Activity log store. Read-only mirror of the audit trail."""
from functools import partial

from papaloma.core.store import ApiStore
from papaloma.core.utils import response_list

MY_LOGS_LIMIT = 20


class ActivityLogStore(ApiStore):
    initial_state = {
        'logs': [],
        'pagination': None,
        'my_logs': [],
        'is_loading_logs': False,
        'is_loading_my_logs': False,
        'error': None,
    }

    async def fetch_logs(self, params=None):
        """params: userId, entityType, dateFrom, dateTo, page, limit"""
        await self._fetch(
            'logs',
            partial(self.api.activity_logs.get_all, params),
            lambda response: {
                'logs': response_list(response),
                'pagination': response.get('pagination'),
            },
            loading='is_loading_logs',
        )

    async def fetch_my_logs(self, limit=MY_LOGS_LIMIT):
        await self._fetch(
            'my_logs',
            partial(self.api.activity_logs.get_my_logs, limit),
            lambda response: {'my_logs': response_list(response, 'logs')},
            loading='is_loading_my_logs',
        )
