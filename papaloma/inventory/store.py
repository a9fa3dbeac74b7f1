"""
Inventory store: items, categories, stock-in/stock-out ledgers, low-stock list
and the dashboard aggregates.

Every fetch replaces its slice wholesale. Every write goes to the server and is
followed by a refetch of whatever it invalidated (see `invalidates`); nothing
is patched locally, so the store never computes stock values itself.
"""
from functools import partial
import asyncio
import logging

from papaloma.core.exceptions import GatewayError
from papaloma.core.store import ApiStore
from papaloma.core.utils import find_by_id, response_list, response_value
from .serializers import (
    BarangInputSerializer, KategoriInputSerializer,
    TransaksiMasukInputSerializer, TransaksiKeluarInputSerializer,
)

logger = logging.getLogger(__name__)

TOP_USED_LIMIT = 8
RECENT_ACTIVITIES_LIMIT = 5


class InventoryStore(ApiStore):
    initial_state = {
        # Lists
        'items': [],
        'categories': [],
        'stock_in': [],
        'stock_out': [],
        'low_stock_items': [],

        # Dashboard aggregates
        'dashboard_stats': None,
        'chart_data': [],
        'category_distribution': [],
        'top_used_items': [],
        'recent_activities': [],

        # Pagination
        'items_pagination': None,
        'stock_in_pagination': None,
        'stock_out_pagination': None,

        # Loading flags, one per slice
        'is_loading': False,
        'is_loading_items': False,
        'is_loading_categories': False,
        'is_loading_stock_in': False,
        'is_loading_stock_out': False,
        'is_loading_low_stock': False,
        'is_loading_dashboard_stats': False,
        'is_loading_chart_data': False,
        'is_loading_category_distribution': False,
        'is_loading_top_used': False,
        'is_loading_recent_activities': False,
        'is_loading_dashboard': False,

        'error': None,
    }

    # A stock transaction changes an item's stock, so it invalidates the items too
    invalidates = {
        'category': ('fetch_categories',),
        'item': ('fetch_items',),
        'stock_in': ('fetch_stock_in', 'fetch_items'),
        'stock_out': ('fetch_stock_out', 'fetch_items'),
    }

    def clear_error(self):
        self.set(error=None)

    # Categories

    async def fetch_categories(self):
        await self._fetch(
            'categories',
            self.api.kategori.get_all,
            lambda response: {'categories': response_list(response, 'kategori')},
            loading='is_loading_categories',
        )

    async def add_category(self, data):
        return await self._mutate(
            'category',
            partial(self.api.kategori.create, data),
            'Kategori berhasil ditambahkan',
            serializer=KategoriInputSerializer(data=data),
        )

    async def update_category(self, kategori_id, data):
        return await self._mutate(
            'category',
            partial(self.api.kategori.update, kategori_id, data),
            'Kategori berhasil diperbarui',
            serializer=KategoriInputSerializer(data=data, partial=True),
        )

    async def delete_category(self, kategori_id):
        return await self._mutate(
            'category',
            partial(self.api.kategori.delete, kategori_id),
            'Kategori berhasil dihapus',
        )

    # Items

    async def fetch_items(self, params=None):
        """params: kategoriId, kondisi, stokStatus, search, page, limit"""
        await self._fetch(
            'items',
            partial(self.api.barang.get_all, params),
            lambda response: {
                'items': response_list(response),
                'items_pagination': response.get('pagination'),
            },
            loading='is_loading_items',
        )

    async def fetch_item_by_id(self, barang_id):
        """Load a single item without touching the list; None on failure"""
        try:
            response = await self._call(partial(self.api.barang.get_by_id, barang_id))
        except GatewayError as e:
            logger.info(f"Loading item {barang_id} failed: {e.message}")
            self.notify('error', e.message)
            return None
        return response_value(response, 'barang')

    async def add_item(self, data):
        return await self._mutate(
            'item',
            partial(self.api.barang.create, data),
            'Barang berhasil ditambahkan',
            serializer=BarangInputSerializer(data=data),
        )

    async def update_item(self, barang_id, data):
        return await self._mutate(
            'item',
            partial(self.api.barang.update, barang_id, data),
            'Barang berhasil diperbarui',
            serializer=BarangInputSerializer(data=data, partial=True),
        )

    async def delete_item(self, barang_id):
        return await self._mutate(
            'item',
            partial(self.api.barang.delete, barang_id),
            'Barang berhasil dihapus',
        )

    async def fetch_low_stock_items(self):
        await self._fetch(
            'low_stock_items',
            self.api.barang.get_low_stock,
            lambda response: {'low_stock_items': response_list(response, 'barang')},
            loading='is_loading_low_stock',
        )

    # Stock-in

    async def fetch_stock_in(self, params=None):
        """params: barangId, dateFrom, dateTo, search, page, limit"""
        await self._fetch(
            'stock_in',
            partial(self.api.transaksi_masuk.get_all, params),
            lambda response: {
                'stock_in': response_list(response),
                'stock_in_pagination': response.get('pagination'),
            },
            loading='is_loading_stock_in',
        )

    async def add_stock_in(self, data):
        return await self._mutate(
            'stock_in',
            partial(self.api.transaksi_masuk.create, data),
            'Barang masuk berhasil dicatat',
            serializer=TransaksiMasukInputSerializer(data=data),
        )

    # Stock-out

    async def fetch_stock_out(self, params=None):
        """params: barangId, alasan, dateFrom, dateTo, search, page, limit"""
        await self._fetch(
            'stock_out',
            partial(self.api.transaksi_keluar.get_all, params),
            lambda response: {
                'stock_out': response_list(response),
                'stock_out_pagination': response.get('pagination'),
            },
            loading='is_loading_stock_out',
        )

    def exceeds_known_stock(self, barang_id, jumlah):
        """
        UI hint: True when the quantity is above the item's last known stock.
        The server stays authoritative; unknown items never exceed.
        """
        item = find_by_id(self.items, barang_id)
        if item is None:
            return False
        try:
            return int(jumlah) > int(item.get('stok') or 0)
        except (TypeError, ValueError):
            return False

    async def add_stock_out(self, data):
        barang_id = data.get('barangId')
        if self.exceeds_known_stock(barang_id, data.get('jumlah')):
            logger.warning(f"Stock-out of {data.get('jumlah')} for item {barang_id} exceeds the last known stock")
        return await self._mutate(
            'stock_out',
            partial(self.api.transaksi_keluar.create, data),
            'Barang keluar berhasil dicatat',
            serializer=TransaksiKeluarInputSerializer(data=data),
        )

    # Dashboard

    async def fetch_dashboard_stats(self):
        await self._fetch(
            'dashboard_stats',
            self.api.dashboard.get_stats,
            lambda response: {'dashboard_stats': response_value(response, 'stats')},
            loading='is_loading_dashboard_stats',
        )

    async def fetch_chart_data(self, year=None):
        await self._fetch(
            'chart_data',
            partial(self.api.dashboard.get_chart_data, year),
            lambda response: {'chart_data': response_list(response, 'chartData')},
            loading='is_loading_chart_data',
        )

    async def fetch_category_distribution(self):
        await self._fetch(
            'category_distribution',
            self.api.dashboard.get_kategori_distribution,
            lambda response: {'category_distribution': response_list(response, 'distribution')},
            loading='is_loading_category_distribution',
        )

    async def fetch_top_used_items(self, limit=TOP_USED_LIMIT):
        await self._fetch(
            'top_used_items',
            partial(self.api.dashboard.get_top_used_items, limit),
            lambda response: {'top_used_items': response_list(response, 'items')},
            loading='is_loading_top_used',
        )

    async def fetch_recent_activities(self, limit=RECENT_ACTIVITIES_LIMIT):
        await self._fetch(
            'recent_activities',
            partial(self.api.dashboard.get_recent_activities, limit),
            lambda response: {'recent_activities': response_list(response, 'activities')},
            loading='is_loading_recent_activities',
        )

    async def fetch_all_dashboard_data(self):
        """
        Issue the five dashboard fetches and the low-stock fetch together.
        Each one handles its own failure; the join only drives
        is_loading_dashboard.
        """
        self.set(is_loading_dashboard=True)
        try:
            results = await asyncio.gather(
                self.fetch_dashboard_stats(),
                self.fetch_chart_data(),
                self.fetch_category_distribution(),
                self.fetch_top_used_items(),
                self.fetch_recent_activities(),
                self.fetch_low_stock_items(),
                return_exceptions=True,
            )
            # Gateway failures are absorbed inside each fetch; anything else is a bug
            crashes = [result for result in results if isinstance(result, Exception)]
            for crash in crashes:
                logger.error(f"Dashboard fetch crashed: {crash!r}")
            if crashes:
                raise crashes[0]
        finally:
            self.set(is_loading_dashboard=False)
