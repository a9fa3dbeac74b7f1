"""
Test suite for the inventory store
Tests: Categories, Items, Stock-in, Stock-out, Dashboard, Concurrent fetches, Stock status
"""
from datetime import date
from decimal import Decimal
from unittest.mock import Mock
import asyncio
import json
import threading
from django.test import SimpleTestCase

from papaloma.core.api import ApiClient
from papaloma.core.exceptions import ApiError, NetworkError
from papaloma.core.test_utils import FakeApi, TestDataFactory, capture_toasts
from papaloma.inventory.store import InventoryStore
from papaloma.inventory.utils import stock_status, item_stock_status, STATUS_HABIS, STATUS_RENDAH, STATUS_NORMAL


class InventoryStoreTestCase(SimpleTestCase):
    discard_stale = False

    def setUp(self):
        self.api = FakeApi()
        self.store = InventoryStore(self.api, discard_stale=self.discard_stale)
        self.kategori = TestDataFactory.create_kategori(kategori_id=3, name='Bahan Pokok')


class CategoryTests(InventoryStoreTestCase):
    """Test category fetch and writes"""

    async def test_fetch_categories(self):
        categories = [self.kategori, TestDataFactory.create_kategori()]
        self.api.respond('kategori.get_all', TestDataFactory.envelope(data={'kategori': categories}))
        await self.store.fetch_categories()
        self.assertEqual(self.store.categories, categories)
        self.assertFalse(self.store.is_loading_categories)

    async def test_add_category_refetches(self):
        self.api.respond('kategori.get_all', TestDataFactory.envelope(data={'kategori': [self.kategori]}))
        with capture_toasts() as toasts:
            result = await self.store.add_category({'name': 'Bahan Pokok'})
        self.assertTrue(result)
        self.assertEqual(self.api.endpoints(), ['kategori.create', 'kategori.get_all'])
        self.assertEqual(self.store.categories, [self.kategori])
        self.assertIn(('success', 'Kategori berhasil ditambahkan'), toasts)

    async def test_add_category_requires_name(self):
        self.assertFalse(await self.store.add_category({'name': ''}))
        self.assertEqual(self.store.error, 'Nama kategori harus diisi')
        self.assertEqual(self.api.calls, [])

    async def test_delete_category_rejected(self):
        self.store.set(categories=[self.kategori])
        self.api.respond('kategori.delete', ApiError('Kategori masih memiliki barang'))
        self.assertFalse(await self.store.delete_category(3))
        self.assertEqual(self.store.categories, [self.kategori])
        self.assertEqual(self.store.error, 'Kategori masih memiliki barang')


class ItemTests(InventoryStoreTestCase):
    """Test item fetch and writes"""

    async def test_create_item(self):
        """Test the create payload is sent as given and the list comes from the refetch"""
        payload = {
            'name': 'Gula', 'kategoriId': 3, 'satuan': 'kg', 'stok': 10, 'stokMinimum': 5,
            'hargaPerUnit': 15000, 'lokasi': 'Gudang Utama', 'kondisi': 'baik',
        }
        expected_payload = dict(payload)
        gula = TestDataFactory.create_barang(barang_id=21, name='Gula', kategori=self.kategori)
        refetched = [gula, TestDataFactory.create_barang(kategori=self.kategori)]
        pagination = TestDataFactory.pagination(total=2)
        self.store.set(items=[TestDataFactory.create_barang()])
        self.api.respond('barang.create', TestDataFactory.envelope(data={'barang': gula}))
        self.api.respond('barang.get_all', TestDataFactory.envelope(data=refetched, pagination=pagination))

        with capture_toasts() as toasts:
            result = await self.store.add_item(payload)

        self.assertTrue(result)
        self.assertEqual(self.api.calls_to('barang.create'), [(expected_payload,)])
        self.assertEqual(self.api.endpoints(), ['barang.create', 'barang.get_all'])
        self.assertEqual(self.store.items, refetched)
        self.assertEqual(self.store.items_pagination, pagination)
        self.assertFalse(self.store.is_loading)
        self.assertIsNone(self.store.error)
        self.assertIn(('success', 'Barang berhasil ditambahkan'), toasts)

    async def test_create_item_rejected(self):
        existing = [TestDataFactory.create_barang()]
        self.store.set(items=existing)
        self.api.respond('barang.create', ApiError('Nama barang sudah digunakan', status_code=400))

        with capture_toasts() as toasts:
            result = await self.store.add_item({
                'name': 'Gula', 'kategoriId': 3, 'satuan': 'kg', 'lokasi': 'Gudang Utama',
            })

        self.assertFalse(result)
        self.assertEqual(self.store.items, existing)
        self.assertEqual(self.store.error, 'Nama barang sudah digunakan')
        self.assertFalse(self.store.is_loading)
        self.assertNotIn('barang.get_all', self.api.endpoints())
        self.assertEqual(toasts, [('error', 'Nama barang sudah digunakan')])

    async def test_create_item_invalid(self):
        result = await self.store.add_item({'name': 'Gula', 'kategoriId': 3, 'satuan': 'kg', 'stok': -1,
                                            'lokasi': 'Gudang Utama'})
        self.assertFalse(result)
        self.assertEqual(self.store.error, 'Stok tidak boleh negatif')
        self.assertEqual(self.api.calls, [])

    async def test_update_item_partial(self):
        self.assertTrue(await self.store.update_item(21, {'stokMinimum': 8}))
        self.assertEqual(self.api.calls_to('barang.update'), [(21, {'stokMinimum': 8})])
        self.assertEqual(self.api.endpoints(), ['barang.update', 'barang.get_all'])

    async def test_delete_item(self):
        self.assertTrue(await self.store.delete_item(21))
        self.assertEqual(self.api.endpoints(), ['barang.delete', 'barang.get_all'])

    async def test_fetch_items_with_filters(self):
        items = [TestDataFactory.create_barang(stok=0)]
        params = {'kategoriId': 3, 'stokStatus': 'habis', 'page': 1, 'limit': 10}
        self.api.respond('barang.get_all', TestDataFactory.envelope(data=items))
        await self.store.fetch_items(params)
        self.assertEqual(self.api.calls_to('barang.get_all'), [(params,)])
        self.assertEqual(self.store.items, items)
        self.assertFalse(self.store.is_loading_items)

    async def test_fetch_items_failure_keeps_list(self):
        items = [TestDataFactory.create_barang()]
        self.store.set(items=items)
        self.api.respond('barang.get_all', NetworkError('Network Error'))
        with capture_toasts() as toasts:
            await self.store.fetch_items()
        self.assertEqual(self.store.items, items)
        self.assertEqual(self.store.error, 'Network Error')
        self.assertFalse(self.store.is_loading_items)
        self.assertEqual(toasts, [('error', 'Network Error')])

    async def test_fetch_item_by_id(self):
        gula = TestDataFactory.create_barang(barang_id=21, name='Gula')
        self.api.respond('barang.get_by_id', TestDataFactory.envelope(data={'barang': gula}))
        self.assertEqual(await self.store.fetch_item_by_id(21), gula)
        self.assertEqual(self.store.items, [])

    async def test_fetch_item_by_id_missing(self):
        self.api.respond('barang.get_by_id', ApiError('Barang tidak ditemukan', status_code=404))
        with capture_toasts() as toasts:
            self.assertIsNone(await self.store.fetch_item_by_id(99))
        self.assertEqual(toasts, [('error', 'Barang tidak ditemukan')])

    async def test_fetch_low_stock(self):
        low = [TestDataFactory.create_barang(stok=2, stok_minimum=5)]
        self.api.respond('barang.get_low_stock', TestDataFactory.envelope(data={'barang': low}))
        await self.store.fetch_low_stock_items()
        self.assertEqual(self.store.low_stock_items, low)


class StockTransactionTests(InventoryStoreTestCase):
    """Test stock-in and stock-out writes"""

    def setUp(self):
        super().setUp()
        self.beras = TestDataFactory.create_barang(barang_id=4, name='Beras', stok=3, kategori=self.kategori)
        self.store.set(items=[self.beras])

    async def test_stock_in_refetches_items(self):
        updated = dict(self.beras, stok=8)
        entry = TestDataFactory.create_transaksi(updated, jumlah=5, supplier='CV Sumber Rejeki')
        self.api.respond('transaksi_masuk.get_all', TestDataFactory.envelope(data=[entry]))
        self.api.respond('barang.get_all', TestDataFactory.envelope(data=[updated]))

        result = await self.store.add_stock_in({
            'barangId': 4, 'jumlah': 5, 'tanggal': '2024-06-01', 'supplier': 'CV Sumber Rejeki',
        })

        self.assertTrue(result)
        self.assertEqual(
            self.api.endpoints(),
            ['transaksi_masuk.create', 'transaksi_masuk.get_all', 'barang.get_all'],
        )
        self.assertEqual(self.store.stock_in, [entry])
        self.assertEqual(self.store.items, [updated])
        self.assertEqual(item_stock_status(self.beras), STATUS_RENDAH)
        self.assertEqual(item_stock_status(self.store.items[0]), STATUS_NORMAL)

    async def test_stock_in_needs_quantity(self):
        result = await self.store.add_stock_in({
            'barangId': 4, 'jumlah': 0, 'tanggal': '2024-06-01', 'supplier': 'CV Sumber Rejeki',
        })
        self.assertFalse(result)
        self.assertEqual(self.store.error, 'Jumlah minimal 1')
        self.assertEqual(self.api.calls, [])

    async def test_stock_out_refetches_items(self):
        self.assertTrue(await self.store.add_stock_out({
            'barangId': 4, 'jumlah': 1, 'tanggal': '2024-06-01', 'alasan': 'terpakai',
        }))
        self.assertEqual(
            self.api.endpoints(),
            ['transaksi_keluar.create', 'transaksi_keluar.get_all', 'barang.get_all'],
        )

    async def test_stock_out_above_known_stock_still_sent(self):
        """Test the client only hints; the server decides and its message is shown verbatim"""
        message = 'Stok tidak mencukupi. Stok tersedia: 3'
        self.api.respond('transaksi_keluar.create', ApiError(message, status_code=400))
        data = {'barangId': 4, 'jumlah': 10, 'tanggal': '2024-06-01', 'alasan': 'terpakai'}

        self.assertTrue(self.store.exceeds_known_stock(4, 10))
        with capture_toasts() as toasts, self.assertLogs('papaloma.inventory.store', level='WARNING'):
            result = await self.store.add_stock_out(data)

        self.assertFalse(result)
        self.assertEqual(self.api.calls_to('transaksi_keluar.create'), [(data,)])
        self.assertEqual(self.store.error, message)
        self.assertEqual(self.store.items, [self.beras])
        self.assertNotIn('barang.get_all', self.api.endpoints())
        self.assertEqual(toasts, [('error', message)])

    def test_exceeds_known_stock(self):
        self.assertFalse(self.store.exceeds_known_stock(4, 3))
        self.assertTrue(self.store.exceeds_known_stock(4, 4))
        self.assertFalse(self.store.exceeds_known_stock(999, 100))


class DashboardTests(InventoryStoreTestCase):
    """Test the dashboard aggregates"""

    def respond_dashboard(self):
        self.stats = {'totalBarang': 42, 'stokRendah': 3, 'transaksiMasukBulanIni': 12, 'transaksiKeluarBulanIni': 9}
        self.distribution = [{'name': 'Bahan Pokok', 'value': 12}]
        self.top_used = [{'id': 4, 'name': 'Beras', 'totalKeluar': 40}]
        self.activities = [{'id': 1, 'type': 'masuk', 'barang': 'Beras', 'jumlah': 5}]
        self.low = [TestDataFactory.create_barang(stok=1)]
        self.api.respond('dashboard.get_stats', TestDataFactory.envelope(data={'stats': self.stats}))
        self.api.respond('dashboard.get_kategori_distribution',
                         TestDataFactory.envelope(data={'distribution': self.distribution}))
        self.api.respond('dashboard.get_top_used_items', TestDataFactory.envelope(data={'items': self.top_used}))
        self.api.respond('dashboard.get_recent_activities',
                         TestDataFactory.envelope(data={'activities': self.activities}))
        self.api.respond('barang.get_low_stock', TestDataFactory.envelope(data={'barang': self.low}))

    async def test_fetch_all(self):
        self.respond_dashboard()
        chart = [{'month': 'Jan', 'masuk': 10, 'keluar': 4}]
        self.api.respond('dashboard.get_chart_data', TestDataFactory.envelope(data={'chartData': chart}))

        await self.store.fetch_all_dashboard_data()

        self.assertEqual(sorted(self.api.endpoints()), sorted([
            'dashboard.get_stats', 'dashboard.get_chart_data', 'dashboard.get_kategori_distribution',
            'dashboard.get_top_used_items', 'dashboard.get_recent_activities', 'barang.get_low_stock',
        ]))
        self.assertEqual(self.store.dashboard_stats, self.stats)
        self.assertEqual(self.store.chart_data, chart)
        self.assertEqual(self.store.category_distribution, self.distribution)
        self.assertEqual(self.store.top_used_items, self.top_used)
        self.assertEqual(self.store.recent_activities, self.activities)
        self.assertEqual(self.store.low_stock_items, self.low)
        self.assertFalse(self.store.is_loading_dashboard)
        self.assertEqual(self.api.calls_to('dashboard.get_top_used_items'), [(8,)])
        self.assertEqual(self.api.calls_to('dashboard.get_recent_activities'), [(5,)])

    async def test_fetch_all_tolerates_one_failure(self):
        """Test one failing aggregate leaves the others populated"""
        self.respond_dashboard()
        self.api.respond('dashboard.get_chart_data', NetworkError('Network Error'))

        with capture_toasts() as toasts:
            await self.store.fetch_all_dashboard_data()

        self.assertEqual(self.store.dashboard_stats, self.stats)
        self.assertEqual(self.store.chart_data, [])
        self.assertEqual(self.store.top_used_items, self.top_used)
        self.assertEqual(self.store.low_stock_items, self.low)
        self.assertFalse(self.store.is_loading_dashboard)
        self.assertFalse(self.store.is_loading_chart_data)
        self.assertEqual(toasts, [('error', 'Network Error')])

    async def test_chart_year_forwarded(self):
        await self.store.fetch_chart_data(2023)
        self.assertEqual(self.api.calls_to('dashboard.get_chart_data'), [(2023,)])


class ConcurrentFetchTests(InventoryStoreTestCase):
    """
    Two overlapping item fetches resolving out of order. By default the slice
    holds whichever response resolved last, even if it was issued first.
    """

    def setUp(self):
        super().setUp()
        self.slow_items = [TestDataFactory.create_barang(name='Gula')]
        self.fast_items = [TestDataFactory.create_barang(name='Garam')]
        self.release = threading.Event()

        def get_all(params):
            if params['search'] == 'gula':
                self.release.wait(5)
                return TestDataFactory.envelope(data=self.slow_items)
            return TestDataFactory.envelope(data=self.fast_items)

        self.api.respond('barang.get_all', get_all)

    async def race(self):
        async def fast_then_release():
            await self.store.fetch_items({'search': 'garam'})
            self.assertEqual(self.store.items, self.fast_items)
            self.release.set()

        await asyncio.gather(self.store.fetch_items({'search': 'gula'}), fast_then_release())

    async def test_last_resolved_response_wins(self):
        await self.race()
        self.assertEqual(self.store.items, self.slow_items)
        self.assertFalse(self.store.is_loading_items)


class StaleResponseTests(ConcurrentFetchTests):
    """With stale responses discarded, the latest request wins"""
    discard_stale = True

    async def test_last_resolved_response_wins(self):
        await self.race()
        self.assertEqual(self.store.items, self.fast_items)
        self.assertFalse(self.store.is_loading_items)


class StockStatusTests(SimpleTestCase):
    def test_stock_status(self):
        self.assertEqual(stock_status(0, 5), STATUS_HABIS)
        self.assertEqual(stock_status(5, 5), STATUS_RENDAH)
        self.assertEqual(stock_status(2, 5), STATUS_RENDAH)
        self.assertEqual(stock_status(6, 5), STATUS_NORMAL)

    def test_item_stock_status(self):
        self.assertEqual(item_stock_status(TestDataFactory.create_barang(stok=0)), STATUS_HABIS)
        self.assertEqual(item_stock_status({'stok': 20}), STATUS_NORMAL)


class GatewayPayloadTests(SimpleTestCase):
    """Test validated form values travel through the real gateway"""

    def setUp(self):
        self.session = Mock()
        self.session.request.return_value = TestDataFactory.make_response(200, TestDataFactory.envelope(data=[]))
        self.api = ApiClient(
            base_url='http://testserver/api',
            token_provider=lambda: 'jwt-abc',
            on_unauthorized=Mock(),
            session=self.session,
        )
        self.store = InventoryStore(self.api)

    def sent_bodies(self, method):
        return [
            json.loads(call.kwargs['data'])
            for call in self.session.request.call_args_list
            if call.args[0] == method
        ]

    async def test_add_item_with_decimal_price(self):
        result = await self.store.add_item({
            'name': 'Gula', 'kategoriId': 3, 'satuan': 'kg', 'stok': 10, 'stokMinimum': 5,
            'hargaPerUnit': Decimal('15000'), 'lokasi': 'Gudang Utama', 'kondisi': 'baik',
            'tanggalKadaluarsa': date(2025, 1, 31),
        })
        self.assertTrue(result)
        self.assertFalse(self.store.is_loading)
        body = self.sent_bodies('POST')[0]
        self.assertEqual(body['hargaPerUnit'], '15000')
        self.assertEqual(body['tanggalKadaluarsa'], '2025-01-31')

    async def test_add_stock_in_with_date(self):
        result = await self.store.add_stock_in({
            'barangId': 4, 'jumlah': 5, 'tanggal': date(2024, 6, 1), 'supplier': 'CV Sumber Rejeki',
        })
        self.assertTrue(result)
        self.assertFalse(self.store.is_loading)
        self.assertEqual(self.sent_bodies('POST'), [
            {'barangId': 4, 'jumlah': 5, 'tanggal': '2024-06-01', 'supplier': 'CV Sumber Rejeki'},
        ])
