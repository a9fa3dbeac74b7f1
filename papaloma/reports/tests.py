"""
Test suite for the report store
Tests: Stock, Stock-in, Stock-out, Shrinkage and Comprehensive reports
"""
import asyncio
import threading
from django.test import SimpleTestCase

from papaloma.core.exceptions import ApiError
from papaloma.core.test_utils import FakeApi, TestDataFactory, capture_toasts
from papaloma.reports.store import ReportStore


class ReportStoreTests(SimpleTestCase):
    def setUp(self):
        self.api = FakeApi()
        self.store = ReportStore(self.api)
        self.report = {
            'summary': {'totalItems': 2, 'totalNilai': 450000},
            'items': [TestDataFactory.create_barang(), TestDataFactory.create_barang()],
        }

    async def test_stock_report(self):
        self.api.respond('laporan.get_stok_report', TestDataFactory.envelope(data={'report': self.report}))
        await self.store.fetch_stock_report(3)
        self.assertEqual(self.api.calls_to('laporan.get_stok_report'), [(3,)])
        self.assertEqual(self.store.stock_report, self.report)
        self.assertFalse(self.store.is_loading_stock_report)

    async def test_date_range_forwarded(self):
        self.api.respond('laporan.get_masuk_report', TestDataFactory.envelope(data={'report': self.report}))
        await self.store.fetch_report('masuk', '2024-06-01', '2024-06-30')
        self.assertEqual(self.api.calls_to('laporan.get_masuk_report'), [('2024-06-01', '2024-06-30')])
        self.assertEqual(self.store.stock_in_report, self.report)

    async def test_blank_dates_sent_as_absent(self):
        await self.store.fetch_report('keluar', '', '')
        self.assertEqual(self.api.calls_to('laporan.get_keluar_report'), [(None, None)])

    async def test_dispatch(self):
        await self.store.fetch_report('stok')
        await self.store.fetch_report('penyusutan')
        await self.store.fetch_report('comprehensive', '2024-01-01', '2024-12-31')
        self.assertEqual(self.api.endpoints(), [
            'laporan.get_stok_report',
            'laporan.get_penyusutan_report',
            'laporan.get_comprehensive_report',
        ])

    async def test_unknown_type(self):
        with self.assertRaises(ValueError):
            await self.store.fetch_report('bulanan')
        self.assertEqual(self.api.calls, [])

    async def test_failure_keeps_previous_report(self):
        self.store.set(shrinkage_report=self.report)
        self.api.respond('laporan.get_penyusutan_report', ApiError('Gagal memuat laporan'))
        with capture_toasts() as toasts:
            await self.store.fetch_shrinkage_report()
        self.assertEqual(self.store.shrinkage_report, self.report)
        self.assertEqual(self.store.error, 'Gagal memuat laporan')
        self.assertEqual(toasts, [('error', 'Gagal memuat laporan')])

    async def test_reports_load_independently(self):
        """Test a finished report lowers only its own flag while another is still loading"""
        release = threading.Event()

        def slow_stock_report(kategori_id):
            release.wait(5)
            return TestDataFactory.envelope(data={'report': self.report})

        self.api.respond('laporan.get_stok_report', slow_stock_report)
        self.api.respond('laporan.get_penyusutan_report', TestDataFactory.envelope(data={'report': self.report}))

        async def shrinkage_then_release():
            await self.store.fetch_shrinkage_report()
            self.assertFalse(self.store.is_loading_shrinkage_report)
            self.assertTrue(self.store.is_loading_stock_report)
            release.set()

        await asyncio.gather(self.store.fetch_stock_report(), shrinkage_then_release())
        self.assertFalse(self.store.is_loading_stock_report)
        self.assertEqual(self.store.stock_report, self.report)
