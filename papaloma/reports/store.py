"""
Report store: stock, stock-in, stock-out, shrinkage and comprehensive
reports. Each report is a summary block plus an item list, held as the server
sent it.
"""
from functools import partial

from papaloma.core.store import ApiStore
from papaloma.core.utils import response_value

REPORT_STOK = 'stok'
REPORT_MASUK = 'masuk'
REPORT_KELUAR = 'keluar'
REPORT_PENYUSUTAN = 'penyusutan'
REPORT_COMPREHENSIVE = 'comprehensive'


def optional(value):
    """Empty form values are sent as absent"""
    return value or None


class ReportStore(ApiStore):
    initial_state = {
        'stock_report': None,
        'stock_in_report': None,
        'stock_out_report': None,
        'shrinkage_report': None,
        'comprehensive_report': None,
        'is_loading_stock_report': False,
        'is_loading_stock_in_report': False,
        'is_loading_stock_out_report': False,
        'is_loading_shrinkage_report': False,
        'is_loading_comprehensive_report': False,
        'error': None,
    }

    def clear_error(self):
        self.set(error=None)

    async def _fetch_report(self, slice_name, call):
        await self._fetch(
            slice_name,
            call,
            lambda response: {slice_name: response_value(response, 'report')},
            loading=f'is_loading_{slice_name}',
        )

    async def fetch_stock_report(self, kategori_id=None):
        await self._fetch_report('stock_report', partial(self.api.laporan.get_stok_report, optional(kategori_id)))

    async def fetch_stock_in_report(self, date_from=None, date_to=None):
        await self._fetch_report(
            'stock_in_report',
            partial(self.api.laporan.get_masuk_report, optional(date_from), optional(date_to)),
        )

    async def fetch_stock_out_report(self, date_from=None, date_to=None):
        await self._fetch_report(
            'stock_out_report',
            partial(self.api.laporan.get_keluar_report, optional(date_from), optional(date_to)),
        )

    async def fetch_shrinkage_report(self):
        await self._fetch_report('shrinkage_report', self.api.laporan.get_penyusutan_report)

    async def fetch_comprehensive_report(self, date_from=None, date_to=None):
        await self._fetch_report(
            'comprehensive_report',
            partial(self.api.laporan.get_comprehensive_report, optional(date_from), optional(date_to)),
        )

    async def fetch_report(self, report_type, date_from=None, date_to=None):
        """Load one report by its type key; date bounds apply to the ledger reports"""
        if report_type == REPORT_STOK:
            await self.fetch_stock_report()
        elif report_type == REPORT_MASUK:
            await self.fetch_stock_in_report(date_from, date_to)
        elif report_type == REPORT_KELUAR:
            await self.fetch_stock_out_report(date_from, date_to)
        elif report_type == REPORT_PENYUSUTAN:
            await self.fetch_shrinkage_report()
        elif report_type == REPORT_COMPREHENSIVE:
            await self.fetch_comprehensive_report(date_from, date_to)
        else:
            raise ValueError(f"Unknown report type: {report_type}")
