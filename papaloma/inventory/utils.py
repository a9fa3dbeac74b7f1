"""Derived item state shown next to the mirrored data"""

STATUS_HABIS = 'Habis'
STATUS_RENDAH = 'Rendah'
STATUS_NORMAL = 'Normal'


def stock_status(stok, stok_minimum):
    """Habis when empty, Rendah at or below the minimum, Normal otherwise"""
    if stok == 0:
        return STATUS_HABIS
    if stok <= stok_minimum:
        return STATUS_RENDAH
    return STATUS_NORMAL


def item_stock_status(item):
    return stock_status(item.get('stok') or 0, item.get('stokMinimum') or 0)
