"""
Perhitungan stok harian.

Semua fungsi di sini murni (tanpa akses database) supaya bisa dipakai ulang
oleh editor produk, rollover, dan bulk update days_to_order.
"""

DEFAULT_DAYS_TO_ORDER = 3
DAYS_TO_ORDER_CHOICES = (0, 1, 2, 3)


def _as_int(value):
    return int(value or 0)


def calculate_stock(stock_awal=0, keluar_manual=0, keluar_pos=0, days_to_order=DEFAULT_DAYS_TO_ORDER):
    """
    Hitung nilai turunan dari input stok.

    stock_akhir boleh negatif (kekurangan stok) dan tidak di-clamp.
    qty_di_pesan memakai keluar_manual saja sebagai dasar pengali, bukan total
    keluar, dan tidak pernah negatif.
    """
    stock_awal = _as_int(stock_awal)
    keluar_manual = _as_int(keluar_manual)
    keluar_pos = _as_int(keluar_pos)
    days_to_order = _as_int(days_to_order)

    total_keluar = keluar_manual + keluar_pos
    stock_akhir = stock_awal - total_keluar
    if days_to_order == 0:
        qty_di_pesan = 0
    else:
        qty_di_pesan = max(0, keluar_manual * days_to_order - stock_akhir)

    return {
        "total_keluar": total_keluar,
        "stock_akhir": stock_akhir,
        "qty_di_pesan": qty_di_pesan,
        "selisih": keluar_pos - keluar_manual,
    }


def rollover_values(stock_akhir, qty_di_pesan):
    """Nilai baru satu produk setelah pergantian periode."""
    new_stock_awal = _as_int(stock_akhir) + _as_int(qty_di_pesan)
    return {
        "stock_awal": new_stock_awal,
        "keluar_manual": 0,
        "keluar_pos": 0,
        "stock_akhir": new_stock_awal,
        "qty_di_pesan": 0,
        "selisih": 0,
    }


def resolve_days_to_order(requested, current=None):
    if requested is not None:
        return int(requested)
    if current is not None:
        return int(current)
    return DEFAULT_DAYS_TO_ORDER
