"""
Pencatatan ledger stok (append-only).

Semua fungsi hanya menambahkan baris ke session; commit dilakukan oleh
pemanggil supaya perubahan produk dan ledger tersimpan dalam satu transaksi.
"""
from sqlalchemy import case, func

from stock_tracker import db
from stock_tracker.models import (
    StockTransaction,
    TRANSACTION_IN,
    TRANSACTION_OUT,
    TRANSACTION_ADJUSTMENT,
    DIMENSION_STOCK_AWAL,
    DIMENSION_KELUAR,
)

REASON_PRODUCT_CREATED = "Product created"
REASON_STOCK_AWAL = "Manual stock_awal adjustment"
REASON_KELUAR = "Manual keluar adjustment"
REASON_ROLLOVER_STOCK_AWAL = "Rollover stock_awal carry-over"
REASON_ROLLOVER_KELUAR = "Rollover keluar reset"

MANUAL_REASONS = {DIMENSION_STOCK_AWAL: REASON_STOCK_AWAL, DIMENSION_KELUAR: REASON_KELUAR}
ROLLOVER_REASONS = {
    DIMENSION_STOCK_AWAL: REASON_ROLLOVER_STOCK_AWAL,
    DIMENSION_KELUAR: REASON_ROLLOVER_KELUAR,
}


def _delta_for(dimension):
    return case(
        (
            (StockTransaction.transaction_type == TRANSACTION_ADJUSTMENT)
            & (StockTransaction.dimension == dimension),
            StockTransaction.new_stock - StockTransaction.previous_stock,
        ),
        else_=0,
    )


def _total_columns():
    total_in = func.coalesce(
        func.sum(
            case((StockTransaction.transaction_type == TRANSACTION_IN, StockTransaction.quantity), else_=0)
            + _delta_for(DIMENSION_STOCK_AWAL)
        ),
        0,
    )
    total_out = func.coalesce(
        func.sum(
            case((StockTransaction.transaction_type == TRANSACTION_OUT, StockTransaction.quantity), else_=0)
            + _delta_for(DIMENSION_KELUAR)
        ),
        0,
    )
    return total_in, total_out


def ledger_totals(product_id):
    """Kembalikan (total_in, total_out) hasil agregasi ledger satu produk."""
    total_in, total_out = _total_columns()
    row = (
        db.session.query(total_in, total_out)
        .filter(StockTransaction.product_id == product_id)
        .one()
    )
    return int(row[0] or 0), int(row[1] or 0)


def ledger_totals_by_product():
    """Agregasi ledger untuk semua produk sekaligus: {product_id: (total_in, total_out)}."""
    total_in, total_out = _total_columns()
    rows = (
        db.session.query(StockTransaction.product_id, total_in, total_out)
        .group_by(StockTransaction.product_id)
        .all()
    )
    return {pid: (int(t_in or 0), int(t_out or 0)) for pid, t_in, t_out in rows}


def current_ledger_stock(product_id):
    total_in, total_out = ledger_totals(product_id)
    return total_in - total_out


def _append(product_id, transaction_type, quantity, previous_stock, new_stock,
            reason=None, reference_number=None, created_by="system", dimension=None):
    entry = StockTransaction(
        product_id=product_id,
        transaction_type=transaction_type,
        quantity=quantity,
        previous_stock=previous_stock,
        new_stock=new_stock,
        dimension=dimension,
        reason=reason,
        reference_number=reference_number,
        created_by=created_by or "system",
    )
    db.session.add(entry)
    return entry


def record_product_created(product, created_by="system"):
    return _append(
        product.id,
        TRANSACTION_IN,
        0,
        0,
        0,
        reason=REASON_PRODUCT_CREATED,
        created_by=created_by,
        dimension=DIMENSION_STOCK_AWAL,
    )


def record_adjustments(product_id, stock_awal, total_keluar, totals=None,
                       created_by="system", reasons=None, reference_number=None):
    """
    Rekonsiliasi total ledger dengan nilai baru produk.

    Tambah satu baris ADJUSTMENT per dimensi yang berubah: stock_awal terhadap
    total_in, dan total keluar terhadap total_out. Dimensi yang sudah sama tidak
    menghasilkan baris apa pun.
    """
    reasons = reasons or MANUAL_REASONS
    if totals is None:
        totals = ledger_totals(product_id)
    current_in, current_out = totals

    entries = []
    for dimension, previous, target in (
        (DIMENSION_STOCK_AWAL, current_in, int(stock_awal or 0)),
        (DIMENSION_KELUAR, current_out, int(total_keluar or 0)),
    ):
        delta = target - previous
        if delta == 0:
            continue
        entries.append(
            _append(
                product_id,
                TRANSACTION_ADJUSTMENT,
                abs(delta),
                previous,
                target,
                reason=reasons[dimension],
                reference_number=reference_number,
                created_by=created_by,
                dimension=dimension,
            )
        )
    return entries


def record_transaction(product_id, transaction_type, quantity, reason=None,
                       reference_number=None, created_by="system"):
    """
    Catat transaksi manual. IN/OUT menggeser stok ledger sebesar quantity,
    ADJUSTMENT menetapkan stok ledger menjadi quantity.
    """
    current = current_ledger_stock(product_id)
    if transaction_type == TRANSACTION_IN:
        new_stock, dimension = current + quantity, DIMENSION_STOCK_AWAL
    elif transaction_type == TRANSACTION_OUT:
        new_stock, dimension = current - quantity, DIMENSION_KELUAR
    elif transaction_type == TRANSACTION_ADJUSTMENT:
        new_stock, dimension = quantity, DIMENSION_STOCK_AWAL
    else:
        raise ValueError(f"Unknown transaction type: {transaction_type}")

    return _append(
        product_id,
        transaction_type,
        quantity,
        current,
        new_stock,
        reason=reason,
        reference_number=reference_number,
        created_by=created_by,
        dimension=dimension,
    )
