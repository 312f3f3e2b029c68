"""
Pergantian periode stok (rollover).

Seluruh batch berjalan dalam satu transaksi database: snapshot semua produk
diambil lebih dulu, lalu setiap produk dipindahkan ke periode baru dan selisih
ledger-nya dicatat. Jika satu langkah gagal, semua perubahan di-rollback dan
error melaporkan tahap yang gagal.
"""
import logging
import os

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from stock_tracker import db
from stock_tracker.calculator import rollover_values
from stock_tracker.export import write_archive
from stock_tracker.ledger import ROLLOVER_REASONS, ledger_totals_by_product, record_adjustments
from stock_tracker.models import Product, StockRollover
from stock_tracker.results import StoreError, service_operation
from stock_tracker.time_utils import local_now

STAGE_SNAPSHOT = "snapshot"
STAGE_ARCHIVE = "archive"
STAGE_UPDATE = "update"
STAGE_COMMIT = "commit"


def _fail(stage, archive_path=None):
    db.session.rollback()
    if archive_path and os.path.exists(archive_path):
        os.remove(archive_path)
    logging.exception("Rollover gagal pada tahap %s", stage)
    raise StoreError(
        f"Failed to perform rollover ({stage} stage)",
        {"stage": stage},
    )


def apply_rollover(product, totals, executed_by="system"):
    """Pindahkan satu produk ke periode baru; days_to_order tidak berubah."""
    # stock_akhir dan qty_di_pesan harus dibaca sebelum baris ditulis
    values = rollover_values(product.stock_akhir, product.qty_di_pesan)
    for field, value in values.items():
        setattr(product, field, value)
    return record_adjustments(
        product.id,
        values["stock_awal"],
        values["keluar_manual"] + values["keluar_pos"],
        totals=totals,
        created_by=executed_by,
        reasons=ROLLOVER_REASONS,
    )


@service_operation("rollover", "Failed to perform rollover")
def perform_rollover(executed_by="system", archive_dir=None):
    started_at = local_now()
    archive_path = None
    if archive_dir is None:
        archive_dir = current_app.config.get("ROLLOVER_ARCHIVE_DIR")

    try:
        products = Product.query.order_by(Product.name.asc()).with_for_update().all()
        snapshot = [product.to_dict() for product in products]
        totals = ledger_totals_by_product()
    except SQLAlchemyError:
        _fail(STAGE_SNAPSHOT)

    if archive_dir:
        try:
            archive_path = write_archive(snapshot, archive_dir, started_at)
        except (OSError, ValueError):
            _fail(STAGE_ARCHIVE)

    try:
        for product in products:
            apply_rollover(product, totals.get(product.id, (0, 0)), executed_by=executed_by)
        db.session.add(
            StockRollover(
                executed_at=started_at,
                executed_by=executed_by or "system",
                product_count=len(products),
                archive_file=os.path.basename(archive_path) if archive_path else None,
            )
        )
        db.session.flush()
    except SQLAlchemyError:
        _fail(STAGE_UPDATE, archive_path)

    try:
        db.session.commit()
    except SQLAlchemyError:
        _fail(STAGE_COMMIT, archive_path)

    logging.info("Rollover selesai untuk %s produk oleh %s", len(products), executed_by)
    updated = [product.to_dict() for product in Product.query.order_by(Product.name.asc()).all()]
    return {"exportedData": snapshot, "updatedData": updated}
