import logging
import math

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import joinedload

from stock_tracker import db
from stock_tracker.calculator import (
    DAYS_TO_ORDER_CHOICES,
    DEFAULT_DAYS_TO_ORDER,
    calculate_stock,
    resolve_days_to_order,
)
from stock_tracker.ledger import record_adjustments, record_product_created, record_transaction
from stock_tracker.models import Product, StockRollover, StockTransaction, TRANSACTION_TYPES
from stock_tracker.results import (
    ConflictError,
    NotFoundError,
    ValidationError,
    service_operation,
)
from stock_tracker.time_utils import local_today, next_day_start, day_start

DEFAULT_TRANSACTION_LIMIT = 50
MAX_TRANSACTION_LIMIT = 200


def _load_product(product_id, lock=False):
    query = Product.query.filter(Product.id == product_id)
    if lock:
        query = query.with_for_update()
    product = query.first()
    if not product:
        raise NotFoundError("Product", product_id)
    return product


def _as_integer(value, field):
    # 9.7 tidak boleh diam-diam menjadi 9
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be an integer", field=field)
    if not isinstance(value, str) and number != value:
        raise ValidationError(f"{field} must be an integer", field=field)
    return number


def _as_non_negative(payload, field):
    value = payload.get(field)
    if value is None or value == "":
        return 0
    value = _as_integer(value, field)
    if value < 0:
        raise ValidationError(f"{field} cannot be negative", field=field)
    return value


def _as_days_to_order(value):
    if value is None or value == "":
        return None
    try:
        number = int(value)
    except (TypeError, ValueError):
        number = None
    if not isinstance(value, str) and number != value:
        number = None
    if number not in DAYS_TO_ORDER_CHOICES:
        raise ValidationError("days_to_order must be one of 0, 1, 2, 3", field="days_to_order")
    return number


def _apply_calculation(product):
    values = calculate_stock(
        product.stock_awal, product.keluar_manual, product.keluar_pos, product.days_to_order
    )
    product.stock_akhir = values["stock_akhir"]
    product.qty_di_pesan = values["qty_di_pesan"]
    product.selisih = values["selisih"]
    return values


# ==================== PRODUK ====================


@service_operation("list_stock", "Failed to fetch current stock")
def list_stock():
    return [product.to_dict() for product in Product.query.order_by(Product.name.asc()).all()]


@service_operation("get_product", "Failed to fetch product")
def get_product(product_id):
    return _load_product(product_id).to_dict()


@service_operation("create_product", "Failed to create product")
def create_product(name, created_by="system"):
    name = (name or "").strip()
    if not name:
        raise ValidationError("Product name is required", field="name")

    # nama dibandingkan persis (case-sensitive)
    if Product.query.filter(Product.name == name).first():
        raise ConflictError("Product with this name already exists", {"name": name})

    product = Product(
        name=name,
        stock_awal=0,
        keluar_manual=0,
        keluar_pos=0,
        days_to_order=DEFAULT_DAYS_TO_ORDER,
    )
    _apply_calculation(product)
    db.session.add(product)
    try:
        db.session.flush()
    except IntegrityError:
        # request lain menyimpan nama yang sama setelah pengecekan di atas
        db.session.rollback()
        raise ConflictError("Product with this name already exists", {"name": name})
    record_product_created(product, created_by=created_by)
    db.session.commit()
    logging.info("Produk %s dibuat (id=%s)", product.name, product.id)
    return product.to_dict()


@service_operation("update_stock", "Failed to update stock")
def update_stock(payload, created_by="system"):
    """
    Simpan nilai stok hasil edit satu produk.

    Nilai turunan (stock_akhir, qty_di_pesan, selisih) selalu dihitung ulang;
    nilai turunan yang dikirim klien diabaikan. Selisih terhadap total ledger
    dicatat sebagai ADJUSTMENT dalam transaksi yang sama.
    """
    product_id = payload.get("id")
    name = (payload.get("name") or "").strip()
    if not product_id or not name:
        raise ValidationError("Missing required fields: id and name")

    stock_awal = _as_non_negative(payload, "stock_awal")
    keluar_manual = _as_non_negative(payload, "keluar_manual")
    keluar_pos = _as_non_negative(payload, "keluar_pos")

    requested_days = _as_days_to_order(payload.get("days_to_order"))

    product = _load_product(product_id, lock=True)

    expected_version = payload.get("version")
    if expected_version is not None and str(expected_version) != str(product.version):
        raise ConflictError(
            "Product was modified by another request",
            {"expected_version": expected_version, "current_version": product.version},
        )

    if name != product.name:
        clash = Product.query.filter(Product.name == name, Product.id != product.id).first()
        if clash:
            raise ConflictError("Product with this name already exists", {"name": name})

    product.name = name
    product.stock_awal = stock_awal
    product.keluar_manual = keluar_manual
    product.keluar_pos = keluar_pos
    product.days_to_order = resolve_days_to_order(requested_days, product.days_to_order)
    values = _apply_calculation(product)
    try:
        db.session.flush()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("Product with this name already exists", {"name": name})

    record_adjustments(product.id, stock_awal, values["total_keluar"], created_by=created_by)
    db.session.commit()
    return product.to_dict()


@service_operation("update_days_for_all", "Failed to update days_to_order")
def update_days_for_all(days_to_order):
    days_to_order = _as_days_to_order(days_to_order)
    if days_to_order is None:
        raise ValidationError("Missing required field: days_to_order", field="days_to_order")

    products = Product.query.order_by(Product.name.asc()).with_for_update().all()
    for product in products:
        product.days_to_order = days_to_order
        _apply_calculation(product)
    db.session.commit()
    logging.info("days_to_order=%s diterapkan ke %s produk", days_to_order, len(products))
    return [product.to_dict() for product in products]


# ==================== TRANSAKSI ====================


def _pagination_params(page, limit, default_limit, max_limit):
    page = 1 if page is None else page
    limit = default_limit if limit is None else limit
    if page < 1:
        raise ValidationError("page must be 1 or greater", field="page")
    if limit < 1 or limit > max_limit:
        raise ValidationError(f"limit must be between 1 and {max_limit}", field="limit")
    return page, limit


@service_operation("list_transactions", "Failed to fetch stock transactions")
def list_transactions(page=1, limit=None, filters=None,
                      default_limit=DEFAULT_TRANSACTION_LIMIT, max_limit=MAX_TRANSACTION_LIMIT):
    filters = filters or {}
    page, limit = _pagination_params(page, limit, default_limit, max_limit)

    query = StockTransaction.query.options(joinedload(StockTransaction.product))
    if filters.get("product_id"):
        query = query.filter(StockTransaction.product_id == filters["product_id"])
    transaction_type = filters.get("transaction_type")
    if transaction_type:
        if transaction_type not in TRANSACTION_TYPES:
            raise ValidationError(
                "Transaction type must be IN, OUT, or ADJUSTMENT", field="transaction_type"
            )
        query = query.filter(StockTransaction.transaction_type == transaction_type)
    start_date = filters.get("start_date")
    end_date = filters.get("end_date")
    if start_date and end_date and start_date > end_date:
        raise ValidationError("start_date must not be after end_date", field="start_date")
    if start_date:
        query = query.filter(StockTransaction.created_at >= day_start(start_date))
    if end_date:
        query = query.filter(StockTransaction.created_at < next_day_start(end_date))

    pagination = query.order_by(
        StockTransaction.created_at.desc(), StockTransaction.id.desc()
    ).paginate(page=page, per_page=limit, error_out=False)

    total = pagination.total or 0
    total_pages = math.ceil(total / limit)
    return {
        "transactions": [entry.to_dict() for entry in pagination.items],
        "pagination": {
            "current_page": page,
            "total_pages": total_pages,
            "total_items": total,
            "items_per_page": limit,
            "has_next_page": page < total_pages,
            "has_prev_page": page > 1,
        },
    }


@service_operation("create_transaction", "Failed to create stock transaction")
def create_transaction(payload, created_by="system"):
    product_id = payload.get("product_id")
    transaction_type = payload.get("transaction_type")
    quantity = payload.get("quantity")
    if not product_id or not transaction_type or not quantity:
        raise ValidationError("Product ID, transaction type, and quantity are required")
    if transaction_type not in TRANSACTION_TYPES:
        raise ValidationError("Invalid transaction type", field="transaction_type")
    quantity = _as_integer(quantity, "quantity")
    if quantity <= 0:
        raise ValidationError("Quantity must be positive", field="quantity")

    # kunci baris produk supaya stok ledger tidak dihitung ganda oleh request paralel
    product = _load_product(product_id, lock=True)
    entry = record_transaction(
        product.id,
        transaction_type,
        quantity,
        reason=payload.get("reason") or None,
        reference_number=payload.get("reference_number") or None,
        created_by=payload.get("created_by") or created_by,
    )
    db.session.commit()
    logging.info(
        "Transaksi %s %s untuk produk %s dicatat", transaction_type, quantity, product.name
    )
    return entry.to_dict()


# ==================== ROLLOVER STATUS ====================


@service_operation("rollover_status", "Failed to fetch rollover status")
def rollover_status():
    last = StockRollover.query.order_by(
        StockRollover.executed_at.desc(), StockRollover.id.desc()
    ).first()
    today = local_today()
    return {
        "today": today.isoformat(),
        "rolled_over_today": bool(last and last.executed_at.date() == today),
        "last_rollover": last.to_dict() if last else None,
        "product_count": db.session.query(func.count(Product.id)).scalar() or 0,
        "rollover_count": db.session.query(func.count(StockRollover.id)).scalar() or 0,
    }
