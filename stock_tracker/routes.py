from flask import Blueprint, current_app, jsonify, make_response, request, session

from stock_tracker import services
from stock_tracker.auth import current_username, get_verifier, login_required
from stock_tracker.export import XLSX_MIMETYPE, export_filename, stock_csv, stock_xlsx
from stock_tracker.forms import (
    DaysToOrderForm,
    LoginForm,
    ProductForm,
    StockTransactionForm,
    StockUpdateForm,
    first_error,
    json_formdata,
)
from stock_tracker.results import UNAUTHORIZED, VALIDATION_ERROR, Result
from stock_tracker.rollover import perform_rollover
from stock_tracker.time_utils import local_now, parse_date

bp = Blueprint("api", __name__, url_prefix="/api")


def _respond(result, message=None):
    if result.ok:
        body = {"success": True, "data": result.data}
        if message or result.message:
            body["message"] = message or result.message
        return jsonify(body), 200

    body = {"success": False, "error": result.error, "error_kind": result.kind}
    if result.details:
        body["details"] = result.details
    return jsonify(body), result.status


def _invalid(message):
    return _respond(Result.failure(VALIDATION_ERROR, message))


def _actor():
    return current_username() or "system"


def _parse_int_param(value):
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


# ==================== AUTH ====================


@bp.route("/login", methods=["POST"])
def login():
    form = LoginForm(formdata=json_formdata())
    if not form.validate():
        return _invalid(first_error(form))

    if not get_verifier().verify(form.username.data, form.password.data):
        return _respond(Result.failure(UNAUTHORIZED, "Invalid username or password"))

    session.clear()
    session["username"] = form.username.data
    return _respond(Result.success({"username": form.username.data}), "Login successful")


@bp.route("/logout", methods=["POST"])
def logout():
    session.clear()
    return _respond(Result.success(None), "Logged out")


# ==================== PRODUK ====================


@bp.route("/stock", methods=["GET"])
@login_required
def get_stock():
    return _respond(services.list_stock())


@bp.route("/products", methods=["GET"])
@login_required
def get_products():
    return _respond(services.list_stock())


@bp.route("/products/<int:product_id>", methods=["GET"])
@login_required
def get_product(product_id):
    return _respond(services.get_product(product_id))


@bp.route("/products", methods=["POST"])
@login_required
def create_product():
    form = ProductForm(formdata=json_formdata())
    if not form.validate():
        return _invalid(first_error(form))
    result = services.create_product(form.name.data, created_by=_actor())
    return _respond(result, "Product created successfully")


# ==================== STOK ====================


@bp.route("/stock/update", methods=["PUT"])
@login_required
def update_stock():
    form = StockUpdateForm(formdata=json_formdata())
    if not form.validate():
        return _invalid(first_error(form))
    payload = {
        "id": form.id.data,
        "name": form.name.data,
        "stock_awal": form.stock_awal.data,
        "keluar_manual": form.keluar_manual.data,
        "keluar_pos": form.keluar_pos.data,
        "days_to_order": form.days_to_order.data,
        "version": form.version.data,
    }
    result = services.update_stock(payload, created_by=_actor())
    return _respond(result, "Stock updated successfully")


@bp.route("/stock/update-days", methods=["PUT"])
@login_required
def update_days():
    form = DaysToOrderForm(formdata=json_formdata())
    if not form.validate():
        return _invalid(first_error(form))
    return _respond(services.update_days_for_all(form.days_to_order.data))


@bp.route("/stock/rollover", methods=["POST"])
@login_required
def rollover():
    result = perform_rollover(executed_by=_actor())
    return _respond(result, "Rollover completed successfully")


@bp.route("/stock/daily-rollover", methods=["GET"])
@login_required
def daily_rollover_status():
    return _respond(services.rollover_status())


@bp.route("/stock/export", methods=["GET"])
@login_required
def export_stock():
    export_format = (request.args.get("format") or "csv").lower()
    if export_format not in ("csv", "xlsx"):
        return _invalid("format must be csv or xlsx")

    result = services.list_stock()
    if not result.ok:
        return _respond(result)

    filename = export_filename(local_now(), export_format)
    if export_format == "xlsx":
        response = make_response(stock_xlsx(result.data))
        response.headers["Content-Type"] = XLSX_MIMETYPE
    else:
        response = make_response(stock_csv(result.data))
        response.headers["Content-Type"] = "text/csv; charset=utf-8"
    response.headers["Content-Disposition"] = f"attachment; filename={filename}"
    return response


# ==================== TRANSAKSI ====================


@bp.route("/stock/transactions", methods=["GET"])
@login_required
def get_transactions():
    args = request.args
    page = _parse_int_param(args.get("page")) if args.get("page") else 1
    limit = (
        _parse_int_param(args.get("limit"))
        if args.get("limit")
        else current_app.config["TRANSACTIONS_DEFAULT_LIMIT"]
    )
    if page is None or limit is None:
        return _invalid("page and limit must be integers")

    product_id = None
    if args.get("product_id"):
        product_id = _parse_int_param(args.get("product_id"))
        if product_id is None:
            return _invalid("product_id must be an integer")

    try:
        start_date = parse_date(args.get("start_date"))
        end_date = parse_date(args.get("end_date"))
    except ValueError:
        return _invalid("Dates must use the YYYY-MM-DD format")

    filters = {
        "product_id": product_id,
        "transaction_type": (args.get("transaction_type") or "").strip() or None,
        "start_date": start_date,
        "end_date": end_date,
    }
    result = services.list_transactions(
        page,
        limit,
        filters,
        default_limit=current_app.config["TRANSACTIONS_DEFAULT_LIMIT"],
        max_limit=current_app.config["TRANSACTIONS_MAX_LIMIT"],
    )
    return _respond(result)


@bp.route("/stock/transaction", methods=["POST"])
@login_required
def create_transaction():
    form = StockTransactionForm(formdata=json_formdata())
    if not form.validate():
        return _invalid(first_error(form))
    payload = {
        "product_id": form.product_id.data,
        "transaction_type": form.transaction_type.data,
        "quantity": form.quantity.data,
        "reason": form.reason.data,
        "reference_number": form.reference_number.data,
        "created_by": form.created_by.data,
    }
    result = services.create_transaction(payload, created_by=_actor())
    return _respond(result, "Transaction created successfully")
