from flask import request
from flask_wtf import FlaskForm
from werkzeug.datastructures import ImmutableMultiDict
from wtforms import IntegerField, PasswordField, StringField
from wtforms.validators import AnyOf, DataRequired, InputRequired, Length, NumberRange, Optional

from stock_tracker.calculator import DAYS_TO_ORDER_CHOICES
from stock_tracker.models import TRANSACTION_TYPES

DAYS_TO_ORDER_MESSAGE = "days_to_order must be one of 0, 1, 2, 3"


def json_formdata():
    """
    Ubah body JSON menjadi formdata untuk WTForms. Nilai null dibuang supaya
    diperlakukan sebagai field kosong; angka dikirim sebagai string.
    """
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        payload = {}
    cleaned = {}
    for key, value in payload.items():
        if value is None or isinstance(value, (dict, list)):
            continue
        if isinstance(value, bool):
            value = "true" if value else "false"
        cleaned[key] = str(value)
    return ImmutableMultiDict(cleaned)


def first_error(form):
    for messages in form.errors.values():
        if messages:
            return messages[0]
    return "Invalid data format"


class LoginForm(FlaskForm):
    username = StringField("username", validators=[DataRequired("Username and password are required")])
    password = PasswordField("password", validators=[DataRequired("Username and password are required")])


class ProductForm(FlaskForm):
    name = StringField(
        "name",
        validators=[
            DataRequired("Product name is required"),
            Length(max=255, message="Product name too long"),
        ],
    )


class StockUpdateForm(FlaskForm):
    id = IntegerField(
        "id",
        validators=[
            DataRequired("Missing required fields: id and name"),
            NumberRange(min=1, message="Product ID must be a positive number"),
        ],
    )
    name = StringField(
        "name",
        validators=[
            DataRequired("Missing required fields: id and name"),
            Length(max=255, message="Product name too long"),
        ],
    )
    stock_awal = IntegerField(
        "stock_awal", validators=[Optional(), NumberRange(min=0, message="Stock awal cannot be negative")]
    )
    keluar_manual = IntegerField(
        "keluar_manual", validators=[Optional(), NumberRange(min=0, message="Keluar manual cannot be negative")]
    )
    keluar_pos = IntegerField(
        "keluar_pos", validators=[Optional(), NumberRange(min=0, message="Keluar POS cannot be negative")]
    )
    days_to_order = IntegerField(
        "days_to_order", validators=[Optional(), AnyOf(DAYS_TO_ORDER_CHOICES, message=DAYS_TO_ORDER_MESSAGE)]
    )
    version = IntegerField("version", validators=[Optional()])


class DaysToOrderForm(FlaskForm):
    days_to_order = IntegerField(
        "days_to_order",
        validators=[
            InputRequired("Missing required field: days_to_order"),
            AnyOf(DAYS_TO_ORDER_CHOICES, message=DAYS_TO_ORDER_MESSAGE),
        ],
    )


class StockTransactionForm(FlaskForm):
    product_id = IntegerField(
        "product_id",
        validators=[
            DataRequired("Product ID, transaction type, and quantity are required"),
            NumberRange(min=1, message="Product ID must be a positive number"),
        ],
    )
    transaction_type = StringField(
        "transaction_type",
        validators=[
            DataRequired("Product ID, transaction type, and quantity are required"),
            AnyOf(TRANSACTION_TYPES, message="Transaction type must be IN, OUT, or ADJUSTMENT"),
        ],
    )
    quantity = IntegerField(
        "quantity",
        validators=[
            DataRequired("Product ID, transaction type, and quantity are required"),
            NumberRange(min=1, message="Quantity must be positive"),
        ],
    )
    reason = StringField("reason", validators=[Optional(), Length(max=500, message="Reason too long")])
    reference_number = StringField("reference_number", validators=[Optional(), Length(max=100)])
    created_by = StringField(
        "created_by", validators=[Optional(), Length(max=100, message="Created by too long")]
    )
