from stock_tracker import db
from stock_tracker.time_utils import local_now, isoformat_or_none

TRANSACTION_IN = "IN"
TRANSACTION_OUT = "OUT"
TRANSACTION_ADJUSTMENT = "ADJUSTMENT"
TRANSACTION_TYPES = (TRANSACTION_IN, TRANSACTION_OUT, TRANSACTION_ADJUSTMENT)

DIMENSION_STOCK_AWAL = "stock_awal"
DIMENSION_KELUAR = "keluar"


class Product(db.Model):
    __tablename__ = "products"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), unique=True, nullable=False, index=True)
    stock_awal = db.Column(db.Integer, nullable=False, default=0)
    keluar_manual = db.Column(db.Integer, nullable=False, default=0)
    keluar_pos = db.Column(db.Integer, nullable=False, default=0)
    stock_akhir = db.Column(db.Integer, nullable=False, default=0)  # boleh negatif (kekurangan)
    qty_di_pesan = db.Column(db.Integer, nullable=False, default=0)
    selisih = db.Column(db.Integer, nullable=False, default=0)
    days_to_order = db.Column(db.Integer, nullable=False, default=3)
    version = db.Column(db.Integer, nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=local_now)
    updated_at = db.Column(db.DateTime, nullable=False, default=local_now, onupdate=local_now)

    __mapper_args__ = {"version_id_col": version}

    @property
    def keluar(self):
        return (self.keluar_manual or 0) + (self.keluar_pos or 0)

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "stock_awal": self.stock_awal,
            "keluar_manual": self.keluar_manual,
            "keluar_pos": self.keluar_pos,
            "keluar": self.keluar,
            "stock_akhir": self.stock_akhir,
            "qty_di_pesan": self.qty_di_pesan,
            "selisih": self.selisih,
            "days_to_order": self.days_to_order,
            "version": self.version,
            "created_at": isoformat_or_none(self.created_at),
            "updated_at": isoformat_or_none(self.updated_at),
        }

    def __repr__(self):
        return f"<Product {self.name}>"


class StockTransaction(db.Model):
    __tablename__ = "stock_transactions"

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)
    transaction_type = db.Column(
        db.Enum(*TRANSACTION_TYPES, name="stock_transaction_type"), nullable=False
    )
    quantity = db.Column(db.Integer, nullable=False)
    previous_stock = db.Column(db.Integer, nullable=False, default=0)
    new_stock = db.Column(db.Integer, nullable=False, default=0)
    # running total yang direkonsiliasi oleh baris ADJUSTMENT
    dimension = db.Column(db.String(20), nullable=True)
    reason = db.Column(db.String(500), nullable=True)
    reference_number = db.Column(db.String(100), nullable=True)
    created_by = db.Column(db.String(100), nullable=False, default="system")
    created_at = db.Column(db.DateTime, nullable=False, default=local_now, index=True)

    product = db.relationship("Product", backref=db.backref("transactions", lazy="dynamic"))

    def to_dict(self):
        return {
            "id": self.id,
            "product_id": self.product_id,
            "product_name": self.product.name if self.product else None,
            "transaction_type": self.transaction_type,
            "quantity": self.quantity,
            "previous_stock": self.previous_stock,
            "new_stock": self.new_stock,
            "dimension": self.dimension,
            "reason": self.reason,
            "reference_number": self.reference_number,
            "created_by": self.created_by,
            "created_at": isoformat_or_none(self.created_at),
        }

    def __repr__(self):
        return f"<StockTransaction {self.transaction_type} product={self.product_id} qty={self.quantity}>"


class StockRollover(db.Model):
    __tablename__ = "stock_rollovers"

    id = db.Column(db.Integer, primary_key=True)
    executed_at = db.Column(db.DateTime, nullable=False, default=local_now, index=True)
    executed_by = db.Column(db.String(100), nullable=False, default="system")
    product_count = db.Column(db.Integer, nullable=False, default=0)
    archive_file = db.Column(db.String(255), nullable=True)

    def to_dict(self):
        return {
            "id": self.id,
            "executed_at": isoformat_or_none(self.executed_at),
            "executed_by": self.executed_by,
            "product_count": self.product_count,
            "archive_file": self.archive_file,
        }

    def __repr__(self):
        return f"<StockRollover {self.executed_at} ({self.product_count} produk)>"
