import logging
from functools import wraps
from typing import Any, Dict, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError

from stock_tracker import db

VALIDATION_ERROR = "validation_error"
NOT_FOUND = "not_found"
CONFLICT = "conflict"
STORE_ERROR = "store_error"
UNAUTHORIZED = "unauthorized"

HTTP_STATUS = {
    VALIDATION_ERROR: 400,
    NOT_FOUND: 404,
    # nama duplikat dilaporkan sebagai 400 oleh API
    CONFLICT: 400,
    STORE_ERROR: 500,
    UNAUTHORIZED: 401,
}


class ServiceError(Exception):
    kind = STORE_ERROR

    def __init__(self, message: str, details: Optional[Dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class ValidationError(ServiceError):
    kind = VALIDATION_ERROR

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message, {"field": field} if field else None)
        self.field = field


class NotFoundError(ServiceError):
    kind = NOT_FOUND

    def __init__(self, resource: str, identifier: Any):
        super().__init__(f"{resource} not found", {"resource": resource, "identifier": str(identifier)})


class ConflictError(ServiceError):
    kind = CONFLICT


class StoreError(ServiceError):
    kind = STORE_ERROR


class Result:
    """Hasil operasi service: sukses dengan data, atau gagal dengan jenis error."""

    __slots__ = ("ok", "data", "message", "kind", "error", "details")

    def __init__(self, ok, data=None, message=None, kind=None, error=None, details=None):
        self.ok = ok
        self.data = data
        self.message = message
        self.kind = kind
        self.error = error
        self.details = details or {}

    @classmethod
    def success(cls, data=None, message=None):
        return cls(True, data=data, message=message)

    @classmethod
    def failure(cls, kind, error, details=None):
        return cls(False, kind=kind, error=error, details=details)

    @property
    def status(self):
        return 200 if self.ok else HTTP_STATUS.get(self.kind, 500)

    def __repr__(self):
        if self.ok:
            return f"<Result ok data={type(self.data).__name__}>"
        return f"<Result {self.kind}: {self.error}>"


def service_operation(operation: str, store_message: str):
    """
    Bungkus fungsi service supaya selalu mengembalikan Result.

    ServiceError diteruskan apa adanya sebagai Result gagal; error database
    di-rollback, dicatat lengkap ke log, lalu dilaporkan dengan pesan generik.
    """

    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            try:
                data = func(*args, **kwargs)
            except ServiceError as exc:
                db.session.rollback()
                if exc.kind == STORE_ERROR:
                    logging.error("Operasi %s gagal: %s %s", operation, exc.message, exc.details)
                else:
                    logging.info("Operasi %s ditolak (%s): %s", operation, exc.kind, exc.message)
                return Result.failure(exc.kind, exc.message, exc.details)
            except StaleDataError:
                db.session.rollback()
                logging.warning("Operasi %s bentrok dengan perubahan lain", operation)
                return Result.failure(CONFLICT, "Product was modified by another request")
            except SQLAlchemyError:
                db.session.rollback()
                logging.exception("Operasi %s gagal di database", operation)
                return Result.failure(STORE_ERROR, store_message)
            if isinstance(data, Result):
                return data
            return Result.success(data)

        return wrapper

    return decorator
