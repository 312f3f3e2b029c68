import logging
import os
from urllib.parse import quote_plus
from typing import Optional

from dotenv import load_dotenv, dotenv_values

_ENV_LOADED = False
_DOTENV_VALUES = {}

DEV_ADMIN_USERNAME = "admin"
DEV_ADMIN_PASSWORD = "password123"


def load_env_once(dotenv_path: Optional[str] = None) -> None:
    """
    Load .env sekali saja dan simpan nilai mentah dari file .env di _DOTENV_VALUES.
    """
    global _ENV_LOADED, _DOTENV_VALUES
    if _ENV_LOADED:
        return
    path = dotenv_path or os.path.join(os.getcwd(), ".env")
    load_dotenv(path)
    _DOTENV_VALUES = dotenv_values(path)
    _ENV_LOADED = True


def _first_nonempty(*vals: Optional[str]) -> Optional[str]:
    for v in vals:
        if v:
            v = v.strip()
            if v:
                return v
    return None


def _get(key: str, default: Optional[str] = None) -> Optional[str]:
    # Prioritas: ENV -> .env mentah
    return _first_nonempty(os.environ.get(key), _DOTENV_VALUES.get(key)) or default


def _normalize_pg(url: Optional[str]) -> Optional[str]:
    if url and url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql://", 1)
    return url


def _mysql_from_parts() -> Optional[str]:
    """
    Rakit DSN MySQL dari MYSQL_USER, MYSQL_PASSWORD, MYSQL_HOST, MYSQL_PORT,
    MYSQL_DATABASE dan MYSQL_CHARSET.
    """
    user = _first_nonempty(_get("MYSQL_USER"), _get("MYSQL_USERNAME"))
    pwd = _get("MYSQL_PASSWORD", "")
    host = _get("MYSQL_HOST", "127.0.0.1")
    port = _get("MYSQL_PORT", "3306")
    db = _first_nonempty(_get("MYSQL_DB"), _get("MYSQL_DATABASE"))
    charset = _get("MYSQL_CHARSET", "utf8mb4")

    if not (user and db):
        return None

    return f"mysql+pymysql://{user}:{quote_plus(pwd or '')}@{host}:{port}/{db}?charset={charset}"


def resolve_database_uri() -> str:
    """
    Prioritas final:
      1) SQLALCHEMY_DATABASE_URI (ENV lalu .env)
      2) DATABASE_URL (ENV lalu .env)
      3) Rakit dari MYSQL_*
      4) Fallback sqlite:///instance/stock_tracker.db
    """
    url = _first_nonempty(_get("SQLALCHEMY_DATABASE_URI"), _get("DATABASE_URL"))
    if url:
        return _normalize_pg(url)

    url = _mysql_from_parts()
    if url:
        return url

    inst = os.path.abspath(os.path.join(os.getcwd(), "instance"))
    os.makedirs(inst, exist_ok=True)
    return f"sqlite:///{os.path.join(inst, 'stock_tracker.db')}"


def resolve_secret_key() -> str:
    return _get("SECRET_KEY", "dev-secret-key")  # jangan pakai di production


def resolve_int_setting(key: str, default: int) -> int:
    raw = _get(key)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        logging.warning("Nilai %s tidak valid (%r), memakai default %s", key, raw, default)
        return default


def resolve_archive_dir() -> Optional[str]:
    return _get("ROLLOVER_ARCHIVE_DIR")


def resolve_log_level() -> str:
    return (_get("LOG_LEVEL", "INFO") or "INFO").upper()


def resolve_admin_credentials():
    """
    Kembalikan (username, password_hash, password_plain).
    Salah satu dari hash atau password biasa akan terisi; jika keduanya kosong
    dipakai kredensial development.
    """
    username = _get("STOCK_ADMIN_USERNAME", DEV_ADMIN_USERNAME)
    password_hash = _get("STOCK_ADMIN_PASSWORD_HASH")
    password = _get("STOCK_ADMIN_PASSWORD")
    if not password_hash and not password:
        password = DEV_ADMIN_PASSWORD  # jangan pakai di production
    return username, password_hash, password
