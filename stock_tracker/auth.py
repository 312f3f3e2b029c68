from functools import wraps

from flask import current_app, jsonify, session
from werkzeug.security import check_password_hash, generate_password_hash

from stock_tracker.config_db import resolve_admin_credentials
from stock_tracker.results import UNAUTHORIZED


class CredentialVerifier:
    """Kontrak verifikasi kredensial; ganti dengan identity provider di production."""

    def verify(self, username, password):
        raise NotImplementedError


class StaticCredentialVerifier(CredentialVerifier):
    def __init__(self, users=None):
        # {username: password_hash}
        self.users = dict(users or {})

    @classmethod
    def from_config(cls):
        username, password_hash, password = resolve_admin_credentials()
        if not password_hash:
            password_hash = generate_password_hash(password, method="pbkdf2:sha256")
        return cls({username: password_hash})

    def verify(self, username, password):
        if not username or not password:
            return False
        password_hash = self.users.get(username)
        if not password_hash:
            return False
        return check_password_hash(password_hash, password)


def init_auth(app, verifier=None):
    app.extensions["credential_verifier"] = verifier or StaticCredentialVerifier.from_config()


def get_verifier():
    return current_app.extensions["credential_verifier"]


def current_username():
    return session.get("username")


def login_required(view_func):
    @wraps(view_func)
    def wrapped_view(*args, **kwargs):
        if not current_username():
            return (
                jsonify(
                    {
                        "success": False,
                        "error": "Authentication required",
                        "error_kind": UNAUTHORIZED,
                    }
                ),
                401,
            )
        return view_func(*args, **kwargs)

    return wrapped_view
