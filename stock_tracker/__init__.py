import logging

from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate


from .config_db import (
    load_env_once,
    resolve_database_uri,
    resolve_secret_key,
    resolve_int_setting,
    resolve_archive_dir,
    resolve_log_level,
)

db = SQLAlchemy()
migrate = Migrate()


def create_app(test_config=None, verifier=None):
    app = Flask(__name__)

    # Load .env dan resolve DSN/SECRET
    load_env_once()
    app.config["SQLALCHEMY_DATABASE_URI"] = resolve_database_uri()
    app.config["SQLALCHEMY_TRACK_MODIFICATIONS"] = False
    app.config["SECRET_KEY"] = resolve_secret_key()
    app.config["TRANSACTIONS_DEFAULT_LIMIT"] = resolve_int_setting("TRANSACTIONS_DEFAULT_LIMIT", 50)
    app.config["TRANSACTIONS_MAX_LIMIT"] = resolve_int_setting("TRANSACTIONS_MAX_LIMIT", 200)
    app.config["ROLLOVER_ARCHIVE_DIR"] = resolve_archive_dir()
    # form JSON API tidak memakai token CSRF
    app.config["WTF_CSRF_ENABLED"] = False
    if test_config:
        app.config.update(test_config)

    logging.getLogger().setLevel(resolve_log_level())

    db.init_app(app)
    migrate.init_app(app, db)

    from .auth import init_auth

    init_auth(app, verifier)

    from .routes import bp

    app.register_blueprint(bp)

    from .cli import stock_cli

    app.cli.add_command(stock_cli)

    @app.shell_context_processor
    def _ctx():
        # supaya model langsung tersedia di flask shell
        from . import models

        return {
            "db": db,
            "Product": models.Product,
            "StockTransaction": models.StockTransaction,
            "StockRollover": models.StockRollover,
        }

    return app


def dispose_store(app):
    """Tutup semua koneksi pool saat proses berhenti."""
    with app.app_context():
        db.session.remove()
        db.engine.dispose()
