from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .accounting.controller import register as register_accounting
from .accounts.controller import register as register_accounts
from .activity.controller import register as register_activity
from .branches.controller import register as register_branches
from .classes.controller import register as register_classes
from .common.http import failure
from .container import Container, build_container
from .database.bootstrap import apply_schema, apply_seed_sql, ensure_demo_users, list_tables
from .fees.controller import register as register_fees
from .finance.controller import register as register_finance
from .health.controller import register as register_health
from .payroll.controller import register as register_payroll
from .receipts.controller import register as register_receipts
from .reports.controller import register as register_reports
from .staff.controller import register as register_staff
from .students.controller import register as register_students
from .textbooks.controller import register as register_textbooks
from .transport.controller import register as register_transport
from .users.controller import register as register_users

logger = logging.getLogger(__name__)

DATABASE_DIR = Path(__file__).resolve().parents[3] / "database"


def _bootstrap_database(settings, db_config: dict) -> None:
    if bool(getattr(settings, "AUTO_INIT_DB", False)):
        apply_schema(db_config, schema_path=DATABASE_DIR / "schema.sql")
        logger.info("Schema ready (tables=%d)", len(list_tables(db_config)))
    if bool(getattr(settings, "AUTO_SEED_DB", False)):
        apply_seed_sql(db_config, seed_path=DATABASE_DIR / "seed.sql")
        ensure_demo_users(db_config)
        logger.info("Demo seed ready")


def create_app(container: Optional[Container] = None) -> Flask:
    """Build the API. Passing a container skips database bootstrap (tests wire in-memory repositories)."""
    load_dotenv(override=False)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    logging.basicConfig(
        level=getattr(settings, "LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = Flask(__name__)
    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    app.config["DEFAULT_PAGE_LIMIT"] = int(getattr(settings, "DEFAULT_PAGE_LIMIT", 10))
    app.config["MAX_PAGE_LIMIT"] = int(getattr(settings, "MAX_PAGE_LIMIT", 100))
    app.json.sort_keys = False

    if container is None:
        db_config = getattr(settings, "DB_CONFIG")
        logger.info(
            "settings=%s db=%s@%s:%s/%s",
            settings_module,
            db_config.get("user"),
            db_config.get("host"),
            db_config.get("port", 3306),
            db_config.get("database"),
        )
        _bootstrap_database(settings, db_config)
        container = build_container(db_config=db_config)

    app.extensions["container"] = container

    register_health(app, settings_module.rsplit(".", 1)[-1])
    register_users(app, container)
    register_branches(app, container)
    register_classes(app, container)
    register_students(app, container)
    register_staff(app, container)
    register_transport(app, container)
    register_fees(app, container)
    register_receipts(app, container)
    register_payroll(app, container)
    register_finance(app, container)
    register_accounts(app, container)
    register_textbooks(app, container)
    register_activity(app, container)
    register_accounting(app, container)
    register_reports(app, container)

    @app.errorhandler(404)
    def not_found(_):
        return failure("Route not found", status=404)

    @app.errorhandler(405)
    def method_not_allowed(_):
        return failure("Method not allowed", status=405)

    return app
