from __future__ import annotations

import importlib
import logging
from typing import Optional

from dotenv import load_dotenv
from flask import Flask, jsonify

from config import get_settings_module

from .common.logging_utils import configure_logging
from .container import Container, build_container_from_settings
from .core.enums import StoreBackend
from .core.exceptions import StoreUnavailable
from .database.bootstrap import SQL_DIR, apply_schema, apply_seed_sql, list_tables
from .employees.controller import register as register_employees
from .intake.controller import register as register_intake
from .reports.controller import register as register_reports

logger = logging.getLogger(__name__)



def create_app(container: Optional[Container] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))

    if container is None:
        db_config = getattr(settings, "DB_CONFIG")
        backend = StoreBackend(getattr(settings, "STORE_BACKEND", StoreBackend.MYSQL.value))
        logger.info(
            "settings=%s store=%s db=%s@%s:%s/%s",
            settings_module,
            backend.value,
            db_config.get("user"),
            db_config.get("host"),
            db_config.get("port", 3306),
            db_config.get("database"),
        )

        if backend == StoreBackend.MYSQL and bool(getattr(settings, "AUTO_INIT_DB", False)):
            apply_schema(db_config, schema_path=SQL_DIR / "schema.sql")
            logger.info("Schema ready (tables=%d)", len(list_tables(db_config)))
        if backend == StoreBackend.MYSQL and bool(getattr(settings, "AUTO_SEED_DB", False)):
            apply_seed_sql(db_config, seed_path=SQL_DIR / "seed.sql")

        container = build_container_from_settings(settings)

    app.extensions["timeclock"] = container

    @app.errorhandler(StoreUnavailable)
    def store_unavailable(e):
        logger.warning("Store unavailable: %s", e)
        return jsonify({"success": False, "message": "Service temporarily unavailable, please try again"}), 503

    register_intake(app, container)
    register_employees(app, container)
    register_reports(app, container)

    return app
