from __future__ import annotations

import atexit
import importlib
import logging
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from .attendance.controller import register as register_attendance
from .budget.controller import register as register_budget
from .common.http import register_error_handlers
from .common.logging_setup import configure_logging
from .config import get_settings_module
from .container import Container, build_container
from .core.constants import DEFAULT_LEAVE_GENERATION_CRON, DEFAULT_PAGE_LIMIT, DEFAULT_SCHEDULER_TIMEZONE
from .database.bootstrap import apply_schema, list_tables
from .employees.controller import register as register_employees
from .inventory.controller import register as register_inventory
from .leave.controller import register as register_leave
from .receipts.controller import register as register_receipts
from .scheduler.controller import register as register_scheduler

logger = logging.getLogger(__name__)


def create_app(container: Optional[Container] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    app.config["DEFAULT_PAGE_LIMIT"] = int(getattr(settings, "DEFAULT_PAGE_LIMIT", DEFAULT_PAGE_LIMIT))
    app.json.sort_keys = False

    if container is None:
        db_config = getattr(settings, "DB_CONFIG")
        logger.info(
            "Starting with settings=%s db=%s@%s:%s/%s",
            settings_module,
            db_config.get("user"),
            db_config.get("host"),
            db_config.get("port", 3306),
            db_config.get("database"),
        )

        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            apply_schema(db_config)
            logger.info("Schema ready (tables=%d)", len(list_tables(db_config)))

        container = build_container(
            db_config=db_config,
            scheduler_cron=getattr(settings, "LEAVE_GENERATION_CRON", DEFAULT_LEAVE_GENERATION_CRON),
            scheduler_timezone=getattr(settings, "SCHEDULER_TIMEZONE", DEFAULT_SCHEDULER_TIMEZONE),
        )

        if bool(getattr(settings, "SCHEDULER_ENABLED", False)):
            container.scheduler.start()
            atexit.register(container.close)

    app.extensions["container"] = container

    register_error_handlers(app)
    register_employees(app, container)
    register_leave(app, container)
    register_attendance(app, container)
    register_budget(app, container)
    register_receipts(app, container)
    register_inventory(app, container)
    register_scheduler(app, container)

    @app.route("/health", methods=["GET"], endpoint="health")
    def health():
        return {"status": "ok", "scheduler": container.scheduler.is_running()}

    return app
