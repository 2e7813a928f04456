from __future__ import annotations

import importlib
import logging
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .common.logging_utils import configure_logging
from .container import Container, build_container
from .core.enums import StoreBackend
from .database.bootstrap import apply_schema, list_tables
from .exports.controller import register as register_exports
from .imports.controller import register as register_imports
from .records.controller import register as register_records

logger = logging.getLogger(__name__)


def create_app(container: Optional[Container] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["MAX_CONTENT_LENGTH"] = int(getattr(settings, "MAX_UPLOAD_BYTES", 32 * 1024 * 1024))

    if container is None:
        store_backend = getattr(settings, "STORE_BACKEND", StoreBackend.FIREBASE.value)
        db_config = getattr(settings, "DB_CONFIG", None)
        logger.info("settings=%s backend=%s", settings_module, store_backend)

        if store_backend == StoreBackend.MYSQL.value and bool(getattr(settings, "AUTO_INIT_DB", False)):
            apply_schema(db_config)
            logger.info("records schema ready (tables=%d)", len(list_tables(db_config)))

        container = build_container(
            store_backend=store_backend,
            db_config=db_config,
            firebase_config=getattr(settings, "FIREBASE_CONFIG", None),
        )

    register_imports(app, container)
    register_exports(app, container)
    register_records(app, container)

    return app
