# hookbin/__init__.py
import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from flask import Flask
from flask_cors import CORS

from .capture import CapturePipeline
from .config import Config
from .db import Storage
from .logs import LogReader
from .tokens import TokenManager
from .utils.clock import Clock, SystemClock

logger = logging.getLogger(__name__)


@dataclass
class Services:
    storage: Storage
    tokens: TokenManager
    capture: CapturePipeline
    logs: LogReader


def _init_cors(app: Flask) -> None:
    cors = app.config["CORS"]
    if cors["permissive"]:
        CORS(app)
        return

    origins = []
    for origin in cors["origins"]:
        if origin.startswith(("http://", "https://")):
            origins.append(origin)
        else:
            logger.warning("Ignoring invalid origin '%s'", origin)
    CORS(
        app,
        origins=origins,
        methods=["GET", "POST", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type"],
    )


def create_app(test_config: Optional[Mapping[str, Any]] = None, clock: Optional[Clock] = None):
    app = Flask(__name__)
    app.config.from_object(Config)
    if test_config:
        app.config.update(test_config)

    # Keep header and body keys in the order they arrived.
    app.json.sort_keys = False

    # One storage handle for the whole process, shared by the services below.
    storage = Storage(app.config["DATABASE_URL"])
    storage.initialize()

    clock = clock or SystemClock()
    app.extensions["hookbin"] = Services(
        storage=storage,
        tokens=TokenManager(storage, base_url=app.config["BASE_URL"], clock=clock),
        capture=CapturePipeline(storage, clock=clock),
        logs=LogReader(storage),
    )

    _init_cors(app)

    from .routes import bp as main_bp
    app.register_blueprint(main_bp)

    return app
