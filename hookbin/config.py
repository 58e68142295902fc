# hookbin/config.py
from dotenv import load_dotenv
import logging
import os
from typing import Dict, List, Optional, Tuple

# load local .env if present
load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_BIND_ADDR = "0.0.0.0:3000"
DEFAULT_CORS_ORIGINS = "http://localhost:3000"
DEFAULT_DATABASE_URL = "sqlite:///webhook_service.db"


def _get_param_from_ssm(name: str, decrypt: bool = False) -> Optional[str]:
    """
    Look the setting up in SSM when HOOKBIN_SSM_PREFIX is set. boto3 is imported
    lazily so local runs never touch AWS.
    """
    prefix = os.getenv("HOOKBIN_SSM_PREFIX")
    if not prefix:
        return None
    try:
        from .utils.ssm import get_param
        return get_param(prefix, name, decrypt=decrypt)
    except Exception as exc:
        logger.warning("SSM lookup for %s failed, using environment: %s", name, exc)
        return None


def _get_param_with_fallback(name: str, decrypt: bool = False, default: Optional[str] = None) -> Optional[str]:
    val = _get_param_from_ssm(name, decrypt=decrypt)
    if val:
        return val
    return os.getenv(name, default)


def get_base_url() -> Optional[str]:
    return _get_param_with_fallback("BASE_URL") or None


def get_bind_addr() -> str:
    bind = _get_param_with_fallback("BIND_ADDR")
    if bind:
        return bind
    port = _get_param_with_fallback("PORT")
    if port:
        return f"0.0.0.0:{port}"
    return DEFAULT_BIND_ADDR


def parse_bind_addr(bind: str) -> Tuple[str, int]:
    """Split "host:port" (or "[v6]:port") into the pair app.run() expects."""
    host, _, port = bind.rpartition(":")
    if not host or not port.isdigit():
        raise ValueError(f"invalid bind address {bind!r}, expected host:port")
    return host.strip("[]"), int(port)


def get_cors_settings() -> Dict[str, object]:
    # CORS_PERMISSIVE only needs to be present, its value is ignored.
    if os.getenv("CORS_PERMISSIVE") is not None:
        return {"permissive": True, "origins": []}
    raw = _get_param_with_fallback("CORS_ALLOWED_ORIGINS", default=DEFAULT_CORS_ORIGINS)
    origins: List[str] = [o.strip() for o in raw.split(",") if o.strip()]
    return {"permissive": False, "origins": origins}


def get_database_url() -> str:
    db = _get_param_with_fallback("DATABASE_URL", decrypt=True)
    if db:
        return db
    return DEFAULT_DATABASE_URL


class Config:
    BASE_URL = get_base_url()
    BIND_ADDR = get_bind_addr()
    CORS = get_cors_settings()
    DATABASE_URL = get_database_url()
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
