from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Mapping

from core.domain.money import DEFAULT_CURRENCY_CODE, normalize_currency
from infra.path import default_db_path

logger = logging.getLogger(__name__)

_DEFAULT_RATE_SERVICE_URL = "http://localhost:5000"
_DEFAULT_RATE_TIMEOUT_SECONDS = 10.0
_DEFAULT_RATE_MAX_WORKERS = 4
_DEFAULT_RATE_FRESHNESS_HOURS = 24.0


def _env_text(env: Mapping[str, str], key: str) -> str:
    return (env.get(key) or "").strip()


def _env_float(env: Mapping[str, str], key: str, default: float) -> float:
    raw = _env_text(env, key)
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning("Ignoring invalid %s=%r; using %s", key, raw, default)
        return default
    return value if value > 0 else default


def _env_int(env: Mapping[str, str], key: str, default: int) -> int:
    return int(_env_float(env, key, float(default)))


def default_db_url() -> str:
    return f"sqlite:///{default_db_path().as_posix()}"


@dataclass(frozen=True)
class Settings:
    db_url: str
    rate_source: str = "http"
    rate_service_url: str = _DEFAULT_RATE_SERVICE_URL
    rate_timeout_seconds: float = _DEFAULT_RATE_TIMEOUT_SECONDS
    display_currency: str = DEFAULT_CURRENCY_CODE
    rate_max_workers: int = _DEFAULT_RATE_MAX_WORKERS
    rate_freshness_hours: float = _DEFAULT_RATE_FRESHNESS_HOURS

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> "Settings":
        env = os.environ if env is None else env
        return cls(
            db_url=_env_text(env, "PP_DB_URL") or default_db_url(),
            rate_source=(_env_text(env, "PP_RATE_SOURCE") or "http").lower(),
            rate_service_url=(_env_text(env, "PP_RATE_SERVICE_URL") or _DEFAULT_RATE_SERVICE_URL).rstrip("/"),
            rate_timeout_seconds=_env_float(env, "PP_RATE_TIMEOUT_SECONDS", _DEFAULT_RATE_TIMEOUT_SECONDS),
            display_currency=normalize_currency(_env_text(env, "PP_DISPLAY_CURRENCY")),
            rate_max_workers=_env_int(env, "PP_RATE_MAX_WORKERS", _DEFAULT_RATE_MAX_WORKERS),
            rate_freshness_hours=_env_float(env, "PP_RATE_FRESHNESS_HOURS", _DEFAULT_RATE_FRESHNESS_HOURS),
        )


__all__ = ["Settings", "default_db_url"]
