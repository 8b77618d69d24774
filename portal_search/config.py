"""Application configuration and constants."""
from __future__ import annotations

import os
from dataclasses import dataclass


def _get_env(name: str, default: str) -> str:
    value = os.getenv(name)
    return value if value is not None else default


def _get_env_list(name: str, default: str) -> tuple[str, ...]:
    raw = _get_env(name, default)
    return tuple(item.strip().lower() for item in raw.split(",") if item.strip())


@dataclass(frozen=True)
class Settings:
    """Simple settings container with environment variable overrides.

    The ranking thresholds come from observed heuristics of the portal and are
    meant to be tuned, so they live here rather than in the scorer.
    """

    catalog_path: str = _get_env("CATALOG_PATH", "catalog.json")
    catalog_source_url: str = _get_env("CATALOG_SOURCE_URL", "")
    erp_base_url: str = _get_env("ERP_BASE_URL", "")
    default_currency: str = _get_env("DEFAULT_CURRENCY", "MAD")
    redis_host: str = _get_env("REDIS_HOST", "localhost")
    redis_port: int = int(_get_env("REDIS_PORT", "6379"))
    cache_ttl_seconds: int = int(_get_env("CACHE_TTL_SECONDS", "300"))
    load_on_startup: bool = _get_env("LOAD_ON_STARTUP", "true").lower() in {"1", "true", "yes"}
    log_level: str = _get_env("LOG_LEVEL", "INFO")
    known_brands: tuple[str, ...] = _get_env_list(
        "KNOWN_BRANDS", "total,shell,mobil,castrol,afriquia,motul,elf"
    )
    confident_threshold: float = float(_get_env("CONFIDENT_THRESHOLD", "0.4"))
    suggestion_floor: float = float(_get_env("SUGGESTION_FLOOR", "0.15"))
    max_suggestions: int = int(_get_env("MAX_SUGGESTIONS", "5"))
    max_alternatives: int = int(_get_env("MAX_ALTERNATIVES", "5"))
    min_suggestions: int = int(_get_env("MIN_SUGGESTIONS", "3"))
    anchor_count: int = int(_get_env("ANCHOR_COUNT", "3"))
    debounce_ms: int = int(_get_env("DEBOUNCE_MS", "500"))


settings = Settings()
