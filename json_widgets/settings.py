from __future__ import annotations

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class Settings:
    request_timeout: float = 10.0
    cache_size: int = 128
    storage_path: str = 'dashboard.json'
    log_level: str = 'INFO'


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def get_settings() -> Settings:
    return Settings(
        request_timeout=_env_float('JSON_WIDGETS_TIMEOUT', Settings.request_timeout),
        cache_size=int(_env_float('JSON_WIDGETS_CACHE_SIZE', Settings.cache_size)),
        storage_path=os.getenv('JSON_WIDGETS_STORAGE', Settings.storage_path),
        log_level=os.getenv('JSON_WIDGETS_LOG_LEVEL', Settings.log_level).upper(),
    )
