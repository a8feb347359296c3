"""Client settings: a key/value config store plus a typed, frozen view.

``ConfigStore`` holds explicitly set values and falls back to environment
variables for anything it does not hold. ``Settings`` is what clients
actually consume; each client takes a snapshot at construction time.
"""

import os
import threading
from collections.abc import Mapping
from functools import lru_cache
from typing import Any

from dotenv import dotenv_values
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Upstream API
    openrouter_base_url: str = "https://openrouter.ai"
    openrouter_api_key: str = ""
    http_timeout: float = 30.0  # seconds, per call

    # App identity headers (X-Title / HTTP-Referer)
    openrouter_app_name: str = ""
    openrouter_app_url: str = ""

    # Request/response log files
    enable_api_logging: bool = False
    api_logs_dir: str = "api-logs"
    api_logs_retention_days: int = 30
    api_logs_mask_keys: bool = True

    # Process logging
    log_level: str = "INFO"
    audit_log_file: str = ""  # Empty = stdout only

    # Editing suggestions
    suggestion_model: str = "anthropic/claude-3.5-sonnet"
    ai_cache_dir: str = "storage/ai-cache"  # Empty = no suggestion cache

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "frozen": True}


# Short keys accepted by ConfigStore, mapped onto Settings fields
_KEY_ALIASES = {
    "base_url": "openrouter_base_url",
    "api_key": "openrouter_api_key",
    "timeout": "http_timeout",
    "app_name": "openrouter_app_name",
    "app_url": "openrouter_app_url",
    "enable_logging": "enable_api_logging",
    "logs_dir": "api_logs_dir",
    "logs_retention_days": "api_logs_retention_days",
    "mask_api_keys": "api_logs_mask_keys",
}


class ConfigStore:
    """Key/value configuration with environment fallback.

    Values set here win over the environment. Later ``init``/``set`` calls
    override earlier ones for the same key and leave other keys alone.
    """

    def __init__(self, values: Mapping[str, Any] | None = None, environ: Mapping[str, str] | None = None):
        self._values: dict[str, Any] = {}
        self._environ = environ if environ is not None else os.environ
        self._initialized = False
        self._lock = threading.RLock()
        if values:
            self.init(values)

    @property
    def initialized(self) -> bool:
        return self._initialized

    def init(self, values: Mapping[str, Any] | None = None) -> None:
        with self._lock:
            self._values.update(values or {})
            self._initialized = True

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            if self._values.get(key) is not None:
                return self._values[key]
        env_value = self._environ.get(key)
        if env_value is not None:
            return env_value
        return default

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._values[key] = value

    def has(self, key: str) -> bool:
        with self._lock:
            if self._values.get(key) is not None:
                return True
        return key in self._environ

    def all(self) -> dict[str, Any]:
        with self._lock:
            return dict(self._values)

    def reset(self) -> None:
        with self._lock:
            self._values.clear()
            self._initialized = False

    def load_env(self, path: str | os.PathLike) -> None:
        """Merge KEY=VALUE pairs from a dotenv file. Missing files are ignored."""
        if not os.path.isfile(path):
            return
        values = {k: v for k, v in dotenv_values(path).items() if v is not None}
        self.init(values)

    def settings(self) -> Settings:
        """Build a frozen Settings snapshot; explicit values override the environment."""
        overrides: dict[str, Any] = {}
        fields = Settings.model_fields
        for key, value in self.all().items():
            if value is None:
                continue
            name = key.lower()
            name = _KEY_ALIASES.get(name, name)
            if name in fields:
                overrides[name] = value
        for name in fields:
            if name not in overrides and self._environ.get(name.upper()) is not None:
                overrides[name] = self._environ[name.upper()]
        return Settings(**overrides)


@lru_cache
def get_settings() -> Settings:
    return Settings()
