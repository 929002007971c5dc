"""Runtime configuration resolved from the environment (and an optional .env)."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

DEFAULT_API_KEY = "your-super-secret-api-key"
DEFAULT_PORT = 3001

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class Settings:
    api_key: str = DEFAULT_API_KEY
    host: str = "127.0.0.1"
    port: int = DEFAULT_PORT
    public_url: str = f"http://localhost:{DEFAULT_PORT}"
    open_browser: bool = True
    log_level: str = "INFO"

    def url_for(self, path: str) -> str:
        """Absolute URL for ``path`` under the public base."""
        return f"{self.public_url.rstrip('/')}/{path.lstrip('/')}"

    @property
    def masked_api_key(self) -> str:
        if len(self.api_key) <= 4:
            return "*" * len(self.api_key)
        return self.api_key[:4] + "*" * (len(self.api_key) - 4)


def _get_int_env(name: str) -> Optional[int]:
    raw = os.getenv(name)
    if raw in (None, ""):
        return None
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"Environment variable {name} must be an integer; got {raw!r}") from exc


def _get_bool_env(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw in (None, ""):
        return default
    value = raw.strip().lower()
    if value in _TRUTHY:
        return True
    if value in _FALSY:
        return False
    raise ValueError(f"Environment variable {name} must be a boolean; got {raw!r}")


def load_settings() -> Settings:
    port = _get_int_env("EMR_PORT") or DEFAULT_PORT
    return Settings(
        api_key=os.getenv("EMR_API_KEY") or DEFAULT_API_KEY,
        host=os.getenv("EMR_HOST") or "127.0.0.1",
        port=port,
        public_url=os.getenv("EMR_PUBLIC_URL") or f"http://localhost:{port}",
        open_browser=_get_bool_env("EMR_OPEN_BROWSER", True),
        log_level=(os.getenv("LOG_LEVEL") or "INFO").upper(),
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the process-wide settings, reading ``backend/.env`` first."""
    load_dotenv(dotenv_path=Path(__file__).resolve().parents[1] / ".env")
    return load_settings()
