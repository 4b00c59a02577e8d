from __future__ import annotations

import os
from dataclasses import dataclass

DEFAULT_API_URL = "http://localhost:8080"
DEFAULT_TIMEOUT = 5.0
DEFAULT_DB_PATH = "data/client.sqlite"


def _to_float(val, default: float) -> float:
    try:
        return float(val)
    except (TypeError, ValueError):
        return default


@dataclass(frozen=True)
class Settings:
    """
    Runtime settings for the client.

    Fields:
      - api_url: base URL of the remote gateway, no trailing slash
      - timeout: per-request transport timeout in seconds
      - db_path: sqlite file backing the persistent store
    """

    api_url: str = DEFAULT_API_URL
    timeout: float = DEFAULT_TIMEOUT
    db_path: str = DEFAULT_DB_PATH

    @classmethod
    def from_env(cls) -> "Settings":
        api_url = os.getenv("SHOPCLIENT_API_URL") or DEFAULT_API_URL
        timeout = _to_float(os.getenv("SHOPCLIENT_TIMEOUT"), DEFAULT_TIMEOUT)
        if timeout <= 0:
            timeout = DEFAULT_TIMEOUT
        db_path = os.getenv("SHOPCLIENT_DB_PATH") or DEFAULT_DB_PATH
        return cls(api_url=api_url.rstrip("/"), timeout=timeout, db_path=db_path)
