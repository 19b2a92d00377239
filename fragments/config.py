"""Configuration settings for the Fragments server."""

import os
from dataclasses import dataclass
from typing import Optional

from common.constants import (
    DEFAULT_DATA_DIR,
    DEFAULT_DATABASE_PATH,
    DEFAULT_HTPASSWD_FILE,
    DEFAULT_PORT,
    MAX_FRAGMENT_SIZE_BYTES,
)


STORAGE_BACKENDS = ("memory", "sqlite")


@dataclass(frozen=True)
class Settings:
    """
    Process-wide configuration, built once at startup and passed to create_app.
    """
    host: str = "0.0.0.0"
    port: int = DEFAULT_PORT
    storage_backend: str = "memory"
    database_path: str = DEFAULT_DATABASE_PATH
    data_dir: str = DEFAULT_DATA_DIR
    htpasswd_file: str = DEFAULT_HTPASSWD_FILE
    api_url: Optional[str] = None
    max_fragment_size: int = MAX_FRAGMENT_SIZE_BYTES

    def __post_init__(self):
        if self.storage_backend not in STORAGE_BACKENDS:
            raise ValueError(
                f"Unknown storage backend '{self.storage_backend}', "
                f"expected one of: {', '.join(STORAGE_BACKENDS)}"
            )
        if self.max_fragment_size <= 0:
            raise ValueError("max_fragment_size must be positive")


def load_settings() -> Settings:
    """
    Read settings from the environment.

    Returns:
        Settings populated from FRAGMENTS_* variables, HTPASSWD_FILE and API_URL
    """
    return Settings(
        host=os.environ.get("FRAGMENTS_HOST", "0.0.0.0"),
        port=int(os.environ.get("FRAGMENTS_PORT", str(DEFAULT_PORT))),
        storage_backend=os.environ.get("FRAGMENTS_STORAGE_BACKEND", "memory").lower(),
        database_path=os.environ.get("FRAGMENTS_DATABASE_PATH", DEFAULT_DATABASE_PATH),
        data_dir=os.environ.get("FRAGMENTS_DATA_DIR", DEFAULT_DATA_DIR),
        htpasswd_file=os.environ.get("HTPASSWD_FILE", DEFAULT_HTPASSWD_FILE),
        api_url=os.environ.get("API_URL") or None,
        max_fragment_size=int(os.environ.get("FRAGMENTS_MAX_SIZE_BYTES", str(MAX_FRAGMENT_SIZE_BYTES))),
    )
