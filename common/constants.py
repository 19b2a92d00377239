"""Project-wide constants (API version prefix, size ceilings, default ports)."""

SERVICE_NAME: str = "fragments"
SERVICE_VERSION: str = "1.0.0"

API_PREFIX: str = "/v1"

MAX_FRAGMENT_SIZE_BYTES: int = 5 * 1024 * 1024  # 5 MiB upload ceiling

DEFAULT_PORT: int = 8080
DEFAULT_DATABASE_PATH: str = "/app/data/fragments.db"
DEFAULT_DATA_DIR: str = "/app/data/fragments"
DEFAULT_HTPASSWD_FILE: str = "/app/.htpasswd"
