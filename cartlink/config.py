"""Environment variable names, defaults and .env loading."""

import os
from collections.abc import Mapping
from pathlib import Path

from dotenv import load_dotenv


# --- Rami Levy ---
RAMI_LEVY_API_KEY = "RAMI_LEVY_API_KEY"  # Bearer token
RAMI_LEVY_ECOM_TOKEN = "ECOM_TOKEN"
RAMI_LEVY_COOKIE = "COOKIE"
RAMI_LEVY_USER_ID = "RAMI_LEVY_USER_ID"
RAMI_LEVY_STORE_ID = "RAMI_LEVY_STORE_ID"
DEFAULT_RAMI_LEVY_STORE = "331"

# --- Shufersal ---
SHUFERSAL_CSRF_TOKEN = "SHUFERSAL_CSRF_TOKEN"
SHUFERSAL_COOKIE = "SHUFERSAL_COOKIE"

# --- HTTP ---
HTTP_TIMEOUT = "CARTLINK_HTTP_TIMEOUT"
DEFAULT_HTTP_TIMEOUT = 30.0
USER_AGENT = (
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36"
)

# --- Logging ---
LOG_LEVEL = "CARTLINK_LOG_LEVEL"
DEFAULT_LOG_LEVEL = "INFO"


def load_env_file(path: Path | None = None) -> None:
    """Load ``.env`` from the working directory (existing vars win)."""
    load_dotenv(path or Path.cwd() / ".env", override=False)


def get_env(env: Mapping[str, str] | None = None) -> Mapping[str, str]:
    """Return the config source: an explicit mapping or ``os.environ``."""
    return os.environ if env is None else env


def env_value(env: Mapping[str, str] | None, name: str, default: str | None = None) -> str | None:
    """Look up ``name``; blank values count as missing."""
    value = get_env(env).get(name)
    if value is None or not str(value).strip():
        return default
    return str(value).strip()


def http_timeout(env: Mapping[str, str] | None = None) -> float:
    raw = env_value(env, HTTP_TIMEOUT)
    if raw is None:
        return DEFAULT_HTTP_TIMEOUT
    try:
        value = float(raw)
    except ValueError:
        return DEFAULT_HTTP_TIMEOUT
    return value if value > 0 else DEFAULT_HTTP_TIMEOUT


def log_level(env: Mapping[str, str] | None = None) -> str:
    return (env_value(env, LOG_LEVEL, DEFAULT_LOG_LEVEL) or DEFAULT_LOG_LEVEL).upper()
