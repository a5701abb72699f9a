from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv


def _default_env_file() -> str:
    # A .env next to the working directory, same place the sqlite file lands by default.
    return str(Path.cwd() / ".env")


@dataclass(frozen=True)
class Settings:
    router_base_url: str
    router_session_cookie: str
    router_http_timeout: float

    poll_interval_ms: int
    database_url: str
    history_samples: int
    retention_days: int
    startup_auth_attempts: int

    log_level: str


def get_settings() -> Settings:
    # Load env file (if present) but still allow overriding via real environment variables.
    env_file = os.getenv("ROUTER_MONITOR_ENV_FILE", _default_env_file())
    if env_file and Path(env_file).exists():
        load_dotenv(env_file, override=False)

    router_base_url = os.getenv("ROUTER_BASE_URL", "http://192.168.2.1").rstrip("/")
    router_session_cookie = os.getenv("ROUTER_SESSION_COOKIE", "").strip()
    router_http_timeout = float(os.getenv("ROUTER_HTTP_TIMEOUT", "10"))

    poll_interval_ms = int(os.getenv("POLL_INTERVAL_MS", "5000"))
    database_url = os.getenv("DATABASE_URL", "sqlite:///router-stats.db")
    # 66 samples fill most of the dashboard width.
    history_samples = int(os.getenv("HISTORY_SAMPLES", "66"))
    retention_days = int(os.getenv("RETENTION_DAYS", "7"))
    startup_auth_attempts = int(os.getenv("STARTUP_AUTH_ATTEMPTS", "3"))

    log_level = os.getenv("LOG_LEVEL", "INFO").upper()

    return Settings(
        router_base_url=router_base_url,
        router_session_cookie=router_session_cookie,
        router_http_timeout=router_http_timeout,
        poll_interval_ms=poll_interval_ms,
        database_url=database_url,
        history_samples=history_samples,
        retention_days=retention_days,
        startup_auth_attempts=startup_auth_attempts,
        log_level=log_level,
    )
