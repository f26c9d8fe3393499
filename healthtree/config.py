from __future__ import annotations

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Central configuration loaded from environment / .env file."""

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    # Health checks
    default_timeout_ms: int = 1000  # per-leaf budget when register() gets none
    health_route_prefix: str = "/health"
    checks_file: str = "checks.yaml"  # absolute or relative to CWD

    # API
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    # Logging
    log_level: str = "INFO"


settings = Settings()
