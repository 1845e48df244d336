"""Application configuration via environment variables.

Uses pydantic-settings to load config from env vars with BIZDIR_ prefix.
Env vars only, no YAML or other file-based config (12-factor app style).

Learn: The WebSocket handler variant is picked here at startup
(BIZDIR_WS_HANDLER=relay|notifications), not by running a second server.
"""

from pydantic import field_validator
from pydantic_settings import BaseSettings

WS_HANDLERS = ("notifications", "relay")


class Settings(BaseSettings):
    """All app configuration. Set via BIZDIR_* env vars."""

    # Server
    environment: str = "development"
    debug: bool = False

    # Logging
    log_level: str = "INFO"
    log_json: bool = False

    # WebSocket transport
    ws_host: str = "0.0.0.0"
    ws_port: int = 3001
    ws_path: str = "/ws"
    ws_handler: str = "notifications"
    ws_ping_interval: float = 20.0  # keepalive is left to uvicorn
    ws_ping_timeout: float = 20.0

    # Reply with an error frame to unknown command types instead of ignoring them
    strict_commands: bool = False

    # CORS
    cors_origins: list[str] = [
        "http://localhost:5173",
        "http://localhost:3000",
    ]

    model_config = {"env_prefix": "BIZDIR_"}

    @field_validator("ws_handler")
    @classmethod
    def validate_ws_handler(cls, value: str) -> str:
        value = value.strip().lower()
        if value not in WS_HANDLERS:
            raise ValueError(
                f"BIZDIR_WS_HANDLER must be one of {', '.join(WS_HANDLERS)}, got {value!r}"
            )
        return value

    @field_validator("ws_port")
    @classmethod
    def validate_ws_port(cls, value: int) -> int:
        if not 1 <= value <= 65535:
            raise ValueError(f"BIZDIR_WS_PORT must be between 1 and 65535, got {value}")
        return value

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, value: str) -> str:
        return value.upper()


# Singleton — import this everywhere
settings = Settings()
