"""Configuration helpers for environment-driven settings."""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

if os.getenv("PYTEST_CURRENT_TEST") is None:
    load_dotenv()

DEFAULT_STRATEGIES_PATH = Path(__file__).resolve().parent / "strategies.yaml"


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _resolve_path(value: str) -> Path:
    path = Path(value)
    if not path.is_absolute():
        path = Path.cwd() / path
    return path


@dataclass(slots=True)
class Settings:
    """Runtime application settings sourced from environment variables."""

    CHECK_INTERVAL_SECONDS: int = field(init=False)
    REQUEST_TIMEOUT: float = field(init=False)
    HEADERS: dict[str, str] = field(init=False)
    DB_PATH: Path = field(init=False)
    STRATEGIES_PATH: Path = field(init=False)
    SMTP_HOST: str = field(init=False)
    SMTP_PORT: int = field(init=False)
    SMTP_USERNAME: str = field(init=False)
    SMTP_PASSWORD: str = field(init=False)
    SMTP_SENDER: str = field(init=False)
    SMTP_USE_TLS: bool = field(init=False)
    API_HOST: str = field(init=False)
    API_PORT: int = field(init=False)
    CORS_ALLOW_ORIGIN: str = field(init=False)
    SHUTDOWN_GRACE_SECONDS: float = field(init=False)

    def __post_init__(self) -> None:
        self.reload()

    def reload(self) -> None:
        try:
            interval = int(os.getenv("CHECK_INTERVAL_SECONDS", "60"))
        except ValueError as exc:
            raise ValueError("CHECK_INTERVAL_SECONDS must be an integer") from exc
        if interval <= 0:
            raise ValueError("CHECK_INTERVAL_SECONDS must be positive")
        self.CHECK_INTERVAL_SECONDS = interval

        try:
            timeout = float(os.getenv("REQUEST_TIMEOUT", "30"))
        except ValueError as exc:
            raise ValueError("REQUEST_TIMEOUT must be a number") from exc
        if timeout <= 0:
            raise ValueError("REQUEST_TIMEOUT must be positive")
        self.REQUEST_TIMEOUT = timeout

        self.HEADERS = {
            "User-Agent": (
                "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
                "AppleWebKit/537.36 (KHTML, like Gecko) "
                "Chrome/91.0.4472.124 Safari/537.36"
            )
        }

        self.DB_PATH = _resolve_path(os.getenv("DB_PATH", "data/hotel_alerts.db").strip())

        strategies_value = os.getenv("STRATEGIES_PATH", "").strip()
        self.STRATEGIES_PATH = (
            _resolve_path(strategies_value) if strategies_value else DEFAULT_STRATEGIES_PATH
        )

        self.SMTP_HOST = os.getenv("SMTP_HOST", "smtp.gmail.com").strip()
        try:
            smtp_port = int(os.getenv("SMTP_PORT", "587"))
        except ValueError as exc:
            raise ValueError("SMTP_PORT must be an integer") from exc
        if not 0 < smtp_port < 65536:
            raise ValueError("SMTP_PORT must be a valid port number")
        self.SMTP_PORT = smtp_port
        self.SMTP_USERNAME = os.getenv("SMTP_USERNAME", "").strip()
        self.SMTP_PASSWORD = os.getenv("SMTP_PASSWORD", "")
        self.SMTP_SENDER = os.getenv("SMTP_SENDER", "").strip() or self.SMTP_USERNAME
        self.SMTP_USE_TLS = _parse_bool(os.getenv("SMTP_USE_TLS", "true"))

        self.API_HOST = os.getenv("API_HOST", "0.0.0.0").strip()
        try:
            api_port = int(os.getenv("API_PORT", "8080"))
        except ValueError as exc:
            raise ValueError("API_PORT must be an integer") from exc
        if not 0 < api_port < 65536:
            raise ValueError("API_PORT must be a valid port number")
        self.API_PORT = api_port

        self.CORS_ALLOW_ORIGIN = os.getenv("CORS_ALLOW_ORIGIN", "*").strip() or "*"

        try:
            grace = float(os.getenv("SHUTDOWN_GRACE_SECONDS", "30"))
        except ValueError as exc:
            raise ValueError("SHUTDOWN_GRACE_SECONDS must be a number") from exc
        if grace < 0:
            raise ValueError("SHUTDOWN_GRACE_SECONDS cannot be negative")
        self.SHUTDOWN_GRACE_SECONDS = grace

    def validate(self) -> None:
        if not self.SMTP_SENDER:
            raise ValueError("SMTP_SENDER or SMTP_USERNAME is required in .env file")
        if self.SMTP_USERNAME and not self.SMTP_PASSWORD:
            raise ValueError("SMTP_PASSWORD is required when SMTP_USERNAME is set")


settings = Settings()
