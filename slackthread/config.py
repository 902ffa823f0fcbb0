"""Configuration loaded from environment variables."""

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv
from platformdirs import user_config_dir


def config_dir() -> Path:
    """Return the slackthread configuration directory.

    Override with SLACKTHREAD_CONFIG_DIR env var. Platform defaults:
    - macOS: ~/Library/Application Support/slackthread
    - Linux: ~/.config/slackthread (or $XDG_CONFIG_HOME/slackthread)
    - Windows: %APPDATA%/slackthread
    """
    override = os.environ.get("SLACKTHREAD_CONFIG_DIR")
    if override:
        return Path(override)
    return Path(user_config_dir("slackthread", appauthor=False))


def env_file() -> Path:
    """Return the path to the .env configuration file."""
    return config_dir() / ".env"


load_dotenv(env_file())


VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR"}

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 3000
DEFAULT_THREAD_LIMIT = 100


def _validate_log_level(value: str) -> str:
    level = value.upper()
    if level not in VALID_LOG_LEVELS:
        raise ValueError(
            f"Invalid LOG_LEVEL '{value}'. "
            f"Must be one of: {', '.join(sorted(VALID_LOG_LEVELS))}"
        )
    return level


def _positive_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be a positive integer, got '{raw}'") from None
    if value < 1:
        raise ValueError(f"{name} must be a positive integer")
    return value


@dataclass(frozen=True)
class Config:
    slack_bot_token: str

    # Optional
    log_level: str = "INFO"
    log_dir: Path | None = None
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    thread_limit: int = DEFAULT_THREAD_LIMIT

    def __repr__(self) -> str:
        """Mask the bot token in repr to prevent accidental leakage."""
        def _mask(val: str) -> str:
            if len(val) <= 8:
                return "***"
            return val[:4] + "..." + val[-4:]

        fields = []
        for f in self.__dataclass_fields__:
            val = getattr(self, f)
            if f == "slack_bot_token":
                val = _mask(val)
            fields.append(f"{f}={val!r}")
        return f"Config({', '.join(fields)})"

    @classmethod
    def from_env(cls) -> "Config":
        bot_token = os.environ.get("SLACK_BOT_TOKEN", "")
        if not bot_token:
            raise ValueError(
                "SLACK_BOT_TOKEN must be set. "
                f"Export it or add it to {env_file()}."
            )

        log_dir = os.environ.get("LOG_DIR")

        return cls(
            slack_bot_token=bot_token,
            log_level=_validate_log_level(os.environ.get("LOG_LEVEL", "INFO")),
            log_dir=Path(log_dir) if log_dir else None,
            host=os.environ.get("HOST", DEFAULT_HOST),
            port=_positive_int("PORT", DEFAULT_PORT),
            thread_limit=_positive_int("THREAD_LIMIT", DEFAULT_THREAD_LIMIT),
        )
