import logging
import os
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlparse

from dotenv import load_dotenv

from .exceptions import ConfigError

# --- Defaults ---
DEFAULT_PIPE_DIR = "/tmp"
DEFAULT_POLL_SECONDS = 3.0

FORMATS = ("line", "detailed")
AUTH_MODES = ("browser", "manual")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

REQUIRED_VARS = ("SPOTIPY_CLIENT_ID", "SPOTIPY_CLIENT_SECRET", "SPOTIPY_REDIRECT_URI")


@dataclass(frozen=True)
class Config:
    client_id: str
    client_secret: str
    redirect_uri: str
    pipe_dir: str = DEFAULT_PIPE_DIR
    poll_seconds: float = DEFAULT_POLL_SECONDS
    track_format: str = "line"
    auth_mode: str = "browser"
    callback_port: Optional[int] = None  # None: use the redirect URI's port
    log_level: str = "INFO"

    @property
    def log_level_value(self) -> int:
        return getattr(logging, self.log_level)


def _choice(name, value, choices):
    if value not in choices:
        raise ConfigError(f"{name} must be one of {', '.join(choices)}, got {value!r}")
    return value


def _number(name, value, cast):
    try:
        return cast(value)
    except (TypeError, ValueError):
        raise ConfigError(f"{name} must be a number, got {value!r}") from None


def _port(value) -> Optional[int]:
    if value is None or value == "":
        return None
    port = _number("FIFOPLAYER_CALLBACK_PORT", value, int)
    if not 1 <= port <= 65535:
        raise ConfigError(f"FIFOPLAYER_CALLBACK_PORT must be between 1 and 65535, got {port}")
    return port


def _check_redirect_uri(uri):
    try:
        urlparse(uri).port
    except ValueError as e:
        raise ConfigError(f"SPOTIPY_REDIRECT_URI is not a valid URL: {e}") from None


def load_config(overrides=None, use_dotenv=True) -> Config:
    """Build a Config from the environment (and `.env`), applying CLI overrides.

    Overrides is a mapping of Config field names to values; `None` values are
    ignored so argparse defaults don't mask the environment.
    """
    if use_dotenv:
        load_dotenv()

    missing = [var for var in REQUIRED_VARS if not os.getenv(var)]
    if missing:
        raise ConfigError(f"Missing required environment variables: {', '.join(missing)}")
    _check_redirect_uri(os.getenv("SPOTIPY_REDIRECT_URI"))

    values = {
        "pipe_dir": os.getenv("FIFOPLAYER_PIPE_DIR", DEFAULT_PIPE_DIR),
        "poll_seconds": os.getenv("FIFOPLAYER_POLL_SECONDS", DEFAULT_POLL_SECONDS),
        "track_format": os.getenv("FIFOPLAYER_FORMAT", "line"),
        "auth_mode": os.getenv("FIFOPLAYER_AUTH_MODE", "browser"),
        "callback_port": os.getenv("FIFOPLAYER_CALLBACK_PORT"),
        "log_level": os.getenv("LOG_LEVEL", "INFO"),
    }
    for key, value in (overrides or {}).items():
        if value is not None:
            values[key] = value

    poll_seconds = _number("FIFOPLAYER_POLL_SECONDS", values["poll_seconds"], float)
    if poll_seconds <= 0:
        raise ConfigError(f"FIFOPLAYER_POLL_SECONDS must be positive, got {poll_seconds}")

    return Config(
        client_id=os.getenv("SPOTIPY_CLIENT_ID"),
        client_secret=os.getenv("SPOTIPY_CLIENT_SECRET"),
        redirect_uri=os.getenv("SPOTIPY_REDIRECT_URI"),
        pipe_dir=values["pipe_dir"],
        poll_seconds=poll_seconds,
        track_format=_choice("FIFOPLAYER_FORMAT", str(values["track_format"]).lower(), FORMATS),
        auth_mode=_choice("FIFOPLAYER_AUTH_MODE", str(values["auth_mode"]).lower(), AUTH_MODES),
        callback_port=_port(values["callback_port"]),
        log_level=_choice("LOG_LEVEL", str(values["log_level"]).upper(), LOG_LEVELS),
    )
