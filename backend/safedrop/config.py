"""Server configuration with CLI > env var > defaults precedence."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional


DEFAULT_PORT = 8080
DEFAULT_MAX_BODY_BYTES = 32 * 1024


class ConfigurationError(ValueError):
    """Raised when a configuration value is malformed. The server does not start."""


def _env_int(name: str, default: int, minimum: int = 0, maximum: Optional[int] = None) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ConfigurationError(f"Invalid {name}: {raw!r} is not an integer") from None
    _check_range(name, value, minimum, maximum)
    return value


def _check_range(name: str, value: int, minimum: int, maximum: Optional[int]) -> None:
    if value < minimum or (maximum is not None and value > maximum):
        upper = "" if maximum is None else f" and <= {maximum}"
        raise ConfigurationError(f"Invalid {name}: {value} must be >= {minimum}{upper}")


@dataclass
class ServerConfig:
    """Configuration for the SafeDrop server process."""
    host: str = ""
    port: Optional[int] = None
    max_body_bytes: Optional[int] = None
    static_dir: str = ""
    sweep_interval: Optional[int] = None
    log_dir: str = ""

    def __post_init__(self):
        # Apply env var defaults before CLI overrides
        if not self.host:
            self.host = os.getenv("SAFEDROP_HOST", "0.0.0.0")
        if self.port is None:
            self.port = _env_int("PORT", DEFAULT_PORT, minimum=0, maximum=65535)
        else:
            _check_range("port", self.port, 0, 65535)
        if self.max_body_bytes is None:
            self.max_body_bytes = _env_int(
                "SAFEDROP_MAX_BODY_BYTES", DEFAULT_MAX_BODY_BYTES, minimum=1
            )
        else:
            _check_range("max_body_bytes", self.max_body_bytes, 1, None)
        if not self.static_dir:
            self.static_dir = os.getenv("SAFEDROP_STATIC_DIR", "static")
        if self.sweep_interval is None:
            self.sweep_interval = _env_int("SAFEDROP_SWEEP_INTERVAL", 0)
        else:
            _check_range("sweep_interval", self.sweep_interval, 0, None)
        if not self.log_dir:
            self.log_dir = os.getenv("SAFEDROP_LOG_DIR", "")

    @property
    def index_file(self) -> Path:
        """The single-page client served for / and /safes/{id}."""
        return Path(self.static_dir) / "index.html"
