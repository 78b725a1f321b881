"""Runtime settings read from the environment.

Variables (all optional):
    HANDLER_SCOPES_HOST              Bind address for `serve` (default 127.0.0.1)
    HANDLER_SCOPES_PORT              Bind port for `serve` (default 8080)
    HANDLER_SCOPES_DEFAULT_DELAY_MS  Delay when the path omits it (default 100)
    HANDLER_SCOPES_LOG_LEVEL         Logging level name (default INFO)
    HANDLER_SCOPES_BASE_URL          Target for harness commands
                                     (default http://<host>:<port>)

The CLI loads a .env file first, so these can also live there.
"""

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass

from fastapi_handler_scopes.core.context import DEFAULT_DELAY_MS, MAX_DELAY_MS

ENV_PREFIX = "HANDLER_SCOPES_"


@dataclass(frozen=True)
class Settings:
    """Application and harness settings."""

    host: str = "127.0.0.1"
    port: int = 8080
    default_delay_ms: int = DEFAULT_DELAY_MS
    log_level: str = "INFO"
    base_url: str | None = None

    @property
    def target_url(self) -> str:
        """Base URL harness commands send requests to."""
        return self.base_url or f"http://{self.host}:{self.port}"


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    """Build Settings from environment variables.

    Args:
        environ: Mapping to read from. Defaults to os.environ.

    Raises:
        ValueError: If a numeric variable is not an integer, the delay is
            negative, or the log level is unknown.
    """
    env = os.environ if environ is None else environ
    defaults = Settings()

    log_level = env.get(f"{ENV_PREFIX}LOG_LEVEL", defaults.log_level).upper()
    if not isinstance(logging.getLevelName(log_level), int):
        raise ValueError(f"{ENV_PREFIX}LOG_LEVEL: unknown level '{log_level}'")

    default_delay_ms = _int_var(env, "DEFAULT_DELAY_MS", defaults.default_delay_ms)
    if not 0 <= default_delay_ms <= MAX_DELAY_MS:
        raise ValueError(
            f"{ENV_PREFIX}DEFAULT_DELAY_MS must be >= 0 and <= {MAX_DELAY_MS}, "
            f"got {default_delay_ms}"
        )

    return Settings(
        host=env.get(f"{ENV_PREFIX}HOST", defaults.host),
        port=_int_var(env, "PORT", defaults.port),
        default_delay_ms=default_delay_ms,
        log_level=log_level,
        base_url=env.get(f"{ENV_PREFIX}BASE_URL") or None,
    )


def _int_var(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(f"{ENV_PREFIX}{name}")
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{ENV_PREFIX}{name} must be an integer, got '{raw}'") from None
