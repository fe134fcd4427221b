"""
timelock_config -- single public entrypoint for workflow configuration.

Responsibility:
    Provides the ONLY way to obtain configuration at runtime through
    ``get_active_config()``.  The file is taken from the explicit ``path``
    argument, else from the ``TIMELOCK_CONFIG`` environment variable, else
    from the packaged ``defaults.yaml``.

Failure modes:
    - ``FileNotFoundError`` -- the selected file does not exist.
    - ``PolicyConfigError`` (``ValueError``) -- unknown keys or invalid values.

Audit relevance:
    Every successful call emits a ``TIMELOCK_CONFIG_TRACE`` log entry naming
    the source file and the justification bounds in force, so an audit can
    tie a rejection to the configuration that produced it.
"""

from __future__ import annotations

import os
from pathlib import Path

from timelock_config.loader import load_config, parse_config, validate_config
from timelock_config.schema import TimeLockConfig
from timelock_kernel.logging_config import get_logger

_logger = get_logger("config")

DEFAULT_CONFIG_PATH = Path(__file__).parent / "defaults.yaml"
CONFIG_ENV_VAR = "TIMELOCK_CONFIG"

__all__ = [
    "CONFIG_ENV_VAR",
    "DEFAULT_CONFIG_PATH",
    "TimeLockConfig",
    "get_active_config",
    "load_config",
    "parse_config",
    "validate_config",
]


def get_active_config(path: Path | None = None) -> TimeLockConfig:
    """The ONLY public configuration entrypoint."""
    env_path = os.environ.get(CONFIG_ENV_VAR)
    source = path or (Path(env_path) if env_path else DEFAULT_CONFIG_PATH)

    config = load_config(source)

    _logger.info(
        "TIMELOCK_CONFIG_TRACE",
        extra={
            "trace_type": "TIMELOCK_CONFIG_TRACE",
            "source": str(source),
            "min_justification_length": config.min_justification_length,
            "max_justification_length": config.max_justification_length,
            "notification_type": config.notification_type,
        },
    )
    return config
