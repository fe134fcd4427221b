"""
Configuration Loader (``timelock_config.loader``).

Responsibility
--------------
Loads a YAML document and parses it into a validated ``TimeLockConfig``.
Services never call this; the runtime entry point is
``timelock_config.get_active_config()``.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Unknown keys or out-of-range values  -> ``PolicyConfigError``
  (a ``ValueError``).
"""

from __future__ import annotations

from dataclasses import fields
from pathlib import Path
from typing import Any

import yaml

from timelock_config.schema import TimeLockConfig
from timelock_kernel.exceptions import PolicyConfigError

_INT_FIELDS = (
    "min_justification_length",
    "max_justification_length",
    "max_ack_note_length",
    "max_entry_note_length",
)


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def parse_config(data: dict[str, Any]) -> TimeLockConfig:
    """
    Parse and validate a ``TimeLockConfig`` from a dict.

    The document may nest everything under a top-level ``timelock`` key.
    """
    section = data.get("timelock", data)
    if not isinstance(section, dict):
        raise PolicyConfigError("timelock", "expected a mapping")

    known = {f.name for f in fields(TimeLockConfig)}
    unknown = sorted(set(section) - known)
    if unknown:
        raise PolicyConfigError(unknown[0], "unknown configuration key")

    config = TimeLockConfig(**section)
    validate_config(config)
    return config


def validate_config(config: TimeLockConfig) -> None:
    """Reject values the workflow cannot operate with."""
    for name in _INT_FIELDS:
        value = getattr(config, name)
        if not isinstance(value, int) or isinstance(value, bool) or value < 1:
            raise PolicyConfigError(name, f"must be a positive integer, got {value!r}")

    if config.min_justification_length > config.max_justification_length:
        raise PolicyConfigError(
            "min_justification_length",
            "cannot exceed max_justification_length",
        )
    if "{audit_id}" not in config.declaration_path_template:
        raise PolicyConfigError(
            "declaration_path_template", "must contain the {audit_id} placeholder"
        )
    if "{timesheet_id}" not in config.timesheet_path_template:
        raise PolicyConfigError(
            "timesheet_path_template", "must contain the {timesheet_id} placeholder"
        )


def load_config(path: Path) -> TimeLockConfig:
    """Load and validate a configuration file."""
    return parse_config(load_yaml_file(path))
