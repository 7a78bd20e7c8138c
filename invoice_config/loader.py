"""
Configuration Loader (``invoice_config.loader``).

Responsibility
--------------
Reads a YAML configuration file, applies environment overrides and parses
the result into the frozen ``invoice_config.schema`` dataclasses.  The
single public entry point for runtime config is
``invoice_config.get_active_config()``.

Invariants enforced
-------------------
* Unknown sections or keys are rejected with ``ValueError``; a typo never
  silently falls back to a default.
* Values must have the type of the field default (bool is not an int).
* Environment overrides win over the file.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Bad key, type or value  -> ``ValueError``.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

from invoice_config.schema import (
    AllocatorConfig,
    ApiConfig,
    DatabaseConfig,
    LoggingConfig,
    ServiceConfig,
)

ENV_CONFIG_PATH = "INVOICE_CONFIG"
ENV_DATABASE_URL = "DATABASE_URL"
ENV_LOG_LEVEL = "INVOICE_LOG_LEVEL"

_SECTIONS: dict[str, type] = {
    "database": DatabaseConfig,
    "api": ApiConfig,
    "allocator": AllocatorConfig,
    "logging": LoggingConfig,
}
_TOP_LEVEL_SCALARS = ("name", "environment")


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        ValueError: if the document is not a mapping.
    """
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Configuration root must be a mapping: {path}")
    return data


def _check_type(section: str, key: str, value: Any, default: Any) -> Any:
    expected = type(default)
    if expected is bool:
        ok = isinstance(value, bool)
    elif expected is int:
        ok = isinstance(value, int) and not isinstance(value, bool)
    else:
        ok = isinstance(value, expected)
    if not ok:
        raise ValueError(
            f"{section}.{key} must be {expected.__name__}, got {type(value).__name__}"
        )
    return value


def parse_section(name: str, data: Any) -> Any:
    """Parse one section mapping into its dataclass."""
    section_cls = _SECTIONS[name]
    if data is None:
        return section_cls()
    if not isinstance(data, Mapping):
        raise ValueError(f"Section {name!r} must be a mapping")

    defaults = {f.name: f.default for f in dataclasses.fields(section_cls)}
    unknown = sorted(set(data) - set(defaults))
    if unknown:
        raise ValueError(f"Unknown keys in {name!r}: {', '.join(unknown)}")

    values = {
        key: _check_type(name, key, value, defaults[key]) for key, value in data.items()
    }
    return section_cls(**values)


def parse_config(data: Mapping[str, Any]) -> ServiceConfig:
    """Parse a whole configuration mapping."""
    unknown = sorted(set(data) - set(_SECTIONS) - set(_TOP_LEVEL_SCALARS))
    if unknown:
        raise ValueError(f"Unknown configuration sections: {', '.join(unknown)}")

    scalars = {}
    for key in _TOP_LEVEL_SCALARS:
        if key in data:
            if not isinstance(data[key], str):
                raise ValueError(f"{key} must be str")
            scalars[key] = data[key]

    sections = {name: parse_section(name, data.get(name)) for name in _SECTIONS}
    return ServiceConfig(**scalars, **sections)


def apply_environment(
    data: Mapping[str, Any], environ: Mapping[str, str]
) -> dict[str, Any]:
    """Return a copy of ``data`` with DATABASE_URL and INVOICE_LOG_LEVEL applied."""
    merged = {
        key: dict(value) if isinstance(value, Mapping) else value
        for key, value in data.items()
    }
    if environ.get(ENV_DATABASE_URL):
        merged["database"] = {
            **(merged.get("database") or {}),
            "url": environ[ENV_DATABASE_URL],
        }
    if environ.get(ENV_LOG_LEVEL):
        merged["logging"] = {
            **(merged.get("logging") or {}),
            "level": environ[ENV_LOG_LEVEL].upper(),
        }
    return merged
