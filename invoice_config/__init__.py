"""
invoice_config -- single public entrypoint for service configuration.

Responsibility:
    Provides the ONLY way to obtain configuration at runtime through
    ``get_active_config()``.  No other component reads configuration
    files or environment variables directly.

Architecture position:
    Configuration.  Sits beside ``invoice_kernel`` and is consumed by
    ``invoice_api`` and ``scripts/serve.py``.  The kernel MUST NEVER import
    from ``invoice_config``; callers pass plain values (URLs, attempt
    counts) into kernel constructors.

Failure modes:
    - ``FileNotFoundError`` -- the selected configuration file is missing.
    - ``ValueError`` -- unknown keys, wrong types or out-of-range values.

Audit relevance:
    Every successful ``get_active_config()`` call emits a ``config_loaded``
    log entry naming the file, environment and database dialect.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path

from invoice_config.loader import (
    ENV_CONFIG_PATH,
    apply_environment,
    load_yaml_file,
    parse_config,
)
from invoice_config.schema import (
    AllocatorConfig,
    ApiConfig,
    DatabaseConfig,
    LoggingConfig,
    ServiceConfig,
)
from invoice_kernel.logging_config import get_logger

_logger = get_logger("config")

DEFAULT_CONFIG_PATH = Path(__file__).parent / "sets" / "default.yaml"


def get_active_config(
    config_path: Path | str | None = None,
    environ: Mapping[str, str] | None = None,
) -> ServiceConfig:
    """The ONLY public configuration entrypoint.

    Resolution order for the file: ``config_path``, then ``INVOICE_CONFIG``,
    then the bundled ``sets/default.yaml``.  ``DATABASE_URL`` and
    ``INVOICE_LOG_LEVEL`` override the file's values.

    Args:
        config_path: Explicit YAML file to load.
        environ: Environment mapping; defaults to ``os.environ``.

    Raises:
        FileNotFoundError: If the configuration file does not exist.
        ValueError: If the configuration is invalid.
    """
    env = os.environ if environ is None else environ
    path = Path(config_path or env.get(ENV_CONFIG_PATH) or DEFAULT_CONFIG_PATH)
    if not path.is_file():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    config = parse_config(apply_environment(load_yaml_file(path), env))

    _logger.info(
        "config_loaded",
        extra={
            "config_path": str(path),
            "environment": config.environment,
            "database_dialect": config.database.url.split(":", 1)[0],
            "log_level": config.logging.level,
        },
    )
    return config


__all__ = [
    "get_active_config",
    "DEFAULT_CONFIG_PATH",
    "ServiceConfig",
    "DatabaseConfig",
    "ApiConfig",
    "AllocatorConfig",
    "LoggingConfig",
]
