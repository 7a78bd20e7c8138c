"""
Service configuration schema.

Frozen dataclasses the loader fills from YAML.  Each section validates
itself on construction so an invalid file fails at startup, never halfway
through a request.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})


@dataclass(frozen=True)
class DatabaseConfig:
    """Connection settings passed to ``init_engine_from_url``."""

    url: str = "sqlite:///invoices.db"
    echo: bool = False
    pool_size: int = 20
    max_overflow: int = 10
    pool_timeout: int = 30
    pool_recycle: int = 1800

    def __post_init__(self) -> None:
        if not self.url:
            raise ValueError("database.url must not be empty")
        if self.pool_size < 1:
            raise ValueError(f"database.pool_size must be >= 1, got {self.pool_size}")
        if self.max_overflow < 0:
            raise ValueError(
                f"database.max_overflow must be >= 0, got {self.max_overflow}"
            )


@dataclass(frozen=True)
class ApiConfig:
    """HTTP surface settings."""

    prefix: str = "/api"
    host: str = "127.0.0.1"
    port: int = 5000
    default_page_size: int = 10
    max_page_size: int = 100
    cors_origins: str = "*"

    def __post_init__(self) -> None:
        if not self.prefix.startswith("/"):
            raise ValueError(f"api.prefix must start with '/', got {self.prefix!r}")
        if not 0 < self.port < 65536:
            raise ValueError(f"api.port out of range: {self.port}")
        if self.max_page_size < 1:
            raise ValueError(f"api.max_page_size must be >= 1, got {self.max_page_size}")
        if not 1 <= self.default_page_size <= self.max_page_size:
            raise ValueError(
                "api.default_page_size must be between 1 and api.max_page_size, "
                f"got {self.default_page_size}"
            )


@dataclass(frozen=True)
class AllocatorConfig:
    """Invoice number allocation."""

    max_attempts: int = 5

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError(
                f"allocator.max_attempts must be >= 1, got {self.max_attempts}"
            )


@dataclass(frozen=True)
class LoggingConfig:
    level: str = "INFO"

    def __post_init__(self) -> None:
        if self.level.upper() not in _LOG_LEVELS:
            raise ValueError(f"logging.level is not a log level: {self.level!r}")

    @property
    def level_number(self) -> int:
        return logging.getLevelName(self.level.upper())


@dataclass(frozen=True)
class ServiceConfig:
    """The complete runtime configuration."""

    name: str = "invoice-service"
    environment: str = "development"
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    api: ApiConfig = field(default_factory=ApiConfig)
    allocator: AllocatorConfig = field(default_factory=AllocatorConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
