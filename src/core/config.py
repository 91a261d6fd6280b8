"""Runtime configuration model for appsload.

This module owns all environment variable parsing and validation.
Other modules consume a typed config object instead of raw env reads.
"""

from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path
from typing import Mapping

from core.constants import (
    DEFAULT_FILE_WORKERS,
    DEFAULT_MAX_ERROR_RATE,
    DEFAULT_MEMCACHE_TIMEOUT_SECONDS,
    DEFAULT_PARSER_MULTIPLIER,
    DEFAULT_PATTERN,
    DEFAULT_QUEUE_CAPACITY,
    DEFAULT_SHARD_ADDRESSES,
    DEFAULT_UPLOADER_MULTIPLIER,
    DEVICE_TYPES,
)
from core.errors import AppsLoadConfigError
from core.types import PipelineWidths, ShardAddress, ShardTable

_TRUE_VALUES = ("1", "true", "yes", "on")
_FALSE_VALUES = ("0", "false", "no", "off", "")


@dataclass(frozen=True)
class LoaderConfig:
    """Validated runtime configuration.

    Attributes:
        shard_table: Memcached address per device type.
        pattern: Glob pattern selecting input files.
        log_path: Optional log file; stdout when unset.
        file_workers: Files processed concurrently.
        parser_multiplier: Parser threads per file, per file worker.
        uploader_multiplier: Uploader threads per file, per file worker.
        queue_capacity: Capacity of each per-file line and upload queue.
        memcache_timeout: Connect and socket timeout in seconds.
        max_error_rate: Error rate above which a file is reported as failing.
        dry_run: Log writes instead of sending them to memcached.
    """

    shard_table: ShardTable
    pattern: str
    log_path: Path | None
    file_workers: int
    parser_multiplier: int
    uploader_multiplier: int
    queue_capacity: int
    memcache_timeout: float
    max_error_rate: float
    dry_run: bool

    @classmethod
    def from_env(cls) -> "LoaderConfig":
        """Build config from process environment variables.

        Returns:
            A validated config object.

        Raises:
            AppsLoadConfigError: If environment values are invalid.
        """
        addresses = {
            device_type: os.getenv(
                f"APPSLOAD_{device_type.upper()}", DEFAULT_SHARD_ADDRESSES[device_type]
            )
            for device_type in DEVICE_TYPES
        }
        log_path_value = os.getenv("APPSLOAD_LOG_PATH")
        return cls(
            shard_table=build_shard_table(addresses),
            pattern=os.getenv("APPSLOAD_PATTERN", DEFAULT_PATTERN),
            log_path=parse_log_path(log_path_value),
            file_workers=parse_positive_int(
                "APPSLOAD_WORKERS", os.getenv("APPSLOAD_WORKERS", str(DEFAULT_FILE_WORKERS))
            ),
            parser_multiplier=parse_positive_int(
                "APPSLOAD_PARSER_MULTIPLIER",
                os.getenv("APPSLOAD_PARSER_MULTIPLIER", str(DEFAULT_PARSER_MULTIPLIER)),
            ),
            uploader_multiplier=parse_positive_int(
                "APPSLOAD_UPLOADER_MULTIPLIER",
                os.getenv("APPSLOAD_UPLOADER_MULTIPLIER", str(DEFAULT_UPLOADER_MULTIPLIER)),
            ),
            queue_capacity=parse_positive_int(
                "APPSLOAD_QUEUE_CAPACITY",
                os.getenv("APPSLOAD_QUEUE_CAPACITY", str(DEFAULT_QUEUE_CAPACITY)),
            ),
            memcache_timeout=parse_positive_float(
                "APPSLOAD_MEMCACHE_TIMEOUT",
                os.getenv("APPSLOAD_MEMCACHE_TIMEOUT", str(DEFAULT_MEMCACHE_TIMEOUT_SECONDS)),
            ),
            max_error_rate=_parse_error_rate(
                os.getenv("APPSLOAD_MAX_ERROR_RATE", str(DEFAULT_MAX_ERROR_RATE))
            ),
            dry_run=_parse_bool("APPSLOAD_DRY_RUN", os.getenv("APPSLOAD_DRY_RUN", "false")),
        )

    def pipeline_widths(self) -> PipelineWidths:
        """Derive worker pool sizes from the file worker width."""
        return PipelineWidths(
            file_workers=self.file_workers,
            parser_workers=self.file_workers * self.parser_multiplier,
            uploader_workers=self.file_workers * self.uploader_multiplier,
            queue_capacity=self.queue_capacity,
        )


def build_shard_table(addresses: Mapping[str, str]) -> ShardTable:
    """Parse raw ``host:port`` strings into a shard table.

    Args:
        addresses: Raw address per device type.

    Returns:
        Immutable shard table.

    Raises:
        AppsLoadConfigError: If any address is invalid.
    """
    return ShardTable(
        addresses={
            device_type: parse_shard_address(device_type, raw_address)
            for device_type, raw_address in addresses.items()
        }
    )


def parse_shard_address(device_type: str, raw_value: str) -> ShardAddress:
    """Parse one ``host:port`` shard address.

    Args:
        device_type: Device type the address belongs to, for error context.
        raw_value: Raw address string.

    Returns:
        Parsed shard address.

    Raises:
        AppsLoadConfigError: If host or port is missing or invalid.
    """
    host, separator, port_value = raw_value.strip().rpartition(":")
    if not separator or not host or not port_value.isdigit():
        raise AppsLoadConfigError(
            f"Invalid memcached address for {device_type}: "
            f"expected host:port, got '{raw_value}'. "
            f"Set --{device_type} or APPSLOAD_{device_type.upper()} to host:port."
        )
    port = int(port_value)
    if not 0 < port < 65536:
        raise AppsLoadConfigError(
            f"Invalid memcached port for {device_type}: {port} is out of range 1-65535."
        )
    return ShardAddress(host=host, port=port)


def parse_log_path(raw_value: str | None) -> Path | None:
    """Resolve an optional log file path; empty means stdout."""
    if not raw_value:
        return None
    return Path(raw_value).expanduser().resolve()


def parse_positive_int(name: str, raw_value: str) -> int:
    """Parse a strictly positive integer setting.

    Args:
        name: Setting name for error messages.
        raw_value: Raw string value.

    Returns:
        Parsed integer.

    Raises:
        AppsLoadConfigError: If value is not a positive integer.
    """
    try:
        value = int(raw_value)
    except ValueError as error:
        raise AppsLoadConfigError(
            f"Invalid {name} value: expected integer, got '{raw_value}'. "
            f"Set {name} to a positive whole number."
        ) from error
    if value < 1:
        raise AppsLoadConfigError(
            f"Invalid {name} value: expected at least 1, got {value}."
        )
    return value


def parse_positive_float(name: str, raw_value: str) -> float:
    """Parse a strictly positive float setting.

    Raises:
        AppsLoadConfigError: If value is not a positive number.
    """
    try:
        value = float(raw_value)
    except ValueError as error:
        raise AppsLoadConfigError(
            f"Invalid {name} value: expected number, got '{raw_value}'."
        ) from error
    if not value > 0:
        raise AppsLoadConfigError(f"Invalid {name} value: expected positive number, got {value}.")
    return value


def _parse_error_rate(raw_value: str) -> float:
    try:
        value = float(raw_value)
    except ValueError as error:
        raise AppsLoadConfigError(
            "Invalid APPSLOAD_MAX_ERROR_RATE value: "
            f"expected number, got '{raw_value}'. "
            "Set APPSLOAD_MAX_ERROR_RATE to a fraction between 0 and 1."
        ) from error
    if not 0.0 <= value <= 1.0:
        raise AppsLoadConfigError(
            f"Invalid APPSLOAD_MAX_ERROR_RATE value: {value} is outside [0, 1]."
        )
    return value


def _parse_bool(name: str, raw_value: str) -> bool:
    normalized = raw_value.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    raise AppsLoadConfigError(
        f"Invalid {name} value: expected true or false, got '{raw_value}'."
    )
