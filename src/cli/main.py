"""Appsload CLI entry point.

This module maps command-line flags onto the runtime config and runs
one load sweep over the matching input files.
"""

from __future__ import annotations

import argparse
from dataclasses import replace
from typing import Sequence

from core.config import (
    LoaderConfig,
    build_shard_table,
    parse_log_path,
    parse_positive_float,
    parse_positive_int,
)
from core.constants import DEVICE_TYPES
from ingest.run_supervisor import load_installed_apps


def build_parser() -> argparse.ArgumentParser:
    """Build the CLI parser.

    Flags left unset fall back to ``APPSLOAD_*`` environment values.

    Returns:
        Configured argument parser.
    """
    parser = argparse.ArgumentParser(
        prog="appsload",
        description="Load installed-apps logs into device-type memcached shards",
    )
    for device_type in DEVICE_TYPES:
        parser.add_argument(f"--{device_type}", help=f"{device_type} memcached address host:port")
    parser.add_argument("--pattern", help="Glob pattern of gzip input files")
    parser.add_argument("--log", help="Append log events to this file instead of stdout")
    parser.add_argument("--workers", help="Number of files processed concurrently")
    parser.add_argument("--parser-multiplier", help="Parser threads per file, per file worker")
    parser.add_argument(
        "--uploader-multiplier", help="Uploader threads per file, per file worker"
    )
    parser.add_argument("--queue-capacity", help="Capacity of each line and upload queue")
    parser.add_argument("--timeout", help="Memcached connect and socket timeout in seconds")
    parser.add_argument(
        "--dry",
        action="store_true",
        help="Log writes instead of sending them to memcached",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the appsload CLI.

    Args:
        argv: Optional argument vector.

    Returns:
        ``0`` when every discovered file was marked done, ``1`` otherwise.
    """
    args = build_parser().parse_args(argv)
    config = build_config(args, LoaderConfig.from_env())
    summary = load_installed_apps(config)
    return 1 if summary.skipped_files else 0


def build_config(args: argparse.Namespace, base: LoaderConfig) -> LoaderConfig:
    """Overlay parsed flags on an environment-derived config.

    Args:
        args: Parsed CLI args.
        base: Config built from the environment.

    Returns:
        Config with every provided flag applied.
    """
    addresses = {
        device_type: str(address) for device_type, address in base.shard_table.addresses.items()
    }
    for device_type in DEVICE_TYPES:
        override = getattr(args, device_type)
        if override:
            addresses[device_type] = override
    config = replace(base, shard_table=build_shard_table(addresses))
    if args.pattern:
        config = replace(config, pattern=args.pattern)
    if args.log:
        config = replace(config, log_path=parse_log_path(args.log))
    if args.workers:
        config = replace(config, file_workers=parse_positive_int("--workers", args.workers))
    if args.parser_multiplier:
        config = replace(
            config,
            parser_multiplier=parse_positive_int("--parser-multiplier", args.parser_multiplier),
        )
    if args.uploader_multiplier:
        config = replace(
            config,
            uploader_multiplier=parse_positive_int(
                "--uploader-multiplier", args.uploader_multiplier
            ),
        )
    if args.queue_capacity:
        config = replace(
            config, queue_capacity=parse_positive_int("--queue-capacity", args.queue_capacity)
        )
    if args.timeout:
        config = replace(config, memcache_timeout=parse_positive_float("--timeout", args.timeout))
    if args.dry:
        config = replace(config, dry_run=True)
    return config
