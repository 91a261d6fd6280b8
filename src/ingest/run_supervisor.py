"""Top-level driver for one load run.

The supervisor owns the log sink and the shard clients for the whole
run: it opens both once, sweeps every unmarked input file through the
file pipeline, reports totals, and releases them at the end.
"""

from __future__ import annotations

from functools import partial
import time
from typing import Any

from core.config import LoaderConfig
from core.logging_config import get_logger, open_log_sink
from core.types import RunSummary
from ingest.file_pipeline import FilePipeline, discover_input_files
from store.shard_router import ClientFactory, DryRunClient, ShardRouter, create_memcache_client


class LoadRunSupervisor:
    """Runs discovery, dispatch, and reporting for one batch sweep."""

    def __init__(self, config: LoaderConfig, client_factory: ClientFactory | None = None) -> None:
        self._config = config
        self._client_factory = client_factory or _default_client_factory(config)

    def run(self) -> RunSummary:
        """Load every unmarked input file and return the run summary."""
        with open_log_sink(self._config.log_path):
            logger = get_logger("appsload")
            return self._run(logger)

    def _run(self, logger: Any) -> RunSummary:
        started_at = time.monotonic()
        widths = self._config.pipeline_widths()
        router = ShardRouter.from_shard_table(
            self._config.shard_table, self._client_factory, logger
        )
        logger.info(
            "run_started",
            pattern=self._config.pattern,
            shards={
                device_type: str(address)
                for device_type, address in self._config.shard_table.addresses.items()
            },
            file_workers=widths.file_workers,
            parser_workers=widths.parser_workers,
            uploader_workers=widths.uploader_workers,
            dry_run=self._config.dry_run,
        )
        try:
            file_paths = discover_input_files(self._config.pattern)
            logger.info("input_files_discovered", file_count=len(file_paths))
            pipeline = FilePipeline(router, widths, self._config.max_error_rate, logger)
            outcomes = pipeline.run(file_paths)
        finally:
            router.close()
        summary = RunSummary(
            outcomes=tuple(outcomes),
            elapsed_seconds=time.monotonic() - started_at,
        )
        logger.info(
            "run_completed",
            processed_files=summary.processed_files,
            skipped_files=summary.skipped_files,
            total_lines=summary.total_lines,
            error_count=summary.error_count,
            elapsed_seconds=round(summary.elapsed_seconds, 3),
        )
        return summary


def load_installed_apps(
    config: LoaderConfig,
    client_factory: ClientFactory | None = None,
) -> RunSummary:
    """Load all unmarked installed-apps files into the cache shards.

    Args:
        config: Runtime configuration.
        client_factory: Optional shard client factory; defaults to
            memcached clients, or dry-run clients when configured.

    Returns:
        Summary with one outcome per discovered file.
    """
    return LoadRunSupervisor(config, client_factory).run()


def _default_client_factory(config: LoaderConfig) -> ClientFactory:
    if config.dry_run:
        return DryRunClient
    return partial(create_memcache_client, timeout=config.memcache_timeout)
