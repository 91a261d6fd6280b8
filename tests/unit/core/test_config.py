"""Unit tests for core config parsing."""

from __future__ import annotations

import pytest

from core.config import LoaderConfig, parse_shard_address
from core.errors import AppsLoadConfigError
from core.types import ShardAddress


def test_from_env_uses_default_shards(monkeypatch: pytest.MonkeyPatch) -> None:
    """Defaults should map each device type to its local memcached port."""
    for device_type in ["IDFA", "GAID", "ADID", "DVID"]:
        monkeypatch.delenv(f"APPSLOAD_{device_type}", raising=False)

    config = LoaderConfig.from_env()

    assert config.shard_table.addresses["idfa"] == ShardAddress("127.0.0.1", 33013)
    assert config.shard_table.device_types == ("adid", "dvid", "gaid", "idfa")


def test_from_env_reads_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("APPSLOAD_GAID", "cache.internal:11211")
    monkeypatch.setenv("APPSLOAD_PATTERN", "/tmp/in/*.tsv.gz")
    monkeypatch.setenv("APPSLOAD_WORKERS", "3")
    monkeypatch.setenv("APPSLOAD_DRY_RUN", "yes")

    config = LoaderConfig.from_env()

    assert str(config.shard_table.addresses["gaid"]) == "cache.internal:11211"
    assert config.pattern == "/tmp/in/*.tsv.gz"
    assert config.file_workers == 3
    assert config.dry_run is True


def test_pipeline_widths_scale_with_file_workers(monkeypatch: pytest.MonkeyPatch) -> None:
    """Parser and uploader widths should be multiples of the file width."""
    monkeypatch.setenv("APPSLOAD_WORKERS", "3")
    monkeypatch.setenv("APPSLOAD_PARSER_MULTIPLIER", "2")
    monkeypatch.setenv("APPSLOAD_UPLOADER_MULTIPLIER", "5")

    widths = LoaderConfig.from_env().pipeline_widths()

    assert (widths.file_workers, widths.parser_workers, widths.uploader_workers) == (3, 6, 15)


@pytest.mark.parametrize(
    ("name", "value"),
    [
        ("APPSLOAD_WORKERS", "0"),
        ("APPSLOAD_WORKERS", "many"),
        ("APPSLOAD_QUEUE_CAPACITY", "-1"),
        ("APPSLOAD_MEMCACHE_TIMEOUT", "0"),
        ("APPSLOAD_MAX_ERROR_RATE", "1.5"),
        ("APPSLOAD_DRY_RUN", "maybe"),
        ("APPSLOAD_IDFA", "no-port"),
    ],
)
def test_from_env_raises_for_invalid_values(
    monkeypatch: pytest.MonkeyPatch, name: str, value: str
) -> None:
    """Config should fail fast with a config error for bad values."""
    monkeypatch.setenv(name, value)

    with pytest.raises(AppsLoadConfigError):
        LoaderConfig.from_env()


def test_parse_shard_address_rejects_out_of_range_port() -> None:
    with pytest.raises(AppsLoadConfigError):
        parse_shard_address("idfa", "127.0.0.1:70000")


def test_parse_shard_address_keeps_host_with_colons() -> None:
    assert parse_shard_address("idfa", "::1:33013") == ShardAddress("::1", 33013)
