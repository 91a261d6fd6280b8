"""Unit tests for file discovery, dispatch, and completion marking."""

from __future__ import annotations

from pathlib import Path

from core.types import FileStatus, PipelineWidths
from ingest.file_pipeline import FilePipeline, discover_input_files, mark_file_done
from store.shard_router import ShardRouter
from tests.fake_clients import FakeCacheClient, FakeLogger, write_gzip_lines

_WIDTHS = PipelineWidths(file_workers=2, parser_workers=2, uploader_workers=2, queue_capacity=4)


def _lines(prefix: str, count: int) -> list[str]:
    return [f"idfa\t{prefix}{index}\t1.5\t2.5\t{index}" for index in range(count)]


def test_discover_input_files_skips_marked_and_directories(tmp_path: Path) -> None:
    """Discovery should return sorted unmarked files only."""
    write_gzip_lines(tmp_path / "b.tsv.gz", [])
    write_gzip_lines(tmp_path / "a.tsv.gz", [])
    write_gzip_lines(tmp_path / ".c.tsv.gz", [])
    (tmp_path / "d.tsv.gz").mkdir()

    found = discover_input_files(str(tmp_path / "*.tsv.gz"))

    assert [path.name for path in found] == ["a.tsv.gz", "b.tsv.gz"]


def test_mark_file_done_prefixes_name_in_place(tmp_path: Path) -> None:
    source = write_gzip_lines(tmp_path / "a.tsv.gz", [])

    marked = mark_file_done(source)

    assert marked == tmp_path / ".a.tsv.gz"
    assert marked.exists() and not source.exists()


def test_run_marks_each_clean_file_exactly_once(tmp_path: Path) -> None:
    """Clean files should report 0% errors and be renamed once."""
    client = FakeCacheClient()
    logger = FakeLogger()
    paths = [
        write_gzip_lines(tmp_path / f"part{index}.tsv.gz", _lines(f"f{index}-", 20))
        for index in range(3)
    ]
    pipeline = FilePipeline(ShardRouter({"idfa": client}, logger), _WIDTHS, 0.01, logger)

    outcomes = pipeline.run(paths)

    assert sorted(outcome.path.name for outcome in outcomes) == [path.name for path in paths]
    assert all(outcome.status is FileStatus.DONE for outcome in outcomes)
    assert all(outcome.error_rate == 0.0 for outcome in outcomes)
    assert sorted(path.name for path in tmp_path.iterdir()) == [
        ".part0.tsv.gz",
        ".part1.tsv.gz",
        ".part2.tsv.gz",
    ]
    assert len(client.writes) == 60
    assert logger.names("info").count("file_processed") == 3


def test_run_reports_high_error_rate_at_error_level(tmp_path: Path) -> None:
    """Files above the error threshold are still marked but logged as errors."""
    logger = FakeLogger()
    path = write_gzip_lines(tmp_path / "a.tsv.gz", _lines("ok", 3) + ["bad"])
    pipeline = FilePipeline(ShardRouter({"idfa": FakeCacheClient()}, logger), _WIDTHS, 0.1, logger)

    outcomes = pipeline.run([path])

    assert outcomes[0].error_rate == 0.25
    assert "file_processed_high_error_rate" in logger.names("error")
    assert (tmp_path / ".a.tsv.gz").exists()


def test_run_skips_unreadable_files_without_marking(tmp_path: Path) -> None:
    """Open and decompress failures should skip only the failing file."""
    logger = FakeLogger()
    good = write_gzip_lines(tmp_path / "good.tsv.gz", _lines("g", 5))
    not_gzip = tmp_path / "plain.tsv.gz"
    not_gzip.write_text("idfa\tx\t1\t2\t3\n", encoding="utf-8")
    missing = tmp_path / "missing.tsv.gz"
    pipeline = FilePipeline(ShardRouter({"idfa": FakeCacheClient()}, logger), _WIDTHS, 0.01, logger)

    outcomes = pipeline.run([good, not_gzip, missing])

    statuses = {outcome.path.name: outcome.status for outcome in outcomes}
    assert statuses == {
        "good.tsv.gz": FileStatus.DONE,
        "plain.tsv.gz": FileStatus.SKIPPED,
        "missing.tsv.gz": FileStatus.SKIPPED,
    }
    assert not_gzip.exists()
    assert (tmp_path / ".good.tsv.gz").exists()
    assert logger.names("error").count("file_skipped") == 2


def test_run_marks_empty_file(tmp_path: Path) -> None:
    logger = FakeLogger()
    path = write_gzip_lines(tmp_path / "empty.tsv.gz", [])
    pipeline = FilePipeline(ShardRouter({"idfa": FakeCacheClient()}, logger), _WIDTHS, 0.01, logger)

    outcomes = pipeline.run([path])

    assert outcomes[0].total_lines == 0 and outcomes[0].error_rate == 0.0
    assert (tmp_path / ".empty.tsv.gz").exists()


def test_run_skips_zero_byte_file_without_marking(tmp_path: Path) -> None:
    """An interrupted upload left as a zero-byte file should stay unmarked."""
    logger = FakeLogger()
    path = tmp_path / "zero.tsv.gz"
    path.write_bytes(b"")
    pipeline = FilePipeline(ShardRouter({"idfa": FakeCacheClient()}, logger), _WIDTHS, 0.01, logger)

    outcomes = pipeline.run([path])

    assert outcomes[0].status is FileStatus.SKIPPED
    assert path.exists() and not (tmp_path / ".zero.tsv.gz").exists()
