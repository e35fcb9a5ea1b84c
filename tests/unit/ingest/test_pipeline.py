"""Unit tests for local import orchestration."""

from __future__ import annotations

from pathlib import Path

import pytest

from core.config import DynaloadConfig
from core.errors import FieldCountMismatchError
from core.job_description import JobConfiguration, JobDescription, JobSource, JobTarget
from core.types import ConversionSchema
from ingest.pipeline import LocalImportRunner, import_local
from tests.fakes import FakeLogger, RecordingWriter
from tests.fixture_paths import fixture_path


def _job(input_file: Path, concurrency: int = 4, **source_fields: object) -> JobDescription:
    return JobDescription(
        source=JobSource(input_file=str(input_file), **source_fields),  # type: ignore[arg-type]
        configuration=JobConfiguration(concurrency=concurrency),
        target=JobTarget(region="eu-west-1", table_name="demo"),
    )


def _write_rows(tmp_path: Path, row_count: int) -> Path:
    source_path = tmp_path / "rows.csv"
    lines = ["id,value"] + [f"r{index},{index}" for index in range(row_count)]
    source_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return source_path


def test_import_local_delivers_every_record_once(tmp_path: Path, fast_config: DynaloadConfig) -> None:
    """Every row should reach the sink exactly once in batches of at most 25."""
    writer = RecordingWriter()
    job = _job(_write_rows(tmp_path, 260), numeric_fields=("value",))

    result = import_local(job, fast_config, writer=writer)

    assert result.succeeded
    assert (result.record_count, result.batch_count) == (260, 11)
    assert sorted(item["id"]["S"] for item in writer.items) == sorted(f"r{i}" for i in range(260))
    assert max(len(batch) for batch in writer.batches) == 25
    assert writer.items[0]["value"] == {"N": writer.items[0]["id"]["S"][1:]}


def test_import_local_handles_empty_source(tmp_path: Path, fast_config: DynaloadConfig) -> None:
    """A header-only file should complete without writing any batch."""
    writer = RecordingWriter()

    result = import_local(_job(_write_rows(tmp_path, 0)), fast_config, writer=writer)

    assert (result.record_count, result.batch_count, result.succeeded) == (0, 0, True)
    assert writer.batches == []


def test_import_local_reports_sink_failure(tmp_path: Path, fast_config: DynaloadConfig) -> None:
    """A failing sink should yield a failed run result instead of hanging."""
    writer = RecordingWriter(fail_when=lambda items: True)

    result = import_local(_job(_write_rows(tmp_path, 500), concurrency=2), fast_config, writer=writer)

    assert result.succeeded is False
    assert len(result.failed_workers) == 2
    assert result.record_count == 0


def test_import_local_aborts_on_malformed_row(
    tmp_path: Path, fast_config: DynaloadConfig, monkeypatch: pytest.MonkeyPatch
) -> None:
    """A row with the wrong arity should abort the run with a source error."""
    fake_logger = FakeLogger()
    monkeypatch.setattr("ingest.pipeline._LOGGER", fake_logger)
    job = _job(fixture_path("csv/bad_arity.csv"))

    with pytest.raises(FieldCountMismatchError):
        import_local(job, fast_config, writer=RecordingWriter())

    assert fake_logger.names("error") == ["import_aborted"]


def test_import_local_counts_conversion_issues(
    fast_config: DynaloadConfig, monkeypatch: pytest.MonkeyPatch
) -> None:
    """Lenient conversions should be logged and counted, not dropped silently."""
    fake_logger = FakeLogger()
    monkeypatch.setattr("ingest.import_progress._LOGGER", fake_logger)
    writer = RecordingWriter()
    job = _job(fixture_path("csv/customers.csv"), boolean_fields=("active",))

    result = import_local(job, fast_config, writer=writer)

    assert result.conversion_issue_count == 1
    assert fake_logger.names("warning") == ["conversion_issue"]
    assert "import_completed" in fake_logger.names("info")


def test_runner_accepts_schema_override(tmp_path: Path, fast_config: DynaloadConfig) -> None:
    """An explicit schema should replace the job's column typing."""
    source_path = tmp_path / "keys.csv"
    source_path.write_text("pk,sk,payload\na,1,x\n", encoding="utf-8")
    writer = RecordingWriter()
    schema = ConversionSchema.build(numeric_fields=["sk"], key_columns=["pk", "sk"])

    LocalImportRunner(_job(source_path), fast_config, writer=writer, schema=schema).run()

    assert writer.items == [{"pk": {"S": "a"}, "sk": {"N": "1"}}]
