"""Shared typed models.

This module defines immutable data models used by the converter,
writer pool, remote adapter, and SDK to keep interfaces explicit.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Iterable, Mapping

AttributeValue = dict[str, Any]
ConvertedItem = dict[str, AttributeValue]
Batch = list[ConvertedItem]


class FieldKind(str, Enum):
    """Conversion rule applied to a column's raw text."""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    MAP = "map"
    BINARY = "binary"


@dataclass(frozen=True)
class ConversionSchema:
    """Schema-driven conversion rules for one tabular source.

    Attributes:
        field_kinds: Column name to conversion rule; unlisted columns are strings.
        columns: Explicit column order; empty means read the header row.
        key_columns: Column allow-list; empty means keep every column.
    """

    field_kinds: Mapping[str, FieldKind] = field(default_factory=dict)
    columns: tuple[str, ...] = ()
    key_columns: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        # Copy and seal the rules so callers cannot change them after construction.
        object.__setattr__(self, "field_kinds", MappingProxyType(dict(self.field_kinds)))

    @classmethod
    def build(
        cls,
        numeric_fields: Iterable[str] = (),
        boolean_fields: Iterable[str] = (),
        map_fields: Iterable[str] = (),
        binary_fields: Iterable[str] = (),
        columns: Iterable[str] = (),
        key_columns: Iterable[str] = (),
    ) -> "ConversionSchema":
        """Build a schema from per-kind column name lists.

        Blank names are dropped. When a column appears under several kinds
        the later kind in argument order wins.
        """
        field_kinds: dict[str, FieldKind] = {}
        for kind, names in (
            (FieldKind.NUMBER, numeric_fields),
            (FieldKind.BOOLEAN, boolean_fields),
            (FieldKind.MAP, map_fields),
            (FieldKind.BINARY, binary_fields),
        ):
            for name in _clean_names(names):
                field_kinds[name] = kind
        return cls(
            field_kinds=field_kinds,
            columns=_clean_names(columns),
            key_columns=_clean_names(key_columns),
        )

    def kind_for(self, column: str) -> FieldKind:
        """Return the conversion rule for a column."""
        return self.field_kinds.get(column, FieldKind.STRING)


@dataclass(frozen=True)
class ConversionIssue:
    """One field that was stored with a lenient default value.

    Attributes:
        row_number: One-based source row number, header included.
        column: Column name.
        kind: Conversion rule that rejected the text.
        raw_value: Original field text.
        reason: Short description of why conversion fell back.
    """

    row_number: int
    column: str
    kind: FieldKind
    raw_value: str
    reason: str


@dataclass(frozen=True)
class WorkerOutcome:
    """Final state of one writer pool worker."""

    worker_index: int
    batches_written: int
    records_written: int
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class ImportResult:
    """Run-level summary of a local import.

    Attributes:
        record_count: Records acknowledged by the sink.
        batch_count: Batches acknowledged by the sink.
        duration_seconds: Wall-clock time from start to completion.
        records_per_second: Effective throughput.
        worker_outcomes: Outcome reported by every worker.
        conversion_issue_count: Fields stored with lenient defaults.
    """

    record_count: int
    batch_count: int
    duration_seconds: float
    records_per_second: int
    worker_outcomes: tuple[WorkerOutcome, ...]
    conversion_issue_count: int = 0

    @property
    def succeeded(self) -> bool:
        return all(outcome.succeeded for outcome in self.worker_outcomes)

    @property
    def failed_workers(self) -> tuple[WorkerOutcome, ...]:
        return tuple(outcome for outcome in self.worker_outcomes if not outcome.succeeded)


@dataclass(frozen=True)
class InvocationResult:
    """Per-invocation metrics reported by the remote execution."""

    processed_count: int
    duration_ms: int


@dataclass(frozen=True)
class RemoteImportResult:
    """Summary of a remote import execution."""

    execution_arn: str
    invocations: tuple[InvocationResult, ...]

    @property
    def processed_count(self) -> int:
        return sum(invocation.processed_count for invocation in self.invocations)


def _clean_names(names: Iterable[str]) -> tuple[str, ...]:
    return tuple(name.strip() for name in names if name and name.strip())


def split_field_list(raw_value: str | None) -> tuple[str, ...]:
    """Split a comma-separated column list, dropping blank entries."""
    if not raw_value:
        return ()
    return _clean_names(raw_value.split(","))
