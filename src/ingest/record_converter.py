"""Schema-driven conversion of delimited rows into DynamoDB items.

The converter owns the header row, applies per-column conversion rules,
drops empty fields, and groups items into write-sized batches.
"""

from __future__ import annotations

from typing import Callable, NamedTuple

from core.constants import DYNAMODB_BATCH_SIZE
from core.errors import DynaloadSourceError, FieldCountMismatchError
from core.types import AttributeValue, ConversionIssue, ConversionSchema, ConvertedItem
from ingest.attribute_values import convert_field
from ingest.source_reader import SourceRowReader

IssueHandler = Callable[[ConversionIssue], None]


class BatchRead(NamedTuple):
    """Result of one ``read_batch`` call.

    ``finished`` is set when input ran out; ``items`` may then be partial or empty.
    """

    items: list[ConvertedItem]
    count: int
    finished: bool


class RecordConverter:
    """Convert source rows into DynamoDB items."""

    def __init__(
        self,
        rows: SourceRowReader,
        schema: ConversionSchema | None = None,
        on_issue: IssueHandler | None = None,
    ) -> None:
        """Create a converter and resolve its column names.

        Args:
            rows: Row reader positioned at the start of input.
            schema: Conversion rules; every column is a string when omitted.
            on_issue: Called for every field stored with a lenient default.

        Raises:
            DynaloadSourceError: If no explicit columns are given and input has no header.
        """
        self._rows = rows
        self._schema = schema or ConversionSchema()
        self._on_issue = on_issue
        self._included = frozenset(self._schema.key_columns)
        self._columns = self._resolve_columns()
        self.issue_count = 0

    def read(self) -> ConvertedItem | None:
        """Read and convert a single row.

        Returns:
            The converted item, or None at end of input.

        Raises:
            FieldCountMismatchError: If the row arity differs from the header arity.
            DynaloadSourceError: If the source cannot be parsed.
        """
        record = self._rows.read()
        if record is None:
            return None
        row_number = self._rows.line_number
        if len(record) != len(self._columns):
            raise FieldCountMismatchError(row_number, len(self._columns), len(record))
        item: ConvertedItem = {}
        for column, raw in zip(self._columns, record):
            if self._included and column not in self._included:
                continue
            if not raw:
                continue
            item[column] = self._convert(row_number, column, raw)
        return item

    def read_batch(self, batch_size: int = DYNAMODB_BATCH_SIZE) -> BatchRead:
        """Read up to ``batch_size`` items.

        Raises:
            FieldCountMismatchError: If any row in the batch has the wrong arity.
        """
        items: list[ConvertedItem] = []
        while len(items) < batch_size:
            item = self.read()
            if item is None:
                return BatchRead(items=items, count=len(items), finished=True)
            items.append(item)
        return BatchRead(items=items, count=len(items), finished=False)

    def _resolve_columns(self) -> tuple[str, ...]:
        if self._schema.columns:
            return self._schema.columns
        header = self._rows.read()
        if header is None:
            raise DynaloadSourceError(
                "Failed to read header row: input is empty. "
                "Add a header row or pass an explicit column list."
            )
        return tuple(header)

    def _convert(self, row_number: int, column: str, raw: str) -> AttributeValue:
        kind = self._schema.kind_for(column)
        value, reason = convert_field(kind, raw)
        if reason is not None:
            self.issue_count += 1
            if self._on_issue is not None:
                self._on_issue(
                    ConversionIssue(
                        row_number=row_number,
                        column=column,
                        kind=kind,
                        raw_value=raw,
                        reason=reason,
                    )
                )
        return value
