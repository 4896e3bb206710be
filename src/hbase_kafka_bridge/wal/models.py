"""WAL entry data model: table names, cells and log entries."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from enum import IntEnum

DEFAULT_NAMESPACE = "default"
NAMESPACE_DELIMITER = ":"


class CellType(IntEnum):
    """HBase ``KeyValue.Type`` codes.

    Only used for readability; the bridge carries ``Cell.type_code`` through
    untouched and never rejects a code that is missing here.
    """

    MINIMUM = 0
    PUT = 4
    DELETE = 8
    DELETE_FAMILY_VERSION = 10
    DELETE_COLUMN = 12
    DELETE_FAMILY = 14
    MAXIMUM = 255


@dataclass(frozen=True, slots=True)
class TableName:
    """Namespace-qualified table identifier."""

    qualifier: str
    namespace: str = DEFAULT_NAMESPACE

    @classmethod
    def value_of(cls, name: str) -> TableName:
        """Parse ``"ns:table"`` or ``"table"`` (default namespace)."""
        namespace, sep, qualifier = name.partition(NAMESPACE_DELIMITER)
        if not sep:
            return cls(qualifier=namespace)
        return cls(qualifier=qualifier, namespace=namespace)

    @property
    def name_as_string(self) -> str:
        """Render the table the way HBase prints it.

        Tables in the default namespace render without the namespace part.
        """
        if self.namespace == DEFAULT_NAMESPACE:
            return self.qualifier
        return f"{self.namespace}{NAMESPACE_DELIMITER}{self.qualifier}"

    def __str__(self) -> str:
        return self.name_as_string


@dataclass(frozen=True, slots=True)
class Cell:
    """Smallest unit of a change record."""

    row: bytes
    family: bytes
    qualifier: bytes
    value: bytes
    timestamp: int
    type_code: int = CellType.PUT


@dataclass(slots=True)
class LogEntry:
    """One WAL entry: a table plus the cells of its edit.

    ``table`` may be ``None`` and ``cells`` may be ``None`` (no edit) for
    partial or administrative WAL records; such entries are skipped by the
    dispatcher rather than rejected.
    """

    table: TableName | None
    cells: Sequence[Cell | None] | None
