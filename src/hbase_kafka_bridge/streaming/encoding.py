"""Cell → Kafka message encoding.

Each cell becomes one compact JSON object::

    {"table":"ns:tbl","row_b64":"...","family_b64":"...",
     "qualifier_b64":"...","value_b64":"...","ts":1000,"type":4}

Field order is fixed so payloads are byte-for-byte reproducible.  Binary
fields use standard base64; ``ts`` and ``type`` are bare integers copied
from the cell.
"""

from __future__ import annotations

import base64
import json
from dataclasses import dataclass

from hbase_kafka_bridge.wal.models import Cell, TableName

FIELD_ORDER = (
    "table",
    "row_b64",
    "family_b64",
    "qualifier_b64",
    "value_b64",
    "ts",
    "type",
)


@dataclass(frozen=True, slots=True)
class Message:
    """One record bound for Kafka. ``key`` is the raw row key."""

    topic: str
    key: bytes
    value: bytes


def _b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def encode_cell(table: TableName, cell: Cell) -> bytes:
    """Serialize *cell* into the JSON payload described in the module docstring."""
    payload = {
        "table": table.name_as_string,
        "row_b64": _b64(cell.row),
        "family_b64": _b64(cell.family),
        "qualifier_b64": _b64(cell.qualifier),
        "value_b64": _b64(cell.value),
        "ts": int(cell.timestamp),
        "type": int(cell.type_code),
    }
    # ensure_ascii=False: only '"', '\\' and control characters are escaped,
    # control characters as lowercase \u00xx. Lone surrogates become "?".
    return json.dumps(payload, ensure_ascii=False, separators=(",", ":")).encode(
        "utf-8", errors="replace"
    )


def build_message(topic: str, table: TableName, cell: Cell) -> Message:
    return Message(topic=topic, key=bytes(cell.row), value=encode_cell(table, cell))
