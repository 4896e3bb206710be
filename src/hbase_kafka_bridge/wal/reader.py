"""JSON-lines batch reader used to replay captured WAL batches.

One entry per line, cells in the same shape the bridge publishes::

    {"table": "ns:tbl", "cells": [{"row_b64": "...", "family_b64": "...",
      "qualifier_b64": "...", "value_b64": "...", "ts": 1000, "type": 4}]}

``"table": null`` and ``"cells": null`` are kept as-is so replays exercise
the same skip rules as live batches.
"""

from __future__ import annotations

import base64
import binascii
import json
from collections.abc import Iterator
from pathlib import Path
from typing import Any

from hbase_kafka_bridge.wal.models import Cell, CellType, LogEntry, TableName


def _decode_b64(raw: dict[str, Any], field: str) -> bytes:
    return base64.b64decode(raw.get(field) or "", validate=True)


def parse_cell(raw: dict[str, Any] | None) -> Cell | None:
    if raw is None:
        return None
    return Cell(
        row=_decode_b64(raw, "row_b64"),
        family=_decode_b64(raw, "family_b64"),
        qualifier=_decode_b64(raw, "qualifier_b64"),
        value=_decode_b64(raw, "value_b64"),
        timestamp=int(raw.get("ts", 0)),
        type_code=int(raw.get("type", CellType.PUT)),
    )


def parse_entry(raw: dict[str, Any]) -> LogEntry:
    table = raw.get("table")
    cells = raw.get("cells")
    return LogEntry(
        table=TableName.value_of(table) if table else None,
        cells=None if cells is None else [parse_cell(c) for c in cells],
    )


def iter_entries(path: str | Path) -> Iterator[LogEntry]:
    """Yield entries from a JSON-lines file, skipping blank lines."""
    p = Path(path)
    with p.open(encoding="utf-8") as f:
        for lineno, line in enumerate(f, start=1):
            if not line.strip():
                continue
            try:
                yield parse_entry(json.loads(line))
            except (ValueError, binascii.Error, AttributeError, TypeError) as exc:
                msg = f"Invalid WAL entry at {p}:{lineno}: {exc}"
                raise ValueError(msg) from exc


def read_batch(path: str | Path) -> list[LogEntry]:
    return list(iter_entries(path))
