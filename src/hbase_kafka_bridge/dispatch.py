"""Batch dispatch: WAL entries → concurrent Kafka sends → one boolean.

A batch is scattered as one asynchronous send per cell, then gathered
against a single absolute deadline.  The outcome is all-or-nothing: any
failed, cancelled or late send fails the whole batch, and the replication
framework resubmits it.  Sends already issued are never retracted; the
idempotent all-acks producer keeps the resubmission from duplicating them.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Iterator, Sequence
from concurrent.futures import Future
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

import structlog

from hbase_kafka_bridge.config.models import DEFAULT_SEND_TIMEOUT_MS
from hbase_kafka_bridge.errors import BatchTimeoutError
from hbase_kafka_bridge.streaming.encoding import Message, build_message
from hbase_kafka_bridge.streaming.topics import TopicRouter
from hbase_kafka_bridge.wal.models import LogEntry

logger = structlog.get_logger()


@runtime_checkable
class MessageSender(Protocol):
    """Anything that can enqueue a record and hand back a delivery future."""

    def send(self, topic: str, key: bytes, value: bytes) -> Future[Any]: ...


@dataclass(slots=True)
class DispatchResult:
    """Diagnostic outcome of one gather; only ``ok`` leaves the dispatcher."""

    ok: bool
    submitted: int = 0
    acknowledged: int = 0
    error: BaseException | None = None


def gather(
    futures: Sequence[Future[Any]],
    timeout_ms: int,
    *,
    clock: Callable[[], float] = time.monotonic,
) -> DispatchResult:
    """Wait for every future under one shared deadline.

    The deadline is fixed when gathering starts.  Each wait gets only what
    is left of it, and once nothing is left the batch fails without waiting
    on the remaining futures.
    """
    if not futures:
        return DispatchResult(ok=True)

    deadline = clock() + timeout_ms / 1000.0
    acknowledged = 0
    try:
        for future in futures:
            remaining = deadline - clock()
            if remaining <= 0:
                msg = f"batch deadline of {timeout_ms} ms exceeded"
                raise BatchTimeoutError(msg)
            try:
                future.result(timeout=remaining)
            except TimeoutError as exc:
                msg = f"batch deadline of {timeout_ms} ms exceeded"
                raise BatchTimeoutError(msg) from exc
            acknowledged += 1
    except Exception as exc:  # noqa: BLE001 - every failure is a failed batch
        return DispatchResult(
            ok=False,
            submitted=len(futures),
            acknowledged=acknowledged,
            error=exc,
        )
    return DispatchResult(ok=True, submitted=len(futures), acknowledged=acknowledged)


class BatchDispatcher:
    """Turns a batch of WAL entries into Kafka sends and reports one boolean."""

    def __init__(
        self,
        router: TopicRouter,
        timeout_ms: int = DEFAULT_SEND_TIMEOUT_MS,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._router = router
        self._timeout_ms = timeout_ms
        self._clock = clock

    @property
    def timeout_ms(self) -> int:
        return self._timeout_ms

    def iter_messages(self, entries: Sequence[LogEntry | None]) -> Iterator[Message]:
        """Yield messages in entry order, then cell order.

        Entries without a table or an edit, and absent cells, are skipped.
        """
        for entry in entries:
            if entry is None or entry.table is None or not entry.cells:
                continue
            topic = self._router.route(entry.table)
            for cell in entry.cells:
                if cell is None:
                    continue
                yield build_message(topic, entry.table, cell)

    def dispatch(
        self,
        entries: Sequence[LogEntry | None] | None,
        client: MessageSender | None,
    ) -> bool:
        """Publish every cell of *entries*; ``True`` only if all were acked."""
        if client is None:
            logger.warning("dispatch.no_client")
            return False
        if not entries:
            return True

        futures: list[Future[Any]] = []
        try:
            for message in self.iter_messages(entries):
                futures.append(client.send(message.topic, message.key, message.value))
        except Exception as exc:  # noqa: BLE001 - client torn down mid-batch
            logger.warning(
                "dispatch.submit_failed",
                entries=len(entries),
                submitted=len(futures),
                error=str(exc),
            )
            return False

        if not futures:
            return True

        result = gather(futures, self._timeout_ms, clock=self._clock)
        if not result.ok:
            logger.warning(
                "dispatch.failed",
                entries=len(entries),
                submitted=result.submitted,
                acknowledged=result.acknowledged,
                error=str(result.error),
                error_type=type(result.error).__name__,
            )
            return False
        logger.debug(
            "dispatch.acknowledged", entries=len(entries), messages=len(futures)
        )
        return True
