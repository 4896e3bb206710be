"""Kafka producer: the single shared publishing handle of the bridge."""

from __future__ import annotations

import threading
from concurrent.futures import Future, InvalidStateError
from contextlib import suppress
from typing import Any

import structlog
from confluent_kafka import KafkaError, KafkaException, Message, Producer

from hbase_kafka_bridge.config.models import BridgeConfig, KafkaConfig
from hbase_kafka_bridge.errors import DeliveryError
from hbase_kafka_bridge.streaming.auth import build_kafka_auth_config

logger = structlog.get_logger()

# How many poll slices ``send`` waits for room in a full local queue.
BUFFER_FULL_RETRIES = 50


def producer_settings(config: KafkaConfig) -> dict[str, Any]:
    """Build the librdkafka settings for an idempotent, all-acks producer."""
    settings: dict[str, Any] = {
        "bootstrap.servers": config.bootstrap_servers,
        "client.id": config.client_id,
    }
    if config.linger_ms is not None:
        settings["linger.ms"] = config.linger_ms
    settings.update(build_kafka_auth_config(config))
    settings.update(config.extra)
    # Whole-batch retries are only safe with these two.
    settings["acks"] = "all"
    settings["enable.idempotence"] = True
    return settings


def create_producer(config: KafkaConfig) -> Producer:
    """Create an idempotent Kafka producer."""
    return Producer(producer_settings(config))


class KafkaClient:
    """Future-returning wrapper around a ``confluent_kafka.Producer``.

    ``send`` never blocks on the broker: it enqueues the record and returns a
    ``concurrent.futures.Future`` that the delivery report resolves.  A
    daemon thread polls the producer so delivery callbacks fire while
    callers are blocked waiting on their futures.
    """

    def __init__(self, producer: Producer, *, poll_interval: float = 0.1) -> None:
        self._producer = producer
        self._poll_interval = poll_interval
        self._pending: set[Future[Message]] = set()
        self._pending_lock = threading.Lock()
        self._closed = threading.Event()
        self._poller = threading.Thread(
            target=self._poll_loop, name="kafka-delivery-poller", daemon=True
        )
        self._poller.start()

    @classmethod
    def from_config(cls, config: BridgeConfig) -> KafkaClient:
        return cls(
            create_producer(config.kafka), poll_interval=config.poll_interval_seconds
        )

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    @property
    def in_flight(self) -> int:
        with self._pending_lock:
            return len(self._pending)

    def send(self, topic: str, key: bytes, value: bytes) -> Future[Message]:
        """Enqueue one record; the returned future resolves on delivery."""
        future: Future[Message] = Future()
        # Checked together with registration so close() sweeps every future
        # it did not refuse.
        with self._pending_lock:
            if self._closed.is_set():
                msg = "producer is closed"
                raise DeliveryError(msg)
            self._pending.add(future)

        def _on_delivery(err: KafkaError | None, msg: Message) -> None:
            self._settle(future, topic, err, msg)

        for _ in range(BUFFER_FULL_RETRIES):
            try:
                self._producer.produce(
                    topic=topic, key=key, value=value, on_delivery=_on_delivery
                )
                return future
            except BufferError:
                self._producer.poll(self._poll_interval)
            except KafkaException as exc:
                err = exc.args[0] if exc.args else None
                self._fail(future, DeliveryError(f"produce to {topic} failed", err))
                return future

        self._fail(future, DeliveryError(f"local producer queue full for {topic}"))
        return future

    def flush(self, timeout: float) -> int:
        """Wait for outstanding deliveries; returns the count still queued."""
        return self._producer.flush(timeout=timeout)

    def close(self, timeout: float) -> None:
        """Stop polling, drain within *timeout*, and fail anything undelivered."""
        with self._pending_lock:
            if self._closed.is_set():
                return
            self._closed.set()
        self._poller.join(timeout=max(self._poll_interval * 2, 1.0))
        try:
            remaining = self._producer.flush(timeout=timeout)
            if remaining:
                logger.warning("producer.undelivered_on_close", remaining=remaining)
        finally:
            with self._pending_lock:
                orphans = list(self._pending)
                self._pending.clear()
            for future in orphans:
                self._fail(future, DeliveryError("producer closed before delivery"))

    def _poll_loop(self) -> None:
        while not self._closed.is_set():
            try:
                self._producer.poll(self._poll_interval)
            except KafkaException as exc:
                logger.error("producer.poll_failed", error=str(exc))

    def _settle(
        self,
        future: Future[Message],
        topic: str,
        err: KafkaError | None,
        msg: Message,
    ) -> None:
        with self._pending_lock:
            self._pending.discard(future)
        # A future cancelled by its waiter can no longer take a result.
        with suppress(InvalidStateError):
            if err is not None:
                future.set_exception(
                    DeliveryError(f"delivery to {topic} failed: {err}", err)
                )
            else:
                future.set_result(msg)

    def _fail(self, future: Future[Message], exc: DeliveryError) -> None:
        with self._pending_lock:
            self._pending.discard(future)
        with suppress(InvalidStateError):
            future.set_exception(exc)
