"""Shared fixtures: an in-memory stand-in for confluent_kafka.Producer."""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any
from unittest.mock import MagicMock

import pytest

from hbase_kafka_bridge.config.models import BridgeConfig, KafkaConfig


@dataclass
class Produced:
    topic: str
    key: bytes
    value: bytes
    on_delivery: Callable[[Any, Any], None]


@dataclass
class FakeProducer:
    """Queues delivery callbacks and fires them from poll()/flush().

    ``errors`` maps a produce index to the KafkaError-like object its
    delivery report carries; ``hold`` lists indexes never delivered.
    """

    errors: dict[int, Any] = field(default_factory=dict)
    hold: set[int] = field(default_factory=set)
    produced: list[Produced] = field(default_factory=list)
    _queue: list[int] = field(default_factory=list)
    _lock: threading.Lock = field(default_factory=threading.Lock)
    flush_calls: list[float] = field(default_factory=list)

    def produce(self, *, topic, key, value, on_delivery):  # noqa: ANN001, ANN201
        with self._lock:
            self.produced.append(Produced(topic, key, value, on_delivery))
            self._queue.append(len(self.produced) - 1)

    def poll(self, timeout: float = 0) -> int:
        time.sleep(min(timeout, 0.005))
        return self._deliver()

    def flush(self, timeout: float = -1) -> int:
        self.flush_calls.append(timeout)
        self._deliver()
        with self._lock:
            return len(self._queue)

    def _deliver(self) -> int:
        with self._lock:
            ready = [i for i in self._queue if i not in self.hold]
            self._queue = [i for i in self._queue if i in self.hold]
        for i in ready:
            record = self.produced[i]
            msg = MagicMock()
            msg.topic.return_value = record.topic
            msg.key.return_value = record.key
            record.on_delivery(self.errors.get(i), msg)
        return len(ready)


@pytest.fixture()
def fake_producer() -> FakeProducer:
    return FakeProducer()


@pytest.fixture()
def bridge_config() -> BridgeConfig:
    return BridgeConfig(
        kafka=KafkaConfig(bootstrap_servers="broker1:9092,broker2:9092"),
        poll_interval_seconds=0.01,
        close_timeout_seconds=1.0,
    )
