"""Producer lifecycle: owns the shared Kafka client from start to stop."""

from __future__ import annotations

import threading
from collections.abc import Callable
from enum import StrEnum

import structlog

from hbase_kafka_bridge.config.models import BridgeConfig
from hbase_kafka_bridge.streaming.producer import KafkaClient

logger = structlog.get_logger()


class State(StrEnum):
    STOPPED = "stopped"
    STARTING = "starting"
    RUNNING = "running"
    STOPPING = "stopping"


class ProducerLifecycle:
    """Creates the client on ``start`` and drains/closes it on ``stop``.

    The client is published only once it is fully built and unpublished
    before it is drained, so a reader of :attr:`client` sees either a usable
    client or ``None``.  ``start`` and ``stop`` are no-ops outside their
    source state, which makes both idempotent.
    """

    def __init__(
        self,
        config: BridgeConfig,
        client_factory: Callable[[BridgeConfig], KafkaClient] = KafkaClient.from_config,
    ) -> None:
        self._config = config
        self._client_factory = client_factory
        self._client: KafkaClient | None = None
        self._state = State.STOPPED
        self._transition_lock = threading.Lock()

    @property
    def state(self) -> State:
        return self._state

    @property
    def client(self) -> KafkaClient | None:
        return self._client

    @property
    def running(self) -> bool:
        return self._state == State.RUNNING

    def start(self) -> None:
        with self._transition_lock:
            if self._state != State.STOPPED:
                logger.debug("lifecycle.start_ignored", state=self._state.value)
                return
            self._state = State.STARTING
            try:
                client = self._client_factory(self._config)
            except Exception:
                self._state = State.STOPPED
                logger.exception("lifecycle.start_failed")
                raise
            self._client = client
            self._state = State.RUNNING
        logger.info(
            "lifecycle.started",
            bootstrap_servers=self._config.kafka.bootstrap_servers,
        )

    def stop(self) -> None:
        with self._transition_lock:
            if self._state != State.RUNNING:
                logger.debug("lifecycle.stop_ignored", state=self._state.value)
                return
            self._state = State.STOPPING
            client = self._client
            self._client = None
            try:
                if client is not None:
                    client.close(timeout=self._config.close_timeout_seconds)
            except Exception as exc:  # noqa: BLE001 - shutdown always completes
                logger.warning("lifecycle.close_failed", error=str(exc))
            finally:
                self._state = State.STOPPED
        logger.info("lifecycle.stopped")
