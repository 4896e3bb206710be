"""Replication endpoint: the surface the replication framework drives."""

from __future__ import annotations

import uuid
from collections.abc import Callable, Sequence
from types import TracebackType
from typing import Protocol, Self, runtime_checkable

import structlog

from hbase_kafka_bridge.config.models import BridgeConfig
from hbase_kafka_bridge.dispatch import BatchDispatcher
from hbase_kafka_bridge.errors import ConfigurationError
from hbase_kafka_bridge.identity import peer_id_for
from hbase_kafka_bridge.lifecycle import ProducerLifecycle
from hbase_kafka_bridge.streaming.producer import KafkaClient
from hbase_kafka_bridge.streaming.topics import TopicRouter
from hbase_kafka_bridge.wal.models import LogEntry

logger = structlog.get_logger()


@runtime_checkable
class ReplicationEndpoint(Protocol):
    """Contract between the replication framework and a peer.

    ``replicate`` returning ``False`` tells the framework to resubmit the
    identical batch later.
    """

    def initialize(self, config: BridgeConfig) -> None: ...

    def start(self) -> None: ...

    def stop(self) -> None: ...

    @property
    def peer_id(self) -> uuid.UUID | None: ...

    def replicate(self, entries: Sequence[LogEntry | None] | None) -> bool: ...


class KafkaReplicationEndpoint:
    """Replicates WAL entries into Kafka topics, one JSON message per cell."""

    def __init__(
        self,
        client_factory: Callable[[BridgeConfig], KafkaClient] = KafkaClient.from_config,
    ) -> None:
        self._client_factory = client_factory
        self._config: BridgeConfig | None = None
        self._peer_id: uuid.UUID | None = None
        self._dispatcher: BatchDispatcher | None = None
        self._lifecycle: ProducerLifecycle | None = None

    def initialize(self, config: BridgeConfig) -> None:
        if not config.kafka.bootstrap_servers.strip():
            msg = "Missing required config: kafka.bootstrap_servers"
            raise ConfigurationError(msg)
        self._config = config
        self._peer_id = peer_id_for(config)
        self._dispatcher = BatchDispatcher(
            TopicRouter.from_config(config), config.send_timeout_ms
        )
        self._lifecycle = ProducerLifecycle(config, self._client_factory)
        logger.info(
            "endpoint.initialized",
            peer_id=str(self._peer_id),
            topic=config.topic,
            topic_prefix=config.topic_prefix,
            send_timeout_ms=config.send_timeout_ms,
        )

    @property
    def config(self) -> BridgeConfig | None:
        return self._config

    @property
    def peer_id(self) -> uuid.UUID | None:
        return self._peer_id

    @property
    def running(self) -> bool:
        return self._lifecycle is not None and self._lifecycle.running

    def start(self) -> None:
        if self._lifecycle is None:
            msg = "endpoint must be initialized before start()"
            raise ConfigurationError(msg)
        self._lifecycle.start()

    def stop(self) -> None:
        if self._lifecycle is not None:
            self._lifecycle.stop()

    def replicate(self, entries: Sequence[LogEntry | None] | None) -> bool:
        lifecycle = self._lifecycle
        dispatcher = self._dispatcher
        if lifecycle is None or dispatcher is None:
            logger.warning("endpoint.replicate_before_initialize")
            return False
        # Read once: stop() may unpublish the client at any moment.
        client = lifecycle.client
        if client is None:
            return False
        return dispatcher.dispatch(entries, client)

    def __enter__(self) -> Self:
        self.start()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.stop()
