"""Unit tests for the Kafka replication endpoint."""

from __future__ import annotations

import json
import threading
import time
from collections.abc import Iterator
from unittest.mock import MagicMock

import pytest
from confluent_kafka import KafkaError
from wal_builders import make_entry

from hbase_kafka_bridge.endpoint import KafkaReplicationEndpoint, ReplicationEndpoint
from hbase_kafka_bridge.errors import ConfigurationError, DeliveryError
from hbase_kafka_bridge.identity import derive_peer_id
from hbase_kafka_bridge.streaming.producer import KafkaClient
from hbase_kafka_bridge.wal.models import LogEntry, TableName


@pytest.fixture()
def endpoint(
    bridge_config, fake_producer
) -> Iterator[KafkaReplicationEndpoint]:
    ep = KafkaReplicationEndpoint(
        client_factory=lambda cfg: KafkaClient(
            fake_producer, poll_interval=cfg.poll_interval_seconds
        )
    )
    ep.initialize(bridge_config)
    yield ep
    ep.stop()


class TestEndpointContract:
    def test_satisfies_protocol(self):
        assert isinstance(KafkaReplicationEndpoint(), ReplicationEndpoint)

    def test_peer_id(self, endpoint, bridge_config):
        assert endpoint.peer_id == derive_peer_id(
            bridge_config.kafka.bootstrap_servers, None, "hbase-repl-"
        )

    def test_peer_id_before_initialize(self):
        assert KafkaReplicationEndpoint().peer_id is None

    def test_start_before_initialize_raises(self):
        with pytest.raises(ConfigurationError):
            KafkaReplicationEndpoint().start()


class TestReplicateLifecycle:
    def test_before_initialize_returns_false(self):
        assert KafkaReplicationEndpoint().replicate([make_entry("t", b"r")]) is False

    def test_before_start_returns_false(self, endpoint, fake_producer):
        assert endpoint.replicate([make_entry("t", b"r")]) is False
        assert fake_producer.produced == []

    def test_after_stop_returns_false(self, endpoint, fake_producer):
        endpoint.start()
        endpoint.stop()
        assert endpoint.replicate([make_entry("t", b"r")]) is False
        assert fake_producer.produced == []

    def test_stop_twice(self, endpoint):
        endpoint.start()
        endpoint.stop()
        endpoint.stop()
        assert endpoint.running is False

    def test_context_manager(self, endpoint):
        with endpoint as ep:
            assert ep.running
        assert not endpoint.running


class TestReplicate:
    def test_publishes_one_message_per_cell(self, endpoint, fake_producer):
        endpoint.start()
        entries = [make_entry("ns:users", b"u1", b"u2"), make_entry("orders", b"o1")]
        assert endpoint.replicate(entries) is True
        produced = [(p.topic, p.key) for p in fake_producer.produced]
        assert produced == [
            ("hbase-repl-ns_users", b"u1"),
            ("hbase-repl-ns_users", b"u2"),
            ("hbase-repl-orders", b"o1"),
        ]
        assert json.loads(fake_producer.produced[2].value)["table"] == "orders"

    def test_empty_batch(self, endpoint, fake_producer):
        endpoint.start()
        assert endpoint.replicate([]) is True
        assert endpoint.replicate([LogEntry(TableName("t"), None)]) is True
        assert fake_producer.produced == []

    def test_broker_rejection_fails_batch(self, endpoint, fake_producer):
        fake_producer.errors[1] = KafkaError(KafkaError.NOT_ENOUGH_REPLICAS)
        endpoint.start()
        assert endpoint.replicate([make_entry("t", b"a", b"b", b"c")]) is False

    def test_retry_of_same_batch_succeeds(self, endpoint, fake_producer):
        fake_producer.errors[0] = KafkaError(KafkaError.NOT_ENOUGH_REPLICAS)
        endpoint.start()
        batch = [make_entry("t", b"a")]
        assert endpoint.replicate(batch) is False
        assert endpoint.replicate(batch) is True

    def test_never_raises(self, bridge_config):
        client = MagicMock()
        client.send.side_effect = DeliveryError("producer is closed")
        ep = KafkaReplicationEndpoint(client_factory=lambda cfg: client)
        ep.initialize(bridge_config)
        ep.start()
        assert ep.replicate([make_entry("t", b"a")]) is False

    def test_fixed_topic(self, bridge_config, fake_producer):
        cfg = bridge_config.model_copy(update={"topic": "wal-all"})
        ep = KafkaReplicationEndpoint(
            client_factory=lambda c: KafkaClient(fake_producer, poll_interval=0.01)
        )
        ep.initialize(cfg)
        with ep:
            assert ep.replicate([make_entry("a:b", b"1"), make_entry("c", b"2")])
        assert {p.topic for p in fake_producer.produced} == {"wal-all"}


class TestConcurrentStop:
    def test_stop_during_replicate_fails_batch_promptly(
        self, bridge_config, fake_producer
    ):
        fake_producer.hold.update({0, 1})
        cfg = bridge_config.model_copy(update={"send_timeout_ms": 30_000})
        ep = KafkaReplicationEndpoint(
            client_factory=lambda c: KafkaClient(fake_producer, poll_interval=0.01)
        )
        ep.initialize(cfg)
        ep.start()
        stopper = threading.Timer(0.1, ep.stop)
        stopper.start()
        try:
            started = time.monotonic()
            result = ep.replicate([make_entry("t", b"a", b"b")])
            elapsed = time.monotonic() - started
        finally:
            stopper.join(timeout=5)

        assert result is False
        assert elapsed < 5
        assert not ep.running
        assert len(fake_producer.produced) == 2
        assert ep.replicate([make_entry("t", b"c")]) is False
