"""Unit tests for Kafka authentication settings."""

from hbase_kafka_bridge.config.models import KafkaAuthMechanism, KafkaConfig
from hbase_kafka_bridge.streaming.auth import build_kafka_auth_config


class TestBuildKafkaAuthConfig:
    def test_none(self):
        assert build_kafka_auth_config(KafkaConfig(bootstrap_servers="b:9092")) == {}

    def test_scram_with_ssl(self):
        cfg = KafkaConfig(
            bootstrap_servers="b:9092",
            security_protocol="SASL_SSL",
            auth_mechanism=KafkaAuthMechanism.SASL_SCRAM_256,
            sasl_username="bridge",
            sasl_password="pw",
            ssl_ca_location="/etc/ca.pem",
        )
        assert build_kafka_auth_config(cfg) == {
            "security.protocol": "SASL_SSL",
            "sasl.mechanism": "SCRAM-SHA-256",
            "sasl.username": "bridge",
            "sasl.password": "pw",
            "ssl.ca.location": "/etc/ca.pem",
        }

    def test_plain(self):
        cfg = KafkaConfig(
            bootstrap_servers="b:9092",
            auth_mechanism=KafkaAuthMechanism.SASL_PLAIN,
            sasl_username="u",
            sasl_password="p",
        )
        auth = build_kafka_auth_config(cfg)
        assert auth["sasl.mechanism"] == "PLAIN"
        assert "ssl.ca.location" not in auth
