"""Kafka authentication config builder."""

from __future__ import annotations

from typing import Any

from hbase_kafka_bridge.config.models import KafkaAuthMechanism, KafkaConfig

_SASL_MECHANISMS = {
    KafkaAuthMechanism.SASL_PLAIN: "PLAIN",
    KafkaAuthMechanism.SASL_SCRAM_256: "SCRAM-SHA-256",
    KafkaAuthMechanism.SASL_SCRAM_512: "SCRAM-SHA-512",
}


def build_kafka_auth_config(config: KafkaConfig) -> dict[str, Any]:
    """Build confluent_kafka config dict entries for authentication.

    Returns a dict of config keys to merge into the Producer constructor
    arguments.
    """
    if config.auth_mechanism == KafkaAuthMechanism.NONE:
        return {}

    auth: dict[str, Any] = {
        "security.protocol": config.security_protocol,
        "sasl.mechanism": _SASL_MECHANISMS[config.auth_mechanism],
        "sasl.username": config.sasl_username,
        "sasl.password": (
            config.sasl_password.get_secret_value() if config.sasl_password else ""
        ),
    }
    if config.ssl_ca_location:
        auth["ssl.ca.location"] = config.ssl_ca_location
    return auth
