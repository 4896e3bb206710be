"""Pydantic configuration models for the replication bridge."""

from __future__ import annotations

from enum import StrEnum
from typing import Self

from pydantic import BaseModel, Field, SecretStr, field_validator, model_validator

DEFAULT_TOPIC_PREFIX = "hbase-repl-"
DEFAULT_SEND_TIMEOUT_MS = 30000
DEFAULT_CLOSE_TIMEOUT_SECONDS = 30.0

# Producer settings the bridge relies on for safe whole-batch retries.
PROTECTED_PRODUCER_KEYS = frozenset({"acks", "enable.idempotence"})


class KafkaAuthMechanism(StrEnum):
    """Kafka SASL authentication mechanisms."""

    NONE = "none"
    SASL_PLAIN = "sasl_plain"
    SASL_SCRAM_256 = "sasl_scram_256"
    SASL_SCRAM_512 = "sasl_scram_512"


def _trim_to_none(value: str | None) -> str | None:
    if value is None:
        return None
    trimmed = value.strip()
    return trimmed or None


class KafkaConfig(BaseModel):
    """Kafka broker and producer settings."""

    bootstrap_servers: str
    client_id: str = "hbase-kafka-bridge"
    linger_ms: int | None = Field(default=None, ge=0)
    # Auth / security
    security_protocol: str = "PLAINTEXT"
    auth_mechanism: KafkaAuthMechanism = KafkaAuthMechanism.NONE
    sasl_username: str | None = None
    sasl_password: SecretStr | None = None
    ssl_ca_location: str | None = None
    # Free-form librdkafka producer properties
    extra: dict[str, str] = Field(default_factory=dict)

    @field_validator("bootstrap_servers", mode="before")
    @classmethod
    def require_bootstrap_servers(cls, v: object) -> object:
        if v is not None and not isinstance(v, str):
            return v
        trimmed = _trim_to_none(v)
        if trimmed is None:
            msg = "bootstrap_servers is required and must not be blank"
            raise ValueError(msg)
        return trimmed

    @field_validator("extra")
    @classmethod
    def reject_protected_keys(cls, v: dict[str, str]) -> dict[str, str]:
        clashes = sorted(PROTECTED_PRODUCER_KEYS & v.keys())
        if clashes:
            msg = f"extra producer properties may not override {', '.join(clashes)}"
            raise ValueError(msg)
        return v

    @model_validator(mode="after")
    def check_auth_requirements(self) -> Self:
        """Validate that auth-specific fields are present."""
        mech = self.auth_mechanism
        if mech != KafkaAuthMechanism.NONE and (
            not self.sasl_username or not self.sasl_password
        ):
            msg = (
                "sasl_username and sasl_password are required "
                f"when auth_mechanism is '{mech.value}'"
            )
            raise ValueError(msg)
        return self


class BridgeConfig(BaseModel):
    """Resolved configuration of one replication peer."""

    kafka: KafkaConfig
    # A fixed topic overrides per-table routing.
    topic: str | None = None
    topic_prefix: str = DEFAULT_TOPIC_PREFIX
    send_timeout_ms: int = Field(default=DEFAULT_SEND_TIMEOUT_MS, gt=0)
    close_timeout_seconds: float = Field(default=DEFAULT_CLOSE_TIMEOUT_SECONDS, gt=0)
    poll_interval_seconds: float = Field(default=0.1, gt=0)

    @field_validator("topic", mode="before")
    @classmethod
    def blank_topic_is_none(cls, v: object) -> object:
        if v is None or isinstance(v, str):
            return _trim_to_none(v)
        return v
