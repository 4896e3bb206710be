"""Peer identity derivation.

The replication framework keys its per-peer bookkeeping (queues, replay
state) on a UUID.  The UUID must be stable across restarts for an unchanged
configuration, so it is derived from the settings that decide where data
goes rather than generated randomly.
"""

from __future__ import annotations

import hashlib
import uuid

from hbase_kafka_bridge.config.models import BridgeConfig
from hbase_kafka_bridge.errors import ConfigurationError

SEPARATOR = "|"


def name_uuid_from_bytes(name: bytes) -> uuid.UUID:
    """Version-3 UUID over *name* alone, with no namespace prefix.

    Matches ``java.util.UUID.nameUUIDFromBytes`` so identities agree with
    peers registered by the JVM endpoint.
    """
    digest = hashlib.md5(name, usedforsecurity=False).digest()
    return uuid.UUID(bytes=digest, version=3)


def derive_peer_id(
    bootstrap_servers: str | None,
    topic: str | None = None,
    topic_prefix: str | None = None,
) -> uuid.UUID:
    """Derive the peer UUID from the routing-relevant configuration.

    The prefix is hashed verbatim, exactly as the router prepends it.
    """
    servers = (bootstrap_servers or "").strip()
    if not servers:
        msg = "bootstrap_servers is required to derive a peer identity"
        raise ConfigurationError(msg)
    identity = SEPARATOR.join(
        [servers, (topic or "").strip(), topic_prefix or ""]
    )
    return name_uuid_from_bytes(identity.encode("utf-8"))


def peer_id_for(config: BridgeConfig) -> uuid.UUID:
    return derive_peer_id(
        config.kafka.bootstrap_servers, config.topic, config.topic_prefix
    )
