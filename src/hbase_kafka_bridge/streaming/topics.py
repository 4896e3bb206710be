"""Topic routing: HBase table → Kafka topic name."""

from __future__ import annotations

from hbase_kafka_bridge.config.models import DEFAULT_TOPIC_PREFIX, BridgeConfig
from hbase_kafka_bridge.wal.models import TableName

# Characters legal in HBase table names but not in Kafka topic names.
_TOPIC_UNSAFE = str.maketrans({":": "_", "/": "_"})


def normalize_table_name(name: str) -> str:
    """Replace namespace and path separators with ``_``."""
    return name.translate(_TOPIC_UNSAFE)


class TopicRouter:
    """Resolves the destination topic for a source table.

    With a fixed topic every table funnels into it; otherwise each table
    gets ``<prefix><normalized table name>``.
    """

    def __init__(
        self, fixed_topic: str | None = None, prefix: str = DEFAULT_TOPIC_PREFIX
    ) -> None:
        self._fixed_topic = fixed_topic
        self._prefix = prefix

    @classmethod
    def from_config(cls, config: BridgeConfig) -> TopicRouter:
        return cls(fixed_topic=config.topic, prefix=config.topic_prefix)

    @property
    def fixed_topic(self) -> str | None:
        return self._fixed_topic

    def route(self, table: TableName) -> str:
        if self._fixed_topic is not None:
            return self._fixed_topic
        return self._prefix + normalize_table_name(table.name_as_string)
