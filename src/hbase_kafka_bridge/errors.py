"""Exception taxonomy for the replication bridge."""

from __future__ import annotations

from typing import Any


class BridgeError(Exception):
    """Base class for all bridge errors."""


class ConfigurationError(BridgeError, ValueError):
    """Invalid or missing configuration. Fatal at initialization."""


class DeliveryError(BridgeError):
    """A single message was rejected by the broker or never delivered."""

    def __init__(self, message: str, kafka_error: Any | None = None) -> None:
        super().__init__(message)
        self.kafka_error = kafka_error

    @property
    def retriable(self) -> bool:
        if self.kafka_error is None:
            return False
        return bool(self.kafka_error.retriable())

    @property
    def fatal(self) -> bool:
        if self.kafka_error is None:
            return False
        return bool(self.kafka_error.fatal())


class BatchTimeoutError(BridgeError, TimeoutError):
    """The shared batch deadline expired before every send was acknowledged."""
