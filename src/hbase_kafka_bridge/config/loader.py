"""YAML + environment variable config loader."""

from __future__ import annotations

import os
import re
from collections.abc import Mapping
from pathlib import Path
from typing import Any, cast

import yaml
from pydantic import ValidationError

from hbase_kafka_bridge.config.models import BridgeConfig
from hbase_kafka_bridge.errors import ConfigurationError

# Matches ${VAR} or ${VAR:-default}
_ENV_PATTERN = re.compile(r"\$\{([^}:]+)(?::-((?:[^}\\]|\\.)*))?}")

# HBase replication peer configuration keys.
BOOTSTRAP_SERVERS_KEY = "replication.kafka.bootstrap.servers"
TOPIC_KEY = "replication.kafka.topic"
TOPIC_PREFIX_KEY = "replication.kafka.topic.prefix"
SEND_TIMEOUT_KEY = "replication.kafka.send.timeout.ms"
PROPERTY_PREFIX = "replication.kafka."


def _resolve_env_str(value: str) -> str:
    """Replace all ${VAR} / ${VAR:-default} references in a string."""

    def _replace(match: re.Match[str]) -> str:
        var_name = match.group(1)
        default = match.group(2)
        env_val = os.environ.get(var_name)
        if env_val is not None:
            return env_val
        if default is not None:
            return default.replace("\\}", "}")
        msg = f"Environment variable '{var_name}' is not set and no default provided"
        raise ConfigurationError(msg)

    return _ENV_PATTERN.sub(_replace, value)


def resolve_env_vars(data: Any) -> Any:
    """Recursively resolve ${VAR} and ${VAR:-default} in parsed YAML data."""
    if isinstance(data, str):
        return _resolve_env_str(data)
    if isinstance(data, dict):
        return {k: resolve_env_vars(v) for k, v in data.items()}
    if isinstance(data, list):
        return [resolve_env_vars(item) for item in data]
    return data


def properties_to_dict(props: Mapping[str, Any]) -> dict[str, Any]:
    """Translate flat ``replication.kafka.*`` peer properties into config data.

    Unknown ``replication.kafka.producer.*`` keys are passed through to the
    producer as ``kafka.extra`` entries.
    """
    data: dict[str, Any] = {
        "kafka": {"bootstrap_servers": props.get(BOOTSTRAP_SERVERS_KEY)}
    }
    if TOPIC_KEY in props:
        data["topic"] = props[TOPIC_KEY]
    if TOPIC_PREFIX_KEY in props:
        data["topic_prefix"] = props[TOPIC_PREFIX_KEY]
    if SEND_TIMEOUT_KEY in props:
        data["send_timeout_ms"] = props[SEND_TIMEOUT_KEY]
    producer_prefix = f"{PROPERTY_PREFIX}producer."
    extra = {
        k[len(producer_prefix) :]: str(v)
        for k, v in props.items()
        if k.startswith(producer_prefix)
    }
    if extra:
        data["kafka"]["extra"] = extra
    return data


def _is_properties_mapping(data: Mapping[str, Any]) -> bool:
    return any(isinstance(k, str) and k.startswith(PROPERTY_PREFIX) for k in data)


def build_config(data: Mapping[str, Any]) -> BridgeConfig:
    """Validate config data (nested or flat peer properties) into a BridgeConfig."""
    if _is_properties_mapping(data):
        data = properties_to_dict(data)
    try:
        return BridgeConfig.model_validate(data)
    except ValidationError as exc:
        msg = f"Invalid bridge config:\n{exc}"
        raise ConfigurationError(msg) from exc


def from_properties(props: Mapping[str, Any]) -> BridgeConfig:
    """Build a BridgeConfig from HBase replication peer properties."""
    return build_config(properties_to_dict(props))


def load_yaml(path: str | Path) -> dict[str, Any]:
    """Load a YAML file and return its contents as a dict."""
    p = Path(path)
    if not p.exists():
        msg = f"Config file not found: {p}"
        raise FileNotFoundError(msg)
    try:
        with p.open() as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as exc:
        msg = f"Failed to parse YAML in {p}"
        if hasattr(exc, "problem_mark") and exc.problem_mark is not None:
            mark = exc.problem_mark
            msg += f" at line {mark.line + 1}, column {mark.column + 1}"
        msg += f": {exc}"
        raise ConfigurationError(msg) from exc
    if not isinstance(data, dict):
        msg = f"Expected a YAML mapping at top level in {p}, got {type(data).__name__}"
        raise ConfigurationError(msg)
    return cast(dict[str, Any], resolve_env_vars(data))


def load_bridge_config(path: str | Path) -> BridgeConfig:
    """Load and validate a bridge config YAML file."""
    data = load_yaml(path)
    try:
        return build_config(data)
    except ConfigurationError as exc:
        msg = f"Invalid bridge config ({path}): {exc}"
        raise ConfigurationError(msg) from exc
