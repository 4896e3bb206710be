"""Typer CLI for the HBase → Kafka replication bridge."""

from __future__ import annotations

from pathlib import Path

import structlog
import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from hbase_kafka_bridge.config.loader import load_bridge_config
from hbase_kafka_bridge.config.models import BridgeConfig
from hbase_kafka_bridge.endpoint import KafkaReplicationEndpoint
from hbase_kafka_bridge.errors import BridgeError
from hbase_kafka_bridge.identity import peer_id_for
from hbase_kafka_bridge.observability.logging import configure_logging
from hbase_kafka_bridge.wal.reader import read_batch

logger = structlog.get_logger()
console = Console()
app = typer.Typer(name="hbase-kafka-bridge", help="HBase to Kafka replication bridge")


def _load(config_path: str) -> BridgeConfig:
    path = Path(config_path)
    if not path.exists():
        console.print(f"[red]Config file not found: {path}[/red]")
        raise typer.Exit(1)
    try:
        return load_bridge_config(path)
    except BridgeError as exc:
        console.print(f"[red]Validation error:[/red] {escape(str(exc))}")
        raise typer.Exit(1) from exc


@app.callback()
def main(
    log_json: bool = typer.Option(False, "--log-json", help="Emit JSON log lines"),
    log_level: str = typer.Option("INFO", "--log-level", help="Log level"),
) -> None:
    configure_logging(json=log_json, level=log_level)


@app.command()
def validate(
    config_path: str = typer.Argument(..., help="Path to bridge YAML"),
) -> None:
    """Validate a bridge configuration file."""
    config = _load(config_path)
    table = Table(title="Bridge Config")
    table.add_column("Setting", style="cyan")
    table.add_column("Value")
    table.add_row("bootstrap servers", config.kafka.bootstrap_servers)
    table.add_row("topic", config.topic or "(per table)")
    table.add_row("topic prefix", config.topic_prefix)
    table.add_row("send timeout (ms)", str(config.send_timeout_ms))
    table.add_row("auth", config.kafka.auth_mechanism.value)
    table.add_row("peer id", str(peer_id_for(config)))
    console.print("[green]Valid[/green]")
    console.print(table)


@app.command()
def identity(
    config_path: str = typer.Argument(..., help="Path to bridge YAML"),
) -> None:
    """Print the peer UUID derived from the configuration."""
    config = _load(config_path)
    typer.echo(str(peer_id_for(config)))


@app.command()
def replay(
    config_path: str = typer.Argument(..., help="Path to bridge YAML"),
    batch_path: str = typer.Argument(..., help="JSON-lines file of WAL entries"),
) -> None:
    """Replicate one captured batch to Kafka; exits 1 unless fully acknowledged."""
    config = _load(config_path)
    try:
        entries = read_batch(batch_path)
    except (OSError, ValueError) as exc:
        console.print(f"[red]Cannot read batch:[/red] {escape(str(exc))}")
        raise typer.Exit(1) from exc

    endpoint = KafkaReplicationEndpoint()
    endpoint.initialize(config)
    with endpoint:
        ok = endpoint.replicate(entries)

    if not ok:
        console.print(f"[red]Batch failed[/red] ({len(entries)} entries)")
        raise typer.Exit(1)
    console.print(f"[green]Replicated[/green] {len(entries)} entries")
