"""Command-line interface for the conference load-test client."""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table

from .config import Config
from .core.event_bus import EventBus
from .errors import ConfigurationError
from .policy.constraints import ReceiverConstraints
from .session.client import LoadTestClient
from .session.client_manager import ClientManager
from .session.room import SimulatedRoom, SpeakerRotation
from .utils.logging_setup import configure_logging

logger = logging.getLogger(__name__)

app = typer.Typer(help="Simulated conference clients reporting receiver constraints to a bridge.")
console = Console()


@dataclass(frozen=True)
class ClientSummary:
    index: int
    participant_id: str
    roster_count: int
    constraints: Optional[ReceiverConstraints]
    published: int
    rejected: int

    @classmethod
    def from_client(cls, client: LoadTestClient) -> "ClientSummary":
        return cls(
            index=client.index,
            participant_id=client.participant_id,
            roster_count=client.driver.ctx.roster.count,
            constraints=client.last_published,
            published=client.driver.publish_count,
            rejected=client.publish_failures,
        )


def load_config(config_paths: Optional[List[Path]]) -> Config:
    try:
        return Config.from_yaml(list(config_paths or []))
    except ConfigurationError as exc:
        console.print(f"[bold red]Invalid configuration:[/bold red] {exc}")
        raise typer.Exit(code=2) from exc


async def run_simulation(config: Config, duration_s: float) -> List[ClientSummary]:
    """Start the configured clients, rotate the dominant speaker, then tear down.

    Client state is captured before shutdown, since leaving clients change
    the rosters of the remaining ones.
    """
    bus = EventBus(f"room-{config.room.name}")
    room = SimulatedRoom(
        config.room.name,
        bus,
        start_muted=config.room.start_muted,
        visitors_after=config.room.visitors_after,
    )
    manager = ClientManager(config, room)
    rotation = SpeakerRotation(room, config.room.speaker_interval_ms)

    try:
        await manager.start_clients()
        if config.policy.stage_view:
            rotation.start()
        await asyncio.sleep(duration_s)
        await rotation.stop()
        await bus.wait_idle()
        summaries = [ClientSummary.from_client(client) for client in manager.clients]
    finally:
        await rotation.stop()
        await manager.shutdown_all()
        room.close()
        await bus.shutdown()
    return summaries


def render_summary(summaries: List[ClientSummary]) -> Table:
    table = Table(title="Receiver constraints per client")
    table.add_column("client", justify="right")
    table.add_column("participant")
    table.add_column("roster", justify="right")
    table.add_column("lastN", justify="right")
    table.add_column("maxHeight", justify="right")
    table.add_column("on stage")
    table.add_column("published", justify="right")
    table.add_column("rejected", justify="right")

    for summary in summaries:
        constraints = summary.constraints
        table.add_row(
            str(summary.index),
            summary.participant_id,
            str(summary.roster_count),
            str(constraints.last_n) if constraints else "-",
            str(constraints.default_max_height) if constraints else "-",
            ", ".join(constraints.on_stage_source_ids) if constraints else "-",
            str(summary.published),
            str(summary.rejected),
        )
    return table


@app.command("run")
def run(
    config_paths: Optional[List[Path]] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to YAML config (can be specified multiple times, merged left-to-right)",
    ),
    clients: Optional[int] = typer.Option(None, "--clients", "-n", min=0, help="Override clients.num_clients"),
    stage_view: Optional[bool] = typer.Option(None, "--stage-view/--tile-view", help="Override policy.stage_view"),
    duration: float = typer.Option(5.0, "--duration", "-d", help="Seconds to keep the room running"),
    log_level: Optional[str] = typer.Option(None, help="Logging level (defaults to system.log_level)"),
) -> None:
    """Run simulated clients in one room and print their receiver constraints."""
    config = load_config(config_paths)
    if clients is not None:
        config.clients.num_clients = clients
    if stage_view is not None:
        config.policy.stage_view = stage_view
    configure_logging(log_level or config.system.log_level)

    logger.info(
        "Starting %s client(s) in room %s stage_view=%s",
        config.clients.num_clients,
        config.room.name,
        config.policy.stage_view,
    )
    started = asyncio.run(run_simulation(config, duration))
    console.print(render_summary(started))


@app.command("show-config")
def show_config(
    config_paths: Optional[List[Path]] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to YAML config (can be specified multiple times)",
    ),
) -> None:
    """Print the merged configuration, including environment overrides."""
    config = load_config(config_paths)
    console.print_json(json.dumps(config.to_dict()))


def main() -> None:
    app()


if __name__ == "__main__":
    main()
