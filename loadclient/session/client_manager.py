"""Client manager: owns the simulated clients of one load test."""

from __future__ import annotations

import asyncio
import logging
from typing import List, Optional

from ..config import Config
from ..utils.time_utils import MonotonicClock
from .client import LoadTestClient
from .room import SimulatedRoom

logger = logging.getLogger(__name__)


class ClientManager:
    """Manages simulated clients joining a single room.

    Responsibilities:
    - Start clients one after another, spaced by the configured interval
    - Fan mute commands out to all clients or a single one
    - Stop all clients on shutdown
    """

    def __init__(self, config: Config, room: SimulatedRoom):
        self.config = config
        self.room = room
        self.clients: List[LoadTestClient] = []
        self._lock = asyncio.Lock()

    async def start_client(self) -> LoadTestClient:
        async with self._lock:
            client = LoadTestClient(len(self.clients), self.config, self.room)
            self.clients.append(client)
        await client.start()
        return client

    async def start_clients(self, num_clients: Optional[int] = None, interval_ms: Optional[int] = None) -> List[LoadTestClient]:
        """Start ``num_clients`` clients, waiting ``interval_ms`` between consecutive starts."""
        count = self.config.clients.num_clients if num_clients is None else num_clients
        interval = self.config.clients.client_interval_ms if interval_ms is None else interval_ms
        started_at = MonotonicClock.now()
        started: List[LoadTestClient] = []
        for i in range(count):
            if i > 0 and interval > 0:
                await asyncio.sleep(interval / 1000)
            started.append(await self.start_client())
        logger.info(
            "clients_started room=%s count=%s elapsed_ms=%s",
            self.room.name,
            len(started),
            MonotonicClock.elapsed_ms_from(started_at),
        )
        return started

    def mute_audio(self, mute: bool, index: Optional[int] = None) -> None:
        """Mute or unmute audio for every client, or only the client at ``index``."""
        targets = self.clients if index is None else [self.clients[index]]
        for client in targets:
            client.media.mute_audio(mute)

    def get(self, index: int) -> LoadTestClient:
        return self.clients[index]

    def get_active_count(self) -> int:
        return sum(1 for client in self.clients if client.joined)

    async def shutdown_all(self) -> None:
        logger.info("Shutting down all clients")
        async with self._lock:
            clients = list(self.clients)
            self.clients.clear()
        for client in clients:
            await client.stop()
        logger.info("All clients shut down")


__all__ = ["ClientManager"]
