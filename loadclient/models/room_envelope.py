from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .policy_events import ConferenceEvent


@dataclass(frozen=True)
class RoomEnvelope:
    """Room bus envelope. ``target=None`` broadcasts to every client except ``exclude``."""

    room: str
    event: ConferenceEvent
    target: Optional[str] = None
    exclude: Optional[str] = None

    def is_for(self, participant_id: str) -> bool:
        if self.target is not None:
            return self.target == participant_id
        return self.exclude != participant_id


__all__ = ["RoomEnvelope"]
