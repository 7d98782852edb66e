from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional, Set

from ..models.room_envelope import RoomEnvelope
from .conference import SessionEventHooks
from .room import SimulatedRoom

if TYPE_CHECKING:  # pragma: no cover
    from ..policy.constraints import ReceiverConstraints

logger = logging.getLogger(__name__)


class RoomConferenceSession(SessionEventHooks):
    """One participant's view of a SimulatedRoom, implementing ConferenceSession."""

    def __init__(self, room: SimulatedRoom, participant_id: str) -> None:
        super().__init__()
        self.room = room
        self.participant_id = participant_id

    def get_local_participant_id(self) -> str:
        return self.participant_id

    def get_participant_count(self) -> int:
        # The room roster includes the local participant once joined
        return max(self.room.participant_count(), 1)

    def is_data_channel_open(self) -> bool:
        return self.room.is_data_channel_open(self.participant_id)

    def get_participant_ids(self) -> Set[str]:
        return self.room.participant_ids() - {self.participant_id}

    def get_active_video_source_id(self, participant_id: str) -> Optional[str]:
        return self.room.video_source_id(participant_id)

    def set_receiver_constraints(self, constraints: "ReceiverConstraints") -> None:
        self.room.receive_constraints(self.participant_id, constraints)

    def deliver(self, envelope: RoomEnvelope) -> bool:
        """Emit the envelope's event if it is addressed to this participant."""
        if envelope.room != self.room.name or not envelope.is_for(self.participant_id):
            return False
        self.emit(envelope.event)
        return True


__all__ = ["RoomConferenceSession"]
