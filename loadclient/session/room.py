"""In-process stand-in for the media bridge and its signalling."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, List, Optional, Set

from ..core.event_bus import EventBus
from ..errors import TransportError
from ..models.policy_events import (
    ConferenceEvent,
    ConferenceJoined,
    ConferenceRedirected,
    DataChannelOpened,
    DominantSpeakerChanged,
    MediaSessionStarted,
    ParticipantJoined,
    ParticipantLeft,
    PrivateMessage,
    StartedMuted,
)
from ..models.room_envelope import RoomEnvelope
from ..utils.time_utils import MonotonicClock

if TYPE_CHECKING:  # pragma: no cover
    from ..policy.constraints import ReceiverConstraints

logger = logging.getLogger(__name__)


@dataclass
class ParticipantRecord:
    participant_id: str
    joined_at: str = field(default_factory=MonotonicClock.now_iso)
    video_source_id: Optional[str] = None
    data_channel_open: bool = False
    audio_muted: bool = False
    visitor: bool = False
    received_constraints: List["ReceiverConstraints"] = field(default_factory=list)


class SimulatedRoom:
    """Roster, dominant-speaker history and data channels of one conference.

    Signalling is published on ``bus`` as RoomEnvelope objects; each client
    consumes them from its own handler queue. With ``visitors_after`` set,
    joiners beyond that many full participants are redirected as visitors.
    """

    def __init__(self, name: str, bus: EventBus, *, start_muted: bool = False, visitors_after: int = 0) -> None:
        self.name = name
        self.bus = bus
        self.start_muted = start_muted
        self.visitors_after = visitors_after
        self.participants: Dict[str, ParticipantRecord] = {}
        self.speaker_history: List[str] = []
        self.closed = False

    def participant_ids(self) -> Set[str]:
        return set(self.participants)

    def participant_count(self) -> int:
        return len(self.participants)

    def video_source_id(self, participant_id: str) -> Optional[str]:
        record = self.participants.get(participant_id)
        return record.video_source_id if record else None

    def is_data_channel_open(self, participant_id: str) -> bool:
        record = self.participants.get(participant_id)
        return record.data_channel_open if record else False

    def full_participant_count(self) -> int:
        return sum(1 for record in self.participants.values() if not record.visitor)

    async def join(self, participant_id: str) -> None:
        if participant_id in self.participants:
            raise ValueError(f"Participant {participant_id} already joined room {self.name}")
        over_capacity = 0 < self.visitors_after <= self.full_participant_count()
        self.participants[participant_id] = ParticipantRecord(participant_id=participant_id)
        logger.info("room_participant_joined room=%s participant=%s count=%s", self.name, participant_id, len(self.participants))
        await self._publish(ConferenceJoined(), target=participant_id)
        await self._publish(ParticipantJoined(participant_id=participant_id), exclude=participant_id)
        if over_capacity:
            await self.redirect(participant_id)
        if self.start_muted:
            await self._publish(StartedMuted(), target=participant_id)

    async def redirect(self, participant_id: str, vnode: str = "visitor") -> None:
        """Move a participant to a visitor node; its media stops being forwarded."""
        record = self._require(participant_id)
        record.visitor = True
        self.stop_media(participant_id)
        logger.info("room_participant_redirected room=%s participant=%s vnode=%s", self.name, participant_id, vnode)
        await self._publish(ConferenceRedirected(vnode=vnode), target=participant_id)

    async def leave(self, participant_id: str) -> None:
        if self.participants.pop(participant_id, None) is None:
            return
        logger.info("room_participant_left room=%s participant=%s count=%s", self.name, participant_id, len(self.participants))
        await self._publish(ParticipantLeft(participant_id=participant_id), exclude=participant_id)

    async def open_data_channel(self, participant_id: str) -> None:
        record = self._require(participant_id)
        record.data_channel_open = True
        await self._publish(DataChannelOpened(), target=participant_id)

    async def start_media(self, participant_id: str) -> str:
        """Activate the participant's outgoing video and announce it to everyone else."""
        record = self._require(participant_id)
        record.video_source_id = f"{participant_id}-video"
        await self._publish(MediaSessionStarted(participant_id=participant_id), exclude=participant_id)
        return record.video_source_id

    def stop_media(self, participant_id: str) -> bool:
        """Deactivate the participant's outgoing video. Returns False when none was active."""
        record = self._require(participant_id)
        if record.video_source_id is None:
            return False
        record.video_source_id = None
        logger.info("room_media_stopped room=%s participant=%s", self.name, participant_id)
        return True

    def set_audio_muted(self, participant_id: str, muted: bool) -> None:
        self._require(participant_id).audio_muted = muted

    async def set_dominant_speaker(self, participant_id: str) -> None:
        """Report a new dominant speaker along with previous ones, most recent first."""
        previous = tuple(pid for pid in self.speaker_history if pid != participant_id)
        self.speaker_history = [participant_id, *previous]
        await self._publish(DominantSpeakerChanged(primary=participant_id, fallback_order=previous))

    async def send_private_message(self, sender_id: str, target_id: str, text: str) -> None:
        self._require(target_id)
        await self._publish(PrivateMessage(sender_id=sender_id, text=text), target=target_id)

    def receive_constraints(self, participant_id: str, constraints: "ReceiverConstraints") -> None:
        """Bridge side of ``set_receiver_constraints``."""
        if self.closed:
            raise TransportError(f"room {self.name} is closed")
        record = self.participants.get(participant_id)
        if record is None or not record.data_channel_open:
            raise TransportError(f"data channel for {participant_id} is not open")
        record.received_constraints.append(constraints)
        logger.debug("room_constraints_received room=%s participant=%s constraints=%s", self.name, participant_id, constraints.to_dict())

    def close(self) -> None:
        self.closed = True

    def _require(self, participant_id: str) -> ParticipantRecord:
        try:
            return self.participants[participant_id]
        except KeyError as exc:
            raise ValueError(f"Participant {participant_id} is not in room {self.name}") from exc

    async def _publish(self, event: ConferenceEvent, *, target: Optional[str] = None, exclude: Optional[str] = None) -> None:
        await self.bus.publish(RoomEnvelope(room=self.name, event=event, target=target, exclude=exclude))


class SpeakerRotation:
    """Makes each joined participant dominant speaker in turn."""

    def __init__(self, room: SimulatedRoom, interval_ms: int) -> None:
        self._room = room
        self._interval_ms = interval_ms
        self._cursor = 0
        self._task: Optional[asyncio.Task] = None

    async def step(self) -> Optional[str]:
        candidates = sorted(self._room.participant_ids())
        if not candidates:
            return None
        speaker = candidates[self._cursor % len(candidates)]
        self._cursor += 1
        await self._room.set_dominant_speaker(speaker)
        return speaker

    def start(self) -> None:
        if self._task is None:
            self._task = asyncio.create_task(self._run(), name=f"speaker-rotation-{self._room.name}")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        await asyncio.gather(self._task, return_exceptions=True)
        self._task = None

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval_ms / 1000)
            speaker = await self.step()
            logger.debug("dominant_speaker_rotated room=%s speaker=%s", self._room.name, speaker)


__all__ = ["ParticipantRecord", "SimulatedRoom", "SpeakerRotation"]
