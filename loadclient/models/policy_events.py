"""Typed conference events consumed by the policy driver and local media state."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Tuple, Union

from ..utils.time_utils import MonotonicClock


def _now_ms() -> int:
    return MonotonicClock.now_ms()


@dataclass(frozen=True)
class ConferenceJoined:
    kind = "conference.joined"
    timestamp_ms: int = field(default_factory=_now_ms, compare=False)


@dataclass(frozen=True)
class ParticipantJoined:
    kind = "participant.joined"
    participant_id: str = ""
    timestamp_ms: int = field(default_factory=_now_ms, compare=False)


@dataclass(frozen=True)
class ParticipantLeft:
    kind = "participant.left"
    participant_id: str = ""
    timestamp_ms: int = field(default_factory=_now_ms, compare=False)


@dataclass(frozen=True)
class DominantSpeakerChanged:
    """``fallback_order`` lists previous dominant speakers, most recent first."""

    kind = "dominant_speaker.changed"
    primary: Optional[str] = None
    fallback_order: Tuple[str, ...] = ()
    timestamp_ms: int = field(default_factory=_now_ms, compare=False)


@dataclass(frozen=True)
class DataChannelOpened:
    kind = "data_channel.opened"
    timestamp_ms: int = field(default_factory=_now_ms, compare=False)


@dataclass(frozen=True)
class MediaSessionStarted:
    kind = "media_session.started"
    participant_id: str = ""
    timestamp_ms: int = field(default_factory=_now_ms, compare=False)


@dataclass(frozen=True)
class StartedMuted:
    kind = "conference.started_muted"
    timestamp_ms: int = field(default_factory=_now_ms, compare=False)


@dataclass(frozen=True)
class PrivateMessage:
    kind = "conference.private_message"
    sender_id: str = ""
    text: str = ""
    timestamp_ms: int = field(default_factory=_now_ms, compare=False)


@dataclass(frozen=True)
class ConferenceRedirected:
    """The conference moved the participant to a visitor node."""

    kind = "conference.redirected"
    vnode: str = ""
    timestamp_ms: int = field(default_factory=_now_ms, compare=False)


PolicyEvent = Union[
    ConferenceJoined,
    ParticipantJoined,
    ParticipantLeft,
    DominantSpeakerChanged,
    DataChannelOpened,
    MediaSessionStarted,
]

ConferenceEvent = Union[PolicyEvent, StartedMuted, PrivateMessage, ConferenceRedirected]


__all__ = [
    "ConferenceEvent",
    "ConferenceJoined",
    "ConferenceRedirected",
    "DataChannelOpened",
    "DominantSpeakerChanged",
    "MediaSessionStarted",
    "ParticipantJoined",
    "ParticipantLeft",
    "PolicyEvent",
    "PrivateMessage",
    "StartedMuted",
]
