"""Event models shared by the policy driver and the simulated room."""

from .policy_events import (
    ConferenceEvent,
    ConferenceJoined,
    ConferenceRedirected,
    DataChannelOpened,
    DominantSpeakerChanged,
    MediaSessionStarted,
    ParticipantJoined,
    ParticipantLeft,
    PolicyEvent,
    PrivateMessage,
    StartedMuted,
)
from .room_envelope import RoomEnvelope

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
    "RoomEnvelope",
    "StartedMuted",
]
