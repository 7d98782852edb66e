from .client import LoadTestClient
from .client_manager import ClientManager
from .conference import ConferenceSession, SessionEventHooks
from .media import LocalMediaState
from .room import SimulatedRoom, SpeakerRotation
from .room_session import RoomConferenceSession

__all__ = [
    "ClientManager",
    "ConferenceSession",
    "LoadTestClient",
    "LocalMediaState",
    "RoomConferenceSession",
    "SessionEventHooks",
    "SimulatedRoom",
    "SpeakerRotation",
]
