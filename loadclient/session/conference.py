"""Conference session contract consumed by the policy driver."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional, Sequence, Set, Type

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

if TYPE_CHECKING:  # pragma: no cover
    from ..policy.constraints import ReceiverConstraints

logger = logging.getLogger(__name__)

DominantSpeakerHandler = Callable[[str, Sequence[str]], None]
ParticipantHandler = Callable[[str], None]
SignalHandler = Callable[[], None]
PrivateMessageHandler = Callable[[str, str], None]


class ConferenceSession:
    """Protocol subset used by the policy driver (runtime duck typing)."""

    def get_local_participant_id(self) -> str: ...

    def get_participant_count(self) -> int: ...

    def get_participant_ids(self) -> Set[str]: ...

    def get_active_video_source_id(self, participant_id: str) -> Optional[str]: ...

    def set_receiver_constraints(self, constraints: "ReceiverConstraints") -> None: ...

    def on_dominant_speaker_changed(self, handler: DominantSpeakerHandler) -> None: ...

    def on_participant_joined(self, handler: ParticipantHandler) -> None: ...

    def on_participant_left(self, handler: ParticipantHandler) -> None: ...

    def on_conference_joined(self, handler: SignalHandler) -> None: ...

    def on_data_channel_open(self, handler: SignalHandler) -> None: ...

    def on_media_session_started(self, handler: ParticipantHandler) -> None: ...


class SessionEventHooks:
    """Handler registry behind the ``on_*`` methods; ``emit`` fans an event out to them."""

    def __init__(self) -> None:
        self._handlers: Dict[Type[Any], List[Callable[..., None]]] = {}

    def on_dominant_speaker_changed(self, handler: DominantSpeakerHandler) -> None:
        self._register(DominantSpeakerChanged, handler)

    def on_participant_joined(self, handler: ParticipantHandler) -> None:
        self._register(ParticipantJoined, handler)

    def on_participant_left(self, handler: ParticipantHandler) -> None:
        self._register(ParticipantLeft, handler)

    def on_conference_joined(self, handler: SignalHandler) -> None:
        self._register(ConferenceJoined, handler)

    def on_data_channel_open(self, handler: SignalHandler) -> None:
        self._register(DataChannelOpened, handler)

    def on_media_session_started(self, handler: ParticipantHandler) -> None:
        self._register(MediaSessionStarted, handler)

    def on_started_muted(self, handler: SignalHandler) -> None:
        self._register(StartedMuted, handler)

    def on_private_message(self, handler: PrivateMessageHandler) -> None:
        self._register(PrivateMessage, handler)

    def on_conference_redirected(self, handler: ParticipantHandler) -> None:
        self._register(ConferenceRedirected, handler)

    def emit(self, event: ConferenceEvent) -> None:
        """Invoke every handler registered for the event's type, in registration order."""
        handlers = self._handlers.get(type(event))
        if not handlers:
            logger.debug("session_event_unhandled kind=%s", getattr(event, "kind", type(event).__name__))
            return
        args = self._handler_args(event)
        for handler in list(handlers):
            handler(*args)

    def _register(self, event_type: Type[Any], handler: Callable[..., None]) -> None:
        self._handlers.setdefault(event_type, []).append(handler)

    @staticmethod
    def _handler_args(event: ConferenceEvent) -> tuple:
        if isinstance(event, DominantSpeakerChanged):
            return (event.primary, event.fallback_order)
        if isinstance(event, (ParticipantJoined, ParticipantLeft, MediaSessionStarted)):
            return (event.participant_id,)
        if isinstance(event, PrivateMessage):
            return (event.sender_id, event.text)
        if isinstance(event, ConferenceRedirected):
            return (event.vnode,)
        return ()


__all__ = [
    "ConferenceSession",
    "DominantSpeakerHandler",
    "ParticipantHandler",
    "PrivateMessageHandler",
    "SessionEventHooks",
    "SignalHandler",
]
