"""Policy driver: turns conference events into receiver constraints updates."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional, Sequence

from ..models.policy_events import (
    ConferenceJoined,
    DataChannelOpened,
    DominantSpeakerChanged,
    MediaSessionStarted,
    ParticipantJoined,
    ParticipantLeft,
    PolicyEvent,
)
from .constraints import ReceiverConstraints, ReceiverConstraintsBuilder
from .context import PolicyContext
from .settings import PolicySettings

if TYPE_CHECKING:  # pragma: no cover
    from ..session.conference import ConferenceSession

logger = logging.getLogger(__name__)


class PolicyDriver:
    """Per-client driver owning one PolicyContext.

    Events are handled one at a time to completion. The only side effect is
    ``session.set_receiver_constraints``, invoked when the builder reports a
    material change or the recompute is forced. A TransportError from the
    session propagates to the caller; the last published record is kept.
    """

    def __init__(
        self,
        session: "ConferenceSession",
        settings: PolicySettings,
        *,
        self_id: Optional[str] = None,
        client_id: object = None,
    ) -> None:
        self._session = session
        self.settings = settings
        self.client_id = client_id
        self.ctx = PolicyContext(
            self_id=self_id if self_id is not None else session.get_local_participant_id(),
            stage_view=settings.stage_view,
        )
        self.builder = ReceiverConstraintsBuilder(settings, session.get_active_video_source_id)
        self.publish_count = 0

    def attach(self) -> None:
        """Subscribe to the session's hooks, mapping each callback to a typed event."""
        session = self._session
        session.on_conference_joined(lambda: self.dispatch(ConferenceJoined()))
        session.on_participant_joined(lambda pid: self.dispatch(ParticipantJoined(participant_id=pid)))
        session.on_participant_left(lambda pid: self.dispatch(ParticipantLeft(participant_id=pid)))
        session.on_data_channel_open(lambda: self.dispatch(DataChannelOpened()))
        session.on_media_session_started(lambda pid: self.dispatch(MediaSessionStarted(participant_id=pid)))
        if self.settings.stage_view:
            session.on_dominant_speaker_changed(
                lambda primary, previous: self.dispatch(
                    DominantSpeakerChanged(primary=primary, fallback_order=tuple(previous or ()))
                )
            )

    def dispatch(self, event: PolicyEvent) -> Optional[ReceiverConstraints]:
        """Apply one event. Returns the constraints published for it, if any."""
        if isinstance(event, ParticipantJoined):
            if self._is_self(event.participant_id) or not self.ctx.roster.add(event.participant_id):
                return None
            return self._recompute(reason=event.kind)

        if isinstance(event, ParticipantLeft):
            if not self.ctx.roster.remove(event.participant_id):
                return None
            return self._recompute(reason=event.kind)

        if isinstance(event, ConferenceJoined):
            self.ctx.roster.replace(
                pid for pid in self._session.get_participant_ids() if not self._is_self(pid)
            )
            reported = self._session.get_participant_count()
            if reported != self.ctx.roster.count:
                logger.warning(
                    "roster_count_mismatch client=%s reported=%s roster=%s",
                    self.client_id,
                    reported,
                    self.ctx.roster.count,
                )
            return self._recompute(reason=event.kind)

        if isinstance(event, DominantSpeakerChanged):
            return self._on_dominant_speaker(event.primary, event.fallback_order)

        if isinstance(event, DataChannelOpened):
            first_open = not self.ctx.data_channel_open
            self.ctx.data_channel_open = True
            return self._recompute(reason=event.kind, force=first_open)

        if isinstance(event, MediaSessionStarted):
            if event.participant_id != self.ctx.stage.on_stage:
                self._log_debug_ignored(f"{event.kind}:{event.participant_id}")
                return None
            return self._recompute(reason=event.kind, force=True)

        self._log_debug_ignored(getattr(event, "kind", type(event).__name__))
        return None

    def _on_dominant_speaker(self, primary: Optional[str], fallback_order: Sequence[str]) -> Optional[ReceiverConstraints]:
        if not self.ctx.stage_view:
            self._log_debug_ignored(DominantSpeakerChanged.kind)
            return None
        previous = self.ctx.stage.on_stage
        if not self.ctx.stage.select(primary, fallback_order, self.ctx.is_stage_eligible):
            return None
        logger.info(
            "stage_selection_changed client=%s from=%s to=%s primary=%s",
            self.client_id,
            previous,
            self.ctx.stage.on_stage,
            primary,
        )
        return self._recompute(reason=DominantSpeakerChanged.kind)

    def _recompute(self, *, reason: str, force: bool = False) -> Optional[ReceiverConstraints]:
        if not self.ctx.data_channel_open:
            logger.debug("receiver_constraints_deferred client=%s reason=%s", self.client_id, reason)
            return None

        constraints = self.builder.build(self.ctx, force=force)
        if constraints is None:
            logger.debug("receiver_constraints_unchanged client=%s reason=%s", self.client_id, reason)
            return None

        self.ctx.last_published = constraints
        logger.info(
            "receiver_constraints_published client=%s reason=%s force=%s last_n=%s max_height=%s on_stage=%s",
            self.client_id,
            reason,
            force,
            constraints.last_n,
            constraints.default_max_height,
            list(constraints.on_stage_source_ids),
        )
        self._session.set_receiver_constraints(constraints)
        self.publish_count += 1
        return constraints

    def _is_self(self, participant_id: str) -> bool:
        return participant_id == self.ctx.self_id

    def _log_debug_ignored(self, kind: str) -> None:
        logger.debug("policy_event_ignored client=%s kind=%s", self.client_id, kind)


__all__ = ["PolicyDriver"]
