"""LoadTestClient: one simulated conference participant."""

from __future__ import annotations

import asyncio
import logging
import secrets
from typing import Optional, Set

from ..config import Config
from ..core.event_bus import HandlerConfig
from ..core.queues import OverflowPolicy
from ..errors import TransportError
from ..models.policy_events import ConferenceJoined, DataChannelOpened
from ..models.room_envelope import RoomEnvelope
from ..policy.constraints import ReceiverConstraints
from ..policy.driver import PolicyDriver
from ..policy.settings import PolicySettings
from .media import LocalMediaState
from .room import SimulatedRoom
from .room_session import RoomConferenceSession

logger = logging.getLogger(__name__)

ROOM_QUEUE_MAX = 10_000


def _generate_participant_id(index: int) -> str:
    return f"client{index}-{secrets.token_hex(4)}"


class LoadTestClient:
    """Joins a SimulatedRoom and reports receiver constraints like a real client.

    Room envelopes reach the client through its own bus handler (concurrency
    1), so its policy state only ever changes from one event at a time. When
    the handler queue overflows, the newest envelopes are dropped and the
    roster is resynced from the room before the next envelope is handled.
    """

    def __init__(
        self,
        index: int,
        config: Config,
        room: SimulatedRoom,
        *,
        participant_id: Optional[str] = None,
        queue_max: int = ROOM_QUEUE_MAX,
    ) -> None:
        self.index = index
        self.room = room
        self.queue_max = queue_max
        self.participant_id = participant_id or _generate_participant_id(index)
        self.session = RoomConferenceSession(room, self.participant_id)
        self.driver = PolicyDriver(
            self.session,
            PolicySettings.from_config(config),
            self_id=self.participant_id,
            client_id=index,
        )
        self.media = LocalMediaState(
            client_id=index,
            audio_enabled=config.clients.local_audio,
            video_enabled=config.clients.local_video,
            unmute_delay_ms=config.clients.unmute_delay_ms,
        )
        self.publish_failures = 0
        self.dropped_envelopes = 0
        self.resyncs = 0
        self.joined = False
        self._resync_pending = False
        self._handling = False
        self._media_tasks: Set[asyncio.Task] = set()

        self.driver.attach()
        self.session.on_started_muted(self.media.on_started_muted)
        self.session.on_private_message(self.media.on_private_message)
        self.session.on_conference_redirected(self._on_redirected)
        self.media.on_change = self._on_media_changed

    @property
    def handler_name(self) -> str:
        return f"client-{self.participant_id}"

    @property
    def last_published(self) -> Optional[ReceiverConstraints]:
        return self.driver.ctx.last_published

    async def start(self) -> None:
        """Subscribe to the room, join, open the data channel and start wanted media."""
        await self.room.bus.register_handler(
            HandlerConfig(
                name=self.handler_name,
                queue_max=self.queue_max,
                overflow_policy=OverflowPolicy.DROP_NEWEST,
                concurrency=1,
                on_overflow=self._on_overflow,
            ),
            self._handle_envelope,
        )
        await self.room.join(self.participant_id)
        self.joined = True
        logger.info("Participant %s (%s) conference joined", self.index, self.participant_id)

        await self.room.open_data_channel(self.participant_id)
        await self.sync_media()

    async def stop(self) -> None:
        self.media.cancel()
        for task in list(self._media_tasks):
            task.cancel()
        await asyncio.gather(*self._media_tasks, return_exceptions=True)
        if self.joined:
            await self.room.leave(self.participant_id)
            self.joined = False
        await self.room.bus.unregister_handler(self.handler_name)
        logger.info("Participant %s (%s) left", self.index, self.participant_id)

    async def sync_media(self) -> None:
        """Push the local mute state to the room, starting or stopping video as needed."""
        if not self.joined or self.participant_id not in self.room.participants:
            return
        self.room.set_audio_muted(self.participant_id, self.media.audio_muted)
        sending_video = self.media.video_enabled and not self.media.video_muted and not self.media.visitor
        video_active = self.room.video_source_id(self.participant_id) is not None
        if sending_video and not video_active:
            await self.room.start_media(self.participant_id)
        elif not sending_video and video_active:
            self.room.stop_media(self.participant_id)

    async def _handle_envelope(self, envelope: object) -> None:
        if not isinstance(envelope, RoomEnvelope):
            logger.debug("client_unknown_envelope client=%s type=%s", self.index, type(envelope))
            return
        self._handling = True
        try:
            self.session.deliver(envelope)
            if self._resync_pending:
                self._resync()
        except TransportError as exc:
            self.publish_failures += 1
            logger.warning(
                "receiver_constraints_rejected client=%s kind=%s error=%s",
                self.index,
                envelope.event.kind,
                exc,
            )
        finally:
            self._handling = False
        await self.sync_media()

    def _resync(self) -> None:
        self._resync_pending = False
        self.resyncs += 1
        logger.info("roster_resync client=%s dropped=%s", self.index, self.dropped_envelopes)
        self.driver.dispatch(ConferenceJoined())
        if self.session.is_data_channel_open() and not self.driver.ctx.data_channel_open:
            self.driver.dispatch(DataChannelOpened())

    def _on_overflow(self) -> None:
        self.dropped_envelopes += 1
        self._resync_pending = True

    def _on_redirected(self, vnode: str) -> None:
        logger.info("conference_redirected client=%s vnode=%s", self.index, vnode)
        self.media.become_visitor()

    def _on_media_changed(self) -> None:
        # Changes made while handling an envelope are synced once it is done
        if self._handling:
            return
        task = asyncio.get_running_loop().create_task(self.sync_media())
        self._media_tasks.add(task)
        task.add_done_callback(self._media_tasks.discard)


__all__ = ["LoadTestClient"]
