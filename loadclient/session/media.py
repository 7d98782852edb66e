from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Callable, Optional

logger = logging.getLogger(__name__)

VIDEO_ON_MESSAGE = "video on"


@dataclass
class LocalMediaState:
    """Local audio/video mute state of a simulated client.

    ``audio_enabled`` / ``video_enabled`` express what the client wants to
    send; ``*_muted`` is what is currently applied to its tracks. ``on_change``
    is called whenever the applied state changes, so the owner can push it to
    the room.
    """

    client_id: object
    audio_enabled: bool = True
    video_enabled: bool = True
    audio_muted: bool = False
    video_muted: bool = False
    visitor: bool = False
    unmute_delay_ms: int = 2000
    _pending_unmute: Optional[asyncio.TimerHandle] = field(default=None, repr=False)
    on_change: Optional[Callable[[], None]] = field(default=None, repr=False)

    def __post_init__(self) -> None:
        self.audio_muted = self.audio_muted or not self.audio_enabled
        self.video_muted = self.video_muted or not self.video_enabled

    def mute_audio(self, mute: bool) -> bool:
        """Mute or unmute local audio. Returns False when an unmute is refused."""
        self.audio_enabled = not mute
        if mute:
            self.audio_muted = True
            self._changed()
            return True
        if self.visitor:
            logger.warning("audio_unmute_refused client=%s reason=visitor", self.client_id)
            return False
        self.audio_muted = False
        self._changed()
        return True

    def on_started_muted(self) -> None:
        """The conference muted us on join; restore wanted tracks after a delay."""
        self.audio_muted = True
        self.video_muted = True
        self.cancel()
        loop = asyncio.get_running_loop()
        self._pending_unmute = loop.call_later(self.unmute_delay_ms / 1000, self._restore_after_start_muted)
        logger.info("start_muted client=%s unmute_in_ms=%s", self.client_id, self.unmute_delay_ms)
        self._changed()

    def on_private_message(self, sender_id: str, text: str) -> None:
        if text == VIDEO_ON_MESSAGE:
            self.turn_video_on()
            return
        logger.debug("private_message_ignored client=%s sender=%s", self.client_id, sender_id)

    def turn_video_on(self) -> bool:
        if self.visitor:
            logger.warning("video_on_refused client=%s reason=visitor", self.client_id)
            return False
        if self.video_enabled and not self.video_muted:
            logger.info("video_on_noop client=%s", self.client_id)
            return False
        self.video_enabled = True
        self.video_muted = False
        logger.info("video_on client=%s", self.client_id)
        self._changed()
        return True

    def become_visitor(self) -> None:
        """Redirected to a visitor node: mute everything and refuse later unmutes."""
        self.cancel()
        self.visitor = True
        self.audio_muted = True
        self.video_muted = True
        logger.info("visitor_mode client=%s", self.client_id)
        self._changed()

    def cancel(self) -> None:
        if self._pending_unmute is not None:
            self._pending_unmute.cancel()
            self._pending_unmute = None

    @property
    def unmute_pending(self) -> bool:
        return self._pending_unmute is not None

    def _restore_after_start_muted(self) -> None:
        self._pending_unmute = None
        if self.audio_enabled and self.audio_muted and not self.visitor:
            self.audio_muted = False
        if self.video_enabled and self.video_muted and not self.visitor:
            self.video_muted = False
        logger.info(
            "start_muted_restored client=%s audio_muted=%s video_muted=%s",
            self.client_id,
            self.audio_muted,
            self.video_muted,
        )
        self._changed()

    def _changed(self) -> None:
        if self.on_change is not None:
            self.on_change()


__all__ = ["LocalMediaState", "VIDEO_ON_MESSAGE"]
