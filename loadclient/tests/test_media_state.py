import asyncio

import pytest

from loadclient.session.media import VIDEO_ON_MESSAGE, LocalMediaState


def test_disabled_tracks_start_muted():
    media = LocalMediaState(client_id=0, audio_enabled=False, video_enabled=True)

    assert media.audio_muted is True
    assert media.video_muted is False


def test_mute_and_unmute_audio():
    media = LocalMediaState(client_id=0)

    assert media.mute_audio(True) is True
    assert media.audio_muted is True

    assert media.mute_audio(False) is True
    assert media.audio_muted is False


def test_visitor_cannot_unmute():
    media = LocalMediaState(client_id=0, visitor=True, audio_muted=True)

    assert media.mute_audio(False) is False
    assert media.audio_muted is True


def test_video_on_message_turns_video_on():
    media = LocalMediaState(client_id=0, video_enabled=False)

    media.on_private_message("moderator", VIDEO_ON_MESSAGE)

    assert media.video_enabled is True
    assert media.video_muted is False


def test_other_private_messages_are_ignored():
    media = LocalMediaState(client_id=0, video_enabled=False)

    media.on_private_message("moderator", "hello")

    assert media.video_muted is True


def test_video_on_refused_for_visitor():
    media = LocalMediaState(client_id=0, video_enabled=False, visitor=True)

    assert media.turn_video_on() is False
    assert media.video_muted is True


@pytest.mark.asyncio
async def test_started_muted_restores_wanted_tracks_after_delay():
    media = LocalMediaState(client_id=0, unmute_delay_ms=10)

    media.on_started_muted()
    assert media.audio_muted is True
    assert media.video_muted is True
    assert media.unmute_pending is True

    await asyncio.sleep(0.05)

    assert media.audio_muted is False
    assert media.video_muted is False
    assert media.unmute_pending is False


@pytest.mark.asyncio
async def test_started_muted_keeps_unwanted_tracks_muted():
    media = LocalMediaState(client_id=0, audio_enabled=False, unmute_delay_ms=10)

    media.on_started_muted()
    await asyncio.sleep(0.05)

    assert media.audio_muted is True
    assert media.video_muted is False


@pytest.mark.asyncio
async def test_cancel_drops_pending_unmute():
    media = LocalMediaState(client_id=0, unmute_delay_ms=10)

    media.on_started_muted()
    media.cancel()
    await asyncio.sleep(0.05)

    assert media.audio_muted is True
    assert media.unmute_pending is False


def test_applied_changes_are_reported():
    changes = []
    media = LocalMediaState(client_id=0, video_enabled=False, on_change=lambda: changes.append("changed"))

    media.mute_audio(True)
    media.turn_video_on()
    media.turn_video_on()

    assert changes == ["changed", "changed"]


def test_become_visitor_mutes_and_blocks_unmutes():
    changes = []
    media = LocalMediaState(client_id=0, on_change=lambda: changes.append("changed"))

    media.become_visitor()

    assert media.visitor is True
    assert media.audio_muted is True
    assert media.video_muted is True
    assert changes == ["changed"]
    assert media.mute_audio(False) is False
    assert media.turn_video_on() is False
    assert media.audio_muted is True


@pytest.mark.asyncio
async def test_become_visitor_cancels_pending_unmute():
    media = LocalMediaState(client_id=0, unmute_delay_ms=10)

    media.on_started_muted()
    media.become_visitor()
    await asyncio.sleep(0.05)

    assert media.unmute_pending is False
    assert media.audio_muted is True
    assert media.video_muted is True
