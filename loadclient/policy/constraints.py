"""Receiver constraints: the preference message a client sends to the bridge."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Tuple

from .context import PolicyContext
from .last_n import compute_last_n
from .settings import FrameHeights, PolicySettings

VideoSourceLookup = Callable[[str], Optional[str]]


@dataclass(frozen=True)
class ReceiverConstraints:
    last_n: int
    default_max_height: int
    on_stage_source_ids: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "lastN": self.last_n,
            "defaultConstraints": {"maxHeight": self.default_max_height},
            "onStageSources": list(self.on_stage_source_ids),
        }


def default_max_height(roster_count: int, stage_view: bool, heights: FrameHeights) -> int:
    """Emulate the client's layout: fixed in stage view, roster-tiered in tile view."""
    if stage_view:
        return heights.stage
    if roster_count <= heights.high_max_participants:
        return heights.high
    if roster_count <= heights.medium_max_participants:
        return heights.medium
    return heights.low


class ReceiverConstraintsBuilder:
    """Computes constraints for a context and decides whether they should be sent."""

    def __init__(self, settings: PolicySettings, video_source_lookup: VideoSourceLookup) -> None:
        self._settings = settings
        self._video_source_lookup = video_source_lookup

    def compute(self, ctx: PolicyContext) -> ReceiverConstraints:
        count = ctx.roster.count
        return ReceiverConstraints(
            last_n=compute_last_n(self._settings.channel_last_n, count, self._settings.last_n_tiers),
            default_max_height=default_max_height(count, ctx.stage_view, self._settings.frame_heights),
            on_stage_source_ids=self._on_stage_sources(ctx),
        )

    def build(self, ctx: PolicyContext, force: bool = False) -> Optional[ReceiverConstraints]:
        """Return constraints to publish, or None when nothing material changed.

        The caller records the returned value as last published.
        """
        constraints = self.compute(ctx)
        if force or constraints != ctx.last_published:
            return constraints
        return None

    def _on_stage_sources(self, ctx: PolicyContext) -> Tuple[str, ...]:
        on_stage = ctx.stage.on_stage
        if on_stage is None or on_stage not in ctx.roster:
            return ()
        source_id = self._video_source_lookup(on_stage)
        return (source_id,) if source_id else ()


__all__ = ["ReceiverConstraints", "ReceiverConstraintsBuilder", "VideoSourceLookup", "default_max_height"]
