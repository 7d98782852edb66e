from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, Optional, Tuple

from ..errors import ConfigurationError
from .last_n import UNLIMITED_LAST_N, LastNTier

if TYPE_CHECKING:  # pragma: no cover
    from ..config import Config


@dataclass(frozen=True)
class FrameHeights:
    """Receiver max-height levels in pixels and the roster bounds selecting them."""

    high: int = 720
    medium: int = 360
    low: int = 180
    stage: int = 2160
    high_max_participants: int = 2
    medium_max_participants: int = 4

    def __post_init__(self) -> None:
        for name in ("high", "medium", "low", "stage"):
            if getattr(self, name) <= 0:
                raise ConfigurationError(f"frame_heights.{name} must be positive")
        if not self.stage >= self.high >= self.medium >= self.low:
            raise ConfigurationError("frame_heights must satisfy stage >= high >= medium >= low")
        if not 1 <= self.high_max_participants <= self.medium_max_participants:
            raise ConfigurationError(
                "frame_heights bounds must satisfy 1 <= high_max_participants <= medium_max_participants"
            )

    def to_dict(self) -> Dict[str, int]:
        return {
            "high": self.high,
            "medium": self.medium,
            "low": self.low,
            "stage": self.stage,
            "high_max_participants": self.high_max_participants,
            "medium_max_participants": self.medium_max_participants,
        }


@dataclass(frozen=True)
class PolicySettings:
    """Immutable per-client policy inputs, built once from the loaded config."""

    channel_last_n: Optional[int] = None
    last_n_tiers: Tuple[LastNTier, ...] = ()
    stage_view: bool = False
    frame_heights: FrameHeights = field(default_factory=FrameHeights)

    @property
    def configured_cap(self) -> int:
        return UNLIMITED_LAST_N if self.channel_last_n is None else self.channel_last_n

    @classmethod
    def from_config(cls, config: "Config") -> "PolicySettings":
        return cls(
            channel_last_n=config.policy.channel_last_n,
            last_n_tiers=config.policy.last_n_limits,
            stage_view=config.policy.stage_view,
            frame_heights=config.frame_heights,
        )


__all__ = ["FrameHeights", "PolicySettings"]
