from .constraints import ReceiverConstraints, ReceiverConstraintsBuilder, default_max_height
from .context import PolicyContext, RosterState
from .driver import PolicyDriver
from .last_n import UNLIMITED_LAST_N, LastNTier, compute_last_n, parse_last_n_tiers
from .settings import FrameHeights, PolicySettings
from .stage_view import StageStatus, StageViewSelector

__all__ = [
    "FrameHeights",
    "LastNTier",
    "PolicyContext",
    "PolicyDriver",
    "PolicySettings",
    "ReceiverConstraints",
    "ReceiverConstraintsBuilder",
    "RosterState",
    "StageStatus",
    "StageViewSelector",
    "UNLIMITED_LAST_N",
    "compute_last_n",
    "default_max_height",
    "parse_last_n_tiers",
]
