from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable, Optional


class StageStatus(str, Enum):
    UNSELECTED = "unselected"
    SELECTED = "selected"


@dataclass
class StageViewSelector:
    """Tracks the participant shown on stage, driven by dominant-speaker events.

    A participant leaving does not clear the selection; it is only replaced on
    the next dominant-speaker event that yields an eligible candidate.
    """

    status: StageStatus = StageStatus.UNSELECTED
    on_stage: Optional[str] = None

    def select(
        self,
        primary: Optional[str],
        fallback_order: Iterable[str],
        is_eligible: Callable[[str], bool],
    ) -> bool:
        """Apply a dominant-speaker change. Returns True when the selection changed."""
        candidate = self.find_candidate(primary, fallback_order, is_eligible)
        if candidate is None or candidate == self.on_stage:
            return False
        self.on_stage = candidate
        self.status = StageStatus.SELECTED
        return True

    @staticmethod
    def find_candidate(
        primary: Optional[str],
        fallback_order: Iterable[str],
        is_eligible: Callable[[str], bool],
    ) -> Optional[str]:
        if primary is not None and is_eligible(primary):
            return primary
        for participant_id in fallback_order:
            if is_eligible(participant_id):
                return participant_id
        return None

    @property
    def is_selected(self) -> bool:
        return self.status == StageStatus.SELECTED


__all__ = ["StageStatus", "StageViewSelector"]
