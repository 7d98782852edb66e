from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Iterable, Optional, Set

from .stage_view import StageViewSelector

if TYPE_CHECKING:  # pragma: no cover
    from .constraints import ReceiverConstraints


@dataclass
class RosterState:
    """Remote members of the conference; the local participant is implicit."""

    members: Set[str] = field(default_factory=set)

    @property
    def count(self) -> int:
        return len(self.members) + 1

    def add(self, participant_id: str) -> bool:
        if participant_id in self.members:
            return False
        self.members.add(participant_id)
        return True

    def remove(self, participant_id: str) -> bool:
        if participant_id not in self.members:
            return False
        self.members.discard(participant_id)
        return True

    def replace(self, participant_ids: Iterable[str]) -> None:
        self.members = set(participant_ids)

    def __contains__(self, participant_id: object) -> bool:
        return participant_id in self.members


@dataclass
class PolicyContext:
    """Mutable policy state owned by a single PolicyDriver."""

    self_id: str
    stage_view: bool = False
    roster: RosterState = field(default_factory=RosterState)
    stage: StageViewSelector = field(default_factory=StageViewSelector)
    last_published: Optional["ReceiverConstraints"] = None
    data_channel_open: bool = False

    def is_stage_eligible(self, participant_id: str) -> bool:
        return participant_id != self.self_id and participant_id in self.roster


__all__ = ["PolicyContext", "RosterState"]
