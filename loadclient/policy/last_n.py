"""LastN limits: how many remote video streams a client asks the bridge for."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Mapping, Optional, Sequence, Tuple

from ..errors import ConfigurationError

UNLIMITED_LAST_N = -1
CATCH_ALL_KEY = "*"


@dataclass(frozen=True)
class LastNTier:
    """Apply ``last_n`` while the roster count is at most ``max_participants``.

    ``max_participants=None`` marks the catch-all tier used beyond the last bound.
    """

    max_participants: Optional[int]
    last_n: int

    @property
    def is_catch_all(self) -> bool:
        return self.max_participants is None

    def to_dict(self) -> dict:
        return {"max_participants": self.max_participants, "last_n": self.last_n}


def tiered_last_n(roster_count: int, tiers: Sequence[LastNTier]) -> Optional[int]:
    """Return the tier limit for ``roster_count``, or None when no tier applies.

    Tiers must already be validated by :func:`parse_last_n_tiers`.
    """
    catch_all: Optional[LastNTier] = None
    for tier in tiers:
        if tier.is_catch_all:
            catch_all = tier
            continue
        if roster_count <= tier.max_participants:
            return tier.last_n
    return catch_all.last_n if catch_all is not None else None


def compute_last_n(
    configured_cap: Optional[int],
    roster_count: int,
    tiers: Sequence[LastNTier],
) -> int:
    """Merge the configured cap with the participant-count tier table.

    ``configured_cap`` of None or -1 means unlimited. The result is -1 when
    neither the cap nor a tier restricts the count.
    """
    cap = UNLIMITED_LAST_N if configured_cap is None else configured_cap
    limit = tiered_last_n(roster_count, tiers)
    if limit is None:
        return cap
    if cap == UNLIMITED_LAST_N:
        return limit
    return min(cap, limit)


def parse_last_n_tiers(raw: Any) -> Tuple[LastNTier, ...]:
    """Build a validated tier table from list or mapping configuration.

    List form::

        - {max_participants: 5, last_n: 20}
        - {max_participants: null, last_n: 5}

    Mapping form (``"*"`` is the catch-all)::

        {5: 20, 30: 15, "*": 5}

    Raises:
        ConfigurationError: unsorted or duplicate thresholds, non-integer
            values, or a misplaced catch-all.
    """
    if raw is None:
        return ()
    if isinstance(raw, Mapping):
        entries = [_tier_from_mapping_item(key, value) for key, value in raw.items()]
    elif isinstance(raw, (list, tuple)):
        entries = [_tier_from_entry(index, entry) for index, entry in enumerate(raw)]
    else:
        raise ConfigurationError(
            f"last_n_limits must be a list or a mapping, got {type(raw).__name__}"
        )

    _validate_order(entries)
    return tuple(entries)


def _tier_from_entry(index: int, entry: Any) -> LastNTier:
    if isinstance(entry, LastNTier):
        return entry
    if not isinstance(entry, Mapping):
        raise ConfigurationError(f"last_n_limits[{index}] must be a mapping, got {type(entry).__name__}")
    if "last_n" not in entry:
        raise ConfigurationError(f"last_n_limits[{index}] is missing 'last_n'")
    threshold = entry.get("max_participants")
    return LastNTier(
        max_participants=None if threshold is None else _as_threshold(threshold, f"last_n_limits[{index}]"),
        last_n=_as_limit(entry["last_n"], f"last_n_limits[{index}]"),
    )


def _tier_from_mapping_item(key: Any, value: Any) -> LastNTier:
    label = f"last_n_limits[{key!r}]"
    if key == CATCH_ALL_KEY:
        return LastNTier(max_participants=None, last_n=_as_limit(value, label))
    return LastNTier(max_participants=_as_threshold(key, label), last_n=_as_limit(value, label))


def _as_int(value: Any, label: str) -> int:
    if isinstance(value, bool):
        raise ConfigurationError(f"{label}: expected an integer, got {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError as exc:
            raise ConfigurationError(f"{label}: expected an integer, got {value!r}") from exc
    raise ConfigurationError(f"{label}: expected an integer, got {value!r}")


def _as_threshold(value: Any, label: str) -> int:
    threshold = _as_int(value, label)
    if threshold < 1:
        raise ConfigurationError(f"{label}: max_participants must be >= 1, got {threshold}")
    return threshold


def _as_limit(value: Any, label: str) -> int:
    limit = _as_int(value, label)
    if limit < UNLIMITED_LAST_N:
        raise ConfigurationError(f"{label}: last_n must be >= -1, got {limit}")
    return limit


def _validate_order(entries: List[LastNTier]) -> None:
    previous: Optional[int] = None
    for position, tier in enumerate(entries):
        if tier.is_catch_all:
            if position != len(entries) - 1:
                raise ConfigurationError("last_n_limits: the catch-all tier must be the last entry")
            continue
        if previous is not None:
            if tier.max_participants == previous:
                raise ConfigurationError(
                    f"last_n_limits: duplicate max_participants {tier.max_participants}"
                )
            if tier.max_participants < previous:
                raise ConfigurationError(
                    "last_n_limits: max_participants must be ascending "
                    f"({tier.max_participants} follows {previous})"
                )
        previous = tier.max_participants


__all__ = [
    "CATCH_ALL_KEY",
    "LastNTier",
    "UNLIMITED_LAST_N",
    "compute_last_n",
    "parse_last_n_tiers",
    "tiered_last_n",
]
