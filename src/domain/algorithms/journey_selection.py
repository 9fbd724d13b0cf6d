from __future__ import annotations

from enum import Enum
from typing import Sequence

from src.domain.models.journey import JourneyCandidate, SearchDirection


class FallbackPolicy(str, Enum):
    """What to return when no candidate honours the requested time.

    The matchers only fetch trips inside the requested time, so pools built by
    the journey search always qualify and the policy applies to pools built
    some other way.
    """

    NONE = "none"
    # First candidate of the sorted list: earliest departure (depart-after),
    # latest arrival (arrive-before).
    FIRST_IN_ORDER = "first_in_order"
    # Candidate whose anchor time is closest to the requested time.
    NEAREST = "nearest"


def anchor_time_s(candidate: JourneyCandidate, direction: SearchDirection) -> int:
    if direction is SearchDirection.DEPART_AFTER:
        return candidate.departure_s
    return candidate.arrival_s


def order_candidates(
    direct: Sequence[JourneyCandidate],
    transfer: Sequence[JourneyCandidate],
    direction: SearchDirection,
) -> list[JourneyCandidate]:
    """Merge both pools and sort by the direction's anchor time.

    Depart-after sorts ascending by departure, arrive-before descending by
    arrival. The sort is stable, so at equal times direct candidates stay ahead
    of transfer candidates and each pool keeps its discovery order.
    """

    merged: list[JourneyCandidate] = [*direct, *transfer]
    if direction is SearchDirection.ARRIVE_BEFORE:
        return sorted(merged, key=lambda c: c.arrival_s, reverse=True)
    return sorted(merged, key=lambda c: c.departure_s)


def _qualifies(
    candidate: JourneyCandidate, anchor_s: int, direction: SearchDirection
) -> bool:
    if direction is SearchDirection.DEPART_AFTER:
        return candidate.departure_s >= anchor_s
    return candidate.arrival_s <= anchor_s


def select_best(
    direct: Sequence[JourneyCandidate],
    transfer: Sequence[JourneyCandidate],
    *,
    anchor_s: int,
    direction: SearchDirection,
    fallback: FallbackPolicy = FallbackPolicy.FIRST_IN_ORDER,
) -> JourneyCandidate | None:
    """Pick the single best candidate, or None when nothing can be offered."""

    ordered = order_candidates(direct, transfer, direction)
    if not ordered:
        return None

    for candidate in ordered:
        if _qualifies(candidate, anchor_s, direction):
            return candidate

    if fallback is FallbackPolicy.NONE:
        return None
    if fallback is FallbackPolicy.NEAREST:
        return min(ordered, key=lambda c: abs(anchor_time_s(c, direction) - anchor_s))
    return ordered[0]
