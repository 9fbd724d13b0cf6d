from __future__ import annotations

import pytest

from src.domain.algorithms.journey_selection import (
    FallbackPolicy,
    order_candidates,
    select_best,
)
from src.domain.models import (
    DirectCandidate,
    SearchDirection,
    StopTime,
    TransferCandidate,
)

MIN = 60


def _direct(trip_id: str, dep_min: int, arr_min: int) -> DirectCandidate:
    return DirectCandidate(
        origin=StopTime(trip_id, "S1", 1, dep_min * MIN, dep_min * MIN),
        destination=StopTime(trip_id, "S2", 2, arr_min * MIN, arr_min * MIN),
    )


def _transfer(
    dep_min: int, via_min: int, leave_min: int, arr_min: int
) -> TransferCandidate:
    return TransferCandidate(
        origin_departure=StopTime("A", "S1", 1, dep_min * MIN, dep_min * MIN),
        transfer_arrival=StopTime("A", "T", 2, via_min * MIN, via_min * MIN),
        transfer_departure=StopTime("B", "T", 1, leave_min * MIN, leave_min * MIN),
        destination_arrival=StopTime("B", "S2", 2, arr_min * MIN, arr_min * MIN),
    )


@pytest.mark.unit
def test_depart_after_picks_earliest_qualifying_departure() -> None:
    direct = [_direct("LATE", 500, 530), _direct("EARLY", 485, 520)]
    transfer = [_transfer(490, 500, 505, 515)]

    best = select_best(
        direct,
        transfer,
        anchor_s=480 * MIN,
        direction=SearchDirection.DEPART_AFTER,
    )

    assert best is direct[1]


@pytest.mark.unit
def test_depart_after_ignores_departures_before_anchor() -> None:
    direct = [_direct("GONE", 470, 490), _direct("NEXT", 495, 520)]

    best = select_best(
        direct, [], anchor_s=480 * MIN, direction=SearchDirection.DEPART_AFTER
    )

    assert best is direct[1]


@pytest.mark.unit
def test_arrive_before_picks_latest_arrival_not_after_anchor() -> None:
    # 09:30 and 09:50 arrivals against a 10:00 anchor.
    direct = [_direct("A930", 550, 570), _direct("A950", 570, 590)]

    best = select_best(
        direct, [], anchor_s=600 * MIN, direction=SearchDirection.ARRIVE_BEFORE
    )

    assert best is direct[1]


@pytest.mark.unit
def test_equal_times_prefer_direct_over_transfer() -> None:
    direct = [_direct("D", 490, 530)]
    transfer = [_transfer(490, 500, 505, 520)]

    ordered = order_candidates(direct, transfer, SearchDirection.DEPART_AFTER)

    assert ordered[0] is direct[0]


@pytest.mark.unit
@pytest.mark.parametrize(
    ("policy", "expected"),
    [
        (FallbackPolicy.NONE, None),
        (FallbackPolicy.FIRST_IN_ORDER, "EARLIEST"),
        (FallbackPolicy.NEAREST, "CLOSEST"),
    ],
)
def test_fallback_policy_when_nothing_qualifies(
    policy: FallbackPolicy, expected: str | None
) -> None:
    direct = [_direct("EARLIEST", 400, 420), _direct("CLOSEST", 470, 490)]

    best = select_best(
        direct,
        [],
        anchor_s=480 * MIN,
        direction=SearchDirection.DEPART_AFTER,
        fallback=policy,
    )

    assert (best.origin.trip_id if best else None) == expected


@pytest.mark.unit
def test_arrive_before_first_in_order_fallback_is_latest_arrival() -> None:
    direct = [_direct("EARLY", 600, 615), _direct("LATER", 620, 640)]

    best = select_best(
        direct, [], anchor_s=600 * MIN, direction=SearchDirection.ARRIVE_BEFORE
    )

    assert best is direct[1]


@pytest.mark.unit
def test_empty_pools_select_nothing() -> None:
    assert (
        select_best([], [], anchor_s=0, direction=SearchDirection.DEPART_AFTER) is None
    )
