from __future__ import annotations

import os
from dataclasses import dataclass

from src.domain.algorithms.journey_selection import FallbackPolicy


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = (os.getenv(name) or "").strip()
    return int(raw) if raw else default


def _env_float(name: str, default: float) -> float:
    raw = (os.getenv(name) or "").strip()
    return float(raw) if raw else default


def _env_optional_float(name: str) -> float | None:
    raw = (os.getenv(name) or "").strip()
    return float(raw) if raw else None


@dataclass(frozen=True, slots=True)
class SearchConfig:
    """Tuning knobs for journey search.

    The per-stage caps trade recall for bounded query volume; raising them never
    makes a result wrong, only slower to find.
    """

    search_window_minutes: int = 180
    max_origin_candidates: int = 20
    max_transfer_stops_considered: int = 10
    max_candidates_per_stop: int = 10
    min_wait_minutes: int = 1
    max_wait_minutes: int = 15
    always_search_transfers: bool = True
    min_transfer_search_distance_km: float = 0.5
    skip_same_route_transfers: bool = True
    fallback_policy: FallbackPolicy = FallbackPolicy.FIRST_IN_ORDER
    transfer_workers: int = 1
    search_timeout_s: float | None = None

    def __post_init__(self) -> None:
        for name in (
            "search_window_minutes",
            "max_origin_candidates",
            "max_transfer_stops_considered",
            "max_candidates_per_stop",
            "min_wait_minutes",
            "max_wait_minutes",
        ):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be >= 0")
        if self.min_wait_minutes > self.max_wait_minutes:
            raise ValueError("min_wait_minutes must not exceed max_wait_minutes")
        if self.transfer_workers < 1:
            raise ValueError("transfer_workers must be >= 1")
        if self.min_transfer_search_distance_km < 0:
            raise ValueError("min_transfer_search_distance_km must be >= 0")
        if self.search_timeout_s is not None and self.search_timeout_s <= 0:
            raise ValueError("search_timeout_s must be > 0")

    @staticmethod
    def from_env() -> "SearchConfig":
        defaults = SearchConfig()
        return SearchConfig(
            search_window_minutes=_env_int(
                "JOURNEY_SEARCH_WINDOW_MINUTES", defaults.search_window_minutes
            ),
            max_origin_candidates=_env_int(
                "JOURNEY_MAX_ORIGIN_CANDIDATES", defaults.max_origin_candidates
            ),
            max_transfer_stops_considered=_env_int(
                "JOURNEY_MAX_TRANSFER_STOPS", defaults.max_transfer_stops_considered
            ),
            max_candidates_per_stop=_env_int(
                "JOURNEY_MAX_CANDIDATES_PER_STOP", defaults.max_candidates_per_stop
            ),
            min_wait_minutes=_env_int(
                "JOURNEY_MIN_WAIT_MINUTES", defaults.min_wait_minutes
            ),
            max_wait_minutes=_env_int(
                "JOURNEY_MAX_WAIT_MINUTES", defaults.max_wait_minutes
            ),
            always_search_transfers=_env_bool(
                "JOURNEY_ALWAYS_SEARCH_TRANSFERS", defaults.always_search_transfers
            ),
            min_transfer_search_distance_km=_env_float(
                "JOURNEY_MIN_TRANSFER_DISTANCE_KM",
                defaults.min_transfer_search_distance_km,
            ),
            skip_same_route_transfers=_env_bool(
                "JOURNEY_SKIP_SAME_ROUTE_TRANSFERS", defaults.skip_same_route_transfers
            ),
            fallback_policy=FallbackPolicy(
                (os.getenv("JOURNEY_FALLBACK_POLICY") or defaults.fallback_policy.value)
                .strip()
                .lower()
            ),
            transfer_workers=_env_int(
                "JOURNEY_TRANSFER_WORKERS", defaults.transfer_workers
            ),
            search_timeout_s=_env_optional_float("JOURNEY_SEARCH_TIMEOUT_S"),
        )
