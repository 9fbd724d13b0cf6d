from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field

from src.domain.exceptions import SearchTimeout


@dataclass(slots=True)
class SearchDeadline:
    """Time budget and cancellation flag for one search.

    ``expires_at`` is on the ``time.monotonic()`` clock; None means no time limit.
    """

    expires_at: float | None = None
    _cancelled: threading.Event = field(
        default_factory=threading.Event, init=False, repr=False
    )

    @classmethod
    def after(cls, timeout_s: float | None) -> SearchDeadline:
        if timeout_s is None:
            return cls()
        return cls(expires_at=time.monotonic() + float(timeout_s))

    def cancel(self) -> None:
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    @property
    def expired(self) -> bool:
        return self.expires_at is not None and time.monotonic() >= self.expires_at

    def check(self, stage: str = "") -> None:
        if self.cancelled:
            raise SearchTimeout(f"Search cancelled{f' during {stage}' if stage else ''}")
        if self.expired:
            raise SearchTimeout(
                f"Search deadline expired{f' during {stage}' if stage else ''}"
            )
