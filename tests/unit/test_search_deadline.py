from __future__ import annotations

import time

import pytest

from src.app.services.search_deadline import SearchDeadline
from src.domain.exceptions import SearchTimeout


@pytest.mark.unit
def test_unbounded_deadline_never_expires() -> None:
    deadline = SearchDeadline.after(None)

    assert deadline.expired is False
    deadline.check("anything")


@pytest.mark.unit
def test_expired_deadline_raises_with_stage() -> None:
    deadline = SearchDeadline(expires_at=time.monotonic() - 1.0)

    assert deadline.expired is True

    with pytest.raises(SearchTimeout, match="expired during direct search"):
        deadline.check("direct search")


@pytest.mark.unit
def test_cancel_is_reported_before_expiry() -> None:
    deadline = SearchDeadline.after(60.0)
    deadline.cancel()

    assert deadline.cancelled is True
    with pytest.raises(SearchTimeout, match="cancelled"):
        deadline.check()
