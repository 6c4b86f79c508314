"""Atomic named counters for task and invoice numbering."""
from __future__ import annotations

from typing import Callable, Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Counter


def next_value(name: str, *, seed: Optional[Callable[[], int]] = None) -> int:
    """Increment counter ``name`` and return the new value.

    The increment is a single ``UPDATE ... SET value = value + 1`` inside the
    caller's transaction, so concurrent callers serialize on the counter row.
    On first use the row is created from ``seed()`` (the highest number already
    issued, or 0).
    """
    result = db.session.execute(
        update(Counter).where(Counter.name == name).values(value=Counter.value + 1)
    )
    if result.rowcount == 0:
        start = (seed() if seed else 0) + 1
        try:
            with db.session.begin_nested():
                db.session.add(Counter(name=name, value=start))
            return start
        except IntegrityError:
            # Another transaction created the row first.
            db.session.execute(
                update(Counter).where(Counter.name == name).values(value=Counter.value + 1)
            )
    return db.session.execute(select(Counter.value).where(Counter.name == name)).scalar_one()
