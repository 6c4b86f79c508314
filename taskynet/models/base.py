"""Shared model mixins and column types."""
from datetime import datetime

from sqlalchemy import Numeric, func
from sqlalchemy.orm import Mapped, mapped_column

from ..extensions import db

# Cent-precision money; LBP amounts run into the millions.
Money = Numeric(18, 2)


class TimestampMixin:
    """Adds immutable creation and managed update timestamps."""

    created_at: Mapped[datetime] = mapped_column(
        db.DateTime, default=datetime.utcnow, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        db.DateTime,
        default=datetime.utcnow,
        server_default=func.now(),
        onupdate=datetime.utcnow,
        nullable=False,
    )


def capitalize_name(value: str) -> str:
    """Normalize reference names: first letter upper, the rest lower."""
    cleaned = (value or "").strip()
    return cleaned[:1].upper() + cleaned[1:].lower()
