"""Primary-key lookups that fail with the API's NotFound error."""
from __future__ import annotations

from typing import Type, TypeVar

from ..errors import NotFound
from ..extensions import db

ModelT = TypeVar("ModelT")


def get_or_404(model: Type[ModelT], ident, label: str | None = None) -> ModelT:
    obj = db.session.get(model, ident) if ident is not None else None
    if obj is None:
        raise NotFound(f"{label or model.__name__} not found")
    return obj
