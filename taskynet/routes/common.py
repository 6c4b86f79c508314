"""Helpers shared by the API blueprints."""
from __future__ import annotations

from typing import Any, Callable, Iterable

from flask import jsonify

from ..errors import InvalidInput
from ..extensions import db


def ensure_unique(model, column, value: Any, label: str, exclude_id: int | None = None) -> None:
    query = db.session.query(model.id).filter(column == value)
    if exclude_id is not None:
        query = query.filter(model.id != exclude_id)
    if query.first() is not None:
        raise InvalidInput(f"{label} already exists")


def listing(items: Iterable[Any], serialize: Callable[[Any], dict]):
    return jsonify([serialize(item) for item in items])


def deleted(label: str):
    return {"message": f"{label} deleted successfully"}
