"""Liveness probe."""
from __future__ import annotations

from flask import Blueprint, current_app
from sqlalchemy import text

from ..extensions import db

main_bp = Blueprint("main", __name__, url_prefix="/api")


@main_bp.route("/health")
def health_check():
    db.session.execute(text("SELECT 1"))
    return {"status": "ok", "app": current_app.config.get("APP_NAME")}
