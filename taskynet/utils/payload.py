"""Request payload parsing with consistent validation errors."""
from __future__ import annotations

import re
from datetime import date, datetime, time, timezone
from typing import Any, Dict, Optional

from flask import request

from ..errors import InvalidInput

PHONE_PATTERN = re.compile(r"^\+?[1-9]\d{0,15}$")
EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def json_body() -> Dict[str, Any]:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise InvalidInput("Request body must be a JSON object")
    return data


def require(data: Dict[str, Any], *fields: str) -> None:
    missing = [name for name in fields if data.get(name) in (None, "")]
    if missing:
        raise InvalidInput(f"Missing required fields: {', '.join(missing)}")


def text(
    data: Dict[str, Any],
    key: str,
    *,
    label: str,
    min_len: int = 1,
    max_len: int = 255,
    required: bool = True,
    pattern: Optional[re.Pattern] = None,
) -> Optional[str]:
    """Return the trimmed string at ``key`` or ``None`` when optional and absent."""
    raw = data.get(key)
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        if required:
            raise InvalidInput(f"{label} is required")
        return None
    if not isinstance(raw, (str, int)) or isinstance(raw, bool):
        raise InvalidInput(f"{label} must be a string")
    value = str(raw).strip()
    if len(value) < min_len or len(value) > max_len:
        raise InvalidInput(f"{label} must be between {min_len} and {max_len} characters")
    if pattern is not None and not pattern.match(value):
        raise InvalidInput(f"{label} is not valid")
    return value


def phone(data: Dict[str, Any], key: str = "phoneNumber", *, required: bool = True) -> Optional[str]:
    return text(data, key, label="Phone number", max_len=17, required=required, pattern=PHONE_PATTERN)


def email(data: Dict[str, Any], key: str = "email", *, required: bool = True) -> Optional[str]:
    value = text(data, key, label="Email", max_len=255, required=required, pattern=EMAIL_PATTERN)
    return value.lower() if value else value


def to_int(value: Any, *, label: str) -> int:
    if isinstance(value, bool):
        raise InvalidInput(f"{label} must be an integer")
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        raise InvalidInput(f"{label} must be an integer") from None


def integer(data: Dict[str, Any], key: str, *, label: str, required: bool = True) -> Optional[int]:
    raw = data.get(key)
    if raw in (None, ""):
        if required:
            raise InvalidInput(f"{label} is required")
        return None
    return to_int(raw, label=label)


def boolean(data: Dict[str, Any], key: str, default: Optional[bool] = None) -> Optional[bool]:
    raw = data.get(key)
    if raw is None:
        return default
    if isinstance(raw, bool):
        return raw
    return str(raw).strip().lower() in {"1", "true", "t", "yes", "y"}


def parse_datetime(raw: Any, *, label: str, end_of_day: bool = False) -> datetime:
    """Parse ``YYYY-MM-DD`` or an ISO timestamp.

    A bare date used as an upper bound covers the whole day.
    """
    if isinstance(raw, datetime):
        return raw
    value = str(raw or "").strip()
    if not value:
        raise InvalidInput(f"{label} is required")
    try:
        if len(value) == 10:
            day = datetime.strptime(value, "%Y-%m-%d").date()
            return datetime.combine(day, time.max if end_of_day else time.min)
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        raise InvalidInput(f"{label} must be a valid date") from None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def parse_date(raw: Any, *, label: str) -> date:
    if isinstance(raw, date) and not isinstance(raw, datetime):
        return raw
    return parse_datetime(raw, label=label).date()


def query_int(name: str, default: int, *, minimum: int = 1, maximum: int = 500) -> int:
    raw = request.args.get(name)
    if raw in (None, ""):
        return default
    value = to_int(raw, label=name)
    return max(minimum, min(value, maximum))
