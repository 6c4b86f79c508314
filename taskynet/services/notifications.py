"""Real-time broadcast of task events to the admin room.

Events travel over blinker signals. A websocket gateway (or a test) attaches
with :func:`subscribe`; the default subscriber only logs.
"""
from __future__ import annotations

from typing import Any, Callable, Dict

from blinker import Namespace
from flask import current_app

ADMIN_ROOM = "admins"
TASK_COMMENT_EVENT = "task:comment"

_signals = Namespace()
task_commented = _signals.signal(TASK_COMMENT_EVENT)


def broadcast_task_comment(*, task_id: int, user_id: int, message: str) -> Dict[str, Any]:
    payload = {"taskId": task_id, "userId": user_id, "message": message}
    task_commented.send(current_app._get_current_object(), room=ADMIN_ROOM, event=TASK_COMMENT_EVENT, payload=payload)
    return payload


def subscribe(receiver: Callable[..., Any], *, weak: bool = False) -> Callable[..., Any]:
    """Attach ``receiver(sender, room=, event=, payload=)`` to comment broadcasts."""
    task_commented.connect(receiver, weak=weak)
    return receiver


def unsubscribe(receiver: Callable[..., Any]) -> None:
    task_commented.disconnect(receiver)


def _log_broadcast(sender, room: str, event: str, payload: Dict[str, Any]) -> None:
    sender.logger.info("Broadcast %s to room %s for task %s", event, room, payload.get("taskId"))


def init_app(app) -> None:
    task_commented.connect(_log_broadcast, sender=app, weak=False)
