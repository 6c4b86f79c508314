"""Task dispatch: numbering, assignment, the stage machine and comments."""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from flask import current_app
from sqlalchemy import func, select

from ..errors import ConflictActiveTask, InvalidInput, InvalidTransition, NotFound, ValidationError
from ..extensions import db
from ..models import (
    ACTIVE_STAGES,
    Category,
    Customer,
    Task,
    TaskComment,
    TaskPriority,
    TaskStage,
    User,
)
from . import notifications, sequence_service
from .lookup import get_or_404

MAX_COMMENT_LENGTH = 1000
MAX_DESCRIPTION_LENGTH = 2000
UPDATABLE_FIELDS = ("customer_id", "category_id", "priority", "description", "assigned_to_id")
# References an update may change but never clear, mapped to their API names.
_REQUIRED_REFERENCES = {"customer_id": "customerId", "category_id": "categoryId", "assigned_to_id": "assignedTo"}

# Field progression once a task has been accepted.
NEXT_STAGE = {
    TaskStage.ACCEPTED: TaskStage.ARRIVED,
    TaskStage.ARRIVED: TaskStage.COMPLETED,
}
ACCEPTABLE_STAGES = (TaskStage.PENDING, TaskStage.ASSIGNED)
ONGOING_STAGES = tuple(ACTIVE_STAGES | {TaskStage.ARRIVED})


def next_task_number() -> int:
    def _highest_issued() -> int:
        return db.session.execute(select(func.max(Task.task_number))).scalar() or 0

    return sequence_service.next_value("task", seed=_highest_issued)


def parse_priority(raw: Any) -> TaskPriority:
    try:
        return TaskPriority(str(raw or "").strip().lower())
    except ValueError:
        allowed = ", ".join(p.value for p in TaskPriority)
        raise InvalidInput(f"Priority must be one of: {allowed}") from None


def parse_stage(raw: Any) -> TaskStage:
    normalized = str(raw or "").strip().lower().replace("-", "_").replace(" ", "_")
    if normalized == "inprogress":
        normalized = TaskStage.IN_PROGRESS.value
    try:
        return TaskStage(normalized)
    except ValueError:
        allowed = ", ".join(s.value for s in TaskStage)
        raise ValidationError(f"Stage must be one of: {allowed}") from None


def _clean_description(raw: Any) -> Optional[str]:
    if raw is None:
        return None
    value = str(raw).strip()
    if len(value) > MAX_DESCRIPTION_LENGTH:
        raise InvalidInput(f"Description cannot exceed {MAX_DESCRIPTION_LENGTH} characters")
    return value or None


def _active_user(user_id: Any) -> User:
    user = get_or_404(User, user_id, "Assigned user")
    if not user.is_active:
        raise InvalidInput("Assigned user is not active")
    return user


def _assign(task: Task, user: User) -> None:
    if task.is_terminal:
        raise InvalidTransition("Cannot assign a completed or cancelled task")
    task.assigned_to_id = user.id
    task.assignee = user
    if task.stage == TaskStage.PENDING:
        task.enter_stage(TaskStage.ASSIGNED)


def get_task(task_id: int) -> Task:
    return get_or_404(Task, task_id, "Task")


def list_tasks(
    *, stage: Optional[str] = None, assigned_to: Optional[int] = None, priority: Optional[str] = None
) -> List[Task]:
    query = Task.query
    if stage:
        query = query.filter(Task.stage == parse_stage(stage))
    if priority:
        query = query.filter(Task.priority == parse_priority(priority))
    if assigned_to is not None:
        query = query.filter(Task.assigned_to_id == assigned_to)
    return query.order_by(Task.created_at.desc(), Task.id.desc()).all()


def create_task(
    *,
    customer_id: int,
    category_id: int,
    priority: Any = None,
    description: Any = None,
    assigned_to_id: Optional[int] = None,
) -> Task:
    customer = get_or_404(Customer, customer_id, "Customer")
    category = get_or_404(Category, category_id, "Category")
    task = Task(
        task_number=next_task_number(),
        customer_id=customer.id,
        category_id=category.id,
        priority=parse_priority(priority) if priority is not None else TaskPriority.MEDIUM,
        stage=TaskStage.PENDING,
        description=_clean_description(description),
    )
    if assigned_to_id is not None:
        _assign(task, _active_user(assigned_to_id))
    db.session.add(task)
    db.session.commit()
    current_app.logger.info("Task #%s created for customer %s", task.task_number, customer.id)
    return task


def update_task(task_id: int, changes: Dict[str, Any]) -> Task:
    task = get_task(task_id)
    unknown = set(changes) - set(UPDATABLE_FIELDS)
    if unknown:
        raise InvalidInput(f"Fields cannot be updated: {', '.join(sorted(unknown))}")
    cleared = [
        name for field, name in _REQUIRED_REFERENCES.items() if field in changes and changes[field] is None
    ]
    if cleared:
        raise InvalidInput(f"Fields cannot be cleared: {', '.join(cleared)}")

    if "customer_id" in changes:
        task.customer_id = get_or_404(Customer, changes["customer_id"], "Customer").id
    if "category_id" in changes:
        task.category_id = get_or_404(Category, changes["category_id"], "Category").id
    if "priority" in changes:
        task.priority = parse_priority(changes["priority"])
    if "description" in changes:
        task.description = _clean_description(changes["description"])
    if "assigned_to_id" in changes:
        _assign(task, _active_user(changes["assigned_to_id"]))

    db.session.commit()
    return task


def delete_task(task_id: int) -> None:
    task = get_task(task_id)
    number = task.task_number
    db.session.delete(task)
    db.session.commit()
    current_app.logger.info("Task #%s deleted", number)


def assign_task(task_id: int, user_id: Any) -> Task:
    task = get_task(task_id)
    user = _active_user(user_id)
    _assign(task, user)
    db.session.commit()
    current_app.logger.info("Task #%s assigned to user %s", task.task_number, user.id)
    return task


def _assigned_task(task_id: int, user_id: int) -> Task:
    task = db.session.get(Task, task_id)
    if task is None or task.assigned_to_id != user_id:
        raise NotFound("Task not found or not assigned to you")
    return task


def accept_task(task_id: int, user_id: int) -> Task:
    """Accept an assigned task; the assignee may hold only one active task."""
    task = _assigned_task(task_id, user_id)
    if task.stage not in ACCEPTABLE_STAGES:
        raise InvalidTransition(f"Task cannot be accepted from stage {task.stage.value}")

    active = (
        Task.query.filter(
            Task.assigned_to_id == user_id,
            Task.id != task.id,
            Task.stage.in_(tuple(ACTIVE_STAGES)),
        )
        .order_by(Task.id.asc())
        .first()
    )
    if active is not None:
        raise ConflictActiveTask(f"You already have an active task (#{active.task_number})")

    task.enter_stage(TaskStage.ACCEPTED)
    db.session.commit()
    current_app.logger.info("Task #%s accepted by user %s", task.task_number, user_id)
    return task


def advance_stage(task_id: int, user_id: int) -> Task:
    """Move an accepted task one step along Accepted, Arrived, Completed."""
    task = _assigned_task(task_id, user_id)
    next_stage = NEXT_STAGE.get(task.stage)
    if next_stage is None:
        raise InvalidTransition()
    task.enter_stage(next_stage)
    db.session.commit()
    current_app.logger.info("Task #%s moved to %s", task.task_number, next_stage.value)
    return task


def cancel_task(task_id: int, *, actor_id: Optional[int] = None) -> Task:
    """Cancel a non-terminal task; with ``actor_id`` the actor must be the assignee."""
    task = _assigned_task(task_id, actor_id) if actor_id is not None else get_task(task_id)
    if task.is_terminal:
        raise InvalidTransition(f"Task is already {task.stage.value}")
    task.enter_stage(TaskStage.CANCELLED)
    db.session.commit()
    current_app.logger.info("Task #%s cancelled", task.task_number)
    return task


def add_comment(task_id: int, user_id: int, message: Any) -> TaskComment:
    task = _assigned_task(task_id, user_id)
    text = str(message or "").strip()
    if not text:
        raise InvalidInput("Message is required")
    if len(text) > MAX_COMMENT_LENGTH:
        raise InvalidInput(f"Message cannot exceed {MAX_COMMENT_LENGTH} characters")

    comment = TaskComment(task_id=task.id, user_id=user_id, message=text)
    task.comments.append(comment)
    db.session.commit()
    notifications.broadcast_task_comment(task_id=task.id, user_id=user_id, message=text)
    return comment


def search_tasks(user_id: int, term: Optional[str] = None) -> List[Task]:
    """The caller's tasks, newest first, by task number or customer name."""
    query = Task.query.filter(Task.assigned_to_id == user_id)
    term = (term or "").strip()
    if term:
        if term.isdigit():
            query = query.filter(Task.task_number == int(term))
        else:
            query = query.join(Customer, Task.customer_id == Customer.id).filter(
                Customer.name.ilike(f"%{term}%")
            )
    return query.order_by(Task.created_at.desc(), Task.id.desc()).all()


def ongoing_tasks(user_id: int) -> List[Task]:
    return (
        Task.query.filter(Task.assigned_to_id == user_id, Task.stage.in_(ONGOING_STAGES))
        .order_by(Task.created_at.desc(), Task.id.desc())
        .all()
    )
