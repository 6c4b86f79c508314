"""Field work tasks and their comment threads."""
from __future__ import annotations

import enum
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Index, UniqueConstraint, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..extensions import db
from .base import TimestampMixin

if TYPE_CHECKING:  # pragma: no cover - typing helpers
    from .catalog import Category
    from .customer import Customer
    from .user import User


class TaskStage(str, enum.Enum):
    """Task lifecycle stages."""

    PENDING = "pending"
    ASSIGNED = "assigned"
    ACCEPTED = "accepted"
    IN_PROGRESS = "in_progress"
    ARRIVED = "arrived"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


TERMINAL_STAGES = frozenset({TaskStage.COMPLETED, TaskStage.CANCELLED})

# A technician may hold at most one task in these stages.
ACTIVE_STAGES = frozenset({TaskStage.ASSIGNED, TaskStage.ACCEPTED, TaskStage.IN_PROGRESS})


class TaskPriority(str, enum.Enum):
    """Task urgency levels."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class Task(TimestampMixin, db.Model):
    """Unit of field work for a customer, optionally assigned to a user."""

    __tablename__ = "tasks"
    __table_args__ = (
        UniqueConstraint("task_number", name="uq_tasks_task_number"),
        Index("ix_tasks_stage_priority", "stage", "priority"),
        Index("ix_tasks_assignee_stage", "assigned_to_id", "stage"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    task_number: Mapped[int] = mapped_column(db.Integer, nullable=False)
    customer_id: Mapped[int] = mapped_column(
        db.Integer,
        db.ForeignKey("customers.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    assigned_to_id: Mapped[int | None] = mapped_column(
        db.Integer,
        db.ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    category_id: Mapped[int] = mapped_column(
        db.Integer,
        db.ForeignKey("categories.id", ondelete="RESTRICT"),
        nullable=False,
    )
    priority: Mapped[TaskPriority] = mapped_column(
        db.Enum(TaskPriority, native_enum=False, validate_strings=True, name="task_priority"),
        nullable=False,
        default=TaskPriority.MEDIUM,
        server_default=text("'medium'"),
    )
    stage: Mapped[TaskStage] = mapped_column(
        db.Enum(TaskStage, native_enum=False, validate_strings=True, name="task_stage"),
        nullable=False,
        default=TaskStage.PENDING,
        server_default=text("'pending'"),
    )
    description: Mapped[str | None] = mapped_column(db.Text, nullable=True)
    finished_at: Mapped[datetime | None] = mapped_column(db.DateTime, nullable=True)

    customer: Mapped["Customer"] = relationship("Customer", lazy="joined")
    assignee: Mapped["User | None"] = relationship("User", foreign_keys=[assigned_to_id], lazy="joined")
    category: Mapped["Category"] = relationship("Category", lazy="joined")
    comments: Mapped[list["TaskComment"]] = relationship(
        "TaskComment",
        back_populates="task",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="TaskComment.id",
    )

    @property
    def is_terminal(self) -> bool:
        return self.stage in TERMINAL_STAGES

    def enter_stage(self, stage: TaskStage) -> None:
        """Move to ``stage`` and keep ``finished_at`` in step with it."""
        self.stage = stage
        if stage in TERMINAL_STAGES:
            if self.finished_at is None:
                self.finished_at = datetime.utcnow()
        else:
            self.finished_at = None

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"<Task #{self.task_number} {self.stage.value}>"


class TaskComment(db.Model):
    """Append-only note left on a task."""

    __tablename__ = "task_comments"

    id: Mapped[int] = mapped_column(primary_key=True)
    task_id: Mapped[int] = mapped_column(
        db.Integer,
        db.ForeignKey("tasks.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[int | None] = mapped_column(
        db.Integer,
        db.ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    message: Mapped[str] = mapped_column(db.String(1000), nullable=False)
    created_at: Mapped[datetime] = mapped_column(db.DateTime, nullable=False, default=datetime.utcnow)

    task: Mapped[Task] = relationship("Task", back_populates="comments")
    user: Mapped["User | None"] = relationship("User", lazy="joined")

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"<TaskComment {self.id} on task {self.task_id}>"
