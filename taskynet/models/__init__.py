"""Database models package for the back office."""
from .catalog import Category, Service, Zone
from .customer import Customer
from .finance import Counter, Invoice, InvoiceStatus, OPEN_STATUSES
from .ledger import (
    COMPANY_ID,
    CashoutTransaction,
    CollectorBalance,
    CollectorTransaction,
    Company,
    Currency,
    TransactionType,
)
from .task import ACTIVE_STAGES, TERMINAL_STAGES, Task, TaskComment, TaskPriority, TaskStage
from .user import Role, RoleName, User

__all__ = [
    "Role",
    "RoleName",
    "User",
    "Service",
    "Zone",
    "Category",
    "Customer",
    "Task",
    "TaskComment",
    "TaskStage",
    "TaskPriority",
    "ACTIVE_STAGES",
    "TERMINAL_STAGES",
    "Invoice",
    "InvoiceStatus",
    "OPEN_STATUSES",
    "Counter",
    "Company",
    "COMPANY_ID",
    "CashoutTransaction",
    "CollectorBalance",
    "CollectorTransaction",
    "Currency",
    "TransactionType",
]
