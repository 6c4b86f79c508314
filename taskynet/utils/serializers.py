"""JSON representations of models (camelCase keys, money as numbers)."""
from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional

from ..models import (
    CashoutTransaction,
    Category,
    CollectorBalance,
    CollectorTransaction,
    Company,
    Customer,
    Invoice,
    Role,
    Service,
    Task,
    TaskComment,
    User,
    Zone,
)
from ..services.money import discounted_balance, remaining_balance


def _money(value: Optional[Decimal]) -> Optional[float]:
    return float(value) if value is not None else None


def _ts(value: Optional[datetime | date]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _timestamps(obj) -> Dict[str, Any]:
    return {"createdAt": _ts(obj.created_at), "updatedAt": _ts(getattr(obj, "updated_at", None))}


def many(items: Iterable[Any], fn) -> List[Dict[str, Any]]:
    return [fn(item) for item in items]


def role(obj: Role) -> Dict[str, Any]:
    return {"id": obj.id, "name": obj.name, **_timestamps(obj)}


def user_brief(obj: Optional[User]) -> Optional[Dict[str, Any]]:
    if obj is None:
        return None
    return {
        "id": obj.id,
        "firstName": obj.first_name,
        "lastName": obj.last_name,
        "email": obj.email,
        "phoneNumber": obj.phone_number,
    }


def user(obj: User) -> Dict[str, Any]:
    return {
        **user_brief(obj),
        "address": obj.address,
        "roleId": obj.role_id,
        "role": obj.role_name,
        "isActive": obj.is_active,
        "lastLogin": _ts(obj.last_login_at),
        **_timestamps(obj),
    }


def service(obj: Service) -> Dict[str, Any]:
    return {"id": obj.id, "name": obj.name, "cost": _money(obj.cost), **_timestamps(obj)}


def named(obj: Zone | Category) -> Dict[str, Any]:
    return {"id": obj.id, "name": obj.name, **_timestamps(obj)}


def customer_brief(obj: Optional[Customer]) -> Optional[Dict[str, Any]]:
    if obj is None:
        return None
    return {"id": obj.id, "name": obj.name, "location": obj.location, "phoneNumber": obj.phone_number}


def customer(obj: Customer) -> Dict[str, Any]:
    return {
        **customer_brief(obj),
        "serviceId": obj.service_id,
        "service": {"id": obj.service.id, "name": obj.service.name, "cost": _money(obj.service.cost)} if obj.service else None,
        "zoneId": obj.zone_id,
        "zone": {"id": obj.zone.id, "name": obj.zone.name} if obj.zone else None,
        "isActive": obj.is_active,
        **_timestamps(obj),
    }


def comment(obj: TaskComment) -> Dict[str, Any]:
    return {
        "id": obj.id,
        "userId": obj.user_id,
        "user": {"firstName": obj.user.first_name, "lastName": obj.user.last_name} if obj.user else None,
        "message": obj.message,
        "createdAt": _ts(obj.created_at),
    }


def task(obj: Task) -> Dict[str, Any]:
    return {
        "id": obj.id,
        "taskNumber": obj.task_number,
        "customerId": obj.customer_id,
        "customer": customer_brief(obj.customer),
        "assignedTo": obj.assigned_to_id,
        "assignee": user_brief(obj.assignee),
        "categoryId": obj.category_id,
        "category": obj.category.name if obj.category else None,
        "priority": obj.priority.value,
        "stage": obj.stage.value,
        "description": obj.description,
        "comments": many(obj.comments, comment),
        "finishedAt": _ts(obj.finished_at),
        **_timestamps(obj),
    }


def invoice(obj: Invoice) -> Dict[str, Any]:
    return {
        "id": obj.id,
        "number": obj.number,
        "customerId": obj.customer_id,
        "customer": customer_brief(obj.customer),
        "serviceId": obj.service_id,
        "service": {"id": obj.service.id, "name": obj.service.name, "cost": _money(obj.service.cost)} if obj.service else None,
        "assignedTo": obj.assigned_to_id,
        "assignee": user_brief(obj.assignee),
        "balance": _money(obj.balance),
        "discount": _money(obj.discount),
        "discountedBalance": _money(discounted_balance(obj.balance, obj.discount)),
        "amount": _money(obj.amount),
        "remainingBalance": _money(remaining_balance(obj)),
        "status": obj.status.value,
        "dueDate": _ts(obj.due_date),
        "periodYear": obj.period_year,
        "periodMonth": obj.period_month,
        **_timestamps(obj),
    }


def cashout(obj: CashoutTransaction) -> Dict[str, Any]:
    return {
        "id": obj.id,
        "amount": _money(obj.amount),
        "reason": obj.reason,
        "performedBy": obj.performed_by_id,
        "createdAt": _ts(obj.created_at),
    }


def company(obj: Company) -> Dict[str, Any]:
    return {
        "id": obj.id,
        "cash": _money(obj.cash),
        "cashoutTransactions": many(obj.cashouts, cashout),
        **_timestamps(obj),
    }


def collector(obj: User, balance: Optional[CollectorBalance]) -> Dict[str, Any]:
    return {
        **user_brief(obj),
        "balanceLBP": _money(balance.balance_lbp) if balance else 0.0,
        "balanceUSD": _money(balance.balance_usd) if balance else 0.0,
    }


def collector_transaction(obj: CollectorTransaction) -> Dict[str, Any]:
    return {
        "id": obj.id,
        "collectorId": obj.collector_id,
        "collector": user_brief(obj.collector),
        "amount": _money(obj.amount),
        "currency": obj.currency.value,
        "type": obj.type.value,
        "description": obj.description,
        "processedBy": obj.processed_by_id,
        **_timestamps(obj),
    }
