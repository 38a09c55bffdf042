"""
Leave balance bookkeeping.

Balances move days between three counters: a new request reserves days
as pending, approval moves them from pending to used, rejection and
cancellation release them. Every move is a single $inc on the balance
document; reservations are additionally compare-and-set so concurrent
requests cannot overdraw it.
"""
import logging
from datetime import datetime
from typing import List, Optional

from beanie import PydanticObjectId
from fastapi import HTTPException
from pymongo.errors import DuplicateKeyError

from talenthr.models.employee import Employee
from talenthr.models.leave import LeaveBalance, LeaveRequest, LeaveType

logger = logging.getLogger(__name__)


def count_leave_days(start: datetime, end: datetime, half_day: bool = False) -> float:
    """Inclusive calendar days; a half day only applies to single-day requests"""
    if end.date() < start.date():
        raise ValueError("End date must be on or after start date")
    days = (end.date() - start.date()).days + 1
    if half_day and days == 1:
        return 0.5
    return float(days)


async def get_or_create_balance(employee: Employee, leave_type: LeaveType, year: int) -> LeaveBalance:
    balance = await LeaveBalance.find_one(
        LeaveBalance.user_id == employee.user_id,
        LeaveBalance.leave_type_id == leave_type.id,
        LeaveBalance.year == year,
    )
    if balance:
        return balance
    balance = LeaveBalance(
        user_id=employee.user_id,
        employee_id=employee.id,
        company_id=employee.company_id,
        leave_type_id=leave_type.id,
        year=year,
        total_days=leave_type.annual_quota,
    )
    try:
        await balance.insert()
    except DuplicateKeyError:
        # created concurrently, use the stored one
        balance = await LeaveBalance.find_one(
            LeaveBalance.user_id == employee.user_id,
            LeaveBalance.leave_type_id == leave_type.id,
            LeaveBalance.year == year,
        )
    return balance


async def ensure_balances(employee: Employee, year: int) -> List[LeaveBalance]:
    """Balances for every active leave type of the company, created on demand"""
    leave_types = await LeaveType.find(
        LeaveType.company_id == employee.company_id,
        LeaveType.status == "active",
    ).to_list()
    return [await get_or_create_balance(employee, lt, year) for lt in leave_types]


async def _apply(balance_id: PydanticObjectId, inc: dict, guard: Optional[dict] = None) -> bool:
    query = {"_id": balance_id}
    if guard:
        query.update(guard)
    result = await LeaveBalance.get_motor_collection().update_one(
        query, {"$inc": inc, "$set": {"updated_at": datetime.utcnow()}}
    )
    return result.modified_count == 1


async def reserve_days(balance: LeaveBalance, days: float, retries: int = 3) -> None:
    """
    Move days into pending.

    Compare-and-set on the counters that were read: if another request
    changed the balance in between, re-read and check availability again.
    """
    for _ in range(retries):
        if balance.available_days < days:
            raise HTTPException(
                status_code=400,
                detail=f"Insufficient leave balance. Available: {balance.available_days:g} days",
            )
        guard = {
            "total_days": balance.total_days,
            "used_days": balance.used_days,
            "pending_days": balance.pending_days,
        }
        if await _apply(balance.id, {"pending_days": days}, guard):
            balance.pending_days += days
            return
        balance = await LeaveBalance.get(balance.id)
    raise HTTPException(status_code=409, detail="Leave balance changed, please try again")


async def unreserve_days(balance: LeaveBalance, days: float) -> None:
    """Undo reserve_days when the request itself could not be stored"""
    await _apply(balance.id, {"pending_days": -days})


async def release_days(request: LeaveRequest) -> None:
    balance = await _balance_for_request(request)
    if balance:
        await _apply(balance.id, {"pending_days": -request.total_days})


async def consume_days(request: LeaveRequest) -> None:
    balance = await _balance_for_request(request)
    if balance:
        await _apply(balance.id, {"pending_days": -request.total_days, "used_days": request.total_days})


async def _balance_for_request(request: LeaveRequest) -> Optional[LeaveBalance]:
    balance = await LeaveBalance.find_one(
        LeaveBalance.user_id == request.user_id,
        LeaveBalance.leave_type_id == request.leave_type_id,
        LeaveBalance.year == request.start_date.year,
    )
    if balance is None:
        logger.warning("No leave balance for request %s", request.id)
    return balance


async def transition(request: LeaveRequest, new_status: str, extra: Optional[dict] = None) -> bool:
    """
    Move a pending request to new_status.

    Conditional on the stored status still being pending: of two racing
    approvals only one returns True.
    """
    fields = {"status": new_status, "updated_at": datetime.utcnow()}
    if extra:
        fields.update(extra)
    result = await LeaveRequest.get_motor_collection().update_one(
        {"_id": request.id, "status": "pending"}, {"$set": fields}
    )
    if result.modified_count != 1:
        return False
    for key, value in fields.items():
        setattr(request, key, value)
    return True


def serialize_balance(balance: LeaveBalance, leave_type: Optional[LeaveType] = None) -> dict:
    return {
        "id": str(balance.id),
        "leave_type": {
            "id": str(leave_type.id),
            "name": leave_type.name,
            "code": leave_type.code,
            "color": leave_type.color,
        } if leave_type else None,
        "year": balance.year,
        "total_days": balance.total_days,
        "used_days": balance.used_days,
        "pending_days": balance.pending_days,
        "carried_forward": balance.carried_forward,
        "available_days": balance.available_days,
    }
