# hrbo_api/services/leave_service.py
from __future__ import annotations

from datetime import date, datetime
import logging

from hrbo_api.common.auth import ActorContext
from hrbo_api.common.errors import AuthorizationError, InvalidStateError, NotFoundError, ValidationError
from hrbo_api.common.parsing import clean_text
from hrbo_api.common.statuses import LeaveStatus
from hrbo_api.extensions import db
from hrbo_api.models.employee import Employee
from hrbo_api.models.leave import LeaveApplication, LeaveBalance, LeaveType
from hrbo_api.services.transitions import guarded_update

log = logging.getLogger(__name__)

PENDING = LeaveStatus.PENDING.value


def leave_days(start: date, end: date) -> int:
    """Both ends count: 11th to 14th is 4 days."""
    return (end - start).days + 1


def get_application(app_id: int) -> LeaveApplication:
    la = db.session.get(LeaveApplication, app_id)
    if not la:
        raise NotFoundError("Leave application not found", payload={"id": app_id})
    return la


def get_balance(employee_id: int, leave_type_id: int, year: int) -> LeaveBalance | None:
    return LeaveBalance.query.filter_by(employee_id=employee_id, leave_type_id=leave_type_id, year=year).first()


def _check_balance(employee_id: int, leave_type_id: int, start_date: date, days: int):
    # balances are kept per calendar year of the leave's start date
    bal = get_balance(employee_id, leave_type_id, start_date.year)
    if not bal:
        raise ValidationError("You do not have a leave balance for this leave type.",
                              payload={"leave_type_id": leave_type_id, "year": start_date.year})
    if bal.remaining_days < days:
        raise ValidationError(
            f"Not enough leave balance. Available: {bal.remaining_days} days, Requested: {days} days.",
            payload={"available": bal.remaining_days, "requested": days},
        )


def allocate(ctx: ActorContext, *, employee_id, leave_type_id, year, allocated_days) -> LeaveBalance:
    """Create or reset the allocation for (employee, leave type, year); used days are kept."""
    ctx.require("leave.balances", message="You do not have permission to allocate leave balances.")
    if year is None or allocated_days is None:
        raise ValidationError("year and allocated_days are required")
    if allocated_days < 0:
        raise ValidationError("allocated_days cannot be negative", payload={"allocated_days": allocated_days})
    if not db.session.get(Employee, employee_id):
        raise NotFoundError("Employee not found", payload={"employee_id": employee_id})
    if not db.session.get(LeaveType, leave_type_id):
        raise NotFoundError("Invalid leave type", payload={"leave_type_id": leave_type_id})

    bal = get_balance(employee_id, leave_type_id, year)
    if bal is None:
        bal = LeaveBalance(employee_id=employee_id, leave_type_id=leave_type_id, year=year, used_days=0)
        db.session.add(bal)
    elif allocated_days < bal.used_days:
        raise ValidationError("allocated_days cannot be below days already used",
                              payload={"used_days": bal.used_days})
    bal.allocated_days = allocated_days
    db.session.commit()
    log.info("leave balance employee=%s type=%s year=%s allocated=%s by user=%s",
             employee_id, leave_type_id, year, allocated_days, ctx.user_id)
    return bal


def apply(ctx: ActorContext, *, leave_type_id, start_date, end_date, reason=None, employee_id=None) -> LeaveApplication:
    if employee_id is None:
        employee_id = ctx.employee_id
    if employee_id is None:
        raise ValidationError("employee_id is required")
    if not ctx.is_employee(employee_id):
        ctx.require("leave.create", message="You do not have permission to apply leave for other employees.")

    errors = {}
    if not isinstance(start_date, date):
        errors["start_date"] = "start_date is required"
    if not isinstance(end_date, date):
        errors["end_date"] = "end_date is required"
    if not errors and end_date < start_date:
        errors["end_date"] = "end_date cannot be before start_date"
    if leave_type_id is None:
        errors["leave_type_id"] = "leave_type_id is required"
    if errors:
        raise ValidationError(next(iter(errors.values())), payload=errors)

    if not db.session.get(Employee, employee_id):
        raise NotFoundError("Employee not found", payload={"employee_id": employee_id})
    lt = db.session.get(LeaveType, leave_type_id)
    if not lt or not lt.is_active:
        raise NotFoundError("Invalid leave type", payload={"leave_type_id": leave_type_id})
    days = leave_days(start_date, end_date)
    # HR entering leave on someone's behalf is not held to the balance
    if not ctx.can("leave.edit"):
        _check_balance(employee_id, lt.id, start_date, days)

    la = LeaveApplication(
        employee_id=employee_id,
        leave_type_id=lt.id,
        start_date=start_date,
        end_date=end_date,
        days=days,
        reason=clean_text(reason),
        status=PENDING,
    )
    db.session.add(la)
    db.session.commit()
    log.info("leave applied id=%s employee=%s days=%s", la.id, employee_id, la.days)
    return la


def approve(ctx: ActorContext, la: LeaveApplication, remarks=None) -> LeaveApplication:
    ctx.require("leave.approve", message="You do not have permission to approve leave applications.")
    if la.status != PENDING:
        raise InvalidStateError(f"Cannot approve leave application in '{la.status}' status")
    values = {"status": LeaveStatus.APPROVED.value, "approved_by": ctx.user_id, "approved_at": datetime.utcnow()}
    if clean_text(remarks):
        values["remarks"] = clean_text(remarks)
    guarded_update(LeaveApplication, la, (PENDING,), values, action="approve", commit=False)

    # deducted in the same transaction as the status change
    n = (
        db.session.query(LeaveBalance)
        .filter(LeaveBalance.employee_id == la.employee_id,
                LeaveBalance.leave_type_id == la.leave_type_id,
                LeaveBalance.year == la.start_date.year)
        .update({LeaveBalance.used_days: LeaveBalance.used_days + la.days}, synchronize_session=False)
    )
    db.session.commit()
    db.session.refresh(la)
    log.info("leave approved id=%s days=%s balance_rows=%s by user=%s", la.id, la.days, n, ctx.user_id)
    return la


def reject(ctx: ActorContext, la: LeaveApplication, remarks) -> LeaveApplication:
    ctx.require("leave.approve", message="You do not have permission to reject leave applications.")
    if la.status != PENDING:
        raise InvalidStateError(f"Cannot reject leave application in '{la.status}' status")
    remarks = clean_text(remarks)
    if not remarks:
        raise ValidationError("remarks are required to reject a leave application", payload={"remarks": "required"})
    values = {"status": LeaveStatus.REJECTED.value, "approved_by": ctx.user_id, "remarks": remarks}
    return guarded_update(LeaveApplication, la, (PENDING,), values, action="reject")


def cancel(ctx: ActorContext, la: LeaveApplication) -> LeaveApplication:
    if not (ctx.is_employee(la.employee_id) or ctx.can("leave.edit")):
        raise AuthorizationError("You do not have permission to cancel this leave application.")
    if la.status != PENDING:
        raise InvalidStateError(f"Cannot cancel leave application in '{la.status}' status")
    return guarded_update(LeaveApplication, la, (PENDING,), {"status": LeaveStatus.CANCELLED.value}, action="cancel")
