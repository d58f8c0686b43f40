# hrbo_api/services/transfer_lifecycle.py
"""
Transfer requests: pending -> approved | rejected | cancelled; approved -> completed.
Completing a transfer moves the employee to the target branch/department/designation
in the same commit as the status change.
"""
from __future__ import annotations

from datetime import date
import logging

from hrbo_api.common.auth import ActorContext
from hrbo_api.common.errors import InvalidStateError, NotFoundError, ValidationError
from hrbo_api.common.parsing import clean_text
from hrbo_api.common.statuses import TransferStatus
from hrbo_api.extensions import db
from hrbo_api.models.employee import Employee
from hrbo_api.models.master import Branch, Department, Designation
from hrbo_api.models.transfer import Transfer
from hrbo_api.services.transitions import guarded_update

log = logging.getLogger(__name__)

PENDING = TransferStatus.PENDING.value
APPROVED = TransferStatus.APPROVED.value


def get_transfer(transfer_id: int) -> Transfer:
    t = db.session.get(Transfer, transfer_id)
    if not t:
        raise NotFoundError("Transfer not found", payload={"id": transfer_id})
    return t


def _exists(model, pk, field):
    if pk is None:
        return None
    if not db.session.get(model, pk):
        raise NotFoundError(f"{field} not found", payload={field: pk})
    return pk


def create(ctx: ActorContext, *, employee_id, to_branch_id, effective_date, reason,
           from_branch_id=None, from_department_id=None, to_department_id=None,
           from_designation_id=None, to_designation_id=None, transfer_order_no=None,
           today: date | None = None) -> Transfer:
    ctx.require("transfers.create", message="You do not have permission to create transfer requests.")

    emp = db.session.get(Employee, employee_id) if employee_id is not None else None
    if not emp:
        raise NotFoundError("Employee not found", payload={"employee_id": employee_id})

    from_branch_id = from_branch_id if from_branch_id is not None else emp.branch_id
    from_department_id = from_department_id if from_department_id is not None else emp.department_id
    from_designation_id = from_designation_id if from_designation_id is not None else emp.designation_id

    errors = {}
    if from_branch_id is None:
        errors["from_branch_id"] = "from_branch_id is required"
    if to_branch_id is None:
        errors["to_branch_id"] = "to_branch_id is required"
    elif to_branch_id == from_branch_id:
        errors["to_branch_id"] = "to_branch_id must differ from from_branch_id"
    if not isinstance(effective_date, date):
        errors["effective_date"] = "effective_date is required"
    elif effective_date < (today or date.today()):
        errors["effective_date"] = "effective_date cannot be in the past"
    reason = clean_text(reason)
    if not reason:
        errors["reason"] = "reason is required"
    order_no = clean_text(transfer_order_no)
    if order_no and len(order_no) > 50:
        errors["transfer_order_no"] = "transfer_order_no is at most 50 characters"
    if errors:
        raise ValidationError(next(iter(errors.values())), payload=errors)

    _exists(Branch, from_branch_id, "from_branch_id")
    _exists(Branch, to_branch_id, "to_branch_id")
    _exists(Department, from_department_id, "from_department_id")
    _exists(Department, to_department_id, "to_department_id")
    _exists(Designation, from_designation_id, "from_designation_id")
    _exists(Designation, to_designation_id, "to_designation_id")

    t = Transfer(
        employee_id=emp.id,
        from_branch_id=from_branch_id,
        to_branch_id=to_branch_id,
        from_department_id=from_department_id,
        to_department_id=to_department_id,
        from_designation_id=from_designation_id,
        to_designation_id=to_designation_id,
        effective_date=effective_date,
        transfer_order_no=order_no,
        reason=reason,
        status=PENDING,
    )
    db.session.add(t)
    db.session.commit()
    log.info("transfer created id=%s employee=%s %s->%s", t.id, emp.id, from_branch_id, to_branch_id)
    return t


def approve(ctx: ActorContext, transfer: Transfer) -> Transfer:
    ctx.require("transfers.approve", message="You do not have permission to approve transfer requests.")
    if transfer.status != PENDING:
        raise InvalidStateError("This transfer request is not pending approval.")
    guarded_update(Transfer, transfer, (PENDING,), {"status": APPROVED, "approved_by": ctx.user_id}, action="approve")
    log.info("transfer approved id=%s by user=%s", transfer.id, ctx.user_id)
    return transfer


def reject(ctx: ActorContext, transfer: Transfer, remarks) -> Transfer:
    ctx.require("transfers.approve", message="You do not have permission to reject transfer requests.")
    if transfer.status != PENDING:
        raise InvalidStateError("This transfer request is not pending approval.")
    remarks = clean_text(remarks)
    if not remarks:
        raise ValidationError("remarks are required to reject a transfer", payload={"remarks": "required"})
    values = {"status": TransferStatus.REJECTED.value, "approved_by": ctx.user_id, "remarks": remarks}
    guarded_update(Transfer, transfer, (PENDING,), values, action="reject")
    log.info("transfer rejected id=%s by user=%s", transfer.id, ctx.user_id)
    return transfer


def cancel(ctx: ActorContext, transfer: Transfer) -> Transfer:
    ctx.require("transfers.edit", message="You do not have permission to cancel transfer requests.")
    if transfer.status != PENDING:
        raise InvalidStateError("Only pending transfer requests can be cancelled.")
    guarded_update(Transfer, transfer, (PENDING,), {"status": TransferStatus.CANCELLED.value}, action="cancel")
    return transfer


def complete(ctx: ActorContext, transfer: Transfer) -> Transfer:
    ctx.require("transfers.edit", message="You do not have permission to complete transfer requests.")
    if transfer.status != APPROVED:
        raise InvalidStateError("Only approved transfer requests can be completed.")

    emp = transfer.employee
    emp.branch_id = transfer.to_branch_id
    if transfer.to_department_id:
        emp.department_id = transfer.to_department_id
    if transfer.to_designation_id:
        emp.designation_id = transfer.to_designation_id

    # employee changes are flushed with the guarded UPDATE and rolled back with it
    guarded_update(Transfer, transfer, (APPROVED,), {"status": TransferStatus.COMPLETED.value}, action="complete")
    log.info("transfer completed id=%s employee=%s now branch=%s", transfer.id, emp.id, emp.branch_id)
    return transfer
