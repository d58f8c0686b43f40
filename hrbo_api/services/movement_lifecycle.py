# hrbo_api/services/movement_lifecycle.py
"""
Movement request lifecycle.

    pending ──approve──▶ approved ──complete──▶ completed
       │
       ├──reject──▶ rejected
       └──cancel──▶ cancelled

`rejected`, `cancelled` and `completed` are terminal; the only change a
terminal movement accepts is an audit remark (annotate()).

Every call takes the acting user as an explicit ActorContext. Capabilities:

  movements.create   file a movement for another employee
  movements.approve  approve / reject
  movements.edit     edit, cancel or complete anyone's movement; annotate
  movements.view     see every movement (otherwise: own, or pending for approvers)
"""
from __future__ import annotations

from datetime import datetime
import logging

from sqlalchemy import false

from hrbo_api.common.auth import ActorContext
from hrbo_api.common.errors import AuthorizationError, InvalidStateError, NotFoundError, ValidationError
from hrbo_api.common.parsing import clean_text, parse_datetime
from hrbo_api.common.statuses import MovementStatus, MovementType, TERMINAL_MOVEMENT_STATUSES
from hrbo_api.extensions import db
from hrbo_api.models.employee import Employee
from hrbo_api.models.movement import Movement
from hrbo_api.services.transitions import guarded_update

log = logging.getLogger(__name__)

PENDING = MovementStatus.PENDING.value
APPROVED = MovementStatus.APPROVED.value
EDITABLE_FIELDS = ("employee_id", "movement_type", "from_datetime", "to_datetime", "purpose", "destination", "remarks")


def get_movement(movement_id: int) -> Movement:
    m = db.session.get(Movement, movement_id)
    if not m:
        raise NotFoundError("Movement not found", payload={"id": movement_id})
    return m


def _validated(movement_type, from_datetime, to_datetime, purpose, destination) -> dict:
    errors = {}
    mtype = MovementType.parse(movement_type)
    if mtype is None:
        errors["movement_type"] = f"movement_type must be one of: {', '.join(MovementType.values())}"
    # offset-aware values are compared as UTC
    if isinstance(from_datetime, datetime):
        from_datetime = parse_datetime(from_datetime, "from_datetime")
    if isinstance(to_datetime, datetime):
        to_datetime = parse_datetime(to_datetime, "to_datetime")
    if not isinstance(from_datetime, datetime):
        errors["from_datetime"] = "from_datetime is required"
    if not isinstance(to_datetime, datetime):
        errors["to_datetime"] = "to_datetime is required"
    if "from_datetime" not in errors and "to_datetime" not in errors and to_datetime <= from_datetime:
        errors["to_datetime"] = "to_datetime must be after from_datetime"
    purpose = clean_text(purpose)
    destination = clean_text(destination)
    if not purpose:
        errors["purpose"] = "purpose is required"
    if not destination:
        errors["destination"] = "destination is required"
    if errors:
        raise ValidationError(next(iter(errors.values())), payload=errors)
    return {
        "movement_type": mtype.value,
        "from_datetime": from_datetime,
        "to_datetime": to_datetime,
        "purpose": purpose,
        "destination": destination,
    }


def _require_employee(employee_id) -> Employee:
    emp = db.session.get(Employee, employee_id) if employee_id is not None else None
    if not emp:
        raise NotFoundError("Employee not found", payload={"employee_id": employee_id})
    return emp


# ---------- create / edit ----------

def create(ctx: ActorContext, *, employee_id=None, movement_type=None, from_datetime=None, to_datetime=None,
           purpose=None, destination=None, remarks=None) -> Movement:
    """File a new movement request. Employees file for themselves; others need movements.create."""
    if employee_id is None:
        employee_id = ctx.employee_id
    if employee_id is None:
        raise ValidationError("employee_id is required", payload={"employee_id": "employee_id is required"})
    if not ctx.is_employee(employee_id):
        ctx.require("movements.create", message="You do not have permission to create movement requests for other employees.")

    fields = _validated(movement_type, from_datetime, to_datetime, purpose, destination)
    _require_employee(employee_id)

    m = Movement(employee_id=employee_id, remarks=clean_text(remarks), status=PENDING, approved_by=None, **fields)
    db.session.add(m)
    db.session.commit()
    log.info("movement created id=%s employee=%s type=%s by user=%s", m.id, employee_id, m.movement_type, ctx.user_id)
    return m


def update(ctx: ActorContext, movement: Movement, **changes) -> Movement:
    """
    Edit a non-terminal movement. Owners may edit only while pending and cannot
    re-assign the employee; movements.edit holders may edit pending or approved.
    """
    if movement.status in TERMINAL_MOVEMENT_STATUSES:
        raise InvalidStateError(f"Cannot edit movement in '{movement.status}' status")

    editor = ctx.can("movements.edit")
    if not editor:
        if not ctx.is_employee(movement.employee_id):
            raise AuthorizationError("You do not have permission to update this movement request.")
        if movement.status != PENDING:
            raise InvalidStateError(f"Cannot edit movement in '{movement.status}' status")

    unknown = set(changes) - set(EDITABLE_FIELDS)
    if unknown:
        raise ValidationError(f"Unknown fields: {', '.join(sorted(unknown))}")

    merged = {k: changes.get(k, getattr(movement, k)) for k in EDITABLE_FIELDS}
    values = _validated(merged["movement_type"], merged["from_datetime"], merged["to_datetime"],
                        merged["purpose"], merged["destination"])
    values["remarks"] = clean_text(merged["remarks"])

    new_emp = merged["employee_id"]
    if new_emp != movement.employee_id:
        if not editor:
            raise AuthorizationError("Only movement editors can re-assign the employee.")
        _require_employee(new_emp)
        values["employee_id"] = new_emp

    allowed = (PENDING, APPROVED) if editor else (PENDING,)
    guarded_update(Movement, movement, allowed, values, action="update")
    log.info("movement updated id=%s by user=%s", movement.id, ctx.user_id)
    return movement


# ---------- transitions ----------

def approve(ctx: ActorContext, movement: Movement, remarks=None) -> Movement:
    ctx.require("movements.approve", message="You do not have permission to approve movement requests.")
    if movement.status != PENDING:
        raise InvalidStateError("This movement request is not pending approval.",
                                payload={"id": movement.id, "status": movement.status})
    values = {"status": APPROVED, "approved_by": ctx.user_id}
    remarks = clean_text(remarks)
    if remarks:
        values["remarks"] = remarks
    guarded_update(Movement, movement, (PENDING,), values, action="approve")
    log.info("movement approved id=%s by user=%s", movement.id, ctx.user_id)
    return movement


def reject(ctx: ActorContext, movement: Movement, remarks) -> Movement:
    ctx.require("movements.approve", message="You do not have permission to reject movement requests.")
    if movement.status != PENDING:
        raise InvalidStateError("This movement request is not pending approval.",
                                payload={"id": movement.id, "status": movement.status})
    remarks = clean_text(remarks)
    if not remarks:
        raise ValidationError("remarks are required to reject a movement", payload={"remarks": "required"})
    values = {"status": MovementStatus.REJECTED.value, "approved_by": ctx.user_id, "remarks": remarks}
    guarded_update(Movement, movement, (PENDING,), values, action="reject")
    log.info("movement rejected id=%s by user=%s", movement.id, ctx.user_id)
    return movement


def cancel(ctx: ActorContext, movement: Movement) -> Movement:
    if not (ctx.is_employee(movement.employee_id) or ctx.can("movements.edit")):
        raise AuthorizationError("You do not have permission to cancel this movement request.")
    if movement.status != PENDING:
        raise InvalidStateError("Only pending movement requests can be cancelled.",
                                payload={"id": movement.id, "status": movement.status})
    guarded_update(Movement, movement, (PENDING,), {"status": MovementStatus.CANCELLED.value}, action="cancel")
    log.info("movement cancelled id=%s by user=%s", movement.id, ctx.user_id)
    return movement


def complete(ctx: ActorContext, movement: Movement) -> Movement:
    if not (ctx.is_employee(movement.employee_id) or ctx.can("movements.edit")):
        raise AuthorizationError("You do not have permission to mark this movement as completed.")
    if movement.status != APPROVED:
        raise InvalidStateError("Only approved movements can be marked as completed.",
                                payload={"id": movement.id, "status": movement.status})
    guarded_update(Movement, movement, (APPROVED,), {"status": MovementStatus.COMPLETED.value}, action="complete")
    log.info("movement completed id=%s by user=%s", movement.id, ctx.user_id)
    return movement


def annotate(ctx: ActorContext, movement: Movement, remarks) -> Movement:
    """Replace the audit remarks; allowed in any status, including terminal ones."""
    ctx.require("movements.edit", message="You do not have permission to annotate movement requests.")
    remarks = clean_text(remarks)
    if not remarks:
        raise ValidationError("remarks are required", payload={"remarks": "required"})
    movement.remarks = remarks
    db.session.commit()
    return movement


# ---------- derived / visibility ----------

def duration(movement: Movement) -> int:
    """Whole hours between from and to, rounded up."""
    seconds = int((movement.to_datetime - movement.from_datetime).total_seconds())
    return -(-seconds // 3600)


def visible_to(ctx: ActorContext, query):
    """Restrict a Movement query to what the actor may list."""
    if ctx.can("movements.view"):
        return query
    if ctx.employee_id is not None:
        return query.filter(Movement.employee_id == ctx.employee_id)
    if ctx.can("movements.approve"):
        return query.filter(Movement.status == PENDING)
    return query.filter(false())


def can_view(ctx: ActorContext, movement: Movement) -> bool:
    if ctx.can("movements.view") or ctx.is_employee(movement.employee_id):
        return True
    return ctx.can("movements.approve") and movement.status == PENDING
