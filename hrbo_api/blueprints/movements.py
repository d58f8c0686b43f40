# hrbo_api/blueprints/movements.py
from __future__ import annotations

from datetime import datetime, time, timedelta

from flask import Blueprint, current_app, request
from flask_jwt_extended import jwt_required

from hrbo_api.common.auth import current_actor
from hrbo_api.common.errors import AuthorizationError
from hrbo_api.common.http import ok, json_body
from hrbo_api.common.paging import page_limit, parse_sort, apply_sort, ilike_any, paginate, text_q
from hrbo_api.common.parsing import parse_date, parse_datetime, parse_enum, parse_int
from hrbo_api.common.rows import movement_row
from hrbo_api.common.statuses import MovementStatus, MovementType
from hrbo_api.models.employee import Employee
from hrbo_api.models.movement import Movement
from hrbo_api.services import movement_lifecycle as lifecycle

bp = Blueprint("movements", __name__, url_prefix="/api/v1/movements")

SORTABLE = {
    "id": Movement.id,
    "from_datetime": Movement.from_datetime,
    "to_datetime": Movement.to_datetime,
    "status": Movement.status,
    "created_at": Movement.created_at,
}


def _visible(movement_id: int) -> Movement:
    ctx = current_actor()
    m = lifecycle.get_movement(movement_id)
    if not lifecycle.can_view(ctx, m):
        raise AuthorizationError("You do not have permission to view this movement request.")
    return m


def _fields(data: dict) -> dict:
    """Body -> typed kwargs; only keys present in the body are returned."""
    out = {}
    if "employee_id" in data:
        out["employee_id"] = parse_int(data.get("employee_id"), "employee_id")
    if "movement_type" in data:
        out["movement_type"] = data.get("movement_type")
    for k in ("from_datetime", "to_datetime"):
        if k in data:
            out[k] = parse_datetime(data.get(k), k)
    for k in ("purpose", "destination", "remarks"):
        if k in data:
            out[k] = data.get(k)
    return out


@bp.get("")
@jwt_required()
def list_movements():
    ctx = current_actor()
    q = lifecycle.visible_to(ctx, Movement.query.join(Employee, Movement.employee_id == Employee.id))

    status = parse_enum(request.args.get("status"), "status", MovementStatus)
    if status:
        q = q.filter(Movement.status == status)
    mtype = parse_enum(request.args.get("movement_type"), "movement_type", MovementType)
    if mtype:
        q = q.filter(Movement.movement_type == mtype)
    emp_id = parse_int(request.args.get("employee_id"), "employee_id")
    if emp_id:
        q = q.filter(Movement.employee_id == emp_id)
    dept_id = parse_int(request.args.get("department_id"), "department_id")
    if dept_id:
        q = q.filter(Employee.department_id == dept_id)
    from_date = parse_date(request.args.get("from_date"), "from_date")
    if from_date:
        q = q.filter(Movement.from_datetime >= datetime.combine(from_date, time.min))
    to_date = parse_date(request.args.get("to_date"), "to_date")
    if to_date:
        # whole day inclusive
        q = q.filter(Movement.to_datetime < datetime.combine(to_date + timedelta(days=1), time.min))
    s = text_q()
    if s:
        q = q.filter(ilike_any(s, Employee.first_name, Employee.last_name, Employee.code))

    page, size = page_limit()
    q = apply_sort(q, parse_sort(request.args.get("sort")), SORTABLE, Movement.id)
    p = paginate(q, page, size)
    return ok([movement_row(m) for m in p.items], **p.meta())


@bp.post("")
@jwt_required()
def create_movement():
    ctx = current_actor()
    m = lifecycle.create(ctx, **_fields(json_body()))
    return ok(movement_row(m), status=201)


@bp.get("/<int:movement_id>")
@jwt_required()
def get_movement(movement_id: int):
    return ok(movement_row(_visible(movement_id)))


@bp.route("/<int:movement_id>", methods=["PUT", "PATCH"])
@jwt_required()
def update_movement(movement_id: int):
    ctx = current_actor()
    m = lifecycle.get_movement(movement_id)
    m = lifecycle.update(ctx, m, **_fields(json_body()))
    return ok(movement_row(m))


@bp.post("/<int:movement_id>/approve")
@jwt_required()
def approve_movement(movement_id: int):
    ctx = current_actor()
    m = lifecycle.approve(ctx, lifecycle.get_movement(movement_id), json_body().get("remarks"))
    return ok(movement_row(m))


@bp.post("/<int:movement_id>/reject")
@jwt_required()
def reject_movement(movement_id: int):
    ctx = current_actor()
    m = lifecycle.reject(ctx, lifecycle.get_movement(movement_id), json_body().get("remarks"))
    return ok(movement_row(m))


@bp.post("/<int:movement_id>/cancel")
@jwt_required()
def cancel_movement(movement_id: int):
    ctx = current_actor()
    m = lifecycle.cancel(ctx, lifecycle.get_movement(movement_id))
    return ok(movement_row(m))


@bp.post("/<int:movement_id>/complete")
@jwt_required()
def complete_movement(movement_id: int):
    ctx = current_actor()
    m = lifecycle.complete(ctx, lifecycle.get_movement(movement_id))
    return ok(movement_row(m))


@bp.post("/<int:movement_id>/remarks")
@jwt_required()
def annotate_movement(movement_id: int):
    ctx = current_actor()
    m = lifecycle.annotate(ctx, lifecycle.get_movement(movement_id), json_body().get("remarks"))
    current_app.logger.info("movement %s annotated by user=%s", m.id, ctx.user_id)
    return ok(movement_row(m))


@bp.get("/<int:movement_id>/duration")
@jwt_required()
def movement_duration(movement_id: int):
    m = _visible(movement_id)
    return ok({"id": m.id, "hours": lifecycle.duration(m)})
