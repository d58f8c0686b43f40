# hrbo_api/blueprints/leave.py
from __future__ import annotations

from flask import Blueprint, request
from flask_jwt_extended import jwt_required
from sqlalchemy import false

from hrbo_api.common.auth import current_actor, requires_perms
from hrbo_api.common.errors import AuthorizationError, NotFoundError, ValidationError
from hrbo_api.common.http import ok, json_body
from hrbo_api.common.paging import page_limit, parse_sort, apply_sort, paginate
from hrbo_api.common.parsing import clean_text, parse_date, parse_enum, parse_int
from hrbo_api.common.rows import leave_balance_row, leave_row, leave_type_row
from hrbo_api.common.statuses import LeaveStatus
from hrbo_api.extensions import db
from hrbo_api.models.leave import LeaveApplication, LeaveBalance, LeaveType
from hrbo_api.services import leave_service as svc

bp = Blueprint("leave", __name__, url_prefix="/api/v1/leave")


# ---------- Leave Types ----------
@bp.get("/types")
@jwt_required()
def list_types():
    qry = LeaveType.query
    if (request.args.get("include_inactive") or "").lower() not in ("1", "true", "yes"):
        qry = qry.filter(LeaveType.is_active.is_(True))
    return ok([leave_type_row(t) for t in qry.order_by(LeaveType.code.asc()).all()])


@bp.post("/types")
@jwt_required()
@requires_perms("leave.types")
def create_type():
    data = json_body()
    code = (clean_text(data.get("code")) or "").upper()
    name = clean_text(data.get("name"))
    if not code or not name:
        raise ValidationError("code and name are required")
    if LeaveType.query.filter_by(code=code).first():
        raise ValidationError("Leave type code already exists", payload={"code": code})
    t = LeaveType(code=code, name=name, is_active=bool(data.get("is_active", True)))
    db.session.add(t)
    db.session.commit()
    return ok(leave_type_row(t), status=201)


@bp.put("/types/<int:type_id>")
@jwt_required()
@requires_perms("leave.types")
def update_type(type_id: int):
    t = db.session.get(LeaveType, type_id)
    if not t:
        raise NotFoundError("Leave type not found", payload={"id": type_id})
    data = json_body()
    if "name" in data:
        name = clean_text(data.get("name"))
        if not name:
            raise ValidationError("name cannot be empty")
        t.name = name
    if "is_active" in data:
        t.is_active = bool(data.get("is_active"))
    db.session.commit()
    return ok(leave_type_row(t))


# ---------- Balances ----------
@bp.get("/balances")
@jwt_required()
def list_balances():
    ctx = current_actor()
    qry = LeaveBalance.query
    if not ctx.can("leave.view", "leave.balances"):
        if ctx.employee_id is None:
            qry = qry.filter(false())
        else:
            qry = qry.filter(LeaveBalance.employee_id == ctx.employee_id)

    emp_id = parse_int(request.args.get("employee_id"), "employee_id")
    if emp_id:
        qry = qry.filter(LeaveBalance.employee_id == emp_id)
    lt_id = parse_int(request.args.get("leave_type_id"), "leave_type_id")
    if lt_id:
        qry = qry.filter(LeaveBalance.leave_type_id == lt_id)
    year = parse_int(request.args.get("year"), "year")
    if year:
        qry = qry.filter(LeaveBalance.year == year)

    page, size = page_limit()
    p = paginate(qry.order_by(LeaveBalance.id.asc()), page, size)
    return ok([leave_balance_row(b) for b in p.items], **p.meta())


@bp.post("/balances")
@jwt_required()
def allocate_balance():
    data = json_body()
    b = svc.allocate(
        current_actor(),
        employee_id=parse_int(data.get("employee_id"), "employee_id", required=True),
        leave_type_id=parse_int(data.get("leave_type_id"), "leave_type_id", required=True),
        year=parse_int(data.get("year"), "year", required=True),
        allocated_days=parse_int(data.get("allocated_days"), "allocated_days", required=True),
    )
    return ok(leave_balance_row(b), status=201)


# ---------- Applications ----------
@bp.get("/applications")
@jwt_required()
def list_applications():
    ctx = current_actor()
    qry = LeaveApplication.query
    if not ctx.can("leave.view"):
        if ctx.employee_id is None:
            qry = qry.filter(false())
        else:
            qry = qry.filter(LeaveApplication.employee_id == ctx.employee_id)

    emp_id = parse_int(request.args.get("employee_id"), "employee_id")
    if emp_id:
        qry = qry.filter(LeaveApplication.employee_id == emp_id)
    status = parse_enum(request.args.get("status"), "status", LeaveStatus)
    if status:
        qry = qry.filter(LeaveApplication.status == status)
    lt_id = parse_int(request.args.get("leave_type_id"), "leave_type_id")
    if lt_id:
        qry = qry.filter(LeaveApplication.leave_type_id == lt_id)

    allowed = {
        "id": LeaveApplication.id,
        "start_date": LeaveApplication.start_date,
        "status": LeaveApplication.status,
        "created_at": LeaveApplication.created_at,
    }
    qry = apply_sort(qry, parse_sort(request.args.get("sort")), allowed, LeaveApplication.id)
    page, size = page_limit()
    p = paginate(qry, page, size)
    return ok([leave_row(x) for x in p.items], **p.meta())


@bp.get("/applications/<int:app_id>")
@jwt_required()
def get_application(app_id: int):
    ctx = current_actor()
    la = svc.get_application(app_id)
    if not (ctx.is_employee(la.employee_id) or ctx.can("leave.view", "leave.approve")):
        raise AuthorizationError("You do not have permission to view this leave application.")
    return ok(leave_row(la))


@bp.post("/applications")
@jwt_required()
def apply_leave():
    data = json_body()
    la = svc.apply(
        current_actor(),
        employee_id=parse_int(data.get("employee_id"), "employee_id"),
        leave_type_id=parse_int(data.get("leave_type_id"), "leave_type_id"),
        start_date=parse_date(data.get("start_date"), "start_date"),
        end_date=parse_date(data.get("end_date"), "end_date"),
        reason=data.get("reason"),
    )
    return ok(leave_row(la), status=201)


@bp.post("/applications/<int:app_id>/approve")
@jwt_required()
def approve_application(app_id: int):
    la = svc.approve(current_actor(), svc.get_application(app_id), json_body().get("remarks"))
    return ok(leave_row(la))


@bp.post("/applications/<int:app_id>/reject")
@jwt_required()
def reject_application(app_id: int):
    la = svc.reject(current_actor(), svc.get_application(app_id), json_body().get("remarks"))
    return ok(leave_row(la))


@bp.post("/applications/<int:app_id>/cancel")
@jwt_required()
def cancel_application(app_id: int):
    la = svc.cancel(current_actor(), svc.get_application(app_id))
    return ok(leave_row(la))
