# hrbo_api/blueprints/attendance.py
from __future__ import annotations

from flask import Blueprint, request
from flask_jwt_extended import jwt_required

from hrbo_api.common.auth import current_actor, requires_perms
from hrbo_api.common.errors import ValidationError
from hrbo_api.common.http import ok, json_body
from hrbo_api.common.paging import page_limit, parse_sort, apply_sort, paginate
from hrbo_api.common.parsing import parse_date, parse_enum, parse_int
from hrbo_api.common.rows import attendance_row
from hrbo_api.common.statuses import AttendanceStatus
from hrbo_api.models.attendance import Attendance
from hrbo_api.models.employee import Employee
from hrbo_api.services import attendance_service as svc

bp = Blueprint("attendance", __name__, url_prefix="/api/v1/attendance")


def _clock_fields(data: dict) -> dict:
    return {k: svc.parse_clock(data.get(k), k) for k in ("check_in", "check_out") if k in data}


@bp.get("")
@jwt_required()
@requires_perms("attendance.view")
def list_attendance():
    qry = Attendance.query.join(Employee, Attendance.employee_id == Employee.id)

    start = parse_date(request.args.get("start_date"), "start_date")
    end = parse_date(request.args.get("end_date"), "end_date")
    if start and end and end < start:
        raise ValidationError("end_date cannot be before start_date")
    if start:
        qry = qry.filter(Attendance.date >= start)
    if end:
        qry = qry.filter(Attendance.date <= end)
    emp_id = parse_int(request.args.get("employee_id"), "employee_id")
    if emp_id:
        qry = qry.filter(Attendance.employee_id == emp_id)
    dept_id = parse_int(request.args.get("department_id"), "department_id")
    if dept_id:
        qry = qry.filter(Employee.department_id == dept_id)
    status = parse_enum(request.args.get("status"), "status", AttendanceStatus)
    if status:
        qry = qry.filter(Attendance.status == status)

    allowed = {"id": Attendance.id, "date": Attendance.date, "status": Attendance.status}
    qry = apply_sort(qry, parse_sort(request.args.get("sort")), allowed, Attendance.id)
    page, size = page_limit()
    p = paginate(qry, page, size)
    return ok([attendance_row(a) for a in p.items], **p.meta())


@bp.get("/<int:att_id>")
@jwt_required()
@requires_perms("attendance.view")
def get_attendance(att_id: int):
    return ok(attendance_row(svc.get_attendance(att_id)))


@bp.post("")
@jwt_required()
@requires_perms("attendance.create")
def create_attendance():
    data = json_body()
    a = svc.record(
        employee_id=parse_int(data.get("employee_id"), "employee_id", required=True),
        day=parse_date(data.get("date"), "date", required=True),
        status=data.get("status"),
        remarks=data.get("remarks"),
        created_by=current_actor().user_id,
        **_clock_fields(data),
    )
    return ok(attendance_row(a), status=201)


@bp.put("/<int:att_id>")
@jwt_required()
@requires_perms("attendance.edit")
def update_attendance(att_id: int):
    data = json_body()
    changes = {k: data[k] for k in ("status", "remarks") if k in data}
    changes.update(_clock_fields(data))
    a = svc.update(svc.get_attendance(att_id), **changes)
    return ok(attendance_row(a))


@bp.delete("/<int:att_id>")
@jwt_required()
@requires_perms("attendance.delete")
def delete_attendance(att_id: int):
    svc.delete(svc.get_attendance(att_id))
    return ok({"id": att_id, "deleted": True})
