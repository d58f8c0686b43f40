# hrbo_api/blueprints/employees.py
from __future__ import annotations

from flask import Blueprint, request
from flask_jwt_extended import jwt_required

from hrbo_api.common.auth import requires_perms
from hrbo_api.common.http import ok, json_body
from hrbo_api.common.paging import page_limit, parse_sort, apply_sort, ilike_any, paginate, text_q
from hrbo_api.common.parsing import parse_date, parse_enum, parse_int
from hrbo_api.common.rows import employee_row
from hrbo_api.common.statuses import EmployeeStatus, Gender
from hrbo_api.models.employee import Employee
from hrbo_api.services import employee_service as svc

bp = Blueprint("employees", __name__, url_prefix="/api/v1/employees")

_INT_FIELDS = ("department_id", "designation_id", "branch_id", "manager_id")


def _payload(data: dict) -> dict:
    out = {k: data[k] for k in ("code", "email", "first_name", "last_name", "phone", "gender", "status")
           if k in data}
    for k in _INT_FIELDS:
        if k in data:
            out[k] = parse_int(data.get(k), k)
    if "joining_date" in data:
        out["joining_date"] = parse_date(data.get("joining_date"), "joining_date")
    return out


@bp.get("")
@jwt_required()
@requires_perms("employees.view")
def list_employees():
    qry = Employee.query

    for k in _INT_FIELDS:
        v = parse_int(request.args.get(k), k)
        if v:
            qry = qry.filter(getattr(Employee, k) == v)
    status = parse_enum(request.args.get("status"), "status", EmployeeStatus)
    if status:
        qry = qry.filter(Employee.status == status)
    gender = parse_enum(request.args.get("gender"), "gender", Gender)
    if gender:
        qry = qry.filter(Employee.gender == gender)

    s = text_q()
    if s:
        qry = qry.filter(ilike_any(s, Employee.first_name, Employee.last_name, Employee.code, Employee.email))

    allowed = {
        "id": Employee.id,
        "code": Employee.code,
        "first_name": Employee.first_name,
        "last_name": Employee.last_name,
        "joining_date": Employee.joining_date,
        "created_at": Employee.created_at,
    }
    qry = apply_sort(qry, parse_sort(request.args.get("sort")), allowed, Employee.id)
    page, size = page_limit()
    p = paginate(qry, page, size)
    return ok([employee_row(e) for e in p.items], **p.meta())


@bp.get("/<int:emp_id>")
@jwt_required()
@requires_perms("employees.view")
def get_employee(emp_id: int):
    return ok(employee_row(svc.get_employee(emp_id)))


@bp.post("")
@jwt_required()
@requires_perms("employees.create")
def create_employee():
    e = svc.create(_payload(json_body()))
    return ok(employee_row(e), status=201)


@bp.put("/<int:emp_id>")
@jwt_required()
@requires_perms("employees.edit")
def update_employee(emp_id: int):
    e = svc.update(svc.get_employee(emp_id), _payload(json_body()))
    return ok(employee_row(e))


@bp.post("/<int:emp_id>/status")
@jwt_required()
@requires_perms("employees.edit")
def set_employee_status(emp_id: int):
    e = svc.set_status(svc.get_employee(emp_id), json_body().get("status"))
    return ok(employee_row(e))


@bp.delete("/<int:emp_id>")
@jwt_required()
@requires_perms("employees.delete")
def delete_employee(emp_id: int):
    e = svc.terminate(svc.get_employee(emp_id))
    return ok({"id": e.id, "status": e.status})
