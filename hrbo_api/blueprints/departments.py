# hrbo_api/blueprints/departments.py
from __future__ import annotations

from flask import Blueprint, request
from flask_jwt_extended import jwt_required

from hrbo_api.common.auth import requires_perms
from hrbo_api.common.http import ok, json_body
from hrbo_api.common.paging import page_limit, parse_sort, apply_sort, ilike_any, paginate, text_q
from hrbo_api.common.parsing import parse_int
from hrbo_api.common.rows import department_row, designation_row
from hrbo_api.models.master import Branch, Department, Designation
from hrbo_api.services import department_service as svc

bp = Blueprint("departments", __name__, url_prefix="/api/v1/departments")

_INT_FIELDS = ("branch_id", "parent_department_id", "head_employee_id")


def _payload(data: dict) -> dict:
    out = {k: data[k] for k in ("name", "description") if k in data}
    for k in _INT_FIELDS:
        if k in data:
            out[k] = parse_int(data.get(k), k)
    return out


@bp.get("")
@jwt_required()
@requires_perms("departments.view")
def list_departments():
    qry = Department.query.join(Branch, Department.branch_id == Branch.id)

    branch_id = parse_int(request.args.get("branch_id"), "branch_id")
    if branch_id:
        qry = qry.filter(Department.branch_id == branch_id)
    parent_id = parse_int(request.args.get("parent_department_id"), "parent_department_id")
    if parent_id:
        qry = qry.filter(Department.parent_department_id == parent_id)

    s = text_q()
    if s:
        qry = qry.filter(ilike_any(s, Department.name, Branch.name))

    allowed = {
        "id": Department.id,
        "name": Department.name,
        "branch_id": Department.branch_id,
        "created_at": Department.created_at,
    }
    qry = apply_sort(qry, parse_sort(request.args.get("sort")), allowed, Department.id)
    page, size = page_limit()
    p = paginate(qry, page, size)
    return ok([department_row(d) for d in p.items], **p.meta())


@bp.get("/tree")
@jwt_required()
@requires_perms("departments.view")
def department_tree():
    qry = Department.query
    branch_id = parse_int(request.args.get("branch_id"), "branch_id")
    if branch_id:
        qry = qry.filter(Department.branch_id == branch_id)
    return ok(svc.build_tree(qry.all()))


@bp.get("/<int:dep_id>")
@jwt_required()
@requires_perms("departments.view")
def get_department(dep_id: int):
    d = svc.get_department(dep_id)
    data = department_row(d)
    data["ancestors"] = svc.ancestors(d.id)
    data["children"] = [department_row(c) for c in d.children.order_by(Department.name).all()]
    return ok(data)


@bp.get("/<int:dep_id>/designations")
@jwt_required()
@requires_perms("departments.view")
def list_designations(dep_id: int):
    d = svc.get_department(dep_id)
    items = Designation.query.filter_by(department_id=d.id).order_by(Designation.name).all()
    return ok([designation_row(x) for x in items])


@bp.post("")
@jwt_required()
@requires_perms("departments.create")
def create_department():
    d = svc.create(**_payload(json_body()))
    return ok(department_row(d), status=201)


@bp.put("/<int:dep_id>")
@jwt_required()
@requires_perms("departments.edit")
def update_department(dep_id: int):
    d = svc.update(svc.get_department(dep_id), **_payload(json_body()))
    return ok(department_row(d))


@bp.delete("/<int:dep_id>")
@jwt_required()
@requires_perms("departments.delete")
def delete_department(dep_id: int):
    svc.delete(svc.get_department(dep_id))
    return ok({"id": dep_id, "deleted": True})
