# hrbo_api/blueprints/branches.py
from __future__ import annotations

from flask import Blueprint, request
from flask_jwt_extended import jwt_required
from sqlalchemy import func

from hrbo_api.common.auth import requires_perms
from hrbo_api.common.errors import InvalidStateError, NotFoundError, ValidationError
from hrbo_api.common.http import ok, json_body
from hrbo_api.common.paging import page_limit, parse_sort, apply_sort, ilike_any, paginate, text_q
from hrbo_api.common.parsing import clean_text
from hrbo_api.common.rows import branch_row
from hrbo_api.extensions import db
from hrbo_api.models.employee import Employee
from hrbo_api.models.master import Branch, Department

bp = Blueprint("branches", __name__, url_prefix="/api/v1/branches")


def _get(branch_id: int) -> Branch:
    b = db.session.get(Branch, branch_id)
    if not b:
        raise NotFoundError("Branch not found", payload={"id": branch_id})
    return b


def _check_code(code: str, exclude_id=None):
    if not code:
        raise ValidationError("code is required")
    if len(code) > 20:
        raise ValidationError("code is at most 20 characters")
    q = Branch.query.filter(func.lower(Branch.code) == code.lower())
    if exclude_id is not None:
        q = q.filter(Branch.id != exclude_id)
    if q.first():
        raise ValidationError("Branch code already exists", payload={"code": code})


@bp.get("")
@jwt_required()
@requires_perms("branches.view")
def list_branches():
    qry = Branch.query
    s = text_q()
    if s:
        qry = qry.filter(ilike_any(s, Branch.name, Branch.code))
    is_active = request.args.get("is_active")
    if is_active is not None:
        v = is_active.lower()
        if v in ("true", "1", "yes"):
            qry = qry.filter(Branch.is_active.is_(True))
        elif v in ("false", "0", "no"):
            qry = qry.filter(Branch.is_active.is_(False))
        else:
            raise ValidationError("is_active must be true/false")

    allowed = {"id": Branch.id, "name": Branch.name, "code": Branch.code, "created_at": Branch.created_at}
    qry = apply_sort(qry, parse_sort(request.args.get("sort")), allowed, Branch.id)
    page, size = page_limit()
    p = paginate(qry, page, size)
    return ok([branch_row(b) for b in p.items], **p.meta())


@bp.get("/<int:branch_id>")
@jwt_required()
@requires_perms("branches.view")
def get_branch(branch_id: int):
    return ok(branch_row(_get(branch_id)))


@bp.post("")
@jwt_required()
@requires_perms("branches.create")
def create_branch():
    data = json_body()
    name = clean_text(data.get("name"))
    code = clean_text(data.get("code"))
    if not name:
        raise ValidationError("name is required")
    _check_code(code)
    b = Branch(name=name, code=code, address=clean_text(data.get("address")),
               is_active=bool(data.get("is_active", True)))
    db.session.add(b)
    db.session.commit()
    return ok(branch_row(b), status=201)


@bp.put("/<int:branch_id>")
@jwt_required()
@requires_perms("branches.edit")
def update_branch(branch_id: int):
    b = _get(branch_id)
    data = json_body()
    if "name" in data:
        name = clean_text(data.get("name"))
        if not name:
            raise ValidationError("name cannot be empty")
        b.name = name
    if "code" in data:
        code = clean_text(data.get("code"))
        _check_code(code, exclude_id=b.id)
        b.code = code
    if "address" in data:
        b.address = clean_text(data.get("address"))
    if "is_active" in data:
        b.is_active = bool(data.get("is_active"))
    db.session.commit()
    return ok(branch_row(b))


@bp.delete("/<int:branch_id>")
@jwt_required()
@requires_perms("branches.delete")
def delete_branch(branch_id: int):
    b = _get(branch_id)
    if Employee.query.filter_by(branch_id=b.id).count():
        raise InvalidStateError("Cannot delete branch that has employees.")
    if Department.query.filter_by(branch_id=b.id).count():
        raise InvalidStateError("Cannot delete branch that has departments.")
    db.session.delete(b)
    db.session.commit()
    return ok({"id": branch_id, "deleted": True})
