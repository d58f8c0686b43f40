# hrbo_api/services/employee_service.py
from __future__ import annotations

import logging
import re

from hrbo_api.common.errors import NotFoundError, ValidationError
from hrbo_api.common.parsing import clean_text
from hrbo_api.common.statuses import EmployeeStatus, Gender
from hrbo_api.extensions import db
from hrbo_api.models.employee import Employee
from hrbo_api.models.master import Branch, Department, Designation

log = logging.getLogger(__name__)

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

_REFS = (
    ("department_id", Department),
    ("designation_id", Designation),
    ("branch_id", Branch),
    ("manager_id", Employee),
)
_TEXT_FIELDS = ("first_name", "last_name", "phone")


def get_employee(emp_id: int) -> Employee:
    e = db.session.get(Employee, emp_id)
    if not e:
        raise NotFoundError("Employee not found", payload={"id": emp_id})
    return e


def _check_unique(field: str, value, exclude_id=None):
    q = Employee.query.filter(getattr(Employee, field) == value)
    if exclude_id is not None:
        q = q.filter(Employee.id != exclude_id)
    if q.first():
        raise ValidationError(f"{field} already exists", payload={field: value})


def _apply(e: Employee, data: dict):
    if "code" in data:
        code = clean_text(data["code"])
        if not code:
            raise ValidationError("code is required")
        _check_unique("code", code, e.id)
        e.code = code
    if "email" in data:
        email = (clean_text(data["email"]) or "").lower()
        if not _EMAIL_RE.match(email):
            raise ValidationError("email is invalid", payload={"email": data["email"]})
        _check_unique("email", email, e.id)
        e.email = email
    for f in _TEXT_FIELDS:
        if f in data:
            setattr(e, f, clean_text(data[f]))
    if "gender" in data:
        if clean_text(data["gender"]) is None:
            e.gender = None
        else:
            g = Gender.parse(data["gender"])
            if g is None:
                raise ValidationError(f"gender must be one of: {', '.join(Gender.values())}")
            e.gender = g.value
    if "status" in data:
        st = EmployeeStatus.parse(data["status"])
        if st is None:
            raise ValidationError(f"status must be one of: {', '.join(EmployeeStatus.values())}")
        e.status = st.value
    if "joining_date" in data:
        e.joining_date = data["joining_date"]

    for field, model in _REFS:
        if field not in data:
            continue
        ref = data[field]
        if ref is not None:
            if field == "manager_id" and e.id is not None and ref == e.id:
                raise ValidationError("Employee cannot be their own manager.")
            if not db.session.get(model, ref):
                raise NotFoundError(f"{field} not found", payload={field: ref})
        setattr(e, field, ref)

    if not e.first_name:
        raise ValidationError("first_name is required")


def create(data: dict) -> Employee:
    for req in ("code", "email", "first_name"):
        if not clean_text(data.get(req)):
            raise ValidationError(f"{req} is required", payload={req: "required"})
    e = Employee(status=EmployeeStatus.ACTIVE.value)
    _apply(e, data)
    db.session.add(e)
    db.session.commit()
    log.info("employee created id=%s code=%s", e.id, e.code)
    return e


def update(e: Employee, data: dict) -> Employee:
    _apply(e, data)
    db.session.commit()
    return e


def set_status(e: Employee, status) -> Employee:
    st = EmployeeStatus.parse(status)
    if st is None:
        raise ValidationError(f"status must be one of: {', '.join(EmployeeStatus.values())}")
    e.status = st.value
    db.session.commit()
    log.info("employee status id=%s -> %s", e.id, e.status)
    return e


def terminate(e: Employee) -> Employee:
    """Employees are never hard-deleted."""
    return set_status(e, EmployeeStatus.TERMINATED.value)
