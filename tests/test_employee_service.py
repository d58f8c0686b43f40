from datetime import date

import pytest

from hrbo_api.common.errors import NotFoundError, ValidationError
from hrbo_api.services import employee_service as svc


def _new(**kw):
    data = {"code": "E050", "email": "New.Hire@Test.local", "first_name": "Nia",
            "gender": "Female", "branch_id": 1, "department_id": 11, "designation_id": 100,
            "joining_date": date(2024, 4, 1)}
    data.update(kw)
    return svc.create(data)


def test_create_normalizes(org):
    e = _new(manager_id=42)
    assert e.status == "active"
    assert e.email == "new.hire@test.local"
    assert e.gender == "female"
    assert e.manager_id == 42


def test_create_validation(org):
    with pytest.raises(ValidationError):
        _new(code=" ")
    with pytest.raises(ValidationError):
        _new(email="not-an-email")
    with pytest.raises(ValidationError):
        _new(gender="unknown")
    with pytest.raises(NotFoundError):
        _new(designation_id=999)


def test_unique_code_and_email(org, session):
    with pytest.raises(ValidationError):
        _new(code="E042")
    session.rollback()
    with pytest.raises(ValidationError):
        _new(email="EMP43@test.local")


def test_update_and_manager_self_reference(org, session):
    e = svc.get_employee(43)
    svc.update(e, {"last_name": "Coleman", "manager_id": 42})
    assert e.last_name == "Coleman" and e.manager_id == 42

    with pytest.raises(ValidationError):
        svc.update(e, {"manager_id": 43})
    session.rollback()

    # keeping its own code is not a duplicate
    svc.update(e, {"code": "E043"})
    assert e.code == "E043"


def test_status_and_terminate(org):
    e = svc.get_employee(42)
    svc.set_status(e, "ON_LEAVE")
    assert e.status == "on_leave"
    with pytest.raises(ValidationError):
        svc.set_status(e, "retired")
    svc.terminate(e)
    assert svc.get_employee(42).status == "terminated"
    with pytest.raises(NotFoundError):
        svc.get_employee(404)
