from datetime import date

import pytest

from hrbo_api.common.auth import ActorContext
from hrbo_api.common.errors import AuthorizationError, InvalidStateError, NotFoundError, ValidationError
from hrbo_api.models.employee import Employee
from hrbo_api.services import transfer_lifecycle as lifecycle

TODAY = date(2024, 5, 1)
HR = ActorContext(user_id=5, perms=frozenset({"transfers.*"}))
CLERK = ActorContext(user_id=6, perms=frozenset({"transfers.create"}))


def _transfer(ctx=HR, **kw):
    args = dict(employee_id=42, to_branch_id=2, to_department_id=12, to_designation_id=101,
                effective_date=date(2024, 6, 1), reason="Branch expansion", today=TODAY)
    args.update(kw)
    return lifecycle.create(ctx, **args)


def test_create_defaults_from_current_posting(org):
    t = _transfer()
    assert t.status == "pending"
    assert (t.from_branch_id, t.from_department_id, t.from_designation_id) == (1, 11, 100)


def test_create_validation(org):
    with pytest.raises(ValidationError):
        _transfer(to_branch_id=1)
    with pytest.raises(ValidationError):
        _transfer(effective_date=date(2024, 4, 30))
    with pytest.raises(ValidationError):
        _transfer(reason=" ")
    with pytest.raises(ValidationError):
        _transfer(transfer_order_no="X" * 51)
    with pytest.raises(NotFoundError):
        _transfer(employee_id=999)
    with pytest.raises(NotFoundError):
        _transfer(to_branch_id=77)
    with pytest.raises(AuthorizationError):
        _transfer(ctx=ActorContext(user_id=8, employee_id=42))


def test_approve_then_complete_moves_employee(org, session):
    t = _transfer(ctx=CLERK)
    with pytest.raises(AuthorizationError):
        lifecycle.approve(CLERK, t)
    with pytest.raises(InvalidStateError):
        lifecycle.complete(HR, t)

    lifecycle.approve(HR, t)
    assert t.status == "approved" and t.approved_by == 5
    lifecycle.complete(HR, t)
    assert t.status == "completed"

    e = session.get(Employee, 42)
    assert (e.branch_id, e.department_id, e.designation_id) == (2, 12, 101)


def test_reject_and_cancel(org):
    t = _transfer()
    with pytest.raises(ValidationError):
        lifecycle.reject(HR, t, "")
    lifecycle.reject(HR, t, "Budget freeze")
    assert t.status == "rejected" and t.remarks == "Budget freeze"
    with pytest.raises(InvalidStateError):
        lifecycle.cancel(HR, t)

    t2 = _transfer()
    lifecycle.cancel(HR, t2)
    assert t2.status == "cancelled"
