from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.orm.attributes import set_committed_value

from hrbo_api.common.auth import ActorContext
from hrbo_api.common.errors import AuthorizationError, InvalidStateError, NotFoundError, ValidationError
from hrbo_api.common.parsing import parse_datetime
from hrbo_api.models.movement import Movement
from hrbo_api.services import movement_lifecycle as lifecycle

OWNER = ActorContext(user_id=8, employee_id=42)
APPROVER = ActorContext(user_id=7, perms=frozenset({"movements.approve"}))
OTHER_APPROVER = ActorContext(user_id=9, perms=frozenset({"movements.approve"}))
HR = ActorContext(user_id=5, perms=frozenset({"movements.*"}))
STRANGER = ActorContext(user_id=11, employee_id=43)


def _official(ctx=OWNER, **kw):
    args = dict(
        movement_type="official",
        from_datetime=datetime(2024, 5, 1, 9, 0),
        to_datetime=datetime(2024, 5, 1, 17, 0),
        purpose="Client visit",
        destination="City office",
    )
    args.update(kw)
    return lifecycle.create(ctx, **args)


def test_create_then_approve_scenario(org):
    m = _official()
    assert m.status == "pending"
    assert m.approved_by is None
    assert m.employee_id == 42
    assert lifecycle.duration(m) == 8

    lifecycle.approve(APPROVER, m)
    assert m.status == "approved"
    assert m.approved_by == 7


def test_approve_keeps_remarks_unless_given(org):
    m = _official(remarks="bring laptop")
    lifecycle.approve(APPROVER, m, remarks="   ")
    assert m.remarks == "bring laptop"

    m2 = _official()
    lifecycle.approve(APPROVER, m2, remarks="ok, go")
    assert m2.remarks == "ok, go"


def test_create_validation(org):
    with pytest.raises(ValidationError):
        _official(to_datetime=datetime(2024, 5, 1, 9, 0))
    with pytest.raises(ValidationError):
        _official(to_datetime=datetime(2024, 5, 1, 8, 0))
    with pytest.raises(ValidationError):
        _official(purpose="  ")
    with pytest.raises(ValidationError):
        _official(destination=None)
    with pytest.raises(ValidationError):
        _official(movement_type="holiday")
    with pytest.raises(NotFoundError):
        _official(ctx=HR, employee_id=999)
    assert Movement.query.count() == 0


def test_create_for_someone_else_needs_permission(org):
    with pytest.raises(AuthorizationError):
        _official(ctx=STRANGER, employee_id=42)
    m = _official(ctx=HR, employee_id=42)
    assert m.employee_id == 42


def test_reject_requires_remarks(org):
    m = _official()
    with pytest.raises(ValidationError):
        lifecycle.reject(APPROVER, m, "   ")
    assert m.status == "pending"

    lifecycle.reject(APPROVER, m, "Not justified")
    assert m.status == "rejected"
    assert m.approved_by == 7
    assert m.remarks == "Not justified"


def test_approve_needs_permission(org):
    m = _official()
    with pytest.raises(AuthorizationError):
        lifecycle.approve(OWNER, m)
    assert m.status == "pending"


def test_transition_twice_fails(org):
    m = _official()
    lifecycle.approve(APPROVER, m)
    with pytest.raises(InvalidStateError):
        lifecycle.approve(APPROVER, m)
    with pytest.raises(InvalidStateError):
        lifecycle.reject(APPROVER, m, "late")

    c = _official()
    lifecycle.cancel(OWNER, c)
    assert c.status == "cancelled"
    with pytest.raises(InvalidStateError):
        lifecycle.cancel(OWNER, c)


def test_racing_approvers_exactly_one_wins(org, session):
    m = _official()
    lifecycle.approve(APPROVER, m)

    # second approver acting on a stale read of the same row
    set_committed_value(m, "status", "pending")
    with pytest.raises(InvalidStateError):
        lifecycle.approve(OTHER_APPROVER, m)

    fresh = session.get(Movement, m.id)
    assert fresh.status == "approved"
    assert fresh.approved_by == 7


def test_complete_only_from_approved(org):
    m = _official()
    with pytest.raises(InvalidStateError):
        lifecycle.complete(OWNER, m)
    lifecycle.approve(APPROVER, m)
    with pytest.raises(AuthorizationError):
        lifecycle.complete(STRANGER, m)
    lifecycle.complete(OWNER, m)
    assert m.status == "completed"


def test_cancel_by_stranger_is_refused(org):
    m = _official()
    with pytest.raises(AuthorizationError):
        lifecycle.cancel(STRANGER, m)
    lifecycle.cancel(HR, m)
    assert m.status == "cancelled"


def test_update_rules(org):
    m = _official()
    lifecycle.update(OWNER, m, destination="Warehouse")
    assert m.destination == "Warehouse"

    with pytest.raises(AuthorizationError):
        lifecycle.update(OWNER, m, employee_id=43)
    with pytest.raises(ValidationError):
        lifecycle.update(OWNER, m, to_datetime=datetime(2024, 4, 30, 9, 0))
    with pytest.raises(ValidationError):
        lifecycle.update(OWNER, m, status="approved")

    lifecycle.approve(APPROVER, m)
    with pytest.raises(InvalidStateError):
        lifecycle.update(OWNER, m, purpose="changed")

    lifecycle.update(HR, m, employee_id=43)
    assert m.employee_id == 43

    lifecycle.complete(HR, m)
    with pytest.raises(InvalidStateError):
        lifecycle.update(HR, m, purpose="after the fact")


def test_annotate_terminal_movement(org):
    m = _official()
    lifecycle.reject(APPROVER, m, "no")
    with pytest.raises(AuthorizationError):
        lifecycle.annotate(OWNER, m, "please reconsider")
    lifecycle.annotate(HR, m, "audited")
    assert m.remarks == "audited"
    assert m.status == "rejected"


def test_duration_rounds_up(org):
    m = _official(to_datetime=datetime(2024, 5, 1, 9, 1))
    assert lifecycle.duration(m) == 1
    m2 = _official(to_datetime=datetime(2024, 5, 2, 9, 0))
    assert lifecycle.duration(m2) == 24


def test_visibility(org):
    own = _official()
    other = _official(ctx=HR, employee_id=43)

    assert {m.id for m in lifecycle.visible_to(OWNER, Movement.query).all()} == {own.id}
    assert {m.id for m in lifecycle.visible_to(HR, Movement.query).all()} == {own.id, other.id}

    lifecycle.approve(APPROVER, other)
    assert {m.id for m in lifecycle.visible_to(APPROVER, Movement.query).all()} == {own.id}
    assert lifecycle.visible_to(ActorContext(user_id=99), Movement.query).count() == 0

    assert lifecycle.can_view(APPROVER, own)
    assert not lifecycle.can_view(APPROVER, other)
    assert not lifecycle.can_view(STRANGER, own)


def test_offsets_are_compared_in_utc(org):
    assert parse_datetime("2024-01-10T09:00+05:00") == datetime(2024, 1, 10, 4, 0)
    assert parse_datetime("2024-01-10T09:00Z") == datetime(2024, 1, 10, 9, 0)

    # 10:00+05:00 is 05:00 UTC, before a 09:00 UTC start
    with pytest.raises(ValidationError):
        _official(from_datetime=parse_datetime("2024-05-01T09:00+00:00"),
                  to_datetime=parse_datetime("2024-05-01T10:00+05:00"))

    ist = timezone(timedelta(hours=5, minutes=30))
    m = _official(from_datetime=datetime(2024, 5, 1, 9, 0, tzinfo=ist),
                  to_datetime=datetime(2024, 5, 1, 6, 0, tzinfo=timezone.utc))
    assert m.from_datetime == datetime(2024, 5, 1, 3, 30)
    assert m.to_datetime == datetime(2024, 5, 1, 6, 0)
    assert lifecycle.duration(m) == 3
