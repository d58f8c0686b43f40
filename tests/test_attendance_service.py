from datetime import date, datetime, time
from decimal import Decimal

import pytest

from hrbo_api.common.errors import NotFoundError, ValidationError
from hrbo_api.services import attendance_service as svc


def test_compute_hours():
    cin = datetime(2024, 5, 1, 9, 0)
    assert svc.compute_hours(cin, datetime(2024, 5, 1, 19, 30)) == (Decimal("10.50"), Decimal("2.50"))
    assert svc.compute_hours(cin, datetime(2024, 5, 1, 13, 20)) == (Decimal("4.33"), Decimal("0.00"))
    assert svc.compute_hours(cin, None) == (Decimal("0.00"), Decimal("0.00"))
    with pytest.raises(ValidationError):
        svc.compute_hours(cin, datetime(2024, 5, 1, 8, 0))


def test_parse_clock():
    assert svc.parse_clock("09:05", "check_in") == time(9, 5)
    assert svc.parse_clock("", "check_in") is None
    with pytest.raises(ValidationError):
        svc.parse_clock("9am", "check_in")


def test_record_derives_hours_and_refuses_duplicates(org):
    a = svc.record(employee_id=42, day=date(2024, 5, 1), status="present",
                   check_in=time(9, 0), check_out=time(18, 0))
    assert a.working_hours == Decimal("9.00")
    assert a.overtime_hours == Decimal("1.00")

    with pytest.raises(ValidationError):
        svc.record(employee_id=42, day=date(2024, 5, 1), status="late")
    with pytest.raises(ValidationError):
        svc.record(employee_id=42, day=date(2024, 5, 2), status="on_vacation")
    with pytest.raises(NotFoundError):
        svc.record(employee_id=999, day=date(2024, 5, 2), status="present")


def test_update_recomputes(org):
    a = svc.record(employee_id=42, day=date(2024, 5, 1), status="present", check_in=time(9, 0))
    assert a.working_hours == Decimal("0.00")
    svc.update(a, check_out=time(12, 0), status="half_day")
    assert a.working_hours == Decimal("3.00")
    assert a.status == "half_day"


def test_rejected_update_leaves_record_clean(org, session):
    a = svc.record(employee_id=42, day=date(2024, 5, 1), status="present",
                   check_in=time(9, 0), check_out=time(17, 0))
    with pytest.raises(ValidationError):
        svc.update(a, status="late", check_out=time(8, 0))
    assert a.status == "present"
    assert a.check_out == datetime(2024, 5, 1, 17, 0)
    assert not session.dirty

    # a later commit in the same session does not persist the refused edit
    session.commit()
    session.expire_all()
    again = svc.get_attendance(a.id)
    assert again.status == "present" and again.working_hours == Decimal("8.00")
