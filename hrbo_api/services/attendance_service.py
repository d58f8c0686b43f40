# hrbo_api/services/attendance_service.py
from __future__ import annotations

from datetime import date, datetime, time as _time
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, Tuple
import logging

from hrbo_api.common.errors import NotFoundError, ValidationError
from hrbo_api.common.parsing import clean_text
from hrbo_api.common.statuses import AttendanceStatus
from hrbo_api.extensions import db
from hrbo_api.models.attendance import Attendance
from hrbo_api.models.employee import Employee

log = logging.getLogger(__name__)

DEFAULT_STANDARD_HOURS = 8

_TWO = Decimal("0.01")


def _dt(d: date, t) -> Optional[datetime]:
    if t is None:
        return None
    if isinstance(t, datetime):
        return t
    return datetime.combine(d, t)


def parse_clock(val, name: str) -> Optional[_time]:
    """'09:05' / '09:05:30' -> time; blank -> None."""
    if val in (None, ""):
        return None
    if isinstance(val, _time):
        return val
    for fmt in ("%H:%M", "%H:%M:%S"):
        try:
            return datetime.strptime(str(val).strip(), fmt).time()
        except ValueError:
            pass
    raise ValidationError(f"{name} must be HH:MM")


def compute_hours(check_in: Optional[datetime], check_out: Optional[datetime],
                  standard_hours: float = DEFAULT_STANDARD_HOURS) -> Tuple[Decimal, Decimal]:
    """
    (working_hours, overtime_hours), 2 decimals.
    Missing punch on either side -> zero; overtime is anything beyond `standard_hours`.
    """
    if not check_in or not check_out:
        return Decimal("0.00"), Decimal("0.00")
    if check_out < check_in:
        raise ValidationError("check_out cannot be before check_in", payload={"check_out": "before check_in"})
    worked = Decimal((check_out - check_in).total_seconds()) / Decimal(3600)
    overtime = max(Decimal(0), worked - Decimal(str(standard_hours)))
    return worked.quantize(_TWO, rounding=ROUND_HALF_UP), overtime.quantize(_TWO, rounding=ROUND_HALF_UP)


def _standard_hours() -> float:
    from flask import current_app, has_app_context
    if has_app_context():
        return float(current_app.config.get("STANDARD_WORK_HOURS", DEFAULT_STANDARD_HOURS))
    return DEFAULT_STANDARD_HOURS


def get_attendance(att_id: int) -> Attendance:
    a = db.session.get(Attendance, att_id)
    if not a:
        raise NotFoundError("Attendance record not found", payload={"id": att_id})
    return a


def record(*, employee_id, day: date, status, check_in=None, check_out=None, remarks=None,
           created_by=None) -> Attendance:
    if not isinstance(day, date):
        raise ValidationError("date is required")
    st = AttendanceStatus.parse(status)
    if st is None:
        raise ValidationError(f"status must be one of: {', '.join(AttendanceStatus.values())}")
    if not db.session.get(Employee, employee_id):
        raise NotFoundError("Employee not found", payload={"employee_id": employee_id})

    dup = Attendance.query.filter_by(employee_id=employee_id, date=day).first()
    if dup:
        raise ValidationError(
            "Attendance record already exists for this employee on the selected date.",
            payload={"id": dup.id},
        )

    cin, cout = _dt(day, check_in), _dt(day, check_out)
    worked, overtime = compute_hours(cin, cout, _standard_hours())
    a = Attendance(
        employee_id=employee_id,
        date=day,
        check_in=cin,
        check_out=cout,
        status=st.value,
        working_hours=worked,
        overtime_hours=overtime,
        remarks=clean_text(remarks),
        created_by=created_by,
    )
    db.session.add(a)
    db.session.commit()
    return a


def update(a: Attendance, **changes) -> Attendance:
    """Everything is validated before the record is touched."""
    status = a.status
    if "status" in changes:
        st = AttendanceStatus.parse(changes["status"])
        if st is None:
            raise ValidationError(f"status must be one of: {', '.join(AttendanceStatus.values())}")
        status = st.value
    cin = _dt(a.date, changes["check_in"]) if "check_in" in changes else a.check_in
    cout = _dt(a.date, changes["check_out"]) if "check_out" in changes else a.check_out
    worked, overtime = compute_hours(cin, cout, _standard_hours())

    a.status, a.check_in, a.check_out = status, cin, cout
    a.working_hours, a.overtime_hours = worked, overtime
    if "remarks" in changes:
        a.remarks = clean_text(changes["remarks"])
    db.session.commit()
    return a


def delete(a: Attendance) -> None:
    att_id = a.id
    db.session.delete(a)
    db.session.commit()
    log.info("attendance deleted id=%s", att_id)
