from datetime import date, datetime, timedelta

import pytest

from hrbo_api.common.auth import ActorContext
from hrbo_api.common.errors import NotFoundError, ValidationError
from hrbo_api.models.attendance import Attendance
from hrbo_api.models.employee import Employee
from hrbo_api.models.leave import LeaveApplication, LeaveType
from hrbo_api.models.transfer import Transfer
from hrbo_api.services import movement_lifecycle as lifecycle
from hrbo_api.services import reports
from hrbo_api.services.report_filters import (
    AttendanceReportFilter, EmployeeReportFilter, LeaveReportFilter, MovementReportFilter, build_filter,
)

TODAY = date(2024, 5, 31)
HR = ActorContext(user_id=5, perms=frozenset({"movements.*"}))


def _movements(n, employee_id=42, day=date(2024, 5, 10), movement_type="official"):
    out = []
    for i in range(n):
        start = datetime.combine(day, datetime.min.time()) + timedelta(hours=8 + i % 8)
        out.append(lifecycle.create(
            HR, employee_id=employee_id, movement_type=movement_type,
            from_datetime=start, to_datetime=start + timedelta(hours=1),
            purpose=f"errand {i}", destination="Bank",
        ))
    return out


# ---------- percentages ----------

def test_percentages_empty_total_is_zero():
    assert reports.percentages({"a": 0, "b": 0}, 0) == {"a": 0, "b": 0}


def test_percentages_largest_remainder_sums_to_100():
    got = reports.percentages({"a": 1, "b": 1, "c": 1}, 3)
    assert sum(got.values()) == 100
    assert sorted(got.values()) == [33, 33, 34]
    assert all(0 <= v <= 100 for v in got.values())


def test_percentages_partial_coverage_stays_under_100():
    got = reports.percentages({"male": 1, "female": 1}, 3)
    assert sum(got.values()) <= 100
    assert got == {"male": 33, "female": 33}


# ---------- filters ----------

def test_filter_defaults_to_last_30_days(app):
    f = MovementReportFilter.from_args({}, today=TODAY)
    assert f.end_date == TODAY
    assert f.start_date == TODAY - timedelta(days=30)
    assert f.status is None and f.movement_type is None
    assert f.page == 1 and f.per_page == 15


def test_filter_blank_and_all_mean_no_constraint(app):
    f = MovementReportFilter.from_args(
        {"status": "all", "movement_type": "", "department_id": "all", "employee_id": ""}, today=TODAY,
    )
    assert (f.status, f.movement_type, f.department_id, f.employee_id) == (None, None, None, None)


def test_filter_rejects_bad_input(app):
    with pytest.raises(ValidationError):
        MovementReportFilter.from_args({"start_date": "2024-05-10", "end_date": "2024-05-01"}, today=TODAY)
    with pytest.raises(ValidationError):
        MovementReportFilter.from_args({"status": "archived"}, today=TODAY)
    with pytest.raises(ValidationError):
        MovementReportFilter.from_args({"start_date": "yesterday"}, today=TODAY)
    with pytest.raises(ValidationError):
        AttendanceReportFilter.from_args({"employee_id": "abc"}, today=TODAY)
    with pytest.raises(NotFoundError):
        build_filter("payroll", {})


def test_filter_start_trails_given_end(app):
    f = LeaveReportFilter.from_args({"end_date": "2023-01-31"}, today=TODAY)
    assert f.start_date == date(2023, 1, 1)
    assert f.end_date == date(2023, 1, 31)


def test_reset_restores_defaults(app):
    f = MovementReportFilter.from_args({"status": "approved", "page": "3", "start_date": "2024-01-01"}, today=TODAY)
    r = f.reset(today=TODAY)
    assert r == MovementReportFilter.defaults(today=TODAY)
    d = r.to_dict()
    assert d["kind"] == "movement"
    assert d["status"] == "all"
    assert d["page"] == 1


def test_employee_filter_has_no_date_window(app):
    f = EmployeeReportFilter.from_args({}, today=TODAY)
    assert f.start_date is None and f.end_date is None


# ---------- search / summarize ----------

def test_empty_report_is_not_an_error(org):
    f = MovementReportFilter.from_args({}, today=TODAY)
    page, summary = reports.run(f)
    assert page.items == [] and page.total == 0
    assert summary["total"] == 0
    assert all(b["count"] == 0 and b["percent"] == 0 for b in summary["by_status"].values())
    assert set(summary["by_status"]) == {"pending", "approved", "rejected", "cancelled", "completed"}


def test_summary_covers_whole_filtered_set_not_the_page(org):
    ms = _movements(25)
    for m in ms[:5]:
        lifecycle.approve(ActorContext(user_id=7, perms=frozenset({"movements.approve"})), m)

    f = MovementReportFilter.from_args({"per_page": "10", "page": "2"}, today=TODAY)
    page, summary = reports.run(f)
    assert page.total == 25
    assert len(page.items) == 10
    assert page.pages == 3
    assert [m.id for m in page.items] == [m.id for m in ms[10:20]]

    assert summary["total"] == 25
    assert summary["by_status"]["approved"] == {"count": 5, "percent": 20}
    assert summary["by_status"]["pending"] == {"count": 20, "percent": 80}
    assert sum(b["percent"] for b in summary["by_status"].values()) == 100
    assert summary["by_movement_type"]["official"]["count"] == 25


def test_search_pages_reassemble_the_set(org):
    ms = _movements(7)
    seen = []
    f = MovementReportFilter.from_args({"per_page": "3"}, today=TODAY)
    for p in range(1, 4):
        seen.extend(m.id for m in reports.search(f.with_page(p)).items)
    assert seen == [m.id for m in ms]


def test_filters_are_anded(org):
    _movements(3, employee_id=42)
    _movements(2, employee_id=43, movement_type="personal")

    f = MovementReportFilter.from_args({"branch_id": "2"}, today=TODAY)
    assert reports.search(f).total == 2
    f = MovementReportFilter.from_args({"branch_id": "2", "movement_type": "official"}, today=TODAY)
    assert reports.search(f).total == 0
    f = MovementReportFilter.from_args({"department_id": "11", "status": "pending"}, today=TODAY)
    assert reports.search(f).total == 3


def test_window_excludes_outside_dates(org):
    _movements(2, day=date(2024, 5, 10))
    _movements(1, day=date(2024, 3, 1))
    f = MovementReportFilter.from_args({}, today=TODAY)
    assert reports.summarize(f)["total"] == 2


def test_sort_override(org):
    ms = _movements(3)
    f = MovementReportFilter.from_args({"sort": "-id"}, today=TODAY)
    assert [m.id for m in reports.search(f).items] == [m.id for m in reversed(ms)]


def test_attendance_summary_has_days_and_chart(org, session):
    session.add_all([
        Attendance(employee_id=42, date=date(2024, 5, 30), status="present"),
        Attendance(employee_id=43, date=date(2024, 5, 30), status="late"),
        Attendance(employee_id=42, date=date(2024, 5, 31), status="absent"),
    ])
    session.commit()
    f = AttendanceReportFilter.from_args({"start_date": "2024-05-29", "end_date": "2024-05-31"}, today=TODAY)
    summary = reports.summarize(f)
    assert summary["total_days"] == 3
    assert [row["date"] for row in summary["chart"]] == ["2024-05-29", "2024-05-30", "2024-05-31"]
    assert summary["chart"][0]["present"] == 0
    assert summary["chart"][1]["present"] == 1 and summary["chart"][1]["late"] == 1
    assert summary["by_status"]["absent"]["count"] == 1


def test_leave_summary_counts_approved_days(org, session):
    cl = LeaveType(code="CL", name="Casual")
    session.add(cl); session.commit()
    session.add_all([
        LeaveApplication(employee_id=42, leave_type_id=cl.id, start_date=date(2024, 5, 2),
                         end_date=date(2024, 5, 4), days=3, status="approved"),
        LeaveApplication(employee_id=43, leave_type_id=cl.id, start_date=date(2024, 5, 6),
                         end_date=date(2024, 5, 6), days=1, status="pending"),
    ])
    session.commit()
    summary = reports.summarize(LeaveReportFilter.from_args({}, today=TODAY))
    assert summary["total"] == 2
    assert summary["approved_days"] == 3


def test_employee_report_buckets_and_search(org):
    f = EmployeeReportFilter.from_args({}, today=TODAY)
    summary = reports.summarize(f)
    assert summary["total"] == 2
    assert summary["by_gender"]["female"] == {"count": 1, "percent": 50}
    assert summary["by_status"]["active"]["count"] == 2

    f = EmployeeReportFilter.from_args({"search": "e043"}, today=TODAY)
    assert [e.id for e in reports.search(f).items] == [43]


def test_employee_search_treats_wildcards_literally(org, session):
    for term in ("%", "E0_2", "emp4_@"):
        f = EmployeeReportFilter.from_args({"search": term}, today=TODAY)
        assert reports.search(f).total == 0, term

    e = session.get(Employee, 43)
    e.code = "E_43%"
    session.commit()
    f = EmployeeReportFilter.from_args({"search": "_43%"}, today=TODAY)
    assert [x.id for x in reports.search(f).items] == [43]


def test_dashboard_snapshot(org, session):
    cl = LeaveType(code="CL", name="Casual")
    session.add(cl); session.commit()
    session.add_all([
        Attendance(employee_id=42, date=TODAY, status="present"),
        Attendance(employee_id=43, date=TODAY, status="late"),
        Attendance(employee_id=43, date=TODAY - timedelta(days=1), status="absent"),
        LeaveApplication(employee_id=42, leave_type_id=cl.id, start_date=date(2024, 5, 30),
                         end_date=date(2024, 6, 2), days=4, status="approved"),
        LeaveApplication(employee_id=43, leave_type_id=cl.id, start_date=date(2024, 6, 10),
                         end_date=date(2024, 6, 10), days=1, status="pending"),
        Transfer(employee_id=43, from_branch_id=2, to_branch_id=1, effective_date=date(2024, 5, 20),
                 status="approved"),
        Transfer(employee_id=42, from_branch_id=1, to_branch_id=2, effective_date=date(2024, 6, 15)),
    ])
    session.commit()
    _movements(1)
    (today_trip,) = _movements(1, day=TODAY)
    lifecycle.approve(HR, today_trip)

    d = reports.dashboard(TODAY)
    assert d["date"] == "2024-05-31"
    assert d["totals"] == {"employees": 2, "branches": 2, "departments": 3}
    assert (d["attendance"]["present"], d["attendance"]["late"], d["attendance"]["absent"]) == (1, 1, 0)
    assert d["leave"] == {"pending": 1, "approved_this_month": 1, "on_leave_today": 1}
    assert d["movements"] == {"pending": 1, "ongoing": 1}
    assert d["transfers"] == {"pending": 1, "approved_this_month": 1}
    assert [len(d["recent"][k]) for k in ("leave", "movements", "transfers")] == [2, 2, 2]

    quiet = reports.dashboard(date(2023, 1, 2))
    assert quiet["leave"]["on_leave_today"] == 0
    assert quiet["movements"]["ongoing"] == 0
