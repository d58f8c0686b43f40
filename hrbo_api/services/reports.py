# hrbo_api/services/reports.py
"""
Report aggregator.

Each report kind registers one base-query builder. `search()` pages that
query and `summarize()` counts over the very same query with GROUP BY, so the
summary always describes the whole filtered set regardless of the page asked
for.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Callable, Dict, List, Tuple
import logging

from sqlalchemy import func, or_

from hrbo_api.common import rows
from hrbo_api.common.paging import Page, apply_sort, ilike_any, paginate
from hrbo_api.common.statuses import (
    AttendanceStatus, EmployeeStatus, Gender, LeaveStatus, MovementStatus, MovementType, TransferStatus,
)
from hrbo_api.models.attendance import Attendance
from hrbo_api.models.employee import Employee
from hrbo_api.models.master import Branch, Department
from hrbo_api.models.leave import LeaveApplication
from hrbo_api.models.movement import Movement
from hrbo_api.models.transfer import Transfer
from hrbo_api.services.report_filters import (
    AttendanceReportFilter, EmployeeReportFilter, LeaveReportFilter, MovementReportFilter, ReportFilter,
    TransferReportFilter,
)

log = logging.getLogger(__name__)


# ---------- percentages ----------

def percentages(counts: Dict[str, int], total: int) -> Dict[str, int]:
    """
    Integer percentages of `total` per bucket, largest-remainder rounded.
    Buckets that cover the whole total sum to exactly 100; partial coverage sums
    to less. total == 0 gives zeros.
    """
    if total <= 0:
        return {k: 0 for k in counts}
    floors, rems = {}, []
    for idx, (k, c) in enumerate(counts.items()):
        q, r = divmod(c * 100, total)
        floors[k] = q
        rems.append((-r, idx, k))
    target = sum(counts.values()) * 100 // total
    for _, _, k in sorted(rems)[: max(0, target - sum(floors.values()))]:
        floors[k] += 1
    return floors


def _buckets(query, column, values: List[str]) -> Dict[str, int]:
    """Counts for every value in `values`, zero-filled."""
    found = dict(
        query.with_entities(column, func.count()).order_by(None).group_by(column).all()
    )
    return {v: int(found.get(v, 0)) for v in values}


def _bucket_summary(counts: Dict[str, int], total: int) -> Dict[str, dict]:
    pct = percentages(counts, total)
    return {k: {"count": c, "percent": pct[k]} for k, c in counts.items()}


def _day_bounds(f: ReportFilter):
    start = datetime.combine(f.start_date, time.min) if f.start_date else None
    end = datetime.combine(f.end_date + timedelta(days=1), time.min) if f.end_date else None
    return start, end


# ---------- base queries ----------

def _movement_query(f: MovementReportFilter):
    q = Movement.query.join(Employee, Movement.employee_id == Employee.id)
    start, end = _day_bounds(f)
    if start:
        q = q.filter(Movement.from_datetime >= start)
    if end:
        q = q.filter(Movement.from_datetime < end)
    if f.status:
        q = q.filter(Movement.status == f.status)
    if f.movement_type:
        q = q.filter(Movement.movement_type == f.movement_type)
    if f.employee_id:
        q = q.filter(Movement.employee_id == f.employee_id)
    if f.department_id:
        q = q.filter(Employee.department_id == f.department_id)
    if f.branch_id:
        q = q.filter(Employee.branch_id == f.branch_id)
    return q


def _attendance_query(f: AttendanceReportFilter):
    q = Attendance.query.join(Employee, Attendance.employee_id == Employee.id)
    if f.start_date:
        q = q.filter(Attendance.date >= f.start_date)
    if f.end_date:
        q = q.filter(Attendance.date <= f.end_date)
    if f.status:
        q = q.filter(Attendance.status == f.status)
    if f.employee_id:
        q = q.filter(Attendance.employee_id == f.employee_id)
    if f.department_id:
        q = q.filter(Employee.department_id == f.department_id)
    if f.branch_id:
        q = q.filter(Employee.branch_id == f.branch_id)
    return q


def _leave_query(f: LeaveReportFilter):
    q = LeaveApplication.query.join(Employee, LeaveApplication.employee_id == Employee.id)
    if f.start_date:
        q = q.filter(LeaveApplication.start_date >= f.start_date)
    if f.end_date:
        q = q.filter(LeaveApplication.start_date <= f.end_date)
    if f.status:
        q = q.filter(LeaveApplication.status == f.status)
    if f.leave_type_id:
        q = q.filter(LeaveApplication.leave_type_id == f.leave_type_id)
    if f.employee_id:
        q = q.filter(LeaveApplication.employee_id == f.employee_id)
    if f.department_id:
        q = q.filter(Employee.department_id == f.department_id)
    if f.branch_id:
        q = q.filter(Employee.branch_id == f.branch_id)
    return q


def _transfer_query(f: TransferReportFilter):
    q = Transfer.query.join(Employee, Transfer.employee_id == Employee.id)
    if f.start_date:
        q = q.filter(Transfer.effective_date >= f.start_date)
    if f.end_date:
        q = q.filter(Transfer.effective_date <= f.end_date)
    if f.status:
        q = q.filter(Transfer.status == f.status)
    if f.employee_id:
        q = q.filter(Transfer.employee_id == f.employee_id)
    if f.department_id:
        q = q.filter(or_(Transfer.from_department_id == f.department_id,
                         Transfer.to_department_id == f.department_id))
    if f.branch_id:
        q = q.filter(or_(Transfer.from_branch_id == f.branch_id, Transfer.to_branch_id == f.branch_id))
    if f.from_branch_id:
        q = q.filter(Transfer.from_branch_id == f.from_branch_id)
    if f.to_branch_id:
        q = q.filter(Transfer.to_branch_id == f.to_branch_id)
    return q


def _employee_query(f: EmployeeReportFilter):
    q = Employee.query
    if f.start_date:
        q = q.filter(Employee.created_at >= datetime.combine(f.start_date, time.min))
    if f.end_date:
        q = q.filter(Employee.created_at < datetime.combine(f.end_date + timedelta(days=1), time.min))
    if f.join_start_date:
        q = q.filter(Employee.joining_date >= f.join_start_date)
    if f.join_end_date:
        q = q.filter(Employee.joining_date <= f.join_end_date)
    if f.status:
        q = q.filter(Employee.status == f.status)
    if f.gender:
        q = q.filter(Employee.gender == f.gender)
    if f.employee_id:
        q = q.filter(Employee.id == f.employee_id)
    if f.department_id:
        q = q.filter(Employee.department_id == f.department_id)
    if f.designation_id:
        q = q.filter(Employee.designation_id == f.designation_id)
    if f.branch_id:
        q = q.filter(Employee.branch_id == f.branch_id)
    if f.search:
        q = q.filter(ilike_any(f.search, Employee.first_name, Employee.last_name, Employee.code, Employee.email))
    return q


# ---------- extras ----------

def _attendance_extras(f: AttendanceReportFilter, q, total: int) -> dict:
    out = {"total_days": (f.end_date - f.start_date).days + 1 if f.start_date and f.end_date else None}
    statuses = AttendanceStatus.values()
    grid = {}
    for day, status, n in (
        q.with_entities(Attendance.date, Attendance.status, func.count())
        .order_by(None).group_by(Attendance.date, Attendance.status).all()
    ):
        grid.setdefault(day, {})[status] = int(n)
    if f.start_date and f.end_date:
        days = [f.start_date + timedelta(days=i) for i in range(out["total_days"])]
    else:
        days = sorted(grid)
    out["chart"] = [
        {"date": d.isoformat(), **{s: grid.get(d, {}).get(s, 0) for s in statuses}} for d in days
    ]
    return out


def _leave_extras(f: LeaveReportFilter, q, total: int) -> dict:
    approved = (
        q.filter(LeaveApplication.status == LeaveStatus.APPROVED.value)
        .with_entities(func.coalesce(func.sum(LeaveApplication.days), 0))
        .order_by(None)
        .scalar()
    )
    return {"approved_days": int(approved or 0)}


# ---------- registry ----------

@dataclass(frozen=True)
class ReportSpec:
    model: type
    build: Callable
    row: Callable
    sortable: Dict[str, object]
    buckets: Tuple[Tuple[str, object, List[str]], ...]
    extras: Callable = None
    title: str = ""


REPORTS: Dict[str, ReportSpec] = {
    "movement": ReportSpec(
        model=Movement,
        build=_movement_query,
        row=rows.movement_row,
        sortable={
            "id": Movement.id, "from_datetime": Movement.from_datetime, "to_datetime": Movement.to_datetime,
            "status": Movement.status, "movement_type": Movement.movement_type,
            "created_at": Movement.created_at, "employee": Employee.first_name,
        },
        buckets=(
            ("by_status", Movement.status, MovementStatus.values()),
            ("by_movement_type", Movement.movement_type, MovementType.values()),
        ),
        title="Movement report",
    ),
    "attendance": ReportSpec(
        model=Attendance,
        build=_attendance_query,
        row=rows.attendance_row,
        sortable={
            "id": Attendance.id, "date": Attendance.date, "status": Attendance.status,
            "working_hours": Attendance.working_hours, "employee": Employee.first_name,
        },
        buckets=(("by_status", Attendance.status, AttendanceStatus.values()),),
        extras=_attendance_extras,
        title="Attendance report",
    ),
    "leave": ReportSpec(
        model=LeaveApplication,
        build=_leave_query,
        row=rows.leave_row,
        sortable={
            "id": LeaveApplication.id, "start_date": LeaveApplication.start_date,
            "end_date": LeaveApplication.end_date, "days": LeaveApplication.days,
            "status": LeaveApplication.status, "employee": Employee.first_name,
        },
        buckets=(("by_status", LeaveApplication.status, LeaveStatus.values()),),
        extras=_leave_extras,
        title="Leave report",
    ),
    "transfer": ReportSpec(
        model=Transfer,
        build=_transfer_query,
        row=rows.transfer_row,
        sortable={
            "id": Transfer.id, "effective_date": Transfer.effective_date, "status": Transfer.status,
            "created_at": Transfer.created_at, "employee": Employee.first_name,
        },
        buckets=(("by_status", Transfer.status, TransferStatus.values()),),
        title="Transfer report",
    ),
    "employee": ReportSpec(
        model=Employee,
        build=_employee_query,
        row=rows.employee_row,
        sortable={
            "id": Employee.id, "code": Employee.code, "first_name": Employee.first_name,
            "last_name": Employee.last_name, "joining_date": Employee.joining_date, "status": Employee.status,
        },
        buckets=(
            ("by_status", Employee.status, EmployeeStatus.values()),
            ("by_gender", Employee.gender, Gender.values()),
        ),
        title="Employee report",
    ),
}


def spec_for(f: ReportFilter) -> ReportSpec:
    return REPORTS[f.kind]


def search(f: ReportFilter) -> Page:
    """One page of matching rows (model instances), id ascending unless `sort` says otherwise."""
    spec = spec_for(f)
    q = apply_sort(spec.build(f), f.sort_keys(), spec.sortable, spec.model.id)
    return paginate(q, f.page, f.per_page)


def summarize(f: ReportFilter) -> dict:
    spec = spec_for(f)
    q = spec.build(f)
    total = q.order_by(None).count()
    out = {"total": total}
    for name, column, values in spec.buckets:
        out[name] = _bucket_summary(_buckets(q, column, values), total)
    if spec.extras:
        out.update(spec.extras(f, q, total))
    return out


def run(f: ReportFilter) -> Tuple[Page, dict]:
    page = search(f)
    summary = summarize(f)
    log.info("report kind=%s total=%s page=%s/%s", f.kind, page.total, page.page, page.pages)
    return page, summary


def catalog() -> List[dict]:
    return [{"kind": k, "title": s.title, "sortable": sorted(s.sortable)} for k, s in REPORTS.items()]


# ---------- dashboard ----------

def _recent(model, row, limit: int) -> List[dict]:
    items = model.query.order_by(model.created_at.desc(), model.id.desc()).limit(limit).all()
    return [row(x) for x in items]


def dashboard(today: date | None = None, recent: int = 5) -> dict:
    """
    Snapshot for the landing page: head counts, today's attendance, open
    leave / movement / transfer requests and the latest few of each.
    """
    today = today or date.today()
    month_start = today.replace(day=1)
    next_month = (month_start + timedelta(days=32)).replace(day=1)
    day_start, day_end = datetime.combine(today, time.min), datetime.combine(today + timedelta(days=1), time.min)

    attendance = _buckets(Attendance.query.filter(Attendance.date == today),
                          Attendance.status, AttendanceStatus.values())
    leave = _buckets(LeaveApplication.query, LeaveApplication.status, LeaveStatus.values())
    movements = _buckets(Movement.query, Movement.status, MovementStatus.values())
    transfers = _buckets(Transfer.query, Transfer.status, TransferStatus.values())

    approved_leave = LeaveApplication.query.filter(LeaveApplication.status == LeaveStatus.APPROVED.value)
    return {
        "date": today.isoformat(),
        "totals": {
            "employees": Employee.query.count(),
            "branches": Branch.query.count(),
            "departments": Department.query.count(),
        },
        "attendance": attendance,
        "leave": {
            "pending": leave[LeaveStatus.PENDING.value],
            "approved_this_month": approved_leave.filter(
                LeaveApplication.start_date >= month_start, LeaveApplication.start_date < next_month,
            ).count(),
            "on_leave_today": approved_leave.filter(
                LeaveApplication.start_date <= today, LeaveApplication.end_date >= today,
            ).count(),
        },
        "movements": {
            "pending": movements[MovementStatus.PENDING.value],
            # approved and overlapping today
            "ongoing": Movement.query.filter(
                Movement.status == MovementStatus.APPROVED.value,
                Movement.from_datetime < day_end, Movement.to_datetime >= day_start,
            ).count(),
        },
        "transfers": {
            "pending": transfers[TransferStatus.PENDING.value],
            "approved_this_month": Transfer.query.filter(
                Transfer.status == TransferStatus.APPROVED.value,
                Transfer.effective_date >= month_start, Transfer.effective_date < next_month,
            ).count(),
        },
        "recent": {
            "leave": _recent(LeaveApplication, rows.leave_row, recent),
            "movements": _recent(Movement, rows.movement_row, recent),
            "transfers": _recent(Transfer, rows.transfer_row, recent),
        },
    }
