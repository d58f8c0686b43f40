# hrbo_api/services/report_filters.py
"""
Typed report filters, one per report kind.

Every filter is built from query args with `from_args()`, which is the only
place raw strings are interpreted: blank / missing / "all" means no
constraint, anything else must parse or a ValidationError is raised.
Date-windowed kinds default to the last REPORT_WINDOW_DAYS days ending today;
a missing start_date trails whatever end_date is in effect.
"""
from __future__ import annotations

from dataclasses import dataclass, fields, replace
from datetime import date, timedelta
from typing import ClassVar, Dict, Optional, Type

from flask import current_app, has_app_context

from hrbo_api.common.errors import NotFoundError, ValidationError
from hrbo_api.common.paging import DEFAULT_SIZE, MAX_SIZE, parse_sort
from hrbo_api.common.parsing import clean_text, parse_date, parse_enum, parse_int
from hrbo_api.common.statuses import (
    AttendanceStatus, EmployeeStatus, Gender, LeaveStatus, MovementStatus, MovementType, TransferStatus,
)

DEFAULT_WINDOW_DAYS = 30


def _cfg(key: str, default: int) -> int:
    if has_app_context():
        return int(current_app.config.get(key, default))
    return default


def _page_args(args) -> tuple[int, int]:
    page = parse_int(args.get("page"), "page") or 1
    if page < 1:
        raise ValidationError("page must be >= 1")
    per_page = parse_int(args.get("per_page"), "per_page")
    if per_page is None:
        per_page = _cfg("REPORT_PER_PAGE", DEFAULT_SIZE)
    if per_page < 1:
        raise ValidationError("per_page must be >= 1")
    return page, min(per_page, _cfg("REPORT_MAX_PER_PAGE", MAX_SIZE))


@dataclass(frozen=True)
class ReportFilter:
    kind: ClassVar[str] = ""
    status_enum: ClassVar[type] = None
    windowed: ClassVar[bool] = True

    start_date: Optional[date] = None
    end_date: Optional[date] = None
    status: Optional[str] = None
    department_id: Optional[int] = None
    branch_id: Optional[int] = None
    employee_id: Optional[int] = None
    page: int = 1
    per_page: int = DEFAULT_SIZE
    sort: Optional[str] = None

    # ---- construction ----

    @classmethod
    def window(cls, today: date | None = None) -> tuple[Optional[date], Optional[date]]:
        if not cls.windowed:
            return None, None
        today = today or date.today()
        return today - timedelta(days=_cfg("REPORT_WINDOW_DAYS", DEFAULT_WINDOW_DAYS)), today

    @classmethod
    def defaults(cls, today: date | None = None) -> "ReportFilter":
        start, end = cls.window(today)
        return cls(start_date=start, end_date=end, per_page=_cfg("REPORT_PER_PAGE", DEFAULT_SIZE))

    @classmethod
    def from_args(cls, args, today: date | None = None) -> "ReportFilter":
        args = args or {}
        end = parse_date(args.get("end_date"), "end_date")
        # a missing start trails the given end by the window, not today
        default_start, default_end = cls.window(end or today)
        start = parse_date(args.get("start_date"), "start_date") or default_start
        end = end or default_end
        if start and end and end < start:
            raise ValidationError("end_date cannot be before start_date",
                                  payload={"start_date": start.isoformat(), "end_date": end.isoformat()})
        page, per_page = _page_args(args)
        return cls(
            start_date=start,
            end_date=end,
            status=parse_enum(args.get("status"), "status", cls.status_enum),
            department_id=parse_int(args.get("department_id"), "department_id"),
            branch_id=parse_int(args.get("branch_id"), "branch_id"),
            employee_id=parse_int(args.get("employee_id"), "employee_id"),
            page=page,
            per_page=per_page,
            sort=clean_text(args.get("sort")),
            **cls._extra(args),
        )

    @classmethod
    def _extra(cls, args) -> dict:
        return {}

    def reset(self, today: date | None = None) -> "ReportFilter":
        return type(self).defaults(today)

    def with_page(self, page: int) -> "ReportFilter":
        return replace(self, page=page)

    # ---- views ----

    def sort_keys(self):
        return parse_sort(self.sort)

    def to_dict(self) -> dict:
        out = {"kind": self.kind}
        for f in fields(self):
            v = getattr(self, f.name)
            out[f.name] = v.isoformat() if isinstance(v, date) else ("all" if v is None else v)
        return out


@dataclass(frozen=True)
class MovementReportFilter(ReportFilter):
    kind: ClassVar[str] = "movement"
    status_enum: ClassVar[type] = MovementStatus

    movement_type: Optional[str] = None

    @classmethod
    def _extra(cls, args) -> dict:
        return {"movement_type": parse_enum(args.get("movement_type"), "movement_type", MovementType)}


@dataclass(frozen=True)
class AttendanceReportFilter(ReportFilter):
    kind: ClassVar[str] = "attendance"
    status_enum: ClassVar[type] = AttendanceStatus


@dataclass(frozen=True)
class LeaveReportFilter(ReportFilter):
    kind: ClassVar[str] = "leave"
    status_enum: ClassVar[type] = LeaveStatus

    leave_type_id: Optional[int] = None

    @classmethod
    def _extra(cls, args) -> dict:
        return {"leave_type_id": parse_int(args.get("leave_type_id"), "leave_type_id")}


@dataclass(frozen=True)
class TransferReportFilter(ReportFilter):
    kind: ClassVar[str] = "transfer"
    status_enum: ClassVar[type] = TransferStatus

    from_branch_id: Optional[int] = None
    to_branch_id: Optional[int] = None

    @classmethod
    def _extra(cls, args) -> dict:
        return {
            "from_branch_id": parse_int(args.get("from_branch_id"), "from_branch_id"),
            "to_branch_id": parse_int(args.get("to_branch_id"), "to_branch_id"),
        }


@dataclass(frozen=True)
class EmployeeReportFilter(ReportFilter):
    """Employees are not time-ranged: no default window, joining dates filter instead."""

    kind: ClassVar[str] = "employee"
    status_enum: ClassVar[type] = EmployeeStatus
    windowed: ClassVar[bool] = False

    gender: Optional[str] = None
    designation_id: Optional[int] = None
    join_start_date: Optional[date] = None
    join_end_date: Optional[date] = None
    search: Optional[str] = None

    @classmethod
    def _extra(cls, args) -> dict:
        js = parse_date(args.get("join_start_date"), "join_start_date")
        je = parse_date(args.get("join_end_date"), "join_end_date")
        if js and je and je < js:
            raise ValidationError("join_end_date cannot be before join_start_date")
        return {
            "gender": parse_enum(args.get("gender"), "gender", Gender),
            "designation_id": parse_int(args.get("designation_id"), "designation_id"),
            "join_start_date": js,
            "join_end_date": je,
            "search": clean_text(args.get("search") or args.get("q")),
        }


FILTERS: Dict[str, Type[ReportFilter]] = {
    cls.kind: cls
    for cls in (MovementReportFilter, AttendanceReportFilter, LeaveReportFilter,
                TransferReportFilter, EmployeeReportFilter)
}


def filter_class(kind: str) -> Type[ReportFilter]:
    cls = FILTERS.get((kind or "").strip().lower())
    if cls is None:
        raise NotFoundError(f"Unknown report '{kind}'", payload={"allowed": sorted(FILTERS)})
    return cls


def build_filter(kind: str, args, today: date | None = None) -> ReportFilter:
    return filter_class(kind).from_args(args, today)
