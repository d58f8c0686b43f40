# hrbo_api/common/statuses.py
"""
Status and category vocabularies shared by the models, the lifecycle services
and the report filters. Columns store the plain string values.
"""
from __future__ import annotations

from enum import Enum


class _StrEnum(str, Enum):
    def __str__(self) -> str:
        return self.value

    @classmethod
    def values(cls) -> list[str]:
        return [m.value for m in cls]

    @classmethod
    def parse(cls, raw):
        """Return the member for `raw` (case-insensitive) or None if unknown."""
        if isinstance(raw, cls):
            return raw
        v = (str(raw or "")).strip().lower()
        for m in cls:
            if m.value == v:
                return m
        return None


class MovementStatus(_StrEnum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class MovementType(_StrEnum):
    OFFICIAL = "official"
    PERSONAL = "personal"


class TransferStatus(_StrEnum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class LeaveStatus(_StrEnum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


class AttendanceStatus(_StrEnum):
    PRESENT = "present"
    ABSENT = "absent"
    LATE = "late"
    HALF_DAY = "half_day"
    LEAVE = "leave"


class EmployeeStatus(_StrEnum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    ON_LEAVE = "on_leave"
    TERMINATED = "terminated"


class Gender(_StrEnum):
    MALE = "male"
    FEMALE = "female"
    OTHER = "other"


# plain strings: str-Enum members hash by name, not by value
TERMINAL_MOVEMENT_STATUSES = frozenset({
    MovementStatus.REJECTED.value, MovementStatus.CANCELLED.value, MovementStatus.COMPLETED.value,
})
