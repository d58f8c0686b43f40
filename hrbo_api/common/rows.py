# hrbo_api/common/rows.py
"""JSON row shapes shared by the resource blueprints and the report endpoints."""
from __future__ import annotations


def _iso(v):
    return v.isoformat() if v else None


def _num(v):
    return float(v) if v is not None else None


def _emp_ref(e):
    if not e:
        return None
    return {"id": e.id, "code": e.code, "name": e.full_name}


def branch_row(b):
    return {
        "id": b.id,
        "code": b.code,
        "name": b.name,
        "address": b.address,
        "is_active": bool(b.is_active),
        "created_at": _iso(b.created_at),
    }


def department_row(d):
    return {
        "id": d.id,
        "name": d.name,
        "description": d.description,
        "branch_id": d.branch_id,
        "branch_name": d.branch.name if d.branch else None,
        "parent_department_id": d.parent_department_id,
        "head_employee": _emp_ref(d.head_employee),
        "created_at": _iso(d.created_at),
    }


def designation_row(x):
    return {"id": x.id, "department_id": x.department_id, "name": x.name, "is_active": bool(x.is_active)}


def employee_row(e):
    return {
        "id": e.id,
        "code": e.code,
        "email": e.email,
        "first_name": e.first_name,
        "last_name": e.last_name,
        "full_name": e.full_name,
        "phone": e.phone,
        "gender": e.gender,
        "status": e.status,
        "joining_date": _iso(e.joining_date),
        "department": {"id": e.department.id, "name": e.department.name} if e.department else None,
        "designation": {"id": e.designation.id, "name": e.designation.name} if e.designation else None,
        "branch": {"id": e.branch.id, "name": e.branch.name} if e.branch else None,
        "manager": _emp_ref(e.manager),
        "user_id": e.user_id,
    }


def movement_row(m):
    from hrbo_api.services.movement_lifecycle import duration
    return {
        "id": m.id,
        "employee": _emp_ref(m.employee),
        "movement_type": m.movement_type,
        "from_datetime": _iso(m.from_datetime),
        "to_datetime": _iso(m.to_datetime),
        "duration_hours": duration(m),
        "purpose": m.purpose,
        "destination": m.destination,
        "remarks": m.remarks,
        "status": m.status,
        "approved_by": m.approved_by,
        "created_at": _iso(m.created_at),
        "updated_at": _iso(m.updated_at),
    }


def attendance_row(a):
    return {
        "id": a.id,
        "employee": _emp_ref(a.employee),
        "date": _iso(a.date),
        "check_in": _iso(a.check_in),
        "check_out": _iso(a.check_out),
        "status": a.status,
        "working_hours": _num(a.working_hours),
        "overtime_hours": _num(a.overtime_hours),
        "remarks": a.remarks,
    }


def leave_type_row(t):
    return {"id": t.id, "code": t.code, "name": t.name, "is_active": bool(t.is_active)}


def leave_row(la):
    return {
        "id": la.id,
        "employee": _emp_ref(la.employee),
        "leave_type": leave_type_row(la.leave_type) if la.leave_type else None,
        "start_date": _iso(la.start_date),
        "end_date": _iso(la.end_date),
        "days": la.days,
        "reason": la.reason,
        "status": la.status,
        "approved_by": la.approved_by,
        "approved_at": _iso(la.approved_at),
        "remarks": la.remarks,
        "created_at": _iso(la.created_at),
    }


def leave_balance_row(b):
    return {
        "id": b.id,
        "employee": _emp_ref(b.employee),
        "leave_type": leave_type_row(b.leave_type) if b.leave_type else None,
        "year": b.year,
        "allocated_days": b.allocated_days,
        "used_days": b.used_days,
        "remaining_days": b.remaining_days,
    }


def transfer_row(t):
    return {
        "id": t.id,
        "employee": _emp_ref(t.employee),
        "from_branch_id": t.from_branch_id,
        "to_branch_id": t.to_branch_id,
        "from_department_id": t.from_department_id,
        "to_department_id": t.to_department_id,
        "from_designation_id": t.from_designation_id,
        "to_designation_id": t.to_designation_id,
        "effective_date": _iso(t.effective_date),
        "transfer_order_no": t.transfer_order_no,
        "reason": t.reason,
        "remarks": t.remarks,
        "status": t.status,
        "approved_by": t.approved_by,
        "created_at": _iso(t.created_at),
    }
