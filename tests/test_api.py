from datetime import date

import pytest
from flask_jwt_extended import create_access_token

from hrbo_api.extensions import db
from hrbo_api.models.leave import LeaveType
from hrbo_api.models.security import Permission, Role, RolePermission, UserRole
from hrbo_api.models.user import User


def _grant(user_id: int, role_code: str, *perm_codes: str):
    role = Role.query.filter_by(code=role_code).first()
    if not role:
        role = Role(code=role_code)
        db.session.add(role); db.session.commit()
    for code in perm_codes:
        p = Permission.query.filter_by(code=code).first() or Permission(code=code)
        db.session.add(p); db.session.commit()
        db.session.add(RolePermission(role_id=role.id, permission_id=p.id))
    db.session.add(UserRole(user_id=user_id, role_id=role.id))
    db.session.commit()


def _auth(user_id: int, **claims):
    return {"Authorization": f"Bearer {create_access_token(identity=str(user_id), additional_claims=claims)}"}


@pytest.fixture
def client(app, org):
    _grant(7, "manager", "movements.approve", "reports.view")
    return app.test_client()


def _file_movement(client, **kw):
    body = {
        "movement_type": "official",
        "from_datetime": "2024-05-01T09:00",
        "to_datetime": "2024-05-01T17:00",
        "purpose": "Client visit",
        "destination": "City office",
    }
    body.update(kw)
    return client.post("/api/v1/movements", json=body, headers=_auth(8))


def test_health(client):
    r = client.get("/api/health")
    assert r.status_code == 200
    assert r.get_json()["data"]["status"] == "ok"


def test_login_and_me(client):
    r = client.post("/api/v1/auth/login", json={"email": "approver@test.local", "password": "pw"})
    assert r.status_code == 200
    token = r.get_json()["data"]["access"]
    me = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"}).get_json()["data"]
    assert me["id"] == 7
    assert "movements.approve" in me["perms"]

    bad = client.post("/api/v1/auth/login", json={"email": "approver@test.local", "password": "nope"})
    assert bad.status_code == 401
    assert bad.get_json()["success"] is False


def test_movement_flow_over_http(client):
    r = _file_movement(client)
    assert r.status_code == 201
    m = r.get_json()["data"]
    assert m["status"] == "pending" and m["duration_hours"] == 8

    r = client.post(f"/api/v1/movements/{m['id']}/approve", json={}, headers=_auth(8))
    assert r.status_code == 403
    assert r.get_json()["error"]["code"] == "forbidden"

    r = client.post(f"/api/v1/movements/{m['id']}/reject", json={"remarks": " "}, headers=_auth(7))
    assert r.status_code == 422

    r = client.post(f"/api/v1/movements/{m['id']}/approve", json={}, headers=_auth(7))
    assert r.status_code == 200
    assert r.get_json()["data"]["approved_by"] == 7

    r = client.post(f"/api/v1/movements/{m['id']}/approve", json={}, headers=_auth(7))
    assert r.status_code == 409
    assert r.get_json()["error"]["code"] == "invalid_state"

    r = client.get(f"/api/v1/movements/{m['id']}/duration", headers=_auth(8))
    assert r.get_json()["data"]["hours"] == 8


def test_movement_validation_over_http(client):
    r = _file_movement(client, to_datetime="2024-05-01T08:00")
    assert r.status_code == 422
    assert r.get_json()["error"]["code"] == "validation_error"

    r = _file_movement(client, from_datetime="not a date")
    assert r.status_code == 422


def test_movement_list_respects_visibility(client):
    _file_movement(client)
    own = client.get("/api/v1/movements", headers=_auth(8)).get_json()
    assert own["meta"]["total"] == 1

    # user without an employee record or permissions sees nothing
    u = User(id=30, email="nobody@test.local", full_name="Nobody")
    u.set_password("pw")
    db.session.add(u); db.session.commit()
    assert client.get("/api/v1/movements", headers=_auth(30)).get_json()["meta"]["total"] == 0


def test_reports_endpoint(client):
    _file_movement(client, from_datetime=f"{date.today().isoformat()}T09:00",
                   to_datetime=f"{date.today().isoformat()}T11:00")

    r = client.get("/api/v1/reports/movement", headers=_auth(8))
    assert r.status_code == 403

    r = client.get("/api/v1/reports/movement?status=all", headers=_auth(7))
    body = r.get_json()
    assert r.status_code == 200
    assert body["meta"]["total"] == 1
    assert body["summary"]["by_status"]["pending"] == {"count": 1, "percent": 100}
    assert body["meta"]["filters"]["kind"] == "movement"

    r = client.get("/api/v1/reports/movement?start_date=2024-05-10&end_date=2024-05-01", headers=_auth(7))
    assert r.status_code == 422

    r = client.get("/api/v1/reports/payroll", headers=_auth(7))
    assert r.status_code == 404

    reset = client.get("/api/v1/reports/attendance/reset", headers=_auth(7)).get_json()["data"]
    assert reset["end_date"] == date.today().isoformat()
    assert reset["status"] == "all"


def test_department_cycle_over_http(client):
    _grant(7, "hr", "departments.*")
    r = client.put("/api/v1/departments/10", json={"parent_department_id": 11}, headers=_auth(7))
    assert r.status_code == 422
    r = client.get("/api/v1/departments/tree", headers=_auth(7))
    assert r.status_code == 200
    assert {n["name"] for n in r.get_json()["data"]} == {"Administration", "Operations"}


def test_employee_delete_terminates(client):
    _grant(7, "hr", "employees.*")
    r = client.delete("/api/v1/employees/43", headers=_auth(7))
    assert r.status_code == 200
    assert r.get_json()["data"]["status"] == "terminated"
    got = client.get("/api/v1/employees/43", headers=_auth(7)).get_json()["data"]
    assert got["status"] == "terminated"


def test_movement_rejects_mixed_offset_range(client):
    # 10:00+05:00 is 05:00 UTC, before the 09:00 UTC start
    r = _file_movement(client, from_datetime="2024-05-01T09:00+00:00", to_datetime="2024-05-01T10:00+05:00")
    assert r.status_code == 422

    r = _file_movement(client, from_datetime="2024-05-01T09:00+05:30", to_datetime="2024-05-01T06:00Z")
    assert r.status_code == 201
    m = r.get_json()["data"]
    assert m["from_datetime"].startswith("2024-05-01T03:30")
    assert m["duration_hours"] == 3


def test_movement_list_filters(client):
    _grant(7, "hr", "movements.*")
    _file_movement(client, from_datetime="2024-05-01T09:00", to_datetime="2024-05-01T17:00")
    _file_movement(client, from_datetime="2024-05-03T09:00", to_datetime="2024-05-04T10:00")
    client.post("/api/v1/movements", headers=_auth(7), json={
        "employee_id": 43, "movement_type": "personal", "from_datetime": "2024-05-02T09:00",
        "to_datetime": "2024-05-02T12:00", "purpose": "Bank", "destination": "Town",
    })

    def total(qs):
        return client.get(f"/api/v1/movements?{qs}", headers=_auth(7)).get_json()["meta"]["total"]

    assert total("") == 3
    assert total("department_id=12") == 1
    assert total("from_date=2024-05-02") == 2
    assert total("to_date=2024-05-02") == 2
    assert total("from_date=2024-05-02&to_date=2024-05-03") == 1
    assert total("search=asha") == 2
    assert total("search=E043") == 1
    assert total("search=%25") == 0
    r = client.get("/api/v1/movements?from_date=yesterday", headers=_auth(7))
    assert r.status_code == 422


def test_dashboard_endpoint(client):
    _file_movement(client)
    r = client.get("/api/v1/reports/dashboard", headers=_auth(8))
    assert r.status_code == 403

    r = client.get("/api/v1/reports/dashboard?date=2024-05-01", headers=_auth(7))
    assert r.status_code == 200
    d = r.get_json()["data"]
    assert d["date"] == "2024-05-01"
    assert d["movements"]["pending"] == 1
    assert d["totals"]["employees"] == 2


def test_leave_balance_over_http(client):
    cl = LeaveType(code="CL", name="Casual Leave")
    db.session.add(cl); db.session.commit()
    cl_id = cl.id

    body = {"leave_type_id": cl_id, "start_date": "2024-05-06", "end_date": "2024-05-07"}
    r = client.post("/api/v1/leave/applications", json=body, headers=_auth(8))
    assert r.status_code == 422

    alloc = {"employee_id": 42, "leave_type_id": cl_id, "year": 2024, "allocated_days": 5}
    assert client.post("/api/v1/leave/balances", json=alloc, headers=_auth(8)).status_code == 403
    _grant(7, "hr", "leave.*")
    r = client.post("/api/v1/leave/balances", json=alloc, headers=_auth(7))
    assert r.status_code == 201
    assert r.get_json()["data"]["remaining_days"] == 5

    r = client.post("/api/v1/leave/applications", json=body, headers=_auth(8))
    assert r.status_code == 201
    app_id = r.get_json()["data"]["id"]
    assert client.post(f"/api/v1/leave/applications/{app_id}/approve", json={}, headers=_auth(7)).status_code == 200

    mine = client.get("/api/v1/leave/balances?year=2024", headers=_auth(8)).get_json()
    assert mine["meta"]["total"] == 1
    assert (mine["data"][0]["used_days"], mine["data"][0]["remaining_days"]) == (2, 3)
