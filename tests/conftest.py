import os
from datetime import date

import pytest

from hrbo_api import create_app
from hrbo_api.extensions import db
from hrbo_api.models.employee import Employee
from hrbo_api.models.master import Branch, Department, Designation
from hrbo_api.models.user import User


@pytest.fixture(scope="function")
def app():
    os.environ["DATABASE_URL"] = "sqlite:///:memory:"
    app = create_app()
    app.config["TESTING"] = True
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture(scope="function")
def session(app):
    return db.session


@pytest.fixture(scope="function")
def org(session):
    """Two branches, a small department tree and a few people (employee 42, approver user 7)."""
    ho = Branch(id=1, code="HO", name="Head Office")
    north = Branch(id=2, code="NB", name="North Branch")
    session.add_all([ho, north]); session.commit()

    admin = Department(id=10, name="Administration", branch_id=1)
    eng = Department(id=11, name="Engineering", branch_id=1, parent_department_id=10)
    ops = Department(id=12, name="Operations", branch_id=2)
    session.add_all([admin, eng, ops]); session.commit()

    dev = Designation(id=100, department_id=11, name="Developer")
    clerk = Designation(id=101, department_id=12, name="Clerk")
    session.add_all([dev, clerk]); session.commit()

    approver = User(id=7, email="approver@test.local", full_name="Approver")
    approver.set_password("pw")
    owner = User(id=8, email="emp42@test.local", full_name="Employee Forty-Two")
    owner.set_password("pw")
    session.add_all([approver, owner]); session.commit()

    e42 = Employee(id=42, code="E042", email="emp42@test.local", first_name="Asha", last_name="Rao",
                   gender="female", branch_id=1, department_id=11, designation_id=100, user_id=8,
                   joining_date=date(2022, 1, 10))
    e43 = Employee(id=43, code="E043", email="emp43@test.local", first_name="Ben", last_name="Cole",
                   gender="male", branch_id=2, department_id=12, designation_id=101,
                   joining_date=date(2023, 6, 1))
    session.add_all([e42, e43]); session.commit()
    return {"branches": (ho, north), "employees": (e42, e43), "users": (approver, owner)}
