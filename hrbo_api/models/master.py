# hrbo_api/models/master.py
from datetime import datetime

from hrbo_api.extensions import db


class Branch(db.Model):
    __tablename__ = "branches"

    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(32), unique=True, nullable=False)
    name = db.Column(db.String(255), nullable=False)
    address = db.Column(db.Text, nullable=True)
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)


class Department(db.Model):
    """
    Departments form a tree through `parent_department_id`.

    The parent chain must stay acyclic; writes go through
    services.department_service.assert_acyclic() before commit.
    """

    __tablename__ = "departments"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    branch_id = db.Column(
        db.Integer,
        db.ForeignKey("branches.id", ondelete="RESTRICT"),
        nullable=False,
    )
    parent_department_id = db.Column(
        db.Integer,
        db.ForeignKey("departments.id", ondelete="RESTRICT"),
        nullable=True,
    )
    # use_alter: employees.department_id points back here
    head_employee_id = db.Column(
        db.Integer,
        db.ForeignKey("employees.id", ondelete="SET NULL", use_alter=True, name="fk_departments_head_employee"),
        nullable=True,
    )
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        db.Index("ix_department_branch_id", "branch_id"),
        db.Index("ix_department_parent_id", "parent_department_id"),
    )

    branch = db.relationship("Branch", backref=db.backref("departments", lazy="dynamic"))
    parent = db.relationship("Department", remote_side=[id], backref=db.backref("children", lazy="dynamic"))
    head_employee = db.relationship("Employee", foreign_keys=[head_employee_id], post_update=True)


class Designation(db.Model):
    __tablename__ = "designations"

    id = db.Column(db.Integer, primary_key=True)
    department_id = db.Column(
        db.Integer,
        db.ForeignKey("departments.id", ondelete="RESTRICT"),
        nullable=False,
    )
    name = db.Column(db.String(120), nullable=False)
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        db.UniqueConstraint("department_id", "name", name="uq_designation_dept_name"),
    )

    department = db.relationship(
        "Department", backref=db.backref("designations", lazy="dynamic")
    )
