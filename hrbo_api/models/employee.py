# hrbo_api/models/employee.py
from datetime import datetime
from hrbo_api.extensions import db

class Employee(db.Model):
    __tablename__ = "employees"

    id = db.Column(db.Integer, primary_key=True)
    department_id  = db.Column(db.Integer, db.ForeignKey("departments.id", ondelete="RESTRICT"), nullable=True)
    designation_id = db.Column(db.Integer, db.ForeignKey("designations.id", ondelete="RESTRICT"), nullable=True)
    branch_id      = db.Column(db.Integer, db.ForeignKey("branches.id", ondelete="RESTRICT"), nullable=True)
    manager_id     = db.Column(db.Integer, db.ForeignKey("employees.id", ondelete="SET NULL"), nullable=True)
    user_id        = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True, unique=True)

    code  = db.Column(db.String(32), unique=True, nullable=False)    # HR "employee id"
    email = db.Column(db.String(255), unique=True, nullable=False)
    first_name = db.Column(db.String(80), nullable=False)
    last_name  = db.Column(db.String(80), nullable=True)
    phone      = db.Column(db.String(20), nullable=True)
    gender     = db.Column(db.String(10), nullable=True)               # male/female/other

    joining_date = db.Column(db.Date, nullable=True)
    status = db.Column(db.String(16), default="active", nullable=False)  # active/inactive/on_leave/terminated

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, onupdate=datetime.utcnow)

    __table_args__ = (
        db.Index("ix_emp_dept_id", "department_id"),
        db.Index("ix_emp_branch_id", "branch_id"),
        db.Index("ix_emp_manager_id", "manager_id"),
        db.Index("ix_emp_status", "status"),
    )

    department  = db.relationship("Department", foreign_keys=[department_id], lazy="joined")
    designation = db.relationship("Designation", lazy="joined")
    branch      = db.relationship("Branch", lazy="joined")
    manager     = db.relationship("Employee", remote_side=[id], lazy="joined")
    user        = db.relationship("User", back_populates="employee")

    @property
    def full_name(self) -> str:
        return " ".join(p for p in (self.first_name, self.last_name) if p)
