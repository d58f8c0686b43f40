# hrbo_api/models/leave.py
from datetime import datetime
from hrbo_api.extensions import db

class LeaveType(db.Model):
    __tablename__ = "leave_types"
    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(20), unique=True, nullable=False)
    name = db.Column(db.String(100), nullable=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

class LeaveApplication(db.Model):
    __tablename__ = "leave_applications"
    id = db.Column(db.Integer, primary_key=True)
    employee_id = db.Column(db.Integer, db.ForeignKey("employees.id", ondelete="CASCADE"), nullable=False, index=True)
    leave_type_id = db.Column(db.Integer, db.ForeignKey("leave_types.id", ondelete="RESTRICT"), nullable=False)
    start_date = db.Column(db.Date, nullable=False)
    end_date = db.Column(db.Date, nullable=False)
    days = db.Column(db.Integer, nullable=False)  # inclusive of both ends
    reason = db.Column(db.Text)
    status = db.Column(db.String(20), nullable=False, default="pending")  # pending|approved|rejected|cancelled
    approved_by = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"))
    approved_at = db.Column(db.DateTime)
    remarks = db.Column(db.Text)

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, onupdate=datetime.utcnow)

    __table_args__ = (
        db.CheckConstraint("end_date >= start_date", name="ck_leave_range"),
    )

    employee = db.relationship("Employee", backref=db.backref("leave_applications", lazy="dynamic"))
    leave_type = db.relationship("LeaveType")
    approver = db.relationship("User", foreign_keys=[approved_by])

class LeaveBalance(db.Model):
    __tablename__ = "leave_balances"
    id = db.Column(db.Integer, primary_key=True)
    employee_id = db.Column(db.Integer, db.ForeignKey("employees.id", ondelete="CASCADE"), nullable=False, index=True)
    leave_type_id = db.Column(db.Integer, db.ForeignKey("leave_types.id", ondelete="CASCADE"), nullable=False, index=True)
    year = db.Column(db.Integer, nullable=False)
    allocated_days = db.Column(db.Integer, nullable=False, default=0)
    used_days = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, onupdate=datetime.utcnow)

    __table_args__ = (
        db.UniqueConstraint("employee_id", "leave_type_id", "year", name="uq_leave_balance_year"),
    )

    @property
    def remaining_days(self):
        return (self.allocated_days or 0) - (self.used_days or 0)

    employee = db.relationship("Employee")
    leave_type = db.relationship("LeaveType")
