# hrbo_api/models/attendance.py
from datetime import datetime
from hrbo_api.extensions import db

class Attendance(db.Model):
    __tablename__ = "attendances"

    id = db.Column(db.Integer, primary_key=True)
    employee_id = db.Column(db.Integer, db.ForeignKey("employees.id", ondelete="CASCADE"), nullable=False, index=True)
    date = db.Column(db.Date, nullable=False)
    check_in = db.Column(db.DateTime, nullable=True)
    check_out = db.Column(db.DateTime, nullable=True)
    status = db.Column(db.String(16), nullable=False, default="present")  # present|absent|late|half_day|leave
    # derived from check_in/check_out at write time
    working_hours = db.Column(db.Numeric(5, 2), nullable=False, default=0)
    overtime_hours = db.Column(db.Numeric(5, 2), nullable=False, default=0)
    remarks = db.Column(db.Text)
    created_by = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, onupdate=datetime.utcnow)

    __table_args__ = (
        db.UniqueConstraint("employee_id", "date", name="uq_attendance_employee_date"),
        db.Index("ix_attendance_date", "date"),
    )

    employee = db.relationship("Employee", backref=db.backref("attendances", lazy="dynamic"))
