# hrbo_api/models/movement.py
from datetime import datetime
from hrbo_api.extensions import db

class Movement(db.Model):
    """An employee's logged departure/return during work hours, subject to approval."""

    __tablename__ = "movements"

    id = db.Column(db.Integer, primary_key=True)
    employee_id = db.Column(db.Integer, db.ForeignKey("employees.id", ondelete="CASCADE"), nullable=False, index=True)
    movement_type = db.Column(db.String(16), nullable=False, default="official")  # official|personal
    from_datetime = db.Column(db.DateTime, nullable=False)
    to_datetime = db.Column(db.DateTime, nullable=False)
    purpose = db.Column(db.String(255), nullable=False)
    destination = db.Column(db.String(255), nullable=False)
    remarks = db.Column(db.Text)
    status = db.Column(db.String(16), nullable=False, default="pending")  # pending|approved|rejected|cancelled|completed
    approved_by = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, onupdate=datetime.utcnow)

    __table_args__ = (
        db.CheckConstraint("to_datetime > from_datetime", name="ck_movement_range"),
        db.Index("ix_movement_status", "status"),
        db.Index("ix_movement_from", "from_datetime"),
    )

    employee = db.relationship("Employee", backref=db.backref("movements", lazy="dynamic"))
    approver = db.relationship("User", foreign_keys=[approved_by])
