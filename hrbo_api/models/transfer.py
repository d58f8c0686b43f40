# hrbo_api/models/transfer.py
from datetime import datetime
from hrbo_api.extensions import db

class Transfer(db.Model):
    """Reassignment of an employee to another branch and/or department."""

    __tablename__ = "transfers"

    id = db.Column(db.Integer, primary_key=True)
    employee_id = db.Column(db.Integer, db.ForeignKey("employees.id", ondelete="CASCADE"), nullable=False, index=True)
    from_branch_id = db.Column(db.Integer, db.ForeignKey("branches.id", ondelete="RESTRICT"), nullable=False)
    to_branch_id = db.Column(db.Integer, db.ForeignKey("branches.id", ondelete="RESTRICT"), nullable=False)
    from_department_id = db.Column(db.Integer, db.ForeignKey("departments.id", ondelete="RESTRICT"))
    to_department_id = db.Column(db.Integer, db.ForeignKey("departments.id", ondelete="RESTRICT"))
    from_designation_id = db.Column(db.Integer, db.ForeignKey("designations.id", ondelete="RESTRICT"))
    to_designation_id = db.Column(db.Integer, db.ForeignKey("designations.id", ondelete="RESTRICT"))
    effective_date = db.Column(db.Date, nullable=False)
    transfer_order_no = db.Column(db.String(50))
    reason = db.Column(db.Text)
    remarks = db.Column(db.Text)  # approver note; required on rejection
    status = db.Column(db.String(16), nullable=False, default="pending")  # pending|approved|rejected|cancelled|completed
    approved_by = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"))

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, onupdate=datetime.utcnow)

    __table_args__ = (
        db.Index("ix_transfer_effective_date", "effective_date"),
    )

    employee = db.relationship("Employee", backref=db.backref("transfers", lazy="dynamic"))
    from_branch = db.relationship("Branch", foreign_keys=[from_branch_id])
    to_branch = db.relationship("Branch", foreign_keys=[to_branch_id])
    from_department = db.relationship("Department", foreign_keys=[from_department_id])
    to_department = db.relationship("Department", foreign_keys=[to_department_id])
    from_designation = db.relationship("Designation", foreign_keys=[from_designation_id])
    to_designation = db.relationship("Designation", foreign_keys=[to_designation_id])
    approver = db.relationship("User", foreign_keys=[approved_by])
