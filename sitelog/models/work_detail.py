from __future__ import annotations

from sqlalchemy import CheckConstraint, Index
from sqlalchemy.sql import func

from sitelog.extensions import db


class WorkDetail(db.Model):
    """
    One company's daily entry: head count + free-text description.

    One row per company per date is expected but deliberately not enforced;
    report aggregation sums duplicates.
    """

    __tablename__ = "work_details"

    id = db.Column(db.Integer, primary_key=True)
    date = db.Column(db.Date, nullable=False)
    company_id = db.Column(
        db.Integer, db.ForeignKey("companies.id", ondelete="CASCADE"), nullable=False
    )
    personnel_count = db.Column(db.Integer, nullable=False)
    description = db.Column(db.Text, nullable=False, default="")

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    company = db.relationship("Company", back_populates="work_details")
    equipment_usages = db.relationship(
        "WorkEquipment", back_populates="work_detail", cascade="all, delete-orphan", passive_deletes=True
    )

    __table_args__ = (
        CheckConstraint("personnel_count >= 0", name="chk_work_details_personnel_nonneg"),
        Index("ix_work_details_date_company", date, company_id),
    )

    def __repr__(self) -> str:
        return f"<WorkDetail id={self.id} date={self.date} company_id={self.company_id} personnel={self.personnel_count}>"
