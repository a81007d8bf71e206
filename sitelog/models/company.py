from __future__ import annotations

from sqlalchemy import Index, text
from sqlalchemy.sql import func

from sitelog.extensions import db


class Company(db.Model):
    """Subcontractor working on site. Completed companies stay for history."""

    __tablename__ = "companies"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    trade = db.Column(db.String(255), nullable=False)

    is_completed = db.Column(db.Boolean, nullable=False, default=False, server_default=text("false"))
    # Manual print order on the manpower sheet; NULL sorts after explicit positions
    display_order = db.Column(db.Integer, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    work_details = db.relationship("WorkDetail", back_populates="company", passive_deletes=True)

    __table_args__ = (
        Index("ix_companies_name", name),
        Index("ix_companies_completed_order", is_completed, display_order),
    )

    def __repr__(self) -> str:
        return f"<Company id={self.id} name={self.name!r} trade={self.trade!r} completed={self.is_completed}>"
