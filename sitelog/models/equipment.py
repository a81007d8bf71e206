from __future__ import annotations

from sqlalchemy import Index
from sqlalchemy.sql import func

from sitelog.extensions import db


class Equipment(db.Model):
    __tablename__ = "equipments"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    specification = db.Column(db.String(255), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (
        Index("ix_equipments_name_spec", name, specification),
    )

    def __repr__(self) -> str:
        return f"<Equipment id={self.id} name={self.name!r} spec={self.specification!r}>"


class WorkEquipment(db.Model):
    """Equipment count used by one company's work record."""

    __tablename__ = "work_equipments"

    id = db.Column(db.Integer, primary_key=True)
    work_detail_id = db.Column(
        db.Integer, db.ForeignKey("work_details.id", ondelete="CASCADE"), nullable=False, index=True
    )
    equipment_id = db.Column(
        db.Integer, db.ForeignKey("equipments.id", ondelete="CASCADE"), nullable=False, index=True
    )
    equipment_count = db.Column(db.Integer, nullable=False)

    work_detail = db.relationship("WorkDetail", back_populates="equipment_usages")
    equipment = db.relationship("Equipment")

    def __repr__(self) -> str:
        return (
            f"<WorkEquipment id={self.id} work_detail_id={self.work_detail_id} "
            f"equipment_id={self.equipment_id} count={self.equipment_count}>"
        )
