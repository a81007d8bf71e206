from __future__ import annotations

from decimal import Decimal

from sqlalchemy import Index
from sqlalchemy.sql import func

from sitelog.extensions import db

"""
Material catalog + daily consumption.

• materials
  - ix_materials_name_spec: (name, specification) is the composite key the report
    engine merges on. Not declared UNIQUE: the engine tolerates collisions by merging
    their totals, and historic data is known to contain a few.

• daily_materials
  - ix_daily_materials_date_material: every report reads "all usage with date <= D".
"""


class Material(db.Model):
    __tablename__ = "materials"
    __allow_unmapped__ = True

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    # Frequently numeric-as-string (pipe diameter etc.); never coerced for storage
    specification = db.Column(db.String(255), nullable=False)
    unit = db.Column(db.String(32), nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=func.now())

    usages = db.relationship(
        "DailyMaterial", back_populates="material", cascade="all, delete-orphan", passive_deletes=True
    )

    __table_args__ = (
        Index("ix_materials_name_spec", name, specification),
    )

    def __repr__(self) -> str:
        return f"<Material id={self.id} name={self.name!r} spec={self.specification!r} unit={self.unit!r}>"


class DailyMaterial(db.Model):
    __tablename__ = "daily_materials"
    __allow_unmapped__ = True

    id = db.Column(db.Integer, primary_key=True)
    date = db.Column(db.Date, nullable=False)
    material_id = db.Column(
        db.Integer, db.ForeignKey("materials.id", ondelete="CASCADE"), nullable=False
    )
    quantity = db.Column(db.Numeric(10, 3), nullable=False)

    material = db.relationship("Material", back_populates="usages")

    quantity: Decimal

    __table_args__ = (
        Index("ix_daily_materials_date_material", date, material_id),
    )

    def __repr__(self) -> str:
        return f"<DailyMaterial id={self.id} date={self.date} material_id={self.material_id} qty={self.quantity}>"
