from sqlalchemy.sql import func

from sitelog.extensions import db


class MaxRows(db.Model):
    """Printable row budget per report page."""

    __tablename__ = "max_rows"

    id = db.Column(db.Integer, primary_key=True)
    page_name = db.Column(db.String(64), nullable=False, unique=True)
    max_rows = db.Column(db.Integer, nullable=False, default=50)

    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    def to_dict(self):
        return dict(page_name=self.page_name, max_rows=self.max_rows)
