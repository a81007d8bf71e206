from sqlalchemy.sql import func

from sitelog.extensions import db


class Weather(db.Model):
    """At most one forecast snapshot per calendar date (upsert by date)."""

    __tablename__ = "weather"

    date = db.Column(db.Date, primary_key=True)
    # Stored as forecast strings; "-" when the forecast omitted the value
    min_temp = db.Column(db.String(16), nullable=False)
    max_temp = db.Column(db.String(16), nullable=False)
    condition = db.Column(db.String(64), nullable=False)

    fetched_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=func.now())

    def to_dict(self):
        return dict(
            date=self.date.isoformat() if self.date else None,
            min_temp=self.min_temp,
            max_temp=self.max_temp,
            condition=self.condition,
        )
