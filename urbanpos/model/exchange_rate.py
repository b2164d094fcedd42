# model/exchange_rate.py
from ..extensions import db


class ExchangeRate(db.Model):
    """Rate of one currency against the store's base currency.

    The base currency itself has no row; its rate is implicitly 1.
    """
    __tablename__ = "exchange_rate"

    code = db.Column(db.String(3), primary_key=True)
    rate = db.Column(db.Numeric(20, 8), nullable=False)
    last_updated = db.Column(db.DateTime, nullable=False)

    def as_api(self):
        return {
            "code": self.code,
            "rate": str(self.rate),
            "last_updated": self.last_updated.isoformat() if self.last_updated else None,
        }
