from datetime import datetime

from ..extensions import db


class Sale(db.Model):
    """Append-only record of a settled checkout.

    The plain money columns are in the base currency. The ``display_*``
    columns hold the customer-facing amounts, converted from the unrounded
    base amounts and rounded once, exactly as the quote showed them.
    """
    __tablename__ = "sale"

    id = db.Column(db.String(48), primary_key=True)  # e.g. "TXN-20251022093011-9F2C41A0B7D3"
    sale_date = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, index=True)

    subtotal = db.Column(db.Numeric(12, 2), nullable=False)
    discount = db.Column(db.Numeric(12, 2), nullable=False)
    tax = db.Column(db.Numeric(12, 2), nullable=False)
    tax_rate = db.Column(db.Numeric(5, 2), nullable=False)
    total_amount = db.Column(db.Numeric(12, 2), nullable=False)

    payment_method = db.Column(db.String(32), nullable=False, default="card")
    applied_coupon = db.Column(db.String(64), nullable=True, index=True)

    cashier_id = db.Column(db.String(64), nullable=False)
    cashier_name = db.Column(db.String(120), nullable=False)

    base_currency = db.Column(db.String(3), nullable=False)
    display_currency = db.Column(db.String(3), nullable=False)
    conversion_rate = db.Column(db.Numeric(20, 8), nullable=False)

    display_subtotal = db.Column(db.Numeric(20, 2), nullable=False)
    display_discount = db.Column(db.Numeric(20, 2), nullable=False)
    display_tax = db.Column(db.Numeric(20, 2), nullable=False)
    display_total = db.Column(db.Numeric(20, 2), nullable=False)

    items = db.relationship(
        "SaleItem",
        backref="sale",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="SaleItem.line_number.asc()",
    )

    def as_api(self):
        return {
            "id": self.id,
            "sale_date": self.sale_date.isoformat() if self.sale_date else None,
            "subtotal": str(self.subtotal),
            "discount": str(self.discount),
            "tax": str(self.tax),
            "tax_rate": str(self.tax_rate),
            "total_amount": str(self.total_amount),
            "payment_method": self.payment_method,
            "applied_coupon": self.applied_coupon,
            "cashier_id": self.cashier_id,
            "cashier_name": self.cashier_name,
            "base_currency": self.base_currency,
            "display_currency": self.display_currency,
            "conversion_rate": str(self.conversion_rate),
            "display_total": str(self.display_total),
            "items": [i.as_api() for i in self.items],
        }


class SaleItem(db.Model):
    __tablename__ = "sale_item"
    __table_args__ = (
        db.UniqueConstraint("sale_id", "line_number", name="uq_sale_item_line"),
    )

    id = db.Column(db.Integer, primary_key=True)
    sale_id = db.Column(db.String(48), db.ForeignKey("sale.id"), nullable=False, index=True)
    line_number = db.Column(db.Integer, nullable=False)

    # not a FK: the product may be deleted later, the sale must survive
    product_id = db.Column(db.Integer, nullable=False, index=True)
    product_name = db.Column(db.String(255), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    price_at_time = db.Column(db.Numeric(12, 2), nullable=False)

    def as_api(self):
        return {
            "product_id": self.product_id,
            "name": self.product_name,
            "quantity": self.quantity,
            "price_at_time": str(self.price_at_time),
        }
