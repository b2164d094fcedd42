# model/product.py
from decimal import Decimal

from sqlalchemy.sql import func

from ..extensions import db


class Product(db.Model):
    __tablename__ = "product"
    __table_args__ = (
        db.CheckConstraint("stock_quantity >= 0", name="ck_product_stock_non_negative"),
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False, index=True)
    description = db.Column(db.Text)

    # base currency, see StoreSettings.base_currency
    price = db.Column(db.Numeric(12, 2), nullable=False, default=Decimal("0"))
    stock_quantity = db.Column(db.Integer, nullable=False, default=0)
    reorder_threshold = db.Column(db.Integer, nullable=False, default=10)

    image_url = db.Column(db.String(1024))
    image_hint = db.Column(db.String(120))

    category_id = db.Column(
        db.Integer,
        db.ForeignKey("category.id"),
        nullable=True
    )
    category = db.relationship("Category", back_populates="products", lazy="joined")

    created_at = db.Column(db.DateTime, server_default=func.now())
    updated_at = db.Column(db.DateTime, onupdate=func.now(), server_default=func.now())

    @property
    def category_name(self):
        return self.category.name if self.category else None

    @property
    def needs_reorder(self) -> bool:
        return int(self.stock_quantity or 0) <= int(self.reorder_threshold or 0)

    def as_api(self):
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "category": self.category_name,
            "category_id": self.category_id,
            "price": str(self.price) if self.price is not None else None,
            "stock_quantity": self.stock_quantity,
            "reorder_threshold": self.reorder_threshold,
            "needs_reorder": self.needs_reorder,
            "image_url": self.image_url,
            "image_hint": self.image_hint,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
