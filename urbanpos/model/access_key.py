# --- model/access_key.py ---
from datetime import datetime

from ..extensions import db

PAGE_PERMISSIONS = ("pos", "dashboard", "sales", "inventory", "coupons", "settings")


class AccessKey(db.Model):
    __tablename__ = "access_key"

    id = db.Column(db.Integer, primary_key=True)
    key = db.Column(db.String(128), unique=True, nullable=False, index=True)
    tag_name = db.Column(db.String(120), nullable=False)
    is_master_key = db.Column(db.Boolean, nullable=False, default=False)
    # comma separated subset of PAGE_PERMISSIONS
    permissions_csv = db.Column(db.String(255), nullable=False, default="")
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    @property
    def permissions(self):
        return [p for p in (self.permissions_csv or "").split(",") if p]

    @permissions.setter
    def permissions(self, pages):
        self.permissions_csv = ",".join(p for p in PAGE_PERMISSIONS if p in set(pages or ()))

    def as_dict(self):
        return {
            "id": self.id,
            "key": self.key,
            "tag_name": self.tag_name,
            "is_master_key": self.is_master_key,
            "permissions": self.permissions,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
