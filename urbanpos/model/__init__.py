# ------ model/__init__.py ------

from .category import Category
from .product import Product
from .coupon import Coupon
from .exchange_rate import ExchangeRate
from .settings import StoreSettings
from .sale import Sale, SaleItem
from .access_key import AccessKey, PAGE_PERMISSIONS

__all__ = [
    "Category",
    "Product",
    "Coupon",
    "ExchangeRate",
    "StoreSettings",
    "Sale",
    "SaleItem",
    "AccessKey",
    "PAGE_PERMISSIONS",
]
