# urbanpos/pos/errors.py
from enum import Enum


class PosError(Exception):
    """Base for every checkout failure that is reported back to the cashier."""

    code = "pos_error"
    status_code = 400
    default_message = "Checkout error"

    def __init__(self, message=None, **data):
        self.message = message or self.default_message
        self.data = data
        super().__init__(self.message)

    def as_data(self):
        return {"code": self.code, **self.data}


class EmptyCart(PosError):
    code = "empty_cart"
    status_code = 422
    default_message = "Cart is empty. Add products to start a sale."


class InvalidQuantity(PosError):
    code = "invalid_quantity"
    status_code = 422
    default_message = "Quantity must be a whole number."


class ProductUnavailable(PosError):
    code = "product_unavailable"
    status_code = 404
    default_message = "Product not found."


class OutOfStock(PosError):
    code = "out_of_stock"
    status_code = 409
    default_message = "Product is currently out of stock."


class StockLimitReached(PosError):
    code = "stock_limit_reached"
    status_code = 409
    default_message = "You cannot add more than is available in stock."


class CouponRejection(str, Enum):
    INVALID_CODE = "invalid_code"
    INACTIVE = "inactive"
    EXPIRED = "expired"
    LIMIT_REACHED = "limit_reached"

    @property
    def message(self) -> str:
        return _REJECTION_MESSAGES[self]


_REJECTION_MESSAGES = {
    CouponRejection.INVALID_CODE: "This coupon code does not exist.",
    CouponRejection.INACTIVE: "This coupon is no longer active.",
    CouponRejection.EXPIRED: "This coupon has expired.",
    CouponRejection.LIMIT_REACHED: "This coupon has been used the maximum number of times.",
}


class CouponRejected(PosError):
    status_code = 422

    def __init__(self, reason: CouponRejection, code_entered=None):
        self.reason = reason
        super().__init__(reason.message, coupon_code=code_entered)

    @property
    def code(self):
        return self.reason.value


class CommitFailed(PosError):
    """The settlement transaction was rolled back; nothing was applied."""

    code = "commit_failed"
    status_code = 409
    default_message = "Payment failed. Could not process the transaction. Please try again."


class InsufficientStock(CommitFailed):
    code = "insufficient_stock"
    default_message = "Not enough stock to complete the sale."
