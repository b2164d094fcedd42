"""Checkout core: cart, pricing, coupon resolution and settlement."""
