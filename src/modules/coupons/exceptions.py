"""Coupon exceptions raised while applying a coupon to an order."""

from __future__ import annotations

from shared.domain.errors import InvalidState


class InvalidCoupon(InvalidState):
    """The coupon code does not exist."""


class CouponNotApplicable(InvalidState):
    """The coupon exists but cannot be used for this order right now."""
