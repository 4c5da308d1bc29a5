"""Public list-serving and offer-click API for the coupon storefront."""

__version__ = "0.1.0"
