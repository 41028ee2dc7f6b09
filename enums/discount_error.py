from enum import Enum


class DiscountError(str, Enum):
    """
    Reasons a campaign discount code is rejected.

    Values double as localization keys (prefixed with "discount_") and are
    safe to show to the customer verbatim.
    """
    INVALID_OR_EXPIRED = "invalid_or_expired"
    USAGE_LIMIT_REACHED = "usage_limit_reached"
    USER_LIMIT_REACHED = "user_limit_reached"
    NO_ELIGIBLE_PRODUCTS = "no_eligible_products"
    BELOW_MINIMUM_PURCHASE = "below_minimum_purchase"
