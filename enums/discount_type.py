from enum import Enum


class DiscountType(str, Enum):
    PERCENTAGE = "percentage"        # discount_value is a percent of the subtotal
    FIXED_AMOUNT = "fixed_amount"    # discount_value is an absolute EUR amount
    FREE_SHIPPING = "free_shipping"  # shipping cost is waived, no amount discount
