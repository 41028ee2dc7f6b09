from enum import Enum


class DiscountScope(str, Enum):
    """Which cart contents make a campaign code applicable."""
    ALL = "all"
    SPECIFIC_PRODUCTS = "specific_products"
    SPECIFIC_CATEGORIES = "specific_categories"
