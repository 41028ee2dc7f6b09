from enum import Enum


class ShopEntity(Enum):
    """Top-level sections of the localization files."""
    USER = 1
    ADMIN = 2
    COMMON = 3
