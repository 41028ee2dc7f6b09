from enum import Enum


class PriceCalculationMethod(str, Enum):
    """
    How a product's unit price is applied to an order line.

    PER_PIECE: unit price × quantity
    PER_AREA: unit price per m² × (width × height) × quantity
    PER_METER: unit price per linear meter × height × quantity
    """
    PER_PIECE = "per_piece"
    PER_AREA = "per_area"
    PER_METER = "per_meter"
