from enum import Enum


class OrderStatus(str, Enum):
    PENDING = "pending"          # Order created after payment capture
    PROCESSING = "processing"    # Print job in production
    SHIPPED = "shipped"          # Handed over to carrier
    DELIVERED = "delivered"      # Delivered to customer
    CANCELLED = "cancelled"      # Cancelled by admin
    REFUNDED = "refunded"        # Payment refunded
