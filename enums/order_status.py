from enum import Enum


class OrderStatus(str, Enum):
    PENDING = "PENDING"            # Created, waiting for confirmation
    CONFIRMED = "CONFIRMED"
    PROCESSING = "PROCESSING"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"
