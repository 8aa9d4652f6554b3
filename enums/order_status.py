from enum import Enum


class OrderStatus(Enum):
    PENDING = "pending"            # Created by checkout, stock already decremented
    CONFIRMED = "confirmed"        # Accepted by the shop
    PROCESSING = "processing"      # Being picked and packed
    SHIPPED = "shipped"            # Handed to the carrier
    DELIVERED = "delivered"        # Received by the customer
    CANCELLED = "cancelled"        # Cancelled before shipment, stock restocked
    REFUNDED = "refunded"          # Money returned after shipment
