"""
Models Package

This file ensures all SQLAlchemy models are imported and registered,
which is required for relationships to work correctly.
"""

from models.base import Base
from models.user import User
from models.user_profile import UserProfile
from models.address import Address
from models.category import Category
from models.product import Product
from models.product_image import ProductImage
from models.cartItem import CartItem
from models.order import Order
from models.orderItem import OrderItem
from models.review import Review
from models.payment import PaymentMethod
from models.coupon import Coupon, CouponUsage

__all__ = [
    'Base',
    'User',
    'UserProfile',
    'Address',
    'Category',
    'Product',
    'ProductImage',
    'CartItem',
    'Order',
    'OrderItem',
    'Review',
    'PaymentMethod',
    'Coupon',
    'CouponUsage',
]
