from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel
from sqlalchemy import Column, Integer, String, Text, Numeric, Boolean, DateTime, ForeignKey, CheckConstraint, Index
from sqlalchemy.orm import relationship

from models.base import Base


class Product(Base):
    __tablename__ = 'products'

    id = Column(Integer, primary_key=True)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    category_id = Column(Integer, ForeignKey('categories.id', ondelete='RESTRICT', onupdate='CASCADE'), nullable=False)
    sku = Column(String(100), nullable=False, unique=True)  # Stock Keeping Unit
    price = Column(Numeric(10, 2), nullable=False)
    cost_price = Column(Numeric(10, 2), nullable=True)
    stock_quantity = Column(Integer, nullable=False, default=0)
    min_stock_level = Column(Integer, nullable=False, default=5)
    weight = Column(Numeric(8, 3), nullable=True)  # kg
    dimensions = Column(String(50), nullable=True)  # e.g. "10x5x3 cm"
    brand = Column(String(100), nullable=True)
    model = Column(String(100), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    is_featured = Column(Boolean, nullable=False, default=False)
    is_digital = Column(Boolean, nullable=False, default=False)
    # Bumped by every stock change; lets readers detect a concurrent adjustment
    version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime, nullable=False, default=datetime.now)
    updated_at = Column(DateTime, nullable=False, default=datetime.now, onupdate=datetime.now)

    # Relationships
    category = relationship('Category', back_populates='products')
    images = relationship('ProductImage', back_populates='product', passive_deletes=True)
    cart_items = relationship('CartItem', back_populates='product', passive_deletes=True)
    reviews = relationship('Review', back_populates='product', passive_deletes=True)
    order_items = relationship('OrderItem', back_populates='product', passive_deletes='all')

    __table_args__ = (
        CheckConstraint('price > 0', name='check_product_price_positive'),
        CheckConstraint('stock_quantity >= 0', name='check_product_stock_non_negative'),
        CheckConstraint('cost_price IS NULL OR cost_price >= 0', name='check_product_cost_price_non_negative'),
        Index('ix_products_category_id', 'category_id'),
        Index('ix_products_is_active', 'is_active'),
        Index('ix_products_stock_quantity', 'stock_quantity'),
    )


class ProductDTO(BaseModel):
    id: int | None = None
    name: str | None = None
    description: str | None = None
    category_id: int | None = None
    sku: str | None = None
    price: Decimal | None = None
    cost_price: Decimal | None = None
    stock_quantity: int | None = None
    min_stock_level: int | None = None
    brand: str | None = None
    is_active: bool | None = None
    is_featured: bool | None = None
    is_digital: bool | None = None
    version: int | None = None
