from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel
from sqlalchemy import Column, Integer, String, Numeric, DateTime, ForeignKey, CheckConstraint, Index
from sqlalchemy.orm import relationship

from models.base import Base


# Snapshot line: unit_price, product_name and product_sku are copied from the
# product when the order is placed and never follow later catalog edits.
class OrderItem(Base):
    __tablename__ = 'order_items'

    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey('orders.id', ondelete='CASCADE', onupdate='CASCADE'), nullable=False)
    product_id = Column(Integer, ForeignKey('products.id', ondelete='RESTRICT', onupdate='CASCADE'), nullable=False)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(10, 2), nullable=False)  # Price at time of order
    total_price = Column(Numeric(10, 2), nullable=False)  # quantity * unit_price
    product_name = Column(String(200), nullable=False)
    product_sku = Column(String(100), nullable=False)
    created_at = Column(DateTime, nullable=False, default=datetime.now)

    # Relationships
    order = relationship("Order", back_populates="items")
    product = relationship("Product", back_populates="order_items")

    __table_args__ = (
        CheckConstraint('quantity > 0', name='check_order_item_quantity_positive'),
        CheckConstraint('unit_price > 0', name='check_order_item_unit_price_positive'),
        CheckConstraint('total_price > 0', name='check_order_item_total_price_positive'),
        Index('ix_order_items_order_id', 'order_id'),
        Index('ix_order_items_product_id', 'product_id'),
    )


class OrderItemDTO(BaseModel):
    id: int | None = None
    order_id: int | None = None
    product_id: int | None = None
    quantity: int | None = None
    unit_price: Decimal | None = None
    total_price: Decimal | None = None
    product_name: str | None = None
    product_sku: str | None = None
    created_at: datetime | None = None
