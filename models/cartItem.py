# A cart line only records the wish to buy: stock is NOT reserved, so
# availability is checked again (transactionally) when the cart is checked out.
from datetime import datetime

from pydantic import BaseModel
from sqlalchemy import Column, Integer, DateTime, ForeignKey, CheckConstraint, UniqueConstraint, Index
from sqlalchemy.orm import relationship

from models.base import Base


class CartItem(Base):
    __tablename__ = "cart_items"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey('users.id', ondelete='CASCADE', onupdate='CASCADE'), nullable=False)
    product_id = Column(Integer, ForeignKey('products.id', ondelete='CASCADE', onupdate='CASCADE'), nullable=False)
    quantity = Column(Integer, nullable=False, default=1)
    added_at = Column(DateTime, nullable=False, default=datetime.now)
    updated_at = Column(DateTime, nullable=False, default=datetime.now, onupdate=datetime.now)

    user = relationship('User', back_populates='cart_items')
    product = relationship('Product', back_populates='cart_items')

    __table_args__ = (
        CheckConstraint('quantity > 0', name='check_cart_quantity_positive'),
        # One line per user/product, adding again increases the quantity
        UniqueConstraint('user_id', 'product_id', name='uq_cart_items_user_product'),
        Index('ix_cart_items_user_id', 'user_id'),
        Index('ix_cart_items_added_at', 'added_at'),
    )


class CartItemDTO(BaseModel):
    id: int | None = None
    user_id: int | None = None
    product_id: int | None = None
    quantity: int | None = None
    added_at: datetime | None = None
