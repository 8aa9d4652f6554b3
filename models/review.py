from datetime import datetime

from pydantic import BaseModel
from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey, CheckConstraint, UniqueConstraint, Index
from sqlalchemy.orm import relationship

from models.base import Base


class Review(Base):
    __tablename__ = 'product_reviews'

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey('users.id', ondelete='CASCADE', onupdate='CASCADE'), nullable=False)
    product_id = Column(Integer, ForeignKey('products.id', ondelete='CASCADE', onupdate='CASCADE'), nullable=False)
    # Only set for verified purchases
    order_id = Column(Integer, ForeignKey('orders.id', ondelete='SET NULL', onupdate='CASCADE'), nullable=True)
    rating = Column(Integer, nullable=False)
    title = Column(String(200), nullable=True)
    text = Column(Text, nullable=True)
    is_verified_purchase = Column(Boolean, nullable=False, default=False)
    is_approved = Column(Boolean, nullable=False, default=False)
    helpful_votes = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, nullable=False, default=datetime.now)
    updated_at = Column(DateTime, nullable=False, default=datetime.now, onupdate=datetime.now)

    user = relationship('User', back_populates='reviews')
    product = relationship('Product', back_populates='reviews')

    __table_args__ = (
        CheckConstraint('rating >= 1 AND rating <= 5', name='check_review_rating_range'),
        CheckConstraint('helpful_votes >= 0', name='check_review_helpful_votes_non_negative'),
        UniqueConstraint('user_id', 'product_id', name='uq_product_reviews_user_product'),
        Index('ix_product_reviews_product_id', 'product_id'),
        Index('ix_product_reviews_rating', 'rating'),
    )


class ReviewDTO(BaseModel):
    id: int | None = None
    user_id: int | None = None
    product_id: int | None = None
    order_id: int | None = None
    rating: int | None = None
    title: str | None = None
    text: str | None = None
    is_verified_purchase: bool | None = None
    is_approved: bool | None = None
    helpful_votes: int | None = None
    created_at: datetime | None = None
