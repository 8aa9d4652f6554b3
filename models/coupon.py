from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel
from sqlalchemy import Column, Integer, String, Text, Numeric, Boolean, DateTime, ForeignKey, CheckConstraint, Index
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import relationship

from enums.discount_type import DiscountType
from models.base import Base, enum_values


class Coupon(Base):
    __tablename__ = 'coupons'

    id = Column(Integer, primary_key=True)
    code = Column(String(50), nullable=False, unique=True)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    discount_type = Column(SQLEnum(DiscountType, values_callable=enum_values), nullable=False)
    discount_value = Column(Numeric(10, 2), nullable=False)
    minimum_order_amount = Column(Numeric(10, 2), nullable=False, default=Decimal("0.00"))
    maximum_discount_amount = Column(Numeric(10, 2), nullable=True)
    usage_limit = Column(Integer, nullable=True)  # NULL = unlimited
    used_count = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    # Valid in [start_date, end_date)
    start_date = Column(DateTime, nullable=False, default=datetime.now)
    end_date = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.now)
    updated_at = Column(DateTime, nullable=False, default=datetime.now, onupdate=datetime.now)

    usages = relationship('CouponUsage', back_populates='coupon', passive_deletes='all')

    __table_args__ = (
        CheckConstraint('discount_value > 0', name='check_coupon_discount_value_positive'),
        CheckConstraint('minimum_order_amount >= 0', name='check_coupon_minimum_order_non_negative'),
        CheckConstraint('usage_limit IS NULL OR usage_limit > 0', name='check_coupon_usage_limit_positive'),
        CheckConstraint('used_count >= 0', name='check_coupon_used_count_non_negative'),
        CheckConstraint('usage_limit IS NULL OR used_count <= usage_limit', name='check_coupon_used_count_within_limit'),
        CheckConstraint('end_date IS NULL OR end_date > start_date', name='check_coupon_dates'),
    )


class CouponUsage(Base):
    __tablename__ = 'coupon_usage'

    id = Column(Integer, primary_key=True)
    coupon_id = Column(Integer, ForeignKey('coupons.id', ondelete='RESTRICT', onupdate='CASCADE'), nullable=False)
    user_id = Column(Integer, ForeignKey('users.id', ondelete='RESTRICT', onupdate='CASCADE'), nullable=False)
    # One redemption per order
    order_id = Column(Integer, ForeignKey('orders.id', ondelete='RESTRICT', onupdate='CASCADE'), nullable=False, unique=True)
    discount_applied = Column(Numeric(10, 2), nullable=False)
    used_at = Column(DateTime, nullable=False, default=datetime.now)

    coupon = relationship('Coupon', back_populates='usages')
    order = relationship('Order', back_populates='coupon_usage')

    __table_args__ = (
        CheckConstraint('discount_applied > 0', name='check_coupon_usage_discount_positive'),
        Index('ix_coupon_usage_coupon_id', 'coupon_id'),
        Index('ix_coupon_usage_user_id', 'user_id'),
    )


class CouponDTO(BaseModel):
    id: int | None = None
    code: str | None = None
    name: str | None = None
    description: str | None = None
    discount_type: DiscountType | None = None
    discount_value: Decimal | None = None
    minimum_order_amount: Decimal | None = None
    maximum_discount_amount: Decimal | None = None
    usage_limit: int | None = None
    used_count: int | None = None
    is_active: bool | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None


class CouponUsageDTO(BaseModel):
    id: int | None = None
    coupon_id: int | None = None
    user_id: int | None = None
    order_id: int | None = None
    discount_applied: Decimal | None = None
    used_at: datetime | None = None
