from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel
from sqlalchemy import Column, Integer, String, Numeric, DateTime, ForeignKey, CheckConstraint, Index
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import relationship

from enums.currency import Currency
from enums.order_status import OrderStatus
from enums.payment_status import PaymentStatus
from models.base import Base, enum_values
from models.orderItem import OrderItemDTO


class Order(Base):
    __tablename__ = 'orders'

    id = Column(Integer, primary_key=True)
    # Orders outlive the user reference for audit purposes: deleting a user with orders is refused
    user_id = Column(Integer, ForeignKey('users.id', ondelete='RESTRICT', onupdate='CASCADE'), nullable=False)
    order_number = Column(String(50), nullable=False, unique=True)
    order_status = Column(SQLEnum(OrderStatus, values_callable=enum_values), nullable=False, default=OrderStatus.PENDING)
    payment_status = Column(SQLEnum(PaymentStatus, values_callable=enum_values), nullable=False, default=PaymentStatus.PENDING)

    # Money (fixed point, 2 decimals)
    # Invariant: total_amount = subtotal + tax_amount + shipping_cost - discount_amount
    subtotal = Column(Numeric(10, 2), nullable=False)
    tax_amount = Column(Numeric(10, 2), nullable=False, default=Decimal("0.00"))
    shipping_cost = Column(Numeric(10, 2), nullable=False, default=Decimal("0.00"))
    discount_amount = Column(Numeric(10, 2), nullable=False, default=Decimal("0.00"))
    total_amount = Column(Numeric(10, 2), nullable=False)
    currency = Column(SQLEnum(Currency, values_callable=enum_values), nullable=False, default=Currency.USD)

    # Shipping Information
    shipping_address_id = Column(Integer, ForeignKey('addresses.id', ondelete='SET NULL', onupdate='CASCADE'), nullable=True)
    billing_address_id = Column(Integer, ForeignKey('addresses.id', ondelete='SET NULL', onupdate='CASCADE'), nullable=True)
    shipping_method = Column(String(100), nullable=True)
    tracking_number = Column(String(100), nullable=True)

    # Timestamps
    order_date = Column(DateTime, nullable=False, default=datetime.now)
    shipped_date = Column(DateTime, nullable=True)
    delivered_date = Column(DateTime, nullable=True)
    cancelled_date = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.now)
    updated_at = Column(DateTime, nullable=False, default=datetime.now, onupdate=datetime.now)

    # Relations
    user = relationship('User', back_populates='orders')
    items = relationship('OrderItem', back_populates='order', passive_deletes=True)
    coupon_usage = relationship('CouponUsage', back_populates='order', uselist=False, passive_deletes='all')
    shipping_address = relationship('Address', foreign_keys=[shipping_address_id])
    billing_address = relationship('Address', foreign_keys=[billing_address_id])

    __table_args__ = (
        CheckConstraint('subtotal >= 0', name='check_order_subtotal_non_negative'),
        CheckConstraint('total_amount >= 0', name='check_order_total_non_negative'),
        CheckConstraint('tax_amount >= 0', name='check_order_tax_non_negative'),
        CheckConstraint('shipping_cost >= 0', name='check_order_shipping_non_negative'),
        CheckConstraint('discount_amount >= 0', name='check_order_discount_non_negative'),
        Index('ix_orders_user_id', 'user_id'),
        Index('ix_orders_order_status', 'order_status'),
        Index('ix_orders_order_date', 'order_date'),
    )


class OrderDTO(BaseModel):
    id: int | None = None
    user_id: int | None = None
    order_number: str | None = None
    order_status: OrderStatus | None = None
    payment_status: PaymentStatus | None = None
    subtotal: Decimal | None = None
    tax_amount: Decimal | None = None
    shipping_cost: Decimal | None = None
    discount_amount: Decimal | None = None
    total_amount: Decimal | None = None
    currency: Currency | None = None
    shipping_address_id: int | None = None
    billing_address_id: int | None = None
    shipping_method: str | None = None
    tracking_number: str | None = None
    order_date: datetime | None = None
    shipped_date: datetime | None = None
    delivered_date: datetime | None = None
    cancelled_date: datetime | None = None


class OrderDetailsDTO(BaseModel):
    """Order header together with its immutable item snapshots."""
    order: OrderDTO
    items: list[OrderItemDTO] = []
    coupon_code: str | None = None


class OrderChargesDTO(BaseModel):
    """Tax and shipping returned by the pricing collaborator for one checkout."""
    tax_amount: Decimal = Decimal("0.00")
    shipping_cost: Decimal = Decimal("0.00")
