from datetime import datetime

from pydantic import BaseModel
from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, CheckConstraint
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import relationship

from enums.payment_method_type import PaymentMethodType
from models.base import Base, enum_values


# Stored payment instrument metadata only; charging goes through the payment gateway
class PaymentMethod(Base):
    __tablename__ = 'payment_methods'

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey('users.id', ondelete='CASCADE', onupdate='CASCADE'), nullable=False)
    method_type = Column(SQLEnum(PaymentMethodType, values_callable=enum_values), nullable=False)
    card_last_four = Column(String(4), nullable=True)
    card_brand = Column(String(20), nullable=True)
    expiry_month = Column(Integer, nullable=True)
    expiry_year = Column(Integer, nullable=True)
    cardholder_name = Column(String(100), nullable=True)
    is_default = Column(Boolean, nullable=False, default=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=datetime.now)
    updated_at = Column(DateTime, nullable=False, default=datetime.now, onupdate=datetime.now)

    user = relationship('User', back_populates='payment_methods')

    __table_args__ = (
        CheckConstraint('expiry_month IS NULL OR (expiry_month >= 1 AND expiry_month <= 12)', name='check_payment_expiry_month'),
        CheckConstraint('card_last_four IS NULL OR LENGTH(card_last_four) = 4', name='check_payment_card_last_four'),
    )


class PaymentMethodDTO(BaseModel):
    id: int | None = None
    user_id: int | None = None
    method_type: PaymentMethodType | None = None
    card_last_four: str | None = None
    card_brand: str | None = None
    expiry_month: int | None = None
    expiry_year: int | None = None
    cardholder_name: str | None = None
    is_default: bool | None = None
    is_active: bool | None = None
