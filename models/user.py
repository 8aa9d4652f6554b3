from datetime import datetime

from pydantic import BaseModel
from sqlalchemy import Column, Integer, DateTime, String, Boolean, CheckConstraint, Index
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import relationship

from enums.user_type import UserType
from models.base import Base, enum_values


class User(Base):
    __tablename__ = 'users'

    id = Column(Integer, primary_key=True)
    username = Column(String(50), nullable=False, unique=True)
    email = Column(String(100), nullable=False, unique=True)
    # Produced by the authentication layer, never inspected here
    password_hash = Column(String(255), nullable=False)
    first_name = Column(String(50), nullable=False)
    last_name = Column(String(50), nullable=False)
    phone = Column(String(20), nullable=True)
    user_type = Column(SQLEnum(UserType, values_callable=enum_values), nullable=False, default=UserType.CUSTOMER)
    is_active = Column(Boolean, nullable=False, default=True)
    email_verified = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False, default=datetime.now)
    updated_at = Column(DateTime, nullable=False, default=datetime.now, onupdate=datetime.now)

    # Owned rows are removed by the database (ON DELETE CASCADE), orders block deletion
    profile = relationship('UserProfile', back_populates='user', uselist=False, passive_deletes=True)
    addresses = relationship('Address', back_populates='user', passive_deletes=True)
    cart_items = relationship('CartItem', back_populates='user', passive_deletes=True)
    reviews = relationship('Review', back_populates='user', passive_deletes=True)
    payment_methods = relationship('PaymentMethod', back_populates='user', passive_deletes=True)
    orders = relationship('Order', back_populates='user', passive_deletes='all')

    __table_args__ = (
        CheckConstraint("email LIKE '%_@_%._%'", name='check_user_email_format'),
        Index('ix_users_user_type', 'user_type'),
        Index('ix_users_is_active', 'is_active'),
    )


class UserDTO(BaseModel):
    id: int | None = None
    username: str | None = None
    email: str | None = None
    password_hash: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    phone: str | None = None
    user_type: UserType | None = None
    is_active: bool | None = None
    email_verified: bool | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
