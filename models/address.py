from datetime import datetime

from pydantic import BaseModel
from sqlalchemy import Column, Integer, DateTime, String, Boolean, ForeignKey, Index
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import relationship

from enums.address_type import AddressType
from models.base import Base, enum_values


class Address(Base):
    __tablename__ = 'addresses'

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey('users.id', ondelete='CASCADE', onupdate='CASCADE'), nullable=False)
    address_type = Column(SQLEnum(AddressType, values_callable=enum_values), nullable=False, default=AddressType.BOTH)
    street_address = Column(String(255), nullable=False)
    apartment_unit = Column(String(50), nullable=True)
    city = Column(String(100), nullable=False)
    state_province = Column(String(100), nullable=False)
    postal_code = Column(String(20), nullable=False)
    country = Column(String(100), nullable=False)
    is_default = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False, default=datetime.now)
    updated_at = Column(DateTime, nullable=False, default=datetime.now, onupdate=datetime.now)

    user = relationship('User', back_populates='addresses')

    __table_args__ = (
        Index('ix_addresses_user_id', 'user_id'),
    )


class AddressDTO(BaseModel):
    id: int | None = None
    user_id: int | None = None
    address_type: AddressType | None = None
    street_address: str | None = None
    apartment_unit: str | None = None
    city: str | None = None
    state_province: str | None = None
    postal_code: str | None = None
    country: str | None = None
    is_default: bool | None = None
