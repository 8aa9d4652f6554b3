from datetime import date, datetime

from pydantic import BaseModel
from sqlalchemy import Column, Integer, Date, DateTime, String, Text, Boolean, ForeignKey
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import relationship

from enums.gender import Gender
from models.base import Base, enum_values


# One-to-one with users: the UNIQUE user_id is what enforces "exactly one profile"
class UserProfile(Base):
    __tablename__ = 'user_profiles'

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey('users.id', ondelete='CASCADE', onupdate='CASCADE'), nullable=False, unique=True)
    date_of_birth = Column(Date, nullable=True)
    gender = Column(SQLEnum(Gender, values_callable=enum_values), nullable=True)
    bio = Column(Text, nullable=True)
    profile_picture_url = Column(String(500), nullable=True)
    preferred_language = Column(String(10), nullable=False, default='en')
    timezone = Column(String(50), nullable=False, default='UTC')
    marketing_consent = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False, default=datetime.now)
    updated_at = Column(DateTime, nullable=False, default=datetime.now, onupdate=datetime.now)

    user = relationship('User', back_populates='profile')


class UserProfileDTO(BaseModel):
    id: int | None = None
    user_id: int | None = None
    date_of_birth: date | None = None
    gender: Gender | None = None
    bio: str | None = None
    profile_picture_url: str | None = None
    preferred_language: str | None = None
    timezone: str | None = None
    marketing_consent: bool | None = None
