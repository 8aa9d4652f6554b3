from datetime import datetime

from pydantic import BaseModel
from sqlalchemy import Integer, Column, String, Text, Boolean, DateTime, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship

from models.base import Base


class Category(Base):
    __tablename__ = 'categories'

    id = Column(Integer, primary_key=True)
    name = Column(String(100), nullable=False, unique=True)
    description = Column(Text, nullable=True)
    # Self reference; acyclicity is checked by CategoryService on every write
    parent_id = Column(Integer, ForeignKey('categories.id', ondelete='SET NULL', onupdate='CASCADE'), nullable=True)
    image_url = Column(String(500), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    sort_order = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, nullable=False, default=datetime.now)
    updated_at = Column(DateTime, nullable=False, default=datetime.now, onupdate=datetime.now)

    # Relationships
    parent = relationship('Category', remote_side=[id], back_populates='children')
    children = relationship('Category', back_populates='parent', passive_deletes=True)
    products = relationship('Product', back_populates='category', passive_deletes='all')

    __table_args__ = (
        CheckConstraint('parent_id IS NULL OR parent_id != id', name='check_category_not_own_parent'),
    )


class CategoryDTO(BaseModel):
    id: int | None = None
    name: str | None = None
    description: str | None = None
    parent_id: int | None = None
    image_url: str | None = None
    is_active: bool | None = None
    sort_order: int | None = None
