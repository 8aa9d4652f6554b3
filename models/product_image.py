from datetime import datetime

from pydantic import BaseModel
from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from models.base import Base


# Image files live in external storage, only the URL is kept here
class ProductImage(Base):
    __tablename__ = 'product_images'

    id = Column(Integer, primary_key=True)
    product_id = Column(Integer, ForeignKey('products.id', ondelete='CASCADE', onupdate='CASCADE'), nullable=False)
    image_url = Column(String(500), nullable=False)
    alt_text = Column(String(255), nullable=True)
    is_primary = Column(Boolean, nullable=False, default=False)
    sort_order = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, nullable=False, default=datetime.now)

    product = relationship('Product', back_populates='images')


class ProductImageDTO(BaseModel):
    id: int | None = None
    product_id: int | None = None
    image_url: str | None = None
    alt_text: str | None = None
    is_primary: bool | None = None
    sort_order: int | None = None
