"""
VitrineTurbo - Catalog Models
Produtos das vitrines e tamanhos personalizados
"""
import uuid
from datetime import datetime
from sqlalchemy import Column, String, Boolean, DateTime, Text, Float, ForeignKey, UniqueConstraint, JSON

from vitrineturbo.database import Base


class Product(Base):
    """Produto de um corretor"""
    __tablename__ = "products"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)

    title = Column(String(255), nullable=False)
    description = Column(Text, default="")
    short_description = Column(String(500))

    price = Column(Float)
    discounted_price = Column(Float)
    is_starting_price = Column(Boolean, default=False)

    # disponivel, vendido, reservado
    status = Column(String(20), default="disponivel")
    category = Column(JSON, default=list)
    colors = Column(JSON, default=list)
    sizes = Column(JSON, default=list)

    featured_image_url = Column(String(500))
    is_visible_on_storefront = Column(Boolean, default=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "title": self.title,
            "description": self.description,
            "short_description": self.short_description,
            "price": self.price,
            "discounted_price": self.discounted_price,
            "is_starting_price": self.is_starting_price,
            "status": self.status,
            "category": self.category or [],
            "colors": self.colors or [],
            "sizes": self.sizes or [],
            "featured_image_url": self.featured_image_url,
            "is_visible_on_storefront": self.is_visible_on_storefront,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


class UserCustomSize(Base):
    """Tamanho personalizado cadastrado por um corretor"""
    __tablename__ = "user_custom_sizes"
    __table_args__ = (
        UniqueConstraint('user_id', 'size_name', name='uq_user_custom_sizes_user_size'),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    size_name = Column(String(50), nullable=False)
    size_type = Column(String(20), default="custom")  # apparel, shoe, custom
    created_at = Column(DateTime, default=datetime.utcnow)
