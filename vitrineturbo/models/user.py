"""
VitrineTurbo - User Model
Usuários da plataforma: administradores, parceiros e corretores (vendedores)
"""
import uuid
from datetime import datetime
from sqlalchemy import Column, String, Boolean, DateTime, Integer, Text, ForeignKey

from vitrineturbo.database import Base


class User(Base):
    """Modelo de usuário"""
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    email = Column(String(255), unique=True, nullable=False, index=True)
    hashed_password = Column(String(255), nullable=False)
    name = Column(String(255), nullable=False)

    # admin, parceiro, corretor
    role = Column(String(20), default="corretor", nullable=False, index=True)

    # Vitrine pública
    slug = Column(String(100), unique=True, index=True)
    whatsapp = Column(String(20))
    bio = Column(Text)
    niche_type = Column(String(50), default="diversos")
    currency = Column(String(3), default="BRL")
    language = Column(String(5), default="pt-BR")
    listing_limit = Column(Integer, default=50)

    # Bloqueio por pendência financeira
    is_blocked = Column(Boolean, default=False)
    plan_status = Column(String(20), default="inactive")

    # Indicações
    referral_code = Column(String(20), unique=True, index=True)
    referred_by = Column(String(36), ForeignKey("users.id"))
    created_by = Column(String(36), ForeignKey("users.id"))

    last_login_at = Column(DateTime)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "role": self.role,
            "slug": self.slug,
            "whatsapp": self.whatsapp,
            "currency": self.currency,
            "language": self.language,
            "is_blocked": self.is_blocked,
            "plan_status": self.plan_status,
            "listing_limit": self.listing_limit,
            "referral_code": self.referral_code,
            "created_by": self.created_by,
            "last_login_at": self.last_login_at.isoformat() if self.last_login_at else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
