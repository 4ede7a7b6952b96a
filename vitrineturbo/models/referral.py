"""
VitrineTurbo - Referral Models
Comissões de indicação, chaves PIX e solicitações de saque
"""
import uuid
from datetime import datetime
from enum import Enum
from sqlalchemy import Column, String, DateTime, Text, Float, ForeignKey
from sqlalchemy.orm import relationship

from vitrineturbo.database import Base


class CommissionStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"


class WithdrawalStatus(str, Enum):
    """Status do saque"""
    PENDING = "pending"     # Aguardando análise
    APPROVED = "approved"   # Aprovado, aguardando pagamento
    PAID = "paid"           # Pago via PIX
    REJECTED = "rejected"   # Rejeitado pelo admin


class PixKeyType(str, Enum):
    CPF = "cpf"
    CNPJ = "cnpj"
    PHONE = "phone"
    EMAIL = "email"
    RANDOM = "random"


class ReferralCommission(Base):
    """Comissão gerada quando um indicado ativa a assinatura"""
    __tablename__ = "referral_commissions"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    referrer_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    # Uma comissão por indicado
    referred_user_id = Column(String(36), ForeignKey("users.id"), nullable=False, unique=True)

    subscription_id = Column(String(36), ForeignKey("subscriptions.id"), nullable=False)
    subscription = relationship("Subscription", lazy="joined")

    plan_type = Column(String(100), nullable=False)
    amount = Column(Float, nullable=False)
    status = Column(String(20), default=CommissionStatus.PENDING.value, nullable=False, index=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    paid_at = Column(DateTime)

    def to_dict(self):
        return {
            "id": self.id,
            "referrer_id": self.referrer_id,
            "referred_user_id": self.referred_user_id,
            "subscription_id": self.subscription_id,
            "plan_type": self.plan_type,
            "amount": self.amount,
            "status": self.status,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "paid_at": self.paid_at.isoformat() if self.paid_at else None,
        }


class UserPixKey(Base):
    """Chave PIX de recebimento (uma por usuário)"""
    __tablename__ = "user_pix_keys"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, unique=True)

    pix_key = Column(String(140), nullable=False)
    pix_key_type = Column(String(10), nullable=False)
    holder_name = Column(String(255), nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self):
        return {
            "pix_key": self.pix_key,
            "pix_key_type": self.pix_key_type,
            "holder_name": self.holder_name,
        }


class WithdrawalRequest(Base):
    """Solicitação de saque de comissões"""
    __tablename__ = "withdrawal_requests"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)

    amount = Column(Float, nullable=False)
    pix_key = Column(String(140), nullable=False)
    pix_key_type = Column(String(10), nullable=False)
    holder_name = Column(String(255))

    status = Column(String(20), default=WithdrawalStatus.PENDING.value, nullable=False, index=True)
    admin_notes = Column(Text)

    created_at = Column(DateTime, default=datetime.utcnow)
    processed_at = Column(DateTime)
    processed_by = Column(String(36), ForeignKey("users.id"))

    def to_dict(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "amount": self.amount,
            "pix_key": self.pix_key,
            "pix_key_type": self.pix_key_type,
            "holder_name": self.holder_name,
            "status": self.status,
            "admin_notes": self.admin_notes,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "processed_at": self.processed_at.isoformat() if self.processed_at else None,
        }
