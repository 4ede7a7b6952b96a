"""
VitrineTurbo - Subscription Models
Assinaturas dos corretores e planos oferecidos
"""
import uuid
from datetime import datetime
from enum import Enum
from sqlalchemy import Column, String, Boolean, DateTime, Integer, Float, ForeignKey

from vitrineturbo.database import Base


class SubscriptionStatus(str, Enum):
    """Status da assinatura"""
    ACTIVE = "active"
    PENDING = "pending"
    CANCELLED = "cancelled"
    SUSPENDED = "suspended"


class BillingCycle(str, Enum):
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    SEMIANNUALLY = "semiannually"
    ANNUALLY = "annually"


class Subscription(Base):
    """Assinatura de um usuário"""
    __tablename__ = "subscriptions"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)

    plan_name = Column(String(100), nullable=False)  # Ex: "Plano Anual"
    monthly_price = Column(Float, default=0)
    billing_cycle = Column(String(20), default=BillingCycle.MONTHLY.value)

    status = Column(String(20), default=SubscriptionStatus.PENDING.value, index=True)
    payment_status = Column(String(20), default="pending")  # paid, pending, overdue

    start_date = Column(DateTime, default=datetime.utcnow)
    end_date = Column(DateTime)
    next_payment_date = Column(DateTime)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "plan_name": self.plan_name,
            "monthly_price": self.monthly_price,
            "billing_cycle": self.billing_cycle,
            "status": self.status,
            "payment_status": self.payment_status,
            "start_date": self.start_date.isoformat() if self.start_date else None,
            "end_date": self.end_date.isoformat() if self.end_date else None,
        }


class SubscriptionPlan(Base):
    """
    Plano de assinatura exibido para compra
    """
    __tablename__ = "subscription_plans"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    name = Column(String(100), nullable=False)
    duration = Column(String(20), nullable=False)  # Trimestral, Semestral, Anual
    price = Column(Float, nullable=False)
    checkout_url = Column(String(500))

    is_active = Column(Boolean, default=True)
    display_order = Column(Integer, default=0)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "duration": self.duration,
            "price": self.price,
            "checkout_url": self.checkout_url,
            "is_active": self.is_active,
            "display_order": self.display_order,
        }
