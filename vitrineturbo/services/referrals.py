"""
VitrineTurbo - Referral Service
Estatísticas de indicação, chaves PIX, saques e geração de comissões

REGRA DO SALDO:
    disponível = max(0, comissões pendentes - saques pendentes/aprovados)
Nunca negativo, mesmo quando os saques superam as comissões pendentes.
"""
import re
import asyncio
import logging
from collections import defaultdict
from datetime import datetime
from typing import Dict, Iterable, Optional

from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from vitrineturbo.core.config import settings
from vitrineturbo.core.errors import NotFoundError, ValidationFailedError
from vitrineturbo.core.security import generate_referral_code
from vitrineturbo.models import (
    User,
    Subscription,
    SubscriptionStatus,
    ReferralCommission,
    CommissionStatus,
    WithdrawalRequest,
    WithdrawalStatus,
    UserPixKey,
    PixKeyType,
)

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

# (padrão, valor) verificados nesta ordem.
# "ano" só como palavra inteira: "plano" não pode casar com a faixa anual.
COMMISSION_TIERS = (
    (re.compile(r"trimestral|3|três"), 50.00),
    (re.compile(r"semestral|6|seis"), 70.00),
    (re.compile(r"anual|12|\bano\b"), 100.00),
)

# Saques que ainda consomem o saldo
RESERVED_WITHDRAWAL_STATUSES = (WithdrawalStatus.PENDING.value, WithdrawalStatus.APPROVED.value)

WITHDRAWAL_ACTIONS = {
    "approve": WithdrawalStatus.APPROVED,
    "reject": WithdrawalStatus.REJECTED,
    "mark_paid": WithdrawalStatus.PAID,
}

# Um lock por usuário para saques
_withdrawal_locks: Dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)


class ReferralStats(BaseModel):
    total_referrals: int = 0
    active_referrals: int = 0
    total_commissions: float = 0.0
    pending_commissions: float = 0.0
    paid_commissions: float = 0.0
    available_for_withdrawal: float = 0.0
    # False quando os dados não puderam ser carregados (valores zerados)
    is_available: bool = True


class CommissionSnapshot(BaseModel):
    amount: float
    status: str
    subscription_status: Optional[str] = None


class WithdrawalSnapshot(BaseModel):
    amount: float
    status: str


def summarize_referrals(
    commissions: Iterable[CommissionSnapshot],
    withdrawals: Iterable[WithdrawalSnapshot],
) -> ReferralStats:
    """Consolida comissões e saques em contadores"""
    commissions = list(commissions)

    total = sum(c.amount for c in commissions)
    pending = sum(c.amount for c in commissions if c.status == CommissionStatus.PENDING.value)
    paid = sum(c.amount for c in commissions if c.status == CommissionStatus.PAID.value)
    reserved = sum(w.amount for w in withdrawals if w.status in RESERVED_WITHDRAWAL_STATUSES)

    return ReferralStats(
        total_referrals=len(commissions),
        active_referrals=sum(
            1 for c in commissions if c.subscription_status == SubscriptionStatus.ACTIVE.value
        ),
        total_commissions=total,
        pending_commissions=pending,
        paid_commissions=paid,
        available_for_withdrawal=max(0.0, pending - reserved),
    )


async def get_referral_stats(db: AsyncSession, user_id: str) -> ReferralStats:
    """
    Estatísticas de indicação do usuário.
    Nunca levanta exceção: em caso de erro registra no log e devolve
    estatísticas zeradas com is_available=False.
    """
    try:
        result = await db.execute(
            select(ReferralCommission.amount, ReferralCommission.status, Subscription.status)
            .outerjoin(Subscription, Subscription.id == ReferralCommission.subscription_id)
            .where(ReferralCommission.referrer_id == user_id)
        )
        commissions = [
            CommissionSnapshot(amount=amount, status=status, subscription_status=sub_status)
            for amount, status, sub_status in result.all()
        ]

        result = await db.execute(
            select(WithdrawalRequest.amount, WithdrawalRequest.status)
            .where(WithdrawalRequest.user_id == user_id)
        )
        withdrawals = [
            WithdrawalSnapshot(amount=amount, status=status)
            for amount, status in result.all()
        ]

        return summarize_referrals(commissions, withdrawals)
    except Exception as e:
        logger.error(f"Erro ao calcular estatísticas de indicação do usuário {user_id}: {e}")
        return ReferralStats(is_available=False)


def generate_referral_link(referral_code: str, base_url: Optional[str] = None) -> str:
    base = (base_url or settings.PUBLIC_SITE_URL).rstrip("/")
    return f"{base}/register?ref={referral_code}"


# ============================================
# PIX
# ============================================

def _digits(value: str) -> str:
    return re.sub(r"\D", "", value or "")


def validate_pix_key(key: str, key_type: str) -> bool:
    """Valida formato da chave PIX conforme o tipo"""
    key = key or ""
    clean = _digits(key)

    if key_type == PixKeyType.CPF.value:
        return len(clean) == 11
    if key_type == PixKeyType.CNPJ.value:
        return len(clean) == 14
    if key_type == PixKeyType.PHONE.value:
        return len(clean) in (10, 11)
    if key_type == PixKeyType.EMAIL.value:
        return bool(EMAIL_PATTERN.match(key))
    if key_type == PixKeyType.RANDOM.value:
        return len(key) >= 8
    return False


def format_pix_key(key: str, key_type: str) -> str:
    """Formata chave PIX para exibição"""
    if key_type == PixKeyType.CPF.value:
        d = _digits(key)
        if len(d) == 11:
            return f"{d[:3]}.{d[3:6]}.{d[6:9]}-{d[9:]}"
        return d
    if key_type == PixKeyType.CNPJ.value:
        d = _digits(key)
        if len(d) == 14:
            return f"{d[:2]}.{d[2:5]}.{d[5:8]}/{d[8:12]}-{d[12:]}"
        return d
    if key_type == PixKeyType.PHONE.value:
        d = _digits(key)
        if len(d) == 11:
            return f"({d[:2]}) {d[2:7]}-{d[7:]}"
        if len(d) == 10:
            return f"({d[:2]}) {d[2:6]}-{d[6:]}"
        return key
    return key


def get_commission_amount(plan_type: str) -> float:
    """Valor da comissão pelo nome do plano (busca por substring, sem caixa)"""
    plan_lower = (plan_type or "").lower()
    for pattern, amount in COMMISSION_TIERS:
        if pattern.search(plan_lower):
            return amount
    return 0.00


# ============================================
# OPERAÇÕES
# ============================================

async def save_pix_key(
    db: AsyncSession,
    user_id: str,
    pix_key: str,
    pix_key_type: str,
    holder_name: str,
) -> UserPixKey:
    """Cria ou atualiza a chave PIX do usuário"""
    if not validate_pix_key(pix_key, pix_key_type):
        raise ValidationFailedError("Chave PIX inválida para o tipo informado")
    if not holder_name or not holder_name.strip():
        raise ValidationFailedError("Nome do titular é obrigatório")

    result = await db.execute(select(UserPixKey).where(UserPixKey.user_id == user_id))
    record = result.scalar_one_or_none()

    if record is None:
        record = UserPixKey(user_id=user_id)
        db.add(record)

    record.pix_key = pix_key.strip()
    record.pix_key_type = pix_key_type
    record.holder_name = holder_name.strip()
    record.updated_at = datetime.utcnow()

    await db.commit()
    await db.refresh(record)
    logger.info(f"Chave PIX salva para usuário {user_id}")
    return record


async def request_withdrawal(db: AsyncSession, user_id: str, amount: float) -> WithdrawalRequest:
    """
    Cria solicitação de saque respeitando mínimo e saldo disponível.

    Verificação do saldo e inserção rodam serializadas por usuário: o lock
    local cobre o SQLite (onde FOR UPDATE é ignorado) e o FOR UPDATE na
    linha do usuário cobre vários processos no Postgres.
    """
    async with _withdrawal_locks[user_id]:
        try:
            return await _create_withdrawal(db, user_id, amount)
        except ValidationFailedError:
            await db.rollback()
            raise


async def _create_withdrawal(db: AsyncSession, user_id: str, amount: float) -> WithdrawalRequest:
    await db.execute(select(User.id).where(User.id == user_id).with_for_update())

    result = await db.execute(select(UserPixKey).where(UserPixKey.user_id == user_id))
    pix = result.scalar_one_or_none()
    if pix is None:
        raise ValidationFailedError("Configure sua chave PIX antes de solicitar um saque")

    if amount < settings.MIN_WITHDRAWAL_AMOUNT:
        raise ValidationFailedError(
            f"Valor mínimo para saque é R$ {settings.MIN_WITHDRAWAL_AMOUNT:.2f}".replace(".", ",")
        )

    # Leitura direta: aqui um erro de banco deve propagar
    result = await db.execute(
        select(ReferralCommission.amount, ReferralCommission.status)
        .where(ReferralCommission.referrer_id == user_id)
    )
    commissions = [CommissionSnapshot(amount=a, status=s) for a, s in result.all()]
    result = await db.execute(
        select(WithdrawalRequest.amount, WithdrawalRequest.status)
        .where(WithdrawalRequest.user_id == user_id)
    )
    withdrawals = [WithdrawalSnapshot(amount=a, status=s) for a, s in result.all()]
    stats = summarize_referrals(commissions, withdrawals)

    if amount > stats.available_for_withdrawal:
        raise ValidationFailedError("Valor solicitado maior que o disponível para saque")

    withdrawal = WithdrawalRequest(
        user_id=user_id,
        amount=amount,
        pix_key=pix.pix_key,
        pix_key_type=pix.pix_key_type,
        holder_name=pix.holder_name,
        status=WithdrawalStatus.PENDING.value,
    )
    db.add(withdrawal)
    await db.commit()
    await db.refresh(withdrawal)

    logger.info(f"Saque de R$ {amount:.2f} solicitado por {user_id}")
    return withdrawal


async def process_withdrawal(
    db: AsyncSession,
    withdrawal_id: str,
    action: str,
    admin_id: str,
    notes: Optional[str] = None,
) -> WithdrawalRequest:
    """Aprova, rejeita ou marca como pago (admin)"""
    new_status = WITHDRAWAL_ACTIONS.get(action)
    if new_status is None:
        raise ValidationFailedError(f"Ação inválida: {action}")

    result = await db.execute(select(WithdrawalRequest).where(WithdrawalRequest.id == withdrawal_id))
    withdrawal = result.scalar_one_or_none()
    if withdrawal is None:
        raise NotFoundError("Solicitação de saque não encontrada")

    withdrawal.status = new_status.value
    withdrawal.admin_notes = notes
    withdrawal.processed_at = datetime.utcnow()
    withdrawal.processed_by = admin_id

    await db.commit()
    await db.refresh(withdrawal)
    logger.info(f"Saque {withdrawal_id} -> {new_status.value} por {admin_id}")
    return withdrawal


async def mark_commission_paid(db: AsyncSession, commission_id: str) -> ReferralCommission:
    result = await db.execute(select(ReferralCommission).where(ReferralCommission.id == commission_id))
    commission = result.scalar_one_or_none()
    if commission is None:
        raise NotFoundError("Comissão não encontrada")

    commission.status = CommissionStatus.PAID.value
    commission.paid_at = datetime.utcnow()
    await db.commit()
    await db.refresh(commission)
    logger.info(f"Comissão {commission_id} marcada como paga")
    return commission


async def record_subscription_commission(
    db: AsyncSession,
    subscription: Subscription,
) -> Optional[ReferralCommission]:
    """
    Gera a comissão do indicador quando a assinatura do indicado fica ativa.
    No máximo uma comissão por indicado; planos sem faixa não geram comissão.
    """
    if subscription.status != SubscriptionStatus.ACTIVE.value:
        return None

    result = await db.execute(select(User.referred_by).where(User.id == subscription.user_id))
    referrer_id = result.scalar_one_or_none()
    if not referrer_id:
        return None

    amount = get_commission_amount(subscription.plan_name)
    if amount <= 0:
        return None

    result = await db.execute(
        select(ReferralCommission).where(ReferralCommission.referred_user_id == subscription.user_id)
    )
    if result.scalar_one_or_none():
        return None

    commission = ReferralCommission(
        referrer_id=referrer_id,
        referred_user_id=subscription.user_id,
        subscription_id=subscription.id,
        plan_type=subscription.plan_name,
        amount=amount,
        status=CommissionStatus.PENDING.value,
    )
    db.add(commission)
    await db.commit()
    await db.refresh(commission)

    logger.info(f"Comissão de R$ {amount:.2f} gerada para {referrer_id}")
    return commission


async def activate_subscription(db: AsyncSession, subscription_id: str) -> Subscription:
    """Ativa a assinatura e gera a comissão de indicação, se houver"""
    result = await db.execute(select(Subscription).where(Subscription.id == subscription_id))
    subscription = result.scalar_one_or_none()
    if subscription is None:
        raise NotFoundError("Assinatura não encontrada")

    was_active = subscription.status == SubscriptionStatus.ACTIVE.value
    subscription.status = SubscriptionStatus.ACTIVE.value
    subscription.payment_status = "paid"

    result = await db.execute(select(User).where(User.id == subscription.user_id))
    user = result.scalar_one_or_none()
    if user is not None:
        user.plan_status = "active"

    await db.commit()
    await db.refresh(subscription)

    if not was_active:
        await record_subscription_commission(db, subscription)
    return subscription


async def ensure_referral_code(db: AsyncSession, user: User) -> str:
    """Atribui código de indicação único ao usuário, se ainda não tiver"""
    if user.referral_code:
        return user.referral_code

    while True:
        code = generate_referral_code()
        result = await db.execute(select(User.id).where(User.referral_code == code))
        if result.scalar_one_or_none() is None:
            break

    user.referral_code = code
    await db.commit()
    return code


async def find_referrer(db: AsyncSession, referral_code: Optional[str]) -> Optional[User]:
    """Indicador pelo código; código desconhecido é ignorado"""
    if not referral_code:
        return None
    result = await db.execute(
        select(User).where(User.referral_code == referral_code.strip().upper())
    )
    referrer = result.scalar_one_or_none()
    if referrer is None:
        logger.warning(f"Código de indicação desconhecido: {referral_code}")
    return referrer
