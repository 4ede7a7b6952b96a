"""
VitrineTurbo - Referrals API
Programa de indicação: estatísticas, chave PIX, saques e rotinas do admin
"""
import logging
from typing import Optional
from fastapi import APIRouter, Depends, Body
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from vitrineturbo.database import get_db
from vitrineturbo.models import User, UserPixKey, WithdrawalRequest
from vitrineturbo.schemas import (
    PixKeyRequest,
    PixKeyResponse,
    PixValidateRequest,
    PixValidateResponse,
    WithdrawalCreate,
    WithdrawalAction,
    ReferralLinkResponse,
    CommissionAmountResponse,
)
from vitrineturbo.core import Action, SessionRecord
from vitrineturbo.services.i18n import format_currency
from vitrineturbo.services.referrals import (
    ReferralStats,
    get_referral_stats,
    generate_referral_link,
    ensure_referral_code,
    validate_pix_key,
    format_pix_key,
    get_commission_amount,
    save_pix_key,
    request_withdrawal,
    process_withdrawal,
    mark_commission_paid,
    activate_subscription,
)
from .auth import get_current_session, get_current_user, require

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/referrals", tags=["Referrals"])
admin_router = APIRouter(prefix="/admin", tags=["Admin"])


def _pix_response(record: UserPixKey) -> PixKeyResponse:
    return PixKeyResponse(
        pix_key=record.pix_key,
        pix_key_type=record.pix_key_type,
        holder_name=record.holder_name,
        formatted_key=format_pix_key(record.pix_key, record.pix_key_type),
    )


@router.get("/stats", response_model=ReferralStats)
async def get_stats(
    session: SessionRecord = Depends(get_current_session),
    db: AsyncSession = Depends(get_db),
):
    """Estatísticas do programa de indicação do usuário"""
    return await get_referral_stats(db, session.id)


@router.get("/link", response_model=ReferralLinkResponse)
async def get_link(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Link de indicação (gera o código na primeira chamada)"""
    code = await ensure_referral_code(db, user)
    return ReferralLinkResponse(referral_code=code, link=generate_referral_link(code))


@router.get("/pix-key", response_model=Optional[PixKeyResponse])
async def get_pix_key(
    session: SessionRecord = Depends(get_current_session),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(select(UserPixKey).where(UserPixKey.user_id == session.id))
    record = result.scalar_one_or_none()
    return _pix_response(record) if record else None


@router.put("/pix-key", response_model=PixKeyResponse)
async def put_pix_key(
    request: PixKeyRequest,
    session: SessionRecord = Depends(get_current_session),
    db: AsyncSession = Depends(get_db),
):
    """Cadastra ou atualiza a chave PIX de recebimento"""
    record = await save_pix_key(
        db, session.id, request.pix_key, request.pix_key_type, request.holder_name
    )
    return _pix_response(record)


@router.get("/withdrawals")
async def list_withdrawals(
    session: SessionRecord = Depends(get_current_session),
    db: AsyncSession = Depends(get_db),
):
    """Saques do usuário, mais recentes primeiro"""
    result = await db.execute(
        select(WithdrawalRequest)
        .where(WithdrawalRequest.user_id == session.id)
        .order_by(WithdrawalRequest.created_at.desc())
    )
    return [w.to_dict() for w in result.scalars().all()]


@router.post("/withdrawals", status_code=201)
async def create_withdrawal(
    request: WithdrawalCreate,
    session: SessionRecord = Depends(get_current_session),
    db: AsyncSession = Depends(get_db),
):
    """Solicita saque das comissões disponíveis"""
    withdrawal = await request_withdrawal(db, session.id, request.amount)
    return withdrawal.to_dict()


@router.post("/pix/validate", response_model=PixValidateResponse)
async def validate_pix(request: PixValidateRequest):
    """Valida e formata uma chave PIX"""
    return PixValidateResponse(
        valid=validate_pix_key(request.pix_key, request.pix_key_type),
        formatted_key=format_pix_key(request.pix_key, request.pix_key_type),
    )


@router.get("/commission-amount", response_model=CommissionAmountResponse)
async def commission_amount(plan_type: str):
    """Comissão paga por um plano"""
    amount = get_commission_amount(plan_type)
    return CommissionAmountResponse(
        plan_type=plan_type,
        amount=amount,
        formatted_amount=format_currency(amount),
    )


# ============================================
# ADMIN
# ============================================

@admin_router.get("/referrals/withdrawals")
async def admin_list_withdrawals(
    status: Optional[str] = None,
    session: SessionRecord = Depends(require(Action.ADMIN)),
    db: AsyncSession = Depends(get_db),
):
    """Lista solicitações de saque (filtro opcional por status)"""
    query = select(WithdrawalRequest).order_by(WithdrawalRequest.created_at.desc())
    if status:
        query = query.where(WithdrawalRequest.status == status)
    result = await db.execute(query)
    return [w.to_dict() for w in result.scalars().all()]


@admin_router.post("/referrals/withdrawals/{withdrawal_id}/{action}")
async def admin_process_withdrawal(
    withdrawal_id: str,
    action: str,
    request: Optional[WithdrawalAction] = Body(None),
    session: SessionRecord = Depends(require(Action.ADMIN)),
    db: AsyncSession = Depends(get_db),
):
    """Aprova, rejeita ou marca saque como pago"""
    withdrawal = await process_withdrawal(
        db,
        withdrawal_id,
        action,
        admin_id=session.id,
        notes=request.notes if request else None,
    )
    return withdrawal.to_dict()


@admin_router.post("/referrals/commissions/{commission_id}/paid")
async def admin_mark_commission_paid(
    commission_id: str,
    session: SessionRecord = Depends(require(Action.ADMIN)),
    db: AsyncSession = Depends(get_db),
):
    commission = await mark_commission_paid(db, commission_id)
    return commission.to_dict()


@admin_router.post("/subscriptions/{subscription_id}/activate")
async def admin_activate_subscription(
    subscription_id: str,
    session: SessionRecord = Depends(require(Action.ADMIN)),
    db: AsyncSession = Depends(get_db),
):
    """Ativa assinatura (pagamento confirmado) e gera comissão de indicação"""
    subscription = await activate_subscription(db, subscription_id)
    logger.info(f"Assinatura {subscription_id} ativada por {session.id}")
    return subscription.to_dict()
