"""
VitrineTurbo - Users API
Gestão de usuários (admin: todos; parceiro: apenas os que criou)
"""
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from vitrineturbo.database import get_db
from vitrineturbo.schemas import UserCreate, PasswordChange, EmailChange
from vitrineturbo.core import Action, Role, SessionRecord
from vitrineturbo.services.users import (
    list_managed_users,
    get_managed_user,
    create_managed_user,
    set_user_blocked,
    change_user_password,
    update_user_email,
    delete_managed_user,
)
from .auth import require

router = APIRouter(prefix="/admin/users", tags=["Users"])

can_manage = require(Action.WRITE, "users")


def _is_admin(session: SessionRecord) -> bool:
    return session.role == Role.ADMIN


@router.get("")
async def list_users(
    search: Optional[str] = Query(None),
    is_blocked: Optional[bool] = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    session: SessionRecord = Depends(can_manage),
    db: AsyncSession = Depends(get_db),
):
    """Lista usuários gerenciáveis pela sessão"""
    users = await list_managed_users(
        db,
        session.id,
        _is_admin(session),
        search=search,
        is_blocked=is_blocked,
        skip=skip,
        limit=limit,
    )
    return [u.to_dict() for u in users]


@router.get("/{user_id}")
async def get_user(
    user_id: str,
    session: SessionRecord = Depends(can_manage),
    db: AsyncSession = Depends(get_db),
):
    user = await get_managed_user(db, user_id, session.id, _is_admin(session))
    return user.to_dict()


@router.post("", status_code=201)
async def create_user(
    request: UserCreate,
    session: SessionRecord = Depends(can_manage),
    db: AsyncSession = Depends(get_db),
):
    """Cria usuário; criado por parceiro é sempre corretor"""
    user = await create_managed_user(db, request.model_dump(), session.id, _is_admin(session))
    return user.to_dict()


@router.post("/{user_id}/block")
async def block_user(
    user_id: str,
    session: SessionRecord = Depends(can_manage),
    db: AsyncSession = Depends(get_db),
):
    user = await set_user_blocked(db, user_id, True, session.id, _is_admin(session))
    return user.to_dict()


@router.post("/{user_id}/unblock")
async def unblock_user(
    user_id: str,
    session: SessionRecord = Depends(can_manage),
    db: AsyncSession = Depends(get_db),
):
    user = await set_user_blocked(db, user_id, False, session.id, _is_admin(session))
    return user.to_dict()


@router.put("/{user_id}/password")
async def change_password(
    user_id: str,
    request: PasswordChange,
    session: SessionRecord = Depends(can_manage),
    db: AsyncSession = Depends(get_db),
):
    await change_user_password(db, user_id, request.new_password, session.id, _is_admin(session))
    return {"message": "Senha alterada com sucesso"}


@router.put("/{user_id}/email")
async def change_email(
    user_id: str,
    request: EmailChange,
    session: SessionRecord = Depends(can_manage),
    db: AsyncSession = Depends(get_db),
):
    user = await update_user_email(db, user_id, request.new_email, session.id, _is_admin(session))
    return user.to_dict()


@router.delete("/{user_id}")
async def delete_user(
    user_id: str,
    session: SessionRecord = Depends(require(Action.DELETE, "users")),
    db: AsyncSession = Depends(get_db),
):
    await delete_managed_user(db, user_id, session.id, _is_admin(session))
    return {"message": "Usuário excluído"}
