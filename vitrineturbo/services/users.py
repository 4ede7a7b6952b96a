"""
VitrineTurbo - User Management Service
Gestão de usuários pelo admin e pelo parceiro

Admin enxerga todos os usuários. Parceiro só enxerga os usuários que
criou (created_by), e todo usuário criado por ele é corretor.
"""
import logging
from typing import List, Optional

from sqlalchemy import select, delete, or_
from sqlalchemy.ext.asyncio import AsyncSession

from vitrineturbo.core.errors import NotFoundError, ValidationFailedError
from vitrineturbo.core.permissions import Role
from vitrineturbo.core.security import get_password_hash
from vitrineturbo.models import User, Product, UserCustomSize, UserPixKey
from .catalog import generate_unique_slug
from .referrals import ensure_referral_code

logger = logging.getLogger(__name__)

EMAIL_IN_USE_MESSAGE = "Este email já está em uso."


def _scoped(query, actor_id: str, is_admin: bool):
    if not is_admin:
        query = query.where(User.created_by == actor_id)
    return query


async def list_managed_users(
    db: AsyncSession,
    actor_id: str,
    is_admin: bool = False,
    search: Optional[str] = None,
    is_blocked: Optional[bool] = None,
    skip: int = 0,
    limit: int = 100,
) -> List[User]:
    query = _scoped(select(User), actor_id, is_admin)

    if search:
        query = query.where(
            or_(
                User.name.ilike(f"%{search}%"),
                User.email.ilike(f"%{search}%"),
            )
        )

    if is_blocked is not None:
        query = query.where(User.is_blocked == is_blocked)

    query = query.order_by(User.name).offset(skip).limit(limit)
    result = await db.execute(query)
    return list(result.scalars().all())


async def get_managed_user(db: AsyncSession, user_id: str, actor_id: str, is_admin: bool = False) -> User:
    """Usuário fora do alcance do parceiro responde como inexistente"""
    result = await db.execute(_scoped(select(User).where(User.id == user_id), actor_id, is_admin))
    user = result.scalar_one_or_none()
    if user is None:
        raise NotFoundError("Usuário não encontrado")
    return user


async def _ensure_email_free(db: AsyncSession, email: str) -> None:
    result = await db.execute(select(User.id).where(User.email == email))
    if result.scalar_one_or_none():
        raise ValidationFailedError(EMAIL_IN_USE_MESSAGE)


async def create_managed_user(db: AsyncSession, data: dict, actor_id: str, is_admin: bool = False) -> User:
    email = data["email"].lower()
    await _ensure_email_free(db, email)

    role = data.get("role") or Role.CORRETOR.value
    if not is_admin:
        role = Role.CORRETOR.value

    user = User(
        email=email,
        hashed_password=get_password_hash(data["password"]),
        name=data["name"].strip(),
        role=role,
        whatsapp=data.get("whatsapp"),
        listing_limit=data.get("listing_limit", 5),
        slug=await generate_unique_slug(db, data["name"]),
        created_by=actor_id,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    await ensure_referral_code(db, user)

    logger.info(f"Usuário {user.email} ({role}) criado por {actor_id}")
    return user


def _ensure_can_modify(user: User, actor_id: str) -> None:
    if user.id == actor_id:
        raise ValidationFailedError("Não é possível executar esta ação no próprio usuário")
    if user.role == Role.ADMIN.value:
        raise ValidationFailedError("Administradores não podem ser bloqueados ou excluídos")


async def set_user_blocked(
    db: AsyncSession,
    user_id: str,
    blocked: bool,
    actor_id: str,
    is_admin: bool = False,
) -> User:
    """Bloqueia ou desbloqueia. A sessão do bloqueado cai na próxima requisição."""
    user = await get_managed_user(db, user_id, actor_id, is_admin)
    _ensure_can_modify(user, actor_id)

    user.is_blocked = blocked
    await db.commit()
    await db.refresh(user)

    logger.info(f"Usuário {user.email} {'bloqueado' if blocked else 'desbloqueado'} por {actor_id}")
    return user


async def change_user_password(
    db: AsyncSession,
    user_id: str,
    new_password: str,
    actor_id: str,
    is_admin: bool = False,
) -> User:
    if not new_password or len(new_password) < 6:
        raise ValidationFailedError("A senha deve ter pelo menos 6 caracteres")

    user = await get_managed_user(db, user_id, actor_id, is_admin)
    user.hashed_password = get_password_hash(new_password)
    await db.commit()

    logger.info(f"Senha do usuário {user.email} alterada por {actor_id}")
    return user


async def update_user_email(
    db: AsyncSession,
    user_id: str,
    new_email: str,
    actor_id: str,
    is_admin: bool = False,
) -> User:
    user = await get_managed_user(db, user_id, actor_id, is_admin)
    email = new_email.strip().lower()
    if email == user.email:
        return user

    await _ensure_email_free(db, email)
    user.email = email
    await db.commit()
    await db.refresh(user)

    logger.info(f"Email do usuário {user_id} alterado por {actor_id}")
    return user


async def delete_managed_user(db: AsyncSession, user_id: str, actor_id: str, is_admin: bool = False) -> None:
    """Remove o usuário com produtos, tamanhos e chave PIX"""
    user = await get_managed_user(db, user_id, actor_id, is_admin)
    _ensure_can_modify(user, actor_id)

    await db.execute(delete(Product).where(Product.user_id == user.id))
    await db.execute(delete(UserCustomSize).where(UserCustomSize.user_id == user.id))
    await db.execute(delete(UserPixKey).where(UserPixKey.user_id == user.id))
    await db.delete(user)
    await db.commit()

    logger.info(f"Usuário {user.email} excluído por {actor_id}")
