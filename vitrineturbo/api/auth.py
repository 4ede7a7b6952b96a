"""
VitrineTurbo - Auth API
Login, cadastro e sessão dos usuários

A sessão é identificada pelo session_id enviado como Bearer token e
guardada no SessionRegistry do servidor (app.state.registry).
"""
import re
import logging
from datetime import datetime
from typing import Optional, Union

from fastapi import APIRouter, Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from vitrineturbo.database import get_db
from vitrineturbo.models import User
from vitrineturbo.schemas import (
    LoginRequest,
    RegisterRequest,
    LoginResponse,
    SessionResponse,
    PermissionsResponse,
)
from vitrineturbo.core import (
    settings,
    verify_password,
    get_password_hash,
    generate_session_id,
    Role,
    Action,
    SessionStore,
    SessionRecord,
    SessionRegistry,
    SessionExpiredError,
    AuthenticationError,
    BlockedUserError,
    ValidationFailedError,
    require_permission,
    get_user_permissions,
)
from vitrineturbo.services.catalog import generate_unique_slug
from vitrineturbo.services.referrals import ensure_referral_code, find_referrer

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])
security = HTTPBearer(auto_error=False)

SESSION_ID_PATTERN = re.compile(r"^session_\d+_[a-z0-9]+$")


# ============================================
# DEPENDENCIES
# ============================================

def get_registry(request: Request) -> SessionRegistry:
    return request.app.state.registry


async def get_session_store(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    registry: SessionRegistry = Depends(get_registry),
) -> SessionStore:
    """Store da sessão apontada pelo Bearer token"""
    if credentials is None or not SESSION_ID_PATTERN.match(credentials.credentials):
        raise SessionExpiredError()
    return registry.store_for(credentials.credentials)


async def get_current_session(store: SessionStore = Depends(get_session_store)) -> SessionRecord:
    """
    Dependency para obter a sessão válida.
    Sessão expirada é removida (401); sessão válida é estendida.
    """
    if not store.validate_session():
        store.clear_all_stored_data()
        raise SessionExpiredError()

    store.extend_session()
    record = store.get_stored_user()
    if record is None:
        raise SessionExpiredError()
    return record


def require(action: Union[Action, str], resource: Optional[str] = None):
    """Dependency factory: sessão válida + permissão (403 sem invalidar a sessão)"""
    async def dependency(
        store: SessionStore = Depends(get_session_store),
        session: SessionRecord = Depends(get_current_session),
    ) -> SessionRecord:
        require_permission(store, action, resource)
        return session

    return dependency


async def get_current_user(
    store: SessionStore = Depends(get_session_store),
    session: SessionRecord = Depends(get_current_session),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Usuário da sessão; usuário bloqueado ou removido encerra a sessão"""
    result = await db.execute(select(User).where(User.id == session.id))
    user = result.scalar_one_or_none()

    if user is None:
        store.clear_all_stored_data()
        raise SessionExpiredError()

    if user.is_blocked:
        store.clear_all_stored_data()
        raise BlockedUserError()

    return user


def _open_session(registry: SessionRegistry, user: User) -> LoginResponse:
    role = Role.parse(user.role)
    if role is None:
        logger.error(f"Usuário {user.id} com papel desconhecido: {user.role}")
        raise AuthenticationError("Papel de usuário inválido")

    session_id = generate_session_id()
    store = registry.store_for(session_id)
    record = store.create(
        user.id,
        role,
        display_name=user.name,
        session_id=session_id,
        email=user.email,
    )

    return LoginResponse(
        session_id=record.session_id,
        expires_at=record.expires_at,
        user=user.to_dict(),
    )


# ============================================
# ENDPOINTS
# ============================================

@router.post("/login", response_model=LoginResponse)
async def login(
    request: LoginRequest,
    db: AsyncSession = Depends(get_db),
    registry: SessionRegistry = Depends(get_registry),
):
    """Login de usuário"""
    result = await db.execute(
        select(User).where(User.email == request.email.lower())
    )
    user = result.scalar_one_or_none()

    if not user or not verify_password(request.password, user.hashed_password):
        raise AuthenticationError()

    if user.is_blocked:
        logger.warning(f"Login recusado para usuário bloqueado {user.email}")
        raise BlockedUserError()

    # Atualiza último login
    user.last_login_at = datetime.utcnow()
    await db.commit()

    return _open_session(registry, user)


@router.post("/register", response_model=LoginResponse, status_code=201)
async def register(
    request: RegisterRequest,
    db: AsyncSession = Depends(get_db),
    registry: SessionRegistry = Depends(get_registry),
):
    """Cadastro de vendedor (corretor), com código de indicação opcional"""
    email = request.email.lower()
    result = await db.execute(select(User).where(User.email == email))
    if result.scalar_one_or_none():
        raise ValidationFailedError("Este email já está em uso.")

    referrer = await find_referrer(db, request.referral_code)

    user = User(
        email=email,
        hashed_password=get_password_hash(request.password),
        name=request.name.strip(),
        role=Role.CORRETOR.value,
        whatsapp=request.whatsapp,
        slug=await generate_unique_slug(db, request.name),
        referred_by=referrer.id if referrer else None,
    )

    db.add(user)
    await db.commit()
    await db.refresh(user)
    await ensure_referral_code(db, user)

    logger.info(f"Novo vendedor cadastrado: {user.email}")
    return _open_session(registry, user)


@router.post("/logout")
async def logout(store: SessionStore = Depends(get_session_store)):
    """Encerra a sessão. Idempotente."""
    store.clear_all_stored_data()
    return {"message": "Logout realizado"}


@router.get("/session", response_model=SessionResponse)
async def get_session(session: SessionRecord = Depends(get_current_session)):
    """Valida e estende a sessão atual"""
    return SessionResponse(
        id=session.id,
        role=session.role.value,
        role_label=session.role.label,
        session_id=session.session_id,
        display_name=session.display_name,
        email=session.email,
        expires_at=session.expires_at,
        last_activity=session.last_activity,
    )


@router.get("/me")
async def get_me(user: User = Depends(get_current_user)):
    """Retorna dados do usuário atual"""
    return user.to_dict()


@router.get("/permissions", response_model=PermissionsResponse)
async def get_permissions(
    store: SessionStore = Depends(get_session_store),
    session: SessionRecord = Depends(get_current_session),
):
    """Capacidades do papel da sessão atual"""
    return PermissionsResponse(
        role=session.role.value,
        **get_user_permissions(store).model_dump(),
    )


@router.post("/setup")
async def initial_setup(db: AsyncSession = Depends(get_db)):
    """Setup inicial - cria admin padrão se não existir"""
    result = await db.execute(select(User).where(User.role == Role.ADMIN.value).limit(1))
    if result.scalar_one_or_none():
        raise ValidationFailedError("Setup já realizado")

    admin = User(
        email=settings.ADMIN_EMAIL.lower(),
        hashed_password=get_password_hash(settings.ADMIN_PASSWORD),
        name="Administrador",
        role=Role.ADMIN.value,
    )

    db.add(admin)
    await db.commit()

    logger.info(f"Admin inicial criado: {settings.ADMIN_EMAIL}")
    return {"message": "Setup concluído", "email": settings.ADMIN_EMAIL}
