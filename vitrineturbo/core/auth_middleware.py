"""
VitrineTurbo - Auth Middleware
Envolve operações assíncronas com validação de sessão e permissão
"""
import logging
from functools import wraps
from typing import Awaitable, Callable, Optional, TypeVar, Union, Dict

from .errors import SessionExpiredError
from .permissions import Action, require_permission
from .session_store import SessionStore, SessionRecord

logger = logging.getLogger(__name__)

R = TypeVar("R")


def with_auth(store: SessionStore, operation: Callable[..., Awaitable[R]]) -> Callable[..., Awaitable[R]]:
    """
    Retorna a operação envolvida:
    - sessão inválida: limpa o armazenamento e levanta SessionExpiredError
      (o corpo da operação não é executado)
    - sessão válida: estende a sessão e executa a operação, repassando
      resultado ou exceção sem alteração
    """
    @wraps(operation)
    async def wrapper(*args, **kwargs) -> R:
        if not store.validate_session():
            logger.info("Sessão expirada detectada, limpando dados")
            store.clear_all_stored_data()
            raise SessionExpiredError()

        store.extend_session()
        return await operation(*args, **kwargs)

    return wrapper


def create_authenticated_api(
    store: SessionStore,
    operation: Callable[..., Awaitable[R]],
    action: Union[Action, str] = Action.READ,
    resource: Optional[str] = None,
) -> Callable[..., Awaitable[R]]:
    """
    with_auth + verificação de permissão obrigatória.
    A permissão é checada depois da validação da sessão e antes da operação.
    Falta de permissão não invalida a sessão.
    """
    @wraps(operation)
    async def checked(*args, **kwargs) -> R:
        require_permission(store, action, resource)
        return await operation(*args, **kwargs)

    return with_auth(store, checked)


def get_auth_headers(store: SessionStore) -> Dict[str, str]:
    """Headers para chamadas autenticadas. Vazio se não autenticado."""
    authenticated, user = store.get_auth_state()
    if not authenticated or user is None:
        return {}

    return {
        "Authorization": f"Bearer {user.session_id}",
        "X-User-ID": user.id,
        "X-User-Role": user.role.value,
    }


def require_auth(store: SessionStore) -> Optional[SessionRecord]:
    """Usuário autenticado (sessão estendida) ou None"""
    if not store.is_authenticated():
        return None

    user = store.get_stored_user()
    if user is None:
        store.clear_all_stored_data()
        return None

    store.extend_session()
    return user


def track_activity(store: SessionStore) -> None:
    """Registra atividade do usuário estendendo a sessão"""
    if store.is_authenticated():
        store.extend_session()
