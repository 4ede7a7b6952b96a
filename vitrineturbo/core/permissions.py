"""
VitrineTurbo - Permissions
Papéis, ações e tabela de permissões por papel
"""
from enum import Enum
from typing import Optional, Iterable, Union, FrozenSet

from pydantic import BaseModel

from .errors import PermissionDeniedError


class Action(str, Enum):
    """Ações verificáveis"""
    READ = "read"
    WRITE = "write"
    DELETE = "delete"
    ADMIN = "admin"


# Marcador para "qualquer recurso"
ANY_RESOURCE = "*"


class Capabilities(BaseModel):
    """Flags de capacidade derivadas do papel"""
    can_manage_users: bool = False
    can_manage_finances: bool = False
    can_manage_settings: bool = False
    can_create_products: bool = False
    can_view_analytics: bool = False


class Role(str, Enum):
    """Papéis de usuário"""
    ADMIN = "admin"
    PARCEIRO = "parceiro"
    CORRETOR = "corretor"

    @property
    def allow_list(self) -> dict:
        return ROLE_ALLOW_LISTS[self]

    @property
    def capabilities(self) -> Capabilities:
        return ROLE_CAPABILITIES[self]

    @property
    def label(self) -> str:
        return ROLE_LABELS[self]

    def allows(self, action: Union["Action", str], resource: Optional[str] = None) -> bool:
        """Consulta a tabela do papel. Admin satisfaz qualquer par (ação, recurso)."""
        if self is Role.ADMIN:
            return True
        try:
            action = Action(action)
        except ValueError:
            return False
        resources: FrozenSet[str] = self.allow_list.get(action, frozenset())
        return ANY_RESOURCE in resources or (resource or "") in resources

    @classmethod
    def parse(cls, value) -> Optional["Role"]:
        """Converte string em Role; None para papéis desconhecidos"""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return None


# Admin não precisa de tabela: satisfaz tudo
ROLE_ALLOW_LISTS = {
    Role.ADMIN: {},
    Role.PARCEIRO: {
        Action.READ: frozenset({ANY_RESOURCE}),
        Action.WRITE: frozenset({"users", "products"}),
        Action.DELETE: frozenset({"users"}),  # Apenas usuários que criou
    },
    Role.CORRETOR: {
        Action.READ: frozenset({ANY_RESOURCE}),
        Action.WRITE: frozenset({"products", "profile"}),
        Action.DELETE: frozenset({"products"}),  # Apenas os próprios produtos
    },
}

ROLE_CAPABILITIES = {
    Role.ADMIN: Capabilities(
        can_manage_users=True,
        can_manage_finances=True,
        can_manage_settings=True,
        can_create_products=True,
        can_view_analytics=True,
    ),
    Role.PARCEIRO: Capabilities(
        can_manage_users=True,
        can_create_products=True,
        can_view_analytics=True,
    ),
    Role.CORRETOR: Capabilities(
        can_create_products=True,
        can_view_analytics=True,
    ),
}

ROLE_LABELS = {
    Role.ADMIN: "Administrador",
    Role.PARCEIRO: "Parceiro",
    Role.CORRETOR: "Vendedor",
}


def _current_role(store) -> Optional[Role]:
    if store is None or not store.is_authenticated():
        return None
    user = store.get_stored_user()
    return user.role if user else None


def check_permission(store, action: Union[Action, str], resource: Optional[str] = None) -> bool:
    """
    Verifica se o usuário da sessão pode executar a ação no recurso.
    Sessão ausente/expirada ou papel desconhecido: sempre False.
    """
    role = _current_role(store)
    if role is None:
        return False
    return role.allows(action, resource)


def require_permission(store, action: Union[Action, str], resource: Optional[str] = None) -> None:
    """Mesma verificação de check_permission, levantando PermissionDeniedError"""
    if not check_permission(store, action, resource):
        raise PermissionDeniedError()


def get_user_permissions(store) -> Capabilities:
    role = _current_role(store)
    if role is None:
        return Capabilities()
    return role.capabilities.model_copy()


def has_role(store, required: Union[str, Role, Iterable[Union[str, Role]]]) -> bool:
    role = _current_role(store)
    if role is None:
        return False
    if isinstance(required, (str, Role)):
        required = [required]
    return role in {Role.parse(r) for r in required}


def is_admin(store) -> bool:
    return has_role(store, Role.ADMIN)


def is_partner(store) -> bool:
    return has_role(store, Role.PARCEIRO)


def is_corretor(store) -> bool:
    return has_role(store, Role.CORRETOR)


def can_access_admin(store) -> bool:
    return has_role(store, [Role.ADMIN, Role.PARCEIRO])


def format_user_role(role: str) -> str:
    """Nome do papel para exibição"""
    parsed = Role.parse(role)
    return parsed.label if parsed else role
