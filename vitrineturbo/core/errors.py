"""
VitrineTurbo - Error Kinds
Tipos de erro fechados e mensagens amigáveis em português
"""
import re
import logging
from enum import Enum
from typing import Optional

logger = logging.getLogger(__name__)


class ErrorKind(str, Enum):
    """Tipos de erro que os chamadores podem distinguir"""
    SESSION_EXPIRED = "session_expired"                   # Redirecionar para login
    INSUFFICIENT_PERMISSION = "insufficient_permission"   # Mostrar mensagem, manter na página
    BACKEND_FAILURE = "backend_failure"
    VALIDATION_FAILURE = "validation_failure"
    NOT_FOUND = "not_found"
    BLOCKED_USER = "blocked_user"
    AUTH_FAILURE = "auth_failure"


ERROR_MESSAGES = {
    ErrorKind.SESSION_EXPIRED: "Sessão expirada. Faça login novamente.",
    ErrorKind.INSUFFICIENT_PERMISSION: "Permissão insuficiente para esta ação",
    ErrorKind.BACKEND_FAILURE: "Erro ao acessar o banco de dados.",
    ErrorKind.VALIDATION_FAILURE: "Dados inválidos. Verifique as informações.",
    ErrorKind.NOT_FOUND: "O recurso solicitado não foi encontrado.",
    ErrorKind.BLOCKED_USER: "Usuário desabilitado por pendência financeira, entre em contato com o suporte.",
    ErrorKind.AUTH_FAILURE: "E-mail ou senha incorretos!",
}

UNKNOWN_ERROR_MESSAGE = "Ocorreu um erro inesperado. Tente novamente."
NETWORK_ERROR_MESSAGE = "Erro de conexão. Verifique sua internet."


class VitrineError(Exception):
    """Erro base da aplicação, sempre carrega um ErrorKind"""
    kind: ErrorKind = ErrorKind.BACKEND_FAILURE

    def __init__(self, message: Optional[str] = None):
        self.message = message or ERROR_MESSAGES[self.kind]
        super().__init__(self.message)


class SessionExpiredError(VitrineError):
    kind = ErrorKind.SESSION_EXPIRED


class PermissionDeniedError(VitrineError):
    kind = ErrorKind.INSUFFICIENT_PERMISSION


class BackendError(VitrineError):
    kind = ErrorKind.BACKEND_FAILURE


class ValidationFailedError(VitrineError):
    kind = ErrorKind.VALIDATION_FAILURE


class NotFoundError(VitrineError):
    kind = ErrorKind.NOT_FOUND


class BlockedUserError(VitrineError):
    kind = ErrorKind.BLOCKED_USER


class AuthenticationError(VitrineError):
    kind = ErrorKind.AUTH_FAILURE


# Códigos do backend (Postgres / PostgREST / Auth)
BACKEND_ERROR_CODES = {
    "PGRST301": ErrorKind.BACKEND_FAILURE,
    "PGRST302": ErrorKind.INSUFFICIENT_PERMISSION,
    "PGRST404": ErrorKind.NOT_FOUND,
    "invalid_credentials": ErrorKind.AUTH_FAILURE,
    "email_not_confirmed": ErrorKind.AUTH_FAILURE,
    "too_many_requests": ErrorKind.AUTH_FAILURE,
    "signup_disabled": ErrorKind.VALIDATION_FAILURE,
    "USER_BLOCKED": ErrorKind.BLOCKED_USER,
}

CUSTOM_MESSAGES = {
    "Invalid login credentials": "E-mail ou senha incorretos!",
    "Email not confirmed": "Email não confirmado. Verifique sua caixa de entrada.",
    "Invalid JWT": "Sessão expirada. Faça login novamente.",
    "JWT expired": "Sessão expirada. Faça login novamente.",
    "User not found": "E-mail ou senha incorretos!",
    "Email already registered": "Este email já está em uso.",
    "Too many requests": "Muitas tentativas. Tente novamente em alguns minutos.",
    "BLOCKED_USER": ERROR_MESSAGES[ErrorKind.BLOCKED_USER],
    "23505": "Este registro já existe.",
    "23503": "Não é possível excluir este registro pois está sendo usado.",
    "42P01": "Erro interno do banco de dados.",
}

FIELD_MESSAGES = {
    "email": "Email inválido",
    "password": "Senha inválida",
    "name": "Nome inválido",
    "phone": "Telefone inválido",
    "title": "Título inválido",
    "description": "Descrição inválida",
    "price": "Preço inválido",
}


def _message_from_text(text: str) -> Optional[str]:
    if text in CUSTOM_MESSAGES:
        return CUSTOM_MESSAGES[text]

    lowered = text.lower()
    if "bloqueado" in lowered or "blocked" in lowered:
        return ERROR_MESSAGES[ErrorKind.BLOCKED_USER]
    if "credentials" in lowered or "credenciais" in lowered:
        return ERROR_MESSAGES[ErrorKind.AUTH_FAILURE]

    # Código entre colchetes: "duplicate key [23505]"
    match = re.search(r"\[(.*?)\]", text)
    if match:
        code = match.group(1)
        if code in CUSTOM_MESSAGES:
            return CUSTOM_MESSAGES[code]
        if code in BACKEND_ERROR_CODES:
            return ERROR_MESSAGES[BACKEND_ERROR_CODES[code]]
    return None


def _clean_message(message: str) -> str:
    message = re.sub(r"\[.*?\]", "", message).strip()
    message = re.sub(r"(?i)error:", "", message, count=1).strip()
    return message[:1].upper() + message[1:]


def get_error_message(error) -> str:
    """
    Converte qualquer valor de erro em mensagem legível.
    Nunca levanta exceção.
    """
    if not error:
        return UNKNOWN_ERROR_MESSAGE

    if isinstance(error, VitrineError):
        return error.message

    if isinstance(error, str):
        return _message_from_text(error) or error

    if isinstance(error, (ConnectionError, TimeoutError)):
        return NETWORK_ERROR_MESSAGE

    code = getattr(error, "code", None)
    if code is not None:
        code = str(code)
        if code in CUSTOM_MESSAGES:
            return CUSTOM_MESSAGES[code]
        if code in BACKEND_ERROR_CODES:
            return ERROR_MESSAGES[BACKEND_ERROR_CODES[code]]

    if isinstance(error, Exception):
        text = str(error)
        if not text:
            return UNKNOWN_ERROR_MESSAGE
        return _message_from_text(text) or _clean_message(text)

    logger.debug(f"Tipo de erro não tratado: {type(error)!r}")
    return UNKNOWN_ERROR_MESSAGE


def get_validation_error_message(field_name: str) -> str:
    return FIELD_MESSAGES.get(field_name, "Campo inválido")


ERROR_CLASSES = {
    cls.kind: cls
    for cls in (
        SessionExpiredError,
        PermissionDeniedError,
        BackendError,
        ValidationFailedError,
        NotFoundError,
        BlockedUserError,
        AuthenticationError,
    )
}


def error_from_kind(kind, message: Optional[str] = None) -> VitrineError:
    """Reconstrói a exceção a partir do "kind" devolvido pela API"""
    try:
        kind = ErrorKind(kind)
    except ValueError:
        return BackendError(message)
    return ERROR_CLASSES[kind](message)
