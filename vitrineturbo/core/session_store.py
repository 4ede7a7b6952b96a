"""
VitrineTurbo - Session Store
Persistência da sessão autenticada em um armazenamento chave/valor

O registro de sessão é gravado como JSON sob uma chave da aplicação
(<prefixo>_session). O formato (chaves camelCase, timestamps em ms) é o
contrato de armazenamento e deve permanecer estável entre versões.
"""
import os
import json
import time
import logging
import tempfile
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, Callable, Iterator, Dict, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .config import settings
from .permissions import Role
from .security import generate_session_id

logger = logging.getLogger(__name__)


# ============================================
# ARMAZENAMENTO
# ============================================

class Storage(ABC):
    """Interface de armazenamento no estilo localStorage"""

    @abstractmethod
    def get_item(self, key: str) -> Optional[str]:
        ...

    @abstractmethod
    def set_item(self, key: str, value: str) -> None:
        ...

    @abstractmethod
    def remove_item(self, key: str) -> None:
        ...

    @abstractmethod
    def keys(self) -> Iterator[str]:
        ...


class MemoryStorage(Storage):
    """Armazenamento em memória (um processo)"""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})
        self._lock = threading.Lock()

    def get_item(self, key: str) -> Optional[str]:
        with self._lock:
            return self._data.get(key)

    def set_item(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = value

    def remove_item(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def keys(self) -> Iterator[str]:
        with self._lock:
            return iter(list(self._data.keys()))


class JsonFileStorage(Storage):
    """
    Armazenamento em arquivo JSON.
    Cada escrita regrava o arquivo inteiro via arquivo temporário + rename.
    Um arquivo ilegível é tratado como vazio.
    """

    def __init__(self, path):
        self.path = Path(path)
        self._lock = threading.Lock()

    def _read(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning(f"Arquivo de sessão ilegível {self.path}: {e}")
            return {}
        if not isinstance(data, dict):
            return {}
        return {k: v for k, v in data.items() if isinstance(v, str)}

    def _write(self, data: Dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, prefix=".tmp_", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
            os.replace(tmp_path, self.path)
            os.chmod(self.path, 0o600)  # Apenas owner pode ler
        except BaseException:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise

    def get_item(self, key: str) -> Optional[str]:
        with self._lock:
            return self._read().get(key)

    def set_item(self, key: str, value: str) -> None:
        with self._lock:
            data = self._read()
            data[key] = value
            self._write(data)

    def remove_item(self, key: str) -> None:
        with self._lock:
            data = self._read()
            if key in data:
                del data[key]
                self._write(data)

    def keys(self) -> Iterator[str]:
        with self._lock:
            return iter(list(self._read().keys()))


class NamespacedStorage(Storage):
    """Visão de um único cliente sobre um armazenamento compartilhado"""

    SEPARATOR = ":"

    def __init__(self, base: Storage, namespace: str):
        self.base = base
        self.namespace = namespace

    def _key(self, key: str) -> str:
        return f"{self.namespace}{self.SEPARATOR}{key}"

    def get_item(self, key: str) -> Optional[str]:
        return self.base.get_item(self._key(key))

    def set_item(self, key: str, value: str) -> None:
        self.base.set_item(self._key(key), value)

    def remove_item(self, key: str) -> None:
        self.base.remove_item(self._key(key))

    def keys(self) -> Iterator[str]:
        prefix = f"{self.namespace}{self.SEPARATOR}"
        return iter([k[len(prefix):] for k in self.base.keys() if k.startswith(prefix)])


# ============================================
# REGISTRO DE SESSÃO
# ============================================

def storage_keys(prefix: Optional[str] = None) -> Dict[str, str]:
    """Chaves usadas pela aplicação no armazenamento"""
    prefix = prefix or settings.STORAGE_KEY_PREFIX
    return {
        "SESSION": f"{prefix}_session",
        "AUTH_STATE": f"{prefix}_auth_state",
        "CART": f"{prefix}_cart",
    }


class SessionRecord(BaseModel):
    """Registro da sessão persistido no armazenamento"""
    model_config = ConfigDict(populate_by_name=True)

    id: str
    role: Role
    session_id: str = Field(alias="sessionId")
    display_name: str = Field("", alias="displayName")
    expires_at: int = Field(alias="expiresAt")  # epoch em ms
    last_activity: Optional[int] = Field(None, alias="lastActivity")
    email: Optional[str] = None

    def is_expired(self, now_ms: int) -> bool:
        return self.expires_at <= now_ms

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)


class SessionStore:
    """
    Contexto explícito de sessão de um cliente.
    Ciclo de vida: create / get_stored_user / extend_session / clear_all_stored_data
    """

    def __init__(
        self,
        storage: Storage,
        duration_seconds: Optional[int] = None,
        clock: Callable[[], float] = time.time,
        key_prefix: Optional[str] = None,
    ):
        self.storage = storage
        self.duration_seconds = duration_seconds or settings.SESSION_DURATION_DAYS * 24 * 60 * 60
        self.clock = clock
        self.keys = storage_keys(key_prefix)

    def _now_ms(self) -> int:
        return int(self.clock() * 1000)

    def _expiry_ms(self) -> int:
        return self._now_ms() + self.duration_seconds * 1000

    def _read_record(self) -> Optional[SessionRecord]:
        try:
            raw = self.storage.get_item(self.keys["SESSION"])
            if not raw:
                return None
            return SessionRecord.model_validate_json(raw)
        except ValidationError as e:
            logger.warning(f"Registro de sessão inválido, tratado como ausente: {e.error_count()} erro(s)")
            return None
        except Exception as e:
            logger.warning(f"Erro ao ler sessão: {e}")
            return None

    def _write_record(self, record: SessionRecord) -> None:
        self.storage.set_item(self.keys["SESSION"], record.to_json())

    def create(
        self,
        user_id: str,
        role,
        display_name: str = "",
        session_id: Optional[str] = None,
        email: Optional[str] = None,
    ) -> SessionRecord:
        """Cria e persiste uma nova sessão (login)"""
        now = self._now_ms()
        record = SessionRecord(
            id=user_id,
            role=Role(role),
            session_id=session_id or generate_session_id(),
            display_name=display_name or "",
            expires_at=self._expiry_ms(),
            last_activity=now,
            email=email,
        )
        self._write_record(record)
        self.storage.set_item(self.keys["AUTH_STATE"], "authenticated")
        logger.info(f"Sessão criada para usuário {user_id} ({record.role.value})")
        return record

    def get_stored_user(self) -> Optional[SessionRecord]:
        """
        Retorna o registro da sessão válida ou None. Nunca levanta exceção.
        Registro expirado também dá None, mas continua no armazenamento.
        """
        record = self._read_record()
        if record is None or record.is_expired(self._now_ms()):
            return None
        return record

    def is_authenticated(self) -> bool:
        record = self._read_record()
        return record is not None and not record.is_expired(self._now_ms())

    def validate_session(self) -> bool:
        """
        Reverifica a expiração. Não limpa o armazenamento: em caso de False,
        o chamador deve chamar clear_all_stored_data().
        """
        return self.is_authenticated()

    def extend_session(self) -> None:
        """Renova a expiração (agora + duração). Sem sessão válida, não faz nada."""
        try:
            record = self._read_record()
            now = self._now_ms()
            if record is None or record.is_expired(now):
                return
            record.expires_at = self._expiry_ms()
            record.last_activity = now
            self._write_record(record)
        except Exception as e:
            logger.warning(f"Erro ao estender sessão: {e}")

    def update_stored_user(self, **changes) -> Optional[SessionRecord]:
        """Atualiza campos de exibição do registro (ex: display_name, email)"""
        record = self.get_stored_user()
        if record is None:
            return None
        allowed = {k: v for k, v in changes.items() if k in ("display_name", "email")}
        updated = record.model_copy(update=allowed)
        self._write_record(updated)
        return updated

    def clear_all_stored_data(self) -> None:
        """Remove a sessão e dados auxiliares (carrinho etc). Idempotente."""
        for key in self.keys.values():
            try:
                self.storage.remove_item(key)
            except Exception as e:
                logger.warning(f"Erro ao remover chave {key}: {e}")
        logger.info("Dados de sessão removidos")

    def get_auth_state(self) -> Tuple[bool, Optional[SessionRecord]]:
        record = self._read_record()
        if record is None or record.is_expired(self._now_ms()):
            return False, None
        return True, record


class SessionRegistry:
    """
    Sessões do lado servidor: cada session_id recebe seu próprio
    namespace no armazenamento compartilhado.
    """

    def __init__(self, storage: Optional[Storage] = None, clock: Callable[[], float] = time.time):
        self.storage = storage or MemoryStorage()
        self.clock = clock

    def store_for(self, session_id: str) -> SessionStore:
        return SessionStore(NamespacedStorage(self.storage, session_id), clock=self.clock)

    def session_ids(self) -> set:
        return {
            key.split(NamespacedStorage.SEPARATOR, 1)[0]
            for key in self.storage.keys()
            if NamespacedStorage.SEPARATOR in key
        }

    def sweep_expired(self) -> int:
        """Remove sessões expiradas ou corrompidas. Retorna quantas foram removidas."""
        removed = 0
        for session_id in self.session_ids():
            store = self.store_for(session_id)
            if not store.validate_session():
                store.clear_all_stored_data()
                removed += 1
        if removed:
            logger.info(f"{removed} sessão(ões) expirada(s) removida(s)")
        return removed


def create_registry() -> SessionRegistry:
    """Registro do servidor conforme SESSION_STORAGE_PATH"""
    if settings.SESSION_STORAGE_PATH:
        return SessionRegistry(JsonFileStorage(settings.SESSION_STORAGE_PATH))
    return SessionRegistry(MemoryStorage())
