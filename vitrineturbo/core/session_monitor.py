"""
VitrineTurbo - Session Monitor
Verificação periódica de expiração de sessão em background
"""
import asyncio
import logging
from typing import Callable, Optional

from .config import settings
from .session_store import SessionStore, SessionRegistry

logger = logging.getLogger(__name__)


def setup_session_monitoring(
    store: SessionStore,
    on_session_expired: Callable[[], None],
    interval: Optional[float] = None,
) -> Callable[[], None]:
    """
    Inicia verificação periódica da sessão no loop atual.
    Ao detectar expiração: limpa os dados, chama o callback uma vez e para.
    Retorna função que cancela o monitoramento.
    """
    interval = interval if interval is not None else settings.SESSION_CHECK_INTERVAL_SECONDS

    async def _monitor():
        while True:
            await asyncio.sleep(interval)
            if not store.validate_session():
                logger.info("Sessão expirada, fazendo logout...")
                store.clear_all_stored_data()
                on_session_expired()
                return

    task = asyncio.get_running_loop().create_task(_monitor())

    def cancel() -> None:
        if not task.done():
            task.cancel()

    return cancel


async def run_session_sweeper(registry: SessionRegistry, interval: Optional[float] = None):
    """Loop do servidor que remove sessões expiradas"""
    interval = interval if interval is not None else settings.SESSION_CHECK_INTERVAL_SECONDS
    logger.info(f"[SESSION-SWEEPER] Iniciado (intervalo {interval}s)")

    while True:
        try:
            registry.sweep_expired()
        except Exception as e:
            logger.error(f"[SESSION-SWEEPER] Erro ao varrer sessões: {e}")
        await asyncio.sleep(interval)
