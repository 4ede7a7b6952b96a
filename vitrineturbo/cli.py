"""
VitrineTurbo - CLI
Ferramenta de linha de comando para vendedores

Uso:
    vitrineturbo login
    vitrineturbo logout
    vitrineturbo whoami
    vitrineturbo stats
    vitrineturbo withdraw <valor>

A sessão fica em CLI_SESSION_FILE. Sessão expirada localmente é
removida antes de qualquer chamada e o login é solicitado de novo.
"""
import sys
import asyncio
import getpass
from typing import Optional

import httpx

from vitrineturbo.core import (
    settings,
    JsonFileStorage,
    SessionStore,
    VitrineError,
    SessionExpiredError,
    with_auth,
    get_auth_headers,
    get_error_message,
    error_from_kind,
    format_user_role,
)
from vitrineturbo.services.i18n import format_currency


def get_store() -> SessionStore:
    return SessionStore(JsonFileStorage(settings.CLI_SESSION_FILE))


def _client() -> httpx.AsyncClient:
    return httpx.AsyncClient(base_url=settings.API_URL, timeout=10.0)


def _raise_for_response(response: httpx.Response) -> None:
    if response.status_code < 400:
        return
    try:
        body = response.json()
    except ValueError:
        body = {}
    detail = body.get("detail") if isinstance(body, dict) else None
    if not isinstance(detail, str):
        detail = None
    raise error_from_kind(body.get("kind") if isinstance(body, dict) else None, detail)


async def login(store: SessionStore, email: str, password: str) -> dict:
    """Autentica na API e grava a sessão local"""
    async with _client() as client:
        response = await client.post(
            "/api/auth/login",
            json={"email": email, "password": password},
        )
    _raise_for_response(response)

    data = response.json()
    user = data["user"]
    store.create(
        user["id"],
        user["role"],
        display_name=user.get("name") or "",
        session_id=data["session_id"],
        email=user.get("email"),
    )
    return user


async def api_request(store: SessionStore, method: str, path: str, **kwargs):
    """Chamada autenticada; sessão rejeitada pela API também limpa o arquivo"""
    async def operation():
        async with _client() as client:
            response = await client.request(method, path, headers=get_auth_headers(store), **kwargs)
        try:
            _raise_for_response(response)
        except SessionExpiredError:
            store.clear_all_stored_data()
            raise
        return response.json()

    return await with_auth(store, operation)()


async def logout(store: SessionStore) -> None:
    """Encerra a sessão na API (se ainda válida) e remove a local"""
    headers = get_auth_headers(store)
    if headers:
        try:
            async with _client() as client:
                await client.post("/api/auth/logout", headers=headers)
        except httpx.HTTPError:
            # Sessão local é removida mesmo com a API fora do ar
            pass
    store.clear_all_stored_data()


# ============================================
# COMANDOS
# ============================================

def cmd_login():
    """Login no sistema"""
    email = input("Email: ").strip()
    password = getpass.getpass("Senha: ")

    store = get_store()
    try:
        user = asyncio.run(login(store, email, password))
        print(f"\n✓ Login bem sucedido!")
        print(f"  Usuário: {user['email']}")
        print(f"  Perfil: {format_user_role(user['role'])}")
    except VitrineError as e:
        print(f"✗ Erro: {e.message}")
    except httpx.HTTPError as e:
        print(f"✗ Erro de conexão: {e}")


def cmd_logout():
    asyncio.run(logout(get_store()))
    print("✓ Sessão encerrada")


def cmd_whoami():
    """Mostra a sessão atual"""
    store = get_store()
    try:
        session = asyncio.run(api_request(store, "GET", "/api/auth/session"))
        print(f"\n  Nome: {session['display_name']}")
        print(f"  Email: {session.get('email') or '-'}")
        print(f"  Perfil: {session['role_label']}")
    except SessionExpiredError as e:
        print(f"✗ {e.message} Use 'vitrineturbo login'")
    except Exception as e:
        print(f"✗ Erro: {get_error_message(e)}")


def cmd_stats():
    """Estatísticas de indicação"""
    store = get_store()
    try:
        stats = asyncio.run(api_request(store, "GET", "/api/referrals/stats"))
    except SessionExpiredError as e:
        print(f"✗ {e.message} Use 'vitrineturbo login'")
        return
    except Exception as e:
        print(f"✗ Erro: {get_error_message(e)}")
        return

    if not stats.get("is_available", True):
        print("✗ Estatísticas indisponíveis no momento")
        return

    print(f"\n{'='*50}")
    print(f"{'Indicações':<30} {stats['total_referrals']:>18}")
    print(f"{'Indicações ativas':<30} {stats['active_referrals']:>18}")
    print(f"{'Comissões totais':<30} {format_currency(stats['total_commissions']):>18}")
    print(f"{'Comissões pendentes':<30} {format_currency(stats['pending_commissions']):>18}")
    print(f"{'Comissões pagas':<30} {format_currency(stats['paid_commissions']):>18}")
    print(f"{'Disponível para saque':<30} {format_currency(stats['available_for_withdrawal']):>18}")
    print(f"{'='*50}")


def cmd_withdraw(amount: str):
    """Solicita saque"""
    try:
        value = float(amount.replace(",", "."))
    except ValueError:
        print(f"✗ Valor inválido: {amount}")
        return

    store = get_store()
    try:
        withdrawal = asyncio.run(
            api_request(store, "POST", "/api/referrals/withdrawals", json={"amount": value})
        )
        print(f"\n✓ Saque solicitado!")
        print(f"  Valor: {format_currency(withdrawal['amount'])}")
        print(f"  Status: {withdrawal['status']}")
    except SessionExpiredError as e:
        print(f"✗ {e.message} Use 'vitrineturbo login'")
    except Exception as e:
        print(f"✗ Erro: {get_error_message(e)}")


def main(argv: Optional[list] = None):
    argv = sys.argv[1:] if argv is None else argv
    if not argv:
        print(__doc__)
        return 1

    cmd = argv[0].lower()
    if cmd == "login":
        cmd_login()
    elif cmd == "logout":
        cmd_logout()
    elif cmd == "whoami":
        cmd_whoami()
    elif cmd == "stats":
        cmd_stats()
    elif cmd == "withdraw" and len(argv) >= 2:
        cmd_withdraw(argv[1])
    else:
        print(__doc__)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
