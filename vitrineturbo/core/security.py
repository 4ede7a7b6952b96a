"""
VitrineTurbo - Security
Hash de senhas e geração de identificadores de sessão
"""
import time
import secrets

import bcrypt


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verifica password usando bcrypt"""
    if not hashed_password:
        return False
    try:
        return bcrypt.checkpw(
            plain_password.encode('utf-8'),
            hashed_password.encode('utf-8')
        )
    except ValueError:
        # Hash corrompido
        return False


def get_password_hash(password: str) -> str:
    """Gera hash bcrypt do password"""
    return bcrypt.hashpw(
        password.encode('utf-8'),
        bcrypt.gensalt()
    ).decode('utf-8')


def generate_session_id() -> str:
    """
    Gera identificador de sessão no formato session_<ms>_<aleatório>
    """
    chars = 'abcdefghijklmnopqrstuvwxyz0123456789'
    suffix = ''.join(secrets.choice(chars) for _ in range(9))
    return f"session_{int(time.time() * 1000)}_{suffix}"


def generate_referral_code() -> str:
    """
    Gera código de indicação com 8 caracteres
    """
    chars = 'ABCDEFGHJKLMNPQRSTUVWXYZ23456789'  # Sem I, O, 0, 1 para evitar confusão
    return ''.join(secrets.choice(chars) for _ in range(8))
