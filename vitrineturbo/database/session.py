"""
VitrineTurbo - Database Session
"""
import logging
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base
from sqlalchemy import select

from vitrineturbo.core.config import settings

logger = logging.getLogger(__name__)

# Engine assíncrono
engine = create_async_engine(
    settings.db_url,
    echo=settings.DEBUG,
    pool_pre_ping=True,
)

# Session factory
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False
)

# Base para models
Base = declarative_base()


async def get_db() -> AsyncSession:
    """Dependency para injetar sessão do banco"""
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def verify_admin_integrity():
    """
    Verifica se existe ao menos um admin com hash bcrypt válido.
    Apenas registra alertas; a criação do admin é feita em /api/auth/setup.
    """
    from vitrineturbo.models import User

    async with AsyncSessionLocal() as session:
        try:
            result = await session.execute(
                select(User).where(User.role == "admin").limit(1)
            )
            admin = result.scalar_one_or_none()

            if not admin:
                logger.warning("Nenhum admin encontrado - execute POST /api/auth/setup")
                return

            if not admin.hashed_password or not admin.hashed_password.startswith(('$2b$', '$2a$')):
                logger.error(f"ALERTA: Hash do admin {admin.email} está CORROMPIDO!")
            else:
                logger.info(f"Admin {admin.email} - hash válido (bcrypt)")

        except Exception as e:
            logger.error(f"Erro ao verificar integridade do admin: {e}")


async def init_db():
    """Inicializa banco de dados (cria tabelas) e verifica integridade do admin"""
    import vitrineturbo.models  # noqa: F401 - registra as tabelas no metadata

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    await verify_admin_integrity()
