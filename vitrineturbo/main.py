"""
VitrineTurbo - Main Application
Vitrines de produtos com pedidos via WhatsApp e programa de indicação
"""
import asyncio
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from sqlalchemy.exc import SQLAlchemyError

from vitrineturbo.core import settings, ErrorKind, VitrineError, BackendError, get_error_message
from vitrineturbo.core.logging_config import setup_logging
from vitrineturbo.core.session_store import create_registry
from vitrineturbo.core.session_monitor import run_session_sweeper
from vitrineturbo.database import init_db
from vitrineturbo.api import (
    auth_router,
    storefront_router,
    referrals_router,
    admin_router,
    catalog_router,
    users_router
)

logger = logging.getLogger(__name__)

# Status HTTP por tipo de erro
ERROR_STATUS_CODES = {
    ErrorKind.SESSION_EXPIRED: 401,
    ErrorKind.AUTH_FAILURE: 401,
    ErrorKind.INSUFFICIENT_PERMISSION: 403,
    ErrorKind.BLOCKED_USER: 403,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.VALIDATION_FAILURE: 422,
    ErrorKind.BACKEND_FAILURE: 502,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifecycle do aplicativo"""
    # Startup
    setup_logging()
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")
    logger.info(f"Environment: {settings.ENVIRONMENT}")

    # Inicializa banco de dados
    await init_db()
    logger.info("Database initialized")

    sweeper = asyncio.create_task(run_session_sweeper(app.state.registry))

    yield

    # Shutdown
    logger.info("Shutting down...")
    sweeper.cancel()
    try:
        await sweeper
    except asyncio.CancelledError:
        pass


# Middleware de headers de seguranca
class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Adiciona headers de seguranca em todas as respostas"""
    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        # Respostas de sessão não podem ir para cache
        if "/auth" in request.url.path:
            response.headers["Cache-Control"] = "no-store, no-cache, must-revalidate"
            response.headers["Pragma"] = "no-cache"
        return response


# Cria aplicação
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Storefront catalog with WhatsApp orders and referral program",
    lifespan=lifespan,
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None
)

# Sessões do servidor
app.state.registry = create_registry()


@app.exception_handler(VitrineError)
async def vitrine_error_handler(request: Request, exc: VitrineError):
    """Erro da aplicação -> {"detail", "kind"}"""
    status_code = ERROR_STATUS_CODES.get(exc.kind, 500)
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path}: {exc.message}")
    return JSONResponse(
        status_code=status_code,
        content={"detail": exc.message, "kind": exc.kind.value},
    )


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    """Falha do banco -> BackendError (502)"""
    logger.exception(f"Erro de banco em {request.method} {request.url.path}")
    orig = getattr(exc, "orig", None)
    error = BackendError(get_error_message(orig) if orig is not None else None)
    return await vitrine_error_handler(request, error)


# Headers de seguranca (adicionar ANTES do CORS)
app.add_middleware(SecurityHeadersMiddleware)

# CORS (deve vir DEPOIS dos headers de seguranca)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routers
app.include_router(auth_router, prefix="/api")
app.include_router(storefront_router, prefix="/api")
app.include_router(referrals_router, prefix="/api")
app.include_router(admin_router, prefix="/api")
app.include_router(catalog_router, prefix="/api")
app.include_router(users_router, prefix="/api")


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "running"
    }


@app.get("/health")
async def health():
    """Health check"""
    return {"status": "healthy"}


def run():
    import uvicorn
    uvicorn.run(
        "vitrineturbo.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG
    )


if __name__ == "__main__":
    run()
