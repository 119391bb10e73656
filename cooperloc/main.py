"""
CooperLoc - Main Application
Estoque, envio e instalação de rastreadores da rede de franquias
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from cooperloc.core import settings
from cooperloc.core.exceptions import TrackerServiceError
from cooperloc.core.session import AuthEventBus
from cooperloc.database import init_db
from cooperloc.api import (
    auth_router,
    access_router,
    users_router,
    franchises_router,
    trackers_router,
    stats_router
)

# Rate limiting
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from cooperloc.api.auth import limiter

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s"
)
logger = logging.getLogger("cooperloc")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifecycle do aplicativo"""
    logger.info("Starting %s v%s", settings.APP_NAME, settings.APP_VERSION)
    logger.info("Environment: %s", settings.ENVIRONMENT)

    await init_db()
    logger.info("Database initialized")

    yield

    logger.info("Shutting down...")


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Adiciona headers de seguranca em todas as respostas"""
    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        # Respostas de autenticação não vão para cache
        if "/auth" in request.url.path:
            response.headers["Cache-Control"] = "no-store, no-cache, must-revalidate"
            response.headers["Pragma"] = "no-cache"
        return response


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Tracker inventory and fulfillment for a franchise network",
    lifespan=lifespan,
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None
)

# Um barramento de eventos de autenticação por aplicação
app.state.auth_events = AuthEventBus()

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.exception_handler(TrackerServiceError)
async def tracker_service_error_handler(request: Request, exc: TrackerServiceError):
    if exc.status_code >= 500:
        logger.error("%s on %s: %s", type(exc).__name__, request.url.path, exc.message)
    else:
        logger.info("%s on %s: %s", type(exc).__name__, request.url.path, exc.message)
    return JSONResponse(exc.to_dict(), status_code=exc.status_code)


# Headers de seguranca (antes do CORS)
app.add_middleware(SecurityHeadersMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routers
app.include_router(auth_router, prefix="/api")
app.include_router(access_router, prefix="/api")
app.include_router(users_router, prefix="/api")
app.include_router(franchises_router, prefix="/api")
app.include_router(trackers_router, prefix="/api")
app.include_router(stats_router, prefix="/api")


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


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "cooperloc.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG
    )
