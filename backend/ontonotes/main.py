from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.gzip import GZipMiddleware
from starlette.middleware.trustedhost import TrustedHostMiddleware
from uvicorn.middleware.proxy_headers import ProxyHeadersMiddleware

from .api.middleware.error_handlers import register_error_handlers
from .api.middleware.security import SecurityMiddleware
from .api.v1.router import api_router
from .config import settings
from .core.errors import PersistenceError
from .dependencies import get_ontology_service
from .utils.logging import get_logger, setup_logging

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Load the stored ontology before serving; retried lazily on first request if storage is down."""
    try:
        tree = await get_ontology_service().ensure_loaded()
        logger.info("Ontology ready", extra={"concepts": len(tree), "storage_backend": settings.storage_backend})
    except PersistenceError as err:
        logger.warning("Ontology not loaded at startup: %s", err.message)
    yield


def _add_middleware(app: FastAPI) -> None:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_origin_regex=settings.cors_origin_regex,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Accept", "Accept-Language", "Content-Language", "Content-Type", "X-Requested-With"],
        max_age=600,
    )
    # X-Forwarded-* when running behind a load balancer
    app.add_middleware(ProxyHeadersMiddleware, trusted_hosts=["*"])
    app.add_middleware(TrustedHostMiddleware, allowed_hosts=settings.trusted_hosts)
    # exported ontologies can get large
    app.add_middleware(GZipMiddleware, minimum_size=1000)
    app.add_middleware(SecurityMiddleware)


def create_app() -> FastAPI:
    setup_logging()

    app = FastAPI(
        title="Ontonotes API",
        description="Concept ontology and ontology-aware note search",
        debug=settings.debug,
        version="0.1.0",
        root_path=settings.root_path or "",
        lifespan=lifespan,
    )
    _add_middleware(app)
    register_error_handlers(app)
    app.include_router(api_router, prefix=settings.api_prefix)
    return app


app = create_app()
