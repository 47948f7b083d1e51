"""
CMS Backend API
FastAPI + MongoDB + Cloudflare R2
"""
import logging
from contextlib import asynccontextmanager
from typing import Optional

from cms.config import Settings, settings as default_settings

# Configure logging
logging.basicConfig(
    level=default_settings.LOG_LEVEL,
    format='%(levelname)s:     %(message)s'
)

logger = logging.getLogger(__name__)

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from cms.context import Environment
from cms.controllers.registry import build_registry
from cms.database import close_db, connect_db
from cms.errors import CMSError, ConflictError, InvalidCursor, InvalidInput, OperationNotSupported
from cms.middleware.error_middleware import ErrorBoundaryMiddleware
from cms.routers import auth_router, file_router, model_router, users_router
from cms.services.email_service import EmailService
from cms.services.r2_storage import R2Storage


# ============================================================================
# Startup
# ============================================================================

async def build_environment(settings: Settings) -> Environment:
    """Connect every backing store and freeze the result"""
    db = await connect_db(settings)
    logger.info("💾 Database connected")

    files = None
    if settings.R2_ENABLED:
        logger.info("🔧 Initializing R2 storage...")
        files = R2Storage.connect(
            endpoint_url=settings.r2_endpoint_url,
            access_key=settings.R2_ACCESS_KEY,
            secret_key=settings.R2_SECRET_KEY,
            bucket_name=settings.R2_BUCKET_NAME
        )
        logger.info(f"✅ R2 storage initialized (bucket: {settings.R2_BUCKET_NAME})")
    else:
        logger.info("ℹ️  R2 storage disabled, the files model is unavailable")

    mailer = EmailService(settings.RESEND_API_KEY, settings.EMAIL_FROM)
    if not mailer.enabled:
        logger.info("ℹ️  RESEND_API_KEY not set, verification codes are only logged")

    return Environment(
        db=db,
        settings=settings,
        mailer=mailer,
        controllers=build_registry(settings),
        files=files
    )

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager

    An environment injected by create_app is used as-is.
    """
    if getattr(app.state, "environment", None) is not None:
        yield
        return

    logger.info("🚀 Starting CMS backend...")
    app.state.environment = await build_environment(app.state.settings)
    logger.info("✅ CMS API ready!")

    yield

    logger.info("👋 Shutting down CMS backend...")
    await close_db()
    app.state.environment = None


# ============================================================================
# Error Translation
# ============================================================================

async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return Response(status_code=exc.status_code, headers=getattr(exc, "headers", None))

async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return Response(status_code=400)

async def cms_error_handler(request: Request, exc: CMSError):
    logger.info(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message}")
    return Response(status_code=exc.status_code)


# ============================================================================
# Create FastAPI App
# ============================================================================

def create_app(
    settings: Optional[Settings] = None,
    environment: Optional[Environment] = None
) -> FastAPI:
    settings = settings or (environment.settings if environment else default_settings)

    app = FastAPI(
        title="CMS API",
        description="Headless content management: documents, files and users",
        version="1.0.0",
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        lifespan=lifespan
    )
    app.state.settings = settings
    app.state.environment = environment

    app.add_middleware(ErrorBoundaryMiddleware)

    # CORS configuration (outermost, so error responses carry it too)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS.split(","),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    for error in (ConflictError, OperationNotSupported, InvalidCursor, InvalidInput):
        app.add_exception_handler(error, cms_error_handler)

    @app.get("/health")
    async def health_check():
        """Health check"""
        return {
            "status": "healthy",
            "environment": settings.ENVIRONMENT,
            "r2_enabled": settings.R2_ENABLED
        }

    # Order matters: fixed paths first, then /{model}, then /files/{key}
    app.include_router(auth_router.router, tags=["Authentication"])
    app.include_router(users_router.router, tags=["Users"])
    app.include_router(model_router.router, tags=["Models"])
    app.include_router(file_router.router, tags=["Files"])

    if settings.ENVIRONMENT == "development":
        for route in app.routes:
            if hasattr(route, 'methods') and hasattr(route, 'path'):
                logger.debug(f"  {','.join(sorted(route.methods)):12} {route.path}")

    return app

app = create_app()
