# =======================================================================================
# gate_auth/main.py - FastAPI Application Entry Point
# =======================================================================================
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from . import __version__
from .api.routes.admin_auth import router as admin_auth_router
from .api.routes.admins import router as admins_router
from .api.routes.audit import router as audit_router
from .api.routes.auth import router as auth_router
from .api.routes.contacts import router as contacts_router
from .api.routes.users import router as users_router
from .config import Config, config as default_config
from .database import DatabaseManager
from .models.schemas import HealthResponse, ServiceStatusResponse
from .services import build_services, ensure_bootstrap_admin
from .utils.exceptions import GateAuthError

logger = logging.getLogger(__name__)


def _error_body(message: str) -> dict:
    return {"success": False, "message": message}


def create_app(cfg: Optional[Config] = None, database: Optional[DatabaseManager] = None) -> FastAPI:
    cfg = cfg or default_config
    cfg.validate()

    logging.basicConfig(
        level=logging.DEBUG if cfg.API_DEBUG else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    db = database or DatabaseManager(cfg)
    services = build_services(cfg)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        db.init_schema()
        with db.get_connection() as conn:
            ensure_bootstrap_admin(conn, cfg, services.store, services.hasher)
        logger.info("Gate auth API started (env=%s)", cfg.ENV)
        yield
        if database is None:
            db.dispose()

    app = FastAPI(
        title="Gate Auth API",
        version=__version__,
        description="Dual-token authentication with version-based session invalidation",
        debug=cfg.API_DEBUG,
        lifespan=lifespan,
        docs_url=None if cfg.is_production else "/docs",
        redoc_url=None if cfg.is_production else "/redoc",
    )
    app.state.services = services
    app.state.db = db
    app.state.started_at = datetime.now(timezone.utc)

    origins = [o.strip() for o in cfg.CORS_ALLOWED_ORIGINS.split(",") if o.strip()] or ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials="*" not in origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(GateAuthError)
    async def gate_auth_error_handler(request: Request, exc: GateAuthError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content=_error_body(exc.message))

    @app.exception_handler(SQLAlchemyError)
    async def database_error_handler(request: Request, exc: SQLAlchemyError):
        # raised inside the handler's transaction, so nothing was committed
        logger.error("[DB_ERROR] %s %s failed: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=500, content=_error_body("Internal server error"))

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        logger.debug("Rejected request body on %s: %s", request.url.path, exc.errors())
        return JSONResponse(status_code=400, content=_error_body("Invalid request body"))

    # Routers
    app.include_router(auth_router, prefix="/api/v1", tags=["auth"])
    app.include_router(admin_auth_router, prefix="/api/v1", tags=["admin-auth"])
    app.include_router(admins_router, prefix="/api/v1", tags=["admins"])
    app.include_router(audit_router, prefix="/api/v1", tags=["audit"])
    app.include_router(users_router, prefix="/api/v1", tags=["users"])
    app.include_router(contacts_router, prefix="/api/v1", tags=["contacts"])

    @app.get("/", response_model=ServiceStatusResponse, tags=["health"])
    def service_status():
        now = datetime.now(timezone.utc)
        uptime = now - app.state.started_at
        return ServiceStatusResponse(
            success=True,
            message="Gate auth API is running",
            status="healthy",
            timestamp=now.isoformat(),
            uptime=str(uptime).split(".")[0],
            environment=cfg.ENV,
            version=__version__,
        )

    @app.get("/api/health", response_model=HealthResponse, tags=["health"])
    def api_health():
        try:
            db.ping()
            return HealthResponse(status="ok", dataAvailable=True, message=None)
        except SQLAlchemyError as e:
            logger.warning("[HEALTH] Database ping failed: %s", e)
            return HealthResponse(status="error", dataAvailable=False, message=str(e))

    return app


app = create_app()
