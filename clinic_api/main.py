from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from typing import Optional
import time
import logging

from .api.v1.admin import router as admin_router
from .api.v1.appointments import router as appointments_router
from .api.v1.auth import router as auth_router
from .api.v1.doctors import router as doctors_router
from .core.config import Settings, settings as default_settings
from .core.database import SessionLocal, init_db
from .core.exceptions import ConflictError, register_exception_handlers
from .core.security import PasswordHasher, TokenService, parse_duration
from .services.user_service import UserService

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the application and the auth collaborators it shares across requests."""
    settings = settings or default_settings

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.VERSION,
        description="Clinic management API with role-based access control",
        openapi_url="/api/v1/openapi.json",
        docs_url="/docs",
        redoc_url="/redoc"
    )

    # Built once, read-only afterwards
    app.state.settings = settings
    app.state.hasher = PasswordHasher(rounds=settings.BCRYPT_ROUNDS)
    app.state.token_service = TokenService(
        secret_key=settings.JWT_SECRET,
        algorithm=settings.ALGORITHM,
        expires_delta=parse_duration(settings.JWT_EXPIRES_IN),
    )

    # Middleware setup
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Custom middleware for request logging and timing
    @app.middleware("http")
    async def add_process_time_header(request: Request, call_next):
        start_time = time.time()
        response = await call_next(request)
        process_time = time.time() - start_time
        response.headers["X-Process-Time"] = str(process_time)

        logger.info(
            f"{request.method} {request.url.path} - "
            f"Status: {response.status_code} - "
            f"Time: {process_time:.4f}s"
        )

        return response

    register_exception_handlers(app)

    # Include routers
    app.include_router(auth_router, prefix="/api/v1")
    app.include_router(admin_router, prefix="/api/v1")
    app.include_router(appointments_router, prefix="/api/v1")
    app.include_router(doctors_router, prefix="/api/v1")

    @app.on_event("startup")
    async def startup_event():
        """Initialize application on startup."""
        logger.info("Starting Clinic Management API...")

        db_url = settings.get_database_url
        db_type = "PostgreSQL" if "postgresql" in db_url else "SQLite" if "sqlite" in db_url else "Unknown"
        logger.info(f"Using {db_type} database")

        try:
            init_db()
            logger.info("Database initialized successfully")
        except Exception as e:
            logger.error(f"Failed to initialize database: {str(e)}")
            raise

        if settings.BOOTSTRAP_ADMIN_EMAIL and settings.BOOTSTRAP_ADMIN_PASSWORD:
            db = SessionLocal()
            try:
                UserService(db, app.state.hasher).bootstrap_admin(
                    settings.BOOTSTRAP_ADMIN_USERNAME,
                    settings.BOOTSTRAP_ADMIN_EMAIL,
                    settings.BOOTSTRAP_ADMIN_PASSWORD,
                )
            except ConflictError as exc:
                logger.warning(f"Bootstrap admin not created: {exc.message}")
            finally:
                db.close()

        logger.info("Application startup complete")

    @app.on_event("shutdown")
    async def shutdown_event():
        """Cleanup on application shutdown."""
        logger.info("Shutting down Clinic Management API...")

    # Health check endpoint
    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {
            "success": True,
            "status": "healthy",
            "timestamp": time.time(),
            "version": settings.VERSION
        }

    @app.get("/")
    async def root():
        return {
            "message": "Welcome to the Clinic Management API",
            "version": settings.VERSION,
            "docs": "/docs",
            "health": "/health"
        }

    @app.get("/api/v1/info")
    async def api_info():
        """API information endpoint."""
        return {
            "name": settings.APP_NAME,
            "version": settings.VERSION,
            "endpoints": {
                "authentication": "/api/v1/auth",
                "admin": "/api/v1/admin",
                "appointments": "/api/v1/appointments",
                "doctors": "/api/v1/doctors",
                "docs": "/docs",
                "openapi": "/api/v1/openapi.json"
            }
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "clinic_api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=default_settings.DEBUG,
        log_level="info"
    )
