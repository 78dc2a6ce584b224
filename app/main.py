import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from app.exceptions.handlers import (
    application_exception_handler,
    http_exception_handler,
    validation_exception_handler,
    generic_exception_handler
)
from app.exceptions.errors import ApplicationException
from starlette.exceptions import HTTPException as StarletteHTTPException
from fastapi.exceptions import RequestValidationError
from app.database.base import Base
from app.database.connection import engine
from app.core.config import settings

from app.api.v1.routes import (
    health_router, accelerator_router, checklist_router, onboarding_router, alert_router
)
from app.middlewares.actor_context import ActorContextMiddleware
from app.services.alert_dispatcher import drain_background_dispatches

from app import models  # noqa: F401  registers tables on Base.metadata

from app.core.logger import get_logger

logger = get_logger("accelerator-backend")

SHUTDOWN_DISPATCH_TIMEOUT_SECONDS = 15


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("🚀 FastAPI app is starting...")
    try:
        # Create database tables (async version)
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Application database tables ensured.")

        if not settings.NOTIFICATION_WEBHOOK_URL:
            logger.warning("NOTIFICATION_WEBHOOK_URL is not set; stage alerts will stay pending")

    except Exception as e:
        logger.error(f"Failed to initialize application: {e}")
        raise e

    yield

    logger.info("🛑 FastAPI app is shutting down...")
    await drain_background_dispatches(timeout=SHUTDOWN_DISPATCH_TIMEOUT_SECONDS)


IS_DEVELOPMENT = settings.ENVIRONMENT == "development"

swagger_ui_parameters = {
    "deepLinking": True,
    "displayRequestDuration": True,
    "tryItOutEnabled": True,
    "filter": True,
    "syntaxHighlight.theme": "arta",
}

app = FastAPI(
    title="Accelerator Backend",
    version="1.0.0",
    lifespan=lifespan,
    description="""
    Operations dashboard API for the 120-day accelerator program.

    ## Operator identity

    Send the operator's name in the `X-Actor` header. It is recorded on checklist
    completions and onboarding steps. Requests without it are attributed to `system`.
    """,
    swagger_ui_parameters=swagger_ui_parameters,
)

# CORS configuration
origins = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
    "http://localhost:8000",
    "http://127.0.0.1:8000",
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(ActorContextMiddleware)

# Include API routers
app.include_router(health_router, prefix="/api/v1")
app.include_router(accelerator_router, prefix="/api/v1")
app.include_router(checklist_router, prefix="/api/v1")
app.include_router(onboarding_router, prefix="/api/v1")
app.include_router(alert_router, prefix="/api/v1")


@app.get("/", include_in_schema=False)
async def root():
    return {
        "message": "Accelerator Backend API",
        "docs": "/docs",
        "development_mode": IS_DEVELOPMENT,
        "version": "1.0.0"
    }


# Exception handlers
app.add_exception_handler(ApplicationException, application_exception_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)

if __name__ == "__main__":
    uvicorn.run(
        "app.main:app",
        host="127.0.0.1",
        port=8000,
        reload=True,
        limit_concurrency=20,
        timeout_keep_alive=30,
        timeout_graceful_shutdown=30
    )
