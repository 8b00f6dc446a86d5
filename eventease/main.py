from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_fastapi_instrumentator import Instrumentator

from eventease.api.errors import register_error_handlers
from eventease.api.v1.router import router as v1_router
from eventease.core.config import settings
from eventease.core.logging import configure_logging
from eventease.db import engine
from eventease.middleware.rate_limit import RateLimitMiddleware
from eventease.middleware.request_id import RequestIdMiddleware
from eventease.middleware.security_headers import SecurityHeadersMiddleware
from eventease.models import Base

configure_logging(settings.log_level, json=settings.env != "local")
logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Postgres schemas are managed by Alembic; SQLite is created on the fly.
    if engine.url.get_backend_name() == "sqlite":
        Base.metadata.create_all(bind=engine)
    logger.info("api_started", env=settings.env, mail_backend=settings.mail_backend)
    yield


app = FastAPI(title="EventEase API", lifespan=lifespan)

register_error_handlers(app)

# Starlette runs the LAST added middleware FIRST (outermost).
# RequestId and SecurityHeaders wrap everything, CORS answers preflights,
# RateLimit sits closest to the routes.
app.add_middleware(RateLimitMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(RequestIdMiddleware)

Instrumentator().instrument(app).expose(app, endpoint="/metrics", include_in_schema=False)


@app.get("/")
def root():
    return {"name": "EventEase API", "status": "ok"}


@app.get("/health")
def health():
    return {"status": "ok"}


app.include_router(v1_router, prefix="/api/v1")
