from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.httpsredirect import HTTPSRedirectMiddleware
from starlette.middleware.trustedhost import TrustedHostMiddleware

from pulse.api.router import api_router
from pulse.core.config import get_settings
from pulse.core.db import (
    close_engine,
    get_session_factory,
    init_engine,
    initialize_database,
)
from pulse.core.logging_config import setup_logging
from pulse.core.rate_limit import InMemoryRateLimiter
from pulse.infra.db.repositories import SessionAccountDirectory
from pulse.infra.realtime import (
    HubDomainEventBus,
    InMemoryRealtimeHub,
    PresenceRegistry,
    RealtimeGateway,
)
from pulse.services.credentials import get_credential_verifier

settings = get_settings()
settings.validate_security_settings()
logger = setup_logging(settings)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Initialize infrastructure
    engine = init_engine()
    await initialize_database(engine)
    app.state.db_engine = engine

    gateway = RealtimeGateway(
        verifier=get_credential_verifier(),
        accounts=SessionAccountDirectory(get_session_factory()),
        presence=PresenceRegistry(),
        hub=InMemoryRealtimeHub(),
        cookie_name=settings.access_token_cookie_name,
    )
    app.state.realtime_gateway = gateway
    event_bus = HubDomainEventBus(gateway.hub)
    app.state.event_bus = event_bus
    app.state.login_limiter = InMemoryRateLimiter()
    logger.info("Pulse API started (env=%s)", settings.app_env)

    yield

    # Graceful shutdown
    await event_bus.aclose()
    await gateway.shutdown()
    await close_engine(engine)
    logger.info("Pulse API stopped")


app = FastAPI(
    title="Pulse Social API",
    version="0.1.0",
    docs_url="/docs" if settings.app_env != "production" else None,
    redoc_url="/redoc" if settings.app_env != "production" else None,
    lifespan=lifespan,
)

if settings.trusted_hosts:
    app.add_middleware(
        TrustedHostMiddleware,
        allowed_hosts=settings.trusted_hosts,
    )

if settings.force_https:
    app.add_middleware(HTTPSRedirectMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type"],
)


@app.middleware("http")
async def add_security_headers(request: Request, call_next):
    response = await call_next(request)
    response.headers.setdefault("X-Content-Type-Options", "nosniff")
    response.headers.setdefault("X-Frame-Options", "DENY")
    response.headers.setdefault(
        "Referrer-Policy",
        "strict-origin-when-cross-origin",
    )
    if settings.force_https:
        response.headers.setdefault(
            "Strict-Transport-Security",
            "max-age=31536000; includeSubDomains",
        )
    return response


app.include_router(api_router, prefix="/api")


@app.get("/", tags=["meta"])
async def root() -> dict[str, str]:
    return {"service": "pulse-social-backend", "status": "ok"}
