import logging
from contextlib import asynccontextmanager

import sentry_sdk
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from linkmeta.api.v1.health import router as health_router
from linkmeta.api.v1.router import api_router
from linkmeta.config import settings
from linkmeta.core.error_handlers import register_exception_handlers
from linkmeta.core.logging_config import configure_logging
from linkmeta.middleware.request_id import REQUEST_ID_HEADER, RequestIDMiddleware

configure_logging(log_format=settings.LOG_FORMAT, log_level=settings.LOG_LEVEL)

if settings.SENTRY_DSN:
    sentry_sdk.init(
        dsn=settings.SENTRY_DSN,
        traces_sample_rate=settings.SENTRY_TRACES_SAMPLE_RATE,
        environment=settings.SENTRY_ENVIRONMENT,
        release=f"{settings.APP_NAME}@{settings.APP_VERSION}",
        # Unfurled URLs can carry tokens in their query strings.
        send_default_pii=False,
    )

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(
        "%s v%s ready (timeout %d ms, max %d ms, manifest icons %s)",
        settings.APP_NAME,
        settings.APP_VERSION,
        settings.DEFAULT_TIMEOUT,
        settings.MAX_TIMEOUT,
        "on" if settings.MANIFEST_ICONS_ENABLED else "off",
    )
    yield
    logger.info("%s stopped", settings.APP_NAME)


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Link preview service. Give it a URL and it returns the page's "
    "title, description, preview image, icon and social-card metadata as JSON.",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# Added first so it sits innermost and sees the final response.
app.add_middleware(RequestIDMiddleware)
app.add_middleware(GZipMiddleware, minimum_size=500)
# Previews are public reads: any origin, GET only, no cookies.
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=False,
    allow_methods=["GET", "OPTIONS"],
    allow_headers=["*"],
    expose_headers=[REQUEST_ID_HEADER],
)

register_exception_handlers(app)

app.include_router(api_router)
app.include_router(health_router)


@app.get("/", include_in_schema=False)
async def root():
    return {
        "app": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "running",
        "endpoints": {
            "unfurl": "/v1/unfurl?url=<absolute http(s) URL>",
            "health": "/health",
            "metrics": "/metrics",
            "docs": "/docs",
        },
    }
