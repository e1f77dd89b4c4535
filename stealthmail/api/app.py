from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse

from stealthmail.api import article_routes, mail_routes
from stealthmail.api.deps import client_key, get_content_client
from stealthmail.api.errors import install_error_handlers, rate_limited_response
from stealthmail.api.rate_limit import RateLimiter
from stealthmail.config import Settings
from stealthmail.presentation import render_landing_html
from stealthmail.providers.notion_client import NotionContentClient
from stealthmail.utils.dates import utc_now


logger = logging.getLogger(__name__)

VERSION = "1.0.0"

ROUTE_DOCS = {
    "mail": {
        "POST /api/mail/create": "Create a temporary email address",
        "GET /api/mail/inbox": "Get inbox messages for an email address",
        "GET /api/mail/message/:id": "Get a specific message by ID",
        "DELETE /api/mail/delete": "Delete a temporary email address",
        "GET /api/mail/domains": "List available email domains",
    },
    "articles": {
        "GET /api/articles": "List published articles",
        "GET /api/articles/popular": "List featured articles",
        "GET /api/articles/search": "Search articles by title, excerpt or tag",
        "GET /api/articles/categories": "List article categories",
        "GET /api/articles/category/:category": "List articles in a category",
        "GET /api/articles/:id": "Get a specific article by ID",
    },
    "service": {
        "GET /health": "Liveness, uptime and environment",
        "GET /api/docs": "This route listing",
    },
}


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or Settings.load()
    started = time.monotonic()

    @asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
        logger.info("Stealth Mail API starting (environment: %s)", settings.environment)
        if not settings.notion_configured:
            logger.warning("NOTION_TOKEN or NOTION_DATABASE_ID not set, articles will use fallback content")
        yield
        logger.info("Stealth Mail API shut down")

    app = FastAPI(
        title="Stealth Mail API",
        description="Disposable mailboxes backed by mail.tm, articles backed by Notion",
        version=VERSION,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.limiter = RateLimiter(settings.rate_limit_max, settings.rate_limit_window_seconds)
    app.state.create_limiter = RateLimiter(settings.create_rate_limit_max, settings.create_rate_limit_window_seconds)

    @app.middleware("http")
    async def rate_limit_and_log(request: Request, call_next):
        key = client_key(request)
        logger.info("%s %s - IP: %s", request.method, request.url.path, key)
        if request.method != "OPTIONS":
            retry_after = app.state.limiter.hit(key)
            if retry_after is not None:
                logger.warning("Rate limit hit for %s", key)
                return rate_limited_response("Too many requests from this IP, please try again later.", retry_after)
        return await call_next(request)

    # Added last so it wraps the limiter and 429s still carry CORS headers
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    install_error_handlers(app, expose_detail=not settings.is_production)
    app.include_router(mail_routes.router)
    app.include_router(article_routes.router)

    @app.get("/health")
    def health():
        return {
            "status": "OK",
            "timestamp": utc_now().isoformat(),
            "uptime": round(time.monotonic() - started, 3),
            "environment": settings.environment,
        }

    @app.get("/api")
    def banner():
        return {
            "message": "Stealth Mail API Server",
            "version": VERSION,
            "documentation": "/api/docs",
            "endpoints": {"mail": "/api/mail", "articles": "/api/articles", "health": "/health"},
        }

    @app.get("/api/docs")
    def route_docs():
        return {"title": "Stealth Mail API Documentation", "version": VERSION, "endpoints": ROUTE_DOCS}

    @app.get("/", response_class=HTMLResponse)
    def landing(content: NotionContentClient = Depends(get_content_client)):
        result = content.get_popular(6)
        articles = result.data if result.success else []
        return HTMLResponse(render_landing_html(articles))

    return app
