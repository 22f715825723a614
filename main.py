"""
Notion GPT Bridge — application entry point.
"""

from __future__ import annotations

import logging
import sys

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from actions.registry import ActionRegistry
from api.middleware import register_middleware
from api.routes import router as api_router
from config.settings import config
from core.exceptions import register_exception_handlers

logging.basicConfig(
    level=logging.DEBUG if config.debug else logging.INFO,
    format="%(asctime)s  %(levelname)-8s  %(name)s — %(message)s",
    stream=sys.stdout,
)
for _noisy in ("httpcore", "httpx"):
    logging.getLogger(_noisy).setLevel(logging.WARNING)
logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    app = FastAPI(
        title="Notion GPT Bridge",
        version="1.0.0",
        description="OAuth broker and action gateway for the Notion API.",
    )

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_middleware(app)
    register_exception_handlers(app)

    # Routes
    app.include_router(api_router)

    @app.on_event("startup")
    async def on_startup():
        if not config.is_oauth_configured():
            logger.warning("NOTION_CLIENT_ID / NOTION_CLIENT_SECRET not set — OAuth will fail")

        logger.info("Discovering actions…")
        ActionRegistry().auto_discover_actions()

        if config.credential_backend == "database":
            from database.session import init_db

            await init_db()

        logger.info("Application ready to accept requests.")

    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=config.host,
        port=config.port,
        reload=config.debug,
        log_level="debug" if config.debug else "info",
    )
