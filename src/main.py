"""Entrypoint: FastAPI application serving the game session routes."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from src.api.routes import game_router, register_error_handlers
from src.core.config import LOG_LEVEL
from src.db.database import init_db

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create the session table(s) before serving."""
    init_db()
    logging.info("Start Server")
    try:
        yield
    finally:
        logging.info("Stop Server")


def create_app() -> FastAPI:
    app = FastAPI(title="Tic-Tac-Toe log verifier", lifespan=lifespan)
    app.include_router(game_router)
    register_error_handlers(app)
    return app


app = create_app()
