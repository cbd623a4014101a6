import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from wyzebank.config import get_settings
from wyzebank.infrastructure.database import engine, initialize_database
from wyzebank.interfaces.api.middleware import SessionGateMiddleware
from wyzebank.interfaces.api.routes import register_routes


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create the database schema on startup and release resources on shutdown."""

    initialize_database()
    yield
    engine.dispose()


def create_app() -> FastAPI:
    """Create and configure the main FastAPI application."""

    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(title="Wyze Bank", lifespan=lifespan)

    # CORS wraps the gate so redirects carry CORS headers too.
    app.add_middleware(
        SessionGateMiddleware,
        cookie_name=settings.session_cookie_name,
        protected_prefix=settings.protected_prefix,
        login_path=settings.login_path,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_routes(app)
    return app


app = create_app()
