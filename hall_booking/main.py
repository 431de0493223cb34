# hall_booking/main.py
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from hall_booking.config import settings
from hall_booking.database import Database
from hall_booking.errors import register_error_handlers
from hall_booking.notifications import NotificationDispatcher
from hall_booking.routes import bookings, departments, halls, institutions, press_releases, users
from hall_booking.routes import settings as settings_routes

logger = logging.getLogger(__name__)


def configure_logging(level: str = settings.LOG_LEVEL) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def create_app(
    database: Optional[Database] = None,
    dispatcher: Optional[NotificationDispatcher] = None,
) -> FastAPI:
    # A database handed in belongs to the caller, who opens and closes it
    owns_database = database is None
    database = database or Database(settings.DATABASE_URL)
    dispatcher = dispatcher or NotificationDispatcher()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if owns_database:
            database.open()
            if settings.AUTO_CREATE_TABLES:
                database.create_all()
        logger.info("Hall Booking System started")
        try:
            yield
        finally:
            if owns_database:
                database.close()

    app = FastAPI(
        title="Hall Booking System",
        description="Multi-institution hall booking with approval workflow",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.database = database
    app.state.dispatcher = dispatcher

    # CORS Middleware (Adjust as needed)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.FRONTEND_BASE_URL],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app)

    # Registering Routers
    app.include_router(users.router)
    app.include_router(institutions.router)
    app.include_router(departments.router)
    app.include_router(halls.router)
    app.include_router(bookings.router)
    app.include_router(press_releases.router)
    app.include_router(settings_routes.router)

    @app.get("/", tags=["Root"])
    def read_root():
        return {"message": "Welcome to the Hall Booking System"}

    return app


configure_logging()
app = create_app()
