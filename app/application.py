# app/application.py
# Role: Builds the FastAPI application.
#       Wires settings, database, mailer, CORS, error handlers and routers
#       together. main.py calls create_app() once; tests call it with their own
#       settings and a fake mailer.

"""
Application factory for the personal finance tracker API.
"""

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.engine import make_url
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.errors import AppError
from app.routes_auth import router as auth_router
from app.routes_dashboard import router as dashboard_router
from app.routes_root import router as root_router
from app.routes_transactions import router as transactions_router
from app.services.mailer import build_mailer
from config import Settings, get_settings
from db import Base, build_engine, build_session_factory

logger = logging.getLogger(__name__)

_UNSET = object()


# -------------------------------------------------------------------
# Error handlers: every failure leaves as {"message": ...}
# -------------------------------------------------------------------

async def app_error_handler(request: Request, exc: AppError):
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


async def request_validation_handler(request: Request, exc: RequestValidationError):
    # loc looks like ("body", "amount") or ("query", "reference_date"); union
    # fields append the member tried, ("body", "amount", "float"). A body that
    # is not JSON at all only has ("body", <position>)
    message = "Invalid request body"
    errors = exc.errors()
    if errors:
        loc = errors[0].get("loc") or ()
        if len(loc) > 1 and isinstance(loc[1], str):
            message = f"Invalid value for {loc[1]}"
    return JSONResponse(status_code=400, content={"message": message})


async def http_error_handler(request: Request, exc: StarletteHTTPException):
    message = "Route not found" if exc.status_code == 404 else str(exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": message},
        headers=getattr(exc, "headers", None),
    )


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"message": "Internal server error"})


# -------------------------------------------------------------------
# Factory
# -------------------------------------------------------------------

def create_app(settings: Optional[Settings] = None, mailer=_UNSET) -> FastAPI:
    """
    Build the app.

    settings: defaults to the process settings read from the environment.
    mailer:   defaults to an SMTP mailer when credentials are configured
              (None otherwise); tests pass a fake.
    """
    settings = settings or get_settings()

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if settings.uses_dev_secret:
        logger.warning("JWT_SECRET is not set; using the development secret")

    # Database: create tables (only if they don't exist yet)
    engine = build_engine(settings.database_url)
    Base.metadata.create_all(bind=engine)
    logger.info(
        "Database ready at %s",
        make_url(settings.database_url).render_as_string(hide_password=True),
    )

    if mailer is _UNSET:
        mailer = build_mailer(settings)
    logger.info("Email service: %s", "configured" if mailer is not None else "not configured")

    app = FastAPI(title="Finance Tracker API")

    app.state.settings = settings
    app.state.session_factory = build_session_factory(engine)
    app.state.mailer = mailer

    if settings.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=list(settings.cors_origins),
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    # -------------------------------------------------------------------
    # Include routers
    # -------------------------------------------------------------------

    # Liveness / health / mail check
    app.include_router(root_router)

    # Register, login, forgot/reset password
    app.include_router(auth_router)

    # Transactions list, add, delete
    app.include_router(transactions_router)

    # Dashboard summary (totals, categories, monthly series)
    app.include_router(dashboard_router)

    return app
