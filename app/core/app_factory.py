from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Dict, Optional

import httpx
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import Settings
from .container import ApplicationContainer
from .logging import configure_logging
from ..application.services.authorization_service import AuthorizationGate
from ..application.services.transaction_service import TransactionService
from ..domain.errors import AppError
from ..infrastructure.persistence.sqlite import SQLitePersistence
from ..presentation.api.routers import auth as auth_router
from ..presentation.api.routers import payments as payments_router
from ..services.credential_service import CredentialService
from ..services.paystack_service import PaystackService
from ..services.token_service import TokenService

logger = logging.getLogger(__name__)


def create_application(
    settings: Optional[Settings] = None,
    paystack_client: Optional[httpx.Client] = None,
) -> FastAPI:
    settings = settings or Settings()

    app = FastAPI(
        title="Auth & Payments API",
        lifespan=_create_lifespan(settings, paystack_client),
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info("%s %s -> %s (%.1f ms)", request.method, request.url.path, response.status_code, elapsed_ms)
        return response

    _register_exception_handlers(app)

    app.include_router(auth_router.router)
    app.include_router(payments_router.router)

    @app.get("/health")
    async def health() -> Dict[str, Any]:
        return {
            "success": True,
            "message": "Server is running",
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    return app


def _error_body(message: str, errors: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
    body: Dict[str, Any] = {"success": False, "message": message}
    if errors:
        body["errors"] = errors
    return body


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def handle_app_error(request: Request, exc: AppError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message, exc_info=exc.__cause__)
        else:
            logger.info("%s %s rejected (%s): %s", request.method, request.url.path, exc.status_code, exc.message)
        return JSONResponse(status_code=exc.status_code, content=_error_body(exc.message, exc.errors))

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        message = str(exc.detail)
        if exc.status_code == 404 and exc.detail == "Not Found":
            message = f"Route {request.url.path} not found"
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(message),
            headers=exc.headers,
        )

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors: Dict[str, str] = {}
        for error in exc.errors():
            field = next((str(part) for part in error.get("loc", ()) if part != "body"), "body")
            errors.setdefault(field, error.get("msg", "Invalid value"))
        return JSONResponse(status_code=400, content=_error_body("Validation error", errors))

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content=_error_body("Internal server error"))


def _create_lifespan(settings: Settings, paystack_client: Optional[httpx.Client]):
    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        configure_logging(settings.log_level)
        persistence = SQLitePersistence(settings.database_path)
        credential_service = CredentialService(persistence, bcrypt_rounds=settings.bcrypt_rounds)
        token_service = TokenService(
            jwt_secret=settings.jwt_secret,
            jwt_algorithm=settings.jwt_algorithm,
            jwt_expiration_days=settings.jwt_expiration_days,
        )
        authorization_gate = AuthorizationGate(token_service, credential_service)
        paystack_service = PaystackService(
            secret_key=settings.paystack_secret_key,
            base_url=settings.paystack_base_url,
            timeout_seconds=settings.paystack_timeout_seconds,
            client=paystack_client,
        )
        if paystack_service.mode is None:
            logger.warning("PAYSTACK_SECRET_KEY missing or malformed; payment calls will fail.")
        transaction_service = TransactionService(
            persistence,
            paystack_service,
            callback_url=settings.paystack_callback_url,
        )
        credential_service.ensure_admin(
            settings.admin_default_name,
            settings.admin_default_email,
            settings.admin_default_password,
        )

        app.state.container = ApplicationContainer(  # type: ignore[attr-defined]
            settings=settings,
            persistence=persistence,
            credential_service=credential_service,
            token_service=token_service,
            authorization_gate=authorization_gate,
            paystack_service=paystack_service,
            transaction_service=transaction_service,
        )

        try:
            yield
        finally:
            paystack_service.close()
            persistence.close()

    return lifespan
