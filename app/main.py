"""FastAPI application entrypoint. No business logic; only wiring, middleware and error mapping."""

import logging

from dotenv import load_dotenv

load_dotenv()

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.v1 import router as v1_router
from app.core.config import Settings, get_settings
from app.core.errors import AccountError
from app.core.security import TokenIssuer
from app.services.email import EmailSender, SmtpEmailSender

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)


async def account_error_handler(request: Request, exc: AccountError) -> JSONResponse:
    """Map classified account errors to {"detail": message} with the error's status code."""
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        "Request failed",
        extra={
            "path": request.url.path,
            "status_code": exc.status_code,
            "error": type(exc).__name__,
        },
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message},
        headers=headers,
    )


def create_app(
    settings: Settings | None = None,
    email_sender: EmailSender | None = None,
) -> FastAPI:
    """Build the API with its signing key and email transport bound from settings."""
    settings = settings or get_settings()

    app = FastAPI(
        title="Project LV Accounts API",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.settings = settings
    app.state.token_issuer = TokenIssuer.from_settings(settings)
    app.state.email_sender = email_sender or SmtpEmailSender.from_settings(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "Cookie"],
    )
    app.add_exception_handler(AccountError, account_error_handler)
    app.include_router(v1_router, prefix=settings.API_V1_PREFIX)

    @app.get("/")
    def root() -> dict[str, str]:
        """Root route; minimal payload for discovery."""
        return {"message": "Project LV Accounts API"}

    if not app.state.email_sender.is_configured:
        logger.warning("SMTP credentials not configured; password reset emails cannot be sent.")
    return app


app = create_app()
