"""FastAPI application serving behind the CORS policy middleware."""

import logging

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import ORJSONResponse, Response

from .config import load_policy_config
from .logging import configure_logging
from .middleware.cors import CORSPolicyMiddleware
from .policy import PolicyConfig

logger = logging.getLogger("cors_policy.main")


async def http_exception_handler_logged(request: Request, exc: HTTPException) -> Response:
    """Log HTTP exceptions and return the standard JSON error body."""

    level = logging.ERROR if exc.status_code >= 500 else logging.WARNING
    detail = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    logger.log(
        level,
        "HTTP exception raised",
        extra={
            "event_dataset": "cors-policy.app",
            "event_action": "http_exception",
            "http_status_code": exc.status_code,
            "http_request_method": request.method,
            "url_path": request.url.path,
            "error_type": type(exc).__name__,
            "error_message": detail[:256],
        },
    )
    return ORJSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
        headers=exc.headers,
    )


def create_app(config: PolicyConfig | None = None) -> FastAPI:
    """Build the application and install the CORS middleware.

    Without an explicit ``config`` the policy is read from the ``CORS_*``
    environment variables; invalid settings raise ``PolicyConfigError`` here
    rather than on the first request.
    """

    policy = config if config is not None else load_policy_config()

    app = FastAPI(title="CORS Policy", default_response_class=ORJSONResponse)
    app.add_middleware(CORSPolicyMiddleware, config=policy)
    app.add_exception_handler(HTTPException, http_exception_handler_logged)
    app.state.cors_policy = policy

    @app.get("/")
    def read_root() -> dict[str, str]:
        """Health check endpoint."""
        return {"message": "CORS Policy"}

    logger.info(
        "CORS policy installed",
        extra={"event_dataset": "cors-policy.app", "event_action": "policy_loaded"},
    )
    return app


def get_app() -> FastAPI:
    """Configure logging and build the app from the ``CORS_*`` environment."""

    configure_logging()
    return create_app()


app = get_app()
