"""Main entry point for the EduConnect web application."""

import logging
import os
import typing as t
from pathlib import Path

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from educonnect.core import BootConfiguration, di, EduConnectContainer
from educonnect.core.config.web import EduConnectWebSettings
from educonnect.model import DeploymentEnvironment

from .route import router
from .view.envelope import ErrorEnvelope

logger = logging.getLogger(__name__)


def _error(status_code: int, message: str, headers: t.Mapping[str, str] | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorEnvelope(error=message).model_dump(mode="json"),
        headers=headers,
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    message = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    return _error(exc.status_code, message, exc.headers)


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(loc) for loc in first.get("loc", ()) if loc != "body")
        message = f"{field}: {first.get('msg')}" if field else str(first.get("msg"))
    else:
        message = "Invalid request"
    return _error(status.HTTP_400_BAD_REQUEST, message)


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "unhandled error",
        exc_info=exc,
        extra={"method": request.method, "path": request.url.path},
    )
    return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")


@di.inject
def _create_app(
    config: EduConnectWebSettings = di.Provide["config.web.educonnect", di.as_(EduConnectWebSettings)],
    env: DeploymentEnvironment = di.Provide["env"],
    root_path: Path = di.Provide["root"],
) -> FastAPI:
    app = FastAPI(
        title="EduConnect",
        description="School management: timetables, grades, leave, notifications and feedback",
        version="0.1.0",
    )

    if env is DeploymentEnvironment.Local and config.frontend is not None:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=[
                f"http://{config.frontend.host}:{config.frontend.port}",
                f"http://localhost:{config.frontend.port}",
            ],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.add_exception_handler(HTTPException, http_exception_handler)  # pyright: ignore [reportArgumentType]
    app.add_exception_handler(RequestValidationError, validation_exception_handler)  # pyright: ignore [reportArgumentType]
    app.add_exception_handler(Exception, unhandled_exception_handler)

    app.include_router(router)
    return app


def create_app() -> FastAPI:
    """Factory function for uvicorn."""
    boot_vars = os.getenv("__EduConnect_BOOT")
    if boot_vars:
        boot_cf = BootConfiguration.model_validate_json(boot_vars)
        ct = EduConnectContainer()
        EduConnectContainer.boot(ct, **dict(boot_cf))
        ct.wire(modules=["educonnect.web.educonnect.main", "educonnect.auth.middleware"])
        return _create_app(
            config=EduConnectWebSettings(**ct.config.web.educonnect()),
            env=boot_cf.env,
            root_path=t.cast(Path, ct.root()),
        )
    return _create_app()
