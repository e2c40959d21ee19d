"""Logging setup and error responses for the API."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from iliadtutor.ingest.greek_text import TextLoadError
from iliadtutor.ingest.translation import TranslationLoadError
from iliadtutor.keys import scrub_secrets
from iliadtutor.services.base import ServiceError
from iliadtutor.services.tutor import TutorConfigError

logger = logging.getLogger(__name__)


class MaskingFilter(logging.Filter):
    """Log filter that masks the tutor API key."""

    def filter(self, record: logging.LogRecord) -> bool:
        if hasattr(record, "msg") and isinstance(record.msg, str):
            record.msg = scrub_secrets(record.msg)
        return True


def setup_secure_logging(level: int = logging.INFO) -> None:
    """Configure logging with API key masking."""
    logging.basicConfig(
        level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )
    root_logger = logging.getLogger()
    root_logger.addFilter(MaskingFilter())

    for name in ["uvicorn", "uvicorn.access", "uvicorn.error"]:
        logging.getLogger(name).addFilter(MaskingFilter())


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


async def resource_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"Resource load failed for {request.url.path}: {exc}")
    return _error(503, str(exc))


async def service_error_handler(request: Request, exc: Exception) -> JSONResponse:
    if isinstance(exc, TutorConfigError):
        logger.error(f"Tutor not configured: {exc}")
        return _error(503, str(exc))
    logger.error(f"External service failed for {request.url.path}: {exc}")
    return _error(502, str(exc))


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(TranslationLoadError, resource_error_handler)
    app.add_exception_handler(TextLoadError, resource_error_handler)
    app.add_exception_handler(ServiceError, service_error_handler)
