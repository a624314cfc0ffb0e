import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from .core.exceptions import DomainException, RepositoryException

logger = logging.getLogger(__name__)


def _code_from_status(status_code: int) -> str:
    mapping = {
        400: "VALIDATION_ERROR",
        401: "AUTHENTICATION_REQUIRED",
        403: "AUTHORIZATION_ERROR",
        404: "NOT_FOUND",
        405: "METHOD_NOT_ALLOWED",
        409: "CONFLICT",
        422: "VALIDATION_ERROR",
        503: "INFRASTRUCTURE_ERROR",
        504: "REPORT_TIMEOUT",
    }
    return mapping.get(status_code, "INTERNAL_ERROR")


def _error_body(
    *,
    message: str,
    code: str,
    details: Optional[Any] = None,
) -> Dict[str, Any]:
    body: Dict[str, Any] = {"status": "error", "message": message, "code": code}
    if details:
        body["details"] = jsonable_encoder(details)
    return body


def _parse_detail(detail: Any, status_code: int) -> tuple[str, str, Optional[Any]]:
    if isinstance(detail, dict):
        message = detail.get("message") or detail.get("detail")
        code = detail.get("code") if isinstance(detail.get("code"), str) else None
        return (
            message if isinstance(message, str) else "Request failed",
            code or _code_from_status(status_code),
            detail.get("details"),
        )
    if isinstance(detail, str):
        return detail, _code_from_status(status_code), None
    return "Request failed", _code_from_status(status_code), None


def _validation_details(errors: Any) -> Dict[str, Any]:
    fields = []
    for error in errors:
        location = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        fields.append({"field": ".".join(location), "message": error.get("msg", "")})
    return {"errors": fields}


def register_error_handlers(app: FastAPI) -> None:
    """Render every failure in the ``{"status": "error", ...}`` envelope."""

    @app.exception_handler(DomainException)
    async def domain_exception_handler(request: Request, exc: DomainException) -> JSONResponse:
        return JSONResponse(
            _error_body(message=exc.message, code=exc.code, details=exc.details),
            status_code=exc.status_code,
        )

    @app.exception_handler(RepositoryException)
    async def repository_exception_handler(
        request: Request, exc: RepositoryException
    ) -> JSONResponse:
        logger.error(f"Storage failure on {request.method} {request.url.path}: {exc}")
        return JSONResponse(
            _error_body(message="Storage is temporarily unavailable", code="INFRASTRUCTURE_ERROR"),
            status_code=503,
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        message, code, details = _parse_detail(exc.detail, exc.status_code)
        return JSONResponse(
            _error_body(message=message, code=code, details=details),
            status_code=exc.status_code,
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return JSONResponse(
            _error_body(
                message="Request validation failed",
                code="VALIDATION_ERROR",
                details=_validation_details(exc.errors()),
            ),
            status_code=422,
        )

    @app.exception_handler(ValidationError)
    async def validation_exception_handler(request: Request, exc: ValidationError) -> JSONResponse:
        return JSONResponse(
            _error_body(
                message="Validation failed",
                code="VALIDATION_ERROR",
                details=_validation_details(exc.errors()),
            ),
            status_code=422,
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return JSONResponse(
            _error_body(message="Internal Server Error", code="INTERNAL_ERROR"),
            status_code=500,
        )
