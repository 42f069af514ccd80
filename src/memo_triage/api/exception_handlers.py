"""Exception handlers mapping errors to the API's error body.

Every error response has the shape ``{"error": {"message", "code", "status_code", ...}}``.
"""

from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from memo_triage.utils.errors import TriageException
from memo_triage.utils.logging import log_error


def _error_response(
    status_code: int, message: Any, code: str, details: Optional[Any] = None
) -> JSONResponse:
    body: Dict[str, Any] = {"message": message, "code": code, "status_code": status_code}
    if details is not None:
        body["details"] = details
    return JSONResponse(status_code=status_code, content={"error": body})


def _request_context(request: Request) -> Dict[str, str]:
    return {"path": request.url.path, "method": request.method}


def _validation_details(exc: RequestValidationError) -> List[Dict[str, Any]]:
    # pydantic error dicts may carry exception objects in "ctx"
    return [
        {"loc": list(error.get("loc", ())), "msg": error.get("msg"), "type": error.get("type")}
        for error in exc.errors()
    ]


async def triage_exception_handler(request: Request, exc: TriageException) -> JSONResponse:
    log_error(exc, context=_request_context(request))
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code >= 500:
        log_error(exc, context=_request_context(request))
    return _error_response(exc.status_code, exc.detail, "HTTP_ERROR")


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    return _error_response(
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        "Validation error",
        "VALIDATION_ERROR",
        details=_validation_details(exc),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    log_error(exc, context=_request_context(request))
    return _error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error", "INTERNAL_ERROR"
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(TriageException, triage_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
