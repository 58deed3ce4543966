"""Map the error taxonomy onto HTTP responses with a JSON envelope."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from cad_doctree.errors import DocTreeError, InvalidRequestError, ReasonCode

logger = logging.getLogger(__name__)

_STATUS_BY_REASON: dict[ReasonCode, int] = {
    ReasonCode.VALIDATION: status.HTTP_400_BAD_REQUEST,
    ReasonCode.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ReasonCode.ACCESS_DENIED: status.HTTP_403_FORBIDDEN,
    ReasonCode.COLLISION: status.HTTP_409_CONFLICT,
    ReasonCode.SESSION_BUSY: status.HTTP_409_CONFLICT,
    ReasonCode.NO_SESSION: status.HTTP_409_CONFLICT,
}


def status_for(reason: ReasonCode) -> int:
    return _STATUS_BY_REASON.get(reason, status.HTTP_500_INTERNAL_SERVER_ERROR)


async def doctree_error_handler(_request: Request, exc: DocTreeError) -> JSONResponse:
    body: dict[str, object] = {"message": exc.message, "reason": exc.reason.value, "paths": exc.paths}
    if isinstance(exc, InvalidRequestError) and exc.field:
        body["field"] = exc.field
    code = status_for(exc.reason)
    if code >= 500:
        logger.error("Request failed: %s", exc.message)
    return JSONResponse(status_code=code, content=body)


async def validation_error_handler(_request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    first = errors[0] if errors else {}
    loc = [str(part) for part in first.get("loc", ()) if part != "body"]
    field = ".".join(loc) or None
    detail = first.get("msg", "Invalid request")
    message = f"Invalid request: {field}: {detail}" if field else f"Invalid request: {detail}"
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"message": message, "reason": ReasonCode.VALIDATION.value, "field": field, "paths": []},
    )


def install_exception_handlers(app: FastAPI) -> None:
    app.exception_handler(DocTreeError)(doctree_error_handler)
    app.exception_handler(RequestValidationError)(validation_error_handler)
