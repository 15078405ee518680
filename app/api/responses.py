"""
app/api/responses.py

Response envelope helpers shared by the REST endpoints.

Success: ``{"success": true, "message": ..., "data": ...}``
Failure: ``{"success": false, "message": ..., "error": {"code": ..., "details": ...}}``
"""

from __future__ import annotations

import logging

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app import failure_codes
from app.domain.errors import AnalysisInputError, PriceAnalysisError
from app.logging_utils import log_event

logger = logging.getLogger(__name__)


def error_response(error: PriceAnalysisError) -> JSONResponse:
    """
    Render a pipeline failure as an error envelope with its mapped status.
    """

    status_code = failure_codes.HTTP_STATUS_BY_CODE.get(error.code, 500)
    log_event(
        logger,
        logging.WARNING,
        "api_error_response",
        code=error.code,
        status_code=status_code,
        error=error.message,
    )
    return JSONResponse(
        status_code=status_code,
        content={
            "success": False,
            "message": error.message,
            "error": {"code": error.code, "details": error.details or None},
        },
    )


async def validation_error_response(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Render FastAPI's own parameter/body validation failures in the same
    ``VALIDATION_ERROR`` envelope as ``AnalysisRequest.create``. Caller input
    is not echoed back.
    """

    fields = [
        {
            "field": ".".join(str(part) for part in error.get("loc", ())),
            "message": error.get("msg", "Invalid value"),
        }
        for error in exc.errors()
    ]
    return error_response(
        AnalysisInputError("Request parameters are invalid.", details={"fields": fields})
    )
