"""Exception handlers mapping domain errors to JSON responses.

Every error body is ``{"detail": <readable string>, "kind": <category>}``.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from goagent.domain.errors import AppError, describe_error
from goagent.services.submission_lifecycle import InvalidTransitionError
from goagent.services.submission_service import SubmissionNotFound

logger = logging.getLogger(__name__)


async def _app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s (%s)", request.method, request.url.path, exc, exc.kind.value)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def _invalid_transition_handler(request: Request, exc: InvalidTransitionError) -> JSONResponse:
    return JSONResponse(
        status_code=409,
        content={
            "detail": describe_error(exc),
            "kind": "invalid_transition",
            "current_status": exc.current_status.value,
            "target_status": exc.target_status.value,
        },
    )


async def _not_found_handler(request: Request, exc: SubmissionNotFound) -> JSONResponse:
    return JSONResponse(status_code=404, content={"detail": str(exc), "kind": "not_found"})


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, _app_error_handler)
    app.add_exception_handler(InvalidTransitionError, _invalid_transition_handler)
    app.add_exception_handler(SubmissionNotFound, _not_found_handler)
