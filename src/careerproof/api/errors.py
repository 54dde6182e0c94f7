from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from careerproof.errors import CareerProofError

logger = logging.getLogger(__name__)


def attach_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(CareerProofError)
    async def _domain_error(request: Request, exc: CareerProofError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.warning("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(RequestValidationError)
    async def _invalid_request(request: Request, exc: RequestValidationError) -> JSONResponse:
        # Raw inputs are dropped: non-finite floats cannot be rendered as JSON.
        detail = [{"loc": list(error.get("loc", ())), "msg": error.get("msg", "")} for error in exc.errors()]
        return JSONResponse(status_code=422, content={"error": "Invalid request", "detail": detail})

    @app.exception_handler(Exception)
    async def _unhandled(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled: %s", exc)
        return JSONResponse(status_code=500, content={"error": "Internal Server Error"})
