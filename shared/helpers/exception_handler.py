import logging
from fastapi import FastAPI, Request
from starlette.exceptions import HTTPException
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import OperationalError
from shared.core.schemas import JsonOutResult
from shared.utils.app_status_code import AppStatusCode

logger = logging.getLogger(__name__)


def _failure(message: str, status_code: str) -> dict:
    return JsonOutResult(
        data=None,
        status="Failure",
        status_code=status_code,
        message=message
    ).model_dump()


def setup_exception_handlers(app: FastAPI):

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        # error_response() already carries a JsonOutResult body
        if isinstance(exc.detail, dict) and {"status", "status_code", "message"}.issubset(exc.detail.keys()):
            wrapped = exc.detail
        else:
            wrapped = _failure(str(exc.detail), str(exc.status_code))
        return JSONResponse(content=wrapped, status_code=exc.status_code, headers=exc.headers)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        wrapped = _failure("Invalid input", AppStatusCode.INVALID_INPUT)
        # raw inputs may hold non-finite floats that JSON cannot carry
        wrapped["data"] = jsonable_encoder([
            {"loc": e.get("loc"), "msg": e.get("msg"), "type": e.get("type")}
            for e in exc.errors()
        ])
        return JSONResponse(content=wrapped, status_code=422)

    @app.exception_handler(OperationalError)
    async def database_exception_handler(request: Request, exc: OperationalError):
        logger.error("Database unavailable on %s: %s", request.url.path, exc)
        wrapped = _failure(
            "Database is temporarily unavailable, please retry",
            AppStatusCode.SERVICE_UNAVAILABLE)
        return JSONResponse(content=wrapped, status_code=503, headers={"Retry-After": "5"})

    # Catch all unhandled exceptions
    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled exception on %s", request.url.path)
        wrapped = _failure("Internal Server Error", AppStatusCode.OPERATION_FAILED)
        return JSONResponse(content=wrapped, status_code=500)
