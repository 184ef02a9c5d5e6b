from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from ledgerbook.common.exceptions import LedgerbookError
from ledgerbook.logger_config import logger


def register_error_handlers(app: FastAPI):
    @app.exception_handler(LedgerbookError)
    async def handle_domain_error(request: Request, e: LedgerbookError):
        logger.info(f"{request.method} {request.url.path} -> {e.error}: {e.message}")
        return JSONResponse(
            status_code=e.status_code,
            content={
                "success": False,
                "message": e.message,
                "status_code": e.status_code,
                "error": e.error,
            },
        )

    # Handle request body / query validation (422)
    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, e: RequestValidationError):
        errors = jsonable_encoder(e.errors())
        message = "; ".join(
            f"{'.'.join(str(part) for part in err.get('loc', ()))}: {err.get('msg')}" for err in errors
        )
        return JSONResponse(
            status_code=422,
            content={
                "success": False,
                "message": message or "Invalid request",
                "status_code": 422,
                "error": "Validation Error",
                "details": errors,
            },
        )

    # Handle HTTP (e.g. 404, 400)
    @app.exception_handler(HTTPException)
    async def handle_http_exception(request: Request, e: HTTPException):
        return JSONResponse(
            status_code=e.status_code,
            content={
                "success": False,
                "message": e.detail,
                "status_code": e.status_code,
                "error": "HTTP Error",
            },
            headers=getattr(e, "headers", None),
        )

    # Handle all other exceptions (coding, DB errors, etc.)
    @app.exception_handler(Exception)
    async def handle_exception(request: Request, e: Exception):
        logger.exception("Unhandled exception occurred")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "success": False,
                "message": "Internal Server Error",
                "details": str(e),
                "status_code": 500,
            },
        )
