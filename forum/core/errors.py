from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException

from forum.core.logger import get_logger

logger = get_logger(__name__)


class ForumError(Exception):
    """
    Base class for failures reported to the client as {"error": message}.
    """

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Request failed"

    def __init__(self, message: str = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(ForumError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Missing required fields"


class ConflictError(ForumError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Already exists"


class AuthError(ForumError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Authentication required"


class ForbiddenError(ForumError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Admin access required"


class NotFoundError(ForumError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class PayloadTooLargeError(ForumError):
    status_code = status.HTTP_413_REQUEST_ENTITY_TOO_LARGE
    default_message = "File too large"


class UnsupportedMediaError(ForumError):
    status_code = status.HTTP_415_UNSUPPORTED_MEDIA_TYPE
    default_message = "Only image files are allowed!"


class StoreError(ForumError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Database error"


def _error_response(status_code: int, message: str, headers=None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message}, headers=headers)


def _describe_validation_errors(exc: RequestValidationError) -> str:
    fields = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
        if loc:
            fields.append(".".join(loc))
    if not fields:
        return "Invalid request"
    return "Invalid or missing fields: " + ", ".join(dict.fromkeys(fields))


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(ForumError)
    async def forum_error(request: Request, exc: ForumError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return _error_response(exc.status_code, exc.message)

    @app.exception_handler(HTTPException)
    async def http_error(request: Request, exc: HTTPException):
        return _error_response(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError):
        message = _describe_validation_errors(exc)
        logger.info("Rejected %s %s: %s", request.method, request.url.path, message)
        return _error_response(status.HTTP_400_BAD_REQUEST, message)

    @app.exception_handler(SQLAlchemyError)
    async def store_error(request: Request, exc: SQLAlchemyError):
        logger.exception("Database error on %s %s", request.method, request.url.path)
        return _error_response(StoreError.status_code, StoreError.default_message)
