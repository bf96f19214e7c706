"""
Mapping of errors onto HTTP responses.

Every error response uses the same envelope::

    {"errors": {"body": ["message", ...]}}

``Internal`` and ``Cancelled`` are logged with their traceback and answered
with a generic message so storage details never reach the client.
"""
import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from conduit import errors
from conduit.schemas import ErrorBody, GenericErrorModel

logger = logging.getLogger(__name__)

_STATUS_CODES: dict[type[errors.ConduitError], int] = {
    errors.InvalidCredentials: status.HTTP_401_UNAUTHORIZED,
    errors.TokenInvalid: status.HTTP_401_UNAUTHORIZED,
    errors.TokenExpired: status.HTTP_401_UNAUTHORIZED,
    errors.NotAuthorized: status.HTTP_403_FORBIDDEN,
    errors.AuthorCannotFavorite: status.HTTP_403_FORBIDDEN,
    errors.CannotFollowSelf: status.HTTP_403_FORBIDDEN,
    errors.UserNotFound: status.HTTP_404_NOT_FOUND,
    errors.ArticleNotFound: status.HTTP_404_NOT_FOUND,
    errors.CommentNotFound: status.HTTP_404_NOT_FOUND,
    errors.UsernameTaken: status.HTTP_409_CONFLICT,
    errors.EmailTaken: status.HTTP_409_CONFLICT,
    errors.ArticleAlreadyExists: status.HTTP_409_CONFLICT,
    errors.Internal: status.HTTP_500_INTERNAL_SERVER_ERROR,
    errors.Cancelled: status.HTTP_500_INTERNAL_SERVER_ERROR,
}

_GENERIC_MESSAGE = "internal server error"


def error_response(status_code: int, *messages: str, headers: dict | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=GenericErrorModel(errors=ErrorBody(body=list(messages))).model_dump(),
        headers=headers,
    )


def status_for(exc: errors.ConduitError) -> int:
    return _STATUS_CODES.get(type(exc), status.HTTP_500_INTERNAL_SERVER_ERROR)


async def conduit_error_handler(request: Request, exc: errors.ConduitError) -> JSONResponse:
    status_code = status_for(exc)
    if status_code >= 500:
        logger.error(
            "%s %s failed: %s",
            request.method,
            request.url.path,
            type(exc).__name__,
            exc_info=exc,
        )
        return error_response(status_code, _GENERIC_MESSAGE)
    if status_code == status.HTTP_401_UNAUTHORIZED:
        return error_response(status_code, exc.message, headers={"WWW-Authenticate": "Token"})
    return error_response(status_code, exc.message)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    messages = []
    for error in exc.errors():
        # Drop the leading "body"/"query"/"path" segment.
        field = ".".join(str(part) for part in error["loc"][1:])
        messages.append(f"{field}: {error['msg']}" if field else error["msg"])
    return error_response(status.HTTP_422_UNPROCESSABLE_ENTITY, *messages)


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return error_response(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(errors.ConduitError, conduit_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
