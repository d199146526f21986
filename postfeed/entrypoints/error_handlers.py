import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from postfeed.domain import exceptions

logger = logging.getLogger(__name__)

STATUS_BY_KIND = (
    (exceptions.ValidationError, status.HTTP_400_BAD_REQUEST),
    (exceptions.NotFoundError, status.HTTP_404_NOT_FOUND),
    (exceptions.AuthorizationError, status.HTTP_403_FORBIDDEN),
    (exceptions.ConflictError, status.HTTP_409_CONFLICT),
    (exceptions.StoreError, status.HTTP_503_SERVICE_UNAVAILABLE),
)


def status_for(exc: exceptions.DomainError) -> int:
    for kind, code in STATUS_BY_KIND:
        if isinstance(exc, kind):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def register_error_handlers(app: FastAPI) -> None:
    """Translate domain errors into HTTP responses by kind."""

    @app.exception_handler(exceptions.DomainError)
    async def domain_error_handler(request: Request, exc: exceptions.DomainError):
        code = status_for(exc)
        logger.error("%s on %s: %s (%d)", type(exc).__name__, request.url.path, exc, code)
        headers = {"Retry-After": "1"} if code == status.HTTP_503_SERVICE_UNAVAILABLE else None
        return JSONResponse(status_code=code, content={"detail": str(exc)}, headers=headers)
