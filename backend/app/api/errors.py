from fastapi import HTTPException, status

from app.services.errors import (
    InterruptionLimitError,
    InterruptionNotFoundError,
    InvalidTransitionError,
    LLMResponseError,
    MissingCredentialError,
    ReactionAlreadySetError,
    ReportNotReadyError,
    SessionNotFoundError,
)


def to_http_exception(exc: Exception) -> HTTPException:
    if isinstance(exc, SessionNotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Session not found")
    if isinstance(exc, InterruptionNotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Interruption not found")
    if isinstance(exc, (InvalidTransitionError, ReactionAlreadySetError, InterruptionLimitError, ReportNotReadyError)):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    if isinstance(exc, MissingCredentialError):
        return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc))
    if isinstance(exc, LLMResponseError):
        return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc))
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))


# Everything the API layer knows how to translate.
DOMAIN_ERRORS = (
    SessionNotFoundError,
    InterruptionNotFoundError,
    ValueError,
    MissingCredentialError,
    LLMResponseError,
)
