"""Shared router dependencies and domain-error translation."""

from fastapi import HTTPException, Request, status

from lms.exceptions import (
    AggregationReadError,
    AttemptExistsError,
    LMSError,
    NotFoundError,
    PersistenceError,
    QuizStateError,
    StoreReadError,
)
from lms.services.session_registry import QuizSessionRegistry
from lms.services.store import LearningStore

_STATUS_BY_ERROR = (
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (AttemptExistsError, status.HTTP_409_CONFLICT),
    (QuizStateError, status.HTTP_409_CONFLICT),
    (PersistenceError, status.HTTP_503_SERVICE_UNAVAILABLE),
    (StoreReadError, status.HTTP_503_SERVICE_UNAVAILABLE),
    (AggregationReadError, status.HTTP_503_SERVICE_UNAVAILABLE),
)


def get_store(request: Request) -> LearningStore:
    return request.app.state.store


def get_quiz_sessions(request: Request) -> QuizSessionRegistry:
    return request.app.state.quiz_sessions


def http_error(exc: LMSError) -> HTTPException:
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return HTTPException(status_code=status_code, detail=str(exc))
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
