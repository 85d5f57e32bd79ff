"""Domain errors raised by services and the quiz session engine.

Routers translate these into HTTP responses; services never raise
``HTTPException`` themselves.
"""


class LMSError(Exception):
    """Base class for all domain errors."""


class NotFoundError(LMSError):
    """A quiz, its questions or a classroom could not be loaded."""


class QuizStateError(LMSError):
    """The quiz session is not in a state that allows the operation."""


class AttemptExistsError(LMSError):
    """The student already has an attempt for this quiz."""


class PersistenceError(LMSError):
    """A write against the store failed. Safe to retry."""


class PartialWriteError(PersistenceError):
    """The attempt row was written, the answers were not, and the orphan could not be removed."""

    def __init__(self, message: str, attempt_id=None):
        super().__init__(message)
        self.attempt_id = attempt_id


class StoreReadError(LMSError):
    """A read against the store failed."""


class AggregationReadError(LMSError):
    """A read failed while computing analytics; no partial result is produced."""
