"""Error taxonomy for the quiz session engine.

Every error carries a message that can be shown to the learner as-is.
Components catch failures at their own boundary and re-raise (or record)
one of these types.
"""


class QuizError(Exception):
    """Base class for all quiz engine errors."""

    default_message = "Something went wrong, please try again"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return str(self)


class ServiceError(QuizError):
    """A remote collaborator failed (transport error or non-2xx status)."""

    default_message = "The service is unavailable, please try again later"

    def __init__(self, message: str | None = None, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class NotFoundError(ServiceError):
    """A remote collaborator answered 404."""

    default_message = "Not found"

    def __init__(self, message: str | None = None):
        super().__init__(message, status_code=404)


class TransientFetchError(QuizError):
    default_message = "Failed to refresh question status, retrying shortly"


class SessionExpiredError(QuizError):
    """The generation session is gone (expired or never existed)."""

    default_message = "The generation session has expired"


class HardResumeFailure(QuizError):
    default_message = (
        "Could not restore this practice session, please restart it from the history list"
    )


class AnswerValidationError(QuizError):
    default_message = "Please answer the question before continuing"


class PersistenceFailure(QuizError):
    default_message = "Progress could not be saved, your answers are kept locally"


class FinalizationFailure(QuizError):
    default_message = "Failed to build the report, please try again"


class SessionNotFoundError(QuizError):
    default_message = "Session not found"


class SessionNotEditableError(QuizError):
    default_message = "Only in-progress sessions can be updated"


def get_error_message(error: BaseException | None, fallback: str) -> str:
    """Extract a displayable message from an error, or use the fallback."""
    if isinstance(error, QuizError) and error.message.strip():
        return error.message
    if error is not None and str(error).strip():
        return str(error)
    return fallback
