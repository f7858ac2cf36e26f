"""Exception hierarchy shared by the backend client, content providers and session layer."""

from enum import StrEnum


class LearnSphereError(Exception):
    """Base class for all recoverable application errors."""

    kind = "error"


class BackendError(LearnSphereError):
    """The learning backend answered with a non-2xx status."""

    kind = "backend_error"

    def __init__(self, message: str, status_code: int | None = None, endpoint: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.endpoint = endpoint


class BackendUnavailableError(BackendError):
    """The backend could not be reached at all."""

    kind = "backend_unavailable"


class BackendNotConfiguredError(BackendError):
    kind = "backend_not_configured"


class AuthErrorKind(StrEnum):
    USER_NOT_FOUND = "user_not_found"
    BAD_CREDENTIALS = "bad_credentials"
    GENERIC = "generic"


class AuthError(LearnSphereError):
    kind = "auth_error"

    def __init__(self, message: str, error_kind: AuthErrorKind = AuthErrorKind.GENERIC):
        super().__init__(message)
        self.error_kind = error_kind


class ContentGenerationError(LearnSphereError):
    """Lesson, quiz or chat generation failed; message is shown to the learner."""

    kind = "content_error"


class NavigationError(LearnSphereError):
    kind = "navigation_error"


class IncompleteQuizError(LearnSphereError):
    kind = "incomplete_quiz"


class RequestInFlightError(LearnSphereError):
    kind = "request_in_flight"
