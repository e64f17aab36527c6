"""Error taxonomy shared by every component.

Learn: A closed set of error kinds instead of ad-hoc strings. Each error
carries a machine-readable `code`; the HTTP layer maps kinds to status
codes in one place (api/errors.py). Internal context (why a token was
rejected, which constraint fired) goes to the log, never to the caller.
"""


class AuthGateError(Exception):
    """Base class for all domain errors."""

    code = "error"
    retryable = False

    def __init__(self, message: str = ""):
        super().__init__(message or self.__class__.__doc__ or self.code)
        self.message = message


class VerificationError(AuthGateError):
    """Credential is invalid or expired."""

    code = "invalid_credential"


class NotFoundError(AuthGateError):
    """Requested record does not exist."""

    code = "not_found"


class ConflictError(AuthGateError):
    """Record conflicts with an existing one."""

    code = "conflict"


class StoreUnavailableError(AuthGateError):
    """Datastore is unreachable or timed out."""

    code = "store_unavailable"
    retryable = True


class ValidationError(AuthGateError):
    """Input failed validation."""

    code = "validation_error"
