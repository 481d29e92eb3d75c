"""Error taxonomy for credential and token handling.

Route handlers raise these (or let them propagate from the core); the handlers
registered in ``app.main`` turn them into HTTP responses.
"""


class TutorPocketError(Exception):
    """Base class carrying a caller-safe message."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(TutorPocketError):
    """User-correctable policy violation; message is shown verbatim."""

    status_code = 400


class AuthenticationFailure(TutorPocketError):
    """Bad credentials or a bad/expired token. Message stays generic."""

    status_code = 401


class InternalFailure(TutorPocketError):
    """A hashing or signing primitive failed. Cause is logged, not exposed."""

    status_code = 500
