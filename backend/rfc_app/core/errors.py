"""API error classes.

Every error the core raises carries a machine-readable code, a message and
the HTTP status the web layer should answer with.
"""


class APIError(Exception):
    """Base class for API errors.

    All API errors have a code, message, and HTTP status.
    Subclasses set default status_code.

    Attributes:
        code: Machine-readable error code (e.g., "NOT_FOUND").
        message: Human-readable error message.
        status_code: HTTP status code to return.
        details: Optional list of additional error details.
    """

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 500,
        details: list[dict] | None = None,
    ) -> None:
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details
        super().__init__(message)


class ValidationError(APIError):
    """Field validation failed (400).

    Use for empty comment bodies, malformed input, etc.
    """

    def __init__(
        self,
        message: str,
        details: list[dict] | None = None,
    ) -> None:
        super().__init__(
            code="VALIDATION_ERROR",
            message=message,
            status_code=400,
            details=details,
        )


class UnauthorizedError(APIError):
    """Authentication required (401).

    Use when no valid session cookie is provided.
    """

    def __init__(
        self, message: str = "Authentication required", code: str = "UNAUTHORIZED"
    ) -> None:
        super().__init__(
            code=code,
            message=message,
            status_code=401,
        )


class AuthFailure(UnauthorizedError):
    """Login code rejected (401).

    Raised for a wrong, expired, already used or never issued code alike.
    The message never says which, so the endpoint cannot be used as an
    oracle for whether a code exists.
    """

    def __init__(self) -> None:
        super().__init__(
            message="Invalid or expired code",
            code="INVALID_LOGIN_CODE",
        )


class NotFoundError(APIError):
    """Resource not found (404).

    Use when a referenced user (or other record) does not exist.
    """

    def __init__(self, resource: str, resource_id: str | None = None) -> None:
        if resource_id:
            message = f"{resource} with id '{resource_id}' not found"
        else:
            message = f"{resource} not found"
        super().__init__(
            code="NOT_FOUND",
            message=message,
            status_code=404,
        )


class ConflictError(APIError):
    """Duplicate or conflicting resource (409).

    Use for unique constraint violations. Accepts custom code for
    specific conflict types.
    """

    def __init__(
        self,
        code: str,
        message: str,
        details: list[dict] | None = None,
    ) -> None:
        super().__init__(
            code=code,
            message=message,
            status_code=409,
            details=details,
        )


class StoreError(APIError):
    """Storage unreachable or corrupt (503).

    Fatal for the current operation. Never retried internally; the caller
    decides whether to try again.
    """

    def __init__(
        self,
        message: str = "The data store is unavailable",
        code: str = "STORE_UNAVAILABLE",
    ) -> None:
        super().__init__(
            code=code,
            message=message,
            status_code=503,
        )


class SchemaError(StoreError):
    """Schema migration could not complete (503).

    Raised by ensure_schema(). There is no safe partially migrated state,
    so the process must not serve traffic after this.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message=message, code="SCHEMA_MIGRATION_FAILED")
