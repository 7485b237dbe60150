"""
API error taxonomy.

Services raise these; the exception handlers registered in main.py
render them as JSON with the matching HTTP status.
"""

from typing import Any, Optional


class ApiError(Exception):
    """Base class for errors surfaced directly to API callers."""

    status_code: int = 500

    def __init__(
        self,
        message: str,
        details: Optional[list[dict[str, Any]]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.details = details or []

    @property
    def name(self) -> str:
        return self.__class__.__name__

    def to_dict(self) -> dict[str, Any]:
        """Convert error to response body."""
        body: dict[str, Any] = {"name": self.name, "message": self.message}
        if self.details:
            body["details"] = self.details
        return body

    def __repr__(self) -> str:
        return f"{self.name}(message='{self.message}')"


class BadRequestError(ApiError):
    status_code = 400


class UnauthorizedError(ApiError):
    status_code = 401

    def __init__(self, message: str = "You must provide a valid API token"):
        super().__init__(message)


class ForbiddenError(ApiError):
    status_code = 403


class NotFoundError(ApiError):
    status_code = 404


class MethodNotAllowedError(ApiError):
    status_code = 405

    def __init__(self, message: str = "The requested method is not supported"):
        super().__init__(message)


class NameExistsError(ApiError):
    status_code = 409
