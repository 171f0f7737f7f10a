"""Exceptions raised by the prompt management client."""

from __future__ import annotations


class PromptClientError(Exception):
    """Base exception for prompt client errors."""
    pass


class PromptValidationError(PromptClientError):
    """
    Raised when a value does not match a prompt schema.

    Used both for outgoing request payloads and for response bodies that
    drift from the documented contract.
    """

    def __init__(self, message: str, errors: list[tuple[str, str]] | None = None):
        super().__init__(message)
        self.errors = errors or []

    @property
    def fields(self) -> list[str]:
        """Locations of the offending fields."""
        return [loc for loc, _ in self.errors]


class PromptRequestError(PromptClientError):
    """Raised when the remote call fails or returns a non-2xx status."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        body: str | None = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.body = body
