"""Error taxonomy. Every failure maps to a per-request HTTP response."""

from __future__ import annotations


class MockAPIError(Exception):
    status_code = 400

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ParameterValidationError(MockAPIError):
    """Malformed or out-of-range request parameter, detected before generation."""


class GenerationLimitError(MockAPIError):
    """Generated tool-call arguments do not fit in max_tokens."""


class GenerationError(MockAPIError):
    """The content generator could not produce a payload for the request."""


class ModelNotFoundError(MockAPIError):
    status_code = 404
