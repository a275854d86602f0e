from __future__ import annotations


class PromptError(Exception):
    """Base class for errors raised by interactive prompts."""


class SourceError(PromptError):
    """The candidate source raised or its awaitable failed."""

    def __init__(self, query: str, cause: BaseException) -> None:
        super().__init__(str(cause) or cause.__class__.__name__)
        self.query = query
        self.cause = cause


class ValidationError(PromptError):
    """Raised by a ``validate`` callback to reject the current answer."""

    def __init__(self, message: str = "") -> None:
        super().__init__(message)
        self.message = message


class OutOfRangeSelection(PromptError, IndexError):
    """A selection index does not point at a selectable choice."""
