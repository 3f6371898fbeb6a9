"""
Exceptions raised by the suggestion pipeline.
"""


class CodeSuggestError(Exception):
    """Base class for all code suggestion errors."""


class LlmError(CodeSuggestError):
    """The language model endpoint failed or returned an error status."""

    def __init__(self, message: str, status_code: int = 0):
        super().__init__(message)
        self.status_code = status_code


class SuggestionNotFoundError(CodeSuggestError):
    """No suggestion exists with the requested id."""

    def __init__(self, suggestion_id: str):
        super().__init__(f"Suggestion not found: id={suggestion_id}")
        self.suggestion_id = suggestion_id


class InvalidStatusError(CodeSuggestError):
    """A status update used a value other than ACCEPTED, REJECTED or DISMISSED."""


class InvalidRequestError(CodeSuggestError):
    """An analysis request was malformed before any file was processed."""
