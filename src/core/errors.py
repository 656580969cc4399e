"""Error taxonomy for the semantic organization engine."""

from typing import Optional


class SemanticEngineError(Exception):
    """Base class for all engine errors."""


class InputError(SemanticEngineError, ValueError):
    """Caller-supplied input that has no safe default (e.g. k > n)."""


class ProviderError(SemanticEngineError):
    """
    An external collaborator (embedding or labeling service) failed or
    returned malformed output.

    Args:
        message: Human readable description
        provider: Name of the failing provider (e.g. "gemini", "claude")
    """

    def __init__(self, message: str, provider: Optional[str] = None):
        super().__init__(message)
        self.provider = provider

    def __str__(self) -> str:
        message = super().__str__()
        if self.provider:
            return f"[{self.provider}] {message}"
        return message
