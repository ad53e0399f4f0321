"""Errors raised at the pipeline's collaborator seams."""


class InvalidEventError(ValueError):
    """Raised when a message event lacks the fields needed to identify its thread."""


class PlatformError(RuntimeError):
    """Raised when the chat platform read API fails (network, auth, rate limit)."""


class ClassifierError(RuntimeError):
    """Raised when the classification engine request fails or returns nothing."""
