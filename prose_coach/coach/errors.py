"""Errors surfaced by a coaching turn."""


class CoachError(Exception):
    """Base class for failures the caller must report to the user."""
    pass


class CoachInputError(CoachError):
    """A required request field is missing. Never retried."""
    pass


class UpstreamError(CoachError):
    """The language model could not produce a reply."""
    pass


class ModelNotConfiguredError(UpstreamError):
    """No credential for the model and mock mode is off."""
    pass


class ModelUnavailableError(UpstreamError):
    """Every attempt to call the model failed."""

    def __init__(self, message: str, attempts: int):
        super().__init__(message)
        self.attempts = attempts
