"""Exceptions raised by the X-ray analysis core and mapped to HTTP responses by the API."""


class AnalysisError(Exception):
    """The uploaded image could not be analyzed (missing, wrong type, too large)."""


class VisionConfigurationError(AnalysisError):
    """The vision service cannot be called because credentials are missing."""


class VisionUnavailableError(Exception):
    """Every configured vision model was tried and none produced a description."""

    def __init__(self, message: str, last_error: str = ""):
        super().__init__(message)
        self.last_error = last_error
