"""
Error taxonomy shared by the geo client, the analysis engine and the HTTP layer.

GeoQueryClient raises these to its caller. AnalysisEngine and
ConversationAssistant catch them and return fallback values instead.
"""
from typing import Optional


class MapsAssistantError(Exception):
    """Base class for every error raised by the maps assistant."""

    def __init__(self, message: str, details: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.details = details
        # Rendered HTML shown to the user when a map session cannot start
        self.diagnostic_html: Optional[str] = None

    def to_payload(self) -> dict:
        return {"error": self.message, "details": self.details or self.message}


class InvalidInputError(MapsAssistantError):
    """Missing or malformed required input. Never retried."""


class SessionActiveError(InvalidInputError):
    """A map session is already live on this client."""


class ProviderError(MapsAssistantError):
    """The geospatial provider answered with a non-OK status or could not be reached."""

    def __init__(
        self,
        message: str,
        status: Optional[str] = None,
        details: Optional[str] = None,
    ):
        super().__init__(message, details=details or status)
        self.status = status


class ParseError(MapsAssistantError):
    """The language model returned text that is not the expected JSON object."""


class UnknownError(MapsAssistantError):
    """Any other failure, wrapped with its message for diagnostics."""

    @classmethod
    def wrap(cls, exc: Exception) -> "UnknownError":
        if isinstance(exc, UnknownError):
            return exc
        return cls(str(exc) or exc.__class__.__name__, details=repr(exc))
