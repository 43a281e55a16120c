"""Exception hierarchy for the viewer core.

Every failure in this system degrades to a skipped input unit or a fallback
value; these exceptions are the conditions that must still reach the user.
The API layer maps each one to an HTTP status code.
"""


class ProcviewError(Exception):
    """Base class for all domain errors."""


class NoValidSamplesError(ProcviewError):
    """Raised when ingestion produced zero valid samples."""

    def __init__(self, message: str = "No valid lines found. Check the JSON lines format.") -> None:
        super().__init__(message)


class MissingCredentialError(ProcviewError):
    """Raised before any network attempt when the LLM API key is not configured."""


class StreamActiveError(ProcviewError):
    """Raised for operations that are not allowed while the live stream is running."""


class AnalysisInProgressError(ProcviewError):
    """Raised when an analysis is requested while another one is still running."""


class NoAnalysisError(ProcviewError):
    """Raised when saving with no current analysis."""


class EmptyViewError(ProcviewError):
    """Raised when an analysis is requested for a view with no samples."""
