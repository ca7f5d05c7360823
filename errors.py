"""
Error types raised by the encoder, the AI backends and the upload controller.
Every error carries a message that is safe to show to the user as-is.
"""


class ScatIdentifierError(Exception):
    """Base class for all user-facing errors."""

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message


class ValidationError(ScatIdentifierError):
    """The selected file is not an image or is too large."""


class ReadError(ScatIdentifierError):
    """The image bytes could not be read from the file or stream."""


class AnalysisError(ScatIdentifierError):
    """The AI service call failed or returned an unusable response."""


class AnalysisInProgressError(ScatIdentifierError):
    """An analysis was triggered while another one is still outstanding."""
