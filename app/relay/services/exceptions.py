"""
Shared exceptions for the extraction and dispatch services.
"""


class RelayError(Exception):
    """Base class for every failure the relay pipeline reports."""

    pass


class InvalidInputError(RelayError):
    """Raised when the caller's input is missing or malformed."""

    pass


class UpstreamExtractionError(RelayError):
    """Raised when the generative model call fails or returns no text."""

    pass


class MalformedResponseError(RelayError):
    """Raised when the model's text cannot be coerced into records."""

    def __init__(self, message: str, raw_text: str = ""):
        super().__init__(message)
        self.raw_text = raw_text


class DispatchTransportError(RelayError):
    """Raised when a webhook call fails at the transport level."""

    def __init__(self, message: str, imei: str = "", sheet_name: str = ""):
        super().__init__(message)
        self.imei = imei
        self.sheet_name = sheet_name
