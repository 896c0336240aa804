"""
Custom exceptions for the Volar client library.
"""


class VolarError(Exception):
    """Base exception for Volar client errors."""
    pass


class ConfigurationError(VolarError):
    """Raised when client configuration is invalid."""
    pass


class ParameterError(VolarError):
    """Raised when a call is missing required parameters or uses reserved ones."""
    pass


class SigningError(VolarError):
    """Raised when the signing input cannot be encoded as ASCII."""
    pass


class TransportError(VolarError):
    """Raised when the HTTP request fails (connection error, timeout)."""
    pass


class ResponseParseError(VolarError):
    """Raised when the service response is not valid JSON."""

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.status_code = status_code


class UploadError(VolarError):
    """Raised when a file upload cannot be started."""
    pass


class StorageError(UploadError):
    """Raised when the storage provider rejects the upload."""
    pass
