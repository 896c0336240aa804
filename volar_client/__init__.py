"""
Volar Client Library

A Python client for the Volar video CMS API. Requests are signed with the
api user's secret; files for posters and archives are handed to S3 through
a signed upload handshake.

Example usage:
    from volar_client import VolarClient

    client = VolarClient("your-api-key", "your-secret", secure=True)
    sites = client.sites()
    broadcasts = client.broadcasts({"site": "my-site", "list": "upcoming"})
"""

from .client import VolarClient, SignedRequest
from .signing import build_signature, canonicalize, normalize_route
from .upload import UploadHandshakeClient, UploadTicket
from .exceptions import (
    VolarError,
    ConfigurationError,
    ParameterError,
    SigningError,
    TransportError,
    ResponseParseError,
    UploadError,
    StorageError
)
from .constants import (
    DEFAULT_BASE_URL,
    DEFAULT_CONFIG,
)

__version__ = "1.0.0"
__all__ = [
    "VolarClient",
    "SignedRequest",
    "UploadHandshakeClient",
    "UploadTicket",
    "build_signature",
    "canonicalize",
    "normalize_route",
    "VolarError",
    "ConfigurationError",
    "ParameterError",
    "SigningError",
    "TransportError",
    "ResponseParseError",
    "UploadError",
    "StorageError",
    "DEFAULT_BASE_URL",
    "DEFAULT_CONFIG",
]
