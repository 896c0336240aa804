"""
Constants for the Volar client library.
Routes and defaults match the Volar CMS client API.
"""

DEFAULT_BASE_URL = "vcloud.volarvideo.com"

# Authentication parameters injected on every request
PARAM_API_KEY = "api_key"
PARAM_SIGNATURE = "signature"
RESERVED_PARAMS = frozenset((PARAM_API_KEY, PARAM_SIGNATURE))

# base64 of a SHA-256 digest is 44 chars; the service keeps the first 43
SIGNATURE_LENGTH = 43

# Default configuration values
DEFAULT_CONFIG = {
    'secure': False,            # use https instead of http
    'timeout': 30,              # HTTP timeout in seconds
    'legacy_nested': False,     # reproduce the old nested-parameter flattening
    'user_agent': 'volar-python-client',
}

# API routes
ROUTE_SITES = "api/client/info"
ROUTE_BROADCAST = "api/client/broadcast"
ROUTE_VIDEOCLIP = "api/client/videoclip"
ROUTE_TEMPLATE = "api/client/template"
ROUTE_SECTION = "api/client/section"
ROUTE_PLAYLIST = "api/client/playlist"
ROUTE_S3_HANDSHAKE = "api/client/broadcast/s3handshake"

# Parameters merged into poster/archive calls after an upload
PARAM_TMP_FILE_ID = "tmp_file_id"
PARAM_TMP_FILE_NAME = "tmp_file_name"
