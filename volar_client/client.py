"""
Volar CMS API client.

This module provides the signed request dispatcher and the per-resource
calls (sites, broadcasts, video clips, templates, sections, playlists)
of the Volar client API.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Union

import requests

from .constants import (
    DEFAULT_BASE_URL,
    DEFAULT_CONFIG,
    PARAM_API_KEY,
    PARAM_SIGNATURE,
    ROUTE_BROADCAST,
    ROUTE_PLAYLIST,
    ROUTE_SECTION,
    ROUTE_SITES,
    ROUTE_TEMPLATE,
    ROUTE_VIDEOCLIP,
)
from .exceptions import (
    ConfigurationError,
    ParameterError,
    ResponseParseError,
    TransportError,
)
from .signing import build_signature, canonicalize, normalize_method, normalize_route
from .upload import UploadHandshakeClient

logger = logging.getLogger(__name__)

SITE_OR_SITES_REQUIRED = '"site" or "sites" parameter is required.'
SITE_REQUIRED = 'site is required'
ID_REQUIRED = 'id is required'


@dataclass
class SignedRequest:
    """A fully prepared request: final URL and parameters including the signature."""
    method: str
    route: str
    url: str
    params: Dict[str, str] = field(default_factory=dict)
    body: Optional[Union[str, bytes]] = None


class VolarClient:
    """
    Client for the Volar CMS API.

    All requests are signed with the api user's secret. Apart from ``sites``,
    every call needs the ``site`` parameter (or ``sites`` for listings),
    matching the slug of a site the api user has access to.
    """

    def __init__(self, api_key: str, secret: str, base_url: str = DEFAULT_BASE_URL, **config):
        """
        Initialize Volar client.

        Args:
            api_key: api key assigned to the api user
            secret: secret key assigned to the api user (never transmitted)
            base_url: domain of the Volar installation
            **config: Configuration options (secure, timeout, legacy_nested, user_agent)
        """
        self.api_key = api_key
        self.secret = secret
        self.base_url = (base_url or '').strip('/')

        # Merge default config with user overrides
        self.config = {**DEFAULT_CONFIG, **config}

        self._validate_config()

        self.session = requests.Session()
        self.session.headers['User-Agent'] = self.config['user_agent']

        self.uploads = UploadHandshakeClient(self)

    def _validate_config(self):
        """Validate client configuration."""
        if not self.api_key:
            raise ConfigurationError("api_key cannot be empty")

        if not self.secret:
            raise ConfigurationError("secret cannot be empty")

        if not self.base_url:
            raise ConfigurationError("base_url cannot be empty")

        if '://' in self.base_url:
            raise ConfigurationError("base_url must be a domain without a scheme; use secure=True for https")

        if self.config['timeout'] <= 0:
            raise ConfigurationError("timeout must be positive")

    @property
    def secure(self) -> bool:
        """Whether requests go over https."""
        return bool(self.config['secure'])

    @secure.setter
    def secure(self, value: bool):
        """Switch between http and https."""
        self.config['secure'] = bool(value)

    def build_url(self, route: str) -> str:
        """Build the full URL for an API route."""
        scheme = 'https' if self.secure else 'http'
        return f"{scheme}://{self.base_url}/{normalize_route(route)}"

    def prepare_request(self, route: str, method: str = '', params: Optional[Mapping[str, Any]] = None,
                        body: Optional[Union[str, bytes]] = None) -> SignedRequest:
        """
        Canonicalize the parameters and sign them.

        Args:
            route: API route
            method: HTTP method, GET when empty
            params: Request parameters (never ``api_key``/``signature``)
            body: Raw request body

        Returns:
            SignedRequest ready to send

        Raises:
            ParameterError: If a reserved parameter is supplied
            SigningError: If the signing input is not ASCII
        """
        method = normalize_method(method)
        canonical = canonicalize(params, legacy_nested=self.config['legacy_nested'])
        canonical[PARAM_API_KEY] = str(self.api_key)
        canonical[PARAM_SIGNATURE] = build_signature(self.secret, method, route, canonical, body)

        return SignedRequest(
            method=method,
            route=normalize_route(route),
            url=self.build_url(route),
            params=canonical,
            body=body,
        )

    def request(self, route: str, method: str = '', params: Optional[Mapping[str, Any]] = None,
                body: Optional[Union[str, bytes]] = None) -> Any:
        """
        Send a signed request and decode the JSON response.

        Authentication parameters always travel in the query string; for
        non-GET requests the body is sent as the raw payload.

        Returns:
            Decoded JSON response

        Raises:
            TransportError: If the HTTP request fails
            ResponseParseError: If the response is not JSON
        """
        signed = self.prepare_request(route, method, params, body)
        logger.debug("Sending %s request to %s", signed.method, signed.route)

        kwargs = {
            'params': signed.params,
            'timeout': self.config['timeout'],
        }
        if signed.method != 'GET' and signed.body is not None:
            kwargs['data'] = signed.body
            kwargs['headers'] = {'Content-Type': 'application/json'}

        try:
            response = self.session.request(signed.method, signed.url, **kwargs)
        except requests.RequestException as e:
            logger.error("%s %s failed: %s", signed.method, signed.route, e)
            raise TransportError(f"HTTP request failed: {e}") from e

        return self._parse_response(response)

    @staticmethod
    def _parse_response(response: requests.Response) -> Any:
        """Decode a JSON response; the service reports API errors in-band."""
        try:
            return response.json()
        except ValueError as e:
            logger.error("Invalid JSON response (HTTP %s)", response.status_code)
            raise ResponseParseError(
                f"Invalid JSON response (HTTP {response.status_code}): {response.text[:200]}",
                status_code=response.status_code,
            ) from e

    @staticmethod
    def _prepare_request_body(params: Mapping[str, Any]) -> str:
        """Encode a mutation payload as compact JSON."""
        return json.dumps(params, separators=(',', ':'))

    # Call patterns shared by the resources

    def _list(self, route: str, params: Optional[Mapping[str, Any]]) -> Any:
        params = dict(params or {})
        if params.get('site') is None and params.get('sites') is None:
            raise ParameterError(SITE_OR_SITES_REQUIRED)
        return self.request(route, 'GET', params)

    @staticmethod
    def _require_site(params: Mapping[str, Any], require_id: bool = True):
        if params.get('site') is None:
            raise ParameterError(SITE_REQUIRED)
        if require_id and params.get('id') is None:
            raise ParameterError(ID_REQUIRED)

    def _mutate(self, route: str, params: Optional[Mapping[str, Any]], require_id: bool = True) -> Any:
        params = dict(params or {})
        self._require_site(params, require_id)
        site = params.pop('site')
        return self.request(route, 'POST', {'site': site}, self._prepare_request_body(params))

    def _site_get(self, route: str, params: Optional[Mapping[str, Any]], file_path: Optional[str] = None) -> Any:
        params = dict(params or {})
        self._require_site(params)
        if file_path:
            params.update(self.uploads.prepare_upload(file_path))
        return self.request(route, 'GET', params)

    # Sites

    def sites(self, params: Optional[Mapping[str, Any]] = None) -> Any:
        """
        List the sites the api user has access to.

        Optional params: 'id', 'slug', 'title', 'page', 'per_page',
        'sort_by', 'sort_dir'.
        """
        return self.request(ROUTE_SITES, 'GET', params)

    # Broadcasts

    def broadcasts(self, params: Optional[Mapping[str, Any]] = None) -> Any:
        """
        List broadcasts.

        Requires 'site' or 'sites'. Optional params include 'list'
        ('all', 'archived', 'scheduled', 'upcoming', 'streaming', ...),
        'page', 'per_page', 'section_id', 'playlist_id', 'id', 'title',
        'autoplay', 'embed_width', 'before', 'after', 'sort_by', 'sort_dir'.
        """
        return self._list(ROUTE_BROADCAST, params)

    def broadcast_create(self, params: Optional[Mapping[str, Any]] = None) -> Any:
        """Create a broadcast; every param except 'site' is sent in the JSON body."""
        return self._mutate(f"{ROUTE_BROADCAST}/create", params, require_id=False)

    def broadcast_update(self, params: Optional[Mapping[str, Any]] = None) -> Any:
        """Update the broadcast given by 'id'."""
        return self._mutate(f"{ROUTE_BROADCAST}/update", params)

    def broadcast_delete(self, params: Optional[Mapping[str, Any]] = None) -> Any:
        """Delete the broadcast given by 'id'."""
        return self._mutate(f"{ROUTE_BROADCAST}/delete", params)

    def broadcast_assign_playlist(self, params: Optional[Mapping[str, Any]] = None) -> Any:
        """Assign broadcast 'id' to playlist 'playlist_id'."""
        return self._site_get(f"{ROUTE_BROADCAST}/assignplaylist", params)

    def broadcast_remove_playlist(self, params: Optional[Mapping[str, Any]] = None) -> Any:
        """Remove broadcast 'id' from playlist 'playlist_id'."""
        return self._site_get(f"{ROUTE_BROADCAST}/removeplaylist", params)

    def broadcast_poster(self, params: Optional[Mapping[str, Any]] = None, file_path: Optional[str] = None) -> Any:
        """Set the poster of broadcast 'id', uploading ``file_path`` first when given."""
        return self._site_get(f"{ROUTE_BROADCAST}/poster", params, file_path)

    def broadcast_archive(self, params: Optional[Mapping[str, Any]] = None, file_path: Optional[str] = None) -> Any:
        """Archive broadcast 'id', uploading ``file_path`` as the archived video when given."""
        return self._site_get(f"{ROUTE_BROADCAST}/archive", params, file_path)

    # Video clips

    def videoclips(self, params: Optional[Mapping[str, Any]] = None) -> Any:
        """List video clips. Requires 'site' or 'sites'."""
        return self._list(ROUTE_VIDEOCLIP, params)

    def videoclip_create(self, params: Optional[Mapping[str, Any]] = None) -> Any:
        """Create a video clip; every param except 'site' is sent in the JSON body."""
        return self._mutate(f"{ROUTE_VIDEOCLIP}/create", params, require_id=False)

    def videoclip_update(self, params: Optional[Mapping[str, Any]] = None) -> Any:
        """Update the video clip given by 'id'."""
        return self._mutate(f"{ROUTE_VIDEOCLIP}/update", params)

    def videoclip_delete(self, params: Optional[Mapping[str, Any]] = None) -> Any:
        """Delete the video clip given by 'id'."""
        return self._mutate(f"{ROUTE_VIDEOCLIP}/delete", params)

    def videoclip_assign_playlist(self, params: Optional[Mapping[str, Any]] = None) -> Any:
        """Assign video clip 'id' to playlist 'playlist_id'."""
        return self._site_get(f"{ROUTE_VIDEOCLIP}/assignplaylist", params)

    def videoclip_remove_playlist(self, params: Optional[Mapping[str, Any]] = None) -> Any:
        """Remove video clip 'id' from playlist 'playlist_id'."""
        return self._site_get(f"{ROUTE_VIDEOCLIP}/removeplaylist", params)

    def videoclip_poster(self, params: Optional[Mapping[str, Any]] = None, file_path: Optional[str] = None) -> Any:
        """Set the poster of video clip 'id', uploading ``file_path`` first when given."""
        return self._site_get(f"{ROUTE_VIDEOCLIP}/poster", params, file_path)

    def videoclip_archive(self, params: Optional[Mapping[str, Any]] = None, file_path: Optional[str] = None) -> Any:
        """Archive video clip 'id', uploading ``file_path`` as the archived video when given."""
        return self._site_get(f"{ROUTE_VIDEOCLIP}/archive", params, file_path)

    # Templates

    def templates(self, params: Optional[Mapping[str, Any]] = None) -> Any:
        """List broadcast templates. Requires 'site'."""
        params = dict(params or {})
        if params.get('site') is None:
            raise ParameterError('"site" parameter is required')
        return self.request(ROUTE_TEMPLATE, 'GET', params)

    def template_create(self, params: Optional[Mapping[str, Any]] = None) -> Any:
        """Create a broadcast template; every param except 'site' is sent in the JSON body."""
        return self._mutate(f"{ROUTE_TEMPLATE}/create", params, require_id=False)

    def template_update(self, params: Optional[Mapping[str, Any]] = None) -> Any:
        """Update the template given by 'id'."""
        return self._mutate(f"{ROUTE_TEMPLATE}/update", params)

    def template_delete(self, params: Optional[Mapping[str, Any]] = None) -> Any:
        """Delete the template given by 'id'."""
        return self._mutate(f"{ROUTE_TEMPLATE}/delete", params)

    # Sections

    def sections(self, params: Optional[Mapping[str, Any]] = None) -> Any:
        """List sections. Requires 'site' or 'sites'."""
        return self._list(ROUTE_SECTION, params)

    # Playlists

    def playlists(self, params: Optional[Mapping[str, Any]] = None) -> Any:
        """List playlists. Requires 'site' or 'sites'."""
        return self._list(ROUTE_PLAYLIST, params)

    def playlist_create(self, params: Optional[Mapping[str, Any]] = None) -> Any:
        """Create a playlist; every param except 'site' is sent in the JSON body."""
        return self._mutate(f"{ROUTE_PLAYLIST}/create", params, require_id=False)

    def playlist_update(self, params: Optional[Mapping[str, Any]] = None) -> Any:
        """Update the playlist given by 'id'."""
        return self._mutate(f"{ROUTE_PLAYLIST}/update", params)

    def playlist_delete(self, params: Optional[Mapping[str, Any]] = None) -> Any:
        """Delete the playlist given by 'id'."""
        return self._mutate(f"{ROUTE_PLAYLIST}/delete", params)

    def close(self):
        """Close HTTP session."""
        if self.session:
            self.session.close()

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
