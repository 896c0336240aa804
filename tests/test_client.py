"""
Unit tests for the Volar client dispatcher and resource calls.
"""

import json
from unittest.mock import Mock, patch

import pytest
import requests

from volar_client import (
    VolarClient,
    ConfigurationError,
    ParameterError,
    ResponseParseError,
    TransportError,
    build_signature,
)


def json_response(data, status_code=200):
    response = Mock()
    response.status_code = status_code
    response.json.return_value = data
    response.text = json.dumps(data)
    return response


class TestVolarClient:
    """Test Volar client functionality."""

    @pytest.fixture
    def client(self):
        """Create test client."""
        return VolarClient("k", "s")

    @pytest.fixture
    def mock_request(self):
        with patch('volar_client.client.requests.Session.request') as mock_request:
            mock_request.return_value = json_response({"success": True})
            yield mock_request

    def test_init_default_config(self):
        """Test client initialization with default config."""
        client = VolarClient("key", "secret")

        assert client.api_key == "key"
        assert client.secret == "secret"
        assert client.base_url == "vcloud.volarvideo.com"
        assert client.secure is False
        assert client.config['timeout'] == 30
        assert client.config['legacy_nested'] is False

    def test_init_custom_config(self):
        """Test client initialization with custom config."""
        client = VolarClient("key", "secret", "example.com/", secure=True, timeout=60)

        assert client.base_url == "example.com"
        assert client.secure is True
        assert client.config['timeout'] == 60

    def test_init_invalid_config(self):
        """Test client initialization with invalid config."""
        with pytest.raises(ConfigurationError):
            VolarClient("", "secret")

        with pytest.raises(ConfigurationError):
            VolarClient("key", "")

        with pytest.raises(ConfigurationError):
            VolarClient("key", "secret", "https://example.com")

        with pytest.raises(ConfigurationError):
            VolarClient("key", "secret", timeout=0)

    def test_build_url(self, client):
        assert client.build_url("/api/client/info/") == "http://vcloud.volarvideo.com/api/client/info"

        client.secure = True
        assert client.build_url("api/client/info") == "https://vcloud.volarvideo.com/api/client/info"

    def test_prepare_request(self, client):
        signed = client.prepare_request("api/client/broadcast", "", {"site": "demo", "page": 2})

        assert signed.method == "GET"
        assert signed.url == "http://vcloud.volarvideo.com/api/client/broadcast"
        assert signed.params["api_key"] == "k"
        assert signed.params["signature"] == build_signature(
            "s", "GET", "api/client/broadcast", {"site": "demo", "page": "2", "api_key": "k"}
        )

    def test_prepare_request_reserved_param(self, client):
        with pytest.raises(ParameterError):
            client.prepare_request("api/client/info", "GET", {"signature": "forged"})

    def test_sites_request(self, client, mock_request):
        """Listing sites sends a signed GET with only api_key and signature."""
        mock_request.return_value = json_response({"sites": [], "num_results": 0})

        result = client.sites({})

        assert result == {"sites": [], "num_results": 0}
        mock_request.assert_called_once()
        args, kwargs = mock_request.call_args
        assert args == ("GET", "http://vcloud.volarvideo.com/api/client/info")
        assert kwargs['params'] == {
            "api_key": "k",
            "signature": build_signature("s", "GET", "api/client/info", {"api_key": "k"}),
        }
        assert 'data' not in kwargs
        assert kwargs['timeout'] == 30

    def test_broadcast_create_request(self, client, mock_request):
        """Mutations send site as a query parameter and the rest as a JSON body."""
        params = {"site": "demo", "title": "Launch"}

        client.broadcast_create(params)

        args, kwargs = mock_request.call_args
        assert args == ("POST", "http://vcloud.volarvideo.com/api/client/broadcast/create")
        assert kwargs['data'] == '{"title":"Launch"}'
        assert kwargs['params']["site"] == "demo"
        assert kwargs['params']["api_key"] == "k"
        assert kwargs['params']["signature"] == build_signature(
            "s", "POST", "api/client/broadcast/create",
            {"site": "demo", "api_key": "k"}, '{"title":"Launch"}'
        )
        # caller's mapping is left untouched
        assert params == {"site": "demo", "title": "Launch"}

    @pytest.mark.parametrize("method", ["broadcasts", "videoclips", "sections", "playlists"])
    def test_listing_requires_site(self, client, mock_request, method):
        with pytest.raises(ParameterError, match='"site" or "sites" parameter is required.'):
            getattr(client, method)({"page": 1})

        mock_request.assert_not_called()

    @pytest.mark.parametrize("method", ["broadcasts", "videoclips", "sections", "playlists"])
    def test_listing_accepts_sites(self, client, mock_request, method):
        getattr(client, method)({"sites": "a,b"})

        mock_request.assert_called_once()

    @pytest.mark.parametrize("method", ["broadcasts", "videoclips", "sections", "playlists"])
    @pytest.mark.parametrize("params", [{"site": None}, {"sites": None}, {"site": None, "sites": None}])
    def test_listing_rejects_none_site(self, client, mock_request, method, params):
        """A site given as None is dropped from the request, so it counts as missing."""
        with pytest.raises(ParameterError, match='"site" or "sites" parameter is required.'):
            getattr(client, method)(params)

        mock_request.assert_not_called()

    def test_templates_require_site(self, client, mock_request):
        with pytest.raises(ParameterError):
            client.templates({"sites": "a,b"})

        mock_request.assert_not_called()

    @pytest.mark.parametrize("method", [
        "broadcast_create", "broadcast_update", "broadcast_delete",
        "broadcast_poster", "broadcast_archive",
        "broadcast_assign_playlist", "broadcast_remove_playlist",
        "videoclip_create", "videoclip_update", "videoclip_delete",
        "videoclip_poster", "videoclip_archive",
        "template_create", "template_update", "template_delete",
        "playlist_create", "playlist_update", "playlist_delete",
    ])
    def test_mutation_requires_site(self, client, mock_request, method):
        with pytest.raises(ParameterError, match="site is required"):
            getattr(client, method)({"id": 1, "title": "x"})

        mock_request.assert_not_called()

    @pytest.mark.parametrize("method", [
        "broadcast_update", "broadcast_delete", "broadcast_poster", "broadcast_archive",
        "videoclip_update", "template_delete", "playlist_update",
    ])
    def test_mutation_requires_id(self, client, mock_request, method):
        with pytest.raises(ParameterError, match="id is required"):
            getattr(client, method)({"site": "demo"})

        mock_request.assert_not_called()

    def test_assign_playlist_is_get(self, client, mock_request):
        client.videoclip_assign_playlist({"site": "demo", "id": 3, "playlist_id": 9})

        args, kwargs = mock_request.call_args
        assert args == ("GET", "http://vcloud.volarvideo.com/api/client/videoclip/assignplaylist")
        assert kwargs['params']["playlist_id"] == "9"

    def test_poster_with_file_uploads_first(self, client, mock_request):
        with patch.object(client.uploads, 'prepare_upload') as prepare_upload:
            prepare_upload.return_value = {"tmp_file_id": "55", "tmp_file_name": "tmp/poster.jpg"}

            client.broadcast_poster({"site": "demo", "id": 3}, "/tmp/poster.jpg")

        prepare_upload.assert_called_once_with("/tmp/poster.jpg")
        args, kwargs = mock_request.call_args
        assert args[1].endswith("/api/client/broadcast/poster")
        assert kwargs['params']["tmp_file_id"] == "55"
        assert kwargs['params']["tmp_file_name"] == "tmp/poster.jpg"

    def test_transport_error(self, client, mock_request):
        mock_request.side_effect = requests.ConnectionError("refused")

        with pytest.raises(TransportError):
            client.sites()

    def test_timeout_error(self, client, mock_request):
        mock_request.side_effect = requests.Timeout("slow")

        with pytest.raises(TransportError):
            client.sites()

    def test_invalid_json(self, client, mock_request):
        response = Mock()
        response.status_code = 502
        response.text = "<html>Bad Gateway</html>"
        response.json.side_effect = ValueError("not json")
        mock_request.return_value = response

        with pytest.raises(ResponseParseError) as exc_info:
            client.sites()

        assert exc_info.value.status_code == 502

    def test_error_payload_passed_through(self, client, mock_request):
        payload = {"success": False, "errors": ["title is required"]}
        mock_request.return_value = json_response(payload, status_code=400)

        assert client.broadcast_create({"site": "demo"}) == payload

    def test_nested_params_sent_flattened(self, client, mock_request):
        client.broadcasts({"site": "demo", "meta": {"hd": True}})

        _, kwargs = mock_request.call_args
        assert kwargs['params']["meta[hd]"] == "1"

    def test_legacy_nested_config(self, mock_request):
        """Clients configured with legacy_nested send the old flattened form."""
        client = VolarClient("k", "s", legacy_nested=True)

        client.broadcasts({"site": "demo", "m": {"a": 1}, "hd": True})

        _, kwargs = mock_request.call_args
        sent = kwargs['params']
        assert sent["m[a["] == '{"a"=>1}'
        assert sent["hd"] == "true"
        assert "m[a]" not in sent
        assert sent["signature"] == build_signature(
            "s", "GET", "api/client/broadcast",
            {"site": "demo", "m[a[": '{"a"=>1}', "hd": "true", "api_key": "k"}
        )

    def test_non_ascii_payload_escaped(self, client, mock_request):
        """Mutation payloads are JSON-escaped to ASCII, so they can be signed."""
        client.broadcast_create({"site": "demo", "title": "Café"})

        _, kwargs = mock_request.call_args
        assert kwargs['data'] == '{"title":"Caf\\u00e9"}'
        assert kwargs['params']["signature"] == build_signature(
            "s", "POST", "api/client/broadcast/create",
            {"site": "demo", "api_key": "k"}, '{"title":"Caf\\u00e9"}'
        )

    def test_public_methods_documented(self):
        """Every public call carries a docstring."""
        undocumented = [
            name for name in dir(VolarClient)
            if (not name.startswith('_') or name in ('__enter__', '__exit__'))
            and callable(getattr(VolarClient, name)) and not getattr(VolarClient, name).__doc__
        ]

        assert undocumented == []
        assert VolarClient.secure.__doc__

    def test_context_manager(self):
        """Test client as context manager."""
        with patch('volar_client.client.requests.Session.close') as close:
            with VolarClient("k", "s") as client:
                assert client.session is not None

        close.assert_called_once()
