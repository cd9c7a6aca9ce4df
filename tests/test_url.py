"""
Tests for the URL opening helpers and the default client accessor.
"""

import pytest

from reqstream import url as url_module
from reqstream.client import Client
from reqstream.exceptions import InvalidArgumentError
from reqstream.response import ResponseState
from reqstream.transport.handle import TransportOption
from reqstream.url import client as default_client, open_url


class CustomClient(Client):
    """Client subclass used to check the accessor accepts subtypes."""


class TestDefaultClientAccessor:
    """Test the process-wide default client accessor."""

    def test_initially_unset(self):
        assert default_client() is None

    def test_set_and_get(self, client):
        assert default_client(client) is client
        assert default_client() is client

    def test_accepts_subclass(self, mock_transport):
        custom = CustomClient(transport=mock_transport)
        default_client(custom)
        assert default_client() is custom

    def test_clear_with_none(self, client):
        default_client(client)
        assert default_client(None) is None
        assert default_client() is None

    @pytest.mark.parametrize("value", ["client", 42, object(), False])
    def test_rejects_non_clients(self, client, value):
        default_client(client)
        with pytest.raises(InvalidArgumentError):
            default_client(value)
        assert default_client() is client


class TestOpenUrl:
    """Test open_url()."""

    def test_uses_injected_client(self, client, mock_transport, payload):
        mock_transport.add_response(payload(body=b"hello"))
        response = open_url("http://example.com/", client)
        assert response.state == ResponseState.CONNECTED
        assert response.read() == b"hello"
        assert mock_transport.last_request[TransportOption.METHOD] == "GET"
        assert default_client() is None

    def test_uses_default_client(self, client, mock_transport, payload):
        default_client(client)
        mock_transport.add_response(payload(body=b"hello"))
        response = open_url("http://example.com/")
        assert response.body == b"hello"
        assert mock_transport.last_request[TransportOption.URL] == "http://example.com/"

    def test_stringifies_url(self, client, mock_transport, payload):
        class Location:
            def __str__(self):
                return "http://example.com/path"

        mock_transport.add_response(payload())
        open_url(Location(), client)
        assert mock_transport.last_request[TransportOption.URL] == "http://example.com/path"

    def test_creates_default_client_lazily(self, monkeypatch, mock_transport, payload):
        created = []

        class RecordingClient(Client):
            def __init__(self):
                super().__init__(transport=mock_transport, reachability=lambda: "")
                created.append(self)

        monkeypatch.setattr(url_module, "Client", RecordingClient)
        mock_transport.add_response(payload())
        mock_transport.add_response(payload())

        open_url("http://example.com/one")
        open_url("http://example.com/two")

        assert len(created) == 1
        assert default_client() is created[0]
