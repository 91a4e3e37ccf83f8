"""
Tests for the raw-socket page fetcher.
"""

import socket
from unittest.mock import MagicMock, patch

import pytest

from netagent_ups.fetch import UPSFetchError, fetch_all_pages, fetch_ups_page


@pytest.fixture
def mock_socket():
    """Patch socket.create_connection and yield the connected socket mock."""
    with patch("netagent_ups.fetch.socket.create_connection") as create_connection:
        sock = MagicMock()
        create_connection.return_value.__enter__.return_value = sock
        sock.create_connection = create_connection
        yield sock


def test_fetch_returns_body(mock_socket):
    mock_socket.recv.side_effect = [
        b"HTTP/1.1 200 OK\r\nContent-Type: text/html\r\n\r\n<b>UPS Status:</b>",
        b" Normal<br>",
        b"",
    ]
    body = fetch_ups_page("10.0.0.5", 80, "/pda/status-1.htm", 5.0)
    assert body == "<b>UPS Status:</b> Normal<br>"

    mock_socket.create_connection.assert_called_once_with(("10.0.0.5", 80), timeout=5.0)
    request = mock_socket.sendall.call_args[0][0]
    assert request == b"GET /pda/status-1.htm HTTP/1.1\r\nHost: 10.0.0.5\r\nConnection: close\r\n\r\n"


def test_fetch_does_not_inspect_status_code(mock_socket):
    mock_socket.recv.side_effect = [b"HTTP/1.1 404 Not Found\r\n\r\nmissing", b""]
    assert fetch_ups_page("10.0.0.5", 80, "/x", 1.0) == "missing"


def test_fetch_invalid_response(mock_socket):
    mock_socket.recv.side_effect = [b"garbage without headers", b""]
    with pytest.raises(UPSFetchError, match="Invalid HTTP response from UPS"):
        fetch_ups_page("10.0.0.5", 80, "/x", 1.0)


def test_fetch_timeout(mock_socket):
    mock_socket.recv.side_effect = socket.timeout("timed out")
    with pytest.raises(TimeoutError, match="UPS request timed out"):
        fetch_ups_page("10.0.0.5", 80, "/x", 1.0)


def test_fetch_connection_error(mock_socket):
    mock_socket.create_connection.side_effect = ConnectionRefusedError("refused")
    with pytest.raises(ConnectionRefusedError):
        fetch_ups_page("10.0.0.5", 80, "/x", 1.0)


def test_fetch_all_pages():
    paths = {"status": "/s", "system": "/y", "info": "/i"}
    with patch("netagent_ups.fetch.fetch_ups_page", side_effect=lambda host, port, path, timeout: path) as fetch:
        assert fetch_all_pages("10.0.0.5", 80, paths, 2.0) == {"status": "/s", "system": "/y", "info": "/i"}
    assert fetch.call_count == 3


def test_fetch_all_pages_fails_if_any_page_fails():
    def fetch(host, port, path, timeout):
        if path == "/y":
            raise TimeoutError("UPS request timed out")
        return "ok"

    with patch("netagent_ups.fetch.fetch_ups_page", side_effect=fetch):
        with pytest.raises(TimeoutError):
            fetch_all_pages("10.0.0.5", 80, {"status": "/s", "system": "/y", "info": "/i"}, 2.0)
