"""
Pytest configuration for reqstream tests.

This file contains shared fixtures and configuration
for all tests in the project.
"""

import pytest
from typing import Dict, List, Optional

from reqstream import url as url_module
from reqstream.client import Client
from reqstream.parser import RawResponseValues
from reqstream.transport.mock import MockTransport


REACHABILITY_MESSAGE = "The network connection is up and DNS is working; check the hostname."


def build_payload(
    status: str = "HTTP/1.1 200 OK",
    headers: Optional[List[str]] = None,
    body: bytes = b"",
) -> bytes:
    """Build a raw header-inline payload like a transport returns."""
    lines = [status] + list(headers or [])
    return ("\r\n".join(lines) + "\r\n\r\n").encode("iso-8859-1") + body


@pytest.fixture
def mock_transport() -> MockTransport:
    """Create a mock transport handle."""
    return MockTransport()


@pytest.fixture
def reachability_message() -> str:
    """Diagnostic text returned by the stubbed reachability check."""
    return REACHABILITY_MESSAGE


@pytest.fixture
def reachability_calls() -> List[int]:
    """Record how often the reachability check runs."""
    return []


@pytest.fixture
def client(mock_transport, reachability_calls) -> Client:
    """Create a client wired to the mock transport."""
    def reachability() -> str:
        reachability_calls.append(1)
        return REACHABILITY_MESSAGE

    return Client(transport=mock_transport, reachability=reachability)


@pytest.fixture
def payload():
    """Factory for raw payloads."""
    return build_payload


@pytest.fixture
def raw_values():
    """Factory for RawResponseValues."""
    def _create(
        body: bytes = b"",
        content_type: str = "text/plain",
        response_code: int = 200,
        headers: Optional[Dict[str, str]] = None,
    ) -> RawResponseValues:
        return RawResponseValues(
            url="http://example.com/",
            user_agent="test-agent",
            response_code=response_code,
            content_type=content_type,
            response_string=f"HTTP/1.1 {response_code} OK",
            response_headers=headers or {"Content-Type": content_type},
            body=body,
        )
    return _create


@pytest.fixture(autouse=True)
def reset_default_client():
    """Keep the process-wide default client isolated between tests."""
    url_module.client(None)
    yield
    url_module.client(None)
