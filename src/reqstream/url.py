"""
URL opening helpers for reqstream.

open_url() fetches a URL and returns an opened Response. It uses an
explicitly passed Client, or else a process-wide default client.

The default client is shared global state: it is created lazily on
first use, can be replaced or cleared through client(), and offers no
guarantees under concurrent access.
"""

import logging
from typing import Any, Optional

from .client import Client
from .exceptions import InvalidArgumentError
from .response import Response

logger = logging.getLogger(__name__)

_UNSET = object()

_default_client: Optional[Client] = None


def client(replacement: Any = _UNSET) -> Optional[Client]:
    """
    Get or replace the process-wide default client.

    Args:
        replacement: A Client (or subclass) to install, or None to clear
                     the default. Omit to only read the current value.

    Returns:
        The default client after the call

    Raises:
        InvalidArgumentError: If replacement is neither None nor a Client
    """
    global _default_client

    if replacement is _UNSET:
        return _default_client
    if replacement is not None and not isinstance(replacement, Client):
        raise InvalidArgumentError(
            f"HTTP client must be a Client or subclass, got {type(replacement).__name__}"
        )
    _default_client = replacement
    return _default_client


def _get_default_client() -> Client:
    global _default_client

    if _default_client is None:
        _default_client = Client()
        logger.debug("Created default client")
    return _default_client


def open_url(url: Any, http_client: Optional[Client] = None) -> Response:
    """
    Fetch a URL with a GET request and return the opened Response.

    Args:
        url: URL string, or any object whose str() is a URL
        http_client: Client to use instead of the default client

    Returns:
        The Response, ready to be read
    """
    active_client = http_client if http_client is not None else _get_default_client()
    response = active_client.get(str(url))
    response.open()
    return response
