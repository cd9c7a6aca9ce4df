"""
Per-client session state for reqstream.

A SessionState holds everything a Client mutates between requests:
the user agent, the SSL verification mode, the cookie jar and the
diagnostics of the last completed request.
"""

import random
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Dict, Union

from .exceptions import InvalidArgumentError


DEFAULT_USER_AGENT = "Mozilla/5.0 (cURL; x64) (KHTML, like Gecko) reqstream HTTP Client"

# Selects a random entry from COMMON_USER_AGENTS on every request.
RANDOM_USER_AGENT = -1

COMMON_USER_AGENTS = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/72.0.3626.121 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:65.0) Gecko/20100101 Firefox/65.0",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_14_3) AppleWebKit/605.1.15 (KHTML, like Gecko) Version/12.0.3 Safari/605.1.15",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_14_3) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/72.0.3626.121 Safari/537.36",
)


class SSLMode(IntEnum):
    """SSL verification policies."""
    ON = 1         # Verify peer and host
    OFF = 0        # No verification, except for https:// URLs
    DISABLE = -1   # No verification at all


UserAgent = Union[str, int]


def validate_ssl_mode(mode: Any) -> SSLMode:
    """
    Coerce a value to an SSLMode.

    Args:
        mode: An SSLMode member or its integer value

    Returns:
        The matching SSLMode

    Raises:
        InvalidArgumentError: If the value is not a supported mode
    """
    # bool is an int subclass; True/False are not modes
    if isinstance(mode, bool) or not isinstance(mode, int):
        raise InvalidArgumentError(f"Not a supported SSL mode: {type(mode).__name__}")
    try:
        return SSLMode(mode)
    except ValueError as e:
        raise InvalidArgumentError(f"Not a supported SSL mode: {mode}", cause=e) from e


def validate_user_agent(user_agent: Any) -> UserAgent:
    """
    Check that a user agent is a string or the RANDOM_USER_AGENT sentinel.

    Raises:
        InvalidArgumentError: For any other value
    """
    if isinstance(user_agent, str):
        return user_agent
    if type(user_agent) is int and user_agent == RANDOM_USER_AGENT:
        return RANDOM_USER_AGENT
    raise InvalidArgumentError(
        f"Not a supported user agent type: {type(user_agent).__name__}"
    )


@dataclass
class SessionState:
    """
    Mutable state owned by a single Client.

    Nothing here is synchronized; a SessionState must only be touched
    by the one client that owns it.
    """

    user_agent: UserAgent = DEFAULT_USER_AGENT
    ssl_mode: SSLMode = SSLMode.ON
    cookies: Dict[str, str] = field(default_factory=dict)
    last_request_info: Dict[str, Any] = field(default_factory=dict)

    def resolve_user_agent(self) -> str:
        """Return the user agent string to send with the next request."""
        if self.user_agent == RANDOM_USER_AGENT:
            return random.choice(COMMON_USER_AGENTS)
        return str(self.user_agent)

    def cookie_header(self) -> str:
        """Serialize the cookie jar as the value of a Cookie header."""
        return "; ".join(f"{name}={value}" for name, value in self.cookies.items())
