"""
Tests for session state and its validators.
"""

import pytest

from reqstream.exceptions import InvalidArgumentError
from reqstream.session import (
    COMMON_USER_AGENTS,
    DEFAULT_USER_AGENT,
    RANDOM_USER_AGENT,
    SessionState,
    SSLMode,
    validate_ssl_mode,
    validate_user_agent,
)


class TestValidateSSLMode:
    """Test SSL mode validation."""

    @pytest.mark.parametrize("value,expected", [
        (1, SSLMode.ON),
        (0, SSLMode.OFF),
        (-1, SSLMode.DISABLE),
        (SSLMode.OFF, SSLMode.OFF),
    ])
    def test_valid(self, value, expected):
        assert validate_ssl_mode(value) is expected

    @pytest.mark.parametrize("value", [2, -2, True, False, "1", 1.0, None])
    def test_invalid(self, value):
        with pytest.raises(InvalidArgumentError):
            validate_ssl_mode(value)


class TestValidateUserAgent:
    """Test user agent validation."""

    def test_string(self):
        assert validate_user_agent("my-agent") == "my-agent"
        assert validate_user_agent("") == ""

    def test_random_sentinel(self):
        assert validate_user_agent(RANDOM_USER_AGENT) == RANDOM_USER_AGENT

    @pytest.mark.parametrize("value", [0, 1, -2, True, 1.5, None, b"agent", ["agent"]])
    def test_invalid(self, value):
        with pytest.raises(InvalidArgumentError):
            validate_user_agent(value)


class TestSessionState:
    """Test SessionState."""

    def test_defaults(self):
        state = SessionState()
        assert state.user_agent == DEFAULT_USER_AGENT
        assert state.ssl_mode == SSLMode.ON
        assert state.cookies == {}
        assert state.last_request_info == {}

    def test_jars_not_shared(self):
        first = SessionState()
        second = SessionState()
        first.cookies["a"] = "1"
        assert second.cookies == {}

    def test_resolve_fixed_user_agent(self):
        assert SessionState(user_agent="agent").resolve_user_agent() == "agent"

    def test_resolve_random_user_agent(self):
        state = SessionState(user_agent=RANDOM_USER_AGENT)
        for _ in range(10):
            assert state.resolve_user_agent() in COMMON_USER_AGENTS

    def test_cookie_header(self):
        state = SessionState(cookies={"a": "1", "b": "2"})
        assert state.cookie_header() == "a=1; b=2"

    def test_empty_cookie_header(self):
        assert SessionState().cookie_header() == ""
