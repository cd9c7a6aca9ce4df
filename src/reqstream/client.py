"""
HTTP client for reqstream.

The Client owns one TransportHandle and one SessionState, runs each
request through the handle, classifies transport failures and turns
the raw payload into a Response.

A Client is not thread-safe. Each call mutates the session (cookie
jar, last request info, and the SSL mode for the duration of an
https call), so concurrent callers need one Client each.
"""

import logging
import time
from typing import Any, Callable, Dict, List, Mapping, Optional, Union
from urllib.parse import urlencode

from .exceptions import (
    ConnectivityError,
    EmptyResponseError,
    PreconditionError,
    TransportError,
)
from .parser import ResponseParser
from .response import Response
from .session import (
    SessionState,
    SSLMode,
    UserAgent,
    validate_ssl_mode,
    validate_user_agent,
)
from .transport.h11_transport import H11Transport
from .transport.handle import TransportErrorCode, TransportHandle, TransportOption
from .transport.utils import check_network

logger = logging.getLogger(__name__)

Body = Union[str, bytes, Mapping[str, Any], None]
Headers = Optional[Mapping[str, str]]


def _default_reachability() -> str:
    return check_network()["message"]


class Client:
    """
    Synchronous HTTP client.

    Example:
        client = Client()
        response = client.get("https://example.com/")
        print(response.code, response.body)
    """

    DEFAULT_MAX_REDIRECTS = 5

    def __init__(
        self,
        transport: Optional[TransportHandle] = None,
        user_agent: Optional[UserAgent] = None,
        ssl_mode: Optional[Union[SSLMode, int]] = None,
        reachability: Optional[Callable[[], str]] = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            transport: Transport handle to issue requests through
                       (default: a new H11Transport)
            user_agent: User agent string or RANDOM_USER_AGENT
            ssl_mode: Initial SSL verification mode (default: SSLMode.ON)
            reachability: Callable returning a network diagnostic message,
                          run when a host cannot be resolved
        """
        self._transport = transport or H11Transport()
        self._session = SessionState()
        self._parser = ResponseParser()
        self._reachability = reachability or _default_reachability

        self._transport.set_options({
            TransportOption.AUTO_REFERER: True,
            TransportOption.FOLLOW_REDIRECTS: True,
            TransportOption.MAX_REDIRECTS: self.DEFAULT_MAX_REDIRECTS,
            TransportOption.RETURN_TRANSFER: True,
            TransportOption.INCLUDE_HEADERS: True,
            TransportOption.HEADER_OUT: True,
        })

        if user_agent is not None:
            self.user_agent = user_agent
        self._apply_ssl_mode(
            validate_ssl_mode(ssl_mode) if ssl_mode is not None else SSLMode.ON
        )

        logger.debug(f"Client initialized with {type(self._transport).__name__}")

    def _apply_ssl_mode(self, mode: SSLMode) -> None:
        verify = mode == SSLMode.ON
        self._transport.set_option(TransportOption.VERIFY_PEER, verify)
        self._transport.set_option(TransportOption.VERIFY_HOST, verify)
        self._session.ssl_mode = mode

    @property
    def ssl_mode(self) -> SSLMode:
        """Get the SSL verification mode."""
        return self._session.ssl_mode

    @ssl_mode.setter
    def ssl_mode(self, mode: Union[SSLMode, int]) -> None:
        """
        Set the SSL verification mode.

        SSLMode.ON verifies every request. SSLMode.OFF skips verification
        except for https:// URLs. SSLMode.DISABLE never verifies.

        Raises:
            InvalidArgumentError: If mode is not a supported SSL mode
        """
        mode = validate_ssl_mode(mode)
        if mode != self._session.ssl_mode:
            self._apply_ssl_mode(mode)

    @property
    def user_agent(self) -> UserAgent:
        """Get the configured user agent."""
        return self._session.user_agent

    @user_agent.setter
    def user_agent(self, user_agent: UserAgent) -> None:
        """
        Set the user agent string, or RANDOM_USER_AGENT.

        Raises:
            InvalidArgumentError: For any other type of value
        """
        self._session.user_agent = validate_user_agent(user_agent)

    @property
    def cookies(self) -> Dict[str, str]:
        """Get a copy of the cookie jar."""
        return dict(self._session.cookies)

    @property
    def last_request_info(self) -> Dict[str, Any]:
        """Get a copy of the transport diagnostics for the last request."""
        return dict(self._session.last_request_info)

    @property
    def closed(self) -> bool:
        """Check if the transport handle has been torn down."""
        return self._transport.is_closed

    def setopt(self, option: TransportOption, value: Any) -> None:
        """Set a raw option on the underlying transport handle."""
        self._transport.set_option(option, value)

    def close(self) -> None:
        """Tear down the transport handle."""
        if not self._transport.is_closed:
            self._transport.close()
            logger.debug("Client closed")

    def __enter__(self) -> "Client":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def get(self, url: str, headers: Headers = None) -> Response:
        """
        Send an HTTP GET request.

        Args:
            url: URL to request
            headers: Optional extra request headers

        Returns:
            The Response

        Raises:
            PreconditionError: If the client has been closed
            ConnectivityError: If the host could not be resolved
            TransportError: On any other transport failure
            EmptyResponseError: If the transport returned nothing
        """
        return self._execute("GET", url, None, headers)

    def post(self, url: str, body: Body = None, headers: Headers = None) -> Response:
        """
        Send an HTTP POST request.

        A mapping body is form-encoded; str and bytes are sent verbatim.
        """
        return self._execute("POST", url, body, headers)

    def put(self, url: str, body: Body = None, headers: Headers = None) -> Response:
        """Send an HTTP PUT request."""
        return self._execute("PUT", url, body, headers)

    def delete(self, url: str, body: Body = None, headers: Headers = None) -> Response:
        """Send an HTTP DELETE request."""
        return self._execute("DELETE", url, body, headers)

    def _header_lines(self, headers: Headers) -> List[str]:
        lines = [f"{name}: {value}" for name, value in (headers or {}).items()]
        if self._session.cookies:
            lines.append(f"Cookie: {self._session.cookie_header()}")
        return lines

    @staticmethod
    def _encode_body(body: Body) -> Optional[Union[str, bytes]]:
        if body is None or isinstance(body, (str, bytes)):
            return body
        return urlencode(body, doseq=True)

    def _execute(self, method: str, url: str, body: Body, headers: Headers) -> Response:
        """Run one request/response cycle through the transport handle."""
        if self._transport.is_closed:
            raise PreconditionError("The transport handle has been closed")

        start_time = time.time()
        user_agent = self._session.resolve_user_agent()
        self._transport.set_user_agent(user_agent)

        saved_mode = self._session.ssl_mode
        if url.lower().startswith("https://") and saved_mode == SSLMode.OFF:
            logger.debug(f"Enabling SSL verification for {url}")
            self._apply_ssl_mode(SSLMode.ON)

        try:
            self._transport.set_header_list(self._header_lines(headers))
            self._transport.set_method(method)
            self._transport.set_body(None if method == "GET" else self._encode_body(body))
            self._transport.set_url(url)

            result = self._transport.execute()
            self._session.last_request_info = self._transport.get_info()

            error = None
            if result.code == TransportErrorCode.COULDNT_RESOLVE_HOST:
                logger.warning(f"Could not resolve host for {url}")
                diagnostic = self._reachability()
                raise ConnectivityError(
                    f"Could not connect to the server for {url}. "
                    f"A network test has been completed.",
                    diagnostic=diagnostic,
                )
            elif result.code == TransportErrorCode.HTTP_RETURNED_ERROR:
                # Only reported when FAIL_ON_ERROR is set
                error = result.message or "The server returned an error status"
            elif result.code != TransportErrorCode.OK:
                logger.warning(f"{method} {url} failed: {result.message}")
                raise TransportError(result.message or result.code.name, code=result.code)

            if not result.payload:
                raise EmptyResponseError(f"No data received from {url}")

            raw = self._parser.parse(
                result.payload,
                self._transport.get_info("response_code"),
                self._transport.get_info("content_type"),
                url,
                user_agent,
                self._session.cookies,
            )
        finally:
            if self._session.ssl_mode != saved_mode:
                self._apply_ssl_mode(saved_mode)

        duration = time.time() - start_time
        logger.debug(f"{method} {url} -> {raw.response_code} ({duration:.3f}s)")

        return Response(raw, error=error)
