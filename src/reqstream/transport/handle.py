"""
Transport handle interface for reqstream.

This module defines the TransportHandle contract used by the Client.
A handle is a single stateful connection configuration: options are
set on it, a request is executed, and the raw payload (response headers
inline with the body) is returned together with an error code.
"""

from abc import ABC, abstractmethod
from enum import Enum, IntEnum
from typing import Any, Dict, List, Mapping, NamedTuple, Optional, Union


class TransportOption(Enum):
    """Options understood by a TransportHandle."""
    URL = "url"
    METHOD = "method"
    BODY = "body"
    HEADERS = "headers"
    USER_AGENT = "user_agent"
    VERIFY_PEER = "verify_peer"
    VERIFY_HOST = "verify_host"
    FOLLOW_REDIRECTS = "follow_redirects"
    MAX_REDIRECTS = "max_redirects"
    AUTO_REFERER = "auto_referer"
    RETURN_TRANSFER = "return_transfer"
    INCLUDE_HEADERS = "include_headers"
    HEADER_OUT = "header_out"
    FAIL_ON_ERROR = "fail_on_error"
    TIMEOUT = "timeout"
    CONNECT_TIMEOUT = "connect_timeout"


class TransportErrorCode(IntEnum):
    """Transport error codes, numbered like their libcurl counterparts."""
    OK = 0
    UNSUPPORTED_PROTOCOL = 1
    URL_MALFORMAT = 3
    COULDNT_RESOLVE_HOST = 6
    COULDNT_CONNECT = 7
    HTTP_RETURNED_ERROR = 22
    OPERATION_TIMEDOUT = 28
    SSL_CONNECT_ERROR = 35
    TOO_MANY_REDIRECTS = 47
    GOT_NOTHING = 52
    SEND_ERROR = 55
    RECV_ERROR = 56
    PEER_FAILED_VERIFICATION = 60


class TransportResult(NamedTuple):
    """Outcome of a single TransportHandle.execute() call."""
    code: TransportErrorCode
    payload: Optional[bytes]
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.code == TransportErrorCode.OK


DEFAULT_OPTIONS: Dict[TransportOption, Any] = {
    TransportOption.METHOD: "GET",
    TransportOption.BODY: None,
    TransportOption.HEADERS: [],
    TransportOption.VERIFY_PEER: True,
    TransportOption.VERIFY_HOST: True,
    TransportOption.FOLLOW_REDIRECTS: False,
    TransportOption.MAX_REDIRECTS: 5,
    TransportOption.AUTO_REFERER: False,
    TransportOption.RETURN_TRANSFER: True,
    TransportOption.INCLUDE_HEADERS: True,
    TransportOption.HEADER_OUT: False,
    TransportOption.FAIL_ON_ERROR: False,
}


class TransportHandle(ABC):
    """
    Interface for transport handle implementations.

    Subclasses implement execute(); option storage, the convenience
    setters, info bookkeeping and teardown are shared here.
    """

    def __init__(self, options: Optional[Mapping[TransportOption, Any]] = None) -> None:
        self._options: Dict[TransportOption, Any] = dict(DEFAULT_OPTIONS)
        self._options[TransportOption.HEADERS] = list(DEFAULT_OPTIONS[TransportOption.HEADERS])
        self._info: Dict[str, Any] = {}
        self._closed = False
        if options:
            self.set_options(options)

    def set_option(self, option: TransportOption, value: Any) -> None:
        """
        Set a single option.

        Raises:
            ValueError: If option is not a TransportOption
        """
        if not isinstance(option, TransportOption):
            raise ValueError(f"Unknown transport option: {option!r}")
        self._options[option] = value

    def set_options(self, options: Mapping[TransportOption, Any]) -> None:
        """Set several options at once."""
        for option, value in options.items():
            self.set_option(option, value)

    def get_option(self, option: TransportOption, default: Any = None) -> Any:
        """Return the current value of an option."""
        return self._options.get(option, default)

    def set_method(self, method: str) -> None:
        self.set_option(TransportOption.METHOD, method.upper())

    def set_url(self, url: str) -> None:
        self.set_option(TransportOption.URL, url)

    def set_body(self, body: Optional[Union[str, bytes]]) -> None:
        self.set_option(TransportOption.BODY, body)

    def set_header_list(self, headers: List[str]) -> None:
        """Set outbound headers as a list of "Name: value" lines."""
        self.set_option(TransportOption.HEADERS, list(headers))

    def set_user_agent(self, user_agent: str) -> None:
        self.set_option(TransportOption.USER_AGENT, user_agent)

    @abstractmethod
    def execute(self) -> TransportResult:
        """
        Perform the configured request.

        Returns:
            A TransportResult. On success the payload holds every response
            header block followed by the final body.
        """
        pass

    def get_info(self, key: Optional[str] = None) -> Any:
        """
        Get diagnostics about the last executed request.

        Args:
            key: A single entry to return, e.g. "response_code" or
                 "content_type". If None, a copy of the whole bundle.

        Returns:
            The requested value, None if unknown, or the full dict.
        """
        if key is None:
            return dict(self._info)
        return self._info.get(key)

    def close(self) -> None:
        """Tear down the handle. It cannot be used afterwards."""
        self._closed = True

    @property
    def is_closed(self) -> bool:
        """Check if the handle has been torn down."""
        return self._closed
