"""
HTTP response model for reqstream.

A Response wraps the RawResponseValues of one request. The content
type and body are derived lazily and memoized, and the body can be
walked incrementally through a small read-only stream contract
(peek/read/rewind/empty/close).
"""

import json
import logging
import re
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple

from .exceptions import DecodeError, ImmutablePropertyError, UnknownPropertyError
from .parser import RawResponseValues

logger = logging.getLogger(__name__)

# Known content type families, in priority order
CONTENT_TYPE_PATTERNS: Tuple[Tuple[Any, str], ...] = (
    (re.compile(r"^application/json\s*(;.*)?$", re.IGNORECASE), "application/json"),
    (re.compile(r"^text/html\s*(;.*)?$", re.IGNORECASE), "text/html"),
    (re.compile(r"^text/plain\s*(;.*)?$", re.IGNORECASE), "text/plain"),
)

_UNSET = object()


class ResponseState(Enum):
    """States of a response stream."""
    UNOPENED = "unopened"     # Constructed, not yet readable
    CONNECTED = "connected"   # Readable
    CLOSED = "closed"         # Closed by the caller, terminal
    ERROR = "error"           # Transport flagged the response as failed


def classify_content_type(content_type: str) -> str:
    """
    Reduce a Content-Type header to a known family.

    Args:
        content_type: Raw Content-Type value

    Returns:
        "application/json", "text/html" or "text/plain" when the value
        belongs to one of those families, otherwise the value unchanged
    """
    for pattern, family in CONTENT_TYPE_PATTERNS:
        if pattern.match(content_type):
            return family
    return content_type


class Response:
    """
    HTTP response value object.

    Responses are created by the Client. Raw fields never change after
    construction; ``content_type`` and ``body`` are computed once on
    first access. Caller-defined values can be attached with
    set_property() as long as they do not shadow a derived or raw field.
    """

    DERIVED_PROPERTIES = frozenset(
        {
            "raw", "code", "content_type", "body", "headers", "error",
            "state", "closed", "properties", "read_index",
        }
    )
    RESERVED_PROPERTIES = DERIVED_PROPERTIES | RawResponseValues.field_names()

    def __init__(self, raw: RawResponseValues, error: Optional[str] = None) -> None:
        """
        Initialize a response.

        Args:
            raw: Parsed raw values of the response
            error: Transport error text if the transport flagged this
                   response as failed; the response then stays in the
                   ERROR state and never opens
        """
        self._raw = raw
        self._code = raw.response_code
        self._content_type: Optional[str] = None
        self._body: Any = _UNSET
        self._element_list: Optional[List[Tuple[Any, Any]]] = None
        self._properties: Dict[str, Any] = {}
        self._read_index = 0
        self._state = ResponseState.UNOPENED
        self._error = error

        if error is not None:
            self._state = ResponseState.ERROR
            logger.debug(f"Response for {raw.url} is in error state: {error}")
        else:
            self.open()

    def __repr__(self) -> str:
        return f"<Response [{self._code}] {self._raw.url} ({self._state.value})>"

    @property
    def raw(self) -> RawResponseValues:
        """Get the raw response values."""
        return self._raw

    @property
    def code(self) -> int:
        """Get the HTTP status code."""
        return self._code

    @property
    def headers(self) -> Dict[str, str]:
        """Get a copy of the response headers."""
        return dict(self._raw.response_headers)

    @property
    def error(self) -> Optional[str]:
        """Get the transport error text, if the transport flagged one."""
        return self._error

    @property
    def content_type(self) -> str:
        """Get the classified content type."""
        if self._content_type is None:
            self._content_type = classify_content_type(self._raw.content_type)
        return self._content_type

    @property
    def body(self) -> Any:
        """
        Get the decoded body.

        JSON bodies are parsed; everything else is returned as the raw
        bytes.

        Raises:
            DecodeError: If the body claims to be JSON but is empty,
                         invalid, or decodes to null
        """
        if self._body is _UNSET:
            self._body = self._decode_body()
        return self._body

    def _decode_body(self) -> Any:
        if self.content_type != "application/json":
            return self._raw.body

        if not self._raw.body:
            raise DecodeError("Server returned an empty JSON response")
        try:
            decoded = json.loads(self._raw.body)
        except (ValueError, UnicodeDecodeError) as e:
            raise DecodeError("Server returned an invalid JSON response", cause=e) from e
        if decoded is None:
            raise DecodeError("Server returned an invalid JSON response")
        return decoded

    @property
    def state(self) -> ResponseState:
        """Get the stream state."""
        return self._state

    @property
    def read_index(self) -> int:
        """Get the stream cursor position."""
        return self._read_index

    @property
    def properties(self) -> Mapping[str, Any]:
        """Get a read-only view of caller-defined properties."""
        return MappingProxyType(self._properties)

    def get_property(self, name: str) -> Any:
        """
        Look up a property by name.

        Derived fields come first, then caller-defined properties, then
        raw fields.

        Raises:
            UnknownPropertyError: If no property has this name
        """
        if name in self.DERIVED_PROPERTIES:
            return getattr(self, name)
        if name in self._properties:
            return self._properties[name]
        if name in RawResponseValues.field_names():
            return getattr(self._raw, name)
        raise UnknownPropertyError(name)

    def set_property(self, name: str, value: Any) -> None:
        """
        Attach a caller-defined property.

        Raises:
            ImmutablePropertyError: If name is a derived or raw field
        """
        if name in self.RESERVED_PROPERTIES:
            raise ImmutablePropertyError(name)
        self._properties[name] = value

    # Stream contract

    def open(self) -> None:
        """Make the response readable. No-op unless UNOPENED."""
        if self._state == ResponseState.UNOPENED:
            self._state = ResponseState.CONNECTED

    def close(self) -> None:
        """Close the stream. Fields stay readable."""
        self._state = ResponseState.CLOSED

    @property
    def closed(self) -> bool:
        """Check if the stream is closed."""
        return self._state == ResponseState.CLOSED

    def _elements(self) -> List[Tuple[Any, Any]]:
        """Get the (key, value) pairs of a decoded collection body, built once."""
        if self._element_list is None:
            body = self.body
            if isinstance(body, dict):
                self._element_list = list(body.items())
            elif isinstance(body, list):
                self._element_list = list(enumerate(body))
            else:
                self._element_list = [(0, body)]
        return self._element_list

    def peek(self) -> Any:
        """
        Return the next unread chunk without moving the cursor.

        For bytes and str bodies this is everything from the cursor to
        the end. For decoded JSON this is a single-entry dict holding the
        element under the cursor.

        Returns:
            The chunk, or None when exhausted or not CONNECTED
        """
        if self._state != ResponseState.CONNECTED:
            return None

        body = self.body
        if isinstance(body, (bytes, str)):
            if self._read_index >= len(body):
                return None
            return body[self._read_index:]

        elements = self._elements()
        if self._read_index >= len(elements):
            return None
        key, value = elements[self._read_index]
        return {key: value}

    def read(self) -> Any:
        """Return the next chunk and advance the cursor past it."""
        chunk = self.peek()
        if chunk is None:
            return None
        if isinstance(chunk, (bytes, str)):
            self._read_index += len(chunk)
        else:
            self._read_index += 1
        return chunk

    def empty(self) -> bool:
        """Check if there is nothing left to read."""
        return self.peek() is None

    def rewind(self, count: int = 0) -> None:
        """
        Move the cursor backwards.

        Args:
            count: Units (bytes or elements) to move back; 0 rewinds to
                   the start. Negative values are ignored.
        """
        if self._state != ResponseState.CONNECTED or count < 0:
            return
        if count == 0:
            self._read_index = 0
        else:
            self._read_index = max(0, self._read_index - count)

    def write(self, *args: Any, **kwargs: Any) -> None:
        """Responses are read-only; writes are ignored."""
        return None

    def __iter__(self) -> Iterator[Any]:
        while True:
            chunk = self.read()
            if chunk is None:
                return
            yield chunk

    def __enter__(self) -> "Response":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()
