"""
Raw response parsing for reqstream.

This module splits a transport payload (one or more header blocks
followed by a body) into the status line, headers and body, and
collects cookies from Set-Cookie headers along the way.
"""

import logging
import re
from dataclasses import dataclass, field, fields
from typing import Dict, FrozenSet, List, MutableMapping, Optional, Tuple

logger = logging.getLogger(__name__)

# Any of these marks the blank line between a header block and the body
BLANK_LINE_PATTERN = re.compile(rb"\r\n\r\n|\r\r|\n\n")
LINE_BREAK_PATTERN = re.compile(r"\r\n|\r|\n")
STATUS_LINE_PATTERN = re.compile(r"^HTTP/\d(?:\.\d)?\s+(?P<code>\d{3})")

# Status codes after which the transport may have folded another header block
REDIRECT_CODES = frozenset({301, 302, 303, 307, 308})

HEADER_ENCODING = "iso-8859-1"


@dataclass(frozen=True)
class RawResponseValues:
    """
    Immutable raw fields of a single HTTP response.

    Produced once per request by the ResponseParser and owned by the
    Response that wraps it.
    """

    url: str
    user_agent: str
    response_code: int = 0
    content_type: str = ""
    response_string: str = ""
    response_headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""

    @classmethod
    def field_names(cls) -> FrozenSet[str]:
        """Get the names of all raw fields."""
        return frozenset(f.name for f in fields(cls))


def split_header_block(payload: bytes) -> Tuple[bytes, bytes]:
    """
    Split a payload at its first blank line.

    Args:
        payload: Raw bytes starting with a header block

    Returns:
        Tuple of (header block, remainder). If there is no blank line
        the whole payload is the header block.
    """
    parts = BLANK_LINE_PATTERN.split(payload, maxsplit=1)
    if len(parts) == 1:
        return parts[0], b""
    return parts[0], parts[1]


def parse_status_code(status_line: str) -> Optional[int]:
    """
    Extract the numeric code from an HTTP status line.

    Returns:
        The status code, or None if the line is not a status line
    """
    match = STATUS_LINE_PATTERN.match(status_line)
    if match is None:
        return None
    return int(match.group("code"))


def parse_cookie(value: str) -> Optional[Tuple[str, str]]:
    """
    Extract the name/value pair of a Set-Cookie header.

    Only the first "name=value" segment is kept; Path, Expires and the
    other attributes are dropped.

    Returns:
        Tuple of (name, value), or None if there is no "=" in the pair
    """
    pair = value.split(";", 1)[0].strip()
    name, sep, cookie_value = pair.partition("=")
    if not sep or not name:
        return None
    return name.strip(), cookie_value.strip()


def _starts_with_status_line(data: bytes) -> bool:
    return data[:5] == b"HTTP/"


class ResponseParser:
    """
    Parser turning a transport payload into RawResponseValues.

    A transport that follows redirects (or receives interim 1xx
    responses) returns several header blocks back to back. The parser
    keeps consuming header blocks while the status line announces one
    of those codes and the remainder actually starts with another
    status line.

    Folding is not limited to 301: every redirect code and 1xx is
    consumed, since a transport that follows 302/303/307/308 or
    receives a 100 Continue writes those blocks the same way. The
    status-line check keeps an unfollowed redirect body intact.
    """

    def parse(
        self,
        payload: bytes,
        response_code: int,
        content_type: Optional[str],
        url: str,
        user_agent: str,
        cookies: MutableMapping[str, str],
    ) -> RawResponseValues:
        """
        Parse a raw payload.

        Args:
            payload: Header block(s) followed by the body
            response_code: Final status code reported by the transport
            content_type: Content type reported by the transport
            url: The requested URL
            user_agent: The user agent the request was sent with
            cookies: Cookie jar updated in place from Set-Cookie headers

        Returns:
            The populated RawResponseValues
        """
        body = payload
        response_string = ""
        response_headers: Dict[str, str] = {}
        blocks = 0

        while True:
            header_block, body = split_header_block(body)
            blocks += 1
            lines = LINE_BREAK_PATTERN.split(header_block.decode(HEADER_ENCODING))
            response_string = lines[0]
            # Headers describe the final response only; cookies accumulate
            response_headers = {}
            self._parse_headers(lines[1:], response_headers, cookies)

            code = parse_status_code(response_string)
            if code is None:
                break
            if (code in REDIRECT_CODES or 100 <= code < 200) and _starts_with_status_line(body):
                logger.debug(f"Consuming folded header block after {response_string!r}")
                continue
            break

        logger.debug(f"Parsed {blocks} header block(s) for {url}: {response_string!r}")

        return RawResponseValues(
            url=url,
            user_agent=user_agent,
            response_code=int(response_code or 0),
            content_type=content_type or "",
            response_string=response_string,
            response_headers=response_headers,
            body=body,
        )

    def _parse_headers(
        self,
        lines: List[str],
        response_headers: Dict[str, str],
        cookies: MutableMapping[str, str],
    ) -> None:
        for line in lines:
            if not line:
                continue
            label, sep, value = line.partition(": ")
            if not sep:
                logger.debug(f"Skipping malformed header line: {line!r}")
                continue
            if label.lower() == "set-cookie":
                cookie = parse_cookie(value)
                if cookie is not None:
                    cookies[cookie[0]] = cookie[1]
            response_headers[label] = value
