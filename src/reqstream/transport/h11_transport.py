"""
Blocking HTTP/1.1 transport handle for reqstream.

H11Transport sends requests with h11 over plain or TLS sockets. It
follows redirects itself and writes every response header block it
receives into the payload ahead of the final body, so the payload has
the same shape as curl's header-inline output.
"""

import logging
import socket
import ssl
import time
from typing import Any, Callable, List, Mapping, NamedTuple, Optional, Tuple, Union
from urllib.parse import urljoin

import h11

from .handle import TransportErrorCode, TransportHandle, TransportOption, TransportResult
from .utils import create_ssl_context, format_host_header, open_connection, parse_url

logger = logging.getLogger(__name__)

REDIRECT_CODES = frozenset({301, 302, 303, 307, 308})

Connector = Callable[[str, int, Optional[float]], socket.socket]


class _TransportFailure(Exception):
    """Internal signal carrying an error code out of a request hop."""

    def __init__(self, code: TransportErrorCode, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message


class _Exchange(NamedTuple):
    """Result of a single request/response hop."""
    status_code: int
    http_version: str
    header_blocks: List[bytes]
    headers: List[Tuple[bytes, bytes]]
    body: bytes


def _find_header(headers: List[Tuple[bytes, bytes]], name: bytes) -> Optional[str]:
    """Return the last value of a header (case-insensitive) as text."""
    value = None
    for header_name, header_value in headers:
        if header_name.lower() == name:
            value = header_value
    return value.decode("iso-8859-1") if value is not None else None


def _format_head(event: Union[h11.Response, h11.InformationalResponse]) -> bytes:
    """Rebuild the status line and header block of a response event."""
    version = event.http_version.decode("ascii")
    reason = event.reason.decode("iso-8859-1")
    lines = [f"HTTP/{version} {event.status_code} {reason}".rstrip()]
    for name, value in event.headers.raw_items():
        lines.append(f"{name.decode('iso-8859-1')}: {value.decode('iso-8859-1')}")
    return ("\r\n".join(lines) + "\r\n\r\n").encode("iso-8859-1")


class H11Transport(TransportHandle):
    """
    HTTP/1.1 transport handle built on h11.

    One socket is opened per hop and closed as soon as the hop's
    response has been read; nothing is pooled or kept alive.
    """

    DEFAULT_TIMEOUT = 30.0
    DEFAULT_CONNECT_TIMEOUT = 10.0
    DEFAULT_READ_SIZE = 65536

    def __init__(
        self,
        options: Optional[Mapping[TransportOption, Any]] = None,
        connector: Optional[Connector] = None,
        timeout: Optional[float] = None,
        connect_timeout: Optional[float] = None,
        read_size: Optional[int] = None,
    ) -> None:
        """
        Initialize the transport.

        Args:
            options: Initial transport options
            connector: Callable (host, port, timeout) -> connected socket
            timeout: Timeout for reads and writes in seconds
            connect_timeout: Timeout for establishing connections in seconds
            read_size: Maximum bytes per socket read
        """
        super().__init__()
        self._connector = connector or open_connection
        self._read_size = read_size or self.DEFAULT_READ_SIZE
        self._options[TransportOption.TIMEOUT] = timeout or self.DEFAULT_TIMEOUT
        self._options[TransportOption.CONNECT_TIMEOUT] = (
            connect_timeout or self.DEFAULT_CONNECT_TIMEOUT
        )
        if options:
            self.set_options(options)

        logger.debug("H11 transport initialized")

    def execute(self) -> TransportResult:
        if self._closed:
            raise RuntimeError("Transport handle is closed")

        start_time = time.monotonic()
        url = self._options.get(TransportOption.URL)
        method = (self._options.get(TransportOption.METHOD) or "GET").upper()
        body = self._encode_body(self._options.get(TransportOption.BODY))
        follow = bool(self._options.get(TransportOption.FOLLOW_REDIRECTS))
        max_redirects = self._options.get(TransportOption.MAX_REDIRECTS)
        referer: Optional[str] = None
        header_blocks: List[bytes] = []

        self._info = {
            "url": url,
            "effective_url": url,
            "response_code": 0,
            "content_type": None,
            "http_version": None,
            "redirect_count": 0,
            "header_out": "",
            "header_size": 0,
            "size_download": 0,
            "total_time": 0.0,
        }

        if not url:
            return self._finish(
                start_time, TransportErrorCode.URL_MALFORMAT, None, "No URL set"
            )

        try:
            while True:
                exchange = self._perform(method, url, body, referer)
                header_blocks.extend(exchange.header_blocks)
                location = _find_header(exchange.headers, b"location")
                self._info.update(
                    effective_url=url,
                    response_code=exchange.status_code,
                    content_type=_find_header(exchange.headers, b"content-type"),
                    http_version=exchange.http_version,
                )

                if follow and exchange.status_code in REDIRECT_CODES and location:
                    if max_redirects is not None and self._info["redirect_count"] >= max_redirects:
                        return self._finish(
                            start_time,
                            TransportErrorCode.TOO_MANY_REDIRECTS,
                            None,
                            f"Maximum ({max_redirects}) redirects followed",
                        )
                    self._info["redirect_count"] += 1
                    if self._options.get(TransportOption.AUTO_REFERER):
                        referer = url
                    url = urljoin(url, location)
                    if exchange.status_code == 303 or (
                        exchange.status_code in (301, 302) and method == "POST"
                    ):
                        method = "GET"
                        body = None
                    logger.debug(f"Following {exchange.status_code} redirect to {url}")
                    continue
                break
        except _TransportFailure as failure:
            return self._finish(start_time, failure.code, None, failure.message)

        headers_payload = b"".join(header_blocks)
        self._info["header_size"] = len(headers_payload)
        self._info["size_download"] = len(exchange.body)

        if (
            self._options.get(TransportOption.FAIL_ON_ERROR)
            and exchange.status_code >= 400
        ):
            return self._finish(
                start_time,
                TransportErrorCode.HTTP_RETURNED_ERROR,
                headers_payload,
                f"The requested URL returned error: {exchange.status_code}",
            )

        if self._options.get(TransportOption.INCLUDE_HEADERS):
            payload = headers_payload + exchange.body
        else:
            payload = exchange.body
        return self._finish(start_time, TransportErrorCode.OK, payload)

    def _finish(
        self,
        start_time: float,
        code: TransportErrorCode,
        payload: Optional[bytes],
        message: str = "",
    ) -> TransportResult:
        duration = time.monotonic() - start_time
        self._info["total_time"] = duration
        logger.debug(
            f"{self._info['url']} -> {self._info['response_code']} "
            f"[{code.name}] ({duration:.3f}s)"
        )
        return TransportResult(code, payload, message)

    @staticmethod
    def _encode_body(body: Optional[Union[str, bytes]]) -> Optional[bytes]:
        if body is None:
            return None
        if isinstance(body, str):
            return body.encode("utf-8")
        return bytes(body)

    def _perform(
        self,
        method: str,
        url: str,
        body: Optional[bytes],
        referer: Optional[str],
    ) -> _Exchange:
        """Run one request/response hop against url."""
        try:
            scheme, host, port, target = parse_url(url)
        except ValueError as e:
            raise _TransportFailure(TransportErrorCode.URL_MALFORMAT, str(e))

        if scheme not in ("http", "https"):
            raise _TransportFailure(
                TransportErrorCode.UNSUPPORTED_PROTOCOL,
                f'Protocol "{scheme}" not supported',
            )

        connect_timeout = self._options.get(TransportOption.CONNECT_TIMEOUT)
        try:
            sock = self._connector(host, port, connect_timeout)
        except socket.gaierror:
            raise _TransportFailure(
                TransportErrorCode.COULDNT_RESOLVE_HOST, f"Could not resolve host: {host}"
            )
        except socket.timeout:
            raise _TransportFailure(
                TransportErrorCode.OPERATION_TIMEDOUT,
                f"Connection to {host} port {port} timed out",
            )
        except OSError as e:
            raise _TransportFailure(
                TransportErrorCode.COULDNT_CONNECT,
                f"Failed to connect to {host} port {port}: {e}",
            )

        try:
            if scheme == "https":
                sock = self._start_tls(sock, host)
            sock.settimeout(self._options.get(TransportOption.TIMEOUT))
            host_header = format_host_header(host, port, scheme)
            return self._exchange(sock, method, host_header, target, body, referer)
        finally:
            sock.close()

    def _start_tls(self, sock: socket.socket, host: str) -> socket.socket:
        context = create_ssl_context(
            verify_peer=bool(self._options.get(TransportOption.VERIFY_PEER)),
            verify_host=bool(self._options.get(TransportOption.VERIFY_HOST)),
            alpn_protocols=["http/1.1"],
        )
        try:
            return context.wrap_socket(sock, server_hostname=host)
        except ssl.SSLCertVerificationError as e:
            raise _TransportFailure(
                TransportErrorCode.PEER_FAILED_VERIFICATION,
                f"SSL certificate problem: {e.verify_message}",
            )
        except socket.timeout:
            raise _TransportFailure(
                TransportErrorCode.OPERATION_TIMEDOUT, f"TLS handshake with {host} timed out"
            )
        except (ssl.SSLError, OSError) as e:
            raise _TransportFailure(TransportErrorCode.SSL_CONNECT_ERROR, f"SSL connect error: {e}")

    def _request_headers(
        self,
        host_header: str,
        method: str,
        body: Optional[bytes],
        referer: Optional[str],
    ) -> List[Tuple[str, str]]:
        headers = [("Host", host_header)]
        user_agent = self._options.get(TransportOption.USER_AGENT)
        if user_agent:
            headers.append(("User-Agent", user_agent))

        for line in self._options.get(TransportOption.HEADERS) or []:
            name, sep, value = line.partition(":")
            if not sep or not name.strip():
                logger.debug(f"Skipping malformed request header: {line!r}")
                continue
            headers.append((name.strip(), value.strip()))

        present = {name.lower() for name, _ in headers}
        if "accept" not in present:
            headers.append(("Accept", "*/*"))
        if referer and "referer" not in present:
            headers.append(("Referer", referer))
        if body is not None:
            if "content-length" not in present:
                headers.append(("Content-Length", str(len(body))))
            if method == "POST" and "content-type" not in present:
                headers.append(("Content-Type", "application/x-www-form-urlencoded"))
        return headers

    def _exchange(
        self,
        sock: socket.socket,
        method: str,
        host_header: str,
        target: str,
        body: Optional[bytes],
        referer: Optional[str],
    ) -> _Exchange:
        """Send one request with h11 and read back the complete response."""
        connection = h11.Connection(our_role=h11.CLIENT)
        headers = self._request_headers(host_header, method, body, referer)

        try:
            data = connection.send(h11.Request(method=method, target=target, headers=headers))
        except h11.LocalProtocolError as e:
            raise _TransportFailure(TransportErrorCode.SEND_ERROR, f"Invalid request: {e}")
        if self._options.get(TransportOption.HEADER_OUT):
            self._info["header_out"] = data.decode("iso-8859-1")
        if body:
            data += connection.send(h11.Data(data=body))
        data += connection.send(h11.EndOfMessage())

        try:
            sock.sendall(data)
        except socket.timeout:
            raise _TransportFailure(TransportErrorCode.OPERATION_TIMEDOUT, "Send timed out")
        except OSError as e:
            raise _TransportFailure(TransportErrorCode.SEND_ERROR, f"Failed sending data: {e}")

        status_code = 0
        http_version = ""
        header_blocks: List[bytes] = []
        response_headers: List[Tuple[bytes, bytes]] = []
        chunks: List[bytes] = []
        switched: Optional[h11.InformationalResponse] = None

        while True:
            try:
                event = connection.next_event()
            except h11.RemoteProtocolError as e:
                if status_code == 0:
                    raise _TransportFailure(TransportErrorCode.GOT_NOTHING, "Empty reply from server")
                raise _TransportFailure(TransportErrorCode.RECV_ERROR, f"Failure receiving data: {e}")

            if event is h11.NEED_DATA:
                try:
                    received = sock.recv(self._read_size)
                except socket.timeout:
                    raise _TransportFailure(TransportErrorCode.OPERATION_TIMEDOUT, "Read timed out")
                except OSError as e:
                    raise _TransportFailure(TransportErrorCode.RECV_ERROR, f"Failure receiving data: {e}")
                # An empty read tells h11 the peer closed the connection
                connection.receive_data(received)
                continue

            if event is h11.PAUSED:
                # A 101 hands the connection to another protocol; it is the final response
                if switched is None:
                    raise _TransportFailure(
                        TransportErrorCode.RECV_ERROR, "Connection paused without a protocol switch"
                    )
                status_code = switched.status_code
                http_version = switched.http_version.decode("ascii")
                response_headers = list(switched.headers)
                break

            if isinstance(event, h11.InformationalResponse):
                header_blocks.append(_format_head(event))
                if event.status_code == 101:
                    switched = event
                continue

            if isinstance(event, h11.Response):
                header_blocks.append(_format_head(event))
                status_code = event.status_code
                http_version = event.http_version.decode("ascii")
                response_headers = list(event.headers)
                continue

            if isinstance(event, h11.Data):
                chunks.append(bytes(event.data))
                continue

            if isinstance(event, (h11.EndOfMessage, h11.ConnectionClosed)):
                break

            raise _TransportFailure(
                TransportErrorCode.RECV_ERROR, f"Unexpected response event: {type(event).__name__}"
            )

        if status_code == 0:
            raise _TransportFailure(TransportErrorCode.GOT_NOTHING, "Empty reply from server")

        return _Exchange(
            status_code=status_code,
            http_version=http_version,
            header_blocks=header_blocks,
            headers=response_headers,
            body=b"".join(chunks),
        )
