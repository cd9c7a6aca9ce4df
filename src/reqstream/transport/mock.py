"""
Mock transport handle for testing.

This module provides a TransportHandle that replays scripted results
instead of touching the network, and records what each request would
have sent.
"""

from collections import deque
from typing import Any, Deque, Dict, List, Mapping, Optional, Tuple, Union

from .handle import TransportErrorCode, TransportHandle, TransportOption, TransportResult


class MockTransport(TransportHandle):
    """
    Mock transport handle for testing.

    Results are queued with add_response()/add_error() and returned by
    execute() in order. Every executed request is recorded in
    ``requests`` as a snapshot of the options at execution time.
    """

    def __init__(self, options: Optional[Mapping[TransportOption, Any]] = None) -> None:
        super().__init__(options)
        self._results: Deque[Tuple[TransportResult, Dict[str, Any]]] = deque()
        self.requests: List[Dict[TransportOption, Any]] = []

    def add_response(
        self,
        payload: Union[bytes, str, None],
        response_code: int = 200,
        content_type: Optional[str] = None,
        code: TransportErrorCode = TransportErrorCode.OK,
        message: str = "",
        info: Optional[Dict[str, Any]] = None,
    ) -> None:
        """
        Queue a result for the next execute() call.

        Args:
            payload: Raw payload (headers inline with body)
            response_code: Value reported by get_info("response_code")
            content_type: Value reported by get_info("content_type")
            code: Transport error code to report
            message: Transport error text to report
            info: Extra diagnostics to merge into get_info()
        """
        if isinstance(payload, str):
            payload = payload.encode("iso-8859-1")
        extra = {"response_code": response_code, "content_type": content_type}
        extra.update(info or {})
        self._results.append((TransportResult(code, payload, message), extra))

    def add_error(self, code: TransportErrorCode, message: str = "") -> None:
        """Queue a transport failure with no payload."""
        self.add_response(None, response_code=0, code=code, message=message)

    def execute(self) -> TransportResult:
        if self._closed:
            raise RuntimeError("Transport handle is closed")
        if not self._results:
            raise RuntimeError("No mock responses queued")

        self.requests.append(dict(self._options))
        result, extra = self._results.popleft()
        self._info = {
            "url": self._options.get(TransportOption.URL),
            "effective_url": self._options.get(TransportOption.URL),
            "redirect_count": 0,
            "total_time": 0.0,
        }
        self._info.update(extra)
        return result

    @property
    def last_request(self) -> Dict[TransportOption, Any]:
        """Get the options snapshot of the most recent request."""
        if not self.requests:
            raise IndexError("No requests have been executed")
        return self.requests[-1]

    @property
    def pending(self) -> int:
        """Get the number of queued results not yet consumed."""
        return len(self._results)

    def reset(self) -> None:
        """Drop queued results and recorded requests."""
        self._results.clear()
        self.requests.clear()
