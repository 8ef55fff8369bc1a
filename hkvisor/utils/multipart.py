"""
Incremental parser for multipart/mixed HTTP bodies.

Cameras push their alert stream as an endless multipart body, so parts have
to be produced as soon as they are complete instead of after the response
ends. Bytes are fed in as they arrive and finished parts come back out.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from hkvisor.exceptions import MultipartError

logger = logging.getLogger(__name__)

DEFAULT_BOUNDARY = "boundary"

_BOUNDARY_PARAM = re.compile(r'boundary\s*=\s*(?:"([^"]+)"|([^;\s]+))', re.IGNORECASE)


def get_boundary(content_type: Optional[str], default: str = DEFAULT_BOUNDARY) -> str:
    """Returns the boundary declared in a Content-Type header, or default."""
    if content_type:
        match = _BOUNDARY_PARAM.search(content_type)
        if match:
            return match.group(1) or match.group(2)
    return default


@dataclass
class MultipartPart:
    """A single section of a multipart body."""

    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""


class MultipartParser:
    """Splits a multipart body into parts as bytes are fed to it."""

    _PREAMBLE = "preamble"
    _HEADERS = "headers"
    _BODY = "body"
    _DONE = "done"

    def __init__(self, boundary: str):
        self.boundary = boundary
        self._delimiter = b"--" + boundary.encode("latin-1")
        self._buffer = b""
        self._state = self._PREAMBLE
        self._headers: Dict[str, str] = {}
        self._content_length: Optional[int] = None

    @property
    def finished(self) -> bool:
        """True once the closing delimiter has been seen."""
        return self._state == self._DONE

    def feed(self, data: bytes) -> List[MultipartPart]:
        """Consume more bytes and return every part completed by them."""
        if self._state == self._DONE:
            return []
        self._buffer += data
        parts = []
        while True:
            if self._state == self._PREAMBLE:
                if not self._consume_delimiter(self._buffer.find(self._delimiter)):
                    break
            elif self._state == self._HEADERS:
                if not self._consume_headers():
                    break
            elif self._state == self._BODY:
                part = self._consume_body()
                if part is None:
                    break
                parts.append(part)
            else:
                break
        return parts

    def close(self) -> None:
        """Signal the end of input.

        Raises:
            MultipartError: if the input ended inside a part
        """
        if self._state in (self._HEADERS, self._BODY):
            raise MultipartError(
                f"Stream ended in the middle of a part ({len(self._buffer)} bytes unread)"
            )
        self._buffer = b""

    def _consume_delimiter(self, index: int) -> bool:
        if index < 0:
            # Keep only what could still be the start of a delimiter
            self._buffer = self._buffer[-len(self._delimiter):]
            return False
        # Need the two bytes after the delimiter to tell a close from a new part
        if len(self._buffer) < index + len(self._delimiter) + 2:
            return False
        rest = self._buffer[index + len(self._delimiter):]
        if rest.startswith(b"--"):
            self._state = self._DONE
            self._buffer = b""
            return False
        line_end = rest.find(b"\n")
        if line_end < 0:
            return False
        self._buffer = rest[line_end + 1:]
        self._state = self._HEADERS
        return True

    def _consume_headers(self) -> bool:
        # Whichever blank line comes first ends the headers
        candidates = [
            (index, sep_len)
            for index, sep_len in ((self._buffer.find(b"\r\n\r\n"), 4), (self._buffer.find(b"\n\n"), 2))
            if index >= 0
        ]
        end, sep_len = min(candidates) if candidates else (-1, 0)
        # Part with no headers at all
        if self._buffer.startswith(b"\r\n"):
            end, sep_len = 0, 2
        elif self._buffer.startswith(b"\n"):
            end, sep_len = 0, 1
        if end < 0:
            return False

        headers = {}
        for line in self._buffer[:end].decode("latin-1").splitlines():
            if not line.strip():
                continue
            if ":" not in line:
                raise MultipartError(f"Malformed part header: {line!r}")
            key, value = line.split(":", 1)
            headers[key.strip().lower()] = value.strip()

        content_length = headers.get("content-length")
        try:
            self._content_length = int(content_length) if content_length is not None else None
        except ValueError:
            raise MultipartError(f"Invalid Content-Length: {content_length!r}")

        self._headers = headers
        self._buffer = self._buffer[end + sep_len:]
        self._state = self._BODY
        return True

    def _consume_body(self) -> Optional[MultipartPart]:
        if self._content_length is not None:
            if len(self._buffer) < self._content_length:
                return None
            body = self._buffer[:self._content_length]
            self._buffer = self._buffer[self._content_length:]
        else:
            index = self._buffer.find(self._delimiter)
            if index < 0:
                return None
            body = self._buffer[:index]
            if body.endswith(b"\r\n"):
                body = body[:-2]
            elif body.endswith(b"\n"):
                body = body[:-1]
            self._buffer = self._buffer[index:]

        part = MultipartPart(headers=self._headers, body=body)
        self._headers = {}
        self._content_length = None
        self._state = self._PREAMBLE
        return part
