"""
Transport-neutral request/response pair handed to middlewares and handlers.

The web framework adapter in api.app builds an HttpRequest from the incoming
request, lets the Dispatcher fill an HttpResponse, and converts it back.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional
from urllib.parse import parse_qs


class HttpError(Exception):
    """Raised by middlewares/handlers to stop the chain with a given status."""

    def __init__(self, status_code: int, body: str = "", headers: Optional[dict[str, str]] = None):
        super().__init__(body or f"HTTP {status_code}")
        self.status_code = status_code
        self.body = body
        self.headers = headers or {}


@dataclass
class HttpRequest:
    method: str
    url: str
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    state: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.method = self.method.upper()
        self.headers = {k.lower(): v for k, v in self.headers.items()}

    @property
    def path(self) -> str:
        # "//x" is a path here, not a netloc
        return self.url.partition("?")[0] or "/"

    @property
    def query(self) -> dict[str, list[str]]:
        return parse_qs(self.url.partition("?")[2])

    def header(self, name: str, default: Optional[str] = None) -> Optional[str]:
        return self.headers.get(name.lower(), default)


@dataclass
class HttpResponse:
    status_code: int = 200
    headers: dict[str, str] = field(default_factory=dict)
    finished: bool = False
    _chunks: list[bytes] = field(default_factory=list, repr=False)

    def set_header(self, name: str, value: str) -> None:
        self.headers[name] = value

    def write(self, chunk: str | bytes) -> None:
        if self.finished:
            raise RuntimeError("write after end")
        self._chunks.append(chunk.encode("utf-8") if isinstance(chunk, str) else chunk)

    def end(self, chunk: str | bytes | None = None) -> None:
        """Terminal write; later calls are ignored."""
        if self.finished:
            return
        if chunk:
            self.write(chunk)
        self.finished = True

    @property
    def body(self) -> bytes:
        return b"".join(self._chunks)
