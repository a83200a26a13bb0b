"""Minimal blocking HTTP GET client."""

from __future__ import annotations

import urllib.error
import urllib.request
from dataclasses import dataclass


class HttpError(Exception):
    """Raised when a request could not be performed at all."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


@dataclass(frozen=True)
class Response:
    """Status code and body of an HTTP response."""

    status_code: int
    content: bytes

    @property
    def text(self) -> str:
        """The body decoded as UTF-8."""
        return self.content.decode("utf-8", errors="replace")


def get(url: str) -> Response:
    """Fetch ``url``; non-2xx statuses are returned, transport failures raise HttpError."""
    try:
        with urllib.request.urlopen(url) as reply:
            return Response(status_code=reply.status, content=reply.read())
    except urllib.error.HTTPError as exc:
        with exc:
            body = exc.read()
        return Response(status_code=exc.code, content=body)
    except (urllib.error.URLError, OSError, ValueError) as exc:
        raise HttpError(f"Request to {url} failed: {exc}") from exc