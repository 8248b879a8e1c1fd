"""Failures the fetcher can raise. The collector decides whether to log or abort."""

from __future__ import annotations

from typing import Optional

import httpx


def _describe_url(url: str) -> str:
    """scheme://host:port/path, without credentials or query string."""
    try:
        parsed = httpx.URL(url)
    except httpx.InvalidURL:
        return url
    port = parsed.port if parsed.port is not None else ""
    return f"{parsed.scheme}://{parsed.host}:{port}{parsed.path}"


class FetchError(Exception):
    """Base class for anything that went wrong fetching one URL."""

    def __init__(self, url: str, message: str):
        self.url = url
        super().__init__(f"{message} ({_describe_url(url)})")


class TransportError(FetchError):
    """Connection, DNS or timeout failure before a response arrived."""

    def __init__(self, url: str, cause: BaseException):
        self.cause = cause
        super().__init__(url, f"failed to get: {cause}")


class UnexpectedStatusError(FetchError):
    def __init__(self, url: str, status_code: int):
        self.status_code = status_code
        super().__init__(url, f"HTTP request failed with code {status_code}")


class DecodeError(FetchError):
    """Body was not JSON, or the JSON did not match the expected shape."""

    def __init__(self, url: str, cause: Optional[BaseException] = None):
        self.cause = cause
        reason = str(cause).splitlines()[0] if cause is not None else "invalid body"
        super().__init__(url, f"failed to decode response: {reason}")
