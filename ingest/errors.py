"""Exceptions raised by the EDCC ingest pipeline.

    EdccError       base; carries the URL that was being processed
    +-- FetchError  listing or alert page unreachable or non-2xx
"""

from __future__ import annotations


class EdccError(Exception):
    def __init__(self, message: str, *, url: str | None = None) -> None:
        self.message = message
        self.url = url
        super().__init__(message)

    def __str__(self) -> str:
        if self.url:
            return f"{self.message} ({self.url})"
        return self.message


class FetchError(EdccError):
    def __init__(
        self, message: str, *, url: str, status_code: int | None = None
    ) -> None:
        super().__init__(message, url=url)
        self.status_code = status_code
