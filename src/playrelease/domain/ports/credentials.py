"""Port for obtaining authorised access tokens."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class TokenProvider(Protocol):
    """Yields a bearer token valid for the publishing API.

    Implementations raise ``AuthError`` when credentials cannot be used.
    """

    def token(self) -> str: ...
