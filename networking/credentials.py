from __future__ import annotations

from typing import Optional, Protocol, runtime_checkable

from .models import ProxyCredentials


@runtime_checkable
class CredentialProvider(Protocol):
    """Supplies proxy credentials at connection time."""

    def get_credentials(self) -> Optional[ProxyCredentials]:
        ...


class StaticCredentialProvider:
    """Hands out a fixed credential pair for the lifetime of a session."""

    __slots__ = ("_credentials",)

    def __init__(self, credentials: Optional[ProxyCredentials]) -> None:
        self._credentials = credentials

    def get_credentials(self) -> Optional[ProxyCredentials]:
        return self._credentials

    def __repr__(self) -> str:
        return f"StaticCredentialProvider({self._credentials!r})"
