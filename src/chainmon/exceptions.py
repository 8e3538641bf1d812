"""Custom exception hierarchy for chainmon."""

from __future__ import annotations


class ChainMonError(Exception):
    """Base exception for all chainmon errors."""


class ChainMonConfigError(ChainMonError):
    """Invalid or missing configuration."""


class UnknownChainError(ChainMonError):
    """An identifier (ticker, symbol, name) that maps to no known chain."""

    def __init__(self, identifier: str, *, source: str = "") -> None:
        self.identifier = identifier
        self.source = source
        suffix = f" (from {source})" if source else ""
        super().__init__(f"Unknown chain identifier {identifier!r}{suffix}")


class SourceError(ChainMonError):
    """A source adapter could not produce a chain state."""

    def __init__(
        self,
        message: str,
        *,
        source: str = "",
        chain: str = "",
    ) -> None:
        self.source = source
        self.chain = chain
        super().__init__(message)


class SourceFetchError(SourceError):
    """HTTP-level failure (network, timeout, non-2xx, invalid JSON)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        url: str = "",
        source: str = "",
        chain: str = "",
    ) -> None:
        self.status_code = status_code
        self.url = url
        super().__init__(message, source=source, chain=chain)


class SourceParseError(SourceError):
    """Payload was fetched but does not contain a usable block height/hash."""


class SubscriptionClosedError(ChainMonError):
    """Waited on a subscription that has been closed and drained."""
