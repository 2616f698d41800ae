"""
Application-level exceptions.

Read operations raise these. Write operations catch them at the resource
boundary, log, and return the resource's failure value.
"""

from __future__ import annotations


class NinaError(Exception):
    """Base class for every error raised by the SDK."""


class NinaApiError(NinaError):
    """The REST indexer returned a non-2xx response."""

    def __init__(self, status_code: int, path: str, detail: str = "") -> None:
        self.status_code = status_code
        self.path = path
        self.detail = detail
        msg = f"Nina API {path} returned {status_code}"
        if detail:
            msg = f"{msg}: {detail}"
        super().__init__(msg)


class AccountNotFoundError(NinaError):
    """An on-chain account does not exist (or was closed)."""

    def __init__(self, kind: str, public_key: str) -> None:
        self.kind = kind
        self.public_key = public_key
        super().__init__(f"{kind} account not found: {public_key}")


class AccountDecodeError(NinaError):
    """On-chain account data does not match the expected layout."""


class InstructionBuildError(NinaError):
    """An instruction could not be assembled from the IDL table."""


class TransactionFailedError(NinaError):
    """A submitted transaction was rejected or failed on chain."""

    def __init__(self, signature: str, err: object) -> None:
        self.signature = signature
        self.err = err
        super().__init__(f"transaction {signature} failed: {err}")


class ConfirmationTimeoutError(NinaError):
    """A transaction did not reach the requested commitment in time."""

    def __init__(self, signature: str, timeout_sec: float) -> None:
        self.signature = signature
        self.timeout_sec = timeout_sec
        super().__init__(f"transaction {signature} not confirmed after {timeout_sec}s")


class WalletNotConfiguredError(NinaError):
    """A write operation was attempted without a signing keypair."""


class InsufficientFundsError(NinaError):
    """The wallet cannot cover a purchase."""

    def __init__(self, required: float, available: float, symbol: str = "USDC") -> None:
        self.required = required
        self.available = available
        self.symbol = symbol
        super().__init__(f"insufficient {symbol}: need {required}, have {available}")
