"""Core types shared across the SDK (exceptions)."""

from nina_sdk.core.exceptions import (
    AccountDecodeError,
    AccountNotFoundError,
    ConfirmationTimeoutError,
    InstructionBuildError,
    InsufficientFundsError,
    NinaApiError,
    NinaError,
    TransactionFailedError,
    WalletNotConfiguredError,
)

__all__ = [
    "AccountDecodeError",
    "AccountNotFoundError",
    "ConfirmationTimeoutError",
    "InstructionBuildError",
    "InsufficientFundsError",
    "NinaApiError",
    "NinaError",
    "TransactionFailedError",
    "WalletNotConfiguredError",
]
