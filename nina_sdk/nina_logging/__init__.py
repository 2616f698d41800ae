"""
Structured logging for the Nina SDK. Use get_logger(__name__) in every module.
"""

from nina_sdk.nina_logging.logger import bind_wallet, configure_logging, get_logger

__all__ = ["bind_wallet", "configure_logging", "get_logger"]
