"""
Environment variable loading for the Nina SDK.

- SOLANA_NETWORK: mainnet | devnet (default: mainnet)
- SOLANA_RPC_URL: RPC endpoint (falls back to the public endpoint for the network)
- NINA_API_ENDPOINT / NINA_IDENTITY_ENDPOINT: REST indexer and identity service
- NINA_PROGRAM_ID: Nina program id (PDA derivation must use this program ID)
- NINA_PRIVATE_KEY / NINA_KEYPAIR_PATH: signing wallet
- Loads .env from project root when available.
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

# Project root: config is nina_sdk/config/, root is 2 levels up
_CONFIG_DIR = Path(__file__).resolve().parent
_PACKAGE_DIR = _CONFIG_DIR.parent
_ROOT = _PACKAGE_DIR.parent
_ENV_PATH = _ROOT / ".env"

DEVNET_RPC_URL = "https://api.devnet.solana.com"
MAINNET_RPC_URL = "https://api.mainnet-beta.solana.com"

DEFAULT_API_ENDPOINT = "https://api.ninaprotocol.com/v1"
DEFAULT_IDENTITY_ENDPOINT = "https://id.ninaprotocol.com"

DEFAULT_PROGRAM_ID = "ninaN2tm9vUkxoanvGcNApEeWiidLMM2TdBX8HoJuL4"
METAPLEX_PROGRAM_ID = "metaqbxxUerdq28cj1RbAWkYQm3ybzjb6a8bt518x1s"
TOKEN_PROGRAM_ID = "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA"

USDC_MINT = "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v"
WSOL_MINT = "So11111111111111111111111111111111111111112"
PUBLISHING_CREDIT_MINT = "NpCbciKNhRHhcqRvy9dG5WKGZqeGkiXSGyuM4mBkHhk"
HUB_CREDIT_MINT = "NpCbciKNhRHhcqRvy9dG5WKGZqeGkiXSGyuM4mBkHhk"


def load_nina_env() -> None:
    """Load .env from project root. Safe to call multiple times."""
    load_dotenv(_ENV_PATH)


def env_str(name: str, default: str = "") -> str:
    return (os.getenv(name) or default).strip()


def env_float(name: str, default: float) -> float:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def env_int(name: str, default: int) -> int:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def get_solana_network() -> str:
    """
    Return SOLANA_NETWORK from env: devnet | mainnet.
    Default: mainnet (the Nina program and indexer live there).
    """
    load_nina_env()
    raw = (os.getenv("SOLANA_NETWORK") or os.getenv("SOLANA_CLUSTER") or "mainnet").strip().lower()
    if raw == "devnet":
        return "devnet"
    return "mainnet"


def get_solana_rpc_url() -> str:
    """
    Resolve Solana RPC URL from env.
    Order: SOLANA_RPC_URL > public endpoint for SOLANA_NETWORK.
    """
    load_nina_env()
    url = env_str("SOLANA_RPC_URL")
    if url:
        return url
    return DEVNET_RPC_URL if get_solana_network() == "devnet" else MAINNET_RPC_URL


def get_api_endpoint() -> str:
    load_nina_env()
    return env_str("NINA_API_ENDPOINT", DEFAULT_API_ENDPOINT).rstrip("/")


def get_identity_endpoint() -> str:
    load_nina_env()
    return env_str("NINA_IDENTITY_ENDPOINT", DEFAULT_IDENTITY_ENDPOINT).rstrip("/")


def get_program_id() -> str:
    """Return NINA_PROGRAM_ID from env, or the deployed Nina program."""
    load_nina_env()
    return env_str("NINA_PROGRAM_ID", DEFAULT_PROGRAM_ID)


def mask_url(url: str) -> str:
    """Hide API keys embedded in RPC URLs before logging them."""
    if "api-key=" in url:
        return url.split("api-key=")[0] + "api-key=***"
    return url
