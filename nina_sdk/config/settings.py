"""
Application settings and environment configuration.

Responsibilities:
- Load configuration from environment variables and .env files.
- Validate settings and provide defaults for optional ones.
- Expose typed settings (RPC URL, API endpoints, program and mint ids,
  wallet key, retry and confirmation policy) for NinaClient.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from nina_sdk.config import env

DEFAULT_HTTP_TIMEOUT_SEC = 30.0
DEFAULT_RETRY_ATTEMPTS = 3
DEFAULT_RETRY_BACKOFF_SEC = 1.0
DEFAULT_CONFIRM_TIMEOUT_SEC = 60.0
DEFAULT_CONFIRM_POLL_INTERVAL_SEC = 1.0
DEFAULT_COMMITMENT = "confirmed"
COMMITMENT_LEVELS = ("processed", "confirmed", "finalized")


@dataclass(frozen=True)
class NinaIds:
    """Well-known program and mint addresses used by the Nina program."""

    program: str = env.DEFAULT_PROGRAM_ID
    metaplex_program: str = env.METAPLEX_PROGRAM_ID
    token_program: str = env.TOKEN_PROGRAM_ID
    usdc_mint: str = env.USDC_MINT
    wsol_mint: str = env.WSOL_MINT
    publishing_credit_mint: str = env.PUBLISHING_CREDIT_MINT
    hub_credit_mint: str = env.HUB_CREDIT_MINT


def _ids_from_env() -> NinaIds:
    return NinaIds(
        program=env.get_program_id(),
        usdc_mint=env.env_str("NINA_USDC_MINT", env.USDC_MINT),
        wsol_mint=env.env_str("NINA_WSOL_MINT", env.WSOL_MINT),
        publishing_credit_mint=env.env_str("NINA_PUBLISHING_CREDIT_MINT", env.PUBLISHING_CREDIT_MINT),
        hub_credit_mint=env.env_str("NINA_HUB_CREDIT_MINT", env.HUB_CREDIT_MINT),
    )


@dataclass
class Settings:
    """SDK configuration (env or explicit). Devnet: set SOLANA_NETWORK=devnet."""

    network: str = field(default_factory=env.get_solana_network)
    solana_rpc_url: str = field(default_factory=env.get_solana_rpc_url)
    api_endpoint: str = field(default_factory=env.get_api_endpoint)
    identity_endpoint: str = field(default_factory=env.get_identity_endpoint)
    ids: NinaIds = field(default_factory=_ids_from_env)
    private_key: str = field(default_factory=lambda: env.env_str("NINA_PRIVATE_KEY"))
    keypair_path: str = field(default_factory=lambda: env.env_str("NINA_KEYPAIR_PATH"))
    http_timeout_sec: float = field(
        default_factory=lambda: env.env_float("NINA_HTTP_TIMEOUT_SEC", DEFAULT_HTTP_TIMEOUT_SEC)
    )
    retry_attempts: int = field(
        default_factory=lambda: env.env_int("NINA_RETRY_ATTEMPTS", DEFAULT_RETRY_ATTEMPTS)
    )
    retry_backoff_sec: float = field(
        default_factory=lambda: env.env_float("NINA_RETRY_BACKOFF_SEC", DEFAULT_RETRY_BACKOFF_SEC)
    )
    confirm_timeout_sec: float = field(
        default_factory=lambda: env.env_float("NINA_CONFIRM_TIMEOUT_SEC", DEFAULT_CONFIRM_TIMEOUT_SEC)
    )
    confirm_poll_interval_sec: float = DEFAULT_CONFIRM_POLL_INTERVAL_SEC
    commitment: str = field(default_factory=lambda: env.env_str("NINA_COMMITMENT", DEFAULT_COMMITMENT).lower())

    def __post_init__(self) -> None:
        if self.retry_attempts < 1:
            self.retry_attempts = 1
        if self.retry_backoff_sec < 0:
            self.retry_backoff_sec = 0.0
        if self.http_timeout_sec <= 0:
            self.http_timeout_sec = DEFAULT_HTTP_TIMEOUT_SEC
        if self.confirm_timeout_sec <= 0:
            self.confirm_timeout_sec = DEFAULT_CONFIRM_TIMEOUT_SEC
        if self.commitment not in COMMITMENT_LEVELS:
            raise ValueError(f"NINA_COMMITMENT must be one of {COMMITMENT_LEVELS}, got {self.commitment!r}")
        self.api_endpoint = self.api_endpoint.rstrip("/")
        self.identity_endpoint = self.identity_endpoint.rstrip("/")

    @property
    def has_wallet(self) -> bool:
        return bool(self.private_key or self.keypair_path)


def get_settings() -> Settings:
    """Return settings resolved from the current environment."""
    return Settings()
