"""
Pytest fixtures for Nina SDK tests. RPC and REST are mocked; no network access.
"""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from solders.keypair import Keypair
from solders.pubkey import Pubkey

from nina_sdk.client import NinaClient
from nina_sdk.config import NinaIds, Settings
from nina_sdk.program import accounts
from nina_sdk.program.accounts import ExchangeAccount, HubAccount, ReleaseAccount, RoyaltyRecipient


def new_key() -> str:
    return str(Pubkey.new_unique())


@pytest.fixture
def settings():
    """Explicit settings so tests never depend on the developer's .env."""
    return Settings(
        network="mainnet",
        solana_rpc_url="http://localhost:8899",
        api_endpoint="https://api.test/v1",
        identity_endpoint="https://id.test",
        ids=NinaIds(),
        private_key="",
        keypair_path="",
        http_timeout_sec=5.0,
        retry_attempts=2,
        retry_backoff_sec=0.0,
        confirm_timeout_sec=0.2,
        confirm_poll_interval_sec=0.01,
        commitment="confirmed",
    )


@pytest.fixture
def keypair():
    return Keypair()


@pytest.fixture
def rpc():
    """AsyncClient stand-in: every account is missing, rent is 1_000_000 lamports."""
    mock = MagicMock()
    mock.get_account_info = AsyncMock(return_value=SimpleNamespace(value=None))
    mock.get_minimum_balance_for_rent_exemption = AsyncMock(return_value=SimpleNamespace(value=1_000_000))
    mock.get_multiple_accounts = AsyncMock(return_value=SimpleNamespace(value=[]))
    mock.get_token_account_balance = AsyncMock(return_value=SimpleNamespace(value=SimpleNamespace(amount="0")))
    mock.close = AsyncMock()
    return mock


@pytest.fixture
def api():
    mock = MagicMock()
    mock.get = AsyncMock(return_value={})
    mock.get_url = AsyncMock(return_value={})
    mock.close = AsyncMock()
    return mock


@pytest.fixture
def nina_client(settings, keypair, rpc, api):
    """NinaClient with a wallet, mocked connections and a stubbed send_transaction."""
    client = NinaClient(settings, keypair=keypair, rpc=rpc, api=api)
    client.send_transaction = AsyncMock(return_value="5igTx")
    return client


@pytest.fixture
def release_account(settings):
    def _make(price: int = 1_000_000, payment_mint: str | None = None, **overrides) -> ReleaseAccount:
        fields = dict(
            payer=new_key(),
            authority=new_key(),
            release_signer=new_key(),
            release_mint=new_key(),
            release_datetime=1_700_000_000,
            royalty_token_account=new_key(),
            payment_mint=payment_mint or settings.ids.usdc_mint,
            price=price,
            total_supply=100,
            remaining_supply=90,
            resale_percentage=200_000,
            total_collected=0,
            sale_counter=10,
            exchange_sale_counter=0,
            sale_total=10 * price,
            exchange_sale_total=0,
            release_bump=254,
            signer_bump=253,
            head=0,
            tail=0,
            royalty_recipients=[],
        )
        fields.update(overrides)
        return ReleaseAccount(**fields)

    return _make


@pytest.fixture
def hub_account():
    def _make(handle: str = "ninas-picks", referral_fee: int = 10_000, **overrides) -> HubAccount:
        fields = dict(
            authority=new_key(),
            handle=handle,
            uri="https://arweave.net/hub",
            hub_signer=new_key(),
            publish_fee=0,
            referral_fee=referral_fee,
            total_fees_earned=0,
            hub_signer_bump=255,
            datetime=1_700_000_000,
        )
        fields.update(overrides)
        return HubAccount(**fields)

    return _make


@pytest.fixture
def exchange_account(settings):
    def _make(is_selling: bool = True, sending_mint: str | None = None, **overrides) -> ExchangeAccount:
        fields = dict(
            initializer=new_key(),
            release=new_key(),
            release_mint=new_key(),
            initializer_expected_token_account=new_key(),
            initializer_sending_token_account=new_key(),
            initializer_sending_mint=sending_mint or new_key(),
            initializer_expected_mint=settings.ids.usdc_mint,
            exchange_signer=new_key(),
            exchange_escrow_token_account=new_key(),
            expected_amount=5_000_000,
            initializer_amount=1,
            is_selling=is_selling,
            bump=250,
        )
        fields.update(overrides)
        return ExchangeAccount(**fields)

    return _make


@pytest.fixture
def release_bytes():
    """Raw Release account data with the given recipients in the first slots."""

    def _make(price: int = 2_000_000, recipients: list[RoyaltyRecipient] | None = None, mint: Pubkey | None = None) -> bytes:
        keys = [Pubkey.new_unique() for _ in range(6)]
        header = accounts._RELEASE_HEADER.pack(
            bytes(keys[0]),
            bytes(keys[1]),
            bytes(keys[2]),
            bytes(mint or keys[3]),
            1_700_000_000,
            bytes(keys[4]),
            bytes(keys[5]),
            price, 50, 40, 200_000, 123, 10, 1, 20_000_000, 3_000_000,
            254, 253, 0, 2,
        )
        slots = b""
        for r in recipients or []:
            slots += accounts._ROYALTY_RECIPIENT.pack(
                bytes(Pubkey.from_string(r.recipient_authority)),
                bytes(Pubkey.from_string(r.recipient_token_account)),
                r.percent_share,
                r.owed,
                r.collected,
            )
        empty = accounts.MAX_ROYALTY_RECIPIENTS - len(recipients or [])
        slots += b"\x00" * accounts._ROYALTY_RECIPIENT.size * empty
        return accounts.RELEASE_DISCRIMINATOR + header + slots

    return _make
