"""
Tests for exchange reads and escrow instructions.
"""

from __future__ import annotations

import asyncio
import struct
from unittest.mock import AsyncMock

from solders.pubkey import Pubkey
from spl.token.constants import ASSOCIATED_TOKEN_PROGRAM_ID

from nina_sdk.core.exceptions import AccountNotFoundError
from nina_sdk.resources import exchanges

from .helpers import program_instruction, sent_instructions


def test_fetch_passes_transaction_id(nina_client, api):
    asyncio.run(exchanges.fetch(nina_client, "ex1", transaction_id="tx1"))
    api.get.assert_awaited_once_with("/exchanges/ex1", {"transactionId": "tx1"})


def test_exchange_init_selling(nina_client, release_account):
    release = release_account(price=1_000_000)
    nina_client.fetch_release_account = AsyncMock(return_value=release)

    result = asyncio.run(exchanges.exchange_init(nina_client, 5_000_000, True, Pubkey.new_unique()))

    ix, args = program_instruction(nina_client, "exchange_init")
    assert struct.unpack_from("<QQ?", args) == (5_000_000, 1, True)
    signers = nina_client.send_transaction.await_args.kwargs["signers"]
    assert result["publicKey"] == str(signers[0].pubkey())
    assert result["releaseMint"] == release.release_mint
    assert result["releaseAccount"]["price"] == 1_000_000
    # program account create + escrow, expected and sending ATAs
    assert len(sent_instructions(nina_client)) == 5


def test_exchange_init_buying_sol_release_wraps(nina_client, release_account, settings):
    nina_client.fetch_release_account = AsyncMock(
        return_value=release_account(payment_mint=settings.ids.wsol_mint)
    )
    asyncio.run(exchanges.exchange_init(nina_client, 2_000_000_000, False, Pubkey.new_unique()))
    _, args = program_instruction(nina_client, "exchange_init")
    assert struct.unpack_from("<QQ?", args) == (1, 2_000_000_000, False)
    created = [ix.accounts[1].pubkey for ix in sent_instructions(nina_client) if ix.program_id == ASSOCIATED_TOKEN_PROGRAM_ID]
    assert len(created) == 3
    assert len(set(created)) == len(created)


def test_exchange_init_missing_release(nina_client):
    nina_client.fetch_release_account = AsyncMock(side_effect=AccountNotFoundError("Release", "x"))
    assert asyncio.run(exchanges.exchange_init(nina_client, 1, True, Pubkey.new_unique())) is False


def test_exchange_accept_waits_for_finalized(nina_client, release_account, exchange_account):
    offer = exchange_account(is_selling=True)
    nina_client.fetch_release_account = AsyncMock(return_value=release_account(resale_percentage=100_000))
    nina_client.fetch_exchange_account = AsyncMock(return_value=offer)
    exchange = Pubkey.new_unique()

    result = asyncio.run(exchanges.exchange_accept(nina_client, exchange, Pubkey.new_unique()))

    assert result["txid"] == "5igTx"
    ix, args = program_instruction(nina_client, "exchange_accept")
    assert struct.unpack_from("<QQQ", args) == (offer.expected_amount, offer.initializer_amount, 100_000)
    assert ix.accounts[0].pubkey == Pubkey.from_string(offer.initializer)
    assert nina_client.send_transaction.await_args.kwargs["commitment"] == "finalized"


def test_exchange_cancel_returns_release_token(nina_client, exchange_account):
    nina_client.fetch_exchange_account = AsyncMock(return_value=exchange_account(is_selling=True))
    exchange = Pubkey.new_unique()
    result = asyncio.run(exchanges.exchange_cancel(nina_client, exchange))
    _, args = program_instruction(nina_client, "exchange_cancel")
    assert args == struct.pack("<Q", 1)
    assert result["exchangePubkey"] == str(exchange)


def test_exchange_cancel_sol_offer(nina_client, exchange_account, settings):
    offer = exchange_account(is_selling=False, sending_mint=settings.ids.wsol_mint, initializer_amount=3_000)
    nina_client.fetch_exchange_account = AsyncMock(return_value=offer)
    asyncio.run(exchanges.exchange_cancel(nina_client, Pubkey.new_unique()))
    _, args = program_instruction(nina_client, "exchange_cancel_sol")
    assert args == struct.pack("<Q", 3_000)
