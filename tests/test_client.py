"""
Tests for NinaClient: keypair loading, send/confirm loop and accountData attachment.
"""

from __future__ import annotations

import asyncio
import dataclasses
import json
from types import SimpleNamespace
from unittest.mock import AsyncMock

import httpx
import pytest
from solana.rpc.core import RPCException
from solders.hash import Hash
from solders.keypair import Keypair
from solders.pubkey import Pubkey
from solders.signature import Signature
from solders.system_program import TransferParams, transfer
from solders.transaction import Transaction

from nina_sdk.client import NinaClient, load_keypair, load_keypair_file
from nina_sdk.core.exceptions import (
    AccountNotFoundError,
    ConfirmationTimeoutError,
    NinaApiError,
    TransactionFailedError,
    WalletNotConfiguredError,
)
from nina_sdk.program import accounts


def _status(confirmation_status="confirmed", err=None):
    return SimpleNamespace(value=[SimpleNamespace(err=err, confirmation_status=confirmation_status)])


@pytest.fixture
def live_client(settings, keypair, rpc, api):
    """NinaClient with the real send/confirm loop over a mocked RPC."""
    rpc.get_latest_blockhash = AsyncMock(
        side_effect=lambda *a, **kw: SimpleNamespace(value=SimpleNamespace(blockhash=Hash.new_unique()))
    )
    rpc.send_raw_transaction = AsyncMock(return_value=SimpleNamespace(value=Signature.new_unique()))
    rpc.get_signature_statuses = AsyncMock(return_value=_status())
    return NinaClient(settings, keypair=keypair, rpc=rpc, api=api)


def _transfer_ix(client: NinaClient):
    return transfer(TransferParams(from_pubkey=client.wallet_pubkey, to_pubkey=Pubkey.new_unique(), lamports=1))


def test_load_keypair_base58_and_json(keypair):
    assert load_keypair(str(keypair)).pubkey() == keypair.pubkey()
    assert load_keypair(json.dumps(list(bytes(keypair)))).pubkey() == keypair.pubkey()


def test_load_keypair_rejects_garbage():
    with pytest.raises(ValueError, match="Invalid NINA_PRIVATE_KEY"):
        load_keypair("[1, 2")
    with pytest.raises(ValueError, match="Invalid NINA_PRIVATE_KEY"):
        load_keypair("abc")


def test_load_keypair_file(tmp_path, keypair):
    path = tmp_path / "id.json"
    path.write_text(json.dumps(list(bytes(keypair))), encoding="utf-8")
    assert load_keypair_file(path).pubkey() == keypair.pubkey()


def test_keypair_from_settings(settings, keypair, rpc, api):
    cfg = dataclasses.replace(settings, private_key=str(keypair))
    client = NinaClient(cfg, rpc=rpc, api=api)
    assert client.wallet_pubkey == keypair.pubkey()


def test_read_only_client_refuses_to_sign(settings, rpc, api):
    client = NinaClient(settings, rpc=rpc, api=api)
    with pytest.raises(WalletNotConfiguredError):
        client.wallet_pubkey
    with pytest.raises(WalletNotConfiguredError):
        client.sign_message(b"hello")


def test_sign_message_verifies(live_client, keypair):
    sig = Signature.from_bytes(live_client.sign_message(b"hello"))
    assert sig.verify(keypair.pubkey(), b"hello")


def test_is_sol(live_client, settings):
    assert live_client.is_sol(settings.ids.wsol_mint)
    assert not live_client.is_sol(settings.ids.usdc_mint)


def test_send_transaction_signs_and_confirms(live_client, rpc):
    extra = Keypair()
    ix = transfer(TransferParams(from_pubkey=extra.pubkey(), to_pubkey=Pubkey.new_unique(), lamports=1))
    signature = asyncio.run(live_client.send_transaction([_transfer_ix(live_client), ix], signers=[extra]))
    assert signature == str(rpc.send_raw_transaction.return_value.value)
    tx = Transaction.from_bytes(rpc.send_raw_transaction.await_args.args[0])
    assert tx.message.account_keys[0] == live_client.wallet_pubkey
    assert len(tx.signatures) == 2
    tx.verify()
    rpc.get_signature_statuses.assert_awaited()


def test_send_transaction_retries_transient_errors(live_client, rpc):
    sig = Signature.new_unique()
    rpc.send_raw_transaction = AsyncMock(side_effect=[ConnectionError("reset"), SimpleNamespace(value=sig)])
    assert asyncio.run(live_client.send_transaction([_transfer_ix(live_client)])) == str(sig)
    assert rpc.send_raw_transaction.await_count == 2


def test_send_transaction_timeout_resends_same_signed_bytes(live_client, rpc):
    sig = Signature.new_unique()
    rpc.send_raw_transaction = AsyncMock(side_effect=[httpx.ReadTimeout("timed out"), SimpleNamespace(value=sig)])
    assert asyncio.run(live_client.send_transaction([_transfer_ix(live_client)])) == str(sig)
    first, second = (call.args[0] for call in rpc.send_raw_transaction.await_args_list)
    assert first == second
    assert Transaction.from_bytes(first).signatures[0] == Transaction.from_bytes(second).signatures[0]
    rpc.get_latest_blockhash.assert_awaited_once()


def test_send_transaction_gives_up_after_retries(live_client, rpc):
    rpc.send_raw_transaction = AsyncMock(side_effect=ConnectionError("reset"))
    with pytest.raises(TransactionFailedError):
        asyncio.run(live_client.send_transaction([_transfer_ix(live_client)]))
    assert rpc.send_raw_transaction.await_count == 2


def test_preflight_rejection_is_not_retried(live_client, rpc):
    rpc.send_raw_transaction = AsyncMock(side_effect=RPCException("custom program error: 0x1"))
    with pytest.raises(TransactionFailedError):
        asyncio.run(live_client.send_transaction([_transfer_ix(live_client)]))
    assert rpc.send_raw_transaction.await_count == 1


def test_confirm_waits_for_commitment(live_client, rpc):
    rpc.get_signature_statuses = AsyncMock(
        side_effect=[SimpleNamespace(value=[None]), _status("processed"), _status("finalized")]
    )
    asyncio.run(live_client.confirm_transaction(str(Signature.new_unique()), "finalized"))
    assert rpc.get_signature_statuses.await_count == 3


def test_confirm_raises_on_failed_transaction(live_client, rpc):
    rpc.get_signature_statuses = AsyncMock(return_value=_status(err="InstructionError"))
    with pytest.raises(TransactionFailedError):
        asyncio.run(live_client.confirm_transaction(str(Signature.new_unique())))


def test_confirm_times_out(live_client, rpc):
    rpc.get_signature_statuses = AsyncMock(return_value=SimpleNamespace(value=[None]))
    with pytest.raises(ConfirmationTimeoutError):
        asyncio.run(live_client.confirm_transaction(str(Signature.new_unique())))


def test_get_attaches_account_data(live_client, api, rpc, release_bytes):
    present, missing = str(Pubkey.new_unique()), str(Pubkey.new_unique())
    api.get = AsyncMock(return_value={"releases": [{"publicKey": present}, {"publicKey": missing}], "total": 2})
    rpc.get_multiple_accounts = AsyncMock(
        return_value=SimpleNamespace(value=[SimpleNamespace(data=release_bytes(price=3_000_000)), None])
    )
    payload = asyncio.run(live_client.get("/releases", {"limit": 2}, with_account_data=True))
    assert payload["releases"][0]["accountData"]["price"] == 3_000_000
    assert payload["releases"][1]["accountData"] is None
    rpc.get_multiple_accounts.assert_awaited_once()


def test_get_tolerates_undecodable_accounts(live_client, api, rpc):
    api.get = AsyncMock(return_value={"hub": {"publicKey": str(Pubkey.new_unique())}})
    rpc.get_multiple_accounts = AsyncMock(return_value=SimpleNamespace(value=[SimpleNamespace(data=b"\x00" * 16)]))
    payload = asyncio.run(live_client.get("/hubs/ninas-picks", with_account_data=True))
    assert payload["hub"]["accountData"] is None


def test_get_without_account_data_skips_rpc(live_client, api, rpc):
    api.get = AsyncMock(return_value={"hubs": [{"publicKey": str(Pubkey.new_unique())}]})
    asyncio.run(live_client.get("/hubs"))
    rpc.get_multiple_accounts.assert_not_awaited()


def test_index_hint_swallows_api_errors(live_client, api):
    api.get = AsyncMock(side_effect=NinaApiError(500, "/hubs/x/tx/y"))
    asyncio.run(live_client.index_hint("/hubs/x/tx/y"))


def test_fetch_missing_account_raises(live_client):
    with pytest.raises(AccountNotFoundError):
        asyncio.run(live_client.fetch_release_account(Pubkey.new_unique()))


def test_fetch_hub_account_decodes(live_client, rpc):
    body = accounts._HUB.pack(bytes(Pubkey.new_unique()), b"h", b"u", bytes(Pubkey.new_unique()), 0, 0, 0, 1, 0)
    rpc.get_account_info = AsyncMock(return_value=SimpleNamespace(value=SimpleNamespace(data=accounts.HUB_DISCRIMINATOR + body)))
    assert asyncio.run(live_client.fetch_hub_account(Pubkey.new_unique())).handle == "h"


def test_close_closes_both_connections(live_client, api, rpc):
    asyncio.run(live_client.close())
    api.close.assert_awaited_once()
    rpc.close.assert_awaited_once()
