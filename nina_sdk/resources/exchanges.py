"""
Exchange operations: escrowed offers to buy or sell a single release edition.

Selling offers one release token for `amount` payment units; buying offers
`amount` payment units for one release token. Write operations return False
on failure.
"""

from __future__ import annotations

import time
from typing import Any

from solders.keypair import Keypair
from solders.pubkey import Pubkey
from solders.system_program import ID as SYSTEM_PROGRAM_ID
from solders.sysvar import RENT

from nina_sdk.client import NinaClient
from nina_sdk.core.exceptions import NinaApiError
from nina_sdk.nina_logging import get_logger
from nina_sdk.program import pda
from nina_sdk.program.idl import EXCHANGE_ACCOUNT_SPACE, EXCHANGE_HISTORY_ACCOUNT_SPACE
from nina_sdk.program.instructions import build_instruction, to_pubkey
from nina_sdk.program.token import (
    create_program_account_instruction,
    find_or_create_associated_token_account,
    wrap_sol,
)

logger = get_logger(__name__)


async def fetch_all(
    client: NinaClient,
    limit: int = 20,
    offset: int = 0,
    sort: str = "desc",
    with_account_data: bool = False,
) -> Any:
    params = {"limit": limit or 20, "offset": offset or 0, "sort": sort or "desc"}
    return await client.get("/exchanges", params, with_account_data)


async def fetch(
    client: NinaClient,
    public_key: str,
    with_account_data: bool = False,
    transaction_id: str | None = None,
) -> Any:
    """
    Fetch one exchange. Accepting or cancelling closes the on-chain account;
    transaction_id lets the indexer resolve what happened to it.
    """
    params = {"transactionId": transaction_id} if transaction_id else None
    return await client.get(f"/exchanges/{public_key}", params, with_account_data)


async def _indexed_exchange(client: NinaClient, public_key: Pubkey | str, txid: str) -> Any:
    try:
        return await fetch(client, str(public_key), transaction_id=txid)
    except NinaApiError as e:
        logger.warning("exchange_refetch_failed", exchange=str(public_key), txid=txid, error=str(e))
        return None


async def exchange_init(
    client: NinaClient,
    amount: int,
    is_selling: bool,
    release: Pubkey | str,
) -> dict[str, Any] | bool:
    """Open an offer on a release. amount is in native payment units (USDC: 1_000_000 = 1)."""
    try:
        release_pk = to_pubkey(release)
        initializer = client.wallet_pubkey
        release_account = await client.fetch_release_account(release_pk)
        release_mint = release_account.release_mint
        if is_selling:
            expected_amount, initializer_amount = int(amount), 1
            sending_mint, expected_mint = release_mint, release_account.payment_mint
        else:
            expected_amount, initializer_amount = 1, int(amount)
            sending_mint, expected_mint = release_account.payment_mint, release_mint

        exchange = Keypair()
        exchange_signer, bump = pda.find_exchange_signer(exchange.pubkey(), client.program_id)
        sending_token_account, sending_ix = await find_or_create_associated_token_account(
            client.rpc, initializer, initializer, sending_mint
        )
        escrow_token_account, escrow_ix = await find_or_create_associated_token_account(
            client.rpc, initializer, exchange_signer, sending_mint
        )
        expected_token_account, expected_ix = await find_or_create_associated_token_account(
            client.rpc, initializer, initializer, expected_mint
        )
        pre: list[Any] = [
            await create_program_account_instruction(
                client.rpc, initializer, exchange.pubkey(), EXCHANGE_ACCOUNT_SPACE, client.program_id
            )
        ]
        wrapping = client.is_sol(release_account.payment_mint) and not is_selling
        if wrapping:
            # wrap_sol creates the wSOL account itself
            sending_ix = None
        pre.extend(ix for ix in (escrow_ix, expected_ix, sending_ix) if ix is not None)
        if wrapping:
            sending_token_account, wrap_ixs = await wrap_sol(
                client.rpc, initializer, initializer_amount, client.ids.wsol_mint
            )
            pre.extend(wrap_ixs)

        ix = build_instruction(
            "exchange_init",
            client.program_id,
            {
                "initializer": initializer,
                "release_mint": release_mint,
                "initializer_expected_token_account": expected_token_account,
                "initializer_sending_token_account": sending_token_account,
                "initializer_expected_mint": expected_mint,
                "initializer_sending_mint": sending_mint,
                "exchange_escrow_token_account": escrow_token_account,
                "exchange_signer": exchange_signer,
                "exchange": exchange.pubkey(),
                "release": release_pk,
                "system_program": SYSTEM_PROGRAM_ID,
                "token_program": client.ids.token_program,
                "rent": RENT,
            },
            [
                {"expected_amount": expected_amount, "initializer_amount": initializer_amount, "is_selling": is_selling},
                bump,
            ],
        )
        txid = await client.send_transaction([*pre, ix], signers=[exchange])
        client.log.info(
            "exchange_created", exchange=str(exchange.pubkey()), release=str(release_pk), is_selling=is_selling, txid=txid
        )
        return {
            "txid": txid,
            "releaseAccount": release_account.to_dict(),
            "publicKey": str(exchange.pubkey()),
            "releaseMint": release_mint,
            "exchange": await _indexed_exchange(client, exchange.pubkey(), txid),
        }
    except Exception as e:
        logger.exception("exchange_init_failed", release=str(release), error=str(e))
        return False


async def exchange_accept(
    client: NinaClient,
    exchange: Pubkey | str,
    release: Pubkey | str,
) -> dict[str, Any] | bool:
    """Take the other side of an open offer. Waits for finalization."""
    try:
        exchange_pk = to_pubkey(exchange)
        release_pk = to_pubkey(release)
        taker = client.wallet_pubkey
        release_account = await client.fetch_release_account(release_pk)
        exchange_account = await client.fetch_exchange_account(exchange_pk)

        taker_sending_token_account, taker_sending_ix = await find_or_create_associated_token_account(
            client.rpc, taker, taker, exchange_account.initializer_expected_mint
        )
        taker_expected_token_account, taker_expected_ix = await find_or_create_associated_token_account(
            client.rpc, taker, taker, exchange_account.initializer_sending_mint
        )
        initializer_expected_token_account, initializer_expected_ix = await find_or_create_associated_token_account(
            client.rpc, taker, exchange_account.initializer, exchange_account.initializer_expected_mint
        )
        exchange_history = Keypair()
        pre: list[Any] = [
            await create_program_account_instruction(
                client.rpc, taker, exchange_history.pubkey(), EXCHANGE_HISTORY_ACCOUNT_SPACE, client.program_id
            )
        ]
        wrapping = client.is_sol(release_account.payment_mint) and exchange_account.is_selling
        if wrapping:
            taker_sending_ix = None
        pre.extend(ix for ix in (taker_sending_ix, taker_expected_ix, initializer_expected_ix) if ix is not None)
        if wrapping:
            taker_sending_token_account, wrap_ixs = await wrap_sol(
                client.rpc, taker, exchange_account.expected_amount, release_account.payment_mint
            )
            pre.extend(wrap_ixs)

        ix = build_instruction(
            "exchange_accept",
            client.program_id,
            {
                "initializer": exchange_account.initializer,
                "initializer_expected_token_account": initializer_expected_token_account,
                "taker_expected_token_account": taker_expected_token_account,
                "taker_sending_token_account": taker_sending_token_account,
                "exchange_escrow_token_account": exchange_account.exchange_escrow_token_account,
                "exchange_signer": exchange_account.exchange_signer,
                "taker": taker,
                "exchange": exchange_pk,
                "exchange_history": exchange_history.pubkey(),
                "release": release_pk,
                "royalty_token_account": release_account.royalty_token_account,
                "token_program": client.ids.token_program,
                "system_program": SYSTEM_PROGRAM_ID,
                "rent": RENT,
            },
            [
                {
                    "expected_amount": exchange_account.expected_amount,
                    "initializer_amount": exchange_account.initializer_amount,
                    "resale_percentage": release_account.resale_percentage,
                    "datetime": int(time.time()),
                }
            ],
        )
        txid = await client.send_transaction([*pre, ix], signers=[exchange_history], commitment="finalized")
        client.log.info("exchange_accepted", exchange=str(exchange_pk), release=str(release_pk), txid=txid)
        return {"txid": txid, "exchange": await _indexed_exchange(client, exchange_pk, txid)}
    except Exception as e:
        logger.exception("exchange_accept_failed", exchange=str(exchange), release=str(release), error=str(e))
        return False


async def exchange_cancel(client: NinaClient, exchange: Pubkey | str) -> dict[str, Any] | bool:
    """Close an offer the wallet opened and return the escrowed tokens."""
    try:
        exchange_pk = to_pubkey(exchange)
        initializer = client.wallet_pubkey
        exchange_account = await client.fetch_exchange_account(exchange_pk)
        return_token_account, return_ix = await find_or_create_associated_token_account(
            client.rpc, initializer, initializer, exchange_account.initializer_sending_mint
        )
        amount = 1 if exchange_account.is_selling else exchange_account.initializer_amount
        name = "exchange_cancel_sol" if client.is_sol(exchange_account.initializer_sending_mint) else "exchange_cancel"
        ix = build_instruction(
            name,
            client.program_id,
            {
                "initializer": initializer,
                "initializer_sending_token_account": return_token_account,
                "exchange_escrow_token_account": exchange_account.exchange_escrow_token_account,
                "exchange_signer": exchange_account.exchange_signer,
                "exchange": exchange_pk,
                "token_program": client.ids.token_program,
            },
            [amount],
        )
        pre = [return_ix] if return_ix is not None else []
        txid = await client.send_transaction([*pre, ix])
        client.log.info("exchange_cancelled", exchange=str(exchange_pk), instruction=name, txid=txid)
        return {
            "exchangePubkey": str(exchange_pk),
            "txid": txid,
            "exchange": await _indexed_exchange(client, exchange_pk, txid),
        }
    except Exception as e:
        logger.exception("exchange_cancel_failed", exchange=str(exchange), error=str(e))
        return False
