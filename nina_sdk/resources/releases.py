"""
Release operations: indexer reads and Release program instructions.

Write operations return {"release": <indexer release>} on success and
{"error": <message>} on failure.
"""

from __future__ import annotations

import base64
import time
from dataclasses import dataclass
from typing import Any

from solders.keypair import Keypair
from solders.pubkey import Pubkey
from solders.system_program import ID as SYSTEM_PROGRAM_ID
from solders.sysvar import RENT

from nina_sdk.client import NinaClient
from nina_sdk.core.exceptions import InsufficientFundsError
from nina_sdk.nina_logging import get_logger
from nina_sdk.program import pda
from nina_sdk.program.encoding import U64_MAX
from nina_sdk.program.instructions import build_instruction, to_pubkey
from nina_sdk.program.token import (
    USDC_DECIMALS,
    create_mint_instructions,
    find_or_create_associated_token_account,
    get_usdc_balance,
    ui_to_native,
    wrap_sol,
)
from nina_sdk.resources import hubs

logger = get_logger(__name__)

PERCENT_SCALE = 10000
# Hub referral fees are stored scaled by 1_000_000 (100% == 1_000_000)
REFERRAL_FEE_DENOMINATOR = 1_000_000
METADATA_NAME_MAX_BYTES = 32
METADATA_SYMBOL_MAX_BYTES = 10


@dataclass
class ReleaseSeed:
    """Addresses for a release that does not exist yet. release_mint must co-sign the init tx."""

    release: Pubkey
    release_bump: int
    release_mint: Keypair
    hub_release: Pubkey | None = None


def _pagination(limit: int, offset: int, sort: str) -> dict[str, Any]:
    return {"limit": limit or 20, "offset": offset or 0, "sort": sort or "desc"}


def _truncate_utf8(text: str, max_bytes: int) -> str:
    return text.encode("utf-8")[:max_bytes].decode("utf-8", errors="ignore")


def _error(event: str, e: Exception, **kw: Any) -> dict[str, str]:
    logger.exception(event, error=str(e), **kw)
    return {"error": str(e)}


async def fetch_all(
    client: NinaClient,
    limit: int = 20,
    offset: int = 0,
    sort: str = "desc",
    with_account_data: bool = False,
) -> Any:
    return await client.get("/releases", _pagination(limit, offset, sort), with_account_data)


async def fetch(client: NinaClient, public_key: str, with_account_data: bool = False) -> Any:
    return await client.get(f"/releases/{public_key}", None, with_account_data)


async def fetch_collectors(client: NinaClient, public_key: str, with_collection: bool = False) -> Any:
    params = {"withCollection": "true"} if with_collection else None
    return await client.get(f"/releases/{public_key}/collectors", params)


async def fetch_hubs(client: NinaClient, public_key: str, with_account_data: bool = False) -> Any:
    return await client.get(f"/releases/{public_key}/hubs", None, with_account_data)


async def fetch_exchanges(
    client: NinaClient,
    public_key: str,
    with_account_data: bool = False,
    limit: int = 20,
    offset: int = 0,
    sort: str = "desc",
) -> Any:
    return await client.get(
        f"/releases/{public_key}/exchanges", _pagination(limit, offset, sort), with_account_data
    )


async def fetch_revenue_share_recipients(client: NinaClient, public_key: str, with_account_data: bool = False) -> Any:
    return await client.get(f"/releases/{public_key}/revenueShareRecipients", None, with_account_data)


def initialize_release_and_mint(client: NinaClient, hub: Pubkey | str | None = None) -> ReleaseSeed:
    """Fresh release mint keypair plus the release PDA (and hub release PDA when hub is given)."""
    release_mint = Keypair()
    release, release_bump = pda.find_release(release_mint.pubkey(), client.program_id)
    hub_release = None
    if hub:
        hub_release, _ = pda.find_hub_release(hub, release, client.program_id)
    return ReleaseSeed(release=release, release_bump=release_bump, release_mint=release_mint, hub_release=hub_release)


def _release_args(
    retail_price: float,
    amount: int,
    resale_percentage: float,
    artist: str,
    title: str,
    catalog_number: str,
    metadata_uri: str,
    payment_mint: str,
    release_bump: int,
    signer_bump: int,
    is_open: bool,
) -> list[dict[str, Any]]:
    config = {
        "amount_total_supply": U64_MAX if is_open else int(amount),
        "amount_to_artist_token_account": 0,
        "amount_to_vault_token_account": 0,
        "resale_percentage": int(round(resale_percentage * PERCENT_SCALE)),
        "price": ui_to_native(retail_price, payment_mint),
        "release_datetime": int(time.time()),
    }
    bumps = {"release": release_bump, "signer": signer_bump}
    metadata_data = {
        "name": _truncate_utf8(f"{artist} - {title}", METADATA_NAME_MAX_BYTES),
        "symbol": _truncate_utf8(catalog_number, METADATA_SYMBOL_MAX_BYTES),
        "uri": metadata_uri,
        "seller_fee_basis_points": int(round(resale_percentage * 100)),
    }
    return [config, bumps, metadata_data]


async def _release_pre_instructions(
    client: NinaClient, seed: ReleaseSeed, release_signer: Pubkey, payment_mint: str
) -> tuple[list[Any], Pubkey, Pubkey]:
    """Mint creation, royalty ATA (owned by release signer) and authority payment ATA."""
    authority = client.wallet_pubkey
    instructions = await create_mint_instructions(client.rpc, authority, seed.release_mint.pubkey(), 0)
    royalty_token_account, royalty_ix = await find_or_create_associated_token_account(
        client.rpc, authority, release_signer, payment_mint
    )
    if royalty_ix is not None:
        instructions.append(royalty_ix)
    authority_token_account, authority_ix = await find_or_create_associated_token_account(
        client.rpc, authority, authority, payment_mint
    )
    if authority_ix is not None:
        instructions.append(authority_ix)
    return instructions, royalty_token_account, authority_token_account


async def release_init(
    client: NinaClient,
    retail_price: float,
    amount: int,
    resale_percentage: float,
    artist: str,
    title: str,
    catalog_number: str,
    metadata_uri: str,
    is_usdc: bool = True,
    seed: ReleaseSeed | None = None,
    is_open: bool = False,
) -> dict[str, Any]:
    """
    Create a release outside of a hub, paid for with a publishing credit.
    resale_percentage is a percentage (20 = 20%); is_open mints unlimited editions.
    """
    try:
        seed = seed or initialize_release_and_mint(client)
        authority = client.wallet_pubkey
        payment_mint = client.ids.usdc_mint if is_usdc else client.ids.wsol_mint
        release_signer, signer_bump = pda.find_release_signer(seed.release, client.program_id)
        pre, royalty_token_account, authority_token_account = await _release_pre_instructions(
            client, seed, release_signer, payment_mint
        )
        _, credit_ix = await find_or_create_associated_token_account(
            client.rpc, authority, authority, client.ids.publishing_credit_mint
        )
        if credit_ix is not None:
            pre.append(credit_ix)
        metadata, _ = pda.find_metadata(seed.release_mint.pubkey(), client.ids.metaplex_program)
        ix = build_instruction(
            "release_init",
            client.program_id,
            {
                "release": seed.release,
                "release_signer": release_signer,
                "release_mint": seed.release_mint.pubkey(),
                "payer": authority,
                "authority": authority,
                "authority_token_account": authority_token_account,
                "payment_mint": payment_mint,
                "royalty_token_account": royalty_token_account,
                "metadata": metadata,
                "metadata_program": client.ids.metaplex_program,
                "system_program": SYSTEM_PROGRAM_ID,
                "token_program": client.ids.token_program,
                "rent": RENT,
            },
            _release_args(
                retail_price, amount, resale_percentage, artist, title, catalog_number,
                metadata_uri, payment_mint, seed.release_bump, signer_bump, is_open,
            ),
        )
        txid = await client.send_transaction([*pre, ix], signers=[seed.release_mint])
        client.log.info("release_created", release=str(seed.release), txid=txid)
        return {"release": await fetch(client, str(seed.release))}
    except Exception as e:
        return _error("release_init_failed", e, title=title)


async def release_init_via_hub(
    client: NinaClient,
    hub: Pubkey | str,
    retail_price: float,
    amount: int,
    resale_percentage: float,
    artist: str,
    title: str,
    catalog_number: str,
    metadata_uri: str,
    is_usdc: bool = True,
    seed: ReleaseSeed | None = None,
    is_open: bool = False,
) -> dict[str, Any]:
    """Create a release that surfaces on `hub`. The wallet must be a hub collaborator."""
    try:
        hub_pk = to_pubkey(hub)
        seed = seed or initialize_release_and_mint(client, hub_pk)
        authority = client.wallet_pubkey
        program_id = client.program_id
        hub_account = await client.fetch_hub_account(hub_pk)
        payment_mint = client.ids.usdc_mint if is_usdc else client.ids.wsol_mint
        release_signer, signer_bump = pda.find_release_signer(seed.release, program_id)
        pre, royalty_token_account, authority_token_account = await _release_pre_instructions(
            client, seed, release_signer, payment_mint
        )
        hub_collaborator, _ = pda.find_hub_collaborator(hub_pk, authority, program_id)
        hub_signer, _ = pda.find_hub_signer(hub_pk, program_id)
        hub_release, _ = pda.find_hub_release(hub_pk, seed.release, program_id)
        hub_content, _ = pda.find_hub_content(hub_pk, seed.release, program_id)
        hub_wallet, hub_wallet_ix = await find_or_create_associated_token_account(
            client.rpc, authority, hub_signer, payment_mint
        )
        if hub_wallet_ix is not None:
            pre.append(hub_wallet_ix)
        metadata, _ = pda.find_metadata(seed.release_mint.pubkey(), client.ids.metaplex_program)
        args = _release_args(
            retail_price, amount, resale_percentage, artist, title, catalog_number,
            metadata_uri, payment_mint, seed.release_bump, signer_bump, is_open,
        )
        ix = build_instruction(
            "release_init_via_hub",
            program_id,
            {
                "authority": authority,
                "release": seed.release,
                "release_signer": release_signer,
                "hub_collaborator": hub_collaborator,
                "hub": hub_pk,
                "hub_release": hub_release,
                "hub_content": hub_content,
                "hub_signer": hub_signer,
                "hub_wallet": hub_wallet,
                "release_mint": seed.release_mint.pubkey(),
                "authority_token_account": authority_token_account,
                "payment_mint": payment_mint,
                "royalty_token_account": royalty_token_account,
                "token_program": client.ids.token_program,
                "metadata": metadata,
                "metadata_program": client.ids.metaplex_program,
                "system_program": SYSTEM_PROGRAM_ID,
                "rent": RENT,
            },
            [*args, hub_account.handle],
        )
        txid = await client.send_transaction([*pre, ix], signers=[seed.release_mint])
        client.log.info("release_created", release=str(seed.release), hub=str(hub_pk), txid=txid)
        return {"release": await hubs.fetch_hub_release(client, str(hub_pk), str(hub_release))}
    except Exception as e:
        return _error("release_init_via_hub_failed", e, hub=str(hub), title=title)


async def _collect_free_release(client: NinaClient, release_pk: Pubkey) -> str:
    """Free editions are minted by the identity service against a signed request."""
    message = str(release_pk).encode("utf-8")
    signature = client.sign_message(message)
    resp = await client.api.get_url(
        f"{client.settings.identity_endpoint}/collect/{release_pk}",
        {
            "message": base64.b64encode(message).decode("ascii"),
            "signature": base64.b64encode(signature).decode("ascii"),
            "publicKey": str(client.wallet_pubkey),
        },
    )
    return resp["txid"]


async def release_purchase(client: NinaClient, release: Pubkey | str) -> dict[str, Any]:
    """Buy one edition of a release directly (not via a hub)."""
    try:
        release_pk = to_pubkey(release)
        payer = client.wallet_pubkey
        account = await client.fetch_release_account(release_pk)
        if account.price == 0:
            txid = await _collect_free_release(client, release_pk)
            client.log.info("release_collected_free", release=str(release_pk), txid=txid)
            return {"release": await fetch(client, str(release_pk), True), "txid": txid}

        pre: list[Any] = []
        payer_token_account, _ = await find_or_create_associated_token_account(
            client.rpc, payer, payer, account.payment_mint
        )
        receiver_release_token_account, receiver_ix = await find_or_create_associated_token_account(
            client.rpc, payer, payer, account.release_mint
        )
        if receiver_ix is not None:
            pre.append(receiver_ix)
        if client.is_sol(account.payment_mint):
            payer_token_account, wrap_ixs = await wrap_sol(client.rpc, payer, account.price, account.payment_mint)
            pre.extend(wrap_ixs)

        ix = build_instruction(
            "release_purchase",
            client.program_id,
            {
                "payer": payer,
                "receiver": payer,
                "release": release_pk,
                "release_signer": account.release_signer,
                "payer_token_account": payer_token_account,
                "receiver_release_token_account": receiver_release_token_account,
                "royalty_token_account": account.royalty_token_account,
                "release_mint": account.release_mint,
                "token_program": client.ids.token_program,
            },
            [account.price],
        )
        txid = await client.send_transaction([*pre, ix])
        client.log.info("release_purchased", release=str(release_pk), price=account.price, txid=txid)
        await client.index_hint(f"/accounts/{payer}/collected", {"txId": txid})
        return {"release": await fetch(client, str(release_pk), True)}
    except Exception as e:
        return _error("release_purchase_failed", e, release=str(release))


async def release_purchase_via_hub(client: NinaClient, release: Pubkey | str, hub: Pubkey | str) -> dict[str, Any]:
    """
    Buy one edition through a hub; the hub takes its referral fee on top of the price.
    USDC releases need price + referral fee in the wallet or InsufficientFundsError is reported.
    """
    try:
        release_pk = to_pubkey(release)
        hub_pk = to_pubkey(hub)
        payer = client.wallet_pubkey
        program_id = client.program_id
        account = await client.fetch_release_account(release_pk)
        hub_account = await client.fetch_hub_account(hub_pk)

        pre: list[Any] = []
        payer_token_account, _ = await find_or_create_associated_token_account(
            client.rpc, payer, payer, account.payment_mint
        )
        receiver_release_token_account, receiver_ix = await find_or_create_associated_token_account(
            client.rpc, payer, payer, account.release_mint
        )
        hub_release, _ = pda.find_hub_release(hub_pk, release_pk, program_id)
        hub_content, _ = pda.find_hub_content(hub_pk, release_pk, program_id)
        hub_signer, _ = pda.find_hub_signer(hub_pk, program_id)
        hub_wallet, hub_wallet_ix = await find_or_create_associated_token_account(
            client.rpc, payer, hub_signer, account.payment_mint
        )
        if hub_wallet_ix is not None:
            pre.append(hub_wallet_ix)

        total = account.price + account.price * hub_account.referral_fee // REFERRAL_FEE_DENOMINATOR
        if client.is_sol(account.payment_mint):
            payer_token_account, wrap_ixs = await wrap_sol(client.rpc, payer, total, account.payment_mint)
            pre.extend(wrap_ixs)
        else:
            balance = await get_usdc_balance(client.rpc, payer, account.payment_mint)
            required = total / 10**USDC_DECIMALS
            if balance < required:
                raise InsufficientFundsError(required, balance)
        if receiver_ix is not None:
            pre.append(receiver_ix)

        ix = build_instruction(
            "release_purchase_via_hub",
            program_id,
            {
                "payer": payer,
                "receiver": payer,
                "release": release_pk,
                "release_signer": account.release_signer,
                "payer_token_account": payer_token_account,
                "receiver_release_token_account": receiver_release_token_account,
                "royalty_token_account": account.royalty_token_account,
                "release_mint": account.release_mint,
                "hub": hub_pk,
                "hub_release": hub_release,
                "hub_content": hub_content,
                "hub_signer": hub_signer,
                "hub_wallet": hub_wallet,
                "token_program": client.ids.token_program,
            },
            [account.price, hub_account.handle],
        )
        txid = await client.send_transaction([*pre, ix])
        client.log.info("release_purchased", release=str(release_pk), hub=str(hub_pk), price=account.price, txid=txid)
        await client.index_hint(f"/accounts/{payer}/collected", {"txId": txid})
        return {"release": await fetch(client, str(release_pk), True)}
    except Exception as e:
        return _error("release_purchase_via_hub_failed", e, release=str(release), hub=str(hub))


async def close_release(client: NinaClient, release: Pubkey | str) -> dict[str, Any]:
    """Set remaining supply to zero; the release is no longer for sale."""
    try:
        release_pk = to_pubkey(release)
        account = await client.fetch_release_account(release_pk)
        ix = build_instruction(
            "release_close_edition",
            client.program_id,
            {
                "authority": client.wallet_pubkey,
                "release": release_pk,
                "release_signer": account.release_signer,
                "release_mint": account.release_mint,
            },
        )
        txid = await client.send_transaction([ix])
        client.log.info("release_closed", release=str(release_pk), txid=txid)
        return {"release": await fetch(client, str(release_pk))}
    except Exception as e:
        return _error("close_release_failed", e, release=str(release))


async def collect_royalty_for_release(
    client: NinaClient,
    recipient: Pubkey | str | None,
    release: Pubkey | str | None,
) -> dict[str, Any] | None:
    """Collect the wallet's owed royalties on a release. None when either argument is missing."""
    if not release or not recipient:
        return None
    try:
        release_pk = to_pubkey(release)
        authority = client.wallet_pubkey
        account = await client.fetch_release_account(release_pk)
        authority_token_account, create_ix = await find_or_create_associated_token_account(
            client.rpc, authority, authority, account.payment_mint
        )
        ix = build_instruction(
            "release_revenue_share_collect",
            client.program_id,
            {
                "authority": authority,
                "authority_token_account": authority_token_account,
                "release": release_pk,
                "release_mint": account.release_mint,
                "release_signer": account.release_signer,
                "royalty_token_account": account.royalty_token_account,
                "token_program": client.ids.token_program,
            },
        )
        pre = [create_ix] if create_ix is not None else []
        txid = await client.send_transaction([*pre, ix])
        client.log.info("release_royalty_collected", release=str(release_pk), recipient=str(recipient), txid=txid)
        return {"release": await fetch(client, str(release_pk), True)}
    except Exception as e:
        return _error("collect_royalty_for_release_failed", e, release=str(release))


async def add_royalty_recipient(
    client: NinaClient,
    recipient: Pubkey | str,
    percent_share: float,
    release: Pubkey | str,
) -> dict[str, Any]:
    """Transfer percent_share (20 = 20%) of the wallet's royalty share to a new recipient."""
    try:
        release_pk = to_pubkey(release)
        recipient_pk = to_pubkey(recipient)
        authority = client.wallet_pubkey
        account = await client.fetch_release_account(release_pk)
        pre: list[Any] = []
        recipient_token_account, recipient_ix = await find_or_create_associated_token_account(
            client.rpc, authority, recipient_pk, account.payment_mint
        )
        if recipient_ix is not None:
            pre.append(recipient_ix)
        if recipient_pk == authority:
            authority_token_account = recipient_token_account
        else:
            authority_token_account, authority_ix = await find_or_create_associated_token_account(
                client.rpc, authority, authority, account.payment_mint
            )
            if authority_ix is not None:
                pre.append(authority_ix)
        ix = build_instruction(
            "release_revenue_share_transfer",
            client.program_id,
            {
                "authority": authority,
                "authority_token_account": authority_token_account,
                "release": release_pk,
                "release_mint": account.release_mint,
                "release_signer": account.release_signer,
                "royalty_token_account": account.royalty_token_account,
                "new_royalty_recipient": recipient_pk,
                "new_royalty_recipient_token_account": recipient_token_account,
                "token_program": client.ids.token_program,
                "rent": RENT,
            },
            [int(round(percent_share * PERCENT_SCALE))],
        )
        txid = await client.send_transaction([*pre, ix])
        client.log.info("royalty_recipient_added", release=str(release_pk), recipient=str(recipient_pk), txid=txid)
        return {"release": await fetch(client, str(release_pk), True)}
    except Exception as e:
        return _error("add_royalty_recipient_failed", e, release=str(release), recipient=str(recipient))
