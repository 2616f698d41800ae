"""
Hub operations: indexer reads and Hub program instructions.

Write operations return the re-fetched indexer object on success and False on
failure; failures are logged, never raised.
"""

from __future__ import annotations

from dataclasses import asdict
from typing import Any

from solders.pubkey import Pubkey
from solders.system_program import ID as SYSTEM_PROGRAM_ID
from solders.sysvar import RENT

from nina_sdk.client import NinaClient
from nina_sdk.core.exceptions import NinaError
from nina_sdk.nina_logging import get_logger
from nina_sdk.program import pda
from nina_sdk.program.instructions import build_instruction, to_pubkey
from nina_sdk.program.token import (
    associated_token_address,
    find_or_create_associated_token_account,
    get_token_balance,
)

logger = get_logger(__name__)

FEE_SCALE = 10000


def _pagination(limit: int, offset: int, sort: str) -> dict[str, Any]:
    return {"limit": limit or 20, "offset": offset or 0, "sort": sort or "desc"}


async def fetch_all(
    client: NinaClient,
    limit: int = 20,
    offset: int = 0,
    sort: str = "desc",
    with_account_data: bool = False,
) -> Any:
    return await client.get("/hubs", _pagination(limit, offset, sort), with_account_data)


async def fetch(client: NinaClient, public_key_or_handle: str, with_account_data: bool = False) -> Any:
    """Hub with its releases, collaborators and posts."""
    return await client.get(f"/hubs/{public_key_or_handle}", None, with_account_data)


async def fetch_collaborators(client: NinaClient, public_key_or_handle: str) -> Any:
    return await client.get(f"/hubs/{public_key_or_handle}/collaborators")


async def fetch_hub_collaborator(client: NinaClient, public_key_or_handle: str, collaborator: str) -> Any:
    return await client.get(f"/hubs/{public_key_or_handle}/collaborators/{collaborator}")


async def fetch_releases(client: NinaClient, public_key_or_handle: str, with_account_data: bool = False) -> Any:
    return await client.get(f"/hubs/{public_key_or_handle}/releases", None, with_account_data)


async def fetch_posts(client: NinaClient, public_key_or_handle: str, with_account_data: bool = False) -> Any:
    return await client.get(f"/hubs/{public_key_or_handle}/posts", None, with_account_data)


async def fetch_hub_release(
    client: NinaClient, public_key_or_handle: str, hub_release: str, with_account_data: bool = False
) -> Any:
    return await client.get(f"/hubs/{public_key_or_handle}/hubReleases/{hub_release}", None, with_account_data)


async def fetch_hub_post(
    client: NinaClient, public_key_or_handle: str, hub_post: str, with_account_data: bool = False
) -> Any:
    return await client.get(f"/hubs/{public_key_or_handle}/hubPosts/{hub_post}", None, with_account_data)


async def fetch_subscriptions(client: NinaClient, public_key_or_handle: str, with_account_data: bool = False) -> Any:
    return await client.get(f"/hubs/{public_key_or_handle}/subscriptions", None, with_account_data)


async def hub_handle(client: NinaClient, hub: Pubkey | str) -> str:
    """Handle of a hub as the indexer reports it (used as an instruction argument)."""
    data = await fetch(client, str(hub))
    handle = (data.get("hub") or {}).get("handle") if isinstance(data, dict) else None
    if not handle:
        raise NinaError(f"indexer returned no handle for hub {hub}")
    return handle


async def hub_init(
    client: NinaClient,
    handle: str,
    publish_fee: float,
    referral_fee: float,
    uri: str,
) -> Any:
    """
    Create a hub owned by the wallet, paid for with a hub credit.
    Fees are percentages (5 = 5%), scaled by 10000 on chain.
    """
    try:
        authority = client.wallet_pubkey
        program_id = client.program_id
        hub, _ = pda.find_hub(handle, program_id)
        hub_signer, hub_signer_bump = pda.find_hub_signer(hub, program_id)
        hub_collaborator, _ = pda.find_hub_collaborator(hub, authority, program_id)

        pre: list[Any] = []
        for mint in (client.ids.usdc_mint, client.ids.wsol_mint):
            _, create_ix = await find_or_create_associated_token_account(client.rpc, authority, hub_signer, mint)
            if create_ix is not None:
                pre.append(create_ix)

        params = {
            "publish_fee": int(round(publish_fee * FEE_SCALE)),
            "referral_fee": int(round(referral_fee * FEE_SCALE)),
            "handle": handle,
            "uri": uri,
            "hub_signer_bump": hub_signer_bump,
        }
        ix = build_instruction(
            "hub_init",
            program_id,
            {
                "authority": authority,
                "hub": hub,
                "hub_signer": hub_signer,
                "hub_collaborator": hub_collaborator,
                "hub_credit_mint": client.ids.hub_credit_mint,
                "system_program": SYSTEM_PROGRAM_ID,
                "token_program": client.ids.token_program,
                "rent": RENT,
            },
            [params],
        )
        txid = await client.send_transaction([*pre, ix])
        client.log.info("hub_created", hub=str(hub), handle=handle, txid=txid)
        return await fetch(client, str(hub))
    except Exception as e:
        logger.exception("hub_init_failed", handle=handle, error=str(e))
        return False


async def hub_update_config(
    client: NinaClient,
    hub: Pubkey | str,
    uri: str,
    publish_fee: float,
    referral_fee: float,
) -> Any:
    try:
        hub_pk = to_pubkey(hub)
        handle = await hub_handle(client, hub_pk)
        ix = build_instruction(
            "hub_update_config",
            client.program_id,
            {"authority": client.wallet_pubkey, "hub": hub_pk},
            [uri, handle, int(round(publish_fee * FEE_SCALE)), int(round(referral_fee * FEE_SCALE))],
        )
        txid = await client.send_transaction([ix])
        await client.index_hint(f"/hubs/{hub_pk}/tx/{txid}")
        return await fetch(client, str(hub_pk))
    except Exception as e:
        logger.exception("hub_update_config_failed", hub=str(hub), error=str(e))
        return False


async def _collaborator_tx(
    client: NinaClient,
    instruction: str,
    hub: Pubkey | str,
    collaborator: Pubkey | str,
    can_add_content: bool,
    can_add_collaborator: bool,
    allowance: int,
) -> tuple[str, Pubkey, str]:
    hub_pk = to_pubkey(hub)
    collaborator_pk = to_pubkey(collaborator)
    authority = client.wallet_pubkey
    handle = await hub_handle(client, hub_pk)
    hub_collaborator, _ = pda.find_hub_collaborator(hub_pk, collaborator_pk, client.program_id)
    authority_hub_collaborator, _ = pda.find_hub_collaborator(hub_pk, authority, client.program_id)
    accounts: dict[str, Any] = {
        "authority": authority,
        "authority_hub_collaborator": authority_hub_collaborator,
        "hub": hub_pk,
        "hub_collaborator": hub_collaborator,
        "collaborator": collaborator_pk,
    }
    if instruction == "hub_add_collaborator":
        accounts["system_program"] = SYSTEM_PROGRAM_ID
        accounts["rent"] = RENT
    ix = build_instruction(
        instruction,
        client.program_id,
        accounts,
        [bool(can_add_content), bool(can_add_collaborator), int(allowance), handle],
    )
    txid = await client.send_transaction([ix])
    return handle, hub_collaborator, txid


async def hub_add_collaborator(
    client: NinaClient,
    hub: Pubkey | str,
    collaborator: Pubkey | str,
    can_add_content: bool,
    can_add_collaborator: bool,
    allowance: int,
) -> Any:
    """Grant collaborator rights on a hub. allowance -1 means unlimited hub actions."""
    try:
        handle, hub_collaborator, txid = await _collaborator_tx(
            client, "hub_add_collaborator", hub, collaborator, can_add_content, can_add_collaborator, allowance
        )
        client.log.info("hub_collaborator_added", hub=str(hub), collaborator=str(collaborator), txid=txid)
        await client.index_hint(f"/hubs/{hub}/collaborators/{hub_collaborator}")
        return await fetch_hub_collaborator(client, handle, str(collaborator))
    except Exception as e:
        logger.exception("hub_add_collaborator_failed", hub=str(hub), collaborator=str(collaborator), error=str(e))
        return False


async def hub_update_collaborator_permission(
    client: NinaClient,
    hub: Pubkey | str,
    collaborator: Pubkey | str,
    can_add_content: bool,
    can_add_collaborator: bool,
    allowance: int,
) -> Any:
    try:
        handle, _, txid = await _collaborator_tx(
            client,
            "hub_update_collaborator_permissions",
            hub,
            collaborator,
            can_add_content,
            can_add_collaborator,
            allowance,
        )
        client.log.info("hub_collaborator_updated", hub=str(hub), collaborator=str(collaborator), txid=txid)
        return await fetch_hub_collaborator(client, handle, str(collaborator))
    except Exception as e:
        logger.exception(
            "hub_update_collaborator_permission_failed", hub=str(hub), collaborator=str(collaborator), error=str(e)
        )
        return False


async def hub_remove_collaborator(client: NinaClient, hub: Pubkey | str, collaborator: Pubkey | str) -> Any:
    try:
        hub_pk = to_pubkey(hub)
        collaborator_pk = to_pubkey(collaborator)
        handle = await hub_handle(client, hub_pk)
        hub_collaborator, _ = pda.find_hub_collaborator(hub_pk, collaborator_pk, client.program_id)
        ix = build_instruction(
            "hub_remove_collaborator",
            client.program_id,
            {
                "authority": client.wallet_pubkey,
                "hub": hub_pk,
                "hub_collaborator": hub_collaborator,
                "collaborator": collaborator_pk,
                "system_program": SYSTEM_PROGRAM_ID,
            },
            [handle],
        )
        txid = await client.send_transaction([ix])
        client.log.info("hub_collaborator_removed", hub=str(hub_pk), collaborator=str(collaborator_pk), txid=txid)
        await client.index_hint(f"/hubs/{hub_pk}/collaborators/{hub_collaborator}")
        return await fetch_hub_collaborator(client, handle, str(collaborator_pk))
    except Exception as e:
        logger.exception("hub_remove_collaborator_failed", hub=str(hub), collaborator=str(collaborator), error=str(e))
        return False


async def hub_content_toggle_visibility(
    client: NinaClient,
    hub: Pubkey | str,
    content: Pubkey | str,
    content_type: str,
) -> str | bool:
    """Show or hide a release or post on a hub. content_type is "Release" or "Post"."""
    try:
        if content_type.lower() not in ("release", "post"):
            raise NinaError(f"content_type must be 'Release' or 'Post', got {content_type!r}")
        hub_pk = to_pubkey(hub)
        content_pk = to_pubkey(content)
        handle = await hub_handle(client, hub_pk)
        hub_content, _ = pda.find_hub_content(hub_pk, content_pk, client.program_id)
        hub_child, _ = pda.find_hub_child(hub_pk, content_pk, content_type, client.program_id)
        ix = build_instruction(
            "hub_content_toggle_visibility",
            client.program_id,
            {
                "authority": client.wallet_pubkey,
                "hub": hub_pk,
                "hub_content": hub_content,
                "content_account": content_pk,
                "system_program": SYSTEM_PROGRAM_ID,
            },
            [handle],
        )
        txid = await client.send_transaction([ix], commitment="finalized")
        client.log.info("hub_content_toggled", hub=str(hub_pk), content=str(content_pk), txid=txid)
        return str(hub_child)
    except Exception as e:
        logger.exception("hub_content_toggle_visibility_failed", hub=str(hub), content=str(content), error=str(e))
        return False


async def hub_add_release(
    client: NinaClient,
    hub: Pubkey | str,
    release: Pubkey | str,
    from_hub: Pubkey | str | None = None,
) -> Any:
    """Repost a release to a hub. from_hub credits the hub it was found on."""
    try:
        hub_pk = to_pubkey(hub)
        release_pk = to_pubkey(release)
        authority = client.wallet_pubkey
        handle = await hub_handle(client, hub_pk)
        hub_release, _ = pda.find_hub_release(hub_pk, release_pk, client.program_id)
        hub_content, _ = pda.find_hub_content(hub_pk, release_pk, client.program_id)
        hub_collaborator, _ = pda.find_hub_collaborator(hub_pk, authority, client.program_id)
        ix = build_instruction(
            "hub_add_release",
            client.program_id,
            {
                "authority": authority,
                "hub": hub_pk,
                "hub_release": hub_release,
                "hub_content": hub_content,
                "hub_collaborator": hub_collaborator,
                "release": release_pk,
                "system_program": SYSTEM_PROGRAM_ID,
                "rent": RENT,
            },
            [handle],
            remaining_accounts=[from_hub] if from_hub else (),
        )
        txid = await client.send_transaction([ix])
        client.log.info("hub_release_added", hub=str(hub_pk), release=str(release_pk), txid=txid)
        return await fetch_hub_release(client, str(hub_pk), str(hub_release))
    except Exception as e:
        logger.exception("hub_add_release_failed", hub=str(hub), release=str(release), error=str(e))
        return False


async def collect_royalty_for_release_via_hub(
    client: NinaClient,
    release: Pubkey | str,
    hub: Pubkey | str,
) -> dict[str, Any] | bool:
    """Collect the hub signer's royalty share of a release into the hub wallet."""
    try:
        release_pk = to_pubkey(release)
        hub_pk = to_pubkey(hub)
        hub_account = await client.fetch_hub_account(hub_pk)
        release_account = await client.fetch_release_account(release_pk)
        recipient = release_account.recipient_for(hub_account.hub_signer)
        hub_wallet, create_ix = await find_or_create_associated_token_account(
            client.rpc, client.wallet_pubkey, hub_account.hub_signer, release_account.payment_mint
        )
        hub_release, _ = pda.find_hub_release(hub_pk, release_pk, client.program_id)
        ix = build_instruction(
            "release_revenue_share_collect_via_hub",
            client.program_id,
            {
                "authority": client.wallet_pubkey,
                "royalty_token_account": release_account.royalty_token_account,
                "release": release_pk,
                "release_signer": release_account.release_signer,
                "release_mint": release_account.release_mint,
                "hub": hub_pk,
                "hub_release": hub_release,
                "hub_signer": hub_account.hub_signer,
                "hub_wallet": hub_wallet,
                "token_program": client.ids.token_program,
            },
            [hub_account.handle],
        )
        pre = [create_ix] if create_ix is not None else []
        txid = await client.send_transaction([*pre, ix])
        client.log.info("hub_royalty_collected", hub=str(hub_pk), release=str(release_pk), txid=txid)
        return {
            "hubRelease": str(hub_release),
            "recipient": asdict(recipient) if recipient else None,
            "paymentMint": release_account.payment_mint,
        }
    except Exception as e:
        logger.exception("collect_royalty_for_release_via_hub_failed", hub=str(hub), release=str(release), error=str(e))
        return False


async def hub_withdraw(client: NinaClient, hub: Pubkey | str, amount: int | None = None) -> bool:
    """
    Move USDC from the hub signer's token account to the wallet.
    Withdraws the full balance unless `amount` (native units) is given.
    """
    try:
        hub_pk = to_pubkey(hub)
        authority = client.wallet_pubkey
        usdc_mint = client.ids.usdc_mint
        handle = await hub_handle(client, hub_pk)
        hub_signer, _ = pda.find_hub_signer(hub_pk, client.program_id)
        withdraw_target = associated_token_address(hub_signer, usdc_mint)
        withdraw_destination, create_ix = await find_or_create_associated_token_account(
            client.rpc, authority, authority, usdc_mint
        )
        withdraw_amount = amount if amount is not None else await get_token_balance(client.rpc, hub_signer, usdc_mint)
        if withdraw_amount <= 0:
            raise NinaError(f"hub {hub_pk} has no USDC to withdraw")
        ix = build_instruction(
            "hub_withdraw",
            client.program_id,
            {
                "authority": authority,
                "hub": hub_pk,
                "hub_signer": hub_signer,
                "withdraw_target": withdraw_target,
                "withdraw_destination": withdraw_destination,
                "withdraw_mint": usdc_mint,
                "token_program": client.ids.token_program,
            },
            [int(withdraw_amount), handle],
        )
        pre = [create_ix] if create_ix is not None else []
        txid = await client.send_transaction([*pre, ix])
        client.log.info("hub_withdrawn", hub=str(hub_pk), amount=int(withdraw_amount), txid=txid)
        return True
    except Exception as e:
        logger.exception("hub_withdraw_failed", hub=str(hub), error=str(e))
        return False
