"""
Post operations. Posts are always published through a hub and are addressed
by the md5 hash of their slug.
"""

from __future__ import annotations

from typing import Any

from solders.pubkey import Pubkey
from solders.system_program import ID as SYSTEM_PROGRAM_ID
from solders.sysvar import RENT

from nina_sdk.client import NinaClient
from nina_sdk.core.exceptions import NinaApiError
from nina_sdk.nina_logging import get_logger
from nina_sdk.program import pda
from nina_sdk.program.instructions import build_instruction, to_pubkey
from nina_sdk.resources import hubs

logger = get_logger(__name__)


async def fetch_all(
    client: NinaClient,
    limit: int = 20,
    offset: int = 0,
    sort: str = "desc",
) -> Any:
    params = {"limit": limit or 20, "offset": offset or 0, "sort": sort or "desc"}
    return await client.get("/posts", params)


async def fetch(client: NinaClient, public_key_or_slug: str) -> Any:
    return await client.get(f"/posts/{public_key_or_slug}")


async def post_init_via_hub(
    client: NinaClient,
    hub: Pubkey | str,
    slug: str,
    uri: str,
    reference_release: Pubkey | str | None = None,
    from_hub: Pubkey | str | None = None,
) -> dict[str, Any] | bool:
    """
    Publish a post on a hub. With reference_release the post is linked to a
    release already on the hub. from_hub is passed as a remaining account.
    """
    try:
        hub_pk = to_pubkey(hub)
        author = client.wallet_pubkey
        program_id = client.program_id
        handle = await hubs.hub_handle(client, hub_pk)
        slug_hash = pda.slug_hash(slug)
        post, _ = pda.find_post(hub_pk, slug, program_id)
        hub_post, _ = pda.find_hub_post(hub_pk, post, program_id)
        hub_content, _ = pda.find_hub_content(hub_pk, post, program_id)
        hub_collaborator, _ = pda.find_hub_collaborator(hub_pk, author, program_id)
        accounts: dict[str, Any] = {
            "author": author,
            "hub": hub_pk,
            "post": post,
            "hub_post": hub_post,
            "hub_content": hub_content,
            "hub_collaborator": hub_collaborator,
            "system_program": SYSTEM_PROGRAM_ID,
            "rent": RENT,
        }
        reference_hub_release = None
        name = "post_init_via_hub"
        if reference_release:
            reference_pk = to_pubkey(reference_release)
            reference_hub_release, _ = pda.find_hub_release(hub_pk, reference_pk, program_id)
            reference_hub_content, _ = pda.find_hub_content(hub_pk, reference_pk, program_id)
            accounts["reference_release"] = reference_pk
            accounts["reference_release_hub_release"] = reference_hub_release
            accounts["reference_release_hub_content"] = reference_hub_content
            name = "post_init_via_hub_with_reference_release"

        ix = build_instruction(
            name,
            program_id,
            accounts,
            [handle, slug_hash, uri],
            remaining_accounts=[from_hub] if from_hub else (),
        )
        txid = await client.send_transaction([ix])
        client.log.info("post_created", hub=str(hub_pk), post=str(post), slug=slug, txid=txid)
        try:
            indexed = await hubs.fetch_hub_post(client, str(hub_pk), str(hub_post))
        except NinaApiError as e:
            logger.warning("post_refetch_failed", hub_post=str(hub_post), error=str(e))
            indexed = None
        return {
            "hubPost": str(hub_post),
            "referenceReleaseHubRelease": str(reference_hub_release) if reference_hub_release else None,
            "post": str(post),
            "indexed": indexed,
        }
    except Exception as e:
        logger.exception("post_init_via_hub_failed", hub=str(hub), slug=slug, error=str(e))
        return False


async def post_update_via_hub(client: NinaClient, hub: Pubkey | str, slug: str, uri: str) -> str | bool:
    """Point an existing post at new content. slug is the stored (already hashed) slug."""
    try:
        hub_pk = to_pubkey(hub)
        author = client.wallet_pubkey
        program_id = client.program_id
        handle = await hubs.hub_handle(client, hub_pk)
        post, _ = pda.find_post(hub_pk, slug, program_id, hashed=False)
        hub_post, _ = pda.find_hub_post(hub_pk, post, program_id)
        hub_collaborator, _ = pda.find_hub_collaborator(hub_pk, author, program_id)
        ix = build_instruction(
            "post_update_via_hub_post",
            program_id,
            {
                "author": author,
                "hub": hub_pk,
                "post": post,
                "hub_post": hub_post,
                "hub_collaborator": hub_collaborator,
            },
            [handle, slug, uri],
        )
        txid = await client.send_transaction([ix])
        client.log.info("post_updated", hub=str(hub_pk), post=str(post), txid=txid)
        return str(hub_post)
    except Exception as e:
        logger.exception("post_update_via_hub_failed", hub=str(hub), slug=slug, error=str(e))
        return False
