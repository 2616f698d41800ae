"""
Tests for post reads and hub post instructions.
"""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock

import pytest
from solders.pubkey import Pubkey

from nina_sdk.core.exceptions import NinaApiError
from nina_sdk.program import pda
from nina_sdk.program.encoding import encode_string
from nina_sdk.resources import posts

from .helpers import program_instruction

HANDLE = "ninas-picks"


@pytest.fixture
def post_api(api):
    async def get(path, params=None):
        if "/hubPosts/" in path:
            return {"hubPost": {"publicKey": path.rsplit("/", 1)[-1]}}
        return {"hub": {"handle": HANDLE}}

    api.get = AsyncMock(side_effect=get)
    return api


def test_fetch_all(nina_client, api):
    asyncio.run(posts.fetch_all(nina_client, limit=2))
    api.get.assert_awaited_once_with("/posts", {"limit": 2, "offset": 0, "sort": "desc"})


def test_post_init_hashes_slug(nina_client, post_api):
    hub = Pubkey.new_unique()
    result = asyncio.run(posts.post_init_via_hub(nina_client, hub, "my-first-post", "https://arweave.net/post"))

    _, args = program_instruction(nina_client, "post_init_via_hub")
    slug = pda.slug_hash("my-first-post")
    assert args == encode_string(HANDLE) + encode_string(slug) + encode_string("https://arweave.net/post")
    post, _ = pda.find_post(hub, "my-first-post", nina_client.program_id)
    hub_post, _ = pda.find_hub_post(hub, post, nina_client.program_id)
    assert result["post"] == str(post)
    assert result["hubPost"] == str(hub_post)
    assert result["referenceReleaseHubRelease"] is None
    assert result["indexed"] == {"hubPost": {"publicKey": str(hub_post)}}


def test_post_init_with_reference_release(nina_client, post_api):
    hub, release, from_hub = Pubkey.new_unique(), Pubkey.new_unique(), Pubkey.new_unique()
    result = asyncio.run(posts.post_init_via_hub(nina_client, hub, "s", "u", reference_release=release, from_hub=from_hub))
    ix, _ = program_instruction(nina_client, "post_init_via_hub_with_reference_release")
    assert ix.accounts[-1].pubkey == from_hub
    assert result["referenceReleaseHubRelease"] == str(pda.find_hub_release(hub, release, nina_client.program_id)[0])


def test_post_init_survives_index_lag(nina_client, api):
    async def get(path, params=None):
        if "/hubPosts/" in path:
            raise NinaApiError(404, path)
        return {"hub": {"handle": HANDLE}}

    api.get = AsyncMock(side_effect=get)
    result = asyncio.run(posts.post_init_via_hub(nina_client, Pubkey.new_unique(), "s", "u"))
    assert result["indexed"] is None


def test_post_update_uses_stored_slug(nina_client, post_api):
    hub = Pubkey.new_unique()
    slug = pda.slug_hash("my-first-post")
    result = asyncio.run(posts.post_update_via_hub(nina_client, hub, slug, "https://arweave.net/v2"))
    _, args = program_instruction(nina_client, "post_update_via_hub_post")
    assert args == encode_string(HANDLE) + encode_string(slug) + encode_string("https://arweave.net/v2")
    post, _ = pda.find_post(hub, slug, nina_client.program_id, hashed=False)
    assert result == str(pda.find_hub_post(hub, post, nina_client.program_id)[0])


def test_post_write_failure_returns_false(nina_client, post_api):
    nina_client.send_transaction = AsyncMock(side_effect=RuntimeError("boom"))
    assert asyncio.run(posts.post_update_via_hub(nina_client, Pubkey.new_unique(), "s", "u")) is False
