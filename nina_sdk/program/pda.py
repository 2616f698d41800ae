"""
Program-derived addresses for the Nina program.

Seeds are UTF-8 literals followed by 32-byte keys. All derivations run
locally with Pubkey.find_program_address; no RPC needed.
"""

from __future__ import annotations

import hashlib

from solders.pubkey import Pubkey

from nina_sdk.program.instructions import to_pubkey

HUB_SEED = b"nina-hub"
HUB_SIGNER_SEED = b"nina-hub-signer"
HUB_COLLABORATOR_SEED = b"nina-hub-collaborator"
HUB_RELEASE_SEED = b"nina-hub-release"
HUB_POST_SEED = b"nina-hub-post"
HUB_CONTENT_SEED = b"nina-hub-content"
RELEASE_SEED = b"nina-release"
POST_SEED = b"nina-post"
METADATA_SEED = b"metadata"


def _find(seeds: list[bytes], program_id: Pubkey | str) -> tuple[Pubkey, int]:
    return Pubkey.find_program_address(seeds, to_pubkey(program_id))


def find_hub(handle: str, program_id: Pubkey | str) -> tuple[Pubkey, int]:
    return _find([HUB_SEED, handle.encode("utf-8")], program_id)


def find_hub_signer(hub: Pubkey | str, program_id: Pubkey | str) -> tuple[Pubkey, int]:
    return _find([HUB_SIGNER_SEED, bytes(to_pubkey(hub))], program_id)


def find_hub_collaborator(
    hub: Pubkey | str, collaborator: Pubkey | str, program_id: Pubkey | str
) -> tuple[Pubkey, int]:
    return _find([HUB_COLLABORATOR_SEED, bytes(to_pubkey(hub)), bytes(to_pubkey(collaborator))], program_id)


def find_hub_release(hub: Pubkey | str, release: Pubkey | str, program_id: Pubkey | str) -> tuple[Pubkey, int]:
    return _find([HUB_RELEASE_SEED, bytes(to_pubkey(hub)), bytes(to_pubkey(release))], program_id)


def find_hub_post(hub: Pubkey | str, post: Pubkey | str, program_id: Pubkey | str) -> tuple[Pubkey, int]:
    return _find([HUB_POST_SEED, bytes(to_pubkey(hub)), bytes(to_pubkey(post))], program_id)


def find_hub_content(hub: Pubkey | str, content: Pubkey | str, program_id: Pubkey | str) -> tuple[Pubkey, int]:
    """HubContent for a release or a post."""
    return _find([HUB_CONTENT_SEED, bytes(to_pubkey(hub)), bytes(to_pubkey(content))], program_id)


def find_hub_child(
    hub: Pubkey | str, content: Pubkey | str, content_type: str, program_id: Pubkey | str
) -> tuple[Pubkey, int]:
    """HubRelease or HubPost chosen by content_type ("Release" / "Post")."""
    seed = f"nina-hub-{content_type.lower()}".encode("utf-8")
    return _find([seed, bytes(to_pubkey(hub)), bytes(to_pubkey(content))], program_id)


def find_release(release_mint: Pubkey | str, program_id: Pubkey | str) -> tuple[Pubkey, int]:
    return _find([RELEASE_SEED, bytes(to_pubkey(release_mint))], program_id)


def find_release_signer(release: Pubkey | str, program_id: Pubkey | str) -> tuple[Pubkey, int]:
    return _find([bytes(to_pubkey(release))], program_id)


def find_exchange_signer(exchange: Pubkey | str, program_id: Pubkey | str) -> tuple[Pubkey, int]:
    return _find([bytes(to_pubkey(exchange))], program_id)


def slug_hash(slug: str) -> str:
    """First 32 hex chars of md5(slug); posts are addressed by this, not the raw slug."""
    return hashlib.md5(slug.encode("utf-8")).hexdigest()[:32]


def find_post(hub: Pubkey | str, slug: str, program_id: Pubkey | str, *, hashed: bool = True) -> tuple[Pubkey, int]:
    """Post PDA. hashed=False uses the slug as given (already a hash)."""
    slug_seed = slug_hash(slug) if hashed else slug
    return _find([POST_SEED, bytes(to_pubkey(hub)), slug_seed.encode("utf-8")], program_id)


def find_metadata(mint: Pubkey | str, metadata_program_id: Pubkey | str) -> tuple[Pubkey, int]:
    """Metaplex token metadata account for a mint."""
    metadata_program = to_pubkey(metadata_program_id)
    return Pubkey.find_program_address(
        [METADATA_SEED, bytes(metadata_program), bytes(to_pubkey(mint))], metadata_program
    )
