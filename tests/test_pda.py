"""
Tests for PDA derivation.
"""

from __future__ import annotations

from solders.pubkey import Pubkey

from nina_sdk.config.env import DEFAULT_PROGRAM_ID, METAPLEX_PROGRAM_ID
from nina_sdk.program import pda

PROGRAM_ID = Pubkey.from_string(DEFAULT_PROGRAM_ID)


def test_slug_hash_is_md5_hex():
    assert pda.slug_hash("hello") == "5d41402abc4b2a76b9719d911017c592"


def test_find_hub_uses_handle_seed():
    expected = Pubkey.find_program_address([b"nina-hub", b"ninas-picks"], PROGRAM_ID)
    assert pda.find_hub("ninas-picks", PROGRAM_ID) == expected
    assert pda.find_hub("ninas-picks", DEFAULT_PROGRAM_ID) == expected


def test_hub_collaborator_depends_on_collaborator():
    hub, _ = pda.find_hub("ninas-picks", PROGRAM_ID)
    a, _ = pda.find_hub_collaborator(hub, Pubkey.new_unique(), PROGRAM_ID)
    b, _ = pda.find_hub_collaborator(hub, Pubkey.new_unique(), PROGRAM_ID)
    assert a != b


def test_hub_child_matches_typed_pdas():
    hub, _ = pda.find_hub("ninas-picks", PROGRAM_ID)
    content = Pubkey.new_unique()
    assert pda.find_hub_child(hub, content, "Release", PROGRAM_ID) == pda.find_hub_release(hub, content, PROGRAM_ID)
    assert pda.find_hub_child(hub, content, "Post", PROGRAM_ID) == pda.find_hub_post(hub, content, PROGRAM_ID)


def test_find_post_hashes_slug_unless_told_not_to():
    hub = Pubkey.new_unique()
    hashed = pda.find_post(hub, "my-first-post", PROGRAM_ID)
    prehashed = pda.find_post(hub, pda.slug_hash("my-first-post"), PROGRAM_ID, hashed=False)
    assert hashed == prehashed


def test_release_and_signer():
    mint = Pubkey.new_unique()
    release, bump = pda.find_release(mint, PROGRAM_ID)
    assert (release, bump) == Pubkey.find_program_address([b"nina-release", bytes(mint)], PROGRAM_ID)
    signer, _ = pda.find_release_signer(release, PROGRAM_ID)
    assert signer == Pubkey.find_program_address([bytes(release)], PROGRAM_ID)[0]


def test_metadata_derived_against_metaplex():
    mint = Pubkey.new_unique()
    metaplex = Pubkey.from_string(METAPLEX_PROGRAM_ID)
    expected = Pubkey.find_program_address([b"metadata", bytes(metaplex), bytes(mint)], metaplex)
    assert pda.find_metadata(mint, METAPLEX_PROGRAM_ID) == expected
