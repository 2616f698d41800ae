"""
Tests for env accessors and the Settings dataclass.
"""

from __future__ import annotations

import dataclasses

import pytest

from nina_sdk.config import NinaIds, Settings, env, get_settings


def test_defaults_point_at_mainnet(monkeypatch):
    for key in ("SOLANA_NETWORK", "SOLANA_CLUSTER", "SOLANA_RPC_URL", "NINA_API_ENDPOINT", "NINA_PROGRAM_ID"):
        monkeypatch.delenv(key, raising=False)
    assert env.get_solana_network() == "mainnet"
    assert env.get_solana_rpc_url() == env.MAINNET_RPC_URL
    assert env.get_api_endpoint() == env.DEFAULT_API_ENDPOINT
    assert env.get_program_id() == env.DEFAULT_PROGRAM_ID


def test_devnet_rpc_fallback(monkeypatch):
    monkeypatch.delenv("SOLANA_RPC_URL", raising=False)
    monkeypatch.setenv("SOLANA_NETWORK", "devnet")
    assert env.get_solana_rpc_url() == env.DEVNET_RPC_URL


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("SOLANA_RPC_URL", "https://rpc.example/?api-key=secret")
    monkeypatch.setenv("NINA_API_ENDPOINT", "https://indexer.example/v1/")
    monkeypatch.setenv("NINA_RETRY_ATTEMPTS", "5")
    monkeypatch.setenv("NINA_COMMITMENT", "Finalized")
    s = get_settings()
    assert s.solana_rpc_url == "https://rpc.example/?api-key=secret"
    assert s.api_endpoint == "https://indexer.example/v1"
    assert s.retry_attempts == 5
    assert s.commitment == "finalized"
    assert env.mask_url(s.solana_rpc_url) == "https://rpc.example/?api-key=***"


def test_bad_numbers_fall_back_to_defaults(monkeypatch):
    monkeypatch.setenv("NINA_HTTP_TIMEOUT_SEC", "soon")
    monkeypatch.setenv("NINA_RETRY_ATTEMPTS", "")
    assert env.env_float("NINA_HTTP_TIMEOUT_SEC", 30.0) == 30.0
    assert env.env_int("NINA_RETRY_ATTEMPTS", 3) == 3


def test_settings_clamps_policy_values(settings):
    s = Settings(
        solana_rpc_url=settings.solana_rpc_url,
        api_endpoint="https://api.test/v1/",
        identity_endpoint="https://id.test/",
        ids=settings.ids,
        private_key="",
        keypair_path="",
        retry_attempts=0,
        retry_backoff_sec=-1.0,
        http_timeout_sec=0,
        confirm_timeout_sec=-5,
        commitment="confirmed",
    )
    assert s.retry_attempts == 1
    assert s.retry_backoff_sec == 0.0
    assert s.http_timeout_sec > 0
    assert s.confirm_timeout_sec > 0
    assert s.api_endpoint == "https://api.test/v1"
    assert s.identity_endpoint == "https://id.test"
    assert s.has_wallet is False


def test_settings_rejects_unknown_commitment(settings):
    with pytest.raises(ValueError, match="NINA_COMMITMENT"):
        Settings(
            solana_rpc_url=settings.solana_rpc_url,
            ids=settings.ids,
            private_key="",
            keypair_path="",
            commitment="eventually",
        )


def test_has_wallet_with_keypair_path(settings):
    settings.keypair_path = "~/.config/solana/id.json"
    assert settings.has_wallet is True


def test_ids_are_program_and_mints_only(monkeypatch):
    monkeypatch.setenv("NINA_USDC_MINT", "So11111111111111111111111111111111111111112")
    ids = get_settings().ids
    assert [f.name for f in dataclasses.fields(NinaIds)] == [
        "program",
        "metaplex_program",
        "token_program",
        "usdc_mint",
        "wsol_mint",
        "publishing_credit_mint",
        "hub_credit_mint",
    ]
    assert ids.usdc_mint == env.WSOL_MINT
