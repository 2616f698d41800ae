"""
NinaClient: signing wallet, Solana RPC connection and REST indexer client.

Every resource function takes a NinaClient as its first argument. The client
owns the sign/send/confirm loop used by all write operations:
- fetch latest blockhash, compile a legacy message with the wallet as fee payer
- sign with the wallet plus any extra signers (fresh mint or exchange keypairs)
- submit raw, retry with exponential backoff, then poll for confirmation
"""

from __future__ import annotations

import asyncio
import json
import time
from pathlib import Path
from typing import Any, Iterable, Sequence

import base58
from solana.rpc.async_api import AsyncClient
from solana.rpc.commitment import Commitment
from solana.rpc.core import RPCException
from solana.rpc.models import TxOpts
from solders.instruction import Instruction
from solders.keypair import Keypair
from solders.message import Message
from solders.pubkey import Pubkey
from solders.signature import Signature
from solders.transaction import Transaction

from nina_sdk.api_client import NinaApiClient
from nina_sdk.config import Settings, get_settings
from nina_sdk.config.env import mask_url
from nina_sdk.core.exceptions import (
    AccountDecodeError,
    AccountNotFoundError,
    ConfirmationTimeoutError,
    NinaApiError,
    TransactionFailedError,
    WalletNotConfiguredError,
)
from nina_sdk.nina_logging import bind_wallet, get_logger
from nina_sdk.program.accounts import (
    DECODERS,
    ExchangeAccount,
    HubAccount,
    ReleaseAccount,
    decode_exchange,
    decode_hub,
    decode_release,
)
from nina_sdk.program.instructions import to_pubkey

logger = get_logger(__name__)

# getMultipleAccounts accepts at most 100 keys per call
MAX_MULTIPLE_ACCOUNTS = 100

_ACCOUNT_DATA_KEYS = {
    "release": "release",
    "releases": "release",
    "hub": "hub",
    "hubs": "hub",
    "exchange": "exchange",
    "exchanges": "exchange",
}
_COMMITMENT_RANK = {"processed": 0, "confirmed": 1, "finalized": 2}


def load_keypair(private_key: str) -> Keypair:
    """Load Keypair from NINA_PRIVATE_KEY: base58 string or JSON array of 64 bytes."""
    raw = private_key.strip()
    if raw.startswith("["):
        try:
            arr = json.loads(raw)
            return Keypair.from_bytes(bytes(arr[:64]))
        except (json.JSONDecodeError, TypeError, ValueError) as e:
            logger.warning("keypair_load_failed", format="json", error=str(e))
            raise ValueError("Invalid NINA_PRIVATE_KEY") from e
    try:
        return Keypair.from_bytes(base58.b58decode(raw))
    except ValueError as e:
        logger.warning("keypair_load_failed", format="base58", error=str(e))
        raise ValueError("Invalid NINA_PRIVATE_KEY") from e


def load_keypair_file(path: str | Path) -> Keypair:
    """Solana CLI keypair file (JSON array of 64 bytes)."""
    return load_keypair(Path(path).expanduser().read_text(encoding="utf-8"))


def _status_rank(status: Any) -> int:
    # solders enum prints as TransactionConfirmationStatus.Confirmed
    name = str(status or "").rsplit(".", 1)[-1].lower()
    return _COMMITMENT_RANK.get(name, -1)


class NinaClient:
    """
    Entry point for the SDK. Read-only use needs no wallet.

        async with NinaClient() as client:
            release = await releases.fetch(client, pk, with_account_data=True)
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        keypair: Keypair | None = None,
        rpc: Any | None = None,
        api: NinaApiClient | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        cfg = self.settings
        if keypair is None and cfg.private_key:
            keypair = load_keypair(cfg.private_key)
        elif keypair is None and cfg.keypair_path:
            keypair = load_keypair_file(cfg.keypair_path)
        self._keypair = keypair
        self.rpc = rpc or AsyncClient(cfg.solana_rpc_url, commitment=Commitment(cfg.commitment))
        self.api = api or NinaApiClient(
            cfg.api_endpoint,
            timeout=cfg.http_timeout_sec,
            retry_attempts=cfg.retry_attempts,
            retry_backoff_sec=cfg.retry_backoff_sec,
        )
        self.program_id = Pubkey.from_string(cfg.ids.program)
        self.ids = cfg.ids
        self.log = bind_wallet(str(keypair.pubkey())) if keypair else logger
        logger.debug(
            "nina_client_ready",
            network=cfg.network,
            rpc_url=mask_url(cfg.solana_rpc_url),
            api_endpoint=cfg.api_endpoint,
            has_wallet=keypair is not None,
        )

    # -- wallet -------------------------------------------------------------

    @property
    def keypair(self) -> Keypair:
        if self._keypair is None:
            raise WalletNotConfiguredError("set NINA_PRIVATE_KEY or NINA_KEYPAIR_PATH to sign transactions")
        return self._keypair

    @property
    def wallet_pubkey(self) -> Pubkey:
        return self.keypair.pubkey()

    def sign_message(self, message: bytes) -> bytes:
        """Ed25519 signature of message by the wallet."""
        return bytes(self.keypair.sign_message(message))

    def is_sol(self, mint: Pubkey | str) -> bool:
        return str(mint) == self.ids.wsol_mint

    # -- REST ---------------------------------------------------------------

    async def get(
        self,
        path: str,
        params: dict[str, Any] | None = None,
        with_account_data: bool = False,
    ) -> Any:
        """GET from the indexer; optionally attach decoded on-chain state as accountData."""
        payload = await self.api.get(path, params)
        if with_account_data:
            await self._attach_account_data(payload)
        return payload

    async def index_hint(self, path: str, params: dict[str, Any] | None = None) -> None:
        """Ask the indexer to ingest a fresh transaction. Best effort."""
        try:
            await self.api.get(path, params)
        except (NinaApiError, ValueError) as e:
            logger.warning("index_hint_failed", path=path, error=str(e))

    async def _attach_account_data(self, payload: Any) -> Any:
        if not isinstance(payload, dict):
            return payload
        targets: dict[str, list[dict[str, Any]]] = {kind: [] for kind in DECODERS}
        for key, kind in _ACCOUNT_DATA_KEYS.items():
            value = payload.get(key)
            items = value if isinstance(value, list) else [value]
            for item in items:
                if isinstance(item, dict) and item.get("publicKey"):
                    targets[kind].append(item)
        for kind, items in targets.items():
            if items:
                await self._fill_account_data(kind, items)
        return payload

    async def _fill_account_data(self, kind: str, items: list[dict[str, Any]]) -> None:
        decoder = DECODERS[kind]
        for start in range(0, len(items), MAX_MULTIPLE_ACCOUNTS):
            chunk = items[start : start + MAX_MULTIPLE_ACCOUNTS]
            keys = [to_pubkey(item["publicKey"]) for item in chunk]
            resp = await self.rpc.get_multiple_accounts(keys)
            for item, account in zip(chunk, resp.value):
                if account is None:
                    item["accountData"] = None
                    continue
                try:
                    item["accountData"] = decoder(bytes(account.data)).to_dict()
                except AccountDecodeError as e:
                    logger.warning("account_data_decode_failed", kind=kind, public_key=item["publicKey"], error=str(e))
                    item["accountData"] = None

    # -- on-chain accounts --------------------------------------------------

    async def _account_data(self, kind: str, public_key: Pubkey | str) -> bytes:
        resp = await self.rpc.get_account_info(to_pubkey(public_key))
        if resp.value is None:
            raise AccountNotFoundError(kind, str(public_key))
        return bytes(resp.value.data)

    async def fetch_release_account(self, public_key: Pubkey | str) -> ReleaseAccount:
        return decode_release(await self._account_data("Release", public_key))

    async def fetch_hub_account(self, public_key: Pubkey | str) -> HubAccount:
        return decode_hub(await self._account_data("Hub", public_key))

    async def fetch_exchange_account(self, public_key: Pubkey | str) -> ExchangeAccount:
        return decode_exchange(await self._account_data("Exchange", public_key))

    # -- transactions -------------------------------------------------------

    async def send_transaction(
        self,
        instructions: Sequence[Instruction],
        signers: Iterable[Keypair] = (),
        *,
        commitment: str | None = None,
    ) -> str:
        """
        Sign, submit and confirm. Returns the signature string.
        Raises TransactionFailedError if the cluster rejects or fails the tx,
        ConfirmationTimeoutError if it is not confirmed in time.
        """
        cfg = self.settings
        payer = self.keypair
        extra = [s for s in signers if s.pubkey() != payer.pubkey()]
        # signed once; retries resend identical bytes under the same signature
        bh = await self.rpc.get_latest_blockhash()
        blockhash = bh.value.blockhash
        message = Message.new_with_blockhash(list(instructions), payer.pubkey(), blockhash)
        raw = bytes(Transaction([payer, *extra], message, blockhash))
        opts = TxOpts(preflight_commitment=Commitment(cfg.commitment))
        last_error: Exception | None = None
        signature = ""
        for attempt in range(cfg.retry_attempts):
            try:
                resp = await self.rpc.send_raw_transaction(raw, opts=opts)
                signature = str(resp.value)
                break
            except RPCException as e:
                # preflight simulation failed; resubmitting will not help
                logger.warning("tx_rejected", error=str(e), instruction_count=len(instructions))
                raise TransactionFailedError("", e) from e
            except Exception as e:
                last_error = e
                backoff = cfg.retry_backoff_sec * (2**attempt)
                logger.warning("tx_send_failed", attempt=attempt + 1, error=str(e), backoff_sec=round(backoff, 1))
                if attempt < cfg.retry_attempts - 1:
                    await asyncio.sleep(backoff)
        if not signature:
            logger.error("tx_retries_exhausted", attempts=cfg.retry_attempts, error=str(last_error))
            raise TransactionFailedError("", last_error)
        self.log.info("tx_sent", signature=signature, instruction_count=len(instructions))
        await self.confirm_transaction(signature, commitment)
        return signature

    async def confirm_transaction(self, signature: str, commitment: str | None = None) -> None:
        """Poll signature status until it reaches commitment; raise on failure or timeout."""
        cfg = self.settings
        target = (commitment or cfg.commitment).lower()
        wanted = _COMMITMENT_RANK.get(target, _COMMITMENT_RANK["confirmed"])
        sig = Signature.from_string(signature)
        deadline = time.monotonic() + cfg.confirm_timeout_sec
        while time.monotonic() < deadline:
            resp = await self.rpc.get_signature_statuses([sig])
            statuses = resp.value or []
            st = statuses[0] if statuses else None
            if st is not None:
                if st.err is not None:
                    logger.warning("tx_confirm_failed", signature=signature, reason="transaction_failed", err=str(st.err))
                    raise TransactionFailedError(signature, st.err)
                if _status_rank(st.confirmation_status) >= wanted:
                    logger.info("tx_confirmed", signature=signature, commitment=target)
                    return
            await asyncio.sleep(cfg.confirm_poll_interval_sec)
        logger.warning("tx_confirm_failed", signature=signature, reason="timeout", timeout_sec=cfg.confirm_timeout_sec)
        raise ConfirmationTimeoutError(signature, cfg.confirm_timeout_sec)

    # -- lifecycle ----------------------------------------------------------

    async def close(self) -> None:
        await self.api.close()
        await self.rpc.close()

    async def __aenter__(self) -> "NinaClient":
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()
