"""
SPL token helpers: associated token accounts, mint creation, SOL wrapping,
UI <-> native amount conversion.

ATA addresses are derived locally; RPC is only used to check whether an
account already exists (so the create instruction is only added when needed).
"""

from __future__ import annotations

from typing import Any

from solders.instruction import Instruction
from solders.pubkey import Pubkey
from solders.system_program import CreateAccountParams, TransferParams, create_account, transfer
from spl.token.constants import TOKEN_PROGRAM_ID, WRAPPED_SOL_MINT
from spl.token.instructions import (
    create_associated_token_account,
    get_associated_token_address,
    initialize_mint,
    sync_native,
)
from spl.token.models import InitializeMintParams, SyncNativeParams

from nina_sdk.nina_logging import get_logger
from nina_sdk.program.instructions import to_pubkey

logger = get_logger(__name__)

MINT_ACCOUNT_LEN = 82
USDC_DECIMALS = 6
SOL_DECIMALS = 9


def decimals_for_mint(mint: Pubkey | str) -> int:
    """Wrapped SOL has 9 decimals; Nina prices everything else (USDC) in 6."""
    if str(mint) == str(WRAPPED_SOL_MINT):
        return SOL_DECIMALS
    return USDC_DECIMALS


def ui_to_native(amount: float, mint: Pubkey | str) -> int:
    """10.5 USDC -> 10_500_000."""
    return int(round(float(amount) * 10 ** decimals_for_mint(mint)))


def native_to_ui(amount: int, mint: Pubkey | str) -> float:
    return int(amount) / 10 ** decimals_for_mint(mint)


def associated_token_address(owner: Pubkey | str, mint: Pubkey | str) -> Pubkey:
    """ATA for owner/mint. Works for off-curve owners (PDAs such as a hub signer)."""
    return get_associated_token_address(to_pubkey(owner), to_pubkey(mint))


async def account_exists(rpc: Any, address: Pubkey) -> bool:
    resp = await rpc.get_account_info(address)
    return getattr(resp, "value", None) is not None


async def find_or_create_associated_token_account(
    rpc: Any,
    payer: Pubkey | str,
    owner: Pubkey | str,
    mint: Pubkey | str,
) -> tuple[Pubkey, Instruction | None]:
    """
    Return (ata, create_ix). create_ix is None when the ATA already exists on chain,
    otherwise an instruction that creates it with `payer` funding rent.
    """
    owner_pk = to_pubkey(owner)
    mint_pk = to_pubkey(mint)
    ata = associated_token_address(owner_pk, mint_pk)
    if await account_exists(rpc, ata):
        return ata, None
    logger.debug("ata_missing", owner=str(owner_pk), mint=str(mint_pk), ata=str(ata))
    return ata, create_associated_token_account(to_pubkey(payer), owner_pk, mint_pk)


async def create_mint_instructions(
    rpc: Any,
    payer: Pubkey | str,
    mint: Pubkey | str,
    decimals: int = 0,
) -> list[Instruction]:
    """Create-account + initialize-mint for a fresh mint; payer is mint authority. Mint keypair must co-sign."""
    payer_pk = to_pubkey(payer)
    mint_pk = to_pubkey(mint)
    resp = await rpc.get_minimum_balance_for_rent_exemption(MINT_ACCOUNT_LEN)
    lamports = int(resp.value)
    return [
        create_account(
            CreateAccountParams(
                from_pubkey=payer_pk,
                to_pubkey=mint_pk,
                lamports=lamports,
                space=MINT_ACCOUNT_LEN,
                owner=TOKEN_PROGRAM_ID,
            )
        ),
        initialize_mint(
            InitializeMintParams(
                decimals=decimals,
                program_id=TOKEN_PROGRAM_ID,
                mint=mint_pk,
                mint_authority=payer_pk,
                freeze_authority=None,
            )
        ),
    ]


async def create_program_account_instruction(
    rpc: Any,
    payer: Pubkey | str,
    new_account: Pubkey | str,
    space: int,
    program_id: Pubkey | str,
) -> Instruction:
    """Rent-exempt system create-account owned by `program_id` (Anchor's createInstruction)."""
    resp = await rpc.get_minimum_balance_for_rent_exemption(space)
    return create_account(
        CreateAccountParams(
            from_pubkey=to_pubkey(payer),
            to_pubkey=to_pubkey(new_account),
            lamports=int(resp.value),
            space=space,
            owner=to_pubkey(program_id),
        )
    )


async def wrap_sol(
    rpc: Any,
    payer: Pubkey | str,
    amount: int,
    wsol_mint: Pubkey | str = WRAPPED_SOL_MINT,
) -> tuple[Pubkey, list[Instruction]]:
    """
    Move `amount` lamports into the payer's wrapped-SOL ATA.
    Returns (wsol_ata, instructions): create ATA if missing, transfer, sync native.
    """
    payer_pk = to_pubkey(payer)
    ata, create_ix = await find_or_create_associated_token_account(rpc, payer_pk, payer_pk, wsol_mint)
    instructions: list[Instruction] = []
    if create_ix is not None:
        instructions.append(create_ix)
    instructions.append(transfer(TransferParams(from_pubkey=payer_pk, to_pubkey=ata, lamports=int(amount))))
    instructions.append(sync_native(SyncNativeParams(program_id=TOKEN_PROGRAM_ID, account=ata)))
    return ata, instructions


async def get_token_balance(rpc: Any, owner: Pubkey | str, mint: Pubkey | str) -> int:
    """Native token balance of owner's ATA; 0 when the ATA does not exist."""
    ata = associated_token_address(owner, mint)
    if not await account_exists(rpc, ata):
        return 0
    resp = await rpc.get_token_account_balance(ata)
    return int(resp.value.amount)


async def get_usdc_balance(rpc: Any, owner: Pubkey | str, usdc_mint: Pubkey | str) -> float:
    """UI USDC balance of owner; 0.0 when the ATA does not exist."""
    native = await get_token_balance(rpc, owner, usdc_mint)
    return native / 10**USDC_DECIMALS
