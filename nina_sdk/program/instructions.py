"""
Build Nina program instructions from the embedded IDL.

build_instruction resolves named accounts into AccountMeta in IDL order and
appends discriminator + Borsh args. Remaining accounts go last, read-only.
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping

from solders.instruction import AccountMeta, Instruction
from solders.pubkey import Pubkey

from nina_sdk.core.exceptions import InstructionBuildError
from nina_sdk.program.encoding import encode_args, snake_case
from nina_sdk.program.idl import NINA_IDL, get_instruction_def


def to_pubkey(value: Any) -> Pubkey:
    """Accept Pubkey, base58 str or anything with .pubkey() (Keypair)."""
    if isinstance(value, Pubkey):
        return value
    if hasattr(value, "pubkey"):
        return value.pubkey()
    try:
        return Pubkey.from_string(str(value).strip())
    except ValueError as e:
        raise InstructionBuildError(f"invalid public key {value!r}") from e


def build_instruction(
    name: str,
    program_id: Pubkey | str,
    accounts: Mapping[str, Any],
    args: list[Any] | None = None,
    *,
    remaining_accounts: Iterable[Any] = (),
    idl: dict[str, Any] | None = None,
) -> Instruction:
    """
    Build one instruction. `name` may be snake_case or camelCase; `accounts` maps
    IDL account names to pubkeys. Raises InstructionBuildError on unknown
    instruction, missing required account or wrong argument count.
    """
    idl = idl or NINA_IDL
    ix_name = snake_case(name)
    ix_def = get_instruction_def(ix_name, idl)
    if not ix_def:
        raise InstructionBuildError(f"IDL missing {ix_name} instruction")

    known = {a["name"] for a in ix_def["accounts"]}
    unknown = set(accounts) - known
    if unknown:
        raise InstructionBuildError(f"{ix_name}: unknown accounts {sorted(unknown)}")

    metas: list[AccountMeta] = []
    for acc in ix_def["accounts"]:
        value = accounts.get(acc["name"])
        if value is None:
            if acc.get("optional"):
                continue
            raise InstructionBuildError(f"{ix_name}: missing account {acc['name']!r}")
        metas.append(
            AccountMeta(pubkey=to_pubkey(value), is_signer=acc["signer"], is_writable=acc["writable"])
        )
    for extra in remaining_accounts:
        metas.append(AccountMeta(pubkey=to_pubkey(extra), is_signer=False, is_writable=False))

    data = bytes(ix_def["discriminator"]) + encode_args(ix_def["args"], list(args or []), idl.get("types", {}))
    return Instruction(program_id=to_pubkey(program_id), data=data, accounts=metas)
