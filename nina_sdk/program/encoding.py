"""
Borsh encoding of Anchor instruction arguments.

Anchor: instruction discriminator = first 8 bytes of sha256("global:<instruction_name>"),
account discriminator = first 8 bytes of sha256("account:<AccountName>").
Arguments follow the discriminator, little-endian, strings as u32 length + UTF-8.
"""

from __future__ import annotations

import hashlib
import re
import struct
from typing import Any

from solders.pubkey import Pubkey

from nina_sdk.core.exceptions import InstructionBuildError

U64_MAX = 2**64 - 1

_INT_FORMATS: dict[str, tuple[str, int, int]] = {
    "u8": ("<B", 0, 2**8 - 1),
    "i8": ("<b", -(2**7), 2**7 - 1),
    "u16": ("<H", 0, 2**16 - 1),
    "u32": ("<I", 0, 2**32 - 1),
    "u64": ("<Q", 0, U64_MAX),
    "i64": ("<q", -(2**63), 2**63 - 1),
}

_CAMEL_RE = re.compile(r"(?<!^)(?=[A-Z])")


def snake_case(name: str) -> str:
    """releasePurchaseViaHub -> release_purchase_via_hub."""
    return _CAMEL_RE.sub("_", name).lower()


def instruction_discriminator(name: str) -> bytes:
    """8-byte Anchor sighash for an instruction (snake_case or camelCase name)."""
    return hashlib.sha256(f"global:{snake_case(name)}".encode()).digest()[:8]


def account_discriminator(account_name: str) -> bytes:
    """8-byte Anchor discriminator for an account type (PascalCase name)."""
    return hashlib.sha256(f"account:{account_name}".encode()).digest()[:8]


def encode_int(type_name: str, value: int) -> bytes:
    fmt, lo, hi = _INT_FORMATS[type_name]
    v = int(value)
    if v < lo or v > hi:
        raise InstructionBuildError(f"{v} out of range for {type_name}")
    return struct.pack(fmt, v)


def encode_string(value: str) -> bytes:
    raw = value.encode("utf-8")
    return struct.pack("<I", len(raw)) + raw


def encode_value(type_def: Any, value: Any, types: dict[str, list[tuple[str, Any]]]) -> bytes:
    """Encode one value according to an IDL type (primitive name or {"defined": Struct})."""
    if isinstance(type_def, str):
        if type_def in _INT_FORMATS:
            return encode_int(type_def, value)
        if type_def == "bool":
            return b"\x01" if value else b"\x00"
        if type_def == "string":
            return encode_string(str(value))
        if type_def == "publicKey":
            pk = value if isinstance(value, Pubkey) else Pubkey.from_string(str(value))
            return bytes(pk)
        raise InstructionBuildError(f"unsupported IDL type {type_def!r}")
    if isinstance(type_def, dict) and "defined" in type_def:
        struct_name = type_def["defined"]
        fields = types.get(struct_name)
        if fields is None:
            raise InstructionBuildError(f"unknown struct {struct_name!r}")
        if not isinstance(value, dict):
            raise InstructionBuildError(f"{struct_name} must be given as a dict")
        out = bytearray()
        for field_name, field_type in fields:
            if field_name not in value:
                raise InstructionBuildError(f"{struct_name} missing field {field_name!r}")
            out += encode_value(field_type, value[field_name], types)
        return bytes(out)
    raise InstructionBuildError(f"unsupported IDL type {type_def!r}")


def encode_args(
    arg_defs: list[tuple[str, Any]],
    args: list[Any],
    types: dict[str, list[tuple[str, Any]]],
) -> bytes:
    if len(arg_defs) != len(args):
        raise InstructionBuildError(f"expected {len(arg_defs)} args, got {len(args)}")
    out = bytearray()
    for (_, type_def), value in zip(arg_defs, args):
        out += encode_value(type_def, value, types)
    return bytes(out)


def decode_fixed_string(raw: bytes) -> str:
    """Decode a zero-padded fixed-size byte array (hub handle, uri) to str."""
    return bytes(raw).replace(b"\x00", b"").decode("utf-8", errors="replace")
