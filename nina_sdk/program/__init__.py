"""
On-chain side of the Nina SDK: embedded IDL, Borsh encoding, PDA derivation,
account decoders, SPL token helpers and the generic instruction builder.
"""

from nina_sdk.program.instructions import build_instruction, to_pubkey

__all__ = ["build_instruction", "to_pubkey"]
