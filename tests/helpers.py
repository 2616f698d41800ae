"""Shared assertions for resource tests."""

from __future__ import annotations

from nina_sdk.program.encoding import instruction_discriminator


def sent_instructions(client):
    """Instructions passed to the last send_transaction call."""
    return client.send_transaction.await_args.args[0]


def program_instruction(client, name: str):
    """The Nina program instruction in the last transaction; asserts its discriminator."""
    ix = sent_instructions(client)[-1]
    assert ix.program_id == client.program_id
    data = bytes(ix.data)
    assert data[:8] == instruction_discriminator(name)
    return ix, data[8:]
