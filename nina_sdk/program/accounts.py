"""
Decoders for Nina on-chain accounts (Release, Hub, Exchange).

Layouts: 8-byte Anchor discriminator followed by the account body, little-endian,
no padding between fields. Release and Hub are fixed-size (zero-copy) accounts;
Exchange is Borsh. Fixed byte arrays (hub handle, uri) are zero-padded UTF-8.
"""

from __future__ import annotations

import struct
from dataclasses import asdict, dataclass, field
from typing import Any

from solders.pubkey import Pubkey

from nina_sdk.core.exceptions import AccountDecodeError
from nina_sdk.program.encoding import account_discriminator, decode_fixed_string

DISCRIMINATOR_LEN = 8
MAX_ROYALTY_RECIPIENTS = 10
DEFAULT_PUBKEY = str(Pubkey.default())

RELEASE_DISCRIMINATOR = account_discriminator("Release")
HUB_DISCRIMINATOR = account_discriminator("Hub")
EXCHANGE_DISCRIMINATOR = account_discriminator("Exchange")

# payer, authority, release_signer, release_mint, release_datetime, royalty_token_account,
# payment_mint, 9 x u64 counters, bumps (release, signer), head, tail
_RELEASE_HEADER = struct.Struct("<32s32s32s32sq32s32s9Q2B2Q")
# recipient_authority, recipient_token_account, percent_share, owed, collected
_ROYALTY_RECIPIENT = struct.Struct("<32s32s3Q")
RELEASE_ACCOUNT_LEN = DISCRIMINATOR_LEN + _RELEASE_HEADER.size + MAX_ROYALTY_RECIPIENTS * _ROYALTY_RECIPIENT.size

# authority, handle[100], uri[100], hub_signer, publish_fee, referral_fee,
# total_fees_earned, hub_signer_bump, datetime
_HUB = struct.Struct("<32s100s100s32sQQQBq")
HUB_ACCOUNT_LEN = DISCRIMINATOR_LEN + _HUB.size

# 9 pubkeys, expected_amount, initializer_amount, is_selling, bump
_EXCHANGE = struct.Struct("<" + "32s" * 9 + "QQ?B")
EXCHANGE_ACCOUNT_LEN = DISCRIMINATOR_LEN + _EXCHANGE.size


def _pk(raw: bytes) -> str:
    return str(Pubkey.from_bytes(raw))


def _check(data: bytes | None, discriminator: bytes, min_len: int, kind: str) -> bytes:
    if data is None or len(data) < min_len:
        raise AccountDecodeError(f"{kind}: expected at least {min_len} bytes, got {0 if data is None else len(data)}")
    if bytes(data[:DISCRIMINATOR_LEN]) != discriminator:
        raise AccountDecodeError(f"{kind}: discriminator mismatch")
    return bytes(data)


@dataclass
class RoyaltyRecipient:
    recipient_authority: str
    recipient_token_account: str
    percent_share: int
    owed: int
    collected: int


@dataclass
class ReleaseAccount:
    payer: str
    authority: str
    release_signer: str
    release_mint: str
    release_datetime: int
    royalty_token_account: str
    payment_mint: str
    price: int
    total_supply: int
    remaining_supply: int
    resale_percentage: int
    total_collected: int
    sale_counter: int
    exchange_sale_counter: int
    sale_total: int
    exchange_sale_total: int
    release_bump: int
    signer_bump: int
    head: int
    tail: int
    royalty_recipients: list[RoyaltyRecipient] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    def recipient_for(self, authority: str) -> RoyaltyRecipient | None:
        return next((r for r in self.royalty_recipients if r.recipient_authority == str(authority)), None)


@dataclass
class HubAccount:
    authority: str
    handle: str
    uri: str
    hub_signer: str
    publish_fee: int
    referral_fee: int
    total_fees_earned: int
    hub_signer_bump: int
    datetime: int

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class ExchangeAccount:
    initializer: str
    release: str
    release_mint: str
    initializer_expected_token_account: str
    initializer_sending_token_account: str
    initializer_sending_mint: str
    initializer_expected_mint: str
    exchange_signer: str
    exchange_escrow_token_account: str
    expected_amount: int
    initializer_amount: int
    is_selling: bool
    bump: int

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def decode_release(data: bytes) -> ReleaseAccount:
    raw = _check(data, RELEASE_DISCRIMINATOR, RELEASE_ACCOUNT_LEN, "Release")
    h = _RELEASE_HEADER.unpack_from(raw, DISCRIMINATOR_LEN)
    counters = h[7:16]
    recipients: list[RoyaltyRecipient] = []
    offset = DISCRIMINATOR_LEN + _RELEASE_HEADER.size
    for _ in range(MAX_ROYALTY_RECIPIENTS):
        authority, token_account, share, owed, collected = _ROYALTY_RECIPIENT.unpack_from(raw, offset)
        offset += _ROYALTY_RECIPIENT.size
        authority_str = _pk(authority)
        if authority_str == DEFAULT_PUBKEY:
            continue
        recipients.append(RoyaltyRecipient(authority_str, _pk(token_account), share, owed, collected))
    return ReleaseAccount(
        payer=_pk(h[0]),
        authority=_pk(h[1]),
        release_signer=_pk(h[2]),
        release_mint=_pk(h[3]),
        release_datetime=h[4],
        royalty_token_account=_pk(h[5]),
        payment_mint=_pk(h[6]),
        price=counters[0],
        total_supply=counters[1],
        remaining_supply=counters[2],
        resale_percentage=counters[3],
        total_collected=counters[4],
        sale_counter=counters[5],
        exchange_sale_counter=counters[6],
        sale_total=counters[7],
        exchange_sale_total=counters[8],
        release_bump=h[16],
        signer_bump=h[17],
        head=h[18],
        tail=h[19],
        royalty_recipients=recipients,
    )


def decode_hub(data: bytes) -> HubAccount:
    raw = _check(data, HUB_DISCRIMINATOR, HUB_ACCOUNT_LEN, "Hub")
    authority, handle, uri, hub_signer, publish_fee, referral_fee, fees, bump, dt = _HUB.unpack_from(
        raw, DISCRIMINATOR_LEN
    )
    return HubAccount(
        authority=_pk(authority),
        handle=decode_fixed_string(handle),
        uri=decode_fixed_string(uri),
        hub_signer=_pk(hub_signer),
        publish_fee=publish_fee,
        referral_fee=referral_fee,
        total_fees_earned=fees,
        hub_signer_bump=bump,
        datetime=dt,
    )


def decode_exchange(data: bytes) -> ExchangeAccount:
    raw = _check(data, EXCHANGE_DISCRIMINATOR, EXCHANGE_ACCOUNT_LEN, "Exchange")
    v = _EXCHANGE.unpack_from(raw, DISCRIMINATOR_LEN)
    keys = [_pk(k) for k in v[:9]]
    return ExchangeAccount(*keys, expected_amount=v[9], initializer_amount=v[10], is_selling=bool(v[11]), bump=v[12])


DECODERS = {
    "release": decode_release,
    "hub": decode_hub,
    "exchange": decode_exchange,
}
