"""
Embedded Anchor IDL subset for the Nina program.

Each instruction lists its accounts in program order with writable/signer flags,
and its typed arguments. Discriminators are derived from the instruction name
(see encoding.instruction_discriminator). Used by instructions.build_instruction.
"""

from __future__ import annotations

from typing import Any

from nina_sdk.program.encoding import instruction_discriminator

# Program-owned account sizes (8-byte discriminator + Borsh body)
EXCHANGE_ACCOUNT_SPACE = 8 + 306
EXCHANGE_HISTORY_ACCOUNT_SPACE = 8 + 112


def _acc(name: str, writable: bool = False, signer: bool = False, optional: bool = False) -> dict[str, Any]:
    return {"name": name, "writable": writable, "signer": signer, "optional": optional}


_SYSTEM = _acc("system_program")
_TOKEN = _acc("token_program")
_RENT = _acc("rent")

NINA_TYPES: dict[str, list[tuple[str, Any]]] = {
    "HubInitParams": [
        ("publish_fee", "u64"),
        ("referral_fee", "u64"),
        ("handle", "string"),
        ("uri", "string"),
        ("hub_signer_bump", "u8"),
    ],
    "ReleaseConfig": [
        ("amount_total_supply", "u64"),
        ("amount_to_artist_token_account", "u64"),
        ("amount_to_vault_token_account", "u64"),
        ("resale_percentage", "u64"),
        ("price", "u64"),
        ("release_datetime", "i64"),
    ],
    "ReleaseBumps": [
        ("release", "u8"),
        ("signer", "u8"),
    ],
    "ReleaseMetadataData": [
        ("name", "string"),
        ("symbol", "string"),
        ("uri", "string"),
        ("seller_fee_basis_points", "u16"),
    ],
    "ExchangeConfig": [
        ("expected_amount", "u64"),
        ("initializer_amount", "u64"),
        ("is_selling", "bool"),
    ],
    "ExchangeAcceptParams": [
        ("expected_amount", "u64"),
        ("initializer_amount", "u64"),
        ("resale_percentage", "u64"),
        ("datetime", "i64"),
    ],
}

_HUB_HANDLE = ("hub_handle", "string")
_COLLABORATOR_ARGS = [
    ("can_add_content", "bool"),
    ("can_add_collaborator", "bool"),
    ("allowance", "i8"),
    _HUB_HANDLE,
]
_POST_ARGS = [_HUB_HANDLE, ("slug", "string"), ("uri", "string")]
_POST_INIT_ACCOUNTS = [
    _acc("author", writable=True, signer=True),
    _acc("hub"),
    _acc("post", writable=True),
    _acc("hub_post", writable=True),
    _acc("hub_content", writable=True),
    _acc("hub_collaborator", writable=True),
    _SYSTEM,
    _RENT,
]
_EXCHANGE_CANCEL_ACCOUNTS = [
    _acc("initializer", writable=True, signer=True),
    _acc("initializer_sending_token_account", writable=True),
    _acc("exchange_escrow_token_account", writable=True),
    _acc("exchange_signer"),
    _acc("exchange", writable=True),
    _TOKEN,
]

_INSTRUCTIONS: list[dict[str, Any]] = [
    # Hub
    {
        "name": "hub_init",
        "accounts": [
            _acc("authority", writable=True, signer=True),
            _acc("hub", writable=True),
            _acc("hub_signer"),
            _acc("hub_collaborator", writable=True),
            _acc("hub_credit_mint"),
            _SYSTEM,
            _TOKEN,
            _RENT,
        ],
        "args": [("params", {"defined": "HubInitParams"})],
    },
    {
        "name": "hub_update_config",
        "accounts": [
            _acc("authority", signer=True),
            _acc("hub", writable=True),
        ],
        "args": [("uri", "string"), _HUB_HANDLE, ("publish_fee", "u64"), ("referral_fee", "u64")],
    },
    {
        "name": "hub_add_collaborator",
        "accounts": [
            _acc("authority", writable=True, signer=True),
            _acc("authority_hub_collaborator", writable=True),
            _acc("hub"),
            _acc("hub_collaborator", writable=True),
            _acc("collaborator"),
            _SYSTEM,
            _RENT,
        ],
        "args": _COLLABORATOR_ARGS,
    },
    {
        "name": "hub_update_collaborator_permissions",
        "accounts": [
            _acc("authority", signer=True),
            _acc("authority_hub_collaborator"),
            _acc("hub"),
            _acc("hub_collaborator", writable=True),
            _acc("collaborator"),
        ],
        "args": _COLLABORATOR_ARGS,
    },
    {
        "name": "hub_remove_collaborator",
        "accounts": [
            _acc("authority", writable=True, signer=True),
            _acc("hub"),
            _acc("hub_collaborator", writable=True),
            _acc("collaborator"),
            _SYSTEM,
        ],
        "args": [_HUB_HANDLE],
    },
    {
        "name": "hub_content_toggle_visibility",
        "accounts": [
            _acc("authority", writable=True, signer=True),
            _acc("hub"),
            _acc("hub_content", writable=True),
            _acc("content_account"),
            _SYSTEM,
        ],
        "args": [_HUB_HANDLE],
    },
    {
        "name": "hub_add_release",
        "accounts": [
            _acc("authority", writable=True, signer=True),
            _acc("hub"),
            _acc("hub_release", writable=True),
            _acc("hub_content", writable=True),
            _acc("hub_collaborator", writable=True),
            _acc("release"),
            _SYSTEM,
            _RENT,
        ],
        "args": [_HUB_HANDLE],
    },
    {
        "name": "hub_withdraw",
        "accounts": [
            _acc("authority", writable=True, signer=True),
            _acc("hub"),
            _acc("hub_signer"),
            _acc("withdraw_target", writable=True),
            _acc("withdraw_destination", writable=True),
            _acc("withdraw_mint"),
            _TOKEN,
        ],
        "args": [("amount", "u64"), _HUB_HANDLE],
    },
    # Post
    {
        "name": "post_init_via_hub",
        "accounts": _POST_INIT_ACCOUNTS,
        "args": _POST_ARGS,
    },
    {
        "name": "post_init_via_hub_with_reference_release",
        "accounts": _POST_INIT_ACCOUNTS
        + [
            _acc("reference_release"),
            _acc("reference_release_hub_release", writable=True),
            _acc("reference_release_hub_content", writable=True),
        ],
        "args": _POST_ARGS,
    },
    {
        "name": "post_update_via_hub_post",
        "accounts": [
            _acc("author", writable=True, signer=True),
            _acc("hub"),
            _acc("post", writable=True),
            _acc("hub_post"),
            _acc("hub_collaborator"),
        ],
        "args": _POST_ARGS,
    },
    # Release
    {
        "name": "release_init",
        "accounts": [
            _acc("release", writable=True),
            _acc("release_signer"),
            _acc("release_mint", writable=True),
            _acc("payer", writable=True, signer=True),
            _acc("authority", writable=True, signer=True),
            _acc("authority_token_account"),
            _acc("payment_mint"),
            _acc("royalty_token_account"),
            _acc("metadata", writable=True),
            _acc("metadata_program"),
            _SYSTEM,
            _TOKEN,
            _RENT,
        ],
        "args": [
            ("config", {"defined": "ReleaseConfig"}),
            ("bumps", {"defined": "ReleaseBumps"}),
            ("metadata_data", {"defined": "ReleaseMetadataData"}),
        ],
    },
    {
        "name": "release_init_via_hub",
        "accounts": [
            _acc("authority", writable=True, signer=True),
            _acc("release", writable=True),
            _acc("release_signer"),
            _acc("hub_collaborator", writable=True),
            _acc("hub"),
            _acc("hub_release", writable=True),
            _acc("hub_content", writable=True),
            _acc("hub_signer"),
            _acc("hub_wallet"),
            _acc("release_mint", writable=True),
            _acc("authority_token_account"),
            _acc("payment_mint"),
            _acc("royalty_token_account"),
            _TOKEN,
            _acc("metadata", writable=True),
            _acc("metadata_program"),
            _SYSTEM,
            _RENT,
        ],
        "args": [
            ("config", {"defined": "ReleaseConfig"}),
            ("bumps", {"defined": "ReleaseBumps"}),
            ("metadata_data", {"defined": "ReleaseMetadataData"}),
            _HUB_HANDLE,
        ],
    },
    {
        "name": "release_purchase",
        "accounts": [
            _acc("payer", writable=True, signer=True),
            _acc("receiver"),
            _acc("release", writable=True),
            _acc("release_signer"),
            _acc("payer_token_account", writable=True),
            _acc("receiver_release_token_account", writable=True),
            _acc("royalty_token_account", writable=True),
            _acc("release_mint", writable=True),
            _TOKEN,
        ],
        "args": [("amount", "u64")],
    },
    {
        "name": "release_purchase_via_hub",
        "accounts": [
            _acc("payer", writable=True, signer=True),
            _acc("receiver"),
            _acc("release", writable=True),
            _acc("release_signer"),
            _acc("payer_token_account", writable=True),
            _acc("receiver_release_token_account", writable=True),
            _acc("royalty_token_account", writable=True),
            _acc("release_mint", writable=True),
            _acc("hub"),
            _acc("hub_release"),
            _acc("hub_content"),
            _acc("hub_signer"),
            _acc("hub_wallet", writable=True),
            _TOKEN,
        ],
        "args": [("amount", "u64"), _HUB_HANDLE],
    },
    {
        "name": "release_close_edition",
        "accounts": [
            _acc("authority", signer=True),
            _acc("release", writable=True),
            _acc("release_signer"),
            _acc("release_mint"),
        ],
        "args": [],
    },
    {
        "name": "release_revenue_share_collect",
        "accounts": [
            _acc("authority", signer=True),
            _acc("authority_token_account", writable=True),
            _acc("release", writable=True),
            _acc("release_mint"),
            _acc("release_signer"),
            _acc("royalty_token_account", writable=True),
            _TOKEN,
        ],
        "args": [],
    },
    {
        "name": "release_revenue_share_collect_via_hub",
        "accounts": [
            _acc("authority", signer=True),
            _acc("royalty_token_account", writable=True),
            _acc("release", writable=True),
            _acc("release_signer"),
            _acc("release_mint"),
            _acc("hub"),
            _acc("hub_release"),
            _acc("hub_signer"),
            _acc("hub_wallet", writable=True),
            _TOKEN,
        ],
        "args": [_HUB_HANDLE],
    },
    {
        "name": "release_revenue_share_transfer",
        "accounts": [
            _acc("authority", writable=True, signer=True),
            _acc("authority_token_account", writable=True),
            _acc("release", writable=True),
            _acc("release_mint"),
            _acc("release_signer"),
            _acc("royalty_token_account", writable=True),
            _acc("new_royalty_recipient"),
            _acc("new_royalty_recipient_token_account", writable=True),
            _TOKEN,
            _RENT,
        ],
        "args": [("amount", "u64")],
    },
    # Exchange
    {
        "name": "exchange_init",
        "accounts": [
            _acc("initializer", writable=True, signer=True),
            _acc("release_mint"),
            _acc("initializer_expected_token_account"),
            _acc("initializer_sending_token_account", writable=True),
            _acc("initializer_expected_mint"),
            _acc("initializer_sending_mint"),
            _acc("exchange_escrow_token_account", writable=True),
            _acc("exchange_signer"),
            _acc("exchange", writable=True),
            _acc("release"),
            _SYSTEM,
            _TOKEN,
            _RENT,
        ],
        "args": [("config", {"defined": "ExchangeConfig"}), ("bump", "u8")],
    },
    {
        "name": "exchange_accept",
        "accounts": [
            _acc("initializer", writable=True),
            _acc("initializer_expected_token_account", writable=True),
            _acc("taker_expected_token_account", writable=True),
            _acc("taker_sending_token_account", writable=True),
            _acc("exchange_escrow_token_account", writable=True),
            _acc("exchange_signer"),
            _acc("taker", writable=True, signer=True),
            _acc("exchange", writable=True),
            _acc("exchange_history", writable=True),
            _acc("release", writable=True),
            _acc("royalty_token_account", writable=True),
            _TOKEN,
            _SYSTEM,
            _RENT,
        ],
        "args": [("params", {"defined": "ExchangeAcceptParams"})],
    },
    {
        "name": "exchange_cancel",
        "accounts": _EXCHANGE_CANCEL_ACCOUNTS,
        "args": [("amount", "u64")],
    },
    {
        "name": "exchange_cancel_sol",
        "accounts": _EXCHANGE_CANCEL_ACCOUNTS,
        "args": [("amount", "u64")],
    },
]

NINA_IDL: dict[str, Any] = {
    "version": "0.2.0",
    "name": "nina",
    "instructions": [
        {**ix, "discriminator": list(instruction_discriminator(ix["name"]))} for ix in _INSTRUCTIONS
    ],
    "types": NINA_TYPES,
}


def get_instruction_def(name: str, idl: dict[str, Any] | None = None) -> dict[str, Any] | None:
    idl = idl or NINA_IDL
    return next((i for i in idl.get("instructions", []) if i.get("name") == name), None)
