"""
nina-sdk command line.

    nina-sdk hub list --limit 5
    nina-sdk hub get ninas-picks --with-account-data
    nina-sdk release get <pubkey>
    nina-sdk release purchase <pubkey> [--hub <hub>]
    nina-sdk release collect-royalty <pubkey>
    nina-sdk exchange cancel <pubkey>

Reads need no wallet. Writes sign with NINA_PRIVATE_KEY or NINA_KEYPAIR_PATH.
Output is JSON on stdout; logs go to stderr (--log-level, --log-format json).
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from typing import Any, Sequence

from nina_sdk.client import NinaClient
from nina_sdk.config import get_settings
from nina_sdk.core.exceptions import NinaError
from nina_sdk.nina_logging import configure_logging, get_logger
from nina_sdk.resources import exchanges, hubs, posts, releases

logger = get_logger(__name__)

_FETCHERS = {
    "hub": hubs,
    "release": releases,
    "exchange": exchanges,
    "post": posts,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="nina-sdk", description="Query and transact with the Nina protocol.")
    parser.add_argument("--log-level", default=None, help="DEBUG, INFO, WARNING or ERROR (default LOG_LEVEL)")
    parser.add_argument("--log-format", choices=("console", "json"), default=None)
    kinds = parser.add_subparsers(dest="kind", required=True)
    for kind in _FETCHERS:
        sub = kinds.add_parser(kind, help=f"{kind} operations")
        actions = sub.add_subparsers(dest="action", required=True)

        ls = actions.add_parser("list", help=f"list {kind}s")
        ls.add_argument("--limit", type=int, default=20)
        ls.add_argument("--offset", type=int, default=0)
        ls.add_argument("--sort", choices=("asc", "desc"), default="desc")
        get = actions.add_parser("get", help=f"fetch one {kind}")
        get.add_argument("id", help="public key (or handle / slug)")
        if kind != "post":
            ls.add_argument("--with-account-data", action="store_true", help="attach decoded on-chain accounts")
            get.add_argument("--with-account-data", action="store_true", help="attach decoded on-chain accounts")

        if kind == "release":
            purchase = actions.add_parser("purchase", help="buy one edition")
            purchase.add_argument("id", help="release public key")
            purchase.add_argument("--hub", default=None, help="buy through this hub")
            collect = actions.add_parser("collect-royalty", help="collect owed royalties")
            collect.add_argument("id", help="release public key")
        if kind == "exchange":
            cancel = actions.add_parser("cancel", help="cancel an open offer")
            cancel.add_argument("id", help="exchange public key")
    return parser


async def run(args: argparse.Namespace, client: NinaClient) -> Any:
    """Dispatch parsed arguments to the resource functions."""
    module = _FETCHERS[args.kind]
    with_account_data = getattr(args, "with_account_data", False)
    if args.action == "list":
        if args.kind == "post":
            return await module.fetch_all(client, args.limit, args.offset, args.sort)
        return await module.fetch_all(client, args.limit, args.offset, args.sort, with_account_data)
    if args.action == "get":
        if args.kind == "post":
            return await module.fetch(client, args.id)
        return await module.fetch(client, args.id, with_account_data)
    if args.action == "purchase":
        if args.hub:
            return await releases.release_purchase_via_hub(client, args.id, args.hub)
        return await releases.release_purchase(client, args.id)
    if args.action == "collect-royalty":
        return await releases.collect_royalty_for_release(client, str(client.wallet_pubkey), args.id)
    if args.action == "cancel":
        return await exchanges.exchange_cancel(client, args.id)
    raise NinaError(f"unknown action {args.kind} {args.action}")


async def _main(args: argparse.Namespace) -> Any:
    async with NinaClient(get_settings()) as client:
        return await run(args, client)


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    if args.log_level or args.log_format:
        configure_logging(args.log_level, args.log_format)
    try:
        result = asyncio.run(_main(args))
    except (NinaError, ValueError) as e:
        logger.error("cli_failed", kind=args.kind, action=args.action, error=str(e))
        return 1
    json.dump(result, sys.stdout, indent=2, default=str)
    sys.stdout.write("\n")
    if result is False or (isinstance(result, dict) and "error" in result):
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
