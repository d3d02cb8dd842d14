"""CLI entrypoint for route and quote inspection."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import Optional

import config
from chain.client import ChainClient
from chain.errors import ChainError
from chain.contracts import ContractReader
from core.base_types import Address, Token
from core.errors import RouterError
from core.wallet_manager import WalletManager
from repositories.pools import PoolRepository
from repositories.router import RouterRepository
from repositories.tokens import TokenRepository
from routing.config import CHAIN_DEPLOYMENTS, RouterConfig
from routing.quote import QuoteCalculator
from routing.resolver import RouteResolver
from routing.types import SwapParameters, SwapQuote


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Collection swap router CLI")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("address", help="Print wallet address from PRIVATE_KEY")
    subparsers.add_parser("chains", help="List supported router deployments")

    quote = subparsers.add_parser("quote", help="Quote buying or selling token ids")
    quote.add_argument(
        "--token",
        default="native",
        help="Fungible token address, or 'native' for the chain's native asset",
    )
    quote.add_argument("--collection", required=True, help="Collection address")
    quote.add_argument(
        "--ids", required=True, help="Comma-separated token ids, e.g. 1,2,3"
    )
    quote.add_argument(
        "--sell",
        action="store_true",
        help="Sell the ids for the token (exact input) instead of buying them",
    )
    quote.add_argument(
        "--slippage",
        type=int,
        default=None,
        help="Slippage tolerance in basis points (default SLIPPAGE_BPS)",
    )
    quote.add_argument(
        "--no-cap-royalty",
        action="store_true",
        help="Do not cap royalty fees on the collection leg",
    )
    quote.add_argument("--chain", type=int, default=None, help="Chain id override")

    parser.set_defaults(command="chains")
    return parser


def main() -> None:
    parser = _build_parser()
    args = parser.parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s |%(levelname)s |%(name)s |%(message)s",
    )

    try:
        if args.command == "chains":
            for line in _format_chains():
                print(line)
            return

        if args.command == "address":
            print(WalletManager.from_env().address)
            return

        if args.command == "quote":
            quote = asyncio.run(_quote(args))
            for line in _format_quote(quote):
                print(line)
            return
    except RouterError as exc:
        print(f"{exc.user_message}: {exc}", file=sys.stderr)
        sys.exit(2)
    except ChainError as exc:
        print(f"RPC error: {exc}", file=sys.stderr)
        sys.exit(2)
    except ValueError as exc:
        print(str(exc), file=sys.stderr)
        sys.exit(2)


def _format_chains() -> list[str]:
    lines = []
    for chain_id, deployment in sorted(CHAIN_DEPLOYMENTS.items()):
        lines.append(
            f"{chain_id:>6}  {deployment.name:<18} router={deployment.router} "
            f"wrapped={deployment.wrapped_native} ({deployment.native_symbol})"
        )
    return lines


async def _quote(args: argparse.Namespace) -> SwapQuote:
    router_config = RouterConfig.from_env()
    if args.chain is not None and args.chain != router_config.chain_id:
        router_config = RouterConfig.for_chain(
            args.chain,
            default_slippage_bps=router_config.default_slippage_bps,
            deadline_minutes=router_config.deadline_minutes,
        )
    client = ChainClient(config.get_rpc_urls())
    served = await asyncio.to_thread(client.get_chain_id)
    if served != router_config.chain_id:
        raise ValueError(
            f"RPC_URL serves chain {served}, expected {router_config.chain_id}"
        )
    reader = ContractReader(client, router_config.chain_id)
    tokens = TokenRepository(reader, router_config.native_symbol)
    pools = PoolRepository(reader, router_config.factory)
    resolver = RouteResolver(pools, router_config)
    calculator = QuoteCalculator(RouterRepository(reader, router_config.router), resolver)

    fungible = await _resolve_token(tokens, args.token)
    collection = await tokens.get_collection(Address.from_string(args.collection))
    slippage_bps = (
        args.slippage if args.slippage is not None else router_config.default_slippage_bps
    )
    router_config.validate_slippage(slippage_bps)
    params = SwapParameters(
        from_token=collection if args.sell else fungible,
        to_token=fungible if args.sell else collection,
        token_ids=_parse_ids(args.ids),
        is_exact_input=args.sell,
        cap_royalty_fee=not args.no_cap_royalty,
        slippage_bps=slippage_bps,
    )
    return await calculator.quote(params)


async def _resolve_token(tokens: TokenRepository, raw: str) -> Token:
    if raw.lower() in ("native", "eth", ""):
        return await tokens.get_token(Address.zero())
    return await tokens.get_token(Address.from_string(raw))


def _parse_ids(raw: str) -> tuple[int, ...]:
    try:
        return tuple(int(part) for part in raw.split(",") if part.strip())
    except ValueError as exc:
        raise ValueError(f"token ids must be integers, got {raw!r}") from exc


def _format_quote(quote: SwapQuote) -> list[str]:
    route = " -> ".join(str(address) for address in quote.route.path)
    lines = [
        f"route:        {quote.route.route_type.value} {route}",
        f"input:        {quote.input_amount.format()}",
        f"output:       {quote.output_amount.format()}",
    ]
    bound: Optional[str] = None
    if quote.maximum_sent is not None:
        bound = f"maximum sent: {quote.maximum_sent.format()}"
    elif quote.minimum_received is not None:
        bound = f"min received: {quote.minimum_received.format()}"
    if bound:
        lines.append(bound)
    lines.append(f"price impact: {quote.price_impact}%")
    lines.append(f"gas estimate: {quote.gas_estimate}")
    return lines


if __name__ == "__main__":
    main()
