"""
Offline command line for the pool engine.

    aampool-demo demo                 replay a create / deposit / swap session
    aampool-demo quote --reserve-in 50000 --reserve-out 50000 --amount-in 10000
"""

from __future__ import annotations

import argparse
import logging
from typing import List, Optional

from .config import EngineConfig, load_config
from .core.swap import compute_amount_out, compute_fee_amount
from .errors import PoolError
from .integration.pool_service import PoolService
from .state.balances import BalanceTable

TOKEN_A = "mint-a"
TOKEN_B = "mint-b"
PROVIDER = "provider"


def _run_demo(config: EngineConfig) -> int:
    ledger = BalanceTable()
    service = PoolService(ledger=ledger, config=config)

    pool = service.create_pool(TOKEN_A, TOKEN_B)
    print(f"[demo] pool_id={pool.pool_id} fee_rate_bps={pool.fee_rate_bps}")

    ledger.credit(TOKEN_A, PROVIDER, 100_000)
    ledger.credit(TOKEN_B, PROVIDER, 200_000)

    minted = service.deposit(PROVIDER, TOKEN_A, TOKEN_B, 50_000, 50_000)
    print(f"[demo] deposit 50000/50000 -> shares={minted}")
    print(f"[demo] reserves after deposit: ({pool.reserve_a}, {pool.reserve_b}) share_supply={pool.share_supply}")

    before_b = ledger.balance_of(TOKEN_B, PROVIDER)
    amount_out = service.swap(PROVIDER, TOKEN_A, TOKEN_B, 10_000, 8_000)
    print(f"[demo] swap 10000 {TOKEN_A} (floor 8000) -> {amount_out} {TOKEN_B}")
    print(f"[demo] reserves after swap: ({pool.reserve_a}, {pool.reserve_b})")
    print(
        f"[demo] balances: {TOKEN_A}={ledger.balance_of(TOKEN_A, PROVIDER)} "
        f"{TOKEN_B}={ledger.balance_of(TOKEN_B, PROVIDER)} (d_out={ledger.balance_of(TOKEN_B, PROVIDER) - before_b})"
    )

    try:
        service.swap(PROVIDER, TOKEN_A, TOKEN_B, 10_000, 9_000)
    except PoolError as exc:
        print(f"[demo] swap 10000 {TOKEN_A} (floor 9000) rejected: {exc.code}")
    print("[demo] OK")
    return 0


def _run_quote(args: argparse.Namespace, config: EngineConfig) -> int:
    fee = config.default_fee_rate_bps if args.fee_bps is None else args.fee_bps
    amount_out = compute_amount_out(args.amount_in, args.reserve_in, args.reserve_out, fee)
    print(f"amount_out={amount_out}")
    print(f"fee_amount={compute_fee_amount(args.amount_in, fee)}")
    print(f"new_reserves=({args.reserve_in + args.amount_in}, {args.reserve_out - amount_out})")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="aampool-demo", description="Constant-product pool engine (offline)")
    parser.add_argument("--config", help="YAML engine config", default=None)
    parser.add_argument("-v", "--verbose", action="store_true", help="log engine operations")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("demo", help="replay a create/deposit/swap session")

    quote = sub.add_parser("quote", help="quote an exact-in swap")
    quote.add_argument("--reserve-in", type=int, required=True)
    quote.add_argument("--reserve-out", type=int, required=True)
    quote.add_argument("--amount-in", type=int, required=True)
    quote.add_argument("--fee-bps", type=int, default=None)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )
    try:
        config = load_config(args.config) if args.config else EngineConfig()
        if args.command == "demo":
            return _run_demo(config)
        return _run_quote(args, config)
    except PoolError as exc:
        print(f"[aampool] FAIL: {exc.code}: {exc}")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
