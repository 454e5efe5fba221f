#!/usr/bin/env python3

from __future__ import annotations

import argparse
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from vaultswap.agents.client import ExchangeClient
from vaultswap.integration.config import ExchangeConfig, load_config
from vaultswap.integration.ledger import Ledger
from vaultswap.integration.log import configure_logging
from vaultswap.state.pools import pool_address


def main() -> int:
    parser = argparse.ArgumentParser(description="Offline deposit / swap / withdraw walk-through")
    parser.add_argument("--config", type=Path, default=None, help="YAML config file")
    parser.add_argument("--deposit-a", type=int, default=100)
    parser.add_argument("--deposit-b", type=int, default=150)
    parser.add_argument("--swap", type=int, default=10)
    args = parser.parse_args()

    config = load_config(args.config) if args.config else ExchangeConfig()
    configure_logging(config.log_level)

    ledger = Ledger(config)
    client = ExchangeClient(ledger)
    deployer = ledger.treasury("deployer")
    user = ledger.treasury("user")

    token_a = client.create_token(deployer, b"token-a")
    token_b = client.create_token(deployer, b"token-b")
    vault_a = client.create_vault(token_a)
    vault_b = client.create_vault(token_b)
    pool = pool_address(vault_a, vault_b)

    client.mint(deployer, token_a, user, 1_000)
    client.mint(deployer, token_b, user, 1_000)

    def balances(label: str) -> None:
        print(f"[swap-demo] {label}: a={client.balance(user, token_a)} b={client.balance(user, token_b)}"
              f" lp={client.balance(user, pool)}")

    balances("balances before deposit")
    _coordinator, trace = client.provide_liquidity(user, vault_a, args.deposit_a, vault_b, args.deposit_b)
    if trace.failed:
        print(f"[swap-demo] FAIL (deposit): {trace.failed[0].exit_code}")
        return 1
    print(f"[swap-demo] pool reserves after deposit: {ledger.get(pool, 'reserves')}")
    balances("balances after deposit")

    quote = client.expected_out(vault_a, vault_b, args.swap)
    trace = client.swap(user, vault_a, vault_b, args.swap, min_amount_out=quote)
    if trace.failed:
        print(f"[swap-demo] FAIL (swap): {trace.failed[0].exit_code}")
        return 1
    print(f"[swap-demo] swapped {args.swap} a for {quote} b")
    print(f"[swap-demo] pool reserves after swap: {ledger.get(pool, 'reserves')}")
    balances("balances after swap")

    trace = client.withdraw(user, vault_a, vault_b, client.balance(user, pool))
    if trace.failed:
        print(f"[swap-demo] FAIL (withdraw): {trace.failed[0].exit_code}")
        return 1
    print(f"[swap-demo] pool reserves after withdraw: {ledger.get(pool, 'reserves')}")
    balances("balances after withdraw")
    print(f"[swap-demo] state root: {ledger.state_root()}")
    print("[swap-demo] OK")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
