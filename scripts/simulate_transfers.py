#!/usr/bin/env python3
"""Simulate concurrent OTP-gated transfers against an in-memory ledger.

Seeds accounts, fires random local transfers concurrently through the
full issue-OTP / redeem / commit path, then checks that the total
balance across all accounts is unchanged.

Usage:
    python scripts/simulate_transfers.py
    python scripts/simulate_transfers.py --accounts 50 --transfers 5000
    python scripts/simulate_transfers.py --log-level DEBUG
"""

import argparse
import asyncio
import random
import sys
import time
from collections import Counter
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from wallet_ledger.config import LedgerConfig, NotificationConfig
from wallet_ledger.exceptions import LedgerError
from wallet_ledger.generators import AccountGenerator
from wallet_ledger.logging import setup_logging
from wallet_ledger.models import OperationKind
from wallet_ledger.money import format_amount
from wallet_ledger.service import WalletService


async def seed_accounts(
    service: WalletService, count: int, opening_balance: int, seed: int
) -> list[dict]:
    """Open ``count`` accounts, each funded with ``opening_balance`` cents."""
    generator = AccountGenerator(seed=seed)
    opened = []
    for account in generator.generate_batch(count):
        opened.append(
            await service.open_account(
                account.holder_name,
                account.account_number,
                account.card_number,
                email=account.email,
                initial_balance=opening_balance,
            )
        )
    return opened


async def one_transfer(service: WalletService, sender: dict, recipient: dict, amount: int) -> str:
    """Issue an OTP and spend it on a single transfer; return the outcome code."""
    try:
        otp = await service.issue_otp(sender["accountId"], OperationKind.LOCAL_TRANSFER, amount)
        await service.transfer(
            {
                "fromAccountId": sender["accountId"],
                "toAccountNumber": recipient["accountNumber"],
                "amount": format_amount(amount),
                "recipientName": "Simulated recipient",
                "otpKey": otp["key"],
                "otp": otp["code"],
            }
        )
    except LedgerError as e:
        return e.code
    return "completed"


async def simulate(args: argparse.Namespace) -> bool:
    config = LedgerConfig(notification=NotificationConfig(channel="none"))
    rng = random.Random(args.seed)

    async with WalletService(config=config) as service:
        accounts = await seed_accounts(service, args.accounts, args.opening_balance, args.seed)
        before = await service.store.total_balance()

        jobs = []
        for _ in range(args.transfers):
            sender, recipient = rng.sample(accounts, 2)
            amount = rng.randint(1, args.max_amount)
            jobs.append(one_transfer(service, sender, recipient, amount))

        t0 = time.perf_counter()
        outcomes = Counter(await asyncio.gather(*jobs))
        elapsed = time.perf_counter() - t0

        after = await service.store.total_balance()
        negative = [a for a in await service.store.snapshot() if a.balance < 0]

    print(f"  Accounts:     {args.accounts:>8,}")
    print(f"  Transfers:    {args.transfers:>8,} in {elapsed:.2f}s  ({args.transfers / max(elapsed, 0.001):,.0f}/sec)")
    for outcome, count in sorted(outcomes.items()):
        print(f"    {outcome:<20} {count:>8,}")
    print(f"  Total before: {format_amount(before):>14}")
    print(f"  Total after:  {format_amount(after):>14}")

    conserved = before == after and not negative
    print(f"  Conserved:    {'yes' if conserved else 'NO'}")
    return conserved


def main() -> None:
    """Run the simulation."""
    parser = argparse.ArgumentParser(description="Simulate concurrent wallet transfers")
    parser.add_argument("--accounts", type=int, default=20, help="Number of accounts (default: 20)")
    parser.add_argument("--transfers", type=int, default=1000, help="Number of transfers (default: 1000)")
    parser.add_argument(
        "--opening-balance",
        type=int,
        default=100_000,
        help="Opening balance per account in cents (default: 100000)",
    )
    parser.add_argument(
        "--max-amount",
        type=int,
        default=50_000,
        help="Largest single transfer in cents (default: 50000)",
    )
    parser.add_argument("--seed", type=int, default=42, help="Random seed (default: 42)")
    parser.add_argument("--log-level", type=str, default="WARNING", help="Log level (default: WARNING)")
    args = parser.parse_args()

    if args.accounts < 2:
        parser.error("--accounts must be at least 2")

    setup_logging(args.log_level)

    print("=" * 60)
    print(f"  wallet-ledger simulation  |  seed={args.seed}")
    print("=" * 60)

    conserved = asyncio.run(simulate(args))
    sys.exit(0 if conserved else 1)


if __name__ == "__main__":
    main()
