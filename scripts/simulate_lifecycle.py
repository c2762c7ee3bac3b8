#!/usr/bin/env python3
"""Simulate the screening lifecycle end-to-end with an in-memory ledger and FHE SDK.

Creates a batch of screenings through the ``SubmissionCoordinator``, reveals
some of them through the ``DecryptionCoordinator`` (including a concurrent
duplicate request and a repeat request for an already-revealed record),
and prints the risk analysis and dashboard statistics for the result.

Usage::

    # Default run (5 screenings, reveal 3)
    python scripts/simulate_lifecycle.py

    # Reproducible run with more screenings
    python scripts/simulate_lifecycle.py -n 10 --reveal 6 --seed 42

    # Verbose mode (print every notification)
    python scripts/simulate_lifecycle.py -v
"""

from __future__ import annotations

import argparse
import asyncio
import random
import sys
import time
from pathlib import Path

from rich.console import Console
from rich.table import Table

# ---------------------------------------------------------------------------
# Ensure project root is on sys.path so we can import both the SDK and
# test fake infrastructure.
# ---------------------------------------------------------------------------
_SCRIPT_DIR = Path(__file__).resolve().parent
_REPO_ROOT = _SCRIPT_DIR.parent
sys.path.insert(0, str(_REPO_ROOT / "tests"))
sys.path.insert(0, str(_REPO_ROOT / "src"))

from fakes import ACCOUNT, CONTRACT, FakeFheSdk, FakeLedger  # noqa: E402

from genescreen import (  # noqa: E402
    DecryptionCoordinator,
    EncryptionGateway,
    FheRuntime,
    Notifier,
    RecordStore,
    SubmissionCoordinator,
)
from genescreen.risk import analyze_risk  # noqa: E402

_PANELS = [
    "BRCA Panel", "Cardio Panel", "Metabolic Panel", "Neuro Panel",
    "Carrier Screen", "Pharmacogenomics", "Hearing Loss Panel", "Renal Panel",
]


def build_components(verbose: bool, console: Console):
    """Wire the SDK components around fresh fakes."""
    ledger = FakeLedger()
    sdk = FakeFheSdk()
    notifier = Notifier()
    if verbose:
        def show(notification):
            if notification.visible:
                console.print(
                    f"    [dim]notify ({notification.status}):[/] {notification.message}"
                )

        notifier.subscribe(show)
    runtime = FheRuntime(sdk, notifier)
    store = RecordStore(ledger, notifier)
    gateway = EncryptionGateway(sdk, runtime)
    submission = SubmissionCoordinator(gateway, ledger, store, CONTRACT, notifier=notifier)
    decryption = DecryptionCoordinator(
        sdk, runtime, ledger, ledger, store, CONTRACT, notifier=notifier,
    )
    return runtime, store, submission, decryption


async def run_simulation(count: int, reveal: int, rng: random.Random, verbose: bool) -> int:
    console = Console()
    runtime, store, submission, decryption = build_components(verbose, console)

    console.rule("[bold]FHE initialisation")
    phase = await runtime.ensure_ready(connected=True)
    console.print(f"  FHE phase: [green]{phase.value}[/]")

    # --- Submissions ---
    console.rule("[bold]Submissions")
    created: list[str] = []
    for i in range(count):
        name = f"{rng.choice(_PANELS)} #{i + 1}"
        disease_code = rng.randint(1, 100)
        risk_level = rng.randint(1, 10)
        result = await submission.submit(name, disease_code, risk_level, ACCOUNT)
        if result.ok:
            created.append(result.business_id)
            console.print(
                f"  [green]✓[/] {name} (code {disease_code}, risk {risk_level}) "
                f"→ {result.business_id}"
            )
        else:
            console.print(f"  [red]✗[/] {name}: {result.message}")
        # Business ids are millisecond timestamps
        await asyncio.sleep(0.002)

    # --- Reveals ---
    console.rule("[bold]Reveals")
    revealed: dict[str, int] = {}
    for business_id in created[:reveal]:
        first, duplicate = await asyncio.gather(
            decryption.decrypt(business_id, ACCOUNT),
            decryption.decrypt(business_id, ACCOUNT),
        )
        console.print(
            f"  {business_id}: [green]{first.status}[/] value={first.value} "
            f"[dim](concurrent duplicate: {duplicate.error or duplicate.status})[/]"
        )
        if first.value is not None:
            revealed[business_id] = first.value

    if created:
        repeat = await decryption.decrypt(created[0], ACCOUNT)
        console.print(f"  repeat {created[0]}: [yellow]{repeat.status}[/] value={repeat.value}")

    # --- Analysis ---
    console.rule("[bold]Risk analysis")
    table = Table(show_lines=False)
    for column in ("Business ID", "Name", "Code", "Verified", "Risk score",
                   "Probability", "Severity", "Confidence", "Prevention"):
        table.add_column(column)
    now = time.time()
    for record in store.records:
        analysis = analyze_risk(record, revealed.get(record.business_id), now=now)
        table.add_row(
            record.business_id,
            record.name,
            str(record.disease_code),
            "[green]yes[/]" if record.is_verified else "no",
            str(analysis.risk_score),
            str(analysis.probability),
            str(analysis.severity),
            f"{analysis.confidence:.1f}",
            str(analysis.prevention_score),
        )
    console.print(table)

    stats = store.statistics()
    console.print(
        f"\n  Total: {stats.total}  Verified: {stats.verified}  "
        f"Average risk: {stats.average_risk:.2f}  High risk: {stats.high_risk}"
    )

    expected_verified = min(reveal, len(created))
    if stats.verified != expected_verified:
        console.print(
            f"[red]Expected {expected_verified} verified records, got {stats.verified}[/]"
        )
        return 1
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Simulate the screening lifecycle with an in-memory ledger and FHE SDK.",
    )
    parser.add_argument(
        "-n", "--count",
        type=int, default=5,
        help="Number of screenings to create (default: 5)",
    )
    parser.add_argument(
        "--reveal",
        type=int, default=3,
        help="Number of screenings to reveal (default: 3)",
    )
    parser.add_argument(
        "--seed",
        type=int, default=None,
        help="RNG seed for reproducible runs (default: current time)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Print every notification as it is shown",
    )
    args = parser.parse_args()

    seed = args.seed if args.seed is not None else int(time.time())
    rng = random.Random(seed)
    Console().print(f"[dim]RNG seed: {seed}[/]")

    sys.exit(asyncio.run(run_simulation(args.count, args.reveal, rng, args.verbose)))


if __name__ == "__main__":
    main()
