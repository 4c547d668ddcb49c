#!/usr/bin/env python3
"""
End-to-end salary comparison demo.

Registers a handful of participants, runs single and batch comparisons,
and shows which results each participant is able to decrypt.
"""
import sys
import argparse
import random
from pathlib import Path

# Add src to path for development
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "src"))

from salarycmp.client.session import SalaryClient
from salarycmp.engine.base import HomomorphicEngine
from salarycmp.engine.mock import MockEngine
from salarycmp.server.coordinator import ComparisonCoordinator
from salarycmp.shared.config import CoordinatorConfig
from salarycmp.shared.errors import ComparisonError, Unauthorized
from salarycmp.shared.utils import Timer


def make_engine(name: str, key_size: int) -> HomomorphicEngine:
    if name == "paillier":
        from salarycmp.engine.paillier import PaillierEngine
        return PaillierEngine(key_size=key_size)
    return MockEngine()


def run_demo(
    engine_name: str = "mock",
    num_users: int = 5,
    key_size: int = 1024,
    seed: int = 42,
):
    print("=" * 70)
    print("Salary Compare - Encrypted Comparison Demo")
    print("=" * 70)

    rng = random.Random(seed)

    print(f"\n[1] Starting {engine_name} engine...")
    with Timer() as t:
        engine = make_engine(engine_name, key_size)
        coordinator = ComparisonCoordinator(engine, config=CoordinatorConfig())
    print(f"    Ready in {t.elapsed_ms:.0f}ms")

    print(f"\n[2] Registering {num_users} participants...")
    clients = {}
    salaries = {}
    for i in range(num_users):
        name = f"user{i}"
        salaries[name] = rng.randrange(40_000, 250_000, 500)
        clients[name] = SalaryClient(name, coordinator, engine)
        with Timer() as t:
            clients[name].submit_salary(salaries[name])
        print(f"    {name}: submitted in {t.elapsed_ms:.1f}ms")

    names = list(clients)
    requester, others = names[0], names[1:]

    print(f"\n[3] {requester} compares against everyone else (batch)...")
    with Timer() as t:
        events = clients[requester].compare_many(others)
    print(f"    {len(events)} comparisons in {t.elapsed_ms:.1f}ms")

    print(f"\n[4] Repeating the batch (already compared pairs are skipped)...")
    events = clients[requester].compare_many(others)
    print(f"    {len(events)} new comparisons")

    print(f"\n[5] Repeating a single compare (hard failure)...")
    try:
        clients[requester].compare_with(others[0])
    except ComparisonError as e:
        print(f"    Rejected: {e}")

    print("\n" + "=" * 70)
    print("RESULTS")
    print("=" * 70)
    correct = 0
    for other in others:
        earns_more = clients[requester].reveal_comparison(requester, other)
        expected = salaries[requester] > salaries[other]
        correct += earns_more == expected
        verdict = "earns more than" if earns_more else "does not earn more than"
        print(f"  {requester} {verdict} {other}")
    print(f"\n  Correct: {correct}/{len(others)}")

    outsider = names[-1]
    try:
        clients[outsider].reveal_comparison(requester, others[0])
    except Unauthorized as e:
        print(f"  {outsider} blocked from {requester} -> {others[0]}: {e}")

    info = coordinator.get_info()
    print(f"\n  Users: {info.total_users}  Comparisons: {info.total_comparisons}")


def main():
    parser = argparse.ArgumentParser(description="Salary Compare demo")
    parser.add_argument(
        "--engine",
        choices=["mock", "paillier"],
        default="mock",
        help="Homomorphic engine to use",
    )
    parser.add_argument(
        "--num-users",
        type=int,
        default=5,
        help="Number of participants (at least 3)",
    )
    parser.add_argument(
        "--key-size",
        type=int,
        default=1024,
        help="Paillier key size in bits",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=42,
        help="Random seed for reproducibility",
    )

    args = parser.parse_args()
    run_demo(args.engine, args.num_users, args.key_size, args.seed)


if __name__ == "__main__":
    main()
