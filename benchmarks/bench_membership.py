"""
Performance benchmarks for systems resolution.

Run with: python -m benchmarks.bench_membership
"""
import random
import time
from statistics import mean, stdev

from tandem_systems.core.columns import ElementFlags
from tandem_systems.core.keys import system_id_from_key, to_websafe
from tandem_systems.core.models import ModelDescriptor
from tandem_systems.systems import (
    MembershipState,
    ModelScan,
    SystemClassDecoder,
    apply_model_scan,
    build_system_registry,
)


def make_key(n: int) -> str:
    return to_websafe(n.to_bytes(20, "big"))


def synthetic_primary(systems: int = 200):
    """Default-model rows: one system per class bit, cycling."""
    rows = []
    for i in range(systems):
        rows.append({
            "k": make_key(i),
            "n:a": [ElementFlags.SYSTEM],
            "n:n": [f"System {i}"],
            "n:b": [1 << (i % 26)],
        })
    return rows


def synthetic_model(systems: int, elements: int, seed: int = 0):
    """Member rows, each referencing three random systems."""
    rng = random.Random(seed)
    rows = []
    for j in range(elements):
        refs = rng.sample(range(systems), 3)
        row = {"k": make_key(1_000_000 + j), "n:a": [ElementFlags.SIMPLE_ELEMENT], "n:!b": [1 << (refs[0] % 26)]}
        for ref in refs:
            row[f"m:{system_id_from_key(make_key(ref))}"] = [""]
        rows.append(row)
    return rows


def _timings(func, iterations):
    times = []
    for _ in range(iterations):
        start = time.perf_counter()
        func()
        times.append((time.perf_counter() - start) * 1000)  # ms
    return times


def benchmark_registry(iterations: int = 50):
    """Benchmark registry construction."""
    rows = synthetic_primary()
    times = _timings(lambda: build_system_registry(rows), iterations)
    return {
        "test": "registry",
        "iterations": iterations,
        "mean_ms": mean(times),
        "stdev_ms": stdev(times) if len(times) > 1 else 0,
    }


def benchmark_membership(iterations: int = 20, elements: int = 20_000):
    """Benchmark folding one model scan into an empty state."""
    registry = build_system_registry(synthetic_primary())
    scan = ModelScan(
        model=ModelDescriptor(model_id="urn:adsk.dtm:BENCH", label="Bench"),
        rows=tuple(synthetic_model(len(registry), elements)),
    )
    decoder = SystemClassDecoder()

    times = _timings(lambda: apply_model_scan(MembershipState.empty(), registry, scan, decoder), iterations)
    return {
        "test": "membership",
        "iterations": iterations,
        "mean_ms": mean(times),
        "stdev_ms": stdev(times) if len(times) > 1 else 0,
        "decoder_hits": decoder.hits,
        "decoder_misses": decoder.misses,
    }


def run_benchmarks():
    """Run all systems benchmarks."""
    print("=" * 60)
    print("Systems Resolution Benchmarks")
    print("=" * 60)

    benchmarks = [
        ("Registry Build", benchmark_registry),
        ("Membership Fold", benchmark_membership),
    ]

    print(f"\n{'Benchmark':<25} {'Mean (ms)':<12} {'Stdev':<10} {'Status':<15}")
    print("-" * 60)

    for name, func in benchmarks:
        try:
            result = func()
            print(f"{name:<25} {result['mean_ms']:<12.3f} {result['stdev_ms']:<10.3f} {'OK':<15}")
            if "decoder_misses" in result:
                print(f"{'  decoder cache':<25} hits={result['decoder_hits']} misses={result['decoder_misses']}")
        except Exception as e:
            print(f"{name:<25} {'--':<12} {'--':<10} ERROR: {e}")

    print("=" * 60)


if __name__ == "__main__":
    run_benchmarks()
