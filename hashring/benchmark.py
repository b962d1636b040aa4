#!/usr/bin/env python3
"""Micro-benchmarks for the ring: build time, lookup latency, balance, memory.

    python -m hashring.benchmark --nodes 10 50 100
"""

import argparse
import concurrent.futures
import sys
import time
import tracemalloc
from dataclasses import dataclass

from .config import configure_logging
from .node import Node
from .ring_manager import DEFAULT_VIRTUAL_NODES, RingManager
from .stats import tally, uniformity_score

DEFAULT_NODE_COUNTS = [10, 50, 100, 500, 1000]
LOOKUP_COUNT = 10000
UNIFORMITY_KEY_COUNT = 1000


@dataclass
class BenchmarkResult:
    node_count: int
    add_time_ms: float
    avg_lookup_ms: float
    uniformity_score: float
    memory_bytes: int


@dataclass
class StabilityResult:
    task_count: int
    errors: list
    elapsed_s: float

    @property
    def stable(self):
        return not self.errors


def measure(node_count, virtual_nodes=DEFAULT_VIRTUAL_NODES, lookup_count=LOOKUP_COUNT):
    tracemalloc.start()
    try:
        ring = RingManager(virtual_nodes)
        start = time.perf_counter()
        for i in range(1, node_count + 1):
            ring.register_node(Node(f"node_{i}", f"host{i}.com", 8080 + i))
        add_time_ms = (time.perf_counter() - start) * 1000
        memory_bytes, _ = tracemalloc.get_traced_memory()
    finally:
        tracemalloc.stop()

    start = time.perf_counter()
    for i in range(lookup_count):
        ring.resolve(f"test_key_{i}")
    avg_lookup_ms = (time.perf_counter() - start) * 1000 / lookup_count

    owners = tally(ring.resolve(f"uniform_test_{i}").id for i in range(UNIFORMITY_KEY_COUNT))
    return BenchmarkResult(
        node_count=node_count,
        add_time_ms=add_time_ms,
        avg_lookup_ms=avg_lookup_ms,
        uniformity_score=uniformity_score(owners.values()),
        memory_bytes=memory_bytes,
    )


def stability_check(ring=None, task_count=1000, workers=50):
    """Hammer one ring with mixed reads and writes from a thread pool."""
    ring = ring if ring is not None else RingManager()
    for i in range(1, 6):
        ring.register_node(Node(f"production-server-{i}"))

    def task(task_id):
        kind = task_id % 4
        if kind == 0:
            ring.register_node(Node(f"concurrent_{task_id}"))
        elif kind == 1:
            ring.deregister_node(f"concurrent_{task_id - 101}")
        elif kind == 2:
            ring.resolve(f"concurrent_lookup_{task_id}")
        else:
            ring.ring_info()

    errors = []
    start = time.perf_counter()
    with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as executor:
        futures = [executor.submit(task, i) for i in range(task_count)]
        for future in concurrent.futures.as_completed(futures):
            error = future.exception()
            if error is not None:
                errors.append(error)
    return StabilityResult(task_count, errors, time.perf_counter() - start)


def format_bytes(size):
    if size < 1024:
        return f"{size}B"
    if size < 1024 * 1024:
        return f"{size / 1024:.1f}KB"
    return f"{size / (1024 * 1024):.1f}MB"


def print_report(results):
    print("=" * 80)
    print("                    Hash ring benchmark")
    print("=" * 80)
    print(f"{'nodes':<10} {'lookup':<12} {'memory':<15} {'uniformity':<15} {'add time':<12}")
    print("-" * 80)
    for result in results:
        print(
            f"{result.node_count:<10} {result.avg_lookup_ms:.4f}ms{'':<4} "
            f"{format_bytes(result.memory_bytes):<15} {result.uniformity_score:<15.1f} "
            f"{result.add_time_ms:.1f}ms"
        )
    print("-" * 80)
    print(f"Lookup time is the mean over {LOOKUP_COUNT:,} lookups")
    print(f"Uniformity is scored over {UNIFORMITY_KEY_COUNT:,} keys")
    print("Memory is what tracemalloc saw while the ring was built")


def main(argv=None):
    parser = argparse.ArgumentParser(description="Benchmark the consistent hash ring")
    parser.add_argument("--nodes", type=int, nargs="+", default=DEFAULT_NODE_COUNTS)
    parser.add_argument("--virtual-nodes", type=int, default=DEFAULT_VIRTUAL_NODES)
    parser.add_argument("--skip-stability", action="store_true")
    parser.add_argument("--log-level", default="WARNING")
    args = parser.parse_args(argv)

    configure_logging(args.log_level)

    results = [measure(count, args.virtual_nodes) for count in args.nodes]
    print_report(results)

    if not args.skip_stability:
        result = stability_check(RingManager(args.virtual_nodes))
        status = "stable" if result.stable else "FAILED"
        print(
            f"\nConcurrent stability: {status} "
            f"({result.task_count} tasks, {len(result.errors)} errors, {result.elapsed_s:.2f}s)"
        )
        if not result.stable:
            return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
