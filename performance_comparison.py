#!/usr/bin/env python3
"""
Performance Comparison: Stable Hashing and Hash Tables
======================================================

Measures the hashing layer against the builtin alternatives:
1. Throughput of stable_hash() for ordered and unordered data
2. HashMap vs dict for lookups (including structured keys dict cannot take)
3. Nesting depth handling
4. Memory usage (psutil)
"""

import logging
import os
import random
import string
import time
from typing import Any, Callable, Dict, List, Tuple

import psutil

from hash_table import HashMap, HashSet
from stable_hash import (
    Hashable, random_build_hasher, stable_hash, stable_hash_hex, stable_hash_unordered_with, stable_hash_with,
)
from trait_registry import TraitNotImplemented

logger = logging.getLogger(__name__)

def get_memory_usage() -> float:
    """Get current memory usage in MB"""
    process = psutil.Process(os.getpid())
    return process.memory_info().rss / 1024 / 1024

def create_test_case():
    """Nested mapping mixing floats, ints, strings and None"""
    va = {"float": [1.0, 2.0, 3.0, None, 4.0, None, 5.0] * 10}
    vb = {"int": [1, 2, 3, None, 4, None, 5] * 10}
    vc = {"str": ["1", "9", "2", "3", "None"] * 10 + ["4", "None", "5"] * 10}
    vd = {"left": va, "right": vb}
    ve = {"left": vc, "right": vd}
    f_ = {"single": ve}
    return f_

def create_random_data(size: int) -> List[Any]:
    """Create random test data of varying complexity"""
    data = []

    for _ in range(size):
        choice = random.randint(1, 6)
        if choice == 1:
            # Simple values
            data.append(random.choice([None, True, False, random.randint(-1000, 1000)]))
        elif choice == 2:
            # Strings
            data.append(''.join(random.choices(string.ascii_letters, k=random.randint(1, 50))))
        elif choice == 3:
            # Lists
            data.append([random.randint(0, 100) for _ in range(random.randint(1, 20))])
        elif choice == 4:
            # Dicts
            data.append({f"key_{i}": i for i in range(random.randint(1, 15))})
        elif choice == 5:
            # Sets
            data.append({random.randint(0, 100) for _ in range(random.randint(1, 20))})
        else:
            data.append(create_test_case())

    return data

def create_deep_structure(depth: int) -> Any:
    """Create deeply nested structure to test recursion"""
    current = "end"
    for i in range(depth):
        current = [f"level_{i}", current]
    return current

def time_it(fn: Callable[[], Any]) -> float:
    start_time = time.perf_counter()
    fn()
    return time.perf_counter() - start_time

def benchmark_speed(data: List[Any], name: str) -> Tuple[float, float]:
    """
    Benchmark the default and a randomly seeded build hasher on the same data
    Returns: (default_time, seeded_time)
    """
    print(f"\nBenchmarking {name}...")

    bh = random_build_hasher()
    default_time = time_it(lambda: [stable_hash(obj) for obj in data])
    seeded_time = time_it(lambda: [stable_hash_with(obj, bh) for obj in data])
    unordered_time = time_it(lambda: stable_hash_unordered_with(data, bh))

    print(f"  Default:   {default_time:.3f}s ({len(data) / default_time:.0f} obj/s)")
    print(f"  Seeded:    {seeded_time:.3f}s ({len(data) / seeded_time:.0f} obj/s)")
    print(f"  Unordered: {unordered_time:.3f}s (whole collection)")

    return default_time, seeded_time

def benchmark_tables(size: int) -> Dict[str, float]:
    """Insert and look up ``size`` keys in dict, HashMap and HashSet"""
    print(f"\nBenchmarking tables ({size} keys)...")

    keys = [f"key_{i}" for i in range(size)]
    structured = [[i, {"name": k}] for i, k in enumerate(keys)]
    results = {}

    def fill_dict():
        d = {k: i for i, k in enumerate(keys)}
        for k in keys:
            d[k]

    def fill_hashmap(ks):
        m = HashMap()
        for i, k in enumerate(ks):
            m.set(k, i)
        for k in ks:
            m.get(k)

    def fill_hashset(ks):
        s = HashSet(ks)
        for k in ks:
            s.has(k)

    results["dict"] = time_it(fill_dict)
    results["HashMap"] = time_it(lambda: fill_hashmap(keys))
    results["HashMap (structured keys)"] = time_it(lambda: fill_hashmap(structured))
    results["HashSet (structured keys)"] = time_it(lambda: fill_hashset(structured))

    for name, elapsed in results.items():
        print(f"  {name:<28} {elapsed:.3f}s")
    print(f"  Overhead vs dict: {results['HashMap'] / results['dict']:.1f}x")

    return results

def test_recursion_limits():
    """Report the nesting depths the recursive hashers handle"""
    print("\nTesting recursion depth handling...")

    depths = [10, 50, 100, 500]
    results = {}

    for depth in depths:
        deep_data = create_deep_structure(depth)
        try:
            start_time = time.perf_counter()
            hash_result = stable_hash_hex(deep_data)
            elapsed = time.perf_counter() - start_time
            results[depth] = (True, elapsed, hash_result)
            print(f"  Depth {depth}: ✓ {elapsed:.3f}s ({hash_result})")
        except RecursionError as e:
            results[depth] = (False, 0, str(e)[:50])
            print(f"  Depth {depth}: ✗ {str(e)[:50]}")

    return results

def test_memory_efficiency():
    """Test memory usage patterns"""
    print("\nTesting memory efficiency...")

    large_data = {
        "arrays": [[random.randint(0, 1000) for _ in range(1000)] for _ in range(10)],
        "objects": [{f"key_{j}": j * j for j in range(100)} for _ in range(50)],
        "strings": [''.join(random.choices(string.ascii_letters, k=100)) for _ in range(100)]
    }

    start_memory = get_memory_usage()
    stable_hash_hex(large_data)
    hash_memory = get_memory_usage() - start_memory
    print(f"  stable_hash: {hash_memory:.1f}MB memory delta")

    start_memory = get_memory_usage()
    table = HashMap((i, row) for i, row in enumerate(large_data["objects"]))
    table_memory = get_memory_usage() - start_memory
    print(f"  HashMap ({len(table)} entries): {table_memory:.1f}MB memory delta")

    return hash_memory, table_memory

def test_extensibility():
    """Custom types through Hashable.impl and __stable_hash__"""
    print("\nTesting extensibility...")

    class Point:
        def __init__(self, x, y):
            self.x = x
            self.y = y

    point = Point(1.0, 2.0)
    try:
        stable_hash_hex(point)
        print("  ✗ Custom type worked without registration")
    except TraitNotImplemented:
        print("  ✓ Custom type properly rejected without registration")

    Hashable.impl(Point, lambda p, hasher: hasher.update(["Point", p.x, p.y]))
    hash_result = stable_hash_hex(point)
    consistent = hash_result == stable_hash_hex(Point(1.0, 2.0))
    print(f"  {'✓' if consistent else '✗'} Registered type: {hash_result}")

    class MagicPoint:
        def __init__(self, x, y):
            self.x = x
            self.y = y

        def __stable_hash__(self, hasher):
            hasher.update(["MagicPoint", self.x, self.y])

    m = HashMap([(MagicPoint(3.0, 4.0), "found")])
    print(f"  ✓ Magic method usable as HashMap key: {m.get(MagicPoint(3.0, 4.0))}")

def run_comprehensive_comparison():
    """Run all benchmarks"""
    print("Stable Hash Performance Comparison")
    print("=" * 50)
    logger.debug("psutil %s, pid %d", psutil.__version__, os.getpid())

    benchmark_speed(create_random_data(100), "Basic Performance (100 objects)")
    benchmark_speed(create_random_data(500), "Large Dataset (500 objects)")
    benchmark_speed([create_test_case() for _ in range(50)], "Nested Test Case (50x)")

    benchmark_tables(1000)
    benchmark_tables(10000)

    recursion_results = test_recursion_limits()
    test_memory_efficiency()
    test_extensibility()

    print("\nSUMMARY")
    print("=" * 20)
    deep_success = sum(1 for success, _, _ in recursion_results.values() if success)
    print(f"Deep nesting support: {deep_success}/{len(recursion_results)} depths successful")

if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s %(message)s")
    run_comprehensive_comparison()
