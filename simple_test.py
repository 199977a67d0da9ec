#!/usr/bin/env python3
"""
稳定哈希简单测试
==============

基础功能冒烟测试，可直接运行，也会被 pytest 收集。
"""

import time
from types import SimpleNamespace

from hash_table import HashMap, HashSet
from stable_bytes import EncodingUnsupported, hash_directly
from stable_hash import Hashable, random_build_hasher, stable_hash, stable_hash_hex, stable_hash_with
from std_traits import deepclone, eq
from trait_registry import UNDEFINED, TraitNotImplemented

def f():
    """嵌套测试用例"""
    va = {"float": [1.0, 2.0, 3.0, None, 4.0, None, 5.0] * 10}
    vb = {"int": [1, 2, 3, None, 4, None, 5] * 10}
    vc = {"str": ["1", "9", "2", "3", "None"] * 10 + ["4", "None", "5"] * 10}
    vd = {"left": va, "right": vb}
    ve = {"left": vc, "right": vd}
    f_ = {"single": ve}
    return f_

def test_basic_functionality():
    """测试基础稳定哈希功能"""
    print("测试基础功能...")

    test_cases = [
        None,
        UNDEFINED,
        True,
        False,
        42,
        3.14159,
        2 ** 100,
        "Hello 世界 🌍",
        b"binary data",
        [1, 2, 3, None],
        (1, 2, 3),
        {1, 2, 3},
        {"key": "value", "nested": {"data": [1, 2, 3]}},
        SimpleNamespace(x=1, y=[2, 3]),
        f()
    ]

    seen = set()
    for i, obj in enumerate(test_cases):
        hash_result = stable_hash_hex(obj)
        print(f"✓ 用例 {i+1}: {type(obj).__name__} -> {hash_result}")
        seen.add(hash_result)

    assert len(seen) == len(test_cases), "不同的值产生了相同的哈希"
    print("✓ 所有基础测试通过!")

def test_consistency():
    """测试哈希结果在多次运行中的一致性"""
    print("\n测试一致性...")

    hashes = {stable_hash_hex(f()) for _ in range(5)}
    assert len(hashes) == 1, f"哈希不一致: {hashes}"

    # 结构相等的值哈希相同
    assert stable_hash(deepclone(f())) == stable_hash(f())
    assert stable_hash({"a": 1, "b": 2}) == stable_hash({"b": 2, "a": 1})
    print(f"✓ 一致性测试通过: {hashes.pop()}")

def test_nesting():
    """测试嵌套处理"""
    print("\n测试嵌套...")

    current = "end"
    for i in range(50):
        current = {"level": i, "next": current}

    start_time = time.perf_counter()
    hash_result = stable_hash_hex(current)
    elapsed = time.perf_counter() - start_time
    assert hash_result == stable_hash_hex(deepclone(current))
    print(f"✓ 嵌套 (50 层): {hash_result} ({elapsed:.3f}s)")

def test_custom_types():
    """测试自定义类型支持"""
    print("\n测试自定义类型...")

    class Point:
        def __init__(self, x, y):
            self.x = x
            self.y = y

    # 未注册时应该失败
    point = Point(1.0, 2.0)
    try:
        stable_hash_hex(point)
    except TraitNotImplemented:
        print("✓ 自定义类型正确拒绝未注册")
    else:
        raise AssertionError("自定义类型在未注册时也能工作")

    try:
        hash_directly(point)
    except EncodingUnsupported:
        print("✓ 原始编码器拒绝自定义类型")
    else:
        raise AssertionError("原始编码器接受了自定义类型")

    # 注册并测试
    Hashable.impl(Point, lambda p, hasher: hasher.update(["Point", p.x, p.y]))

    hash_result = stable_hash_hex(point)
    assert hash_result == stable_hash_hex(Point(1.0, 2.0)), "自定义类型哈希不一致"
    assert hash_result != stable_hash_hex(Point(2.0, 1.0))
    print(f"✓ 自定义类型注册后工作: {hash_result}")

def test_special_values():
    """测试特殊浮点值"""
    print("\n测试特殊值...")

    for val in [0.0, -0.0, float('inf'), float('-inf'), float('nan')]:
        print(f"✓ {val}: {stable_hash_hex(val)}")

    assert stable_hash_hex(0.0) == stable_hash_hex(-0.0), "-0.0 和 0.0 产生不同哈希"
    assert stable_hash_hex(1) == stable_hash_hex(1.0)
    assert stable_hash_hex(True) != stable_hash_hex(1)
    print("✓ -0.0 和 0.0 产生相同哈希（已归一化）")

def test_hash_containers():
    """测试 HashMap / HashSet"""
    print("\n测试哈希容器...")

    m = HashMap([(["foo"], 42), ({"bar": 1}, 23)])
    assert m.get(["foo"]) == 42
    assert m.get({"bar": 1}) == 23
    assert eq(m, HashMap([({"bar": 1}, 23), (["foo"], 42)]))

    s = HashSet([[1, 2], [1, 2], [2, 1]])
    assert len(s) == 2
    assert stable_hash_with(s, random_build_hasher()) != stable_hash_with(m, random_build_hasher())
    print(f"✓ 哈希容器工作: {m!r} {s!r}")

def run_performance_test():
    """简单性能测试"""
    print("\n运行性能测试...")

    test_data = []
    for i in range(1000):
        test_data.append({
            f"key_{i}": [j for j in range(10)],
            "nested": {"value": i * i}
        })

    start_time = time.perf_counter()
    for obj in test_data:
        stable_hash(obj)
    elapsed = time.perf_counter() - start_time

    objects_per_second = len(test_data) / elapsed
    print(f"性能: {elapsed:.3f}s 处理 {len(test_data)} 对象 ({objects_per_second:.0f} obj/s)")

def main():
    """运行所有测试"""
    print("稳定哈希 - 简单测试套件")
    print("=" * 50)

    tests = [
        test_basic_functionality,
        test_consistency,
        test_nesting,
        test_custom_types,
        test_special_values,
        test_hash_containers
    ]

    passed = 0
    for test_func in tests:
        try:
            test_func()
            passed += 1
        except AssertionError as e:
            print(f"✗ {test_func.__name__}: {e}")

    run_performance_test()

    print(f"\n总结: {passed}/{len(tests)} 测试通过")

    if passed == len(tests):
        print("🎉 所有测试通过 - 实现工作正常!")
    else:
        print("❌ 部分测试失败 - 需要检查")

    return passed == len(tests)

if __name__ == "__main__":
    main()
