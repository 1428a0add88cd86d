# benchmark/run_benchmark.py
"""
Benchmark FPR thực nghiệm cho Bloom filter đóng gói bit.

- Với mỗi cấu hình (capacity n, mẫu số p): thêm n giá trị ngẫu nhiên 8 byte,
  rồi kiểm tra n giá trị khác (chưa từng thêm), đếm số false positive
- Đo throughput add/check và RSS memory (psutil)
- Nhiều lượt chạy, tính avg ± std (numpy), gom kết quả vào pandas DataFrame
- In bảng (tabulate) và vẽ biểu đồ FPR kỳ vọng vs thực tế (matplotlib)
"""

import os
import time
from typing import AbstractSet, List, Set, Tuple

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import psutil

from bloomset.bloom.bloom_filter import BloomFilter

# (capacity, fp_denominator)
SETTINGS: List[Tuple[int, int]] = [
    (100_000, 64),
    (100_000, 1024),
    (1_000_000, 16_384),
]
VALUE_SIZE = 8


def random_values(rng: np.random.Generator, count: int, exclude: AbstractSet[bytes] = frozenset()) -> List[bytes]:
    """Sinh count giá trị 8 byte ngẫu nhiên, khác nhau và không nằm trong exclude."""
    seen: Set[bytes] = set()
    values: List[bytes] = []
    while len(values) < count:
        raw = rng.bytes(VALUE_SIZE * (count - len(values)))
        for i in range(0, len(raw), VALUE_SIZE):
            value = raw[i:i + VALUE_SIZE]
            if value in seen or value in exclude:
                continue
            seen.add(value)
            values.append(value)
    return values


def benchmark_once(capacity: int, fp_denominator: int, rng: np.random.Generator, algorithm: str = "murmur3") -> dict:
    """Một lượt: add n giá trị, check n giá trị mới, trả về các số đo."""
    process = psutil.Process()
    rss_before = process.memory_info().rss

    bf = BloomFilter(capacity, fp_denominator, algorithm=algorithm, verbose=True)
    inserted = random_values(rng, capacity)
    probes = random_values(rng, capacity, exclude=set(inserted))

    start_insert = time.time()
    bf.add_many(inserted)
    insert_duration = time.time() - start_insert

    start_query = time.time()
    false_positives = int(bf.check_many(probes).sum())
    query_duration = time.time() - start_query

    lost = int((~bf.check_many(inserted)).sum())
    if lost:
        raise AssertionError(f"lost {lost} inserted values")

    return {
        "capacity": capacity,
        "fp_denominator": fp_denominator,
        "m_bits": bf.m_bits,
        "k_hash": bf.k_hash,
        "expected_fpr": 1.0 / fp_denominator,
        "observed_fpr": false_positives / float(len(probes)),
        "estimated_fpr": bf.estimate_fpr(),
        "insert_qps": len(inserted) / max(insert_duration, 1e-9),
        "query_qps": len(probes) / max(query_duration, 1e-9),
        "memory_kb": (process.memory_info().rss - rss_before) / 1024,
    }


def run_full_benchmark(
    settings: List[Tuple[int, int]] = SETTINGS,
    num_runs: int = 3,
    seed: int = 2024,
    algorithm: str = "murmur3",
) -> pd.DataFrame:
    """Chạy benchmark cho mọi cấu hình, nhiều lượt, trả về bảng tóm tắt."""
    rng = np.random.default_rng(seed)
    rows = []
    for capacity, fp_denominator in settings:
        for run in range(1, num_runs + 1):
            print(f"\n{'='*20} n={capacity:,} p={fp_denominator:,} RUN {run}/{num_runs} {'='*20}")
            rows.append(benchmark_once(capacity, fp_denominator, rng, algorithm=algorithm))

    df = pd.DataFrame(rows)
    summary = (
        df.groupby(["capacity", "fp_denominator", "m_bits", "k_hash", "expected_fpr"])
        .agg(
            observed_fpr_mean=("observed_fpr", "mean"),
            observed_fpr_std=("observed_fpr", "std"),
            query_qps_mean=("query_qps", "mean"),
            memory_kb_mean=("memory_kb", "mean"),
        )
        .reset_index()
    )

    print_results(summary, num_runs)
    plot_results(summary)
    return summary


def print_results(summary: pd.DataFrame, num_runs: int):
    """In bảng kết quả"""
    from tabulate import tabulate

    table = []
    for _, s in summary.iterrows():
        table.append([
            f"n={int(s['capacity']):,} p={int(s['fp_denominator']):,}",
            f"{int(s['m_bits']):,} / {int(s['k_hash'])}",
            f"{s['expected_fpr']:.6%}",
            f"{s['observed_fpr_mean']:.6%} ± {s['observed_fpr_std']:.6%}",
            f"{s['query_qps_mean']:,.0f} qps",
            f"{s['memory_kb_mean']:,.0f} KB",
        ])

    print(f"\n=== KẾT QUẢ BENCHMARK (Avg ± Std over {num_runs} runs) ===")
    print(tabulate(
        table,
        headers=["Setting", "m / k", "Expected FPR", "Observed FPR", "Query throughput", "Memory"],
        tablefmt="github",
    ))


def plot_results(summary: pd.DataFrame):
    """Vẽ FPR kỳ vọng vs thực tế (thang log) với error bars"""
    labels = [f"n={int(c):,}\np={int(p):,}" for c, p in zip(summary["capacity"], summary["fp_denominator"])]
    x = np.arange(len(labels))
    width = 0.38

    fig, ax = plt.subplots(figsize=(10, 6))
    ax.bar(x - width / 2, summary["expected_fpr"], width, label="Expected (1/p)", color="orange", alpha=0.8)
    ax.bar(
        x + width / 2, summary["observed_fpr_mean"], width, yerr=summary["observed_fpr_std"],
        capsize=5, label="Observed", color="green", alpha=0.8,
    )
    ax.set_yscale("log")
    ax.set_xticks(x)
    ax.set_xticklabels(labels)
    ax.set_ylabel("False Positive Rate")
    ax.set_title("Bloom Filter: FPR kỳ vọng vs thực tế")
    ax.legend()
    plt.tight_layout()

    os.makedirs("plots", exist_ok=True)
    plot_path = "plots/benchmark_fpr.png"
    plt.savefig(plot_path, dpi=200)
    plt.close(fig)
    print(f"\nBiểu đồ đã lưu tại: {plot_path}")


if __name__ == "__main__":
    run_full_benchmark(settings=SETTINGS, num_runs=3)
