import numpy as np

from benchmark.run_benchmark import benchmark_once, random_values


def test_random_values_distinct_and_excluded():
    rng = np.random.default_rng(0)
    first = random_values(rng, 1000)
    second = random_values(rng, 1000, exclude=set(first))
    assert len(set(first)) == 1000
    assert all(len(v) == 8 for v in first)
    assert not set(first) & set(second)


def test_benchmark_once_reports_rates(capsys):
    rng = np.random.default_rng(1)
    row = benchmark_once(5000, 64, rng)
    assert row["expected_fpr"] == 1.0 / 64
    assert 0.0 <= row["observed_fpr"] < 10.0 / 64
    assert row["k_hash"] >= 1
    assert "[BloomFilter Init]" in capsys.readouterr().out
