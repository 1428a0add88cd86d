# -*- coding: utf-8 -*-
"""
Test tính toán tham số m, k cho Bloom filter.
"""

import math

import pytest

from bloomset.bloom.bloom_params import WORD_BITS, BloomParams
from bloomset.errors import InvalidConfigurationError


def test_small_scenario_sizes():
    params = BloomParams.for_capacity(100, 1000)
    assert params.m_bits == 1438
    assert params.k_hash == 9
    assert params.raw_k_hash == 9
    assert params.num_words == 45
    assert not params.degenerate


def test_million_items_sizes():
    params = BloomParams.for_capacity(1_000_000, 16_384)
    assert params.m_bits == 20_197_731
    assert params.k_hash == 14
    assert params.num_words == 631_180
    assert params.memory_bytes == 631_180 * 4


def test_word_count_rounds_up():
    for capacity, p in [(1, 2), (10, 2), (100, 1000), (777, 33), (5000, 65536)]:
        params = BloomParams.for_capacity(capacity, p)
        assert params.num_words == math.ceil(params.m_bits / WORD_BITS)
        assert params.num_words * WORD_BITS >= params.m_bits


def test_hash_count_never_zero():
    for capacity in (1, 2, 3, 10, 1000, 10 ** 6):
        for p in (2, 3, 4, 100, 2 ** 20):
            params = BloomParams.for_capacity(capacity, p)
            assert params.m_bits > 0
            assert params.k_hash >= 1
            assert not params.degenerate


def test_degenerate_flag_reports_raw_formula():
    params = BloomParams(capacity=10, fp_denominator=2, m_bits=5, k_hash=1, raw_k_hash=0, num_words=1)
    assert params.degenerate


@pytest.mark.parametrize("capacity", [0, -1, -100])
def test_rejects_non_positive_capacity(capacity):
    with pytest.raises(InvalidConfigurationError):
        BloomParams.for_capacity(capacity, 1000)


@pytest.mark.parametrize("p", [1, 0, -5])
def test_rejects_denominator_not_above_one(p):
    with pytest.raises(InvalidConfigurationError):
        BloomParams.for_capacity(100, p)


@pytest.mark.parametrize("capacity, p", [(10.5, 100), (True, 100), (100, 2.0), ("100", 100)])
def test_rejects_non_integers(capacity, p):
    with pytest.raises(InvalidConfigurationError):
        BloomParams.for_capacity(capacity, p)


def test_configuration_error_is_value_error():
    with pytest.raises(ValueError):
        BloomParams.for_capacity(0, 2)


def test_expected_fpr_near_target_at_capacity():
    params = BloomParams.for_capacity(10_000, 1024)
    assert params.expected_fpr(0) == 0.0
    rate = params.expected_fpr(10_000)
    assert params.target_fpr / 2 < rate < params.target_fpr * 2
    assert params.expected_fpr(50_000) > rate
