# -*- coding: utf-8 -*-
"""
Test double hashing: digest 64-bit, tách nửa 32-bit, sinh chỉ số.
"""

import numpy as np
import pytest

from bloomset.bloom import hashing
from bloomset.bloom.hashing import MASK32, MASK64, derive_indices, derive_indices_many, hash64, split_hash
from bloomset.errors import InvalidConfigurationError


def test_fnv1a_known_vectors():
    assert hash64(b"", "fnv1a") == 0xCBF29CE484222325
    assert hash64(b"a", "fnv1a") == 0xAF63DC4C8601EC8C
    assert hash64(b"foobar", "fnv1a") == 0x85944171F73967E8


@pytest.mark.parametrize("algorithm", ["murmur3", "fnv1a"])
def test_hash64_is_unsigned_and_deterministic(algorithm):
    for data in (b"", b"alpha", b"\x00" * 32, bytes(range(256))):
        value = hash64(data, algorithm)
        assert 0 <= value <= MASK64
        assert value == hash64(data, algorithm)
    assert hash64(b"ab", algorithm) != hash64(b"ba", algorithm)


def test_unknown_algorithm_rejected():
    with pytest.raises(InvalidConfigurationError):
        hash64(b"x", "md5")


def test_split_hash_low_then_high():
    assert split_hash(0x0123456789ABCDEF) == (0x89ABCDEF, 0x01234567)
    assert split_hash(MASK64) == (MASK32, MASK32)
    assert split_hash(0) == (0, 0)


def test_indices_wrap_in_32_bits_before_modulo(monkeypatch):
    monkeypatch.setitem(hashing._ALGORITHMS, "all-ones", lambda data: MASK64)
    m_bits = 1 << 40
    indices = derive_indices(b"x", m_bits, 4, "all-ones")
    # (2^32 - 1) * (1 + i) mod 2^32 == 2^32 - (1 + i)
    assert indices == [MASK32, MASK32 - 1, MASK32 - 2, MASK32 - 3]
    assert derive_indices_many([b"x"], m_bits, 4, "all-ones").tolist() == [indices]


def test_first_index_is_low_half(monkeypatch):
    monkeypatch.setitem(hashing._ALGORITHMS, "fixed", lambda data: (7 << 32) | 5)
    assert derive_indices(b"", 1000, 4, "fixed") == [5, 12, 19, 26]
    assert derive_indices(b"", 10, 4, "fixed") == [5, 2, 9, 6]


@pytest.mark.parametrize("m_bits", [1, 7, 32, 1438, 20_197_731, (1 << 33) + 3])
def test_indices_in_range(m_bits):
    rng = np.random.default_rng(7)
    keys = [b""] + [rng.bytes(int(n)) for n in rng.integers(0, 40, size=200)]
    for key in keys:
        indices = derive_indices(key, m_bits, 13)
        assert len(indices) == 13
        assert all(0 <= index < m_bits for index in indices)


@pytest.mark.parametrize("algorithm", ["murmur3", "fnv1a"])
def test_vectorised_indices_match_scalar(algorithm):
    rng = np.random.default_rng(11)
    keys = [b"", b"alpha"] + [rng.bytes(8) for _ in range(100)]
    matrix = derive_indices_many(keys, 1438, 9, algorithm)
    assert matrix.shape == (len(keys), 9)
    assert matrix.dtype == np.uint64
    for row, key in zip(matrix.tolist(), keys):
        assert row == derive_indices(key, 1438, 9, algorithm)


def test_vectorised_indices_empty_input():
    assert derive_indices_many([], 100, 5).shape == (0, 5)
