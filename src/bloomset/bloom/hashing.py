"""Double hashing: sinh k chỉ số bit từ một lần băm 64-bit.

Một digest 64-bit được tách thành hai nửa 32-bit (hash_a thấp, hash_b cao),
sau đó g_i = (hash_a + i * hash_b) mod 2^32, rồi mới lấy mod m_bits.
Kỹ thuật Kirsch/Mitzenmacher: hai hàm băm đủ để mô phỏng k hàm băm.
"""
from __future__ import annotations

from typing import Callable, Dict, Iterable, List, Tuple

import mmh3
import numpy as np

from bloomset.errors import InvalidConfigurationError

MASK32 = 0xFFFFFFFF
MASK64 = 0xFFFFFFFFFFFFFFFF

FNV64_OFFSET_BASIS = 0xCBF29CE484222325
FNV64_PRIME = 0x100000001B3

DEFAULT_ALGORITHM = "murmur3"


def _murmur3_64(data: bytes) -> int:
    # mmh3.hash64 trả về hai nửa của MurmurHash3 x64 128-bit; lấy nửa đầu.
    return mmh3.hash64(data, seed=0, signed=False)[0]


def _fnv1a_64(data: bytes) -> int:
    value = FNV64_OFFSET_BASIS
    for byte in data:
        value ^= byte
        value = (value * FNV64_PRIME) & MASK64
    return value


_ALGORITHMS: Dict[str, Callable[[bytes], int]] = {
    "murmur3": _murmur3_64,
    "fnv1a": _fnv1a_64,
}


def available_algorithms() -> List[str]:
    return sorted(_ALGORITHMS)


def resolve_algorithm(name: str) -> Callable[[bytes], int]:
    """Tra hàm băm 64-bit theo tên; tên lạ là lỗi cấu hình."""
    try:
        return _ALGORITHMS[name]
    except (KeyError, TypeError):
        raise InvalidConfigurationError(
            f"unknown hash algorithm {name!r}, expected one of {available_algorithms()}"
        ) from None


def hash64(data: bytes, algorithm: str = DEFAULT_ALGORITHM) -> int:
    """Băm bytes thành số nguyên không dấu 64-bit."""
    return resolve_algorithm(algorithm)(data)


def split_hash(digest: int) -> Tuple[int, int]:
    """Tách digest 64-bit thành (32 bit thấp, 32 bit cao)."""
    return digest & MASK32, (digest >> 32) & MASK32


def derive_indices(data: bytes, m_bits: int, k_hash: int, algorithm: str = DEFAULT_ALGORITHM) -> List[int]:
    """Sinh đúng k_hash chỉ số trong [0, m_bits); có thể trùng nhau."""
    hash_a, hash_b = split_hash(hash64(data, algorithm))
    return [((hash_a + hash_b * i) & MASK32) % m_bits for i in range(k_hash)]


def derive_indices_many(
    keys: Iterable[bytes], m_bits: int, k_hash: int, algorithm: str = DEFAULT_ALGORITHM
) -> np.ndarray:
    """Phiên bản vector hóa: mảng uint64 shape (len(keys), k_hash), từng hàng khớp derive_indices."""
    hasher = resolve_algorithm(algorithm)
    digests = np.array([hasher(key) for key in keys], dtype=np.uint64)
    hash_a = digests & np.uint64(MASK32)
    hash_b = digests >> np.uint64(32)
    steps = np.arange(k_hash, dtype=np.uint64)
    # hash_b * i < 2^32 * k nên không tràn uint64 trước khi cắt về 32 bit
    combined = (hash_a[:, None] + hash_b[:, None] * steps[None, :]) & np.uint64(MASK32)
    return combined % np.uint64(m_bits)
