"""Tiện ích tham số Bloom filter."""
from __future__ import annotations

import math
from dataclasses import dataclass

from bloomset.errors import InvalidConfigurationError

WORD_BITS = 32


def _require_int(name: str, value: object) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidConfigurationError(f"{name} must be an integer, got {type(value).__name__}")
    return value


@dataclass(frozen=True)
class BloomParams:
    capacity: int
    fp_denominator: int
    m_bits: int
    k_hash: int
    raw_k_hash: int
    num_words: int

    @staticmethod
    def for_capacity(capacity: int, fp_denominator: int) -> "BloomParams":
        """Tính m (bit) và k (số hash) tối ưu cho sức chứa n và FPR mục tiêu 1/p.

        m = ceil(|n * log2(e) * log2(p)|), k = floor((m / n) * ln 2).
        k được kẹp tối thiểu 1; giá trị gốc của công thức giữ trong raw_k_hash.
        Số word 32-bit làm tròn lên để mọi bit trong [0, m) đều dùng được.
        """
        capacity = _require_int("capacity", capacity)
        fp_denominator = _require_int("fp_denominator", fp_denominator)
        if capacity <= 0:
            raise InvalidConfigurationError("capacity must be positive")
        if fp_denominator <= 1:
            raise InvalidConfigurationError("fp_denominator must be greater than 1")

        m_bits = int(abs(math.ceil(capacity * math.log2(math.e) * math.log2(fp_denominator))))
        raw_k = int(math.floor((m_bits / capacity) * math.log(2)))
        num_words = (m_bits + WORD_BITS - 1) // WORD_BITS
        return BloomParams(
            capacity=capacity,
            fp_denominator=fp_denominator,
            m_bits=m_bits,
            k_hash=max(1, raw_k),
            raw_k_hash=raw_k,
            num_words=num_words,
        )

    @property
    def degenerate(self) -> bool:
        """True nếu k gốc của công thức < 1 (check sẽ luôn trả True nếu không kẹp).

        for_capacity chia thực m / n nên raw k >= 1 với mọi p >= 2; cờ này chỉ
        bật với BloomParams dựng tay rồi đưa vào BloomFilter.from_params.
        """
        return self.raw_k_hash < 1

    @property
    def target_fpr(self) -> float:
        return 1.0 / self.fp_denominator

    @property
    def memory_bytes(self) -> int:
        return self.num_words * (WORD_BITS // 8)

    def expected_fpr(self, n_items: int) -> float:
        """FPR lý thuyết (1 - e^{-kn/m})^k sau n_items phần tử khác nhau."""
        if n_items <= 0:
            return 0.0
        exponent = -self.k_hash * n_items / float(self.m_bits)
        return (1.0 - math.exp(exponent)) ** self.k_hash
