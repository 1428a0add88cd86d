"""Bloom filter trên mảng word uint32 đóng gói bit."""
from __future__ import annotations

import threading
import time
from typing import Iterable, List, Optional

import numpy as np

from bloomset.bloom.bloom_params import WORD_BITS, BloomParams
from bloomset.bloom.hashing import DEFAULT_ALGORITHM, derive_indices, derive_indices_many, resolve_algorithm
from bloomset.errors import IncompatibleFilterError, InvalidConfigurationError
from bloomset.metrics.metrics import Metrics
from bloomset.types.byte_keys import ByteKey, KeyLike, normalize_key

# _BIT_MASKS[o] == 1 << o, dạng uint32
_BIT_MASKS = np.left_shift(np.uint32(1), np.arange(WORD_BITS, dtype=np.uint32))


class BloomFilter:
    """
    Bloom filter kích thước cố định:
    - m và k tính một lần khi khởi tạo (BloomParams), không đổi về sau
    - k chỉ số bit sinh từ một digest 64-bit (double hashing)
    - bit chỉ được bật, không bao giờ tắt: không có false negative
    - RLock bảo vệ mảng word khi dùng chung giữa các thread
    """

    def __init__(
        self,
        capacity: int,
        fp_denominator: int,
        *,
        algorithm: str = DEFAULT_ALGORITHM,
        metrics: Optional[Metrics] = None,
        verbose: bool = False,
    ) -> None:
        """Khởi tạo filter cho n = capacity phần tử và FPR mục tiêu 1/fp_denominator."""
        self._setup(BloomParams.for_capacity(capacity, fp_denominator), algorithm, metrics, verbose)

    @classmethod
    def from_params(
        cls,
        params: BloomParams,
        *,
        algorithm: str = DEFAULT_ALGORITHM,
        metrics: Optional[Metrics] = None,
        verbose: bool = False,
    ) -> "BloomFilter":
        """Dựng filter đúng theo m, k, số word trong params (không tính lại)."""
        if not isinstance(params, BloomParams):
            raise TypeError(f"expected BloomParams, got {type(params).__name__}")
        if params.m_bits <= 0 or params.k_hash < 1 or params.num_words < 1:
            raise InvalidConfigurationError(
                f"params need m_bits > 0, k_hash >= 1, num_words >= 1: {params}"
            )
        bf = cls.__new__(cls)
        bf._setup(params, algorithm, metrics, verbose)
        return bf

    def _setup(self, params: BloomParams, algorithm: str, metrics: Optional[Metrics], verbose: bool) -> None:
        resolve_algorithm(algorithm)
        self._params = params
        self._algorithm = algorithm
        self._words = np.zeros(params.num_words, dtype=np.uint32)
        self._inserted = 0
        self._metrics = metrics
        self._lock = threading.RLock()

        if verbose:
            print(
                f"[BloomFilter Init] algorithm={algorithm}, "
                f"m={params.m_bits:,} bits ({params.num_words:,} words, ~{params.memory_bytes / 1024:.1f} KB), "
                f"k={params.k_hash} hashes, expected_n={params.capacity:,}, "
                f"target_fpr=1/{params.fp_denominator:,}"
            )
            if params.degenerate:
                print(f"[BloomFilter Init] formula gave k={params.raw_k_hash}, clamped to {params.k_hash}")

    # Thuộc tính chỉ đọc
    @property
    def params(self) -> BloomParams:
        return self._params

    @property
    def capacity(self) -> int:
        return self._params.capacity

    @property
    def fp_denominator(self) -> int:
        return self._params.fp_denominator

    @property
    def m_bits(self) -> int:
        return self._params.m_bits

    @property
    def k_hash(self) -> int:
        return self._params.k_hash

    @property
    def num_words(self) -> int:
        return self._params.num_words

    @property
    def algorithm(self) -> str:
        return self._algorithm

    @property
    def metrics(self) -> Optional[Metrics]:
        return self._metrics

    def add(self, data: KeyLike) -> None:
        """Thêm một chuỗi byte vào filter (bật k bit tương ứng)."""
        positions = self._positions(normalize_key(data))
        with self._lock:
            for pos in positions:
                self._set_bit(pos)
            self._inserted += 1
            if self._metrics is not None:
                self._metrics.record_add()

    def add_many(self, items: Iterable[KeyLike]) -> None:
        """Thêm nhiều phần tử một lượt, tính chỉ số bằng numpy."""
        keys = [normalize_key(item) for item in items]
        if not keys:
            return
        word_idx, masks = self._addresses(keys)
        with self._lock:
            np.bitwise_or.at(self._words, word_idx, masks)
            self._inserted += len(keys)
            if self._metrics is not None:
                self._metrics.record_add(len(keys))

    def check(self, data: KeyLike) -> bool:
        """Trả False nếu chắc chắn chưa thêm, True nếu có thể đã thêm (có FPR)."""
        start = time.perf_counter_ns() if self._metrics is not None else 0
        positions = self._positions(normalize_key(data))
        with self._lock:
            hit = all(self._test_bit(pos) for pos in positions)
            if self._metrics is not None:
                self._metrics.record_check(hit)
                self._metrics.record_check_latency(self._micros_since(start))
        return hit

    def check_many(self, items: Iterable[KeyLike]) -> np.ndarray:
        """Kiểm tra nhiều phần tử; trả mảng bool cùng thứ tự đầu vào."""
        start = time.perf_counter_ns() if self._metrics is not None else 0
        keys = [normalize_key(item) for item in items]
        if not keys:
            return np.zeros(0, dtype=bool)
        word_idx, masks = self._addresses(keys)
        with self._lock:
            bits = (self._words[word_idx] & masks) != 0
            hits = bits.reshape(len(keys), self.k_hash).all(axis=1)
            if self._metrics is not None:
                self._metrics.record_check_batch(int(hits.sum()), len(keys))
                self._metrics.record_check_latency(self._micros_since(start))
        return hits

    def __contains__(self, data: KeyLike) -> bool:
        return self.check(data)

    def union(self, other: "BloomFilter") -> "BloomFilter":
        """Gộp 2 Bloom filter cùng tham số (OR mảng word) thành filter mới."""
        if not isinstance(other, BloomFilter):
            raise TypeError(f"cannot union BloomFilter with {type(other).__name__}")
        if self._params != other._params or self._algorithm != other._algorithm:
            raise IncompatibleFilterError(
                "Bloom filters must share capacity, fp_denominator and algorithm to union"
            )
        merged = BloomFilter.from_params(self._params, algorithm=self._algorithm)
        # không giữ hai lock cùng lúc: chụp bản sao của other trước
        other_words = other.words()
        other_inserted = other.get_inserted_count()
        with self._lock:
            merged._words = self._words | other_words
            merged._inserted = self._inserted + other_inserted
        return merged

    def __or__(self, other: "BloomFilter") -> "BloomFilter":
        return self.union(other)

    def words(self) -> np.ndarray:
        """Bản sao mảng word; sửa bản sao không ảnh hưởng filter."""
        with self._lock:
            return self._words.copy()

    def bit_count(self) -> int:
        """Số bit đang bật."""
        with self._lock:
            return int(np.unpackbits(self._words.view(np.uint8)).sum())

    def fill_ratio(self) -> float:
        return self.bit_count() / float(self.m_bits)

    def estimate_fpr(self) -> float:
        """Ước lượng FPR hiện tại dựa trên độ bão hòa thực tế (tỉ lệ bit 1)^k."""
        if self.get_inserted_count() == 0:
            return 0.0
        return self.fill_ratio() ** self.k_hash

    def get_inserted_count(self) -> int:
        """Số lần gọi add (đếm logic, không khử trùng lặp)."""
        with self._lock:
            return self._inserted

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, BloomFilter):
            return NotImplemented
        return (
            self._params == other._params
            and self._algorithm == other._algorithm
            and bool(np.array_equal(self.words(), other.words()))
        )

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return (
            f"BloomFilter(m={self.m_bits:,} bits, k={self.k_hash}, "
            f"inserted={self.get_inserted_count():,}, "
            f"fill={self.fill_ratio():.4%}, target_fpr=1/{self.fp_denominator:,})"
        )

    # Hàm nội bộ
    def _positions(self, key: ByteKey) -> List[int]:
        return derive_indices(key, self.m_bits, self.k_hash, self._algorithm)

    def _addresses(self, keys: List[ByteKey]) -> tuple[np.ndarray, np.ndarray]:
        """Đổi chỉ số bit thành (vị trí word, mask) cho toàn bộ keys, phẳng theo hàng."""
        indices = derive_indices_many(keys, self.m_bits, self.k_hash, self._algorithm).ravel()
        word_idx = ((indices // np.uint64(WORD_BITS)) % np.uint64(self.num_words)).astype(np.intp)
        masks = _BIT_MASKS[(indices % np.uint64(WORD_BITS)).astype(np.intp)]
        return word_idx, masks

    def _set_bit(self, pos: int) -> None:
        word = (pos // WORD_BITS) % self.num_words
        self._words[word] |= _BIT_MASKS[pos % WORD_BITS]

    def _test_bit(self, pos: int) -> bool:
        word = (pos // WORD_BITS) % self.num_words
        return bool(self._words[word] & _BIT_MASKS[pos % WORD_BITS])

    @staticmethod
    def _micros_since(start_ns: int) -> int:
        return int((time.perf_counter_ns() - start_ns) / 1000)
