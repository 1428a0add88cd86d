"""Các ngoại lệ dùng chung cho Bloom filter."""
from __future__ import annotations


class BloomError(Exception):
    """Lỗi gốc của thư viện."""


class InvalidConfigurationError(BloomError, ValueError):
    """Tham số khởi tạo không hợp lệ (capacity <= 0, p <= 1, thuật toán băm lạ)."""


class IncompatibleFilterError(BloomError, ValueError):
    """Hai Bloom filter khác kích thước / số hash / thuật toán nên không gộp được."""
