"""Tiện ích khóa bytes.

Bloom filter làm việc trên chuỗi byte tùy ý. Module này chuẩn hóa đầu vào
(bytes, bytearray, memoryview, str) thành một khóa bytes bất biến.
"""
from __future__ import annotations

from typing import NewType, Union

# Alias kiểu để diễn đạt ý nghĩa; lưu dưới dạng bytes Python.
ByteKey = NewType("ByteKey", bytes)

KeyLike = Union[bytes, bytearray, memoryview, str]


def normalize_key(value: KeyLike) -> ByteKey:
    """Ép giá trị về ByteKey; str được mã hóa UTF-8."""
    if isinstance(value, bytes):
        return ByteKey(value)
    if isinstance(value, (bytearray, memoryview)):
        return ByteKey(bytes(value))
    if isinstance(value, str):
        return ByteKey(value.encode("utf-8"))
    raise TypeError(f"unsupported key type: {type(value).__name__}")
