"""Bộ đếm metrics gọn cho quan sát Bloom filter."""
from __future__ import annotations

from dataclasses import dataclass


@dataclass
class Metrics:
    adds: int = 0
    checks: int = 0
    check_hits: int = 0
    check_misses: int = 0
    check_latency_total_us: int = 0
    check_calls: int = 0

    def record_add(self, count: int = 1) -> None:
        self.adds += count

    def record_check(self, hit: bool) -> None:
        self.checks += 1
        if hit:
            self.check_hits += 1
        else:
            self.check_misses += 1

    def record_check_batch(self, hits: int, total: int) -> None:
        self.checks += total
        self.check_hits += hits
        self.check_misses += total - hits

    def record_check_latency(self, micros: int) -> None:
        self.check_latency_total_us += micros
        self.check_calls += 1

    def hit_ratio(self) -> float:
        if self.checks == 0:
            return 0.0
        return self.check_hits / float(self.checks)

    def average_check_latency_us(self) -> float:
        if self.check_calls == 0:
            return 0.0
        return self.check_latency_total_us / float(self.check_calls)
