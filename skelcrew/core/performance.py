"""Optional timing of runtime lifecycle phases."""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import Protocol, runtime_checkable


@runtime_checkable
class PerformanceMonitor(Protocol):
    def start_timer(self, label: str) -> Callable[[], float]: ...

    def record_metric(self, name: str, value: float) -> None: ...

    def get_metrics(self) -> dict[str, float]: ...


class NoOpPerformanceMonitor:
    def start_timer(self, label: str) -> Callable[[], float]:
        return lambda: 0.0

    def record_metric(self, name: str, value: float) -> None:
        pass

    def get_metrics(self) -> dict[str, float]:
        return {}


class SimplePerformanceMonitor:
    """Keeps the most recent duration (in milliseconds) per label."""

    def __init__(self) -> None:
        self._metrics: dict[str, float] = {}

    def start_timer(self, label: str) -> Callable[[], float]:
        start = time.perf_counter()

        def stop() -> float:
            duration = (time.perf_counter() - start) * 1000
            self.record_metric(label, duration)
            return duration

        return stop

    def record_metric(self, name: str, value: float) -> None:
        self._metrics[name] = value

    def get_metrics(self) -> dict[str, float]:
        return dict(self._metrics)


def create_performance_monitor(enabled: bool = False) -> PerformanceMonitor:
    return SimplePerformanceMonitor() if enabled else NoOpPerformanceMonitor()
