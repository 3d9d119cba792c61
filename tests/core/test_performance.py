"""Tests for performance monitors."""

from __future__ import annotations

from skelcrew.core.performance import (
    NoOpPerformanceMonitor,
    PerformanceMonitor,
    SimplePerformanceMonitor,
    create_performance_monitor,
)


class TestPerformanceMonitor:
    def test_factory_picks_implementation(self):
        assert isinstance(create_performance_monitor(True), SimplePerformanceMonitor)
        assert isinstance(create_performance_monitor(False), NoOpPerformanceMonitor)

    def test_both_satisfy_protocol(self):
        assert isinstance(SimplePerformanceMonitor(), PerformanceMonitor)
        assert isinstance(NoOpPerformanceMonitor(), PerformanceMonitor)

    def test_timer_records_duration(self):
        monitor = SimplePerformanceMonitor()
        stop = monitor.start_timer("phase")
        duration = stop()
        assert duration >= 0
        assert monitor.get_metrics() == {"phase": duration}

    def test_record_metric_overwrites(self):
        monitor = SimplePerformanceMonitor()
        monitor.record_metric("x", 1.0)
        monitor.record_metric("x", 2.5)
        assert monitor.get_metrics() == {"x": 2.5}

    def test_get_metrics_returns_copy(self):
        monitor = SimplePerformanceMonitor()
        monitor.record_metric("x", 1.0)
        monitor.get_metrics()["x"] = 99
        assert monitor.get_metrics()["x"] == 1.0

    def test_noop_records_nothing(self):
        monitor = NoOpPerformanceMonitor()
        assert monitor.start_timer("phase")() == 0.0
        monitor.record_metric("x", 1.0)
        assert monitor.get_metrics() == {}
