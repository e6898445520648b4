"""
Tests for stage timing and the metrics collector.
"""

from datetime import datetime

import pytest

from siteqa.utils.performance import (
    MetricsCollector,
    PerformanceMetric,
    get_metrics_collector,
    performance_context,
)


@pytest.fixture
def collector():
    metrics = get_metrics_collector()
    metrics.reset()
    yield metrics
    metrics.reset()


def _metric(operation, duration, success=True):
    return PerformanceMetric(operation=operation, duration=duration, timestamp=datetime.now(),
                             success=success, error_type=None if success else "TimeoutError")


class TestMetricsCollector:

    def test_operation_stats(self):
        metrics = MetricsCollector()
        for duration in (1.0, 2.0, 6.0):
            metrics.record_metric(_metric("retrieval", duration))

        stats = metrics.get_operation_stats("retrieval")

        assert stats == {"count": 3, "mean": 3.0, "median": 2.0, "min": 1.0, "max": 6.0}
        assert metrics.get_operation_stats("answer_generation") == {"count": 0}

    def test_success_rate(self):
        metrics = MetricsCollector()
        metrics.record_metric(_metric("retrieval", 1.0))
        metrics.record_metric(_metric("retrieval", 1.0, success=False))
        metrics.record_metric(_metric("extraction", 1.0))

        assert metrics.get_success_rate("retrieval") == 50.0
        assert metrics.get_success_rate() == pytest.approx(66.666, rel=1e-3)
        assert MetricsCollector().get_success_rate() == 0.0

    def test_history_is_bounded(self):
        metrics = MetricsCollector(max_history=2)
        for _ in range(5):
            metrics.record_metric(_metric("retrieval", 0.1))

        assert metrics.summary()["total_operations"] == 2


class TestPerformanceContext:

    def test_success_recorded(self, collector):
        with performance_context("question_validation", question_length=12):
            pass

        assert collector.get_operation_stats("question_validation")["count"] == 1
        assert collector.metrics[-1].parameters == {"question_length": 12}
        assert collector.summary()["success_rate"] == 100.0

    def test_failure_recorded_and_reraised(self, collector):
        with pytest.raises(TimeoutError):
            with performance_context("retrieval"):
                raise TimeoutError("navigation timed out")

        metric = collector.metrics[-1]
        assert not metric.success
        assert metric.error_type == "TimeoutError"
