"""
Performance monitoring and metrics collection utilities.

Every pipeline stage (validation, retrieval, extraction, answering) runs
inside ``performance_context`` so its duration and outcome land in a shared
``MetricsCollector``; ``/health`` reports the per-operation summary.

Classes:
    PerformanceMetric: One timed operation
    MetricsCollector: Centralized metrics collection and reporting

Functions:
    get_metrics_collector: Access the process-wide collector
    performance_context: Context manager timing a block of work
"""

import time
import logging
import statistics
from typing import Dict, Any, Optional
from contextlib import contextmanager
from dataclasses import dataclass, field
from collections import defaultdict, deque
from datetime import datetime


logger = logging.getLogger(__name__)


@dataclass
class PerformanceMetric:
    """Container for performance measurement data."""

    operation: str
    duration: float
    timestamp: datetime
    parameters: Dict[str, Any] = field(default_factory=dict)
    success: bool = True
    error_type: Optional[str] = None


class MetricsCollector:
    """
    Centralized performance metrics collection and analysis.

    Collects timing data and operation success rates, and provides a
    statistical summary per operation.
    """

    def __init__(self, max_history: int = 1000, slow_threshold: float = 30.0):
        """
        Initialize metrics collector.

        Args:
            max_history: Maximum number of metrics to keep in memory
            slow_threshold: Durations above this many seconds are logged as slow
        """
        self.max_history = max_history
        self.slow_threshold = slow_threshold
        self.metrics: deque = deque(maxlen=max_history)
        self.operation_stats: Dict[str, deque] = defaultdict(lambda: deque(maxlen=100))

    def record_metric(self, metric: PerformanceMetric) -> None:
        """Record a performance metric."""
        self.metrics.append(metric)
        self.operation_stats[metric.operation].append(metric.duration)

        if metric.duration > self.slow_threshold:
            logger.warning(f"Slow operation detected: {metric.operation} took {metric.duration:.2f}s")

        if not metric.success:
            logger.error(f"Failed operation: {metric.operation} - {metric.error_type}")

    def get_operation_stats(self, operation: str) -> Dict[str, float]:
        """
        Get statistical summary for a specific operation.

        Args:
            operation: Name of the operation to analyze

        Returns:
            Dictionary containing statistical metrics
        """
        durations = list(self.operation_stats.get(operation, ()))
        if not durations:
            return {"count": 0}

        return {
            "count": len(durations),
            "mean": statistics.mean(durations),
            "median": statistics.median(durations),
            "min": min(durations),
            "max": max(durations),
        }

    def get_all_stats(self) -> Dict[str, Dict[str, float]]:
        """Get statistics for all recorded operations."""
        return {op: self.get_operation_stats(op) for op in list(self.operation_stats.keys())}

    def get_success_rate(self, operation: str = None) -> float:
        """
        Calculate success rate for operations.

        Returns:
            Success rate as a percentage (0-100)
        """
        relevant_metrics = [m for m in self.metrics
                            if operation is None or m.operation == operation]

        if not relevant_metrics:
            return 0.0

        successful = sum(1 for m in relevant_metrics if m.success)
        return (successful / len(relevant_metrics)) * 100

    def summary(self) -> Dict[str, Any]:
        """Compact report used by the health endpoint."""
        return {
            "total_operations": len(self.metrics),
            "success_rate": round(self.get_success_rate(), 2),
            "operations": {
                op: {k: round(v, 3) if isinstance(v, float) else v for k, v in stats.items()}
                for op, stats in self.get_all_stats().items()
            },
        }

    def reset(self) -> None:
        """Drop all recorded metrics."""
        self.metrics.clear()
        self.operation_stats.clear()


# Global metrics collector instance
_global_metrics = MetricsCollector()


def get_metrics_collector() -> MetricsCollector:
    """Get the global metrics collector instance."""
    return _global_metrics


@contextmanager
def performance_context(operation: str, **context_params):
    """
    Context manager for performance tracking with additional context.

    Args:
        operation: Name of the operation
        **context_params: Additional context parameters to include

    Example:
        with performance_context("retrieval", question_length=42):
            links = await retriever.retrieve(question)
    """
    start_time = time.time()
    logger.debug(f"Starting {operation}")

    try:
        yield
        duration = time.time() - start_time
        logger.info(f"{operation} completed in {duration:.3f}s")

        _global_metrics.record_metric(PerformanceMetric(
            operation=operation,
            duration=duration,
            timestamp=datetime.now(),
            parameters=context_params,
            success=True
        ))

    except Exception as e:
        duration = time.time() - start_time
        logger.error(f"{operation} failed after {duration:.3f}s: {str(e)}")

        _global_metrics.record_metric(PerformanceMetric(
            operation=operation,
            duration=duration,
            timestamp=datetime.now(),
            parameters=context_params,
            success=False,
            error_type=type(e).__name__
        ))
        raise
