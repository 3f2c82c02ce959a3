"""
Performance metrics collection for monitoring.
"""

import inspect
import threading
import time
from collections import defaultdict
from functools import wraps
from typing import Any

from coredump_mcp.core.result import ToolError


class MetricsCollector:
    """
    Thread-safe per-tool call counters and timings.

    The lock keeps the collector safe when the HTTP transport serves
    requests from worker threads.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self.tool_metrics: dict[str, dict[str, Any]] = defaultdict(
            lambda: {
                "calls": 0,
                "errors": 0,
                "total_time": 0.0,
                "avg_time": 0.0,
                "max_time": 0.0,
                "min_time": float("inf"),
            }
        )

    def record_tool_execution(self, tool_name: str, execution_time: float, success: bool = True):
        """
        Record metrics for a tool execution (thread-safe).

        Args:
            tool_name: Name of the tool
            execution_time: Execution duration in seconds
            success: Whether the execution succeeded
        """
        with self._lock:
            metrics = self.tool_metrics[tool_name]
            metrics["calls"] += 1

            if not success:
                metrics["errors"] += 1

            metrics["total_time"] += execution_time
            metrics["avg_time"] = metrics["total_time"] / metrics["calls"]
            metrics["max_time"] = max(metrics["max_time"], execution_time)
            metrics["min_time"] = min(metrics["min_time"], execution_time)

    def get_metrics(self) -> dict[str, Any]:
        """Get all collected metrics (thread-safe)."""
        with self._lock:
            return {"tools": {name: dict(m) for name, m in self.tool_metrics.items()}}

    def reset(self):
        """Reset all metrics (thread-safe)."""
        with self._lock:
            self.tool_metrics.clear()


# Global metrics collector
metrics_collector = MetricsCollector()


def _determine_success(result: Any) -> bool:
    if isinstance(result, ToolError):
        return False
    if hasattr(result, "status"):
        return result.status == "success"
    return True


def track_metrics(tool_name: str):
    """
    Decorator to track tool execution metrics.

    Supports both synchronous and asynchronous functions.
    """

    def decorator(func):
        if inspect.iscoroutinefunction(func):

            @wraps(func)
            async def async_wrapper(*args, **kwargs):
                start_time = time.time()
                success = True

                try:
                    result = await func(*args, **kwargs)
                    success = _determine_success(result)
                    return result
                except Exception:
                    success = False
                    raise
                finally:
                    execution_time = time.time() - start_time
                    metrics_collector.record_tool_execution(tool_name, execution_time, success)

            return async_wrapper

        @wraps(func)
        def sync_wrapper(*args, **kwargs):
            start_time = time.time()
            success = True

            try:
                result = func(*args, **kwargs)
                success = _determine_success(result)
                return result
            except Exception:
                success = False
                raise
            finally:
                execution_time = time.time() - start_time
                metrics_collector.record_tool_execution(tool_name, execution_time, success)

        return sync_wrapper

    return decorator
