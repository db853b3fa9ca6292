import inspect
import time
from collections import deque
from functools import wraps

from shelfiq.utils.logger import get_logger

class PerformanceMonitor:
    """Monitor system performance"""

    def __init__(self, max_history: int = 100):
        # Only the most recent timings are kept
        self.metrics = deque(maxlen=max_history)

    def _record(self, name: str, duration: float):
        self.metrics.append({'function': name, 'duration': duration})
        get_logger().debug(f"{name} took {duration:.3f}s")

    def time_it(self, func):
        """Decorator to time function execution"""
        if inspect.iscoroutinefunction(func):
            @wraps(func)
            async def async_wrapper(*args, **kwargs):
                start = time.perf_counter()
                try:
                    return await func(*args, **kwargs)
                finally:
                    self._record(func.__name__, time.perf_counter() - start)
            return async_wrapper

        @wraps(func)
        def wrapper(*args, **kwargs):
            start = time.perf_counter()
            try:
                return func(*args, **kwargs)
            finally:
                self._record(func.__name__, time.perf_counter() - start)
        return wrapper

monitor = PerformanceMonitor()
