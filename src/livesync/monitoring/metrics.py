import time
from typing import Any, Dict, List


class MetricsTracker:
    def __init__(self):
        self.metrics: Dict[str, List[Any]] = {
            'broadcast_clients': [],
            'broadcast_suppressed': [],
            'edit_coalesced': [],
        }
        self.errors: Dict[str, List[str]] = {}

    def time(self) -> float:
        return time.perf_counter()

    def record(self, name: str, value: Any):
        """Append a sample to the named series"""
        self.metrics.setdefault(name, []).append(value)

    def record_error(self, name: str, message: str):
        """Keep the message of a handled error under its category"""
        self.errors.setdefault(name, []).append(message)

    def count(self, name: str) -> int:
        return len(self.metrics.get(name, []))

    def summary(self) -> Dict[str, int]:
        return {name: len(values) for name, values in self.metrics.items()}
