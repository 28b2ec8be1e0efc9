import logging
from threading import Lock
from typing import Dict


class BudgetTracker:
    """
    Bytes rotated per namespace for the lifetime of the process.

    Usage only ever grows and starts at zero on every start, existing archives
    on disk are not counted. A single limit applies to every namespace,
    namespace budget overrides from the configuration are not consulted.
    """

    def __init__(self, limit_bytes: int):
        self._limit_bytes = limit_bytes
        self._usage: Dict[str, int] = {}
        self._lock = Lock()

        logging.info(f"BudgetTracker initialized with limit {limit_bytes} bytes per namespace")

    @property
    def limit_bytes(self) -> int:
        return self._limit_bytes

    def add(self, namespace: str, bytes_rotated: int) -> int:
        """Add rotated bytes to a namespace and return the new total."""
        with self._lock:
            total = self._usage.get(namespace, 0) + bytes_rotated
            self._usage[namespace] = total
            return total

    def get(self, namespace: str) -> int:
        with self._lock:
            return self._usage.get(namespace, 0)

    def over_limit(self, namespace: str) -> bool:
        return self.get(namespace) > self._limit_bytes

    def snapshot(self) -> Dict[str, int]:
        with self._lock:
            return dict(self._usage)
