from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class DiscoveredFile:
    """A log file found under <root>/<namespace>/<pod>/. Recomputed every scan."""

    path: str
    namespace: str
    pod: str
    size_bytes: int
    modified_at_millis: int

    def age_seconds(self, now: datetime) -> float:
        """Seconds since the last write, relative to ``now``."""
        return now.timestamp() - self.modified_at_millis / 1000
