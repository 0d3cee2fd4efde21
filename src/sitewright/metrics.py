"""
Performance metrics for build phases.

Each phase of a build starts a named Metric and stops it when done. Timing is
observational only; nothing in the pipeline reads it back.
"""

import json
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional


@dataclass
class Metric:
    """A named, timed span."""

    label: str
    started_at: float = field(default_factory=time.perf_counter)
    stopped_at: Optional[float] = None

    def stop(self) -> None:
        if self.stopped_at is None:
            self.stopped_at = time.perf_counter()

    @property
    def duration(self) -> float:
        """Elapsed seconds, up to now if the metric is still running."""
        end = self.stopped_at if self.stopped_at is not None else time.perf_counter()
        return end - self.started_at

    def to_dict(self) -> dict:
        return {"label": self.label, "duration_ms": round(self.duration * 1000, 3)}


class PerformanceMetrics:
    """Collects the metrics of a site and prints or saves them."""

    def __init__(self):
        self.metrics: List[Metric] = []

    def start(self, label: str) -> Metric:
        metric = Metric(label)
        self.metrics.append(metric)
        return metric

    def print(self) -> None:
        """Print a table of labels and durations, slowest first."""
        if not self.metrics:
            return

        width = max(len(m.label) for m in self.metrics)
        print("Metrics:")
        for metric in sorted(self.metrics, key=lambda m: m.duration, reverse=True):
            print(f"  {metric.label:<{width}}  {metric.duration * 1000:10.2f} ms")

    def save(self, path: Path) -> None:
        """
        Save the metrics as JSON.

        Args:
            path: Destination file; parent directories are created
        """
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump([m.to_dict() for m in self.metrics], f, indent=2)
