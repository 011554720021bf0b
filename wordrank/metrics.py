"""
Performance metrics collection for ranking runs.
"""

import time
import json
from dataclasses import dataclass, asdict

import psutil


@dataclass
class RunMetrics:
    """Metrics for a single ranking run."""

    start_time: float
    end_time: float = 0.0
    map_phase_start: float = 0.0
    map_phase_end: float = 0.0
    reduce_phase_start: float = 0.0
    reduce_phase_end: float = 0.0
    num_files: int = 0
    num_fragments: int = 0
    num_extended_fragments: int = 0
    input_size_bytes: int = 0
    num_ranked_files: int = 0
    peak_memory_bytes: int = 0
    map_strategy: str = ''
    workers: int = 0

    @property
    def total_time_seconds(self) -> float:
        """Total run time in seconds."""
        return self.end_time - self.start_time

    @property
    def map_phase_time_seconds(self) -> float:
        """Map phase execution time in seconds."""
        return self.map_phase_end - self.map_phase_start

    @property
    def reduce_phase_time_seconds(self) -> float:
        """Reduce phase execution time in seconds."""
        return self.reduce_phase_end - self.reduce_phase_start

    def to_dict(self) -> dict:
        """Convert metrics to dictionary."""
        data = asdict(self)
        data['total_time_seconds'] = self.total_time_seconds
        data['map_phase_time_seconds'] = self.map_phase_time_seconds
        data['reduce_phase_time_seconds'] = self.reduce_phase_time_seconds
        return data

    def save_to_file(self, filepath: str):
        """Save metrics to JSON file."""
        with open(filepath, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)


class MetricsCollector:
    """Collects metrics while a run progresses."""

    def __init__(self, map_strategy: str = '', workers: int = 0):
        self.process = psutil.Process()
        self.metrics = RunMetrics(start_time=time.time(), map_strategy=map_strategy, workers=workers)

    def _sample_memory(self):
        rss = self.process.memory_info().rss
        if rss > self.metrics.peak_memory_bytes:
            self.metrics.peak_memory_bytes = rss

    def start_map_phase(self, num_files: int, fragments, file_sizes: dict):
        """Mark the start of the map phase and record input size."""
        self.metrics.map_phase_start = time.time()
        self.metrics.num_files = num_files
        self.metrics.num_fragments = len(fragments)
        self.metrics.input_size_bytes = sum(file_sizes.values())
        self._sample_memory()

    def end_map_phase(self, fragments):
        """Mark the end of the map phase."""
        self.metrics.map_phase_end = time.time()
        self.metrics.num_extended_fragments = sum(1 for f in fragments if f.was_extended)
        self._sample_memory()

    def start_reduce_phase(self):
        """Mark the start of the reduce phase."""
        self.metrics.reduce_phase_start = time.time()

    def end_run(self, num_ranked_files: int):
        """Mark run completion."""
        now = time.time()
        self.metrics.reduce_phase_end = now
        self.metrics.end_time = now
        self.metrics.num_ranked_files = num_ranked_files
        self._sample_memory()

    def get_metrics(self) -> RunMetrics:
        return self.metrics
