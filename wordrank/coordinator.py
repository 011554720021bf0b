"""
Coordinator for the ranking pipeline.
Builds fragments and file jobs, runs the map and reduce phases in sequence
and hands back the sorted result set.
"""

import logging
from typing import Dict, List, Optional

from wordrank.config import RankConfig
from wordrank.errors import WordRankError
from wordrank.job_manager import (
    FileJob, Fragment, MapBatch, RunStatus,
    build_file_jobs, build_fragments, measure_files,
)
from wordrank.metrics import MetricsCollector
from wordrank.results import ResultSet
from wordrank.scheduler import MapScheduler, ReduceScheduler

logger = logging.getLogger(__name__)


class Coordinator:
    """Owns the fragments and file jobs of a single run."""

    def __init__(self, files: List[str], config: RankConfig,
                 metrics: Optional[MetricsCollector] = None):
        self.files = list(files)
        self.config = config.validate()
        self.metrics = metrics or MetricsCollector(config.map_strategy, config.workers)
        self.status = RunStatus.PENDING
        self.fragments: List[Fragment] = []
        self.file_jobs: List[FileJob] = []
        self.file_sizes: Dict[str, int] = {}
        self.error_message = ""

    def build_fragments(self) -> List[Fragment]:
        self.file_sizes = measure_files(self.files)
        self.fragments = build_fragments(self.files, self.config.fragment_size, self.file_sizes)
        return self.fragments

    def build_file_jobs(self) -> List[FileJob]:
        self.file_jobs = build_file_jobs(self.files, self.fragments)
        return self.file_jobs

    def run(self) -> ResultSet:
        """Tokenize every fragment, score every file and return the results."""
        try:
            self.build_fragments()
            self.build_file_jobs()
            batch = MapBatch(fragments=self.fragments, file_sizes=self.file_sizes)

            self.status = RunStatus.MAP_PHASE
            logger.info(f"Started MAP phase for {len(self.files)} files")
            self.metrics.start_map_phase(len(self.files), self.fragments, self.file_sizes)
            MapScheduler(batch, self.config.workers, self.config.map_strategy).run()
            self.metrics.end_map_phase(self.fragments)

            self.status = RunStatus.REDUCE_PHASE
            logger.info("Started REDUCE phase")
            self.metrics.start_reduce_phase()
            result_set = ReduceScheduler(self.file_jobs, ResultSet(), self.config.workers).run()
            self.metrics.end_run(len(result_set))
        except WordRankError as e:
            self.mark_failed(str(e))
            raise
        except Exception as e:
            self.mark_failed(f"Unexpected error: {e}")
            raise

        self.status = RunStatus.COMPLETED
        logger.info(f"Run completed: {len(result_set)} ranked files")
        return result_set

    def mark_failed(self, error_msg: str):
        self.status = RunStatus.FAILED
        self.error_message = error_msg
        logger.error(f"Run failed: {error_msg}")


def execute(files: List[str], fragment_size: int, worker_count: int,
            map_strategy: str = 'chained') -> ResultSet:
    """
    Rank ``files`` and return the result set in descending rank order

    Raises:
        ConfigError: If fragment_size or worker_count is not positive
        InputFileError: If a file is missing or unreadable
        EmptyFileError: If a file contains no words
    """
    config = RankConfig(fragment_size=fragment_size, workers=worker_count, map_strategy=map_strategy)
    return Coordinator(files, config).run()
