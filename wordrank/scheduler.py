"""
Schedulers for the map (tokenize) and reduce (score) phases.
"""

import logging
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from typing import Callable, List, Sequence

from wordrank.errors import InternalInvariantError
from wordrank.job_manager import FileJob, MapBatch
from wordrank.map_executor import MapExecutor
from wordrank.reduce_executor import ReduceExecutor
from wordrank.results import RankEntry, ResultSet

logger = logging.getLogger(__name__)


def run_all(pool: ThreadPoolExecutor, calls: Sequence[Callable], phase: str) -> List:
    """
    Run every call on the pool and return the results in submission order

    The first failure cancels whatever has not started yet and is re-raised.
    """
    futures = [pool.submit(call) for call in calls]
    done, pending = wait(futures, return_when=FIRST_EXCEPTION)

    for future in pending:
        future.cancel()

    for index, future in enumerate(futures):
        if future in done and future.exception() is not None:
            error = future.exception()
            logger.error(f"{phase} task {index} failed: {error}")
            pool.shutdown(wait=True, cancel_futures=True)
            raise error

    return [future.result() for future in futures]


class MapScheduler:
    """
    Tokenizes every fragment of a batch

    ``chained`` corrects fragments one after another in id order, each one
    reading its predecessor's committed extension. ``scan`` measures every
    fragment's trailing-word growth in parallel, resolves the offsets in one
    short serial pass and then tokenizes in parallel. Both commit identical
    fragments.
    """

    def __init__(self, batch: MapBatch, workers: int, strategy: str = 'chained'):
        self.batch = batch
        self.workers = workers
        self.strategy = strategy

    def run(self) -> MapBatch:
        self._check_order()
        logger.info(
            f"Map phase: {len(self.batch.fragments)} fragments, strategy={self.strategy}, workers={self.workers}"
        )
        if self.strategy == 'chained':
            self._run_chained()
        elif self.strategy == 'scan':
            self._run_scan()
        else:
            raise InternalInvariantError(f"Unknown map strategy {self.strategy!r}")
        return self.batch

    def _check_order(self):
        for previous, current in zip(self.batch.fragments, self.batch.fragments[1:]):
            if current.fragment_id <= previous.fragment_id:
                raise InternalInvariantError(
                    "Fragments must be in ascending id order",
                    file_name=current.file_path, fragment_id=current.fragment_id
                )

    def _run_chained(self):
        # Fragment i reads fragment i-1's committed extension, so nothing overlaps
        for index, fragment in enumerate(self.batch.fragments):
            try:
                MapExecutor(self.batch, index).execute()
            except Exception as e:
                logger.error(f"Map task {fragment.fragment_id} failed - File: {fragment.file_path}. Error: {e}")
                raise

    def _run_scan(self):
        executors = [MapExecutor(self.batch, index) for index in range(len(self.batch.fragments))]

        with ThreadPoolExecutor(max_workers=self.workers) as pool:
            growths = run_all(pool, [executor.measure_growth for executor in executors], "Measure")

            for index, growth in enumerate(growths):
                self._commit_growth(index, growth)

            run_all(pool, [executor.tokenize for executor in executors], "Map")

    def _commit_growth(self, index: int, growth: int):
        """Start where the predecessor ended and end past the trailing partial word"""
        fragment = self.batch.fragments[index]
        end = fragment.end + growth
        previous = self.batch.predecessor(index)
        if previous is not None:
            fragment.offset = previous.end
        fragment.length = end - fragment.offset
        if growth:
            fragment.was_extended = True
            fragment.extension_bytes = growth

        if fragment.length < 0:
            raise InternalInvariantError(
                "Corrected fragment has negative length",
                file_name=fragment.file_path, fragment_id=fragment.fragment_id
            )


class ReduceScheduler:
    """
    Scores every file in parallel and fills the result set

    Entries are inserted in file input order once scoring is done, so the
    winner of a rank collision is always the earlier file.
    """

    def __init__(self, file_jobs: List[FileJob], result_set: ResultSet, workers: int):
        self.file_jobs = file_jobs
        self.result_set = result_set
        self.workers = workers

    def run(self) -> ResultSet:
        logger.info(f"Reduce phase: {len(self.file_jobs)} files, workers={self.workers}")
        executors = [ReduceExecutor(file_job) for file_job in self.file_jobs]

        with ThreadPoolExecutor(max_workers=self.workers) as pool:
            entries: List[RankEntry] = run_all(pool, [executor.execute for executor in executors], "Reduce")

        for entry in entries:
            self.result_set.insert_if_absent(entry)

        return self.result_set.freeze()
