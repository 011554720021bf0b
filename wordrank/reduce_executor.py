"""
Reduce Task Executor
Merges the histograms of one file's fragments and computes the file rank
"""

import math
import time
import logging
from collections import Counter, defaultdict
from functools import lru_cache

from wordrank.errors import EmptyFileError, InternalInvariantError
from wordrank.job_manager import FileJob, Histogram
from wordrank.results import RankEntry

logger = logging.getLogger(__name__)


@lru_cache(maxsize=None)
def fib(position: int) -> int:
    """Fibonacci number with fib(0) = 0 and fib(1) = 1"""
    if position < 0:
        raise ValueError(f"Fibonacci position must be non-negative, got {position}")
    previous, current = 0, 1
    for _ in range(position):
        previous, current = current, previous + current
    return previous


class ReduceExecutor:
    """Executes the reduce work for a single file"""

    def __init__(self, file_job: FileJob):
        self.file_job = file_job
        self.combined: Histogram = {}
        self.total_word_count = 0
        self.max_word_length = 0

    def execute(self) -> RankEntry:
        """
        Combine fragment histograms and score the file

        Returns:
            RankEntry for the file

        Raises:
            EmptyFileError: If the file has no words
        """
        start_time = time.time()
        self.combine()
        rank = self.compute_rank()
        entry = RankEntry(
            file_name=self.file_job.file_name,
            rank=rank,
            max_word_length=self.max_word_length,
            max_length_word_count=self.max_length_word_count()
        )
        execution_time = int((time.time() - start_time) * 1000)
        logger.debug(f"Reduce task {self.file_job.file_name}: rank {rank:.2f} in {execution_time}ms")
        return entry

    def combine(self) -> Histogram:
        """Concatenate the fragment histograms in fragment order"""
        combined = defaultdict(list)
        for fragment in self.file_job.fragments:
            if fragment.histogram is None:
                raise InternalInvariantError(
                    "Fragment was never tokenized",
                    file_name=self.file_job.file_path, fragment_id=fragment.fragment_id
                )
            for length, words in fragment.histogram.items():
                combined[length].extend(words)

        self.combined = dict(combined)
        self.total_word_count = sum(len(words) for words in self.combined.values())
        self.max_word_length = max(self.combined, default=0)
        return self.combined

    def max_length_word_count(self) -> int:
        """Number of words, duplicates included, having the maximum length"""
        if self.max_word_length not in self.combined:
            raise InternalInvariantError(
                f"No bucket for max word length {self.max_word_length}",
                file_name=self.file_job.file_path
            )
        return len(self.combined[self.max_word_length])

    def compute_rank(self) -> float:
        """
        Sum fib(len + 1) * occurrences over the distinct words, divided by
        the total word count
        """
        if self.total_word_count == 0:
            raise EmptyFileError("File contains no words", file_name=self.file_job.file_path)

        weighted = 0
        for words in self.combined.values():
            for word, occurrences in Counter(words).items():
                weighted += fib(len(word) + 1) * occurrences

        try:
            return weighted / self.total_word_count
        except OverflowError:
            # One word of ~1475+ bytes already puts the weight past the float range
            logger.warning(f"Rank of {self.file_job.file_name} exceeds the float range, using inf")
            return math.inf
