"""
Rank entries, the shared result set and the output writer
"""

import logging
import os
import tempfile
import threading
from dataclasses import dataclass
from typing import Dict, List

from wordrank.errors import InputFileError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RankEntry:
    """Score of a single file"""
    file_name: str
    rank: float
    max_word_length: int
    max_length_word_count: int

    def format_line(self) -> str:
        return f"{self.file_name},{self.rank:.2f},{self.max_word_length},{self.max_length_word_count}"


class ResultSet:
    """
    Rank value -> output line, with insert-if-absent semantics

    When two files produce the same rank only the first inserted entry is kept.
    """

    def __init__(self):
        self._entries: Dict[float, RankEntry] = {}
        self._lock = threading.Lock()
        self._frozen = False

    def insert_if_absent(self, entry: RankEntry) -> bool:
        """Insert ``entry`` unless its rank is already present; returns whether it was kept"""
        with self._lock:
            if self._frozen:
                raise RuntimeError("Result set is frozen")
            if entry.rank in self._entries:
                logger.info(
                    f"Dropping {entry.file_name}: rank {entry.rank} already held by "
                    f"{self._entries[entry.rank].file_name}"
                )
                return False
            self._entries[entry.rank] = entry
            return True

    def freeze(self) -> 'ResultSet':
        with self._lock:
            self._frozen = True
        return self

    def sorted_entries(self) -> List[RankEntry]:
        """Entries in strictly descending rank order"""
        with self._lock:
            return [self._entries[rank] for rank in sorted(self._entries, reverse=True)]

    def lines(self) -> List[str]:
        return [entry.format_line() for entry in self.sorted_entries()]

    def __len__(self):
        return len(self._entries)

    def __contains__(self, rank):
        return rank in self._entries

    def __iter__(self):
        return iter(self.sorted_entries())


def write_results(result_set: ResultSet, output_path: str):
    """
    Write one line per entry in descending rank order

    Args:
        result_set: Completed result set
        output_path: Destination file, overwritten if present
    """
    lines = result_set.lines()
    directory = os.path.dirname(os.path.abspath(output_path))
    temp_path = None
    try:
        # Written beside the destination, so a failure never leaves it truncated
        fd, temp_path = tempfile.mkstemp(prefix=".wordrank-", suffix=".tmp", dir=directory)
        with os.fdopen(fd, 'w', encoding='utf-8') as f:
            for line in lines:
                f.write(line + '\n')
        os.replace(temp_path, output_path)
    except OSError as e:
        if temp_path is not None and os.path.exists(temp_path):
            os.remove(temp_path)
        raise InputFileError(f"Cannot write output: {e}", file_name=output_path) from e

    logger.info(f"Wrote {len(lines)} ranked files to {output_path}")
