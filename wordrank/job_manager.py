"""
Job Manager for the ranking pipeline
Handles fragment generation, grouping fragments per file, and run state
"""

import os
import logging
from enum import Enum
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from wordrank.errors import InputFileError, InternalInvariantError

logger = logging.getLogger(__name__)

Histogram = Dict[int, List[str]]


class RunStatus(Enum):
    """Status of a ranking run"""
    PENDING = "pending"
    MAP_PHASE = "map_phase"
    REDUCE_PHASE = "reduce_phase"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class Fragment:
    """A byte range of one file, the unit of tokenization"""
    fragment_id: int
    file_path: str
    offset: int
    length: int
    is_last_in_file: bool
    was_extended: bool = False
    extension_bytes: int = 0
    histogram: Optional[Histogram] = None

    @property
    def end(self) -> int:
        return self.offset + self.length

    def set_histogram(self, histogram: Histogram):
        """Commit the tokenization result; a fragment is tokenized exactly once"""
        if self.histogram is not None:
            raise InternalInvariantError(
                "Fragment histogram already committed",
                file_name=self.file_path, fragment_id=self.fragment_id
            )
        self.histogram = histogram


@dataclass
class FileJob:
    """A file plus its ordered fragments"""
    file_path: str
    fragments: List[Fragment] = field(default_factory=list)

    @property
    def file_name(self) -> str:
        return os.path.basename(self.file_path)


@dataclass
class MapBatch:
    """Everything the map phase needs, passed explicitly to the scheduler"""
    fragments: List[Fragment]
    file_sizes: Dict[str, int]

    def predecessor(self, index: int) -> Optional[Fragment]:
        """Fragment immediately before ``index`` in the same file, if any"""
        # The list is file-major, so only a file's first fragment starts at 0
        if self.fragments[index].offset == 0:
            return None
        return self.fragments[index - 1]

    def file_size(self, fragment: Fragment) -> int:
        return self.file_sizes[fragment.file_path]


def get_file_size(file_path: str) -> int:
    """Stat a file, converting OS failures into InputFileError"""
    if not os.path.isfile(file_path):
        raise InputFileError("Input file not found", file_name=file_path)
    try:
        return os.path.getsize(file_path)
    except OSError as e:
        raise InputFileError(f"Cannot stat input file: {e}", file_name=file_path) from e


def measure_files(files: List[str]) -> Dict[str, int]:
    """Stat every input file once; the sizes are reused by every later phase"""
    return {file_path: get_file_size(file_path) for file_path in files}


def build_fragments(files: List[str], fragment_size: int,
                    file_sizes: Optional[Dict[str, int]] = None) -> List[Fragment]:
    """
    Split every file into fixed-size fragments with ascending global ids

    Sizes already measured by ``measure_files`` are used as given, so the
    fragment layout agrees with the map batch built from the same dict.
    """
    if file_sizes is None:
        file_sizes = measure_files(files)
    fragments = []
    fragment_id = 0

    for file_path in files:
        file_size = file_sizes[file_path]
        offset = 0

        while True:
            length = min(fragment_size, file_size - offset)
            is_last = offset + length >= file_size
            fragments.append(Fragment(
                fragment_id=fragment_id,
                file_path=file_path,
                offset=offset,
                length=length,
                is_last_in_file=is_last
            ))
            fragment_id += 1
            offset += length
            if is_last:
                break

        logger.debug(f"Split {file_path} ({file_size} bytes) into fragments up to id {fragment_id - 1}")

    return fragments


def build_file_jobs(files: List[str], fragments: List[Fragment]) -> List[FileJob]:
    """Group fragments by their file, keeping file order and fragment order"""
    jobs = []
    remaining = iter(files)

    for fragment in fragments:
        # Every file's fragment run starts at offset 0
        if fragment.offset == 0:
            file_path = next(remaining, None)
            if file_path != fragment.file_path:
                raise InternalInvariantError(
                    "Fragment list is not in file input order",
                    file_name=fragment.file_path, fragment_id=fragment.fragment_id
                )
            jobs.append(FileJob(file_path=file_path))
        elif not jobs or jobs[-1].file_path != fragment.file_path:
            raise InternalInvariantError(
                "Fragment does not continue its file",
                file_name=fragment.file_path, fragment_id=fragment.fragment_id
            )
        jobs[-1].fragments.append(fragment)

    if len(jobs) != len(files):
        raise InternalInvariantError(f"Expected {len(files)} file jobs, built {len(jobs)}")
    return jobs
