"""
Map Task Executor
Corrects a fragment's byte range so no word is split across fragments,
then tokenizes the range into a word-length histogram
"""

import re
import time
import logging
from collections import defaultdict
from typing import BinaryIO

from wordrank.errors import InputFileError
from wordrank.job_manager import Fragment, Histogram, MapBatch

logger = logging.getLogger(__name__)

SEPARATORS = ";:/?~\\.,><`[]{}()!@#$%^&-_+'=*\"| \t\r\n"
SEPARATOR_BYTES = frozenset(SEPARATORS.encode('ascii'))
SPLIT_PATTERN = re.compile('[' + re.escape(SEPARATORS) + ']+')

# Bytes are decoded one-to-one so offsets and characters line up
TEXT_ENCODING = 'latin-1'
PEEK_CHUNK = 64


def is_separator(byte: int) -> bool:
    return byte in SEPARATOR_BYTES


def tokenize(text: str) -> Histogram:
    """
    Split text on the separator set and group the words by length

    Args:
        text: Decoded fragment contents

    Returns:
        Dictionary mapping word length to the words of that length, in order
        of appearance, duplicates kept
    """
    histogram = defaultdict(list)
    for word in SPLIT_PATTERN.split(text):
        if word:
            histogram[len(word)].append(word)
    return dict(histogram)


def measure_growth(handle: BinaryIO, end: int, file_size: int) -> int:
    """
    Count the bytes a range ending at ``end`` must absorb to finish its last word

    The range keeps growing while the byte past its end continues the word,
    and stops at a separator or at the physical end of the file.
    """
    if end <= 0 or end >= file_size:
        return 0

    handle.seek(end - 1)
    last = handle.read(1)
    if not last or is_separator(last[0]):
        return 0

    growth = 0
    while end + growth < file_size:
        chunk = handle.read(PEEK_CHUNK)
        if not chunk:
            break
        for byte in chunk:
            if is_separator(byte):
                return growth
            growth += 1
    return growth


class MapExecutor:
    """Executes the map work for a single fragment"""

    def __init__(self, batch: MapBatch, index: int):
        """
        Initialize the map executor

        Args:
            batch: Map phase context holding all fragments and file sizes
            index: Position of this executor's fragment in the batch
        """
        self.batch = batch
        self.index = index
        self.fragment: Fragment = batch.fragments[index]
        self.file_size = batch.file_size(self.fragment)

    def execute(self) -> Fragment:
        """
        Correct the fragment boundaries against the already-finished
        predecessor, then tokenize it

        Returns:
            The committed fragment
        """
        start_time = time.time()
        self.correct_boundaries()
        self.tokenize()
        execution_time = int((time.time() - start_time) * 1000)
        logger.debug(f"Map task {self.fragment.fragment_id}: Completed in {execution_time}ms")
        return self.fragment

    def correct_boundaries(self):
        """Skip bytes the predecessor absorbed and grow over a trailing partial word"""
        fragment = self.fragment
        original_end = fragment.end
        previous = self.batch.predecessor(self.index)

        if previous is not None and previous.was_extended:
            fragment.offset += previous.extension_bytes
            fragment.length -= previous.extension_bytes

            # The predecessor swallowed this whole range; pass the overshoot on
            if fragment.length < 0:
                fragment.offset = previous.end
                fragment.length = 0
                fragment.was_extended = True
                fragment.extension_bytes = previous.end - original_end
                logger.debug(
                    f"Map task {fragment.fragment_id}: Absorbed by predecessor, "
                    f"forwarding {fragment.extension_bytes} bytes"
                )
                return

        if fragment.is_last_in_file or fragment.length == 0:
            return

        growth = self._with_file(lambda handle: measure_growth(handle, original_end, self.file_size))
        if growth:
            fragment.was_extended = True
            fragment.extension_bytes += growth
            fragment.length += growth
            logger.debug(f"Map task {fragment.fragment_id}: Extended by {growth} bytes")

    def measure_growth(self) -> int:
        """Growth needed at the fragment's uncorrected end, from file content alone"""
        if self.fragment.is_last_in_file:
            return 0
        return self._with_file(lambda handle: measure_growth(handle, self.fragment.end, self.file_size))

    def tokenize(self):
        """Read the corrected range and commit its histogram"""
        fragment = self.fragment
        if fragment.length <= 0:
            fragment.set_histogram({})
            return

        data = self._with_file(self._read_range)
        histogram = tokenize(data.decode(TEXT_ENCODING))
        fragment.set_histogram(histogram)
        logger.debug(
            f"Map task {fragment.fragment_id}: Tokenized {sum(len(v) for v in histogram.values())} words "
            f"from [{fragment.offset}, {fragment.end})"
        )

    def _read_range(self, handle: BinaryIO) -> bytes:
        handle.seek(self.fragment.offset)
        data = handle.read(self.fragment.length)
        if len(data) != self.fragment.length:
            raise InputFileError(
                f"Short read: expected {self.fragment.length} bytes at offset {self.fragment.offset}, got {len(data)}",
                file_name=self.fragment.file_path, fragment_id=self.fragment.fragment_id
            )
        return data

    def _with_file(self, action):
        try:
            with open(self.fragment.file_path, 'rb') as handle:
                return action(handle)
        except InputFileError:
            raise
        except OSError as e:
            raise InputFileError(
                f"Cannot read input file: {e}",
                file_name=self.fragment.file_path, fragment_id=self.fragment.fragment_id
            ) from e
