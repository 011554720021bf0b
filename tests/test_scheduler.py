"""
Tests for the map and reduce schedulers
"""

import os
from collections import defaultdict
from unittest.mock import patch

import pytest

from wordrank.errors import EmptyFileError, InternalInvariantError
from wordrank.job_manager import MapBatch, build_file_jobs, build_fragments
from wordrank.map_executor import tokenize
from wordrank.results import RankEntry, ResultSet
from wordrank.scheduler import MapScheduler, ReduceScheduler

BOUNDARY_TEXTS = [
    "cat cat dog",
    "abcdef gh",
    "  leading and trailing separators  ",
    "extraordinarily long words appear sporadically, interleaved with a b c",
    "punctuation;heavy:text/with?many~separators.here,and>there<`quoted`[x]{y}(z)!",
    "no_separator_at_the_end_word",
    "x",
    "tabs\tand\r\nnewlines\nmixed in",
    "a^b%c*d&e-f+g'h=i\"j|k",
]


def combine(fragments):
    combined = defaultdict(list)
    for fragment in fragments:
        for length, words in fragment.histogram.items():
            combined[length].extend(words)
    return dict(combined)


def snapshot(fragments):
    return [
        (f.fragment_id, f.offset, f.length, f.was_extended, f.extension_bytes, f.histogram)
        for f in fragments
    ]


def run_map(paths, fragment_size, strategy, workers=4):
    fragments = build_fragments(paths, fragment_size)
    batch = MapBatch(fragments=fragments, file_sizes={p: os.path.getsize(p) for p in paths})
    MapScheduler(batch, workers, strategy).run()
    return fragments


class TestBoundaryCorrectness:
    """Fragment-by-fragment tokenization must match whole-file tokenization"""

    @pytest.mark.parametrize("strategy", ["chained", "scan"])
    @pytest.mark.parametrize("text", BOUNDARY_TEXTS)
    def test_histogram_matches_whole_file_for_every_fragment_size(self, make_file, text, strategy):
        """Test every fragment size from 1 byte to past the file length"""
        path = make_file('input.txt', text)
        expected = tokenize(text)

        for fragment_size in range(1, len(text) + 2):
            fragments = run_map([path], fragment_size, strategy)
            assert combine(fragments) == expected, f"fragment_size={fragment_size}"

    @pytest.mark.parametrize("strategy", ["chained", "scan"])
    def test_fragments_are_contiguous_and_cover_the_file(self, sample_input_file, strategy):
        """Test no gaps and no overlaps after correction"""
        size = os.path.getsize(sample_input_file)

        for fragment_size in (1, 2, 3, 7, 16, 50, size):
            fragments = run_map([sample_input_file], fragment_size, strategy)
            assert fragments[0].offset == 0
            assert fragments[-1].end == size
            for previous, current in zip(fragments, fragments[1:]):
                assert current.offset == previous.end
                assert current.length >= 0

    def test_sample_file_matches_whole_file(self, sample_input_file, sample_text):
        for fragment_size in (1, 5, 13, 64):
            fragments = run_map([sample_input_file], fragment_size, "chained")
            assert combine(fragments) == tokenize(sample_text)


class TestMapStrategies:
    """The scan strategy must commit exactly what the chained one does"""

    @pytest.mark.parametrize("text", BOUNDARY_TEXTS)
    def test_scan_commits_same_fragments_as_chained(self, make_file, text):
        path = make_file('input.txt', text)
        for fragment_size in range(1, len(text) + 2):
            chained = run_map([path], fragment_size, "chained")
            scan = run_map([path], fragment_size, "scan", workers=3)
            assert snapshot(scan) == snapshot(chained), f"fragment_size={fragment_size}"

    def test_multiple_files_do_not_leak_corrections(self, make_file):
        """Test that a file's first fragment ignores the previous file's extension"""
        a = make_file('a.txt', 'abcdefgh')
        b = make_file('b.txt', 'ijk lmn')

        for strategy in ("chained", "scan"):
            fragments = run_map([a, b], 3, strategy)
            by_file = defaultdict(list)
            for fragment in fragments:
                by_file[fragment.file_path].append(fragment)
            assert combine(by_file[a]) == {8: ["abcdefgh"]}
            assert combine(by_file[b]) == {3: ["ijk", "lmn"]}
            assert by_file[b][0].offset == 0

    def test_out_of_order_batch_is_rejected(self, make_file):
        path = make_file('a.txt', 'cat dog')
        fragments = build_fragments([path], 2)
        fragments.reverse()
        batch = MapBatch(fragments=fragments, file_sizes={path: 7})

        with pytest.raises(InternalInvariantError):
            MapScheduler(batch, 1).run()

    def test_unknown_strategy_is_rejected(self, make_file):
        path = make_file('a.txt', 'cat dog')
        batch = MapBatch(fragments=build_fragments([path], 2), file_sizes={path: 7})

        with pytest.raises(InternalInvariantError):
            MapScheduler(batch, 1, "bogus").run()

    def test_scan_failure_propagates(self, make_file):
        """Test that a failing task aborts the phase with the original error"""
        path = make_file('a.txt', 'cat dog bird')
        batch = MapBatch(fragments=build_fragments([path], 4), file_sizes={path: 12})

        with patch('wordrank.scheduler.MapExecutor.tokenize', side_effect=RuntimeError("boom")):
            with pytest.raises(RuntimeError, match="boom"):
                MapScheduler(batch, 2, "scan").run()


class TestReduceScheduler:
    """Tests for parallel scoring and result insertion"""

    def _jobs(self, paths, fragment_size=4):
        fragments = run_map(paths, fragment_size, "chained")
        return build_file_jobs(paths, fragments)

    def test_scores_every_file(self, make_file):
        a = make_file('a.txt', 'cat cat dog')
        b = make_file('b.txt', 'hello world hi hi')

        result_set = ReduceScheduler(self._jobs([a, b]), ResultSet(), 4).run()

        assert result_set.lines() == ['b.txt,5.00,5,2', 'a.txt,3.00,3,3']

    def test_rank_collision_keeps_first_file(self, make_file):
        """Test first-writer-wins in file input order"""
        a = make_file('a.txt', 'cat cat dog')
        b = make_file('b.txt', 'dog dog cat')

        forward = ReduceScheduler(self._jobs([a, b]), ResultSet(), 4).run()
        backward = ReduceScheduler(self._jobs([b, a]), ResultSet(), 4).run()

        assert forward.lines() == ['a.txt,3.00,3,3']
        assert backward.lines() == ['b.txt,3.00,3,3']

    def test_collision_winner_is_stable_under_parallel_scoring(self, make_file):
        paths = [make_file(f'f{i}.txt', 'cat cat dog') for i in range(12)]

        for _ in range(5):
            result_set = ReduceScheduler(self._jobs(paths), ResultSet(), 8).run()
            assert result_set.lines() == ['f0.txt,3.00,3,3']

    def test_empty_file_aborts_reduce_phase(self, make_file):
        a = make_file('a.txt', 'cat cat dog')
        empty = make_file('empty.txt', ' , ')
        result_set = ResultSet()

        with pytest.raises(EmptyFileError) as exc_info:
            ReduceScheduler(self._jobs([a, empty]), result_set, 2).run()

        assert exc_info.value.file_name == empty
        assert len(result_set) == 0

    def test_result_set_is_frozen_after_reduce(self, make_file):
        a = make_file('a.txt', 'cat')
        result_set = ReduceScheduler(self._jobs([a]), ResultSet(), 1).run()

        with pytest.raises(RuntimeError):
            result_set.insert_if_absent(RankEntry('x.txt', 1.0, 1, 1))
