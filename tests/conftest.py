"""
Pytest configuration and shared fixtures
"""

import pytest
import os
import tempfile
import shutil

from wordrank.job_manager import MapBatch, build_fragments


@pytest.fixture
def temp_dir():
    """Create temporary directory for test files"""
    dirpath = tempfile.mkdtemp()
    yield dirpath
    shutil.rmtree(dirpath)


@pytest.fixture
def sample_text():
    """Sample text for testing"""
    return """The quick brown fox jumps over the lazy dog.
The dog was really lazy; the fox (very quick) was brown!
Quick-brown foxes are amazing_animals, said @someone at 10:45.
Lazy dogs sleep all day~"""


@pytest.fixture
def make_file(temp_dir):
    """Factory that writes a text file into the temp directory"""
    def _make_file(name, content):
        filepath = os.path.join(temp_dir, name)
        mode = 'wb' if isinstance(content, bytes) else 'w'
        with open(filepath, mode) as f:
            f.write(content)
        return filepath
    return _make_file


@pytest.fixture
def sample_input_file(make_file, sample_text):
    """Create a sample input file for testing"""
    return make_file('input.txt', sample_text)


@pytest.fixture
def make_batch():
    """Factory that fragments a single file into a map batch"""
    def _make_batch(filepath, fragment_size):
        fragments = build_fragments([filepath], fragment_size)
        return MapBatch(fragments=fragments, file_sizes={filepath: os.path.getsize(filepath)})
    return _make_batch
