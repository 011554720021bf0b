"""
Word-length weighted ranking of text files with a map/reduce pipeline
"""

from wordrank.coordinator import Coordinator, execute
from wordrank.errors import (
    ConfigError, EmptyFileError, InputFileError, InternalInvariantError, WordRankError,
)
from wordrank.results import RankEntry, ResultSet, write_results

__all__ = [
    'Coordinator', 'execute',
    'ConfigError', 'EmptyFileError', 'InputFileError', 'InternalInvariantError', 'WordRankError',
    'RankEntry', 'ResultSet', 'write_results',
]
