"""
Error types raised by the ranking pipeline
"""

from typing import Optional


class WordRankError(Exception):
    """Base class for all pipeline failures"""

    def __init__(self, message: str, file_name: Optional[str] = None,
                 fragment_id: Optional[int] = None):
        super().__init__(message)
        self.file_name = file_name
        self.fragment_id = fragment_id

    def __str__(self):
        message = super().__str__()
        context = []
        if self.file_name is not None:
            context.append(f"file={self.file_name}")
        if self.fragment_id is not None:
            context.append(f"fragment={self.fragment_id}")
        if context:
            return f"{message} ({', '.join(context)})"
        return message


class InputFileError(WordRankError, OSError):
    """Input file is missing or unreadable"""


class ConfigError(WordRankError, ValueError):
    """Invalid run configuration, reported before any work starts"""


class EmptyFileError(WordRankError):
    """A file produced no words, so its rank is undefined"""


class InternalInvariantError(WordRankError):
    """A logic defect, e.g. a missing max-length bucket"""
