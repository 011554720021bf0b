"""
Run configuration
Defaults come from the environment and are overridden by CLI flags
"""

import os
from dataclasses import dataclass

from wordrank.errors import ConfigError

DEFAULT_WORKERS = int(os.getenv('WORDRANK_WORKERS', '4'))
DEFAULT_MAP_STRATEGY = os.getenv('WORDRANK_MAP_STRATEGY', 'chained')
DEFAULT_LOG_LEVEL = os.getenv('WORDRANK_LOG_LEVEL', 'INFO')

MAP_STRATEGIES = ('chained', 'scan')

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


@dataclass
class RankConfig:
    """Parameters of a single ranking run"""
    fragment_size: int
    workers: int = DEFAULT_WORKERS
    map_strategy: str = DEFAULT_MAP_STRATEGY
    log_level: str = DEFAULT_LOG_LEVEL

    def validate(self) -> 'RankConfig':
        """Raise ConfigError if any parameter is out of range"""
        if not isinstance(self.fragment_size, int) or self.fragment_size <= 0:
            raise ConfigError(f"Fragment size must be a positive integer, got {self.fragment_size!r}")
        if not isinstance(self.workers, int) or self.workers <= 0:
            raise ConfigError(f"Worker count must be a positive integer, got {self.workers!r}")
        if self.map_strategy not in MAP_STRATEGIES:
            raise ConfigError(
                f"Unknown map strategy {self.map_strategy!r}, expected one of {', '.join(MAP_STRATEGIES)}"
            )
        return self
