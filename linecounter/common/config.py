"""
Job configuration
Defaults come from the environment; the CLI overrides individual fields
"""

import os
from dataclasses import dataclass, replace

from linecounter.common.errors import InvocationError

DEFAULT_JOB_MODULE = 'linecounter.jobs.line_count'

# Hadoop's default block size; one split per block
DEFAULT_SPLIT_SIZE = 64 * 1024 * 1024

_TRUE_VALUES = ('1', 'true', 'yes', 'on')
_FALSE_VALUES = ('0', 'false', 'no', 'off')


def parse_bool(value: str) -> bool:
    """Parse an environment/CLI boolean ('true', 'false', '1', '0', ...)"""
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise InvocationError(f"Not a boolean value: {value!r}")


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == '':
        return default
    try:
        return int(raw)
    except ValueError:
        raise InvocationError(f"{name} must be an integer, got {raw!r}")


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw == '':
        return default
    return parse_bool(raw)


@dataclass(frozen=True)
class JobConfig:
    """Settings for a single line counting run"""
    map_workers: int = 4
    num_reduce_tasks: int = 1
    split_size_bytes: int = DEFAULT_SPLIT_SIZE
    use_combiner: bool = True
    combiner_spill_threshold: int = 10000
    include_empty_files: bool = False
    job_module: str = DEFAULT_JOB_MODULE
    log_level: str = 'INFO'

    @classmethod
    def from_env(cls) -> 'JobConfig':
        """
        Build a configuration from LINECOUNT_* environment variables

        Raises:
            InvocationError: If a variable holds a value of the wrong type
        """
        return cls(
            map_workers=_env_int('LINECOUNT_MAP_WORKERS', cls.map_workers),
            num_reduce_tasks=_env_int('LINECOUNT_NUM_REDUCE_TASKS', cls.num_reduce_tasks),
            split_size_bytes=_env_int('LINECOUNT_SPLIT_SIZE', cls.split_size_bytes),
            use_combiner=_env_bool('LINECOUNT_USE_COMBINER', cls.use_combiner),
            combiner_spill_threshold=_env_int('LINECOUNT_SPILL_THRESHOLD',
                                              cls.combiner_spill_threshold),
            include_empty_files=_env_bool('LINECOUNT_INCLUDE_EMPTY_FILES',
                                          cls.include_empty_files),
            job_module=os.getenv('LINECOUNT_JOB_MODULE') or cls.job_module,
            log_level=(os.getenv('LINECOUNT_LOG_LEVEL') or cls.log_level).upper(),
        )

    def with_overrides(self, **overrides) -> 'JobConfig':
        """Return a copy with every non-None override applied"""
        changes = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **changes)

    def validate(self) -> 'JobConfig':
        """
        Check value ranges

        Raises:
            InvocationError: If a numeric setting is out of range
        """
        positive = {
            'map_workers': self.map_workers,
            'num_reduce_tasks': self.num_reduce_tasks,
            'split_size_bytes': self.split_size_bytes,
            'combiner_spill_threshold': self.combiner_spill_threshold,
        }
        for name, value in positive.items():
            if value < 1:
                raise InvocationError(f"{name} must be at least 1, got {value}")
        return self
