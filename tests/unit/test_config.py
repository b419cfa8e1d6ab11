"""
Unit tests for JobConfig
"""

import pytest

from linecounter.common.config import DEFAULT_SPLIT_SIZE, JobConfig, parse_bool
from linecounter.common.errors import InvocationError


@pytest.fixture
def clean_env(monkeypatch):
    for name in ('LINECOUNT_MAP_WORKERS', 'LINECOUNT_NUM_REDUCE_TASKS', 'LINECOUNT_SPLIT_SIZE',
                 'LINECOUNT_USE_COMBINER', 'LINECOUNT_SPILL_THRESHOLD',
                 'LINECOUNT_INCLUDE_EMPTY_FILES', 'LINECOUNT_JOB_MODULE', 'LINECOUNT_LOG_LEVEL'):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestJobConfigFromEnv:

    def test_defaults(self, clean_env):
        config = JobConfig.from_env()

        assert config.num_reduce_tasks == 1
        assert config.use_combiner is True
        assert config.include_empty_files is False
        assert config.split_size_bytes == DEFAULT_SPLIT_SIZE
        assert config.job_module == 'linecounter.jobs.line_count'
        assert config.log_level == 'INFO'

    def test_reads_environment(self, clean_env):
        clean_env.setenv('LINECOUNT_MAP_WORKERS', '8')
        clean_env.setenv('LINECOUNT_USE_COMBINER', 'false')
        clean_env.setenv('LINECOUNT_INCLUDE_EMPTY_FILES', 'yes')
        clean_env.setenv('LINECOUNT_LOG_LEVEL', 'debug')

        config = JobConfig.from_env()

        assert config.map_workers == 8
        assert config.use_combiner is False
        assert config.include_empty_files is True
        assert config.log_level == 'DEBUG'

    def test_bad_integer_raises(self, clean_env):
        clean_env.setenv('LINECOUNT_SPLIT_SIZE', 'big')

        with pytest.raises(InvocationError, match="LINECOUNT_SPLIT_SIZE"):
            JobConfig.from_env()

    def test_bad_boolean_raises(self, clean_env):
        clean_env.setenv('LINECOUNT_USE_COMBINER', 'maybe')

        with pytest.raises(InvocationError):
            JobConfig.from_env()


class TestJobConfigOverrides:

    def test_none_overrides_are_ignored(self):
        config = JobConfig().with_overrides(map_workers=None, use_combiner=False)

        assert config.map_workers == JobConfig().map_workers
        assert config.use_combiner is False

    @pytest.mark.parametrize('field', ['map_workers', 'num_reduce_tasks',
                                       'split_size_bytes', 'combiner_spill_threshold'])
    def test_validate_rejects_non_positive(self, field):
        with pytest.raises(InvocationError, match=field):
            JobConfig().with_overrides(**{field: 0}).validate()

    def test_validate_returns_config(self):
        config = JobConfig()

        assert config.validate() is config


@pytest.mark.parametrize('raw,expected', [('1', True), ('TRUE', True), ('on', True),
                                          ('0', False), ('False', False), (' no ', False)])
def test_parse_bool(raw, expected):
    assert parse_bool(raw) is expected
