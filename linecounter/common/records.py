"""
Record types passed between the splitter, mapper, combiner and reducer
"""

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class InputSplit:
    """A contiguous byte range of one input file assigned to one map task"""
    path: str
    start: int
    length: int

    @property
    def end(self) -> int:
        return self.start + self.length

    @property
    def file_name(self) -> str:
        """Base name of the file; this is the key every record of the split carries"""
        return os.path.basename(self.path)


@dataclass(frozen=True)
class InputRecord:
    """One line of one input file"""
    source_file_id: str
    line_offset: int
    content: str


@dataclass(frozen=True)
class Emission:
    """Key/value pair produced by the mapper or the combiner"""
    key: str
    value: int

    def to_dict(self) -> dict:
        return {'key': self.key, 'value': self.value}


@dataclass(frozen=True)
class AggregateResult:
    """Total number of lines observed for one file"""
    key: str
    total_lines: int

    def format(self) -> str:
        """Render as a report line: the quoted filename, a tab, the count"""
        return f'"{self.key}"\t{self.total_lines}'
