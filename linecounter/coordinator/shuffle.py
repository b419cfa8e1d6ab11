"""
Shuffle: read intermediate map output back and group it by key
"""

import json
import logging
import os
from collections import defaultdict
from typing import Callable, Dict, Iterable, Iterator, List, Tuple

from linecounter.common.errors import ShuffleError
from linecounter.common.records import Emission

logger = logging.getLogger(__name__)

GroupedValues = List[Tuple[str, List[int]]]
GroupByKey = Callable[[Iterable[Emission]], GroupedValues]


def read_intermediate(intermediate_files: List[str]) -> Iterator[Emission]:
    """
    Yield every emission stored in the given intermediate files

    Raises:
        ShuffleError: If a file is missing or holds a malformed record
    """
    for filepath in intermediate_files:
        if not os.path.exists(filepath):
            raise ShuffleError(f"Intermediate file not found: {filepath}")

        with open(filepath, 'r', encoding='utf-8') as f:
            for line_num, line in enumerate(f, 1):
                line = line.strip()
                if not line:
                    continue

                try:
                    record = json.loads(line)
                    yield Emission(key=str(record['key']), value=int(record['value']))
                except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
                    raise ShuffleError(f"Malformed record at {filepath}:{line_num}: {e}")


def group_by_key(emissions: Iterable[Emission]) -> GroupedValues:
    """
    Group emissions by key

    Returns:
        (key, values) pairs in ascending key order; each key appears once
        with all of its values
    """
    key_groups: Dict[str, List[int]] = defaultdict(list)
    for emission in emissions:
        key_groups[emission.key].append(emission.value)

    return [(key, key_groups[key]) for key in sorted(key_groups)]
