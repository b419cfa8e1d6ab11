"""
Input listing, split planning and line record reading
"""

import glob
import logging
import os
from typing import Iterator, List

from linecounter.common.errors import InputPathError
from linecounter.common.records import InputRecord, InputSplit

logger = logging.getLogger(__name__)

_GLOB_CHARS = ('*', '?', '[')


def _is_hidden(name: str) -> bool:
    return name.startswith('_') or name.startswith('.')


def _list_directory(directory: str) -> List[str]:
    files = []
    for name in sorted(os.listdir(directory)):
        if _is_hidden(name):
            continue
        path = os.path.join(directory, name)
        if os.path.isdir(path):
            raise InputPathError(f"Not a file: {path}")
        files.append(path)
    return files


def list_input_files(input_path: str) -> List[str]:
    """
    Resolve the input location into the list of files to count

    input_path may be a single file, a directory (listed non-recursively,
    skipping names that start with '_' or '.') or a glob pattern whose
    matches are resolved the same way.

    Raises:
        InputPathError: If the path doesn't exist, a glob matches nothing,
            or a directory contains a subdirectory
    """
    if any(c in input_path for c in _GLOB_CHARS):
        matches = sorted(glob.glob(input_path))
        if not matches:
            raise InputPathError(f"Input pattern {input_path} matches 0 files")
    elif os.path.exists(input_path):
        matches = [input_path]
    else:
        raise InputPathError(f"Input path does not exist: {input_path}")

    files = []
    for match in matches:
        if os.path.isdir(match):
            files.extend(_list_directory(match))
        else:
            files.append(match)

    logger.info(f"Total input files to process: {len(files)}")
    return files


def plan_splits(files: List[str], split_size: int) -> List[InputSplit]:
    """
    Cut every file into byte ranges of at most split_size bytes

    An empty file still gets one zero-length split so that it is visible to
    the map phase.
    """
    splits = []
    for path in files:
        file_size = os.path.getsize(path)
        if file_size == 0:
            splits.append(InputSplit(path=path, start=0, length=0))
            continue
        for start in range(0, file_size, split_size):
            splits.append(InputSplit(path=path, start=start,
                                     length=min(split_size, file_size - start)))
    return splits


def _read_line(f) -> bytes:
    """
    Read one line including its terminator from a buffered binary file

    '\\n', '\\r' and '\\r\\n' each end a line; b'' means end of file.
    """
    line = bytearray()
    while True:
        chunk = f.peek(8192)
        if not chunk:
            return bytes(line)
        ends = [i for i in (chunk.find(b'\n'), chunk.find(b'\r')) if i >= 0]
        if not ends:
            line += f.read(len(chunk))
            continue
        end = min(ends)
        line += f.read(end + 1)
        if chunk[end:end + 1] == b'\r' and f.peek(1)[:1] == b'\n':
            line += f.read(1)
        return bytes(line)


def _strip_terminator(line: bytes) -> bytes:
    if line.endswith(b'\r\n'):
        return line[:-2]
    if line.endswith((b'\n', b'\r')):
        return line[:-1]
    return line


def read_records(split: InputSplit) -> Iterator[InputRecord]:
    """
    Yield one InputRecord per line that starts inside the split

    A split that doesn't begin at offset 0 skips the partial line it starts
    in; the previous split reads that line to its end. Lines end at '\\n',
    '\\r' or '\\r\\n' and the terminator is stripped from content.
    """
    file_name = split.file_name

    with open(split.path, 'rb') as f:
        if split.start > 0:
            # Land on the first line that starts at or after split.start;
            # a '\r\n' pair straddling the boundary is consumed whole
            f.seek(split.start - 1)
            _read_line(f)
        position = f.tell()

        while position < split.end:
            line = _read_line(f)
            if not line:
                break
            content = _strip_terminator(line).decode('utf-8', errors='replace')
            yield InputRecord(source_file_id=file_name, line_offset=position, content=content)
            position += len(line)
