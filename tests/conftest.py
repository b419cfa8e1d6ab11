"""
Pytest configuration and shared fixtures
"""

import pytest
import os
import tempfile
import shutil


@pytest.fixture
def temp_dir():
    """Create temporary directory for test files"""
    dirpath = tempfile.mkdtemp()
    yield dirpath
    shutil.rmtree(dirpath)


@pytest.fixture
def write_files(temp_dir):
    """Return a helper that writes {name: content} into a directory under temp_dir"""
    def _write(files, subdir='input'):
        directory = os.path.join(temp_dir, subdir)
        os.makedirs(directory, exist_ok=True)
        for name, content in files.items():
            with open(os.path.join(directory, name), 'w', encoding='utf-8', newline='') as f:
                f.write(content)
        return directory
    return _write


@pytest.fixture
def sample_text():
    """Sample text for testing: five lines with a trailing newline"""
    return """The quick brown fox jumps over the lazy dog.
The dog was really lazy.
The fox was very quick and brown.
Quick brown foxes are amazing animals.
Lazy dogs sleep all day.
"""


@pytest.fixture
def sample_input_file(temp_dir, sample_text):
    """Create a sample input file for testing"""
    filepath = os.path.join(temp_dir, 'input.txt')
    with open(filepath, 'w', newline='') as f:
        f.write(sample_text)
    return filepath


@pytest.fixture
def sample_input_dir(write_files):
    """Directory with three files of known line counts (3, 1 and 0 lines)"""
    return write_files({
        'a.py': "import os\nprint(os.getcwd())\n\n",
        'notes.txt': "no trailing newline",
        'empty.txt': "",
    })


@pytest.fixture
def output_dir(temp_dir):
    """Output location that does not exist yet"""
    return os.path.join(temp_dir, 'output')


@pytest.fixture
def line_count_job():
    """Dotted name of the line count job module"""
    return 'linecounter.jobs.line_count'
