"""
Exception hierarchy for the line counting job
"""


class LineCounterError(Exception):
    """Base class for all errors raised by linecounter"""


class InvocationError(LineCounterError):
    """Malformed invocation: bad arguments or invalid configuration"""


class JobDefinitionError(LineCounterError):
    """Job module is missing a required function"""


class JobExecutionError(LineCounterError):
    """A map, shuffle or reduce step failed; the job cannot complete"""


class InputPathError(JobExecutionError):
    """Input location is missing or contains something that is not a file"""


class OutputExistsError(JobExecutionError):
    """Output location already exists and is not owned by this run"""


class ShuffleError(JobExecutionError):
    """Intermediate data could not be read back for grouping"""
