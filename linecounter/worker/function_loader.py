"""
Job Function Loader
Loads the module that defines map, reduce and combiner functions for a job,
either by dotted module name or from a Python file
"""

import importlib
import importlib.util
import os

from linecounter.common.errors import JobDefinitionError


class FunctionLoader:
    """Loads map/combiner/reduce functions from a job definition"""

    def __init__(self, job_module: str):
        """
        Initialize the function loader

        Args:
            job_module: Dotted module name (e.g. 'linecounter.jobs.line_count')
                or path to a Python file defining the job functions
        """
        self.job_module = job_module
        self.module = None

    def _is_file_path(self) -> bool:
        return self.job_module.endswith('.py') or os.sep in self.job_module

    def load_module(self):
        """
        Load the job module

        Returns:
            The loaded module object

        Raises:
            FileNotFoundError: If a job file path doesn't exist
            ModuleNotFoundError: If a dotted module name can't be imported
        """
        if not self._is_file_path():
            self.module = importlib.import_module(self.job_module)
            return self.module

        if not os.path.exists(self.job_module):
            raise FileNotFoundError(f"Job file not found: {self.job_module}")

        name = f"linecounter_job_{os.path.splitext(os.path.basename(self.job_module))[0]}"
        spec = importlib.util.spec_from_file_location(name, self.job_module)
        if spec is None or spec.loader is None:
            raise JobDefinitionError(f"Failed to load job file: {self.job_module}")
        module = importlib.util.module_from_spec(spec)
        spec.loader.exec_module(module)
        self.module = module
        return module

    def _require(self, name: str):
        if not self.module:
            self.load_module()

        if not hasattr(self.module, name):
            raise JobDefinitionError(f"Job module must define '{name}'")
        return getattr(self.module, name)

    def get_map_function(self):
        """
        Get map function from the job module

        Raises:
            JobDefinitionError: If module doesn't define 'map_function'
        """
        return self._require('map_function')

    def get_reduce_function(self):
        """
        Get reduce function from the job module

        Raises:
            JobDefinitionError: If module doesn't define 'reduce_function'
        """
        return self._require('reduce_function')

    def get_combiner_function(self):
        """
        Get combiner function from the job module

        Returns:
            The combiner_function callable, or None if the job has none
        """
        if not self.module:
            self.load_module()

        # No fallback to reduce_function; its output is not mapper-shaped
        return getattr(self.module, 'combiner_function', None)
