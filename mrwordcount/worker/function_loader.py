#!/usr/bin/env python3
"""
Dynamic Function Loader for MapReduce Job Functions
Loads the map, reduce and combiner functions of a job, either from a
Python file or from an importable module
"""

import importlib
import importlib.util
import logging
import os
import sys

logger = logging.getLogger(__name__)


class FunctionLoader:
    """Loads job-provided map/reduce functions from a file or module"""

    def __init__(self, source: str):
        """
        Initialize the function loader

        Args:
            source: Path to a .py file, or a dotted module name such as
                'mrwordcount.jobs.wordcount'
        """
        self.source = source
        self.module = None

    def _is_file_source(self) -> bool:
        return self.source.endswith('.py') or os.sep in self.source

    def load_module(self):
        """
        Load the job module

        Returns:
            The loaded module object

        Raises:
            FileNotFoundError: If a file source doesn't exist
            ImportError: If a module source can't be imported
        """
        if self._is_file_source():
            if not os.path.exists(self.source):
                raise FileNotFoundError(f"Map/Reduce file not found: {self.source}")

            stem = os.path.splitext(os.path.basename(self.source))[0]
            module_name = f"mrwordcount_job_{stem}"
            spec = importlib.util.spec_from_file_location(module_name, self.source)
            if spec is None or spec.loader is None:
                raise ImportError(f"Failed to load job file: {self.source}")
            module = importlib.util.module_from_spec(spec)
            sys.modules[module_name] = module
            spec.loader.exec_module(module)
        else:
            module = importlib.import_module(self.source)

        logger.debug(f"Loaded job functions from {self.source}")
        self.module = module
        return module

    def _require(self, name: str):
        if not self.module:
            self.load_module()

        if not hasattr(self.module, name):
            raise AttributeError(f"Module must define '{name}'")
        return getattr(self.module, name)

    def get_map_function(self):
        """
        Get map function from the job module

        Raises:
            AttributeError: If module doesn't define 'map_function'
        """
        return self._require('map_function')

    def get_reduce_function(self):
        """
        Get reduce function from the job module

        Raises:
            AttributeError: If module doesn't define 'reduce_function'
        """
        return self._require('reduce_function')

    def get_combiner_function(self):
        """
        Get combiner function from the job module

        Returns:
            combiner_function, else reduce_function as default, else None
        """
        if not self.module:
            self.load_module()

        for name in ('combiner_function', 'reduce_function'):
            if hasattr(self.module, name):
                return getattr(self.module, name)
        return None
