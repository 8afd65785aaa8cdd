"""
Job-level errors raised by the local engine.
"""


class JobError(Exception):
    """Base class for errors that fail a whole job"""


class InputNotFoundError(JobError):
    """The input path does not exist"""

    def __init__(self, path: str):
        super().__init__(f"Input path does not exist: {path}")
        self.path = path


class OutputExistsError(JobError):
    """The output directory is already present"""

    def __init__(self, path: str):
        super().__init__(f"Output directory {path} already exists")
        self.path = path
