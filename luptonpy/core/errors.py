from typing import Optional


class LuptonError(Exception):
    """
    Base class for failures reported by the stretch core.
    """


class InvalidInputError(LuptonError):
    """
    Source image does not satisfy a structural precondition (e.g. fewer than 3 channels).
    """


class ExecutionError(LuptonError):
    """
    A full-resolution run failed part way. No output is produced.
    """

    def __init__(self, message: str, original_error: Optional[BaseException] = None):
        super().__init__(message)
        self.original_error = original_error
