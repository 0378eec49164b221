"""
errors.py: Exceptions raised below the score client boundary.
"""


class RunnerError(Exception):
    """Base class for all runner_game errors."""


class TransportError(RunnerError):
    """Network failure, timeout, or non-success reply from the leaderboard service."""


class LocalStoreError(RunnerError):
    """The local persistent store could not be read or written."""
