"""Exception types raised by the linkage pipeline.

Row-level problems (missing timestamps, unmapped apps) are recovered where
they occur and never surface here. These exceptions are for structural
problems that must stop the run.
"""

from __future__ import annotations


class LinkageError(Exception):
    """Base class for all linkage failures."""


class ConfigurationError(LinkageError, ValueError):
    """Invalid run configuration (e.g. non-positive window duration)."""


class BeepTableError(LinkageError):
    """The combined beep table is missing columns or has duplicate keys."""


class PartitionFailure(LinkageError):
    """One participant's data could not be processed.

    Fatal to the whole run: the pipeline never returns output with a
    participant silently missing.
    """

    def __init__(self, participant_id, reason: str) -> None:
        self.participant_id = participant_id
        self.reason = reason
        super().__init__(f"participant {participant_id}: {reason}")

    def __reduce__(self):
        # Worker processes send exceptions back pickled
        return (self.__class__, (self.participant_id, self.reason))


class CategoryTableError(LinkageError, ValueError):
    """The app category table is missing columns or maps one app to two categories."""


class UsageTableError(LinkageError):
    """A usage table is missing required columns."""
