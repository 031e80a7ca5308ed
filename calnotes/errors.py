"""Error taxonomy.

Index mutations never raise these to the event source: the sync engine
isolates failures per event. Creation errors reach the caller, which is
expected to surface them.
"""

from __future__ import annotations


class CalnotesError(Exception):
    """Base class for calnotes errors."""


class ConfigurationMissing(CalnotesError):
    """A resolved setting points at something absent from the vault."""


class FolderMissingError(ConfigurationMissing):
    """The resolved notes folder does not exist."""

    def __init__(self, folder: str, periodicity: str):
        self.folder = folder
        self.periodicity = periodicity
        super().__init__(
            f"Unable to locate the {periodicity} notes folder '{folder or '/'}'. "
            "Check your plugin's settings or restart calendar plugin."
        )


class CreationError(CalnotesError):
    """A note could not be created."""


class AlreadyExists(CreationError):
    """A file already exists at the target path (or is being created)."""

    def __init__(self, path: str, *, in_flight: bool = False):
        self.path = path
        self.in_flight = in_flight
        if in_flight:
            message = f"Note '{path}' is already being created"
        else:
            message = f"File '{path}' already exists"
        super().__init__(message)


class CreationIOFailure(CreationError):
    """The document store rejected the write."""

    def __init__(self, path: str, cause: BaseException):
        self.path = path
        super().__init__(f"Failed to create file: '{path}': {cause}")


class NetworkFetchFailure(CalnotesError):
    """A single attempt to fetch remote locale data failed."""
