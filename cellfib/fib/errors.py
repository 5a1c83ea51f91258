"""Exception hierarchy for the cell fib library.

Only load-time problems are errors. Missing stores, unknown kinds at query
time and failing transformers are handled as fallbacks and never raised.
"""

from __future__ import annotations


class FibError(Exception):
    """Base class for every error raised by :mod:`cellfib.fib`."""


class UnknownCellKindError(FibError, KeyError):
    """A persisted identifier did not resolve to a registered cell kind."""

    def __init__(self, kind_id: str):
        super().__init__(kind_id)
        self.kind_id = kind_id

    def __str__(self) -> str:
        return f"unknown cell kind '{self.kind_id}'"


class DuplicateKindError(FibError, ValueError):
    """The kind registry already holds a kind with this identifier."""

    def __init__(self, kind_id: str):
        super().__init__(f"cell kind '{kind_id}' is already registered")
        self.kind_id = kind_id


class MalformedDocumentError(FibError, ValueError):
    """A persisted tracking document does not have the expected shape."""

    def __init__(self, message: str, key: str | None = None):
        super().__init__(message)
        self.key = key


class PartitionLoadError(FibError):
    """Loading the persisted tracking state of a partition failed."""

    def __init__(self, partition_id: str, cause: Exception):
        super().__init__(f"failed to load tracking state for partition '{partition_id}': {cause}")
        self.partition_id = partition_id
        self.cause = cause


__all__ = [
    "FibError",
    "UnknownCellKindError",
    "DuplicateKindError",
    "MalformedDocumentError",
    "PartitionLoadError",
]
