from __future__ import annotations


class QueeryError(Exception):
    """Base class for errors raised by queery."""


class StorageError(QueeryError):
    """A counter could not be created, read or updated."""


class EmptyInputError(QueeryError):
    """No counters exist for the requested range."""


class RenderError(QueeryError):
    """The chart image could not be built or encoded."""
