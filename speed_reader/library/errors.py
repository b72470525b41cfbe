"""
Error types shared by the library layer.

Commands surface these to the shell as plain strings, so messages should
read well on their own.
"""


class LibraryError(Exception):
    """Base class for every failure the library reports to its callers."""


class StorageIOError(LibraryError):
    """Creating, opening, copying, reading or writing a file failed."""


class InvalidInputError(LibraryError, ValueError):
    """A caller-supplied argument cannot be used (e.g. a path with no file name)."""


class SerializationError(LibraryError):
    """A record could not be encoded into its backing document."""


class DocumentCorruptError(LibraryError):
    """A backing document exists but cannot be parsed (fail-closed mode only)."""
