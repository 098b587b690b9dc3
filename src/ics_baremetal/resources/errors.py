"""Errors shared by the resource controllers."""

from __future__ import annotations


class ResourceNotFoundError(Exception):
    """A managed resource no longer exists on the backend.

    Raised by read and import. Absence at read time means the resource
    drifted outside this tool; it is never treated as a soft delete.
    """

    def __init__(self, kind: str, key: str | int) -> None:
        self.kind = kind
        self.key = key
        super().__init__(f"{kind} {key!r} not found")


class ResourceImportError(Exception):
    """An import ID could not be parsed."""
