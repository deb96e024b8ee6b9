"""Custom exceptions for coursetree."""

from __future__ import annotations


class CourseTreeError(Exception):
    """Base exception for coursetree operations."""


class NodeNotFoundError(CourseTreeError, LookupError):
    """Referenced node id is not part of the tree."""


class ScopeMismatchError(CourseTreeError):
    """Two nodes do not share the same sibling scope."""


class InvariantViolationError(CourseTreeError):
    """Internal ordering invariant was broken by a caller."""


class PersistenceError(CourseTreeError):
    """Order update for a single node was rejected or never arrived."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class FetchError(CourseTreeError):
    """Error while reading data from the backend."""


class NoEventLoopError(CourseTreeError):
    """A reorder that needs background persistence was requested outside an event loop."""
