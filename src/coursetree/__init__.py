"""coursetree: drag-and-drop reordering of e-learning content trees."""

from coursetree.drag import DragSession, DragSessionController, DragState, DropOutcome
from coursetree.engine import ReorderEngine
from coursetree.exceptions import (
    CourseTreeError,
    FetchError,
    InvariantViolationError,
    NoEventLoopError,
    NodeNotFoundError,
    PersistenceError,
    ScopeMismatchError,
)
from coursetree.reconciler import reconcile
from coursetree.schemas import (
    ArticleNode,
    ChapterNode,
    ModuleNode,
    Node,
    NodeKind,
    NodeRef,
    PersistenceOutcome,
    ScopeKey,
    TaskNode,
    VideoNode,
)
from coursetree.tree import TreeModel

__all__ = [
    "ArticleNode",
    "ChapterNode",
    "CourseTreeError",
    "DragSession",
    "DragSessionController",
    "DragState",
    "DropOutcome",
    "FetchError",
    "InvariantViolationError",
    "ModuleNode",
    "Node",
    "NodeKind",
    "NoEventLoopError",
    "NodeNotFoundError",
    "NodeRef",
    "PersistenceError",
    "PersistenceOutcome",
    "ReorderEngine",
    "ScopeKey",
    "ScopeMismatchError",
    "TaskNode",
    "TreeModel",
    "VideoNode",
    "reconcile",
]
