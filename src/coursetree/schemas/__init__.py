"""Shared schemas for coursetree."""

from coursetree.schemas.nodes import (
    ITEM_KINDS,
    NODE_TYPES,
    ArticleNode,
    ChapterNode,
    ModuleNode,
    Node,
    NodeKind,
    NodeRef,
    ScopeKey,
    TaskNode,
    VideoNode,
)
from coursetree.schemas.outcomes import PersistenceOutcome

__all__ = [
    "ITEM_KINDS",
    "NODE_TYPES",
    "ArticleNode",
    "ChapterNode",
    "ModuleNode",
    "Node",
    "NodeKind",
    "NodeRef",
    "PersistenceOutcome",
    "ScopeKey",
    "TaskNode",
    "VideoNode",
]
