"""Node models for the Module -> Chapter -> item hierarchy."""

from __future__ import annotations

from enum import Enum
from typing import ClassVar, NamedTuple

from pydantic import BaseModel, ConfigDict, Field, model_validator


class NodeKind(str, Enum):
    """Enumeration of node kinds in the content tree."""

    MODULE = "module"
    CHAPTER = "chapter"
    VIDEO = "video"
    ARTICLE = "article"
    TASK = "task"


ITEM_KINDS = (NodeKind.VIDEO, NodeKind.ARTICLE, NodeKind.TASK)


class NodeRef(NamedTuple):
    """Stable, session-wide node id: the kind plus the backend primary key."""

    kind: NodeKind
    pk: int

    def __str__(self) -> str:
        return f"{self.kind.value}-{self.pk}"

    @classmethod
    def parse(cls, value: str | NodeRef) -> NodeRef:
        """Parse ``"<kind>-<pk>"`` (e.g. ``"chapter-12"``) into a NodeRef.

        Raises:
            ValueError: If the kind is unknown or the pk is not an integer.
        """
        if isinstance(value, NodeRef):
            return value
        kind, sep, pk = value.strip().rpartition("-")
        if not sep or not kind:
            raise ValueError(f"Malformed node id: {value!r}")
        try:
            return cls(NodeKind(kind), int(pk))
        except ValueError as exc:
            raise ValueError(f"Malformed node id: {value!r}") from exc


class ScopeKey(NamedTuple):
    """Identifies a sibling scope: every node of ``kind`` under ``parent``."""

    kind: NodeKind
    parent: NodeRef | None

    def __str__(self) -> str:
        parent = str(self.parent) if self.parent else "root"
        return f"{self.kind.value}@{parent}"


class Node(BaseModel):
    """Common fields shared by every node kind.

    Nodes are frozen; the tree replaces them with copies when their order
    changes.
    """

    model_config = ConfigDict(frozen=True)

    kind: ClassVar[NodeKind]
    parent_kind: ClassVar[NodeKind | None] = None

    pk: int
    title: str
    order: int = Field(default=0, ge=0)
    parent: NodeRef | None = None

    @model_validator(mode="after")
    def _check_parent(self) -> Node:
        if self.parent_kind is None:
            if self.parent is not None:
                raise ValueError(f"{self.kind.value} nodes cannot have a parent")
        elif self.parent is None or self.parent.kind != self.parent_kind:
            raise ValueError(f"{self.kind.value} nodes need a {self.parent_kind.value} parent")
        return self

    @property
    def id(self) -> NodeRef:
        return NodeRef(self.kind, self.pk)

    @property
    def scope(self) -> ScopeKey:
        return ScopeKey(self.kind, self.parent)


class ModuleNode(Node):
    kind: ClassVar[NodeKind] = NodeKind.MODULE

    is_public: bool = False
    category: str | None = None


class ChapterNode(Node):
    kind: ClassVar[NodeKind] = NodeKind.CHAPTER
    parent_kind: ClassVar[NodeKind | None] = NodeKind.MODULE


class VideoNode(Node):
    kind: ClassVar[NodeKind] = NodeKind.VIDEO
    parent_kind: ClassVar[NodeKind | None] = NodeKind.CHAPTER

    description: str | None = None
    video_url: str | None = None


class ArticleNode(Node):
    kind: ClassVar[NodeKind] = NodeKind.ARTICLE
    parent_kind: ClassVar[NodeKind | None] = NodeKind.CHAPTER

    url: str | None = None


class TaskNode(Node):
    kind: ClassVar[NodeKind] = NodeKind.TASK
    parent_kind: ClassVar[NodeKind | None] = NodeKind.CHAPTER

    description: str | None = None
    difficulty: str | None = None


NODE_TYPES: dict[NodeKind, type[Node]] = {
    NodeKind.MODULE: ModuleNode,
    NodeKind.CHAPTER: ChapterNode,
    NodeKind.VIDEO: VideoNode,
    NodeKind.ARTICLE: ArticleNode,
    NodeKind.TASK: TaskNode,
}
