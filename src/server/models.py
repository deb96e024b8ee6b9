"""Pydantic models for the drag and tree endpoints."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, field_validator

from coursetree.drag import DragState
from coursetree.schemas import Node, NodeRef


class NodeIdRequest(BaseModel):
    """Request body carrying a single node id.

    Attributes
    ----------
    node_id : NodeRef
        Node id in ``"<kind>-<pk>"`` form, e.g. ``"video-12"``.

    """

    node_id: NodeRef = Field(..., description='Node id such as "chapter-3"')

    @field_validator("node_id", mode="before")
    @classmethod
    def parse_node_id(cls, v: Any) -> NodeRef:
        """Parse the string form of a node id."""
        if isinstance(v, str):
            return NodeRef.parse(v)
        return v


class NodeOut(BaseModel):
    """Serialized node.

    Attributes
    ----------
    id : str
        Node id in ``"<kind>-<pk>"`` form.
    kind : str
        Node kind.
    pk : int
        Backend primary key.
    title : str
        Display title.
    order : int
        Position within the sibling scope, starting at 1.
    parent : str | None
        Parent node id, None for modules.
    attributes : dict[str, Any]
        Kind-specific fields (``video_url``, ``difficulty``, ...).

    """

    id: str
    kind: str
    pk: int
    title: str
    order: int
    parent: str | None = None
    attributes: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_node(cls, node: Node) -> NodeOut:
        """Build the response model for ``node``."""
        attributes = node.model_dump(mode="json", exclude={"pk", "title", "order", "parent"})
        return cls(
            id=str(node.id),
            kind=node.kind.value,
            pk=node.pk,
            title=node.title,
            order=node.order,
            parent=str(node.parent) if node.parent else None,
            attributes=attributes,
        )


class ScopeOut(BaseModel):
    """One sibling scope, sorted by order."""

    scope: str
    nodes: list[NodeOut]


class TreeOut(BaseModel):
    """Every node in the tree plus an indented text rendering."""

    nodes: list[NodeOut]
    text: str


class DragStateOut(BaseModel):
    """Current drag session as seen by the rendering layer."""

    state: DragState
    dragged_id: str | None = None
    hover_id: str | None = None
    scope: str | None = None


class HoverResponse(BaseModel):
    accepted: bool


class DropResponse(BaseModel):
    """Result of a drop request.

    Attributes
    ----------
    accepted : bool
        False when nothing was dragged or the target was outside the scope.
    scope : ScopeOut | None
        The reordered scope, already reflecting the new order.
    pending_requests : int
        Order updates started in the background for this drop.

    """

    accepted: bool
    scope: ScopeOut | None = None
    pending_requests: int = 0
