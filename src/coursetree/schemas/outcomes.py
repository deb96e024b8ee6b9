"""Persistence outcome model."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from coursetree.schemas.nodes import NodeRef


class PersistenceOutcome(BaseModel):
    """Terminal result of one order-update request."""

    model_config = ConfigDict(frozen=True)

    node_id: NodeRef
    order: int
    ok: bool
    status_code: int | None = None
    error: str | None = None
