"""Drag session state machine for reordering nodes within a sibling scope."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable

from coursetree import reconciler
from coursetree.exceptions import ScopeMismatchError
from coursetree.mutator import OptimisticMutator
from coursetree.schemas import Node, NodeRef, PersistenceOutcome, ScopeKey
from coursetree.tree import TreeModel

logger = logging.getLogger(__name__)


class DragState(str, Enum):
    """States of a drag session."""

    IDLE = "idle"
    DRAGGING = "dragging"
    DROPPED = "dropped"
    CANCELLED = "cancelled"


@dataclass
class DragSession:
    """The node being dragged and the scope it is confined to.

    Attributes:
        dragged_id: Node picked up by ``start_drag``.
        fingerprint: Sibling scope of the dragged node; only targets in the
            same scope are accepted.
        hover_id: Last target accepted by ``hover``.
    """

    dragged_id: NodeRef
    fingerprint: ScopeKey
    hover_id: NodeRef | None = None


@dataclass
class DropOutcome:
    """Result of a completed drop.

    Attributes:
        scope: Scope that was reordered.
        moved_id: Dragged node.
        target_id: Node it was dropped onto.
        previous: Scope as it was before the drop.
        sequence: Scope after reconciliation, already committed to the tree.
        changed: Nodes whose order value changed.
        sync_task: Background persistence task, if one was started.
    """

    scope: ScopeKey
    moved_id: NodeRef
    target_id: NodeRef
    previous: list[Node]
    sequence: list[Node]
    changed: list[Node] = field(default_factory=list)
    sync_task: asyncio.Task[list[PersistenceOutcome]] | None = None


StateListener = Callable[[DragState, "DragSession | None"], None]
CommitHandler = Callable[[DropOutcome], None]


def require_same_scope(node: Node, fingerprint: ScopeKey) -> None:
    """Raise ScopeMismatchError unless ``node`` lives in ``fingerprint``."""
    if node.scope != fingerprint:
        raise ScopeMismatchError(f"{node.id} is in {node.scope}, not {fingerprint}")


class DragSessionController:
    """Tracks one drag at a time and turns a valid drop into a local reorder.

    The four entry points (``start_drag``, ``hover``, ``drop``, ``cancel``)
    are the only way a rendering layer mutates ordering. A drop reconciles
    and commits synchronously, then hands the outcome to ``on_commit`` so
    persistence can start without the caller waiting for it.
    """

    def __init__(
        self,
        tree: TreeModel,
        mutator: OptimisticMutator,
        *,
        on_commit: CommitHandler | None = None,
    ) -> None:
        self._tree = tree
        self._mutator = mutator
        self._on_commit = on_commit
        self._listeners: list[StateListener] = []
        self._state = DragState.IDLE
        self._session: DragSession | None = None

    @property
    def state(self) -> DragState:
        return self._state

    @property
    def session(self) -> DragSession | None:
        return self._session

    def add_listener(self, listener: StateListener) -> None:
        """Register a callback invoked on every state transition."""
        self._listeners.append(listener)

    def start_drag(self, node_id: NodeRef) -> DragSession:
        """Pick up ``node_id``; an unfinished session is cancelled first."""
        node = self._tree.get_node(node_id)
        if self._state is DragState.DRAGGING:
            logger.debug("Drag restarted before previous session ended")
            self.cancel()
        self._session = DragSession(dragged_id=node.id, fingerprint=node.scope)
        self._set_state(DragState.DRAGGING)
        return self._session

    def hover(self, target_id: NodeRef) -> bool:
        """Offer ``target_id`` as drop target; returns whether it was accepted."""
        if self._state is not DragState.DRAGGING or self._session is None:
            return False
        target = self._tree.get_node(target_id)
        try:
            require_same_scope(target, self._session.fingerprint)
        except ScopeMismatchError:
            return False
        self._session.hover_id = target.id
        return True

    def drop(self, target_id: NodeRef) -> DropOutcome | None:
        """Release the dragged node onto ``target_id``.

        Returns:
            The drop outcome, or None when nothing was dragged or the target
            lies outside the dragged node's scope. In the latter case the
            session ends as cancelled and the tree is untouched.
        """
        if self._state is not DragState.DRAGGING or self._session is None:
            return None
        session = self._session
        target = self._tree.get_node(target_id)
        try:
            require_same_scope(target, session.fingerprint)
        except ScopeMismatchError as exc:
            logger.info("Drop blocked: items must stay in the same scope", extra={"reason": str(exc)})
            self._finish(DragState.CANCELLED)
            return None

        previous = list(self._tree.scope_of(session.fingerprint))
        sequence = reconciler.reconcile(previous, session.dragged_id, target.id)
        changed = reconciler.changed_orders(previous, sequence)
        if changed:
            self._mutator.commit(session.fingerprint, sequence)
        outcome = DropOutcome(
            scope=session.fingerprint,
            moved_id=session.dragged_id,
            target_id=target.id,
            previous=previous,
            sequence=sequence,
            changed=changed,
        )
        self._finish(DragState.DROPPED)
        if self._on_commit is not None:
            self._on_commit(outcome)
        return outcome

    def cancel(self) -> None:
        """Abandon the current drag without touching the tree."""
        if self._state is DragState.DRAGGING:
            self._finish(DragState.CANCELLED)

    def _finish(self, state: DragState) -> None:
        self._set_state(state)
        self._session = None
        self._set_state(DragState.IDLE)

    def _set_state(self, state: DragState) -> None:
        self._state = state
        for listener in self._listeners:
            listener(state, self._session)
