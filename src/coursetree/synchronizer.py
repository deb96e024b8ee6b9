"""Concurrent, per-node persistence of reconciled orderings."""

from __future__ import annotations

import asyncio
import logging
from typing import Protocol, Sequence

from coursetree import reconciler
from coursetree.exceptions import NoEventLoopError, PersistenceError
from coursetree.invalidator import CacheInvalidator
from coursetree.schemas import Node, PersistenceOutcome, ScopeKey

logger = logging.getLogger(__name__)


class OrderWriter(Protocol):
    async def update_order(self, node: Node) -> int: ...


class PersistenceSynchronizer:
    """Sends one order update per changed node and settles them independently.

    Requests run concurrently with no ordering between them. A failed request
    neither cancels its siblings nor rolls back the optimistic tree. When all
    of them have settled the scope's cached views are invalidated, once,
    whatever the individual outcomes were.
    """

    def __init__(self, writer: OrderWriter, invalidator: CacheInvalidator | None = None) -> None:
        self._writer = writer
        self._invalidator = invalidator
        self._pending: set[asyncio.Task[list[PersistenceOutcome]]] = set()

    @property
    def pending(self) -> int:
        return len(self._pending)

    async def sync(
        self,
        scope_key: ScopeKey,
        reconciled: Sequence[Node],
        previous: Sequence[Node] = (),
    ) -> list[PersistenceOutcome]:
        """Persist every node of ``reconciled`` whose order changed.

        Args:
            scope_key: Scope being persisted.
            reconciled: Scope after reconciliation.
            previous: Scope before reconciliation. When empty every node is
                sent.

        Returns:
            One outcome per request, in ``reconciled`` order.
        """
        changed = reconciler.changed_orders(previous, reconciled)
        results = await asyncio.gather(
            *(self._persist(node) for node in changed),
            return_exceptions=True,
        )

        outcomes: list[PersistenceOutcome] = []
        for node, result in zip(changed, results):
            if isinstance(result, BaseException):
                logger.error(
                    "Unexpected error while persisting order",
                    extra={"node": str(node.id), "error": repr(result)},
                )
                result = PersistenceOutcome(node_id=node.id, order=node.order, ok=False, error=repr(result))
            outcomes.append(result)

        failed = [outcome for outcome in outcomes if not outcome.ok]
        if failed:
            logger.warning(
                "Order sync finished with failures",
                extra={"scope": str(scope_key), "failed": [str(o.node_id) for o in failed], "total": len(outcomes)},
            )
        else:
            logger.info("Order sync completed", extra={"scope": str(scope_key), "total": len(outcomes)})

        if self._invalidator is not None:
            self._invalidator.invalidate(scope_key)
        return outcomes

    def schedule(
        self,
        scope_key: ScopeKey,
        reconciled: Sequence[Node],
        previous: Sequence[Node] = (),
    ) -> asyncio.Task[list[PersistenceOutcome]]:
        """Start ``sync`` in the background and return its task.

        Must be called from within a running event loop. Tasks are kept
        until they finish and are never cancelled.
        """
        task = asyncio.get_running_loop().create_task(self.sync(scope_key, list(reconciled), list(previous)))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    def check_loop(self) -> None:
        """Raise NoEventLoopError unless called from a running event loop.

        Callers check this before mutating the tree so a reorder is never
        applied locally without its sync being scheduled.
        """
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            raise NoEventLoopError("Reorders must be started from within a running event loop") from None

    async def drain(self) -> None:
        """Wait until every scheduled sync has settled."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def _persist(self, node: Node) -> PersistenceOutcome:
        try:
            status_code = await self._writer.update_order(node)
        except PersistenceError as exc:
            logger.warning(
                "Order update failed",
                extra={"node": str(node.id), "order": node.order, "status_code": exc.status_code, "error": str(exc)},
            )
            return PersistenceOutcome(
                node_id=node.id,
                order=node.order,
                ok=False,
                status_code=exc.status_code,
                error=str(exc),
            )
        return PersistenceOutcome(node_id=node.id, order=node.order, ok=True, status_code=status_code)
