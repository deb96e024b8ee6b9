"""Optimistic, synchronous writes of reconciled orderings into the tree."""

from __future__ import annotations

import logging
from typing import Sequence

from coursetree.schemas import Node, ScopeKey
from coursetree.tree import TreeModel

logger = logging.getLogger(__name__)


class OptimisticMutator:
    """Commits a reconciled sequence before the backend has seen it.

    There is no pending state: once ``commit`` returns, every reader of the
    tree sees the new order, whatever the backend later answers.
    """

    def __init__(self, tree: TreeModel) -> None:
        self._tree = tree

    def commit(self, scope_key: ScopeKey, reconciled: Sequence[Node]) -> None:
        self._tree.apply_ordering(scope_key, [node.id for node in reconciled])
        logger.debug(
            "Committed optimistic ordering",
            extra={"scope": str(scope_key), "order": [str(node.id) for node in reconciled]},
        )
