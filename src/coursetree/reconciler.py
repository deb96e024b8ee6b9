"""Pure ordering functions for a single sibling scope."""

from __future__ import annotations

from typing import Iterable, Sequence

from coursetree.exceptions import NodeNotFoundError
from coursetree.schemas import Node, NodeRef


def renumber(nodes: Iterable[Node]) -> list[Node]:
    """Return copies of ``nodes`` with ``order`` set to 1..N in sequence order."""
    result: list[Node] = []
    for position, node in enumerate(nodes, start=1):
        result.append(node if node.order == position else node.model_copy(update={"order": position}))
    return result


def reconcile(scope: Sequence[Node], moved_id: NodeRef, target_id: NodeRef) -> list[Node]:
    """Move ``moved_id`` to the position currently held by ``target_id``.

    The moved element is removed and reinserted at the target's index, so it
    ends up on the side of the target it was dragged from: moving down lands
    after the target, moving up lands before it. The whole sequence is then
    renumbered. Dropping a node onto itself returns the scope unchanged,
    gaps included.

    Args:
        scope: Sibling nodes sorted by order.
        moved_id: Node being dragged.
        target_id: Node it was dropped onto.

    Returns:
        The reordered, renumbered sequence.

    Raises:
        NodeNotFoundError: If either id is not in ``scope``.
    """
    items = list(scope)
    source_index = _index_of(items, moved_id)
    target_index = _index_of(items, target_id)
    if source_index == target_index:
        return items
    items.insert(target_index, items.pop(source_index))
    return renumber(items)


def remove(scope: Sequence[Node], removed_id: NodeRef) -> list[Node]:
    """Drop ``removed_id`` from the scope and close the gap it leaves."""
    items = list(scope)
    del items[_index_of(items, removed_id)]
    return renumber(items)


def changed_orders(before: Sequence[Node], after: Sequence[Node]) -> list[Node]:
    """Return the nodes of ``after`` whose order differs from ``before``.

    Nodes that did not exist in ``before`` count as changed.
    """
    previous = {node.id: node.order for node in before}
    return [node for node in after if previous.get(node.id) != node.order]


def _index_of(items: Sequence[Node], node_id: NodeRef) -> int:
    for index, node in enumerate(items):
        if node.id == node_id:
            return index
    raise NodeNotFoundError(f"Node {node_id} is not in this scope")
