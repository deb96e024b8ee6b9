"""Client for the e-learning backend endpoints used by the reorder engine."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from coursetree.config import COURSETREE_API_BASE_URL
from coursetree.exceptions import InvariantViolationError
from coursetree.http_utils import create_client, get_json_with_retries, patch_json
from coursetree.schemas import Node, NodeKind

logger = logging.getLogger(__name__)

# Collection path and parent foreign key per kind. The backend's update
# contract wants the parent key re-sent alongside ``order``.
ORDER_ENDPOINTS: dict[NodeKind, tuple[str, str | None]] = {
    NodeKind.MODULE: ("/elearning/modules/{pk}/", None),
    NodeKind.CHAPTER: ("/elearning/modules/chapters/{pk}/", "module_id"),
    NodeKind.VIDEO: ("/elearning/modules/content/{pk}/", "chapter"),
    NodeKind.ARTICLE: ("/elearning/modules/article/{pk}/", "chapter_id"),
    NodeKind.TASK: ("/elearning/modules/tasks/{pk}/", "chapter"),
}

MODULES_PATH = "/elearning/modules/"
MODULE_DETAIL_PATH = "/elearning/modules/{pk}/detail/"


def order_request(node: Node) -> tuple[str, dict[str, Any]]:
    """Build the path and body of the order update for ``node``."""
    path, parent_key = ORDER_ENDPOINTS[node.kind]
    payload: dict[str, Any] = {"order": node.order}
    if parent_key is not None:
        if node.parent is None:
            raise InvariantViolationError(f"{node.id} has no parent to send as {parent_key}")
        payload[parent_key] = node.parent.pk
    return path.format(pk=node.pk), payload


class LearningApiClient:
    """Thin async wrapper around the module and order endpoints.

    The client owns its ``httpx.AsyncClient`` unless one is passed in; use it
    as an async context manager or call ``aclose``.
    """

    def __init__(
        self,
        base_url: str = COURSETREE_API_BASE_URL,
        *,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._owns_client = client is None
        self._client = client or create_client(base_url)

    async def __aenter__(self) -> LearningApiClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def update_order(self, node: Node) -> int:
        """Persist ``node.order``; raises PersistenceError on failure."""
        path, payload = order_request(node)
        logger.debug("PATCH %s", path, extra={"payload": payload})
        return await patch_json(path, payload, client=self._client)

    async def list_modules(self) -> list[dict[str, Any]]:
        return await get_json_with_retries(MODULES_PATH, client=self._client)

    async def get_module_detail(self, pk: int) -> dict[str, Any]:
        """Fetch a module with its chapters and their videos, articles and tasks."""
        return await get_json_with_retries(MODULE_DETAIL_PATH.format(pk=pk), client=self._client)
