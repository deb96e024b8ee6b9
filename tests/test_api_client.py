"""Tests for the backend client."""

from __future__ import annotations

import json

import httpx
import pytest

from conftest import CHAPTER_A1, MODULE_A
from coursetree.api_client import LearningApiClient, order_request
from coursetree.exceptions import InvariantViolationError, PersistenceError
from coursetree.http_utils import create_client
from coursetree.schemas import ArticleNode, ChapterNode, ModuleNode, TaskNode, VideoNode


class TestOrderRequest:
    """Tests for order_request path and payload building."""

    @pytest.mark.parametrize(
        ("node", "path", "payload"),
        [
            (ModuleNode(pk=1, title="M", order=3), "/elearning/modules/1/", {"order": 3}),
            (
                ChapterNode(pk=10, title="C", order=2, parent=MODULE_A),
                "/elearning/modules/chapters/10/",
                {"order": 2, "module_id": 1},
            ),
            (
                VideoNode(pk=100, title="V", order=1, parent=CHAPTER_A1),
                "/elearning/modules/content/100/",
                {"order": 1, "chapter": 10},
            ),
            (
                ArticleNode(pk=5, title="A", order=4, parent=CHAPTER_A1),
                "/elearning/modules/article/5/",
                {"order": 4, "chapter_id": 10},
            ),
            (
                TaskNode(pk=7, title="T", order=2, parent=CHAPTER_A1),
                "/elearning/modules/tasks/7/",
                {"order": 2, "chapter": 10},
            ),
        ],
    )
    def test_builds_kind_specific_request(self, node, path: str, payload: dict) -> None:
        """Each kind has its own endpoint and parent key."""
        assert order_request(node) == (path, payload)


class TestLearningApiClient:
    """Tests for LearningApiClient against a mock transport."""

    @pytest.mark.asyncio
    async def test_update_order_patches_endpoint(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={})

        http_client = create_client("http://backend.test/api", token="t", transport=httpx.MockTransport(handler))
        async with LearningApiClient(client=http_client) as api:
            status = await api.update_order(TaskNode(pk=7, title="T", order=2, parent=CHAPTER_A1))

        assert status == 200
        assert seen[0].method == "PATCH"
        assert seen[0].url.path == "/api/elearning/modules/tasks/7/"
        assert seen[0].headers["Authorization"] == "Bearer t"
        assert json.loads(seen[0].content) == {"order": 2, "chapter": 10}
        assert not http_client.is_closed
        await http_client.aclose()

    @pytest.mark.asyncio
    async def test_update_order_failure_raises(self) -> None:
        http_client = create_client(
            "http://backend.test/api", transport=httpx.MockTransport(lambda request: httpx.Response(403))
        )
        api = LearningApiClient(client=http_client)

        with pytest.raises(PersistenceError) as exc_info:
            await api.update_order(ModuleNode(pk=1, title="M", order=1))

        assert exc_info.value.status_code == 403
        await http_client.aclose()

    @pytest.mark.asyncio
    async def test_reads_module_views(self, module_detail: dict) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/api/elearning/modules/":
                return httpx.Response(200, json=[{"id": 7, "title": "Onboarding"}])
            if request.url.path == "/api/elearning/modules/7/detail/":
                return httpx.Response(200, json=module_detail)
            return httpx.Response(404)

        http_client = create_client("http://backend.test/api", transport=httpx.MockTransport(handler))
        async with LearningApiClient(client=http_client) as api:
            assert await api.list_modules() == [{"id": 7, "title": "Onboarding"}]
            assert (await api.get_module_detail(7))["title"] == "Onboarding"
        await http_client.aclose()

    def test_missing_parent_raises(self) -> None:
        """A chapter built without validation still cannot be sent parentless."""
        orphan = ChapterNode.model_construct(pk=10, title="C", order=2, parent=None)
        with pytest.raises(InvariantViolationError):
            order_request(orphan)
