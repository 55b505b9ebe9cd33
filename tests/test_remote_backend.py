"""Tests for the remote backend against an in-process aiohttp service."""

from __future__ import annotations

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

from memory_mcp.backends import MemoryBackend, RemoteBackend
from memory_mcp.backends.remote import to_memory
from memory_mcp.errors import BackendConnectionError, RemoteRequestError


class FakeService:
    """Records requests and answers like the remote memory service."""

    def __init__(self) -> None:
        self.requests: list[dict] = []
        self.health = {"status": "ok", "mode": "test"}
        self.fail_with: tuple[int, str] | None = None

    def app(self) -> web.Application:
        app = web.Application(middlewares=[self._record])
        app.router.add_get("/health", self._health)
        app.router.add_post("/memory/process", self._process)
        app.router.add_get("/memory/search", self._search_get)
        app.router.add_post("/memory/search", self._search_post)
        app.router.add_get("/memory", self._list)
        app.router.add_get("/memory/{id}", self._get)
        app.router.add_delete("/memory/{id}", self._delete)
        return app

    @web.middleware
    async def _record(self, request, handler):
        body = await request.json() if request.can_read_body else None
        self.requests.append({
            "method": request.method,
            "path": request.path,
            "query": dict(request.query),
            "json": body,
            "api_key": request.headers.get("X-API-Key"),
        })
        if self.fail_with and request.path != "/health":
            status, text = self.fail_with
            return web.Response(status=status, text=text)
        return await handler(request)

    async def _health(self, request):
        return web.json_response(self.health)

    async def _process(self, request):
        body = await request.json()
        return web.json_response({
            "memory_id": "m-1",
            "content": body["content"],
            "memory_type": body["memory_type"],
            "importance": body["importance"],
            "created_at": "2026-02-01T10:00:00Z",
            "updated_at": "2026-02-01T10:00:00Z",
        })

    async def _search_get(self, request):
        return web.json_response({
            "results": [
                {"id": "m-1", "content": "dark mode", "type": "preference", "score": 0.91},
                {"id": "m-2", "content": "dark roast"},
            ]
        })

    async def _search_post(self, request):
        return web.json_response({"results": [{"id": "m-3", "content": "x", "score": 0.4}]})

    async def _list(self, request):
        return web.json_response({
            "memories": [
                {"id": "a", "content": "first", "createdAt": "2026-01-02T00:00:00Z"},
                {"memory_id": "b", "content": "second"},
            ]
        })

    async def _get(self, request):
        if request.match_info["id"] == "missing":
            return web.json_response({"detail": "not found"}, status=404)
        return web.json_response({"id": request.match_info["id"], "content": "found"})

    async def _delete(self, request):
        if request.match_info["id"] == "missing":
            return web.Response(status=404)
        return web.json_response({"deleted": True})


@pytest.fixture
def service() -> FakeService:
    return FakeService()


@pytest_asyncio.fixture
async def server(service: FakeService):
    srv = TestServer(service.app())
    await srv.start_server()
    yield srv
    await srv.close()


@pytest_asyncio.fixture
async def backend(server: TestServer):
    b = RemoteBackend(str(server.make_url("/")), api_key="secret")
    await b.initialize()
    yield b
    await b.close()


class TestToMemory:
    def test_primary_keys(self):
        m = to_memory({
            "id": "x",
            "content": "c",
            "type": "task",
            "importance": 0.2,
            "created_at": "2026-01-01T00:00:00Z",
            "updated_at": "2026-01-02T00:00:00Z",
            "metadata": {"a": 1},
        })
        assert (m.id, m.type, m.importance) == ("x", "task", 0.2)
        assert m.created_at == "2026-01-01T00:00:00Z"
        assert m.updated_at == "2026-01-02T00:00:00Z"
        assert m.metadata == {"a": 1}

    def test_fallback_keys(self):
        m = to_memory({
            "memory_id": "y",
            "content": "c",
            "memory_type": "event",
            "createdAt": "2026-03-01T00:00:00Z",
            "updatedAt": "2026-03-02T00:00:00Z",
        })
        assert (m.id, m.type) == ("y", "event")
        assert m.created_at == "2026-03-01T00:00:00Z"
        assert m.updated_at == "2026-03-02T00:00:00Z"

    def test_defaults(self):
        m = to_memory({"id": "z", "content": "c"})
        assert m.type == "fact"
        assert m.importance == 0.5
        assert m.created_at.endswith("Z")
        assert m.metadata is None

    def test_zero_importance_kept(self):
        assert to_memory({"id": "z", "content": "c", "importance": 0}).importance == 0


class TestInitialize:
    @pytest.mark.asyncio
    async def test_healthy(self, backend: RemoteBackend, service: FakeService):
        assert backend.is_ready()
        assert backend.info().connected is True
        assert backend.info().backend_type == "remote"
        assert service.requests[0]["path"] == "/health"
        assert service.requests[0]["api_key"] == "secret"

    @pytest.mark.asyncio
    async def test_unhealthy_status_not_ready(self, server: TestServer, service: FakeService):
        service.health = {"status": "degraded"}
        b = RemoteBackend(str(server.make_url("/")))
        await b.initialize()
        assert not b.is_ready()
        await b.close()

    @pytest.mark.asyncio
    async def test_unreachable(self, unused_tcp_port: int):
        b = RemoteBackend(f"http://127.0.0.1:{unused_tcp_port}", timeout=2)
        with pytest.raises(BackendConnectionError, match="Failed to connect"):
            await b.initialize()
        await b.close()

    def test_trailing_slash_stripped(self):
        assert RemoteBackend("http://host:1/").url == "http://host:1"

    def test_satisfies_protocol(self):
        assert isinstance(RemoteBackend("http://host"), MemoryBackend)


class TestOperations:
    @pytest.mark.asyncio
    async def test_remember(self, backend: RemoteBackend, service: FakeService):
        memory = await backend.remember("likes tea", metadata={"src": "chat"})
        sent = service.requests[-1]
        assert (sent["method"], sent["path"]) == ("POST", "/memory/process")
        assert sent["json"] == {
            "content": "likes tea",
            "memory_type": "fact",
            "importance": 0.5,
            "metadata": {"src": "chat"},
        }
        assert memory.id == "m-1"
        assert memory.content == "likes tea"

    @pytest.mark.asyncio
    async def test_recall(self, backend: RemoteBackend, service: FakeService):
        results = await backend.recall("dark", types=["preference", "fact"], min_importance=0.3)
        sent = service.requests[-1]
        assert (sent["method"], sent["path"]) == ("GET", "/memory/search")
        assert sent["query"] == {
            "query": "dark",
            "limit": "5",
            "types": "preference,fact",
            "min_importance": "0.3",
        }
        assert [r.score for r in results] == [0.91, 0]
        assert results[0].memory.type == "preference"

    @pytest.mark.asyncio
    async def test_search(self, backend: RemoteBackend, service: FakeService):
        results = await backend.search("x", min_score=0.2)
        sent = service.requests[-1]
        assert (sent["method"], sent["path"]) == ("POST", "/memory/search")
        assert sent["json"] == {
            "query": "x",
            "limit": 10,
            "types": None,
            "min_score": 0.2,
            "min_importance": None,
        }
        assert results[0].memory.id == "m-3"

    @pytest.mark.asyncio
    async def test_forget(self, backend: RemoteBackend, service: FakeService):
        assert await backend.forget("m-1", reason="stale") is True
        assert service.requests[-1]["json"] == {"reason": "stale"}
        assert await backend.forget("missing") is False

    @pytest.mark.asyncio
    async def test_get(self, backend: RemoteBackend):
        memory = await backend.get("m-9")
        assert memory is not None and memory.id == "m-9"

    @pytest.mark.asyncio
    async def test_get_404_is_none(self, backend: RemoteBackend):
        assert await backend.get("missing") is None

    @pytest.mark.asyncio
    async def test_list(self, backend: RemoteBackend, service: FakeService):
        memories = await backend.list(limit=2, offset=4)
        assert service.requests[-1]["query"] == {"limit": "2", "offset": "4"}
        assert [m.id for m in memories] == ["a", "b"]
        assert memories[0].created_at == "2026-01-02T00:00:00Z"


class TestFailures:
    @pytest.mark.asyncio
    async def test_error_body_in_message(self, backend: RemoteBackend, service: FakeService):
        service.fail_with = (500, "database exploded")
        with pytest.raises(RemoteRequestError, match="Failed to store memory: database exploded") as exc:
            await backend.remember("x")
        assert exc.value.status == 500

    @pytest.mark.asyncio
    async def test_get_non_404_raises(self, backend: RemoteBackend, service: FakeService):
        service.fail_with = (403, "forbidden")
        with pytest.raises(RemoteRequestError, match="forbidden"):
            await backend.get("m-1")

    @pytest.mark.asyncio
    async def test_list_and_search_raise(self, backend: RemoteBackend, service: FakeService):
        service.fail_with = (502, "bad gateway")
        with pytest.raises(RemoteRequestError, match="Failed to list memories"):
            await backend.list()
        with pytest.raises(RemoteRequestError, match="Search failed"):
            await backend.search("q")
        with pytest.raises(RemoteRequestError, match="Failed to recall memories"):
            await backend.recall("q")
