"""
The request unit of work: ``get_transaction`` over a pool on ``app.state``.

A small app with routes built on the real ``Transaction`` and ``Cache``
dependencies checks that a route error rolls back, a normal exit commits,
and profile invalidations reach Redis only after the commit.
"""

from unittest.mock import AsyncMock
from uuid import UUID, uuid4

import pytest
from fakes import FakePool
from fastapi import FastAPI
from fastapi.testclient import TestClient

from photogram.api.dependencies import Cache, Transaction
from photogram.api.errors import register_exception_handlers
from photogram.services.errors import AlreadyFollowingError


@pytest.fixture
def pool():
    return FakePool()


@pytest.fixture
def redis_client(pool):
    client = AsyncMock()
    client.delete.side_effect = lambda *keys: pool.connection.events.append("invalidate")
    return client


@pytest.fixture
def client(pool, redis_client):
    app = FastAPI()
    register_exception_handlers(app)
    app.state.pool = pool
    app.state.redis = redis_client

    @app.post("/profiles/{user_id}")
    async def touch_profile(user_id: UUID, connection: Transaction, cache: Cache):
        await cache.invalidate(user_id)
        return {"success": True}

    @app.post("/profiles/{user_id}/conflict")
    async def conflicting_write(user_id: UUID, connection: Transaction, cache: Cache):
        await cache.invalidate(user_id)
        raise AlreadyFollowingError()

    return TestClient(app)


class TestTransaction:
    def test_success_commits_then_invalidates(self, client, pool, redis_client):
        user_id = uuid4()

        response = client.post(f"/profiles/{user_id}")

        assert response.status_code == 200
        assert pool.connection.events == ["begin", "commit", "invalidate"]
        redis_client.delete.assert_awaited_once_with(f"user:{user_id}")

    def test_service_error_rolls_back_without_invalidating(self, client, pool, redis_client):
        response = client.post(f"/profiles/{uuid4()}/conflict")

        assert response.status_code == 409
        assert response.json()["error"]["code"] == "already_following"
        assert pool.connection.events == ["begin", "rollback"]
        redis_client.delete.assert_not_awaited()

    def test_each_request_gets_its_own_transaction(self, client, pool):
        client.post(f"/profiles/{uuid4()}/conflict")
        client.post(f"/profiles/{uuid4()}")

        assert pool.connection.events == ["begin", "rollback", "begin", "commit", "invalidate"]
