"""
Pytest fixtures - gateway app, fake upstream services, tokens, Redis double.
Challenge: Exercise the full request path without real services or Redis.
"""

from typing import Callable

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from redis.exceptions import ConnectionError as RedisConnectionError

from gateway.config import Settings
from gateway.core.security import create_access_token
from gateway.main import create_app
from gateway.proxy.forwarder import ProxyForwarder

TEST_SECRET = "test-secret"


class InMemoryPipeline:
    """Queues commands and runs them together on execute(), like redis-py."""

    def __init__(self, redis: "InMemoryRedis", transaction: bool):
        self.redis = redis
        self.transaction = transaction
        self.commands: list[tuple] = []

    def incr(self, key: str) -> "InMemoryPipeline":
        self.commands.append(("incr", key))
        return self

    def expire(self, key: str, seconds: int) -> "InMemoryPipeline":
        self.commands.append(("expire", key, seconds))
        return self

    async def execute(self) -> list:
        self.redis.batches.append((self.transaction, list(self.commands)))
        results = [await getattr(self.redis, name)(*args) for name, *args in self.commands]
        self.commands = []
        return results

    async def __aenter__(self) -> "InMemoryPipeline":
        return self

    async def __aexit__(self, *exc_info) -> None:
        self.commands = []


class InMemoryRedis:
    """Just the Redis commands the rate limiter uses."""

    def __init__(self):
        self.store: dict[str, int] = {}
        self.ttls: dict[str, int] = {}
        self.batches: list[tuple[bool, list[tuple]]] = []

    def pipeline(self, transaction: bool = True) -> InMemoryPipeline:
        return InMemoryPipeline(self, transaction)

    async def incr(self, key: str) -> int:
        self.store[key] = self.store.get(key, 0) + 1
        return self.store[key]

    async def expire(self, key: str, seconds: int) -> bool:
        self.ttls[key] = seconds
        return True

    async def aclose(self) -> None:
        pass


class UnavailableRedis(InMemoryRedis):
    async def incr(self, key: str) -> int:
        raise RedisConnectionError("Connection refused")


class FakeUpstream:
    """Stands in for every downstream service. Records what the gateway sent."""

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.handler: Callable[[httpx.Request], httpx.Response] | None = None

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.handler is not None:
            return self.handler(request)
        return httpx.Response(
            200,
            json={
                "host": f"{request.url.host}:{request.url.port}",
                "method": request.method,
                "path": request.url.path,
                "query": request.url.query.decode(),
                "body": request.content.decode(),
            },
            headers={"X-Upstream": "yes"},
        )

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None, jwt_secret=TEST_SECRET, rate_limit_enabled=False)


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
def forwarder(upstream: FakeUpstream) -> ProxyForwarder:
    return ProxyForwarder.create(timeout=5.0, transport=httpx.MockTransport(upstream))


@pytest.fixture
def gateway_app(settings: Settings, forwarder: ProxyForwarder):
    return create_app(settings=settings, forwarder=forwarder)


@pytest_asyncio.fixture
async def client(gateway_app):
    async with AsyncClient(
        transport=ASGITransport(app=gateway_app),
        base_url="http://test",
    ) as ac:
        yield ac
    await gateway_app.state.forwarder.aclose()


@pytest.fixture
def auth_headers(settings: Settings) -> dict:
    token = create_access_token(42, settings=settings)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def memory_redis() -> InMemoryRedis:
    return InMemoryRedis()


@pytest.fixture
def unavailable_redis() -> UnavailableRedis:
    return UnavailableRedis()
