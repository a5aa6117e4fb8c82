from collections.abc import AsyncIterator, Callable

import httpx
import pytest
from fake_service import FakeQueueService

from racq.core.client import RacQClient
from racq.domain.config import ClientConfig

ClientFactory = Callable[..., RacQClient]


@pytest.fixture
def service() -> FakeQueueService:
    return FakeQueueService()


@pytest.fixture
async def http(service: FakeQueueService) -> AsyncIterator[httpx.AsyncClient]:
    async with httpx.AsyncClient(transport=service.transport) as client:
        yield client


@pytest.fixture
def make_client(http: httpx.AsyncClient) -> ClientFactory:
    """Build clients sharing one fake service; each gets its own client id."""

    def _make(**config: object) -> RacQClient:
        config.setdefault("user_name", "user")
        config.setdefault("api_key", "key")
        token_storage = config.pop("token_storage", None)
        return RacQClient(
            ClientConfig(**config),  # type: ignore[arg-type]
            http=http,
            token_storage=token_storage,  # type: ignore[arg-type]
        )

    return _make


@pytest.fixture
async def client(make_client: ClientFactory) -> RacQClient:
    c = make_client()
    await c.authenticate()
    return c


@pytest.fixture
async def queue_name(client: RacQClient) -> str:
    await client.create_queue("jobs")
    return "jobs"
