import json
from typing import Callable, Optional

import httpx
import pytest
from tortoise import Tortoise, connections

from nft_sender.services.crossmint import crossmint_client
from nft_sender.services.state import boards


class FakeCrossmint:
    """Stand-in for the Crossmint REST API, served through httpx.MockTransport."""

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.respond: Callable[[httpx.Request], httpx.Response] = self.default_response

    @staticmethod
    def default_response(request: httpx.Request) -> httpx.Response:
        if request.method == "POST" and request.url.path.endswith("/nfts"):
            return httpx.Response(200, json={"id": "nft_1"})
        return httpx.Response(404, json={"error": "not found"})

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.respond(request)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)

    @property
    def mint_requests(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == "POST" and r.url.path.endswith("/nfts")]

    def mint_payloads(self) -> list[dict]:
        return [json.loads(r.content) for r in self.mint_requests]


@pytest.fixture
def provider(monkeypatch) -> FakeCrossmint:
    fake = FakeCrossmint()
    monkeypatch.setattr(crossmint_client, "_transport", fake.transport)
    return fake


@pytest.fixture
async def db():
    await Tortoise.init(
        db_url="sqlite://:memory:",
        modules={"models": ["nft_sender.models.minting"]},
    )
    await Tortoise.generate_schemas()
    yield
    await connections.close_all()


@pytest.fixture(autouse=True)
def reset_boards():
    boards.clear()
    yield
    boards.clear()


@pytest.fixture
async def client(db, provider):
    from nft_sender.main import app

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def make_project():
    from nft_sender.models.minting import Project

    async def _make(
        api_key: str = "sk_test",
        template_id: str = "tmpl-1",
        collection_id: Optional[str] = "col-1",
        blockchain: str = "polygon-amoy",
    ) -> Project:
        return await Project.create(
            name="Launch drop",
            api_key=api_key,
            template_id=template_id,
            collection_id=collection_id,
            blockchain=blockchain,
        )

    return _make
