import httpx
import pytest

from src.auth.token_store import TokenStore
from src.models.base_models import Token, TokenPair


class RecordingHandler:
    """httpx.MockTransport handler that records requests and replays responses."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        if callable(response):
            return response(request)
        return response


@pytest.fixture
def store(tmp_path):
    return TokenStore(tmp_path / "data" / "psn_tokens.json")


@pytest.fixture
def token_pair():
    return TokenPair(
        access=Token(value="A1", expires_in=3600),
        refresh=Token(value="R1", expires_in=864000),
    )


@pytest.fixture
def recorder():
    """Factory for ``RecordingHandler`` instances."""
    return RecordingHandler


class FakePSNClient:
    """Stands in for ``PSNClient``; each method returns a canned result."""

    def __init__(self, **results):
        self.results = results
        self.calls = []

    def __getattr__(self, name):
        if name not in self.results:
            raise AttributeError(name)

        async def method(*args):
            self.calls.append((name, args))
            return self.results[name]

        return method


@pytest.fixture
def use_psn_client(monkeypatch):
    """Install a ``FakePSNClient`` as ``get_psn_client`` of a tool module."""

    def install(module, **results):
        fake = FakePSNClient(**results)
        monkeypatch.setattr(module, "get_psn_client", lambda: fake)
        return fake

    return install
