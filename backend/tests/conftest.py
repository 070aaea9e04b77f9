"""
Shared fixtures: an in-memory LLM provider and a Google Maps stub built on
httpx.MockTransport.
"""
import httpx
import pytest

from maps_assistant.core.config import Settings
from maps_assistant.core.llm_connection import LLMService
from maps_assistant.core.llm_providers import BaseLLMProvider
from maps_assistant.models.geo_model import LatLng, Place, Review, Route, RouteStep
from maps_assistant.services.Geo_service import GeoQueryClient


class FakeLLMProvider(BaseLLMProvider):
    """Returns a canned completion, or raises `error` when set."""

    def __init__(self, reply: str = "", error: Exception | None = None):
        self.reply = reply
        self.error = error
        self.calls = []

    async def generate(self, messages, temperature=0.7, max_tokens=800, timeout=30.0):
        self.calls.append({
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
        })
        if self.error is not None:
            raise self.error
        return self.reply

    def get_provider_name(self) -> str:
        return "Fake"


class GoogleStub:
    """Routes requests to per-path JSON payloads and records every call."""

    def __init__(self):
        self.routes = {}
        self.requests = []

    def on(self, path_fragment: str, payload=None, status_code: int = 200, exc: Exception | None = None):
        self.routes[path_fragment] = (payload, status_code, exc)
        return self

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        for fragment, (payload, status_code, exc) in self.routes.items():
            if fragment in request.url.path:
                if exc is not None:
                    raise exc
                if isinstance(payload, (bytes, str)):
                    return httpx.Response(status_code, content=payload)
                return httpx.Response(status_code, json=payload)
        return httpx.Response(404, json={"status": "NOT_FOUND"})

    def calls_to(self, path_fragment: str) -> list[httpx.Request]:
        return [r for r in self.requests if path_fragment in r.url.path]


@pytest.fixture
def test_settings():
    return Settings(
        _env_file=None,
        GOOGLE_MAPS_API_KEY="test-key",
        LOCATION_TIMEOUT=0.5,
        LLM_PROVIDER="openai",
    )


@pytest.fixture
def google():
    return GoogleStub()


@pytest.fixture
def geo_client(google, test_settings):
    return GeoQueryClient(config=test_settings, transport=httpx.MockTransport(google))


@pytest.fixture
def fake_provider():
    return FakeLLMProvider()


@pytest.fixture
def llm(fake_provider, test_settings):
    return LLMService(provider=fake_provider, config=test_settings)


@pytest.fixture
def sample_place():
    return Place(
        id="ChIJ123",
        name="Café X",
        address="1 Rue de Rivoli, Paris",
        location=LatLng(lat=48.8606, lng=2.3376),
        rating=4.8,
        types=["cafe", "food"],
        reviews=[
            Review(author="Anne", rating=5, text="Excellent café", time=1700000000),
            Review(author="Marc", rating=4, text="Bon accueil", time=1700000100),
        ],
    )


def make_steps(count: int) -> list[RouteStep]:
    return [
        RouteStep(
            instruction=f"Continuer sur <b>A{i}</b>",
            distance=f"{i + 1} km",
            duration=f"{i + 1} min",
            start_location=LatLng(lat=48.0 + i * 0.01, lng=2.0),
            end_location=LatLng(lat=48.0 + (i + 1) * 0.01, lng=2.0),
        )
        for i in range(count)
    ]


@pytest.fixture
def sample_route():
    return Route(
        id="route-1",
        origin="Paris, France",
        destination="Orléans, France",
        distance="150 km",
        duration="2h",
        steps=make_steps(12),
        overview_polyline="_p~iF~ps|U_ulLnnqC_mqNvxq`@",
    )
