import asyncio

import httpx
import pytest

from jdc_dashboard.models.domain import Coordinates
from jdc_dashboard.services.errors import (
    GeocodingError,
    InvalidApiKeyError,
    NoResponseError,
    QuotaExceededError,
    UpstreamApiError,
)
from jdc_dashboard.services.geocoding import OpenCageClient


def _client(handler, **kwargs) -> OpenCageClient:
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return OpenCageClient(
        api_key="test-key",
        base_url="https://geocoder.test/geocode/v1/json",
        http_client=http_client,
        backoff_seconds=0.0,
        **kwargs,
    )


def _ok(results):
    return httpx.Response(200, json={"results": results, "status": {"code": 200, "message": "OK"}})


def test_geocode_uses_first_candidate_and_sends_query_params():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen.update(request.url.params)
        return _ok(
            [
                {"geometry": {"lat": 48.8566, "lng": 2.3522}, "formatted": "Paris, France"},
                {"geometry": {"lat": 33.66, "lng": -95.55}, "formatted": "Paris, Texas"},
            ]
        )

    candidate = asyncio.run(_client(handler, language="fr").geocode("Paris"))

    assert candidate.coordinates == Coordinates(48.8566, 2.3522)
    assert candidate.formatted == "Paris, France"
    assert seen["q"] == "Paris"
    assert seen["key"] == "test-key"
    assert seen["language"] == "fr"


def test_geocode_returns_none_for_zero_results():
    candidate = asyncio.run(_client(lambda request: _ok([])).geocode("Nowhere"))

    assert candidate is None


@pytest.mark.parametrize(
    "status_code, error_type, message",
    [
        (401, InvalidApiKeyError, "Invalid API key"),
        (403, InvalidApiKeyError, "Invalid API key"),
        (402, QuotaExceededError, "API quota exceeded"),
        (400, UpstreamApiError, "API error (400): missing query"),
    ],
)
def test_http_errors_are_classified(status_code, error_type, message):
    def handler(request):
        return httpx.Response(status_code, json={"status": {"code": status_code, "message": "missing query"}})

    with pytest.raises(error_type) as excinfo:
        asyncio.run(_client(handler, max_retries=2).geocode("Paris"))

    assert excinfo.value.user_message == message
    assert excinfo.value.status_code == status_code


def test_network_failure_is_retried_then_reported_as_no_response():
    attempts = []

    def handler(request):
        attempts.append(request)
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(NoResponseError) as excinfo:
        asyncio.run(_client(handler, max_retries=2).geocode("Paris"))

    assert len(attempts) == 3
    assert excinfo.value.user_message == "No response from geocoding server"


def test_server_error_is_retried():
    responses = [httpx.Response(503, json={}), _ok([{"geometry": {"lat": 1.0, "lng": 2.0}}])]

    def handler(request):
        return responses.pop(0)

    candidate = asyncio.run(_client(handler, max_retries=1).geocode("Paris"))

    assert candidate.coordinates == Coordinates(1.0, 2.0)
    assert responses == []


def test_result_without_geometry_is_an_error():
    with pytest.raises(GeocodingError):
        asyncio.run(_client(lambda request: _ok([{"formatted": "?"}])).geocode("Paris"))


def test_missing_api_key_is_rejected(monkeypatch):
    from jdc_dashboard.config import settings

    monkeypatch.setattr(settings, "opencage_api_key", None)

    with pytest.raises(ValueError):
        OpenCageClient()
