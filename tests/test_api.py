import json

import httpx
import pytest
from fastapi.testclient import TestClient

from api.main import app, get_service
from extractor.cache import MemoryCache
from extractor.fetcher import Fetcher
from extractor.service import ExtractionService

URL = "https://shop.example.com/p/1"


@pytest.fixture
def client(config, site):
    service = ExtractionService(config, cache=MemoryCache(), fetcher=Fetcher(config, transport=site.transport))
    app.dependency_overrides[get_service] = lambda: service
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def test_extract_returns_public_card(client, site, page):
    product = {"@type": "Product", "name": "Desk Lamp", "offers": {"price": "45.00", "priceCurrency": "USD"}}
    site.html(URL, page(head=f'<script type="application/ld+json">{json.dumps(product)}</script>'))

    response = client.get("/extract", params={"url": URL})

    assert response.status_code == 200
    assert response.headers["cache-control"] == "no-store"
    body = response.json()
    assert set(body) == {"title", "image", "price", "domain", "url", "timestamp"}
    assert body["title"] == "Desk Lamp"
    assert body["price"] == "$45"
    assert body["domain"] == "shop.example.com"


def test_legacy_parse_route(client, site, page):
    site.html(URL, page(head="<title>Desk Lamp</title>"))

    response = client.get("/api/parse", params={"url": URL})

    assert response.status_code == 200
    assert response.json()["title"] == "Desk Lamp"


def test_missing_url_is_rejected_without_fetch(client, site):
    response = client.get("/extract")

    assert response.status_code == 400
    assert response.json() == {"error": "missing url"}
    assert site.requests == []


@pytest.mark.parametrize("url", ["ftp://shop.example.com/file", "not a url", "http://[::1"])
def test_unusable_url_gets_missing_url_body(client, site, url):
    response = client.get("/extract", params={"url": url})

    assert response.status_code == 400
    assert response.json() == {"error": "missing url"}
    assert site.requests == []


def test_fetch_failure_is_500(client, site):
    def refuse(request):
        raise httpx.ConnectError("connection refused", request=request)

    site.add(URL, refuse)

    response = client.get("/extract", params={"url": URL})

    assert response.status_code == 500
    assert "Failed to fetch content" in response.json()["error"]


def test_options_returns_cors_headers(client):
    response = client.options("/extract")

    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "*"
    assert response.headers["access-control-allow-methods"] == "GET, OPTIONS"
    assert response.headers["access-control-max-age"] == "86400"


def test_cors_preflight_allows_any_origin(client):
    response = client.options(
        "/extract",
        headers={"Origin": "https://app.example.org", "Access-Control-Request-Method": "GET"},
    )

    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "*"


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.text == "ok"
