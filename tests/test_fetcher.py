from dataclasses import replace

import httpx
import pytest

from extractor.errors import FetchError
from extractor.fetcher import Fetcher

URL = "https://shop.example.com/p/1"
CHALLENGE = "<html><body><h1>Access Denied</h1></body></html>"


def test_fetch_returns_html_and_final_url_after_redirect(config, site, page):
    site.add(
        "https://shop.example.com/old",
        lambda request: httpx.Response(301, headers={"Location": URL}),
    )
    site.html(URL, page(body="<h1>Trail Runner</h1>"))

    result = Fetcher(config, transport=site.transport).fetch("https://shop.example.com/old")

    assert result.final_url == URL
    assert "Trail Runner" in result.html
    assert result.attempt == 1
    assert not result.blocked


def test_blocked_first_attempt_is_retried_with_next_profile(config, site, page):
    responses = iter(
        [
            httpx.Response(403, text=CHALLENGE),
            httpx.Response(200, text=page(body="<h1>Real product</h1>")),
        ]
    )
    site.add(URL, lambda request: next(responses))

    result = Fetcher(config, transport=site.transport).fetch(URL)

    assert result.attempt == 2
    assert "Real product" in result.html
    agents = [request.headers["User-Agent"] for request in site.requests]
    assert len(agents) == 2
    assert agents[0] != agents[1]


def test_exhausted_attempts_return_last_page(config, site):
    site.html(URL, CHALLENGE, status_code=503)

    result = Fetcher(config, transport=site.transport).fetch(URL)

    assert len(site.requests) == config.max_attempts
    assert result.blocked
    assert result.status_code == 503
    assert result.attempt == config.max_attempts
    assert "Access Denied" in result.html


def test_single_attempt_does_not_retry(config, site):
    site.html(URL, CHALLENGE)

    result = Fetcher(replace(config, max_attempts=1), transport=site.transport).fetch(URL)

    assert len(site.requests) == 1
    assert result.blocked


def test_connection_failure_on_every_attempt_raises(config, site):
    def refuse(request):
        raise httpx.ConnectError("connection refused", request=request)

    site.add(URL, refuse)

    with pytest.raises(FetchError) as excinfo:
        Fetcher(config, transport=site.transport).fetch(URL)

    assert excinfo.value.attempts == config.max_attempts
    assert excinfo.value.url == URL
    assert "connection refused" in str(excinfo.value)
    assert len(site.requests) == config.max_attempts


def test_transient_connection_failure_recovers(config, site, page):
    calls = []

    def flaky(request):
        calls.append(request)
        if len(calls) == 1:
            raise httpx.ConnectError("reset", request=request)
        return httpx.Response(200, text=page(body="<h1>Back online</h1>"))

    site.add(URL, flaky)

    result = Fetcher(config, transport=site.transport).fetch(URL)

    assert result.attempt == 2
    assert "Back online" in result.html


def test_blocked_then_connection_failure_keeps_blocked_page(config, site):
    calls = []

    def handler(request):
        calls.append(request)
        if len(calls) == 1:
            return httpx.Response(200, text=CHALLENGE)
        raise httpx.ConnectError("refused", request=request)

    site.add(URL, handler)

    result = Fetcher(config, transport=site.transport).fetch(URL)

    assert result.blocked
    assert result.attempt == 1
