import httpx
import pytest

from extractor.config import ExtractorConfig

FILLER = (
    "<p>Free delivery on orders over fifty pounds. Returns accepted within "
    "thirty days of purchase. Sizes run true to fit, see the size guide for "
    "details. Questions about this item? Our team answers within one day.</p>"
)


def build_page(head="", body=""):
    return f"<html><head>{head}</head><body>{body}{FILLER}</body></html>"


@pytest.fixture
def page():
    return build_page


@pytest.fixture
def config(tmp_path):
    return ExtractorConfig(
        max_attempts=3,
        retry_wait_min=0.0,
        retry_wait_max=0.0,
        cache_dir=tmp_path / "cache",
    )


@pytest.fixture
def site():
    """Fake web: register ``url -> handler`` and count requests."""

    class FakeSite:
        def __init__(self):
            self.routes = {}
            self.requests = []

        def add(self, url, handler):
            self.routes[url] = handler

        def html(self, url, body, status_code=200):
            self.add(url, lambda request: httpx.Response(status_code, text=body))

        def handle(self, request):
            self.requests.append(request)
            handler = self.routes.get(str(request.url))
            if handler is None:
                return httpx.Response(404, text="not found")
            return handler(request)

        @property
        def transport(self):
            return httpx.MockTransport(self.handle)

    return FakeSite()
