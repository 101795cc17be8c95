"""Page fetcher with profile rotation and block-aware retries."""
from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass
from typing import List, Optional

import httpx
from tenacity import (
    RetryCallState,
    Retrying,
    before_sleep_log,
    retry_if_exception_type,
    retry_if_result,
    stop_after_attempt,
    wait_random,
)

from .antibot import ProfilePool, RequestProfile, looks_blocked
from .config import ExtractorConfig
from .errors import FetchError

LOGGER = logging.getLogger(__name__)


@dataclass
class FetchedPage:
    """Raw HTML returned by one fetch attempt."""

    html: str
    final_url: str
    status_code: int
    attempt: int
    profile: Optional[RequestProfile] = None
    blocked: bool = False


class Fetcher:
    """Retrieve product pages, rotating request profiles between attempts."""

    def __init__(
        self,
        config: Optional[ExtractorConfig] = None,
        *,
        profiles: Optional[ProfilePool] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        """Initialize fetcher.

        Parameters
        ----------
        config : ExtractorConfig, optional
            Attempt count, timeouts and block heuristics
        profiles : ProfilePool, optional
            Request profiles (defaults to the built-in pool)
        transport : httpx.BaseTransport, optional
            Custom transport, used to stub the network in tests
        """
        self.config = config or ExtractorConfig()
        self.profiles = profiles or ProfilePool()
        self.transport = transport

    def _client(self) -> httpx.Client:
        # One client per fetch: no cookies or connections leak between requests.
        return httpx.Client(
            follow_redirects=True,
            timeout=httpx.Timeout(self.config.request_timeout),
            transport=self.transport,
        )

    def fetch(self, url: str) -> FetchedPage:
        """Fetch ``url`` with up to ``max_attempts`` sequential attempts.

        A page classified as blocked triggers another attempt with the next
        profile. When attempts run out the last received page is returned
        anyway; only transport failures on every attempt raise.

        Parameters
        ----------
        url : str
            Absolute http(s) URL

        Returns
        -------
        FetchedPage
            Page HTML and the post-redirect URL

        Raises
        ------
        FetchError
            If no attempt produced a response
        """
        rotation = self.profiles.rotation()
        counter = itertools.count(1)
        received: List[FetchedPage] = []

        def attempt(client: httpx.Client) -> FetchedPage:
            number = next(counter)
            profile = next(rotation)
            LOGGER.debug("Attempt %d for %s (ua=%s)", number, url, profile.user_agent[:40])
            response = client.get(url, headers=profile.headers())
            page = FetchedPage(
                html=response.text,
                final_url=str(response.url),
                status_code=response.status_code,
                attempt=number,
                profile=profile,
                blocked=looks_blocked(
                    response.text,
                    response.status_code,
                    markers=self.config.block_markers,
                    min_body_length=self.config.min_body_length,
                ),
            )
            received.append(page)
            if page.blocked:
                LOGGER.warning(
                    "Attempt %d for %s looks blocked (status=%d, %d chars)",
                    number,
                    url,
                    page.status_code,
                    len(page.html),
                )
            return page

        def give_up(state: RetryCallState) -> FetchedPage:
            if received:
                page = received[-1]
                LOGGER.warning(
                    "All %d attempts for %s exhausted, returning best-effort content",
                    state.attempt_number,
                    url,
                )
                return page
            cause = state.outcome.exception() if state.outcome else None
            raise FetchError.exhausted(url, state.attempt_number, cause)

        retrying = Retrying(
            stop=stop_after_attempt(self.config.max_attempts),
            wait=wait_random(self.config.retry_wait_min, self.config.retry_wait_max),
            retry=(
                retry_if_exception_type(httpx.TransportError)
                | retry_if_result(lambda page: page.blocked)
            ),
            before_sleep=before_sleep_log(LOGGER, logging.INFO),
            retry_error_callback=give_up,
        )

        try:
            with self._client() as client:
                page = retrying(attempt, client)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            if not received:
                LOGGER.error("Fetch failed for %s: %s", url, exc)
                raise FetchError(
                    f"Failed to fetch content: {exc}", url=url, attempts=next(counter) - 1
                ) from exc
            LOGGER.warning("Attempt failed for %s (%s), keeping previous response", url, exc)
            page = received[-1]

        LOGGER.info(
            "Fetched %s -> %s (attempt %d, status=%d, blocked=%s)",
            url,
            page.final_url,
            page.attempt,
            page.status_code,
            page.blocked,
        )
        return page
