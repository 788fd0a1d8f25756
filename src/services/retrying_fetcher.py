from __future__ import annotations

import logging
from dataclasses import dataclass
from threading import Event, Lock
from typing import Callable, Protocol

from config import config
from domain.rates import RatesPage

from .fetch_errors import FetchCancelledError, FetchError, ServerError, TransportError, UnexpectedFetchError
from .octopus_client import build_default_client

logger = logging.getLogger(__name__)

DEFAULT_TARGET_LABEL = "default standard rates endpoint"


class PageSource(Protocol):
    def get_page(self, target: str | None = None) -> RatesPage: ...


def should_retry(error: FetchError) -> bool:
    """Transport failures and 5xx/408/429 responses are transient; everything else is fatal."""
    return isinstance(error, (TransportError, ServerError))


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 3
    backoff_seconds: float = 2.0

    def __post_init__(self) -> None:
        if self.max_attempts <= 0:
            raise ValueError("max_attempts must be > 0")
        if self.backoff_seconds < 0:
            raise ValueError("backoff_seconds must be >= 0")

    def should_retry(self, error: FetchError) -> bool:
        return should_retry(error)

    def backoff_delay(self, failed_attempts: int) -> float:
        """Delay before the next attempt; linear in the number of attempts already made."""
        return self.backoff_seconds * failed_attempts


class RetryingFetcher:
    def __init__(
        self,
        source: PageSource,
        *,
        policy: RetryPolicy | None = None,
        sleep: Callable[[float], object] | None = None,
    ) -> None:
        self.source = source
        self.policy = policy or RetryPolicy()
        self._sleep = sleep
        self._lock = Lock()
        self._active: set[Event] = set()

    def cancel(self) -> None:
        """Interrupt the backoff of every fetch in flight; each raises FetchCancelledError.

        Fetches started afterwards retry normally.
        """
        with self._lock:
            for cancelled in self._active:
                cancelled.set()

    def fetch(self, target: str | None = None) -> RatesPage:
        cancelled = Event()
        with self._lock:
            self._active.add(cancelled)
        try:
            return self._fetch(target, cancelled)
        finally:
            with self._lock:
                self._active.discard(cancelled)

    def _fetch(self, target: str | None, cancelled: Event) -> RatesPage:
        label = target or DEFAULT_TARGET_LABEL
        max_attempts = self.policy.max_attempts
        last_error: FetchError | None = None

        for attempt in range(1, max_attempts + 1):
            if attempt > 1:
                self._backoff(attempt - 1, label, cancelled)

            logger.debug("Attempting fetch for %s, try %d", label, attempt)
            try:
                page = self.source.get_page(target)
            except FetchError as exc:
                last_error = exc
            except Exception as exc:
                logger.exception("Unexpected error fetching %s", label)
                raise UnexpectedFetchError(f"An unexpected error occurred: {exc}") from exc
            else:
                logger.info(
                    "Fetched %d rates from %s. Next: %s, Prev: %s",
                    len(page.results),
                    label,
                    page.next,
                    page.previous,
                )
                return page

            if not self.policy.should_retry(last_error):
                logger.error("Fetch for %s failed with non-retryable error: %s", label, last_error)
                raise last_error
            logger.warning("Retry %d/%d: %s for %s", attempt, max_attempts, last_error, label)

        assert last_error is not None
        logger.error("All %d attempts failed for %s. Last error: %s", max_attempts, label, last_error)
        raise last_error

    def _backoff(self, failed_attempts: int, label: str, cancelled: Event) -> None:
        delay = self.policy.backoff_delay(failed_attempts)
        logger.debug("Waiting %.1fs before retrying %s", delay, label)
        if self._sleep is None:
            cancelled.wait(delay)
        else:
            self._sleep(delay)
        if cancelled.is_set():
            raise FetchCancelledError(f"Fetch for {label} cancelled")


def build_default_fetcher() -> RetryingFetcher:
    settings = config()
    policy = RetryPolicy(max_attempts=settings.retry_max_attempts, backoff_seconds=settings.retry_backoff_seconds)
    return RetryingFetcher(build_default_client(), policy=policy)


__all__ = ["PageSource", "RetryPolicy", "RetryingFetcher", "build_default_fetcher", "should_retry"]
