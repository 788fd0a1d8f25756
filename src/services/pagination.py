from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from enum import StrEnum
from threading import Lock, RLock
from typing import Callable, Iterator, Protocol

from domain.rates import RateRecord, RatesPage

from .fetch_errors import FetchError
from .rate_store import RateStore
from .retrying_fetcher import build_default_fetcher

logger = logging.getLogger(__name__)

NO_RATES_MESSAGE = "No rates data found."


@dataclass(frozen=True)
class Loading:
    pass


@dataclass(frozen=True)
class Success:
    rates: tuple[RateRecord, ...]


@dataclass(frozen=True)
class Error:
    message: str


RatesState = Loading | Success | Error
StateListener = Callable[[RatesState], None]


class PageFetcher(Protocol):
    def fetch(self, target: str | None = None) -> RatesPage: ...


class FetchKind(StrEnum):
    DEFAULT = "default"
    OLDER = "older"
    NEWER = "newer"


class LoadOutcome(StrEnum):
    SKIPPED = "skipped"
    LOADED = "loaded"
    FAILED = "failed"


class PaginationController:
    """Grows one RateStore from the default listing and its older/newer pages.

    ``_lock`` guards the store, both cursors and the in-flight set as a unit;
    network I/O runs outside it so older and newer loads can overlap.
    ``_state_lock`` serialises publications so listeners observe states in the
    order the store grew.
    """

    def __init__(self, fetcher: PageFetcher, store: RateStore | None = None) -> None:
        self.fetcher = fetcher
        self._store = store if store is not None else RateStore()
        self._lock = Lock()
        self._state_lock = RLock()
        self._older_cursor: str | None = None
        self._newer_cursor: str | None = None
        self._in_flight: set[FetchKind] = set()
        self._state: RatesState = Loading()
        self._listeners: list[StateListener] = []

    @property
    def state(self) -> RatesState:
        with self._state_lock:
            return self._state

    @property
    def older_cursor(self) -> str | None:
        with self._lock:
            return self._older_cursor

    @property
    def newer_cursor(self) -> str | None:
        with self._lock:
            return self._newer_cursor

    @property
    def loading_older(self) -> bool:
        with self._lock:
            return FetchKind.OLDER in self._in_flight

    @property
    def loading_newer(self) -> bool:
        with self._lock:
            return FetchKind.NEWER in self._in_flight

    def rates(self) -> tuple[RateRecord, ...]:
        return self._store.snapshot()

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register ``listener``; it is called with the current state right away and on every change.

        Listeners run while publications are serialised and must not block. A listener
        that raises on a later publication is logged and the others are still notified.
        """
        with self._state_lock:
            self._listeners.append(listener)
            listener(self._state)

        def unsubscribe() -> None:
            with self._state_lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def initial_load(self) -> LoadOutcome:
        showing_error = isinstance(self.state, Error)
        with self._lock:
            if FetchKind.DEFAULT in self._in_flight:
                logger.debug("Initial load skipped: already loading.")
                return LoadOutcome.SKIPPED
            has_data = bool(self._store)
            if has_data and not showing_error:
                logger.debug("Initial load skipped: data already present.")
                republish = True
            else:
                logger.debug("Initial load triggered or retrying from error.")
                self._in_flight.add(FetchKind.DEFAULT)
                republish = False

        if republish:
            self._publish_rates()
            return LoadOutcome.SKIPPED

        with self._releasing(FetchKind.DEFAULT):
            if not has_data:
                self._set_state(Loading())
            return self._run_fetch(FetchKind.DEFAULT, None)

    def refresh(self) -> LoadOutcome:
        """Re-read the default listing and re-seed both cursors from it."""
        with self._lock:
            if FetchKind.DEFAULT in self._in_flight:
                logger.debug("Refresh skipped: already loading.")
                return LoadOutcome.SKIPPED
            self._in_flight.add(FetchKind.DEFAULT)

        with self._releasing(FetchKind.DEFAULT):
            return self._run_fetch(FetchKind.DEFAULT, None)

    def load_older(self) -> LoadOutcome:
        return self._load_direction(FetchKind.OLDER)

    def load_newer(self) -> LoadOutcome:
        return self._load_direction(FetchKind.NEWER)

    def _load_direction(self, kind: FetchKind) -> LoadOutcome:
        with self._lock:
            target = self._older_cursor if kind is FetchKind.OLDER else self._newer_cursor
            loading = kind in self._in_flight
            if loading or target is None:
                logger.debug("Load %s: Skipped (loading: %s, url: %s)", kind, loading, target)
                return LoadOutcome.SKIPPED
            self._in_flight.add(kind)

        with self._releasing(kind):
            logger.debug("Loading %s rates from: %s", kind, target)
            return self._run_fetch(kind, target)

    @contextmanager
    def _releasing(self, kind: FetchKind) -> Iterator[None]:
        try:
            yield
        finally:
            with self._lock:
                self._in_flight.discard(kind)

    def _run_fetch(self, kind: FetchKind, target: str | None) -> LoadOutcome:
        try:
            page = self.fetcher.fetch(target)
        except FetchError as exc:
            self._handle_failure(kind, target, exc)
            return LoadOutcome.FAILED

        with self._lock:
            added = self._store.merge_all(page.results)
            if kind is FetchKind.DEFAULT:
                self._older_cursor = page.older_token
                self._newer_cursor = page.newer_token
            elif kind is FetchKind.OLDER:
                self._older_cursor = page.older_token
            else:
                self._newer_cursor = page.newer_token
            total = len(self._store)
            older_cursor, newer_cursor = self._older_cursor, self._newer_cursor

        logger.info("Added %d new unique rates. Total unique: %d", added, total)
        self._publish_rates()
        logger.debug(
            "%s fetch finished. Total rates: %d, older cursor: %s, newer cursor: %s",
            kind,
            total,
            older_cursor,
            newer_cursor,
        )
        return LoadOutcome.LOADED

    def _handle_failure(self, kind: FetchKind, target: str | None, error: FetchError) -> None:
        with self._state_lock:
            if self._store:
                logger.error(
                    "%s fetch failed for %s, but existing data is present. Last error: %s",
                    kind,
                    target,
                    error,
                )
                return
            message = f"Failed to fetch data: {error.message}"
            logger.error("%s fetch failed for %s. Setting error state: %s", kind, target, message)
            self._set_state(Error(message))

    def _publish_rates(self) -> None:
        with self._state_lock:
            snapshot = self._store.snapshot()
            self._set_state(Success(snapshot) if snapshot else Error(NO_RATES_MESSAGE))

    def _set_state(self, state: RatesState) -> None:
        with self._state_lock:
            if state == self._state:
                return
            self._state = state
            for listener in list(self._listeners):
                try:
                    listener(state)
                except Exception:
                    logger.exception("State listener %r failed on %s", listener, type(state).__name__)


def build_default_controller() -> PaginationController:
    return PaginationController(build_default_fetcher())


__all__ = [
    "Error",
    "FetchKind",
    "LoadOutcome",
    "Loading",
    "NO_RATES_MESSAGE",
    "PageFetcher",
    "PaginationController",
    "RatesState",
    "StateListener",
    "Success",
    "build_default_controller",
]
