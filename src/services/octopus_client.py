from __future__ import annotations

import logging
from typing import Any

import requests
from pydantic import ValidationError
from requests import Response

from config import config
from domain.rates import RatesPage

from .fetch_errors import EmptyBodyError, TransportError, UnexpectedFetchError, error_for_status

logger = logging.getLogger(__name__)

_TRANSPORT_EXCEPTIONS = (
    requests.ConnectionError,
    requests.Timeout,
    requests.exceptions.ChunkedEncodingError,
    requests.exceptions.ContentDecodingError,
)


class OctopusClient:
    """Single-request client for the Octopus standard-unit-rates listing.

    Every failure is raised as a :class:`FetchError` subclass so callers can
    decide on retries without knowing about ``requests``.
    """

    def __init__(
        self,
        *,
        product_code: str,
        tariff_code: str,
        base_url: str = "https://api.octopus.energy",
        timeout: float = 10.0,
        session: requests.Session | None = None,
    ) -> None:
        if not product_code:
            raise ValueError("product_code must be provided")
        if not tariff_code:
            raise ValueError("tariff_code must be provided")
        if timeout <= 0:
            raise ValueError("timeout must be > 0")

        self.base_url = base_url.rstrip("/")
        self.product_code = product_code
        self.tariff_code = tariff_code
        self.timeout = timeout
        self._session = session or requests.Session()

    @property
    def default_url(self) -> str:
        return (
            f"{self.base_url}/v1/products/{self.product_code}"
            f"/electricity-tariffs/{self.tariff_code}/standard-unit-rates/"
        )

    def get_page(self, target: str | None = None) -> RatesPage:
        """Fetch the default listing, or the page behind a pagination token when ``target`` is given."""
        url = target if target is not None else self.default_url
        payload = self._request("GET", url)
        try:
            return RatesPage.from_payload(payload)
        except (ValidationError, ValueError) as exc:
            raise UnexpectedFetchError("Rates payload has an unexpected shape", payload=payload) from exc

    def _request(self, method: str, url: str) -> dict[str, Any]:
        try:
            response = self._session.request(method, url, timeout=self.timeout)
            response.raise_for_status()
        except requests.HTTPError as exc:
            resp = exc.response
            if resp is None:
                raise UnexpectedFetchError("Rates request failed without a response") from exc
            logger.error("API Error: %s %s for URL: %s", resp.status_code, resp.reason, url)
            raise error_for_status(resp.status_code, payload=self._error_payload(resp)) from exc
        except _TRANSPORT_EXCEPTIONS as exc:
            raise TransportError(f"Network error: {exc}") from exc
        except requests.RequestException as exc:
            raise UnexpectedFetchError(f"Rates request failed: {exc}") from exc

        if not response.content:
            raise EmptyBodyError("Empty response body from server", status_code=response.status_code)

        try:
            payload_raw = response.json()
        except ValueError as exc:
            raise UnexpectedFetchError("Rates API returned invalid JSON", payload=response.text) from exc

        if payload_raw is None:
            raise EmptyBodyError("Empty response body from server", status_code=response.status_code)
        if not isinstance(payload_raw, dict):
            raise UnexpectedFetchError("Rates API returned unexpected payload type", payload=payload_raw)

        payload: dict[str, Any] = payload_raw
        return payload

    @staticmethod
    def _error_payload(response: Response) -> Any:
        try:
            return response.json()
        except ValueError:
            return response.text


def build_default_client(session: requests.Session | None = None) -> OctopusClient:
    settings = config()
    return OctopusClient(
        product_code=settings.product_code,
        tariff_code=settings.tariff_code,
        base_url=settings.base_url,
        timeout=settings.request_timeout_seconds,
        session=session,
    )


__all__ = ["OctopusClient", "build_default_client"]
