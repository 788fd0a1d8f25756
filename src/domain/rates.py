from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal
from typing import Any, Iterable

from pydantic import AwareDatetime, BaseModel, ConfigDict, ValidationError, field_validator, model_validator

logger = logging.getLogger(__name__)

RateKey = tuple[datetime, Decimal]


class RateRecord(BaseModel):
    """Unit rate applying to the half-open slot ``[valid_from, valid_to)``.

    Field names match the wire format of the standard-unit-rates endpoint.
    """

    model_config = ConfigDict(frozen=True)

    value_exc_vat: Decimal
    value_inc_vat: Decimal
    valid_from: AwareDatetime
    valid_to: AwareDatetime
    payment_method: str | None = None

    @field_validator("value_exc_vat", "value_inc_vat", mode="before")
    @classmethod
    def _to_decimal(cls, value: Any) -> Any:
        # Floats go through str() so 15.54 stays Decimal("15.54").
        if isinstance(value, float):
            return Decimal(str(value))
        return value

    @model_validator(mode="after")
    def _validate_slot(self) -> RateRecord:
        if self.valid_from >= self.valid_to:
            raise ValueError("valid_from must be earlier than valid_to")
        return self

    @property
    def key(self) -> RateKey:
        """Ordering and identity key; ``valid_to`` is not part of it."""
        return (self.valid_from, self.value_inc_vat)

    def covers(self, instant: datetime) -> bool:
        return self.valid_from <= instant < self.valid_to


class RatesPage(BaseModel):
    """One page of the standard-unit-rates listing.

    The upstream listing is ordered newest first, so ``next`` points further
    back in time and ``previous`` points towards newer slots.
    """

    model_config = ConfigDict(frozen=True)

    count: int
    next: str | None = None
    previous: str | None = None
    results: tuple[RateRecord, ...] = ()

    @property
    def older_token(self) -> str | None:
        return self.next

    @property
    def newer_token(self) -> str | None:
        return self.previous

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> RatesPage:
        """Build a page, dropping individual result entries that fail validation."""
        raw_results = payload.get("results")
        if raw_results is None:
            raw_results = []
        if not isinstance(raw_results, list):
            raise ValueError("results must be a list")
        return cls(
            count=payload.get("count"),  # type: ignore[arg-type]
            next=payload.get("next"),
            previous=payload.get("previous"),
            results=tuple(parse_rate_records(raw_results)),
        )


def parse_rate_records(entries: Iterable[Any]) -> list[RateRecord]:
    records: list[RateRecord] = []
    for entry in entries:
        try:
            records.append(RateRecord.model_validate(entry))
        except ValidationError as exc:
            logger.warning("Skipping malformed rate entry %s: %s", entry, exc.errors(include_url=False))
    return records


__all__ = ["RateKey", "RateRecord", "RatesPage", "parse_rate_records"]
