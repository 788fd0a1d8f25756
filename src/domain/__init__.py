"""Domain models for the Agile rates tracker.

Rate slots and listing pages are frozen Pydantic models that mirror the wire
format of the standard-unit-rates endpoint, so they can be validated straight
from JSON and shared between threads without copying.
"""

__all__ = [
    "rates",
]
