"""
Shipping types.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Literal

from cartsync._types import ZERO, non_negative

type Region = Literal["metro", "other"]

type RegionClassifier = Callable[[str], Region]
"""districtClassifier — pure, may be table-driven."""

# Stored names of the two rate buckets in the storefront admin
METRO_RECORD = "dhaka"
OTHER_RECORD = "other-districts"


@dataclass(frozen=True, slots=True)
class RateTable:
    """
    Flat charge per region bucket.

    Rates are sanitized on read: missing, NaN or negative → 0.
    """

    metro: Decimal = ZERO
    other: Decimal = ZERO

    def rate_for(self, region: Region) -> Decimal:
        return non_negative(self.metro if region == "metro" else self.other)

    @classmethod
    def from_mapping(cls, rates: Mapping[str, Any]) -> RateTable:
        """{"metro": 60, "other": 120}"""
        return cls(metro=non_negative(rates.get("metro")), other=non_negative(rates.get("other")))

    @classmethod
    def from_records(cls, records: Iterable[Mapping[str, Any]]) -> RateTable:
        """
        Build from admin records.

        Example:
            RateTable.from_records([
                {"type": "Dhaka", "charge": 60},
                {"type": "Other-Districts", "charge": 120},
            ])
        """
        metro = other = ZERO
        for record in records:
            kind = str(record.get("type", "")).strip().lower()
            if kind == METRO_RECORD:
                metro = non_negative(record.get("charge"))
            elif kind == OTHER_RECORD:
                other = non_negative(record.get("charge"))
        return cls(metro=metro, other=other)


__all__ = ("Region", "RegionClassifier", "RateTable")
