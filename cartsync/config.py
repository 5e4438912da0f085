"""
Engine configuration — storefront constants in one immutable object.

    config = (
        EngineConfig()
        .with_base_currency("BDT", minor_units=2)
        .with_rates(USD=120, EUR=130)
        .with_metro_region("dhaka")
        .with_lookup_failure_blocking(False)
    )

Note: Immutable — each method returns a new EngineConfig, so one instance can
be shared by every request.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from decimal import Decimal

from cartsync._types import PaymentMethod, to_money


def _default_rates() -> dict[str, Decimal]:
    return {"USD": Decimal("120")}


@dataclass(frozen=True, slots=True)
class EngineConfig:
    """
    Storefront rules that are constants of the business, not of a request.

    base_currency / minor_units: totals are expressed and rounded here.
    max_per_line: cap on units of one product+variant in a cart.
    conversion_rates: foreign currency → base multiplier, used when the
        caller does not pass live rates.
    metro_region: substring that marks a destination as "metro".
    delivery_methods: payment methods that ship goods (and pay shipping).
    proof_required_methods: need sender number + transaction reference.
    block_on_lookup_failure: refuse to submit while any stock lookup failed.
    """

    base_currency: str = "BDT"
    minor_units: int = 2
    max_per_line: int = 3
    conversion_rates: Mapping[str, Decimal] = field(default_factory=_default_rates)
    metro_region: str = "dhaka"
    delivery_country: str = "Bangladesh"
    delivery_methods: frozenset[PaymentMethod] = frozenset(
        {PaymentMethod.COD, PaymentMethod.BKASH, PaymentMethod.PAY_FIRST}
    )
    proof_required_methods: frozenset[PaymentMethod] = frozenset({PaymentMethod.BKASH})
    sender_number_length: int = 11
    block_on_lookup_failure: bool = True
    order_id_prefix: str = "ORDER_"

    def with_base_currency(self, code: str, *, minor_units: int = 2) -> EngineConfig:
        return replace(self, base_currency=code.upper(), minor_units=minor_units)

    def with_rates(
        self,
        rates: Mapping[str, object] | None = None,
        **by_code: object,
    ) -> EngineConfig:
        """
        Replace conversion rates.

        Example:
            .with_rates(USD=120)
            .with_rates({"USD": "119.5", "EUR": 130})
        """
        merged = {**(rates or {}), **by_code}
        return replace(
            self,
            conversion_rates={code.upper(): to_money(rate) for code, rate in merged.items()},
        )

    def with_metro_region(self, name: str) -> EngineConfig:
        return replace(self, metro_region=name.strip().lower())

    def with_max_per_line(self, cap: int) -> EngineConfig:
        if cap < 1:
            raise ValueError("max_per_line must be at least 1")
        return replace(self, max_per_line=cap)

    def with_lookup_failure_blocking(self, block: bool = True) -> EngineConfig:
        return replace(self, block_on_lookup_failure=block)

    def ships_to(self, country: str) -> bool:
        return country.strip().lower() == self.delivery_country.lower()


DEFAULT_CONFIG = EngineConfig()


__all__ = ("EngineConfig", "DEFAULT_CONFIG")
