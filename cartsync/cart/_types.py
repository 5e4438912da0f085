"""
Cart types — value objects rebuilt from client state on every read.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Any

from cartsync._types import to_money

# ═══════════════════════════════════════════════════════════════════════════════
# Constants
# ═══════════════════════════════════════════════════════════════════════════════

MAX_PER_LINE = 3
NO_VARIANT = "none"

type LineKey = tuple[str, str]
"""(product_id, variant_key) — unique within a normalized cart."""


def variant_of(size: object) -> str:
    """Client sends null / "" / missing for products without sizes."""
    if size is None:
        return NO_VARIANT
    text = str(size).strip()
    return text if text else NO_VARIANT


# ═══════════════════════════════════════════════════════════════════════════════
# CartLine
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class CartLine:
    product_id: str
    variant_key: str
    quantity: int
    unit_price: Decimal
    currency: str
    title: str = ""

    @property
    def key(self) -> LineKey:
        return (self.product_id, self.variant_key)

    @property
    def has_variant(self) -> bool:
        return self.variant_key != NO_VARIANT

    @property
    def label(self) -> str:
        """Human name used in per-item messages."""
        name = self.title or self.product_id
        if self.has_variant:
            return f"{name} (size: {self.variant_key})"
        return name

    def with_quantity(self, quantity: int) -> CartLine:
        return replace(self, quantity=quantity)

    @classmethod
    def from_payload(cls, item: Mapping[str, Any]) -> CartLine:
        """
        Parse one client-persisted item.

        Accepts the storefront's stored shape ({_id, size, price, ...}) as
        well as snake_case / camelCase field names.
        """
        product_id = item.get("product_id") or item.get("productId") or item.get("_id")
        if not product_id:
            raise ValueError("cart item has no product id")

        raw_variant = item.get("variant_key", item.get("variantKey", item.get("size")))
        raw_quantity = item.get("quantity") or 1
        try:
            quantity = int(raw_quantity)
        except (TypeError, ValueError):
            quantity = 1

        price = item.get("unit_price", item.get("unitPrice", item.get("price")))
        currency = str(item.get("currency") or "").strip().upper()

        return cls(
            product_id=str(product_id),
            variant_key=variant_of(raw_variant),
            quantity=quantity,
            unit_price=to_money(price),
            currency=currency,
            title=str(item.get("title") or ""),
        )

    def to_payload(self) -> dict[str, Any]:
        return {
            "productId": self.product_id,
            "variantKey": self.variant_key,
            "quantity": self.quantity,
            "unitPrice": str(self.unit_price),
            "currency": self.currency,
            "title": self.title,
        }


# ═══════════════════════════════════════════════════════════════════════════════
# Cart
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Cart:
    """
    Ordered sequence of CartLine.

    Order is kept for display only; totals ignore it. Never carries stock or
    discount data, those are derived per request.
    """

    lines: tuple[CartLine, ...] = ()

    @classmethod
    def from_lines(cls, lines: Iterable[CartLine], *, max_per_line: int = MAX_PER_LINE) -> Cart:
        """Build a normalized cart (merged duplicates, capped quantities)."""
        # Import here to avoid circular import
        from cartsync.cart._normalize import normalize

        return cls(normalize(lines, max_per_line=max_per_line))

    @classmethod
    def from_payload(
        cls,
        items: Iterable[Mapping[str, Any]],
        *,
        max_per_line: int = MAX_PER_LINE,
    ) -> Cart:
        return cls.from_lines((CartLine.from_payload(i) for i in items), max_per_line=max_per_line)

    def __iter__(self) -> Iterator[CartLine]:
        return iter(self.lines)

    def __len__(self) -> int:
        return len(self.lines)

    @property
    def is_empty(self) -> bool:
        return not self.lines

    @property
    def product_ids(self) -> frozenset[str]:
        return frozenset(line.product_id for line in self.lines)

    def get(self, key: LineKey) -> CartLine | None:
        for line in self.lines:
            if line.key == key:
                return line
        return None

    def first_for(self, product_id: str) -> CartLine | None:
        """First line of a product, whatever its variant."""
        for line in self.lines:
            if line.product_id == product_id:
                return line
        return None

    def total_quantity(self) -> int:
        return sum(line.quantity for line in self.lines)

    def to_payload(self) -> list[dict[str, Any]]:
        return [line.to_payload() for line in self.lines]


__all__ = (
    "MAX_PER_LINE",
    "NO_VARIANT",
    "LineKey",
    "variant_of",
    "CartLine",
    "Cart",
)
