"""
Cart normalizer — merge duplicate keys, keep every quantity in 1..cap.

    normalize(normalize(lines)) == normalize(lines)
"""

from __future__ import annotations

from collections.abc import Iterable

from cartsync.cart._types import CartLine, LineKey, MAX_PER_LINE


def clamp_quantity(quantity: int, cap: int = MAX_PER_LINE) -> int:
    return max(1, min(quantity, cap))


def merge(lines: Iterable[CartLine]) -> tuple[CartLine, ...]:
    """
    Group by (product_id, variant_key) and sum duplicates without clamping.

    First-seen order of distinct keys is preserved. The first occurrence
    wins for price, currency and title. Used at entry points that still
    have to report an over-cap quantity back to the caller.
    """
    merged: dict[LineKey, CartLine] = {}

    for line in lines:
        seen = merged.get(line.key)
        if seen is None:
            merged[line.key] = line
        else:
            merged[line.key] = seen.with_quantity(seen.quantity + line.quantity)

    return tuple(merged.values())


def normalize(
    lines: Iterable[CartLine],
    *,
    max_per_line: int = MAX_PER_LINE,
) -> tuple[CartLine, ...]:
    """Merge duplicates, then clamp every quantity to 1..cap. Never fails, never calls out."""
    return tuple(
        line if clamp_quantity(line.quantity, max_per_line) == line.quantity
        else line.with_quantity(clamp_quantity(line.quantity, max_per_line))
        for line in merge(lines)
    )


__all__ = ("clamp_quantity", "merge", "normalize")
