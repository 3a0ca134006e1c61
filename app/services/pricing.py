"""Delivery pricing rule.

Pure functions only: the same cart and membership flag always produce the
same quote, so the server can re-derive totals regardless of what a client
submitted.
"""
from typing import Iterable, Mapping, NamedTuple, Optional

DEFAULT_FREE_DELIVERY_MIN_CENTS = 2500
DEFAULT_NON_MEMBER_DELIVERY_FEE_CENTS = 399


class Quote(NamedTuple):
    subtotal_cents: int
    delivery_fee_cents: int
    total_cents: int

    def to_dict(self):
        return self._asdict()


def _settings(free_delivery_min: Optional[int], non_member_fee: Optional[int]):
    if free_delivery_min is None or non_member_fee is None:
        try:
            from flask import current_app
            cfg = current_app.config
        except RuntimeError:
            cfg = {}
        if free_delivery_min is None:
            free_delivery_min = cfg.get("FREE_DELIVERY_MIN_CENTS", DEFAULT_FREE_DELIVERY_MIN_CENTS)
        if non_member_fee is None:
            non_member_fee = cfg.get("NON_MEMBER_DELIVERY_FEE_CENTS", DEFAULT_NON_MEMBER_DELIVERY_FEE_CENTS)
    return int(free_delivery_min), int(non_member_fee)


def subtotal_of(lines: Iterable[Mapping]) -> int:
    return sum(int(line["price_cents"]) * int(line["qty"]) for line in lines)


def delivery_fee_for(subtotal: int, is_member: bool, *, has_items: bool = True,
                     free_delivery_min: Optional[int] = None,
                     non_member_fee: Optional[int] = None) -> int:
    free_delivery_min, non_member_fee = _settings(free_delivery_min, non_member_fee)
    if not has_items:
        return 0
    if is_member and subtotal >= free_delivery_min:
        return 0
    return non_member_fee


def price(lines, is_member: bool, *, free_delivery_min: Optional[int] = None,
          non_member_fee: Optional[int] = None) -> Quote:
    """Quote a cart of ``{"price_cents", "qty"}`` lines."""
    lines = list(lines)
    subtotal = subtotal_of(lines)
    fee = delivery_fee_for(
        subtotal,
        is_member,
        has_items=bool(lines),
        free_delivery_min=free_delivery_min,
        non_member_fee=non_member_fee,
    )
    return Quote(subtotal, fee, subtotal + fee)


def member_gap(subtotal: int, is_member: bool, *, free_delivery_min: Optional[int] = None) -> int:
    """Cents a member still needs to spend before delivery becomes free."""
    if not is_member:
        return 0
    free_delivery_min, _ = _settings(free_delivery_min, 0)
    return max(0, free_delivery_min - subtotal)


__all__ = [
    "Quote",
    "price",
    "subtotal_of",
    "delivery_fee_for",
    "member_gap",
    "DEFAULT_FREE_DELIVERY_MIN_CENTS",
    "DEFAULT_NON_MEMBER_DELIVERY_FEE_CENTS",
]
