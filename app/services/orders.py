"""Order intake and fulfilment status changes."""
import logging
import math
from datetime import datetime
from typing import List, Optional

from flask import current_app

from models import db
from models.order import Order, OrderStatusLog, ORDER_STATUSES, DELIVERY_WINDOWS
from app.services import pricing
from app.services.subscriptions import lookup_membership

logger = logging.getLogger(__name__)


class OrderValidationError(Exception):
    pass


class InvalidTransition(Exception):
    pass


# Allowed next statuses; DELIVERED and CANCELED are terminal
STATUS_TRANSITIONS = {
    "NEW": {"CONFIRMED", "CANCELED"},
    "CONFIRMED": {"OUT_FOR_DELIVERY", "CANCELED"},
    "OUT_FOR_DELIVERY": {"DELIVERED", "CANCELED"},
    "DELIVERED": set(),
    "CANCELED": set(),
}

ACTIVE_DELIVERY_STATUSES = ("CONFIRMED", "OUT_FOR_DELIVERY")

# Money columns are 32-bit integers
MAX_ORDER_CENTS = 2**31 - 1


def _text(value) -> str:
    return "" if value is None else str(value)


def _whole_number(value) -> Optional[int]:
    """Parse a JSON number or numeric string as an exact integer.

    Fractional, non-finite and non-numeric values give None.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
        try:
            return int(value)
        except ValueError:
            pass
        try:
            value = float(value)
        except ValueError:
            return None
    if isinstance(value, float) and math.isfinite(value) and value.is_integer():
        return int(value)
    return None


def validate_items(items) -> List[dict]:
    """Check a submitted item list and return a normalized snapshot.

    Any bad line rejects the whole list, including one that pushes the
    subtotal past MAX_ORDER_CENTS.
    """
    if not isinstance(items, list) or not items:
        raise OrderValidationError("Items are required.")
    lines = []
    subtotal = 0
    for it in items:
        if not isinstance(it, dict):
            raise OrderValidationError("Invalid item payload.")
        qty = _whole_number(it.get("qty"))
        price_cents = _whole_number(it.get("price_cents"))
        if (
            not it.get("product_id")
            or not it.get("name")
            or qty is None
            or price_cents is None
            or not 0 < qty <= MAX_ORDER_CENTS
            or not 0 <= price_cents <= MAX_ORDER_CENTS
        ):
            raise OrderValidationError("Invalid item payload.")
        subtotal += qty * price_cents
        if subtotal > MAX_ORDER_CENTS:
            raise OrderValidationError("Invalid item payload.")
        line = {
            "product_id": str(it["product_id"]),
            "name": str(it["name"]),
            "qty": qty,
            "price_cents": price_cents,
        }
        if it.get("image_url"):
            line["image_url"] = str(it["image_url"])
        lines.append(line)
    return lines


def _parse_requested_time(value) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None


def _client_delivery_fee(value) -> int:
    # whole cents in range, anything else counts as no fee
    fee = _whole_number(value if value is not None else 0)
    if fee is None or not 0 <= fee <= MAX_ORDER_CENTS:
        return 0
    return fee


def build_order(payload: dict) -> Order:
    """Validate and price a new order without touching the session.

    Raises OrderValidationError on the first failed check.
    """
    payload = payload if isinstance(payload, dict) else {}
    unit = _text(payload.get("unit")).strip()
    if not unit:
        raise OrderValidationError("Unit is required.")

    lines = validate_items(payload.get("items"))

    window = _text(payload.get("delivery_window")).strip() or "ASAP_30_60"
    if window not in DELIVERY_WINDOWS:
        raise OrderValidationError("Invalid delivery window.")
    requested_time = None
    if window == "SCHEDULED":
        requested_time = _parse_requested_time(payload.get("requested_time"))
        if requested_time is None:
            raise OrderValidationError("Scheduled delivery requires a valid requested time.")

    subtotal = pricing.subtotal_of(lines)
    if current_app.config.get("DELIVERY_FEE_POLICY") == "server":
        membership = lookup_membership(payload.get("contact"))
        delivery_fee = pricing.price(lines, membership.is_member).delivery_fee_cents
    else:
        delivery_fee = _client_delivery_fee(payload.get("delivery_fee_cents"))
    if subtotal + delivery_fee > MAX_ORDER_CENTS:
        raise OrderValidationError("Order total is too large.")

    return Order(
        customer_name=_text(payload.get("customer_name")).strip() or None,
        phone=_text(payload.get("phone")).strip() or None,
        unit=unit,
        notes=_text(payload.get("notes")).strip() or None,
        items=lines,
        delivery_window=window,
        requested_time=requested_time,
        subtotal_cents=subtotal,
        delivery_fee_cents=delivery_fee,
        total_cents=subtotal + delivery_fee,
        status="NEW",
    )


def save_order(order: Order) -> Order:
    """Stage ``order`` with its NEW status log.

    Does NOT commit; caller is responsible for commit/rollback.
    """
    db.session.add(order)
    db.session.flush()
    db.session.add(OrderStatusLog(order_id=order.id, status="NEW", updated_by="customer"))
    return order


def quote_cart(payload: dict) -> dict:
    payload = payload if isinstance(payload, dict) else {}
    lines = validate_items(payload.get("items"))
    membership = lookup_membership(payload.get("contact"))
    quote = pricing.price(lines, membership.is_member)
    return {
        **quote.to_dict(),
        "is_member": membership.is_member,
        "free_delivery_gap_cents": pricing.member_gap(quote.subtotal_cents, membership.is_member),
    }


def update_order_status(order: Order, new_status: str, *, actor: str) -> Order:
    """Move ``order`` to ``new_status``. Does NOT commit."""
    if new_status not in ORDER_STATUSES:
        raise OrderValidationError("Invalid status")
    if new_status not in STATUS_TRANSITIONS.get(order.status, set()):
        raise InvalidTransition(f"Cannot move order from {order.status} to {new_status}")
    order.status = new_status
    db.session.add(OrderStatusLog(order_id=order.id, status=new_status, updated_by=actor))
    logger.info({"event": "order_status_changed", "order_id": order.id, "status": new_status, "actor": actor})
    return order


def list_orders(statuses=None, *, newest_first=True, limit=200) -> List[Order]:
    query = Order.query
    if statuses:
        query = query.filter(Order.status.in_(list(statuses)))
    order_by = Order.created_at.desc() if newest_first else Order.created_at.asc()
    return query.order_by(order_by, Order.id.desc() if newest_first else Order.id.asc()).limit(limit).all()


__all__ = [
    "OrderValidationError",
    "InvalidTransition",
    "STATUS_TRANSITIONS",
    "ACTIVE_DELIVERY_STATUSES",
    "validate_items",
    "MAX_ORDER_CENTS",
    "build_order",
    "save_order",
    "quote_cart",
    "update_order_status",
    "list_orders",
]
