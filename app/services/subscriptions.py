"""Membership state: webhook reconciliation and lookup.

Subscription rows are keyed by the Stripe subscription id. Every write is a
full-row upsert, so redelivered events converge on one row whose contents
reflect the last event processed.
"""
import logging
from datetime import datetime, timezone
from typing import Mapping, NamedTuple, Optional

from flask import current_app
from sqlalchemy.dialects import postgresql, sqlite

from models import db
from models.subscription import Subscription
from app.services import billing

logger = logging.getLogger(__name__)

DEFAULT_PLAN = "FREE_DELIVERY"

CHECKOUT_COMPLETED = "checkout.session.completed"
SUBSCRIPTION_UPDATED = "customer.subscription.updated"
SUBSCRIPTION_DELETED = "customer.subscription.deleted"

# Outcomes reported by reconcile_event
UPSERTED = "upserted"
SKIPPED = "skipped"
IGNORED = "ignored"

# Dialects with INSERT ... ON CONFLICT DO UPDATE
UPSERT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class Membership(NamedTuple):
    is_member: bool
    status: str
    current_period_end: Optional[datetime]

    def to_dict(self):
        return {
            "isMember": self.is_member,
            "status": self.status,
            "current_period_end": self.current_period_end.isoformat() if self.current_period_end else None,
        }


def _plan_default() -> str:
    return current_app.config.get("MEMBERSHIP_PLAN", DEFAULT_PLAN)


def _ref_id(value) -> Optional[str]:
    """Stripe references arrive either as an id string or an expanded object."""
    if not value:
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, Mapping):
        return value.get("id")
    return getattr(value, "id", None)


def _metadata(obj: Mapping) -> Mapping:
    return obj.get("metadata") or {}


def _clean(value) -> str:
    return (value or "").strip() if isinstance(value, str) else ""


def _period_end(sub: Mapping) -> Optional[datetime]:
    ts = sub.get("current_period_end")
    if not ts:
        # newer API versions report billing periods per subscription item
        items = (sub.get("items") or {}).get("data") or []
        ts = items[0].get("current_period_end") if items else None
    if not ts:
        return None
    return datetime.fromtimestamp(int(ts), tz=timezone.utc)


def upsert_subscription(*, stripe_customer_id: str, stripe_subscription_id: str,
                        status: str, plan: str, contact: str,
                        current_period_end: Optional[datetime]) -> None:
    """Insert or fully replace the row for ``stripe_subscription_id``.

    Does NOT commit; caller is responsible for commit/rollback.
    """
    now = datetime.utcnow()
    values = {
        "stripe_customer_id": stripe_customer_id,
        "stripe_subscription_id": stripe_subscription_id,
        "status": status,
        "plan": plan,
        "contact": contact,
        "current_period_end": current_period_end,
    }
    dialect = db.engine.dialect.name
    insert = UPSERT_INSERTS.get(dialect)
    if insert is None:
        raise RuntimeError(f"Subscription upsert is not supported on {dialect}")
    stmt = insert(Subscription.__table__).values(created_at=now, updated_at=now, **values)
    stmt = stmt.on_conflict_do_update(
        index_elements=["stripe_subscription_id"],
        set_={**{key: stmt.excluded[key] for key in values}, "updated_at": now},
    )
    db.session.execute(stmt)


def _handle_checkout_completed(session: Mapping, retrieve_subscription) -> str:
    subscription_id = _ref_id(session.get("subscription"))
    customer_id = _ref_id(session.get("customer"))
    contact = _clean(_metadata(session).get("contact"))
    plan = _clean(_metadata(session).get("plan")) or _plan_default()
    if not subscription_id or not customer_id or not contact:
        return SKIPPED

    # the session's own view of the subscription may be stale
    sub = retrieve_subscription(subscription_id)
    upsert_subscription(
        stripe_customer_id=customer_id,
        stripe_subscription_id=subscription_id,
        status=sub.get("status") or "inactive",
        plan=_clean(_metadata(sub).get("plan")) or plan,
        contact=contact,
        current_period_end=_period_end(sub),
    )
    return UPSERTED


def _handle_subscription_change(sub: Mapping, *, force_status: Optional[str] = None) -> str:
    subscription_id = sub.get("id")
    customer_id = _ref_id(sub.get("customer"))
    contact = _clean(_metadata(sub).get("contact"))
    if not subscription_id or not customer_id or not contact:
        return SKIPPED
    upsert_subscription(
        stripe_customer_id=customer_id,
        stripe_subscription_id=subscription_id,
        status=force_status or sub.get("status") or "inactive",
        plan=_clean(_metadata(sub).get("plan")) or _plan_default(),
        contact=contact,
        current_period_end=_period_end(sub),
    )
    return UPSERTED


def reconcile_event(event: Mapping, retrieve_subscription=None) -> str:
    """Apply a verified billing event to subscription state.

    Returns one of ``upserted``, ``skipped`` (authentic but missing identifying
    fields) or ``ignored`` (event type not handled). Store and provider errors
    propagate to the caller.
    """
    retrieve_subscription = retrieve_subscription or billing.retrieve_subscription
    event_type = event.get("type")
    obj = (event.get("data") or {}).get("object") or {}

    if event_type == CHECKOUT_COMPLETED:
        outcome = _handle_checkout_completed(obj, retrieve_subscription)
    elif event_type == SUBSCRIPTION_UPDATED:
        outcome = _handle_subscription_change(obj)
    elif event_type == SUBSCRIPTION_DELETED:
        outcome = _handle_subscription_change(obj, force_status="canceled")
    else:
        outcome = IGNORED

    logger.info({"event": "billing_webhook", "type": event_type, "id": event.get("id"), "outcome": outcome})
    return outcome


def lookup_membership(contact: Optional[str], plan: Optional[str] = None) -> Membership:
    """Latest subscription for ``contact`` mapped to a membership flag."""
    contact = _clean(contact)
    if not contact:
        return Membership(False, "inactive", None)
    row = (
        Subscription.query.filter_by(contact=contact, plan=plan or _plan_default())
        .order_by(Subscription.created_at.desc(), Subscription.id.desc())
        .first()
    )
    if row is None:
        return Membership(False, "inactive", None)
    return Membership(row.status == "active", row.status or "inactive", row.current_period_end)


__all__ = [
    "Membership",
    "UPSERTED",
    "SKIPPED",
    "IGNORED",
    "upsert_subscription",
    "reconcile_event",
    "lookup_membership",
]
