"""Thin wrapper around the Stripe SDK.

Everything the app needs from the billing provider goes through this module:
hosted checkout for the membership plan, subscription retrieval and webhook
event verification. Keys are read from the Flask config on every call so the
app never holds a module-level API key.
"""
import json
import logging

import stripe
from flask import current_app

logger = logging.getLogger(__name__)


class BillingConfigError(Exception):
    """A required billing setting is missing for this deployment."""


class WebhookSignatureError(Exception):
    """The webhook payload could not be verified against its signature."""


class BillingProviderError(Exception):
    """The billing provider rejected or failed a request."""

    def __init__(self, message, details=None, type=None):
        self.message = message
        self.details = details
        self.type = type
        super().__init__(message)


def require_setting(key: str) -> str:
    value = current_app.config.get(key)
    if not value:
        raise BillingConfigError(f"Missing {key} in configuration")
    return value


def _provider_error(exc: "stripe.StripeError") -> BillingProviderError:
    err = getattr(exc, "error", None)
    return BillingProviderError(
        str(getattr(exc, "user_message", None) or exc) or "Billing provider error",
        details=getattr(err, "message", None),
        type=getattr(err, "type", None) or type(exc).__name__,
    )


def _as_dict(obj) -> dict:
    to_dict = getattr(obj, "to_dict", None)
    return to_dict() if callable(to_dict) else dict(obj)


def create_membership_checkout(contact: str) -> str:
    """Create a hosted subscription checkout and return its redirect URL.

    The contact and plan are attached to both the session and the resulting
    subscription, since Stripe has no notion of our contact identifier and
    the webhook reconciler needs it back.
    """
    api_key = require_setting("STRIPE_SECRET_KEY")
    price_id = require_setting("STRIPE_PRICE_FREE_DELIVERY")
    plan = current_app.config.get("MEMBERSHIP_PLAN", "FREE_DELIVERY")
    base_url = (current_app.config.get("PUBLIC_BASE_URL") or "http://localhost:3000").rstrip("/")
    metadata = {"contact": contact, "plan": plan}

    try:
        session = stripe.checkout.Session.create(
            api_key=api_key,
            mode="subscription",
            line_items=[{"price": price_id, "quantity": 1}],
            success_url=f"{base_url}/subscribe?success=1",
            cancel_url=f"{base_url}/subscribe?canceled=1",
            customer_creation="always",
            allow_promotion_codes=True,
            metadata=metadata,
            subscription_data={"metadata": metadata},
        )
    except stripe.StripeError as exc:
        logger.error("Checkout session creation failed: %s", exc)
        raise _provider_error(exc) from exc
    logger.info({"event": "checkout_session_created", "session_id": getattr(session, "id", None), "contact": contact})
    return session.url


def retrieve_subscription(subscription_id: str):
    api_key = require_setting("STRIPE_SECRET_KEY")
    try:
        sub = stripe.Subscription.retrieve(subscription_id, api_key=api_key)
    except stripe.StripeError as exc:
        logger.error("Subscription retrieve failed for %s: %s", subscription_id, exc)
        raise _provider_error(exc) from exc
    return _as_dict(sub)


def construct_event(payload: bytes, signature: str) -> dict:
    """Verify ``payload`` against the Stripe-Signature header and parse it.

    ``payload`` must be the raw request body; re-serialised JSON will not
    match the signature. Nothing in the body is read before verification.
    """
    secret = require_setting("STRIPE_WEBHOOK_SECRET")
    if isinstance(payload, bytes):
        try:
            payload = payload.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise WebhookSignatureError("Payload is not valid UTF-8") from exc
    try:
        stripe.WebhookSignature.verify_header(
            payload, signature, secret, tolerance=stripe.Webhook.DEFAULT_TOLERANCE
        )
    except stripe.SignatureVerificationError as exc:
        raise WebhookSignatureError(str(exc)) from exc
    try:
        event = json.loads(payload)
    except ValueError as exc:
        raise WebhookSignatureError("Payload is not valid JSON") from exc
    if not isinstance(event, dict):
        raise WebhookSignatureError("Payload is not a Stripe event")
    return event


__all__ = [
    "BillingConfigError",
    "require_setting",
    "BillingProviderError",
    "WebhookSignatureError",
    "create_membership_checkout",
    "retrieve_subscription",
    "construct_event",
]
