import logging
from flask import Blueprint, request, jsonify
from app.version import API_PREFIX
from app.metrics import WEBHOOK_EVENTS
from app.services import billing
from app.services.subscriptions import reconcile_event
from app.utils import transactional, error

webhooks_bp = Blueprint("webhooks", __name__, url_prefix=API_PREFIX)

logger = logging.getLogger(__name__)


@webhooks_bp.route("/stripe/webhook", methods=["POST"])
@webhooks_bp.route("/webhook", methods=["POST"])
def stripe_webhook():
    """Stripe callback; authenticated only by its signature over the raw body."""
    try:
        billing.require_setting("STRIPE_WEBHOOK_SECRET")
    except billing.BillingConfigError as e:
        return error(str(e), status=500)

    signature = request.headers.get("Stripe-Signature")
    if not signature:
        return error("Missing stripe-signature header", status=400)

    raw_body = request.get_data()
    try:
        event = billing.construct_event(raw_body, signature)
    except billing.WebhookSignatureError as e:
        WEBHOOK_EVENTS.labels("unverified", "rejected").inc()
        logger.warning("Webhook signature verification failed: %s", e)
        return error("Webhook signature verification failed", status=400, details=str(e))

    event_type = event.get("type") or "unknown"
    try:
        with transactional("Webhook reconciliation failed"):
            outcome = reconcile_event(event)
    except Exception as e:
        WEBHOOK_EVENTS.labels(event_type, "failed").inc()
        return error("Webhook handler failed", status=500, details=str(e))

    WEBHOOK_EVENTS.labels(event_type, outcome).inc()
    return jsonify({"received": True}), 200
