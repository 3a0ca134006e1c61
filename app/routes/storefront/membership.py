import logging
from flask import request, jsonify
from sqlalchemy.exc import SQLAlchemyError
from app.services import billing
from app.services.subscriptions import lookup_membership
from app.utils import error
from . import storefront_bp


@storefront_bp.route("/membership", methods=["GET"])
def get_membership():
    """Membership flag for a contact; unknown contacts are simply not members."""
    contact = (request.args.get("contact") or "").strip()
    try:
        membership = lookup_membership(contact)
    except SQLAlchemyError as e:
        logging.error("Membership lookup failed: %s", e, exc_info=True)
        return error("Membership lookup failed", status=500, details=str(e))
    return jsonify(membership.to_dict()), 200


@storefront_bp.route("/checkout", methods=["POST"])
def start_checkout():
    """Create a hosted Stripe checkout for the free-delivery membership."""
    data = request.get_json(silent=True) or {}
    contact = str(data.get("contact") or "").strip() if isinstance(data, dict) else ""
    if not contact:
        return error("Contact is required (email or phone).", status=400)
    try:
        url = billing.create_membership_checkout(contact)
    except billing.BillingConfigError as e:
        logging.error("Checkout misconfigured: %s", e)
        return error(str(e), status=500)
    except billing.BillingProviderError as e:
        return error(e.message or "Checkout failed", status=500, details=e.details, type=e.type)
    return jsonify({"url": url}), 200
