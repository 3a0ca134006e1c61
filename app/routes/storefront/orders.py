import logging
from flask import request, jsonify, current_app
from flask_limiter.util import get_remote_address
from extensions import limiter
from app.metrics import ORDERS_PLACED
from app.services.orders import OrderValidationError, build_order, save_order, quote_cart
from app.tasks.notifications import notify_order_placed
from app.utils import transactional, error
from . import storefront_bp


@storefront_bp.route("/orders", methods=["POST"])
@limiter.limit(
    lambda: current_app.config["ORDER_LIMIT_PER_IP"],
    key_func=get_remote_address,
    error_message="Too many orders from this IP",
)
def create_order():
    """Validate, price and store a delivery order."""
    try:
        order = build_order(request.get_json(silent=True))
    except OrderValidationError as e:
        return error(str(e), status=400)
    try:
        with transactional("Order placement failed"):
            save_order(order)
    except Exception as e:
        return error("Order could not be saved", status=500, details=str(e))

    ORDERS_PLACED.inc()
    item_count = sum(line["qty"] for line in order.items)
    try:
        if current_app.config.get("TESTING"):
            notify_order_placed(order.id, order.unit, order.total_cents, item_count)
        else:
            notify_order_placed.delay(order.id, order.unit, order.total_cents, item_count)
    except Exception as e:
        logging.error("Order notification failed for %s: %s", order.id, e)
    return jsonify({"order": order.to_dict()}), 201


@storefront_bp.route("/cart/quote", methods=["POST"])
@limiter.limit(lambda: current_app.config["QUOTE_LIMIT_PER_IP"], key_func=get_remote_address)
def quote():
    """Server-side totals for a cart, including the member delivery waiver."""
    try:
        return jsonify(quote_cart(request.get_json(silent=True))), 200
    except OrderValidationError as e:
        return error(str(e), status=400)
