from flask import Blueprint, request, jsonify
from app.version import API_PREFIX
from app.schemas.orders import OrderStatusUpdateRequest
from app.services.orders import InvalidTransition, OrderValidationError, list_orders, update_order_status
from app.utils import staff_key_required, role_required, transactional, validate_schema, error, internal_error_response
from models import db
from models.order import Order, ORDER_STATUSES

admin_bp = Blueprint("admin", __name__, url_prefix=f"{API_PREFIX}/admin")


@admin_bp.before_request
@staff_key_required("admin")
def _enforce_admin_key():
    """Ensure the requester holds the admin key."""
    return None


@admin_bp.route("/orders", methods=["GET"])
def admin_list_orders():
    raw = request.args.get("status", "")
    statuses = [s.strip().upper() for s in raw.split(",") if s.strip()]
    unknown = [s for s in statuses if s not in ORDER_STATUSES]
    if unknown:
        return error(f"Unknown status: {', '.join(unknown)}", status=400)
    orders = list_orders(statuses or None)
    return jsonify({"orders": [o.to_dict() for o in orders]}), 200


@admin_bp.route("/orders", methods=["PATCH"])
@role_required("update_order_status")
@validate_schema(OrderStatusUpdateRequest)
def admin_update_order():
    body = request.validated_data
    order = db.session.get(Order, body.id)
    if order is None:
        return error("Order not found", status=404)
    try:
        with transactional("Failed to update order status"):
            update_order_status(order, body.status, actor="admin")
    except InvalidTransition as e:
        return error(str(e), status=409)
    except OrderValidationError as e:
        return error(str(e), status=400)
    except Exception:
        return internal_error_response()
    return jsonify({"order": order.to_dict()}), 200
