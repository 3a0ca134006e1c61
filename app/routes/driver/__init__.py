from flask import Blueprint, request, jsonify, g
from app.version import API_PREFIX
from app.auth.permissions import STATUS_ACTIONS, role_has_scope
from app.schemas.orders import DriverStatusRequest
from app.services.orders import (
    ACTIVE_DELIVERY_STATUSES,
    InvalidTransition,
    list_orders,
    update_order_status,
)
from app.utils import staff_key_required, role_required, transactional, validate_schema, error, internal_error_response
from models import db
from models.order import Order

driver_bp = Blueprint("driver", __name__, url_prefix=f"{API_PREFIX}/driver")


@driver_bp.before_request
@staff_key_required("driver")
def _enforce_driver_key():
    """Ensure the requester holds a driver (or admin) key."""
    return None


@driver_bp.route("/orders", methods=["GET"])
@role_required("list_deliveries")
def active_deliveries():
    """Orders waiting for, or out on, delivery; oldest first."""
    orders = list_orders(ACTIVE_DELIVERY_STATUSES, newest_first=False)
    return jsonify({"orders": [o.to_dict() for o in orders]}), 200


@driver_bp.route("/orders/<int:order_id>/status", methods=["POST"])
@validate_schema(DriverStatusRequest)
def set_delivery_status(order_id):
    new_status = request.validated_data.status
    if not role_has_scope(g.role, STATUS_ACTIONS[new_status]):
        return error("Forbidden", status=403)
    order = db.session.get(Order, order_id)
    if order is None or order.status not in ACTIVE_DELIVERY_STATUSES:
        return error("Delivery not found", status=404)
    try:
        with transactional("Failed to update delivery status"):
            update_order_status(order, new_status, actor=g.role)
    except InvalidTransition as e:
        return error(str(e), status=409)
    except Exception:
        return internal_error_response()
    return jsonify({"order": order.to_dict()}), 200
