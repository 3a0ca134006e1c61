"""
Central registry of allowed actions per staff role.
"""
ROLE_SCOPES = {
    "driver": {"list_deliveries", "start_delivery", "complete_delivery", "cancel_order"},
    "admin":  {"*"},
}

# Target order status -> scoped action needed to apply it
STATUS_ACTIONS = {
    "CONFIRMED": "confirm_order",
    "OUT_FOR_DELIVERY": "start_delivery",
    "DELIVERED": "complete_delivery",
    "CANCELED": "cancel_order",
}

def role_has_scope(role: str, action: str) -> bool:
    scopes = ROLE_SCOPES.get(role, set())
    return "*" in scopes or action in scopes
