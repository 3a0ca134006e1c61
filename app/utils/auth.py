import hmac
from functools import wraps
from flask import current_app, request, g
from .responses import error
from app.auth.permissions import role_has_scope

# Header name -> (config key, role granted)
STAFF_KEY_HEADERS = (
    ("X-Admin-Key", "ADMIN_API_KEY", "admin"),
    ("X-Driver-Key", "DRIVER_API_KEY", "driver"),
)


def _resolve_staff_role(allowed_roles):
    configured = False
    for header, config_key, role in STAFF_KEY_HEADERS:
        if role not in allowed_roles:
            continue
        expected = current_app.config.get(config_key)
        if not expected:
            continue
        configured = True
        supplied = request.headers.get(header, "")
        if supplied and hmac.compare_digest(supplied.encode(), expected.encode()):
            return role, configured
    return None, configured


def staff_key_required(*roles):
    """Authenticate staff requests by a shared API key header.

    Admin keys are accepted wherever a driver key is.
    """
    allowed = set(roles) | {"admin"}

    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            role, configured = _resolve_staff_role(allowed)
            if not configured:
                return error("Staff access is not configured", status=503)
            if role is None:
                return error("Unauthorized", status=401)
            g.role = role
            return fn(*args, **kwargs)
        return wrapper

    return decorator


def role_required(action):
    """Authorize the authenticated staff role for a scoped action."""

    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            role = getattr(g, "role", None)
            if not role:
                return error("Role missing", status=403)
            if not role_has_scope(role, action):
                return error("Forbidden", status=403)
            return fn(*args, **kwargs)

        return wrapper

    return decorator
