from functools import wraps
from flask import request
from pydantic import ValidationError
from .responses import validation_error_response


def validate_schema(schema):
    """Decorator to validate request JSON against a Pydantic schema."""

    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            payload = request.get_json(silent=True)
            if not isinstance(payload, dict):
                payload = {}
            try:
                obj = schema(**payload)
            except ValidationError as ve:
                return validation_error_response(
                    [{"loc": list(e["loc"]), "msg": e["msg"]} for e in ve.errors()]
                )
            request.validated_data = obj
            return fn(*args, **kwargs)
        return wrapper

    return decorator
