from .responses import ok, error, validation_error_response, internal_error_response
from .auth import staff_key_required, role_required
from .validation import validate_schema
from .db import transactional

__all__ = [
    'ok',
    'error',
    'validation_error_response',
    'internal_error_response',
    'staff_key_required',
    'role_required',
    'validate_schema',
    'transactional',
]
