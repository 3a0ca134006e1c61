from flask import jsonify


def ok(data=None, status=200):
    return jsonify(data if data is not None else {}), status


def error(message, status=400, code=None, details=None, type=None):
    payload = {"error": message, "code": code or status}
    if details is not None:
        payload["details"] = details
    if type is not None:
        payload["type"] = type
    return jsonify(payload), status


def validation_error_response(errors):
    return error("Invalid request payload", status=400, details=errors)


def internal_error_response(details=None):
    return error("An unexpected error occurred, please try again later", status=500, details=details)
