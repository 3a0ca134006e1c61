import logging
from flask import Blueprint
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException
from app.utils.responses import error
from models import db

errors_bp = Blueprint("errors_bp", __name__)


@errors_bp.app_errorhandler(HTTPException)
def handle_http_exception(e):
    # 404, 405 and limiter 429s share the JSON envelope
    msg = e.description or getattr(e, "name", "HTTP Error")
    return error(msg, status=e.code)


@errors_bp.app_errorhandler(SQLAlchemyError)
def handle_database_error(e):
    logging.exception("Unhandled database error")
    db.session.rollback()
    return error("Storage is unavailable, please try again later.", status=500)


@errors_bp.app_errorhandler(Exception)
def handle_unexpected_exception(e):
    logging.exception("Unhandled exception")
    return error(
        "An unexpected error occurred. Please try again later.",
        status=500,
    )
