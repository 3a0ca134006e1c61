from flask import Blueprint
from app.version import API_PREFIX

storefront_bp = Blueprint("storefront", __name__, url_prefix=API_PREFIX)

from . import catalog  # noqa: E402
from . import membership  # noqa: E402
from . import orders  # noqa: E402
