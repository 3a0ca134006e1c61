import logging
from flask import jsonify
from sqlalchemy.exc import SQLAlchemyError
from models.product import Product
from app.utils import error
from . import storefront_bp


@storefront_bp.route("/products", methods=["GET"])
def list_products():
    """Full catalog in display order."""
    try:
        products = Product.query.order_by(Product.sort_order.asc(), Product.id.asc()).all()
    except SQLAlchemyError as e:
        logging.error("Product listing failed: %s", e, exc_info=True)
        return error("Could not load products", status=500, details=str(e))
    return jsonify({"products": [p.to_dict() for p in products]}), 200
