# Overview: Flask API routes for the product catalog; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, current_app

from ..services import products_service
from ..validation import NotFoundError, ValidationError


products_bp = Blueprint("products", __name__, url_prefix="/products")


@products_bp.post("")
def create_product_route():
    """
    Create a product with opening stock and tier prices.

    Request body:
    {
        "name": "Tee",
        "description": "Cotton",
        "sizes": [{"size": "M", "quantity": 10}],
        "prices": [{"size": "M", "user_type": "Customer", "price": "250.00"}]
    }
    """
    data = request.get_json(silent=True) or {}

    try:
        product = products_service.create_product(
            name=data.get("name"),
            description=data.get("description"),
            sizes=data.get("sizes"),
            prices=data.get("prices"),
        )
        return jsonify({
            "message": "Product created successfully",
            "product": products_service.get_product(product.id),
        }), 201

    except ValidationError as e:
        return jsonify({"message": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to create product")
        return jsonify({"message": "Internal server error"}), 500


@products_bp.get("/<int:product_id>")
def get_product_route(product_id: int):
    try:
        product = products_service.get_product(product_id, user_type=request.args.get("user_type"))
        return jsonify({"product": product}), 200
    except NotFoundError as e:
        return jsonify({"message": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to fetch product %s", product_id)
        return jsonify({"message": "Internal server error"}), 500
