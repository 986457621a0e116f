# Overview: Flask API routes for product pricing; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, current_app

from ..services import pricing_service
from ..validation import NotFoundError, ValidationError, parse_amount_cents, require_positive_int


pricing_bp = Blueprint("pricing", __name__, url_prefix="/product-pricing")


@pricing_bp.post("")
def upsert_price_route():
    """
    Add or replace the price of (product, size) for a tier.

    Request body: {"product_id": 10, "size": "M", "user_type": "Customer", "price": "250.00"}
    """
    data = request.get_json(silent=True) or {}

    product_id = data.get("product_id")
    size = data.get("size")
    user_type = data.get("user_type")
    price = data.get("price")

    if not all([product_id, size, user_type]) or price is None:
        return jsonify({"message": "All fields (product_id, size, user_type, price) are required"}), 400

    try:
        entry = pricing_service.upsert_price(
            product_id=require_positive_int(product_id, "product_id"),
            size=size,
            user_type=user_type,
            price_cents=parse_amount_cents(price, "price"),
        )
        return jsonify({"message": "Pricing added/updated successfully", "pricing": entry.to_dict()}), 201

    except ValidationError as e:
        return jsonify({"message": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"message": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to upsert pricing")
        return jsonify({"message": "Internal server error"}), 500


@pricing_bp.get("/<int:product_id>")
def list_prices_route(product_id: int):
    try:
        entries = pricing_service.list_prices(product_id, user_type=request.args.get("user_type"))
        if not entries:
            return jsonify({"message": "No pricing found for this product"}), 404
        return jsonify({"pricing": [e.to_dict() for e in entries]}), 200
    except Exception:
        current_app.logger.exception("Failed to list pricing for product %s", product_id)
        return jsonify({"message": "Internal server error"}), 500


@pricing_bp.put("/<int:price_id>")
def update_price_route(price_id: int):
    data = request.get_json(silent=True) or {}

    if data.get("price") is None:
        return jsonify({"message": "Price is required"}), 400

    try:
        entry = pricing_service.update_price(price_id, parse_amount_cents(data["price"], "price"))
        return jsonify({"message": "Pricing updated", "pricing": entry.to_dict()}), 200
    except ValidationError as e:
        return jsonify({"message": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"message": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to update pricing %s", price_id)
        return jsonify({"message": "Internal server error"}), 500


@pricing_bp.delete("/<int:price_id>")
def delete_price_route(price_id: int):
    try:
        snapshot = pricing_service.delete_price(price_id)
        return jsonify({"message": "Pricing removed", "deletedPricing": snapshot}), 200
    except NotFoundError as e:
        return jsonify({"message": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to delete pricing %s", price_id)
        return jsonify({"message": "Internal server error"}), 500
