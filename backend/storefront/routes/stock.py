# Overview: Flask API routes for the stock ledger; parses input and returns JSON responses.

# backend/storefront/routes/stock.py
"""
Stock ledger routes.

Movements are append-only. There is no update or delete: a wrong intake is
corrected by posting the opposite movement.
"""

from flask import Blueprint, request, jsonify, current_app

from ..services import stock_service
from ..services.stock_service import InsufficientStock
from ..validation import NotFoundError, ValidationError, require_positive_int


stock_bp = Blueprint("stock", __name__, url_prefix="/stock")


@stock_bp.post("/product-stock")
def post_movement_route():
    """
    Record a stock intake (IN) or write-off (OUT).

    Request body:
    {
        "product_id": 10,
        "size": "M",
        "quantity": 5,
        "stock_type": "IN",
        "note": "Supplier delivery"
    }
    """
    data = request.get_json(silent=True) or {}

    product_id = data.get("product_id")
    size = data.get("size")
    quantity = data.get("quantity")
    stock_type = data.get("stock_type")

    if not all([product_id, size, quantity, stock_type]):
        return jsonify({"message": "All fields (product_id, size, quantity, stock_type) are required"}), 400

    try:
        movement = stock_service.post_manual_movement(
            product_id=require_positive_int(product_id, "product_id"),
            size=size,
            quantity=quantity,
            direction=str(stock_type).strip().upper(),
            note=data.get("note"),
            enforce_available=bool(current_app.config.get("STOREFRONT_ENFORCE_STOCK", True)),
        )
        return jsonify({"message": "Stock recorded successfully", "stock": movement.to_dict()}), 201

    except ValidationError as e:
        return jsonify({"message": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"message": str(e)}), 404
    except InsufficientStock as e:
        return jsonify({"message": str(e), "details": e.details}), 409
    except Exception:
        current_app.logger.exception("Failed to record stock movement")
        return jsonify({"message": "Internal server error"}), 500


@stock_bp.get("/product-stock/<int:product_id>")
def get_product_stock_route(product_id: int):
    """Movements (oldest first) and per-size balances; ?size= narrows the movements."""
    try:
        movements = stock_service.list_movements(product_id, size=request.args.get("size"))
        return jsonify({
            "stock": [m.to_dict() for m in movements],
            "summary": stock_service.stock_summary(product_id),
        }), 200
    except Exception:
        current_app.logger.exception("Failed to fetch stock for product %s", product_id)
        return jsonify({"message": "Internal server error"}), 500
