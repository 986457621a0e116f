# Overview: Flask API routes for orders; parses input and returns JSON responses.

# backend/storefront/routes/orders.py
"""
Order API routes

- POST /orders                      place an order from the cart (payment-verified)
- GET  /orders/all                  every order, newest first
- GET  /orders/<user_id>            a user's orders, newest first
- GET  /orders/details/<order_id>   order lines with product name and line total
- PUT  /orders/<order_id>           move order_status forward
- DELETE /orders/<order_id>         cancel a Pending order
"""

from flask import Blueprint, request, jsonify, current_app

from ..services import order_service
from ..services.order_service import InvalidStateTransition, MissingPrice
from ..services.payment_service import PaymentError
from ..services.stock_service import InsufficientStock
from ..validation import ConflictError, NotFoundError, ValidationError


orders_bp = Blueprint("orders", __name__, url_prefix="/orders")


@orders_bp.post("")
def place_order_route():
    """
    Place an order.

    Request body:
    {
        "user_id": 4,
        "shipping_address": {"line1": "...", "city": "...", "postal_code": "..."},
        "payment_method": "Card",
        "payment_reference": "pay_abc"
    }

    Returns:
        201: Order created
        400: Invalid input, empty cart, unpriced item, payment problem
        404: User not found
        409: Payment already used, insufficient stock
        500: Server error
    """
    data = request.get_json(silent=True) or {}

    try:
        order = order_service.place_order(
            user_id=data.get("user_id"),
            shipping_address=data.get("shipping_address"),
            payment_method=data.get("payment_method"),
            payment_reference=data.get("payment_reference"),
        )
        return jsonify({"message": "Order placed successfully", "order": order.to_dict()}), 201

    except MissingPrice as e:
        return jsonify({"message": str(e), "details": e.details}), 400
    except ValidationError as e:
        return jsonify({"message": str(e)}), 400
    except PaymentError as e:
        return jsonify({"message": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"message": str(e)}), 404
    except InsufficientStock as e:
        return jsonify({"message": str(e), "details": e.details}), 409
    except ConflictError as e:
        return jsonify({"message": str(e)}), 409
    except Exception:
        current_app.logger.exception("Failed to place order")
        return jsonify({"message": "Internal server error"}), 500


@orders_bp.get("/all")
def list_all_orders_route():
    try:
        orders = order_service.list_all_orders()
        return jsonify({"orders": [o.to_dict() for o in orders]}), 200
    except Exception:
        current_app.logger.exception("Failed to list orders")
        return jsonify({"message": "Internal server error"}), 500


@orders_bp.get("/<int:user_id>")
def list_user_orders_route(user_id: int):
    try:
        orders = order_service.list_user_orders(user_id)
        return jsonify({"orders": [o.to_dict() for o in orders]}), 200
    except Exception:
        current_app.logger.exception("Failed to list orders for user %s", user_id)
        return jsonify({"message": "Internal server error"}), 500


@orders_bp.get("/details/<int:order_id>")
def get_order_details_route(order_id: int):
    try:
        details = order_service.get_order_details(order_id)
        return jsonify({"order_details": details}), 200
    except NotFoundError as e:
        return jsonify({"message": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to fetch order details for %s", order_id)
        return jsonify({"message": "Internal server error"}), 500


@orders_bp.put("/<int:order_id>")
def update_order_status_route(order_id: int):
    """
    Update order status.

    Request body: {"order_status": "Shipped"}
    Allowed: Pending -> Shipped | Delivered | Cancelled, Shipped -> Delivered
    """
    data = request.get_json(silent=True) or {}

    try:
        order = order_service.update_order_status(order_id, data.get("order_status"))
        return jsonify({"message": "Order updated successfully", "order": order.to_dict()}), 200

    except ValidationError as e:
        return jsonify({"message": str(e)}), 400
    except InvalidStateTransition as e:
        return jsonify({"message": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"message": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to update order %s", order_id)
        return jsonify({"message": "Internal server error"}), 500


@orders_bp.delete("/<int:order_id>")
def cancel_order_route(order_id: int):
    try:
        order = order_service.cancel_order(order_id)
        return jsonify({"message": "Order cancelled successfully", "order": order.to_dict()}), 200

    except InvalidStateTransition as e:
        return jsonify({"message": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"message": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to cancel order %s", order_id)
        return jsonify({"message": "Internal server error"}), 500
