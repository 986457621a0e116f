# Overview: Flask API routes for payments; parses input and returns JSON responses.

# backend/storefront/routes/payments.py
"""
Payment API Routes

- POST /payments                        record a payment attempt (Pending)
- GET  /payments/admin                  every payment with the payer name, newest first
- GET  /payments/<order_id>             payments attached to an order
- GET  /payments/user/<user_id>         a user's payments, newest first
- PUT  /payments/<payment_id>           set status (Pending / Completed / Failed)
- PUT  /payments/<payment_id>/refund    refund a Completed payment
"""

from flask import Blueprint, request, jsonify, current_app

from ..services import payment_service
from ..validation import ConflictError, NotFoundError, ValidationError, parse_amount_cents


payments_bp = Blueprint("payments", __name__, url_prefix="/payments")


@payments_bp.post("")
def create_payment_route():
    """
    Record a payment attempt.

    Request body:
    {
        "user_id": 4,
        "amount": "500.00",
        "payment_method": "Card",
        "payment_reference": "pay_abc",
        "order_id": 12  (optional; omit for payment-first checkout)
    }

    Returns:
        201: Payment recorded in Pending state
        400: Invalid input / order already paid
        404: User or order not found (or order belongs to someone else)
        409: Duplicate payment reference
    """
    data = request.get_json(silent=True) or {}

    user_id = data.get("user_id")
    amount = data.get("amount")
    payment_method = data.get("payment_method")
    payment_reference = data.get("payment_reference")
    order_id = data.get("order_id")

    if not all([user_id, amount, payment_method, payment_reference]):
        return jsonify({"message": "user_id, amount, payment_method and payment_reference are required"}), 400

    try:
        payment = payment_service.create_payment(
            user_id=user_id,
            amount_cents=parse_amount_cents(amount, "amount"),
            payment_method=payment_method,
            payment_reference=payment_reference,
            order_id=order_id,
        )
        return jsonify({"message": "Payment initiated", "payment": payment.to_dict()}), 201

    except ValidationError as e:
        return jsonify({"message": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"message": str(e)}), 404
    except ConflictError as e:
        return jsonify({"message": str(e)}), 409
    except Exception:
        current_app.logger.exception("Failed to record payment")
        return jsonify({"message": "Internal server error"}), 500


@payments_bp.get("/admin")
def list_all_payments_route():
    try:
        payments = payment_service.list_all_payments()
        if not payments:
            return jsonify({"message": "No payments found"}), 404
        return jsonify({"payments": payments}), 200
    except Exception:
        current_app.logger.exception("Failed to list payments")
        return jsonify({"message": "Internal server error"}), 500


@payments_bp.get("/<int:order_id>")
def get_order_payments_route(order_id: int):
    try:
        payments = payment_service.get_order_payments(order_id)
        if not payments:
            return jsonify({"message": "No payment found for this order"}), 404
        return jsonify({"payment": [p.to_dict() for p in payments]}), 200
    except Exception:
        current_app.logger.exception("Failed to fetch payments for order %s", order_id)
        return jsonify({"message": "Internal server error"}), 500


@payments_bp.get("/user/<int:user_id>")
def get_user_payments_route(user_id: int):
    try:
        payments = payment_service.get_user_payments(user_id)
        return jsonify({"payments": [p.to_dict() for p in payments]}), 200
    except Exception:
        current_app.logger.exception("Failed to fetch payments for user %s", user_id)
        return jsonify({"message": "Internal server error"}), 500


@payments_bp.put("/<int:payment_id>")
def update_payment_status_route(payment_id: int):
    """
    Update payment status.

    Request body: {"status": "Completed"}
    Completed cascades to the attached order's payment_status.
    """
    data = request.get_json(silent=True) or {}

    try:
        payment = payment_service.update_payment_status(payment_id, data.get("status"))
        current_app.logger.info("Payment %s status is now %s", payment.id, payment.status)
        return jsonify({"message": "Payment status updated", "payment": payment.to_dict()}), 200

    except ValidationError as e:
        return jsonify({"message": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"message": str(e)}), 404
    except ConflictError as e:
        return jsonify({"message": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to update payment %s", payment_id)
        return jsonify({"message": "Internal server error"}), 500


@payments_bp.put("/<int:payment_id>/refund")
def refund_payment_route(payment_id: int):
    try:
        payment = payment_service.refund_payment(payment_id)
        current_app.logger.info("Payment %s refunded", payment.id)
        return jsonify({"message": "Payment marked as Refunded", "payment": payment.to_dict()}), 200

    except NotFoundError as e:
        return jsonify({"message": str(e)}), 404
    except ConflictError as e:
        return jsonify({"message": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to refund payment %s", payment_id)
        return jsonify({"message": "Internal server error"}), 500
