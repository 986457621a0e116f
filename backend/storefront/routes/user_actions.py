# Overview: Flask API routes for carts and favorites; parses input and returns JSON responses.

# backend/storefront/routes/user_actions.py
"""
Cart and favorites routes.

Cart lines are keyed by (user, product, size); adding the same key again
accumulates quantity. The order placement route consumes the whole cart.
"""

from flask import Blueprint, request, jsonify, current_app

from ..models import CartLine, Favorite
from ..services import cart_service
from ..validation import (
    ModelValidationPolicy,
    NotFoundError,
    ValidationError,
    validate_payload,
)


user_actions_bp = Blueprint("user_actions", __name__, url_prefix="/user-actions")

CART_ADD_POLICY = ModelValidationPolicy(
    writable_fields={"user_id", "product_id", "size", "quantity"},
    required_on_create={"user_id", "product_id", "size", "quantity"},
)

FAVORITE_ADD_POLICY = ModelValidationPolicy(
    writable_fields={"user_id", "product_id"},
    required_on_create={"user_id", "product_id"},
)


# =============================================================================
# CART
# =============================================================================

@user_actions_bp.post("/cart")
def add_to_cart_route():
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=CartLine, payload=payload, policy=CART_ADD_POLICY, partial=False)
        line = cart_service.add_to_cart(
            user_id=patch["user_id"],
            product_id=patch["product_id"],
            size=patch["size"],
            quantity=patch["quantity"],
        )
        return jsonify({"message": "Added to cart successfully", "cart": line.to_dict()}), 201

    except ValidationError as e:
        return jsonify({"message": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"message": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to add to cart")
        return jsonify({"message": "Internal server error"}), 500


@user_actions_bp.get("/cart/<int:user_id>")
def get_cart_route(user_id: int):
    try:
        return jsonify({"cart": cart_service.get_cart(user_id)}), 200
    except NotFoundError as e:
        return jsonify({"message": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to fetch cart for user %s", user_id)
        return jsonify({"message": "Internal server error"}), 500


@user_actions_bp.put("/cart/<int:cart_id>")
def update_cart_route(cart_id: int):
    """Set quantity (validated against available stock for the size)."""
    data = request.get_json(silent=True) or {}

    try:
        line = cart_service.update_cart_quantity(cart_id, data.get("quantity"))
        return jsonify({"message": "Cart updated successfully", "cart": line.to_dict()}), 200

    except ValidationError as e:
        return jsonify({"message": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"message": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to update cart item %s", cart_id)
        return jsonify({"message": "Internal server error"}), 500


@user_actions_bp.delete("/cart/<int:cart_id>")
def remove_from_cart_route(cart_id: int):
    try:
        cart_service.remove_from_cart(cart_id)
        return jsonify({"message": "Item removed from cart successfully"}), 200
    except NotFoundError as e:
        return jsonify({"message": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to remove cart item %s", cart_id)
        return jsonify({"message": "Internal server error"}), 500


# =============================================================================
# FAVORITES
# =============================================================================

@user_actions_bp.post("/favorites")
def add_favorite_route():
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Favorite, payload=payload, policy=FAVORITE_ADD_POLICY, partial=False)
        favorite, created = cart_service.add_favorite(patch["user_id"], patch["product_id"])
        message = "Added to favorites successfully" if created else "Already in favorites"
        return jsonify({"message": message, "favorite": favorite.to_dict()}), 201 if created else 200

    except ValidationError as e:
        return jsonify({"message": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"message": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to add favorite")
        return jsonify({"message": "Internal server error"}), 500


@user_actions_bp.get("/favorites/<int:user_id>")
def get_favorites_route(user_id: int):
    try:
        return jsonify({"favorites": cart_service.get_favorites(user_id)}), 200
    except NotFoundError as e:
        return jsonify({"message": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to fetch favorites for user %s", user_id)
        return jsonify({"message": "Internal server error"}), 500


@user_actions_bp.delete("/favorites/<int:favorite_id>")
def remove_favorite_route(favorite_id: int):
    try:
        cart_service.remove_favorite(favorite_id)
        return jsonify({"message": "Removed from favorites successfully"}), 200
    except NotFoundError as e:
        return jsonify({"message": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to remove favorite %s", favorite_id)
        return jsonify({"message": "Internal server error"}), 500
