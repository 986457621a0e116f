# Overview: Flask API routes for accounts; parses input and returns JSON responses.

# backend/storefront/routes/auth.py
"""
Account routes.

Registration fixes the user's price tier (user_type). Login only checks
credentials; session handling lives in front of this service.
"""

from flask import Blueprint, request, jsonify, current_app

from ..services import auth_service
from ..services.auth_service import PasswordValidationError
from ..validation import ConflictError, NotFoundError, ValidationError, require_positive_int


auth_bp = Blueprint("auth", __name__, url_prefix="/auth")


@auth_bp.post("/register")
def register_route():
    data = request.get_json(silent=True) or {}

    try:
        user = auth_service.register_user(
            name=data.get("name"),
            email=data.get("email"),
            password=data.get("password"),
            user_type=data.get("user_type"),
            phone=data.get("phone"),
            address=data.get("address"),
        )
        current_app.logger.info("Registered user %s (%s)", user.id, user.user_type)
        return jsonify({"message": "User registered successfully", "user": user.to_dict()}), 201

    except PasswordValidationError as e:
        return jsonify({"message": str(e)}), 400
    except ValidationError as e:
        return jsonify({"message": str(e)}), 400
    except ConflictError as e:
        return jsonify({"message": str(e)}), 409
    except Exception:
        current_app.logger.exception("Registration failed")
        return jsonify({"message": "Internal server error"}), 500


@auth_bp.post("/login")
def login_route():
    data = request.get_json(silent=True) or {}

    try:
        user = auth_service.authenticate(data.get("email"), data.get("password"))
        return jsonify({"message": "Login successful", "user": user.to_dict()}), 200
    except ValidationError as e:
        return jsonify({"message": str(e)}), 401
    except Exception:
        current_app.logger.exception("Login failed")
        return jsonify({"message": "Internal server error"}), 500


@auth_bp.get("/user/<int:user_id>")
def get_user_route(user_id: int):
    try:
        return jsonify({"user": auth_service.get_user(user_id).to_dict()}), 200
    except NotFoundError as e:
        return jsonify({"message": str(e)}), 404


@auth_bp.put("/user/<int:user_id>")
def update_user_route(user_id: int):
    """Profile update: any of name, email, phone, address."""
    data = request.get_json(silent=True) or {}

    try:
        user = auth_service.update_user(
            user_id,
            name=data.get("name"),
            email=data.get("email"),
            phone=data.get("phone"),
            address=data.get("address"),
        )
        return jsonify({"message": "User updated successfully", "user": user.to_dict()}), 200

    except ValidationError as e:
        return jsonify({"message": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"message": str(e)}), 404
    except ConflictError as e:
        return jsonify({"message": str(e)}), 409
    except Exception:
        current_app.logger.exception("Failed to update user %s", user_id)
        return jsonify({"message": "Internal server error"}), 500


@auth_bp.put("/change-password")
def change_password_route():
    """
    Request body: {"user_id": 4, "old_password": "...", "new_password": "..."}
    """
    data = request.get_json(silent=True) or {}

    if not all([data.get("user_id"), data.get("old_password"), data.get("new_password")]):
        return jsonify({"message": "All fields are required"}), 400

    try:
        user = auth_service.change_password(
            require_positive_int(data["user_id"], "user_id"),
            data["old_password"],
            data["new_password"],
        )
        current_app.logger.info("Password changed for user %s", user.id)
        return jsonify({"message": "Password changed successfully"}), 200

    except ValidationError as e:
        return jsonify({"message": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"message": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to change password")
        return jsonify({"message": "Internal server error"}), 500
