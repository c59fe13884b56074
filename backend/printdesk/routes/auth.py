# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

# backend/printdesk/routes/auth.py
"""
Authentication API routes

- Customers self-register; admins are provisioned from the CLI
- Login returns a bearer token for the Authorization header
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..services import auth_service
from ..services import session_service
from ..validation import ValidationError, StateConflictError
from ..decorators import require_auth


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/register")
def register_route():
    """
    Create a customer account and log it in.

    Body: first_name, last_name, email, password, phone (optional)
    """
    try:
        data = request.get_json(silent=True) or {}

        user = auth_service.register_customer(
            email=data.get("email"),
            password=data.get("password"),
            first_name=data.get("first_name"),
            last_name=data.get("last_name"),
            phone=data.get("phone"),
        )

        session, token = session_service.create_session(
            user_id=user.id,
            user_agent=request.headers.get("User-Agent"),
            ip_address=request.remote_addr,
        )
        current_app.logger.info("Registered customer user_id=%s", user.id)

        return jsonify({
            "user": user.to_dict(),
            "token": token,
            "session": session.to_dict(),
        }), 201

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except StateConflictError as e:
        return jsonify({"error": str(e)}), 409
    except Exception:
        current_app.logger.exception("Failed to register user")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/login")
def login_route():
    """
    Authenticate user and create session token.

    Token must be included in Authorization header for protected routes.
    """
    try:
        data = request.get_json(silent=True) or {}
        email = data.get("email")
        password = data.get("password")

        if not all([email, password]):
            return jsonify({"error": "email and password required"}), 400

        user = auth_service.authenticate(email, password)
        if not user:
            return jsonify({"error": "Invalid credentials"}), 401

        session, token = session_service.create_session(
            user_id=user.id,
            user_agent=request.headers.get("User-Agent"),
            ip_address=request.remote_addr,
        )

        return jsonify({
            "user": user.to_dict(),
            "token": token,
            "session": session.to_dict(),
            "message": "Login successful"
        }), 200

    except Exception:
        current_app.logger.exception("Failed to login user")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/logout")
@require_auth
def logout_route():
    """Revoke the current session token."""
    try:
        session_service.revoke_session(g.session_token, reason="User logout")
        return jsonify({"message": "Logged out"}), 200
    except Exception:
        current_app.logger.exception("Failed to logout user")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.get("/me")
@require_auth
def me_route():
    return jsonify({"user": g.current_user.to_dict()}), 200


@auth_bp.patch("/me")
@require_auth
def update_me_route():
    """
    Edit the current user's profile.

    Body: first_name, last_name, email, phone, current_password, new_password
    (all optional; the password changes only when both password fields are sent)
    """
    try:
        data = request.get_json(silent=True) or {}

        user = auth_service.update_profile(
            g.current_user,
            first_name=data.get("first_name"),
            last_name=data.get("last_name"),
            email=data.get("email"),
            phone=data.get("phone"),
            current_password=data.get("current_password"),
            new_password=data.get("new_password"),
        )
        current_app.logger.info("Profile updated user_id=%s", user.id)
        return jsonify({"user": user.to_dict(), "message": "Profile updated"}), 200

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except StateConflictError as e:
        return jsonify({"error": str(e)}), 409
    except Exception:
        current_app.logger.exception("Failed to update profile")
        return jsonify({"error": "Internal server error"}), 500
