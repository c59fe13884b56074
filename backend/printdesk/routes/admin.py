# Overview: Flask API routes for admin operations; parses input and returns JSON responses.

# backend/printdesk/routes/admin.py
"""
Admin routes for pricing and order fulfillment.

Provides endpoints for:
- Replacing the unit price table
- Listing customers with their order counts
- Moving orders through their status lifecycle
- Deleting (archiving) orders and browsing the archive

All endpoints require authentication and the admin role.
"""

from flask import Blueprint, request, jsonify, g, current_app

from ..decorators import require_auth, require_admin
from ..services import identity_service, order_service, pricing_service
from ..validation import (
    ValidationError,
    NotFoundError,
    StateConflictError,
    AuthorizationError,
    DependencyFailure,
)

admin_bp = Blueprint("admin", __name__, url_prefix="/api/admin")


# =============================================================================
# PRICING
# =============================================================================

@admin_bp.put("/pricing")
@require_auth
@require_admin
def set_pricing_route():
    """
    Replace all six unit prices.

    Body: print_bw, print_color, photocopying, scanning, photo_development,
    laminating. Every field is required; values must be non-negative numbers.
    """
    try:
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return jsonify({"error": "Request body must be a JSON object"}), 400

        pricing = pricing_service.set_pricing(data, actor_user_id=g.current_user.id)
        current_app.logger.info("Pricing updated by user_id=%s", g.current_user.id)
        return jsonify({"pricing": pricing.to_dict()}), 200

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except StateConflictError as e:
        return jsonify({"error": str(e)}), 409
    except DependencyFailure as e:
        current_app.logger.exception("Pricing not saved")
        return jsonify({"error": str(e)}), 503
    except Exception:
        current_app.logger.exception("Failed to update pricing")
        return jsonify({"error": "Internal server error"}), 500


# =============================================================================
# CUSTOMERS
# =============================================================================

@admin_bp.get("/customers")
@require_auth
@require_admin
def list_customers_route():
    """Customer accounts with their order counts, newest first."""
    try:
        return jsonify({"customers": identity_service.list_customers()}), 200
    except Exception:
        current_app.logger.exception("Failed to list customers")
        return jsonify({"error": "Internal server error"}), 500


# =============================================================================
# ORDERS
# =============================================================================

@admin_bp.patch("/orders/<order_id>/status")
@require_auth
@require_admin
def set_order_status_route(order_id: str):
    """
    Change an order's status.

    Body: status, expected_version (optional)
    """
    try:
        data = request.get_json(silent=True) or {}
        order = order_service.set_status(
            g.current_user,
            order_id,
            data.get("status"),
            expected_version=data.get("expected_version"),
        )
        current_app.logger.info("Order status changed order_id=%s status=%s", order.order_id, order.status)
        return jsonify({"order": order.to_dict()}), 200

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except AuthorizationError as e:
        return jsonify({"error": str(e)}), 403
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except StateConflictError as e:
        return jsonify({"error": str(e)}), 409
    except DependencyFailure as e:
        current_app.logger.exception("Order status not changed")
        return jsonify({"error": str(e)}), 503
    except Exception:
        current_app.logger.exception("Failed to change order status")
        return jsonify({"error": "Internal server error"}), 500


@admin_bp.delete("/orders/<order_id>")
@require_auth
@require_admin
def delete_order_route(order_id: str):
    """Archive and delete an order in any status."""
    try:
        snapshot = order_service.delete_order(g.current_user, order_id)
        current_app.logger.info(
            "Order deleted and archived order_id=%s by user_id=%s",
            snapshot.order_id, g.current_user.id,
        )
        return jsonify({"message": "Order deleted", "deleted_order": snapshot.to_dict()}), 200

    except AuthorizationError as e:
        return jsonify({"error": str(e)}), 403
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except DependencyFailure as e:
        current_app.logger.exception("Order not deleted")
        return jsonify({"error": str(e)}), 503
    except Exception:
        current_app.logger.exception("Failed to delete order")
        return jsonify({"error": "Internal server error"}), 500


@admin_bp.get("/deleted-orders")
@require_auth
@require_admin
def list_deleted_orders_route():
    """Archived orders, most recently deleted first."""
    try:
        snapshots = order_service.list_deleted_orders(g.current_user)
        return jsonify({"deleted_orders": [s.to_dict() for s in snapshots]}), 200

    except AuthorizationError as e:
        return jsonify({"error": str(e)}), 403
    except Exception:
        current_app.logger.exception("Failed to list deleted orders")
        return jsonify({"error": "Internal server error"}), 500
