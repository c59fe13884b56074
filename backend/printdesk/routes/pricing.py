# Overview: Flask API routes for pricing operations; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, current_app

from ..services import pricing_service
from ..validation import ValidationError


pricing_bp = Blueprint("pricing", __name__, url_prefix="/api/pricing")


@pricing_bp.get("")
def get_pricing_route():
    """Current unit prices; public so the order form can show them."""
    try:
        pricing = pricing_service.get_pricing()
        return jsonify({"pricing": pricing.to_dict()}), 200
    except Exception:
        current_app.logger.exception("Failed to load pricing")
        return jsonify({"error": "Internal server error"}), 500


@pricing_bp.post("/quote")
def quote_route():
    """
    Price preview for a prospective order.

    Body: service, quantity, options {paper_size, color_option, add_lamination}
    """
    try:
        data = request.get_json(silent=True) or {}
        options = data.get("options")
        if options is not None and not isinstance(options, dict):
            return jsonify({"error": "options must be an object"}), 400

        result = pricing_service.quote(
            data.get("service"),
            quantity=data.get("quantity"),
            options=options,
        )
        return jsonify({"quote": result}), 200

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to quote order")
        return jsonify({"error": "Internal server error"}), 500
