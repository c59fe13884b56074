# Overview: Flask API routes for customer order operations; parses input and returns JSON responses.

"""
Order API routes

Create and edit accept either a JSON body or multipart/form-data. In
multipart requests attachments are sent as `files` (create) or `new_files`
(edit) and options as flat form fields.
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..decorators import require_auth
from ..services import order_service
from ..services.storage_service import Upload
from ..validation import (
    ValidationError,
    NotFoundError,
    StateConflictError,
    AuthorizationError,
    DependencyFailure,
)


orders_bp = Blueprint("orders", __name__, url_prefix="/api/orders")

OPTION_FIELDS = ("paper_size", "color_option", "photo_size", "add_lamination")


def _read_uploads(field: str) -> list[Upload]:
    return [
        Upload(data=storage.read(), filename=storage.filename or "")
        for storage in request.files.getlist(field)
        if storage and storage.filename
    ]


def order_payload(files_field: str) -> dict:
    """
    Normalize a JSON or multipart order request into order_service kwargs.

    Options may be nested under "options" (JSON) or sent as top-level fields.
    The free-text note is read from "specifications", falling back to "note".
    """
    if request.is_json:
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            raise ValidationError("Request body must be a JSON object")
        uploads = []
    else:
        data = request.form
        uploads = _read_uploads(files_field)

    options = data.get("options") if request.is_json else None
    if options is None:
        options = {key: data.get(key) for key in OPTION_FIELDS if key in data}
    elif not isinstance(options, dict):
        raise ValidationError("options must be an object")

    # An unchecked checkbox is left out of the form entirely
    if not request.is_json:
        options["add_lamination"] = data.get("add_lamination", "")

    note = data.get("specifications")
    if note is None:
        note = data.get("note")

    return {
        "service": data.get("service"),
        "quantity": data.get("quantity"),
        "options": options,
        "note": note,
        "delivery_option": data.get("delivery_option"),
        "delivery_address": data.get("delivery_address"),
        "uploads": uploads,
    }


@orders_bp.post("")
@require_auth
def create_order_route():
    """Submit a new order for the current user; returns 201 with the priced order."""
    try:
        payload = order_payload("files")
        order = order_service.create_order(g.current_user, **payload)
        current_app.logger.info(
            "Order created order_id=%s user_id=%s total=%s",
            order.order_id, order.user_id, order.total_amount,
        )
        return jsonify({"order": order.to_dict()}), 201

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except DependencyFailure as e:
        current_app.logger.exception("Order not created")
        return jsonify({"error": str(e)}), 503
    except Exception:
        current_app.logger.exception("Failed to create order")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.get("")
@require_auth
def list_orders_route():
    """Own orders for customers, all orders for admins; optional ?status= filter."""
    try:
        orders = order_service.list_orders(g.current_user, status=request.args.get("status"))
        return jsonify({"orders": orders}), 200

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to list orders")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.get("/stats")
@require_auth
def order_stats_route():
    try:
        return jsonify({"stats": order_service.dashboard_stats(g.current_user)}), 200
    except Exception:
        current_app.logger.exception("Failed to load order stats")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.get("/<order_id>")
@require_auth
def get_order_route(order_id: str):
    try:
        order = order_service.get_order(g.current_user, order_id)
        return jsonify({"order": order.to_dict()}), 200

    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to load order")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.patch("/<order_id>")
@require_auth
def update_order_route(order_id: str):
    """
    Edit a pending order.

    Supplied fields replace stored values; options merge over stored options.
    `new_files` replaces the attachment list. Optional `expected_version`
    makes the edit fail with 409 if the order changed since it was read.
    """
    try:
        payload = order_payload("new_files")
        if request.is_json:
            expected_version = (request.get_json(silent=True) or {}).get("expected_version")
        else:
            expected_version = request.form.get("expected_version") or None

        order = order_service.update_order(
            g.current_user,
            order_id,
            expected_version=expected_version,
            **payload,
        )
        current_app.logger.info("Order updated order_id=%s total=%s", order.order_id, order.total_amount)
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
        current_app.logger.exception("Order not updated")
        return jsonify({"error": str(e)}), 503
    except Exception:
        current_app.logger.exception("Failed to update order")
        return jsonify({"error": "Internal server error"}), 500
