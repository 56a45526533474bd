# Overview: Flask API routes for stock levels; read-only views of inventory and its movements.

# backend/caisse/routes/inventory.py
"""
Inventory API Routes

Read-only. Stock only changes as a side effect of revenue and expense
entries (see services/inventory_service.py).
"""

from flask import Blueprint, request, jsonify, current_app

from ..decorators import require_auth
from ..services import inventory_service
from ..services.exceptions import ProductNotFound
from ..services.tenant_service import get_current_context
from ..validation import ValidationError, parse_query_int


inventory_bp = Blueprint("inventory", __name__, url_prefix="/api/inventory")


@inventory_bp.get("/<product_ref>")
@require_auth
def get_item_route(product_ref: str):
    """Current stock level of a product in the caller's restaurant."""
    try:
        ctx = get_current_context()
        item = inventory_service.get_inventory_item(ctx.restaurant_id, product_ref)
        return jsonify({"item": item.to_dict()}), 200

    except ProductNotFound as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to load inventory item")
        return jsonify({"error": "Internal server error"}), 500


@inventory_bp.get("/<product_ref>/movements")
@require_auth
def list_movements_route(product_ref: str):
    """
    Movement history for a product, newest first.

    Query params: limit (1-500)
    """
    try:
        ctx = get_current_context()
        limit = parse_query_int(request.args.get("limit"), "limit", 1, 500)

        movements = inventory_service.list_stock_movements(
            ctx.restaurant_id, product_ref, limit=limit,
        )
        return jsonify({"movements": [m.to_dict() for m in movements]}), 200

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except ProductNotFound as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to list stock movements")
        return jsonify({"error": "Internal server error"}), 500
