# Overview: Flask API routes for order operations; parses input and returns JSON responses.

"""
Order API routes

Every route requires a bearer token and acts on the caller's own orders.
A missing order and another user's order both answer 404 "Order not found".
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..decorators import require_auth
from ..errors import AuditAppendError, audit_warning_response, error_body
from ..extensions import db
from ..repositories import SQLAlchemyOrderRepository, SQLAlchemyUserRepository
from ..services.audit_service import AuditService
from ..services.order_service import OrderService
from ..validation import parse_add_item_payload, parse_paging_args


orders_bp = Blueprint("orders", __name__, url_prefix="/api")


def order_service() -> OrderService:
    return OrderService(
        SQLAlchemyOrderRepository(db.session),
        SQLAlchemyUserRepository(db.session),
        AuditService(db.session),
    )


def _not_found():
    return jsonify(error_body("Order not found")), 404


def _respond(call, status: int = 200):
    """Run a mutating service call and render its view (None -> 404)."""
    try:
        view = call()
    except AuditAppendError as exc:
        return audit_warning_response(exc, status)

    if view is None:
        return _not_found()
    return jsonify(view.to_dict()), status


@orders_bp.post("/orders")
@require_auth
def create_order_route():
    """Create a Draft order for the caller."""
    return _respond(lambda: order_service().create_for_user(g.current_user_id), 201)


@orders_bp.get("/orders/<order_id>")
@require_auth
def get_order_route(order_id: str):
    view = order_service().get(g.current_user_id, order_id)
    if view is None:
        return _not_found()
    return jsonify(view.to_dict()), 200


@orders_bp.get("/me/orders")
@require_auth
def list_my_orders_route():
    """All of the caller's orders, newest first."""
    views = order_service().list_for_user(g.current_user_id)
    return jsonify([v.to_dict() for v in views]), 200


@orders_bp.get("/me/orders/paged")
@require_auth
def page_my_orders_route():
    """
    Paged listing.

    Query params: page, pageSize, sort (e.g. -total, status), status.
    """
    kwargs = parse_paging_args(request.args, current_app.config.get("DEFAULT_PAGE_SIZE", 20))
    result = order_service().page_for_user(g.current_user_id, **kwargs)
    return jsonify(result.to_dict()), 200


@orders_bp.post("/orders/<order_id>/items")
@require_auth
def add_item_route(order_id: str):
    """Body: {name, quantity, unitPrice}"""
    req = parse_add_item_payload(request.get_json(silent=True))
    return _respond(lambda: order_service().add_item(g.current_user_id, order_id, req))


@orders_bp.delete("/orders/<order_id>/items/<item_id>")
@require_auth
def remove_item_route(order_id: str, item_id: str):
    return _respond(lambda: order_service().remove_item(g.current_user_id, order_id, item_id))


@orders_bp.post("/orders/<order_id>/submit")
@require_auth
def submit_order_route(order_id: str):
    return _respond(lambda: order_service().submit(g.current_user_id, order_id))


@orders_bp.post("/orders/<order_id>/complete")
@require_auth
def complete_order_route(order_id: str):
    return _respond(lambda: order_service().complete(g.current_user_id, order_id))


@orders_bp.post("/orders/<order_id>/cancel")
@require_auth
def cancel_order_route(order_id: str):
    return _respond(lambda: order_service().cancel(g.current_user_id, order_id))
