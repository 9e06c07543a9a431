# Overview: Flask API routes for events and their options.

from flask import Blueprint, current_app, jsonify

from ..services import catalog_service

events_bp = Blueprint("events", __name__, url_prefix="/api/events")


@events_bp.get("")
def list_events_route():
    try:
        return jsonify(catalog_service.list_events()), 200
    except Exception:
        current_app.logger.exception("Failed to fetch events")
        return jsonify({"error": "Failed to fetch events"}), 500


@events_bp.get("/<int:event_id>/options")
def list_event_options_route(event_id: int):
    try:
        return jsonify(catalog_service.list_event_options(event_id)), 200
    except Exception:
        current_app.logger.exception("Failed to fetch event options")
        return jsonify({"error": "Failed to fetch event options"}), 500
