# Overview: Flask API routes for the caller's notifications and dashboard summary.

from flask import Blueprint, jsonify, g

from budgetboard.decorators import require_auth
from budgetboard.services import notification_service


notifications_bp = Blueprint("notifications", __name__, url_prefix="/api/notifications")


@notifications_bp.get("")
@require_auth
def list_notifications():
    """Latest notifications for the caller: {notifications: [...], unread_count}."""
    return jsonify(notification_service.list_notifications(g.current_user.id)), 200


@notifications_bp.put("/read-all")
@require_auth
def mark_all_read():
    notification_service.mark_all_read(g.current_user.id)
    return jsonify({"message": "All notifications marked as read."}), 200


@notifications_bp.put("/<notification_id>/read")
@require_auth
def mark_read(notification_id: str):
    notification_service.mark_read(notification_id, g.current_user.id)
    return jsonify({"message": "Notification marked as read."}), 200


@notifications_bp.delete("/<notification_id>")
@require_auth
def delete_notification(notification_id: str):
    notification_service.delete_notification(notification_id, g.current_user.id)
    return jsonify({"message": "Notification deleted."}), 200


@notifications_bp.get("/dashboard")
@require_auth
def dashboard():
    return jsonify(notification_service.dashboard(g.current_user.id)), 200
