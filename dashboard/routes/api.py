"""API routes for programmatic access to the alert engine."""

from functools import wraps
from flask import Blueprint, jsonify, request, current_app

from alert_engine.alert_store import AlertType, SubjectRef

api_bp = Blueprint("api", __name__)


def check_api_key(f):
    """Decorator to check API key for protected endpoints."""
    @wraps(f)
    def decorated(*args, **kwargs):
        api_key = current_app.config.get("DASHBOARD_API_KEY")

        # If no API key configured, allow all requests (dev mode)
        if not api_key:
            return f(*args, **kwargs)

        # Check key from query param or header
        provided_key = request.args.get("key") or request.headers.get("X-API-Key")

        if provided_key != api_key:
            return jsonify({"error": "Invalid or missing API key"}), 401

        return f(*args, **kwargs)

    return decorated


def _flag(name: str) -> bool:
    return request.args.get(name, "").lower() in ("1", "true", "yes")


@api_bp.route("/alerts", methods=["GET"])
@check_api_key
def list_alerts():
    """List alerts, newest first.

    Query params:
        unread=1: only unread, unresolved alerts
        critical=1: only unresolved critical alerts
    """
    service = current_app.alert_service

    if _flag("critical"):
        alerts = service.get_critical_alerts()
    elif _flag("unread"):
        alerts = service.get_unread_alerts()
    else:
        alerts = service.get_alerts()

    return jsonify({
        "alerts": [a.to_dict() for a in alerts],
        "count": len(alerts),
    })


@api_bp.route("/alerts", methods=["POST"])
@check_api_key
def raise_alert():
    """Raise an alert from an external event."""
    service = current_app.alert_service
    data = request.get_json(silent=True) or {}

    alert_type = data.get("type")
    if not alert_type:
        return jsonify({"error": "type field required"}), 400
    if AlertType.parse(alert_type) is None:
        return jsonify({"error": f"Invalid alert type: {alert_type}"}), 400

    subject = data.get("subject")
    alert = service.raise_alert(
        alert_type,
        severity=data.get("severity"),
        title=data.get("title"),
        message=data.get("message"),
        subject=SubjectRef.from_dict(subject) if isinstance(subject, dict) else None,
        action_url=data.get("action_url"),
        action_text=data.get("action_text"),
    )
    if alert is None:
        return jsonify({"success": False, "error": "Failed to raise alert"}), 400

    return jsonify({"success": True, "alert": alert.to_dict()}), 201


@api_bp.route("/alerts/<alert_id>", methods=["GET"])
@check_api_key
def get_alert(alert_id):
    """Get a single alert by ID."""
    alert = current_app.alert_service.get_alert(alert_id)
    if not alert:
        return jsonify({"error": "Alert not found"}), 404

    return jsonify(alert.to_dict())


@api_bp.route("/alerts/<alert_id>/read", methods=["POST"])
@check_api_key
def mark_read(alert_id):
    """Mark an alert as read."""
    service = current_app.alert_service
    applied = service.mark_as_read(alert_id)
    alert = service.get_alert(alert_id)

    return jsonify({
        "success": True,
        "applied": applied,
        "alert": alert.to_dict() if alert else None,
    })


@api_bp.route("/alerts/read-all", methods=["POST"])
@check_api_key
def mark_all_read():
    """Mark every alert as read."""
    changed = current_app.alert_service.mark_all_as_read()
    return jsonify({"success": True, "applied": changed > 0, "count": changed})


@api_bp.route("/alerts/<alert_id>/resolve", methods=["POST"])
@check_api_key
def resolve_alert(alert_id):
    """Resolve an alert. Only the first resolution is kept."""
    service = current_app.alert_service

    data = request.get_json(silent=True) or {}
    resolved_by = (
        data.get("user")
        or request.args.get("user")
        or request.headers.get("X-User")
        or current_app.config.get("DEFAULT_RESOLVER", "Dashboard User")
    )

    applied = service.resolve_alert(alert_id, resolved_by)
    alert = service.get_alert(alert_id)

    return jsonify({
        "success": True,
        "applied": applied,
        "alert": alert.to_dict() if alert else None,
    })


@api_bp.route("/metrics", methods=["GET"])
@check_api_key
def get_metrics():
    """Get alert statistics."""
    return jsonify(current_app.alert_service.get_metrics().to_dict())


@api_bp.route("/settings", methods=["GET"])
@check_api_key
def get_settings():
    """Get alert delivery settings."""
    return jsonify(current_app.alert_service.get_settings().to_dict())


@api_bp.route("/settings", methods=["PATCH"])
@check_api_key
def update_settings():
    """Apply a partial settings update."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({"error": "JSON object body required"}), 400

    settings = current_app.alert_service.update_settings(data)
    return jsonify(settings.to_dict())


@api_bp.route("/status", methods=["GET"])
@check_api_key
def get_status():
    """Get engine status."""
    return jsonify(current_app.alert_service.get_status())
