"""
Flask route handlers for the REST API.
"""

import sys
import traceback

from flask import abort, jsonify, request

from medportal.config import STAFF_LOGIN_PATH, TOKEN_COOKIE
from medportal.database import ping
from medportal.id_card import IdCardServiceError, classify_id_card, evaluate_predictions
from medportal.national_id import calculate_age, decode
from medportal.phone import format_phone, is_valid_phone
from medportal.rbac import (
    ROLE_NAVIGATION,
    load_access_context,
    role_for_path,
    role_home,
)
from medportal.api.auth import (
    clear_session_cookies,
    generate_token,
    set_session_cookies,
    verify_token,
)

INVALID_ID_MESSAGE = "Invalid Egyptian National ID. Please enter a valid 14-digit ID."
INVALID_PHONE_MESSAGE = "Please enter a valid Egyptian phone number (e.g., 01XXXXXXXXX)"


def json_object():
    """Return the request body if it is a JSON object, else None."""
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else None


def register_routes(app, engine, id_card_api_key, http_session=None):
    """Register all API routes on the Flask *app*."""

    # ── Health / info ────────────────────────────────────────────────

    @app.route("/", methods=["GET"])
    def index():
        return jsonify({
            "service": "Medical Portal Access API",
            "version": "1.0.0",
            "status": "running",
            "endpoints": {
                "staff_login": "/api/auth/staff/login",
                "logout": "/api/auth/logout",
                "session": "/api/auth/session",
                "verify_id": "/api/verify-id",
                "national_id": "/api/national-id/validate",
                "phone": "/api/phone/validate",
                "health": "/health",
            },
        })

    @app.route("/health", methods=["GET"])
    def health():
        checks = {
            "database": engine is not None and ping(engine),
            "id_card_service": bool(id_card_api_key),
        }
        all_healthy = all(checks.values())
        return jsonify({
            "status": "healthy" if all_healthy else "unhealthy",
            "checks": checks,
        }), 200 if all_healthy else 503

    # ── Public pages ─────────────────────────────────────────────────

    @app.route("/login", methods=["GET"])
    def patient_login_page():
        return jsonify({"page": "login"})

    @app.route(STAFF_LOGIN_PATH, methods=["GET"])
    def staff_login_page():
        return jsonify({"page": "staff-login", "submit": "/api/auth/staff/login"})

    @app.route("/register", methods=["GET"])
    def register_page():
        return jsonify({
            "page": "register",
            "verify_id": "/api/verify-id",
            "validate_national_id": "/api/national-id/validate",
            "validate_phone": "/api/phone/validate",
        })

    # ── Auth ─────────────────────────────────────────────────────────

    @app.route("/api/auth/staff/login", methods=["POST"])
    def staff_login():
        data = json_object()
        if data is None:
            return jsonify({"error": "Body must be a JSON object"}), 400

        api_key = str(data.get("api_key", "")).strip()
        if not api_key:
            return jsonify({"error": "api_key is required"}), 400

        try:
            ctx = load_access_context(engine, api_key)
            token = generate_token(ctx)
        except ValueError as e:
            return jsonify({"error": f"Authentication failed: {str(e)}"}), 401
        except Exception as e:
            print(f"[ERROR] Login error: {e}", file=sys.stderr)
            traceback.print_exc()
            return jsonify({"error": "Internal server error during login"}), 500

        response = jsonify({
            "success": True,
            "user": {
                "id": ctx.user_id,
                "display_name": ctx.display_name,
                "role": ctx.role.value,
            },
            "redirect": role_home(ctx.role),
        })
        return set_session_cookies(response, ctx, token), 200

    @app.route("/api/auth/logout", methods=["POST"])
    def logout():
        response = jsonify({"success": True, "message": "Logged out successfully"})
        return clear_session_cookies(response), 200

    @app.route("/api/auth/session", methods=["GET"])
    def current_session():
        token = request.cookies.get(TOKEN_COOKIE)
        if not token:
            return jsonify({"error": "Authentication token is missing"}), 401
        payload = verify_token(token)
        if not payload:
            return jsonify({"error": "Invalid or expired token"}), 401
        return jsonify({
            "success": True,
            "user": {
                "id": payload.get("user_id"),
                "display_name": payload.get("display_name"),
                "role": payload.get("role"),
            },
        }), 200

    # ── Identity checks ──────────────────────────────────────────────

    @app.route("/api/verify-id", methods=["POST"])
    def verify_id():
        image = request.files.get("image")
        if image is None:
            return jsonify({"error": "No image file received"}), 400

        data = image.read()
        print(
            f"[verify-id] Processing image: {image.filename}, "
            f"Size: {len(data) / 1024:.2f} KB, Type: {image.mimetype}"
        )

        try:
            predictions = classify_id_card(
                data, image.filename or "upload", image.mimetype or "application/octet-stream",
                id_card_api_key, session=http_session,
            )
        except IdCardServiceError as e:
            return jsonify({"error": str(e)}), 502

        verdict = evaluate_predictions(predictions)
        if verdict.note:
            print(f"[verify-id] {verdict.note} (confidence {verdict.confidence:.2f})")

        body = {
            "isValid": verdict.is_valid,
            "confidence": verdict.confidence,
            "message": verdict.message,
            "predictions": verdict.predictions,
        }
        if verdict.note:
            body["note"] = verdict.note
        return jsonify(body), 200

    @app.route("/api/national-id/validate", methods=["POST"])
    def validate_national_id():
        data = json_object()
        if data is None:
            return jsonify({"error": "Body must be a JSON object"}), 400

        national_id = data.get("national_id")
        if not national_id:
            return jsonify({"error": "national_id is required"}), 400

        result = decode(national_id)
        if not result.valid:
            return jsonify({"valid": False, "error": INVALID_ID_MESSAGE}), 422

        return jsonify({
            "valid": True,
            "birth_date": result.birth_date.isoformat(),
            "age": calculate_age(result.birth_date),
            "sex": result.sex,
            "century": result.century,
            "governorate_code": result.governorate_code,
            "governorate": result.governorate,
        }), 200

    @app.route("/api/phone/validate", methods=["POST"])
    def validate_phone():
        data = json_object()
        if data is None:
            return jsonify({"error": "Body must be a JSON object"}), 400

        phone = data.get("phone")
        if not isinstance(phone, str) or not phone.strip():
            return jsonify({"error": "phone is required"}), 400

        phone = phone.strip()
        if not is_valid_phone(phone):
            return jsonify({"valid": False, "error": INVALID_PHONE_MESSAGE}), 422

        return jsonify({"valid": True, "phone": phone, "formatted": format_phone(phone)}), 200

    # ── Staff dashboards ─────────────────────────────────────────────

    @app.route("/dashboard/<segment>", methods=["GET"])
    @app.route("/dashboard/<segment>/<path:rest>", methods=["GET"])
    def dashboard(segment, rest=None):
        role = role_for_path(request.path)
        if role is None:
            abort(404)
        return jsonify({
            "role": role.value,
            "home": role_home(role),
            "path": request.path,
            "navigation": [
                {"title": title, "url": url, "isActive": url == request.path}
                for title, url in ROLE_NAVIGATION[role]
            ],
        }), 200

    # ── Error handlers ───────────────────────────────────────────────

    @app.errorhandler(404)
    def not_found(e):
        return jsonify({"error": "Not found", "message": str(e)}), 404

    @app.errorhandler(405)
    def method_not_allowed(e):
        return jsonify({"error": "Method not allowed", "message": str(e)}), 405

    @app.errorhandler(413)
    def too_large(e):
        return jsonify({"error": "Uploaded file is too large", "message": str(e)}), 413

    @app.errorhandler(500)
    def internal_error(e):
        return jsonify({"error": "Internal server error", "message": str(e)}), 500
