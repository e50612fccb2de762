"""
Flask application factory and server entry-point.
"""

import os
import sys
import traceback

from flask import Flask, abort, redirect, request
from flask_cors import CORS

from medportal.config import MAX_UPLOAD_BYTES, TOKEN_EXPIRY_HOURS, get_env
from medportal.database import init_engine
from medportal.models import RedirectTo, RejectNotFound
from medportal.rbac import decide_from_cookies
from medportal.api.routes import register_routes


def install_route_guard(app):
    """Run the access router before every request handler."""

    @app.before_request
    def route_guard():
        decision = decide_from_cookies(request.path, request.cookies)
        if isinstance(decision, RedirectTo):
            return redirect(decision.path)
        if isinstance(decision, RejectNotFound):
            abort(404)
        return None


def create_app(engine=None, id_card_api_key=None, http_session=None):
    """Build and return a fully configured Flask application."""
    app = Flask(__name__)
    app.config["MAX_CONTENT_LENGTH"] = MAX_UPLOAD_BYTES
    CORS(app, supports_credentials=True)

    # ── Initialise shared resources ──────────────────────────────────
    try:
        if engine is None:
            print("[init] Initializing database connection...")
            engine = init_engine()

        if id_card_api_key is None:
            id_card_api_key = get_env("ROBOFLOW_API_KEY")

        print("[init] ✓ API server ready")
    except Exception as e:
        print(f"[FATAL] Failed to initialize: {e}", file=sys.stderr)
        traceback.print_exc()
        sys.exit(1)

    install_route_guard(app)
    register_routes(app, engine, id_card_api_key, http_session=http_session)

    return app


def main():
    """Run the development server."""
    print("=" * 60)
    print("Medical Portal – Access & Identity API")
    print("=" * 60)

    app = create_app()

    host = os.getenv("API_HOST", "0.0.0.0")
    port = int(os.getenv("API_PORT", "8000"))
    debug = os.getenv("FLASK_ENV") == "development"

    print(f"\n[server] Starting Flask API on {host}:{port}")
    print(f"[server] Debug mode: {debug}")
    print(f"[server] Session expiry: {TOKEN_EXPIRY_HOURS} hours")
    print("\nAPI Endpoints:")
    print(f"  - POST http://{host}:{port}/api/auth/staff/login")
    print(f"  - POST http://{host}:{port}/api/auth/logout")
    print(f"  - GET  http://{host}:{port}/api/auth/session")
    print(f"  - POST http://{host}:{port}/api/verify-id")
    print(f"  - POST http://{host}:{port}/api/national-id/validate")
    print(f"  - GET  http://{host}:{port}/health")
    print("\n" + "=" * 60)

    app.run(host=host, port=port, debug=debug, threaded=True)


if __name__ == "__main__":
    main()
