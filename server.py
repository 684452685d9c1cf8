# server.py
import logging
import os
from typing import Optional
from urllib.parse import urlsplit

from flask import Flask, jsonify, request
from flask_cors import CORS
from werkzeug.exceptions import HTTPException

from adapters.web.share_blueprint import share
from infrastructure.store import JsonTokenStore
from onetime.config import Settings, configure_logging, load_settings
from onetime.lifecycle import ShareService
from onetime.utils import listen_address

logger = logging.getLogger("onetime")


# ════════════════════════════════════════════════════════════════════
# App factory
# ════════════════════════════════════════════════════════════════════

def create_app(settings: Settings, service: Optional[ShareService] = None) -> Flask:
    """Build the Flask app around *service* (a JSON-store service by default)."""
    app = Flask(__name__)

    if service is None:
        service = ShareService.from_settings(settings, JsonTokenStore(settings.token_db))
    app.extensions["share_service"] = service
    app.config["ONETIME_SETTINGS"] = settings

    # P1: Secret key from env or random; no sessions are used, but Flask expects one
    app.config["SECRET_KEY"] = os.environ.get("FLASK_SECRET_KEY") or os.urandom(32)

    # P1: Restrict CORS to the public origin
    parts = urlsplit(settings.base_addr)
    origin: str = f"{parts.scheme}://{parts.netloc}"
    CORS(app, resources={r"/*": {"origins": [origin]}})

    app.register_blueprint(share)
    _register_handlers(app)
    return app


def _register_handlers(app: Flask) -> None:
    # ════════════════════════════════════════════════════════════════
    # Error handlers & Security headers
    # ════════════════════════════════════════════════════════════════

    @app.errorhandler(404)
    def not_found(e):
        path = request.path
        # Log suspicious path patterns
        suspicious = any(p in path for p in ["..", "etc", "passwd", "wp-admin", ".env"])
        if suspicious:
            logger.warning("suspicious 404 ip=%s path=%s", request.remote_addr, path)
        return jsonify({"error": "Not found."}), 404

    @app.errorhandler(405)
    def method_not_allowed(e):
        return jsonify({"error": "Method not allowed."}), 405

    @app.errorhandler(Exception)
    def handle_exception(e):
        """Generic handler: never leak internal details to the client."""
        if isinstance(e, HTTPException):
            return e
        logger.error("unhandled exception: %s", e, exc_info=True)
        return jsonify({"error": "An internal error occurred."}), 500

    @app.after_request
    def set_security_headers(response):
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Content-Security-Policy"] = (
            "default-src 'none'; "
            "style-src 'unsafe-inline'; "
            "img-src 'self'; "
            "base-uri 'none'; "
            "form-action 'none';"
        )
        response.headers["Referrer-Policy"] = "no-referrer"
        response.headers["Cache-Control"] = "no-store"
        return response


# ════════════════════════════════════════════════════════════════════
# Entry point
# ════════════════════════════════════════════════════════════════════

def serve(settings: Settings) -> None:
    """Run the threaded server on the host/port of BASE_ADDR, over TLS for https."""
    configure_logging(settings.log_file)
    app = create_app(settings)
    host, port = listen_address(settings.base_addr)
    ssl_context = (settings.crt, settings.key) if settings.uses_tls else None

    logger.info("START %s", settings.base_addr)
    debug_mode = os.environ.get("FLASK_DEBUG", "false").lower() == "true"
    app.run(host=host, port=port, ssl_context=ssl_context, threaded=True, debug=debug_mode)


if __name__ == "__main__":
    serve(load_settings())
