"""
HTTP Microservice
=================
Flask-based JSON API serving parsed quizzes to the browser client.

Endpoints:
    GET    /api/health                      → Health check
    GET    /api/quizzes                     → Available quiz names
    GET    /api/quiz/<name>                 → Parsed quiz
    GET    /api/quiz/<name>/validation      → Strict diagnostics + report
    GET    /api/media/<quiz>/<path:file>    → Media file of a quiz
"""

from __future__ import annotations

import logging

from flask import Flask, current_app, jsonify, send_file
from flask_cors import CORS
from werkzeug.exceptions import HTTPException

from . import __version__
from .engine import ParserConfig, QuizEngine
from .storage import MediaNotFoundError, QuizNotFoundError

logger = logging.getLogger(__name__)


def create_app(config: dict = None) -> Flask:
    """Create and configure the Flask app."""
    app = Flask(__name__)
    CORS(app)

    if config:
        app.config.update(config)

    # None falls back to QUIZDOWN_QUIZ_DIR / <project root>/quizzes
    app.config.setdefault("QUIZ_DIR", None)
    app.config.setdefault("STRICT_PARSE", False)
    app.config.setdefault("USE_CACHE", True)
    app.json.sort_keys = False

    app.extensions["quizdown"] = QuizEngine(ParserConfig(
        quiz_dir=app.config["QUIZ_DIR"],
        strict=app.config["STRICT_PARSE"],
        use_cache=app.config["USE_CACHE"],
    ))

    _register_routes(app)
    _register_error_handlers(app)

    return app


def _engine() -> QuizEngine:
    return current_app.extensions["quizdown"]


def _register_routes(app: Flask):

    # ─── Health Check ─────────────────────────────────────────────────────

    @app.route("/api/health", methods=["GET"])
    def health():
        """Health check endpoint."""
        return jsonify({
            "status": "healthy",
            "service": "quizdown",
            "version": __version__,
        })

    # ─── Quiz Library ─────────────────────────────────────────────────────

    @app.route("/api/quizzes", methods=["GET"])
    def list_quizzes():
        """List available quizzes."""
        return jsonify([{"name": name} for name in _engine().list_quizzes()])

    @app.route("/api/quiz/<name>", methods=["GET"])
    def get_quiz(name: str):
        """Return the parsed structure of a named quiz."""
        result = _engine().load(name)
        return jsonify(result.quiz.to_api())

    @app.route("/api/quiz/<name>/validation", methods=["GET"])
    def validate_quiz(name: str):
        """
        Parse a quiz in strict mode and return what the permissive parse
        silently skipped.
        """
        result = _engine().load(name, strict=True)
        return jsonify({
            "name": name,
            "diagnostics": [
                d.model_dump(mode="json") for d in result.diagnostics
            ],
            "validation": result.validation.model_dump(mode="json"),
        })

    # ─── Media ────────────────────────────────────────────────────────────

    @app.route("/api/media/<quiz>/<path:filename>", methods=["GET"])
    def get_media(quiz: str, filename: str):
        """Stream a media file that belongs to a quiz."""
        return send_file(_engine().media_path(quiz, filename))


def _register_error_handlers(app: Flask):

    @app.errorhandler(QuizNotFoundError)
    def quiz_not_found(e):
        logger.info(f"Quiz not found: {e}")
        return jsonify({"error": "Quiz not found"}), 404

    @app.errorhandler(MediaNotFoundError)
    def media_not_found(e):
        return jsonify({"error": "Media file not found"}), 404

    @app.errorhandler(404)
    def route_not_found(e):
        return jsonify({"error": "Not found"}), 404

    @app.errorhandler(Exception)
    def unhandled(e):
        if isinstance(e, HTTPException):
            return jsonify({"error": e.description}), e.code
        logger.error(f"Unhandled exception: {e}", exc_info=True)
        return jsonify({"error": str(e)}), 500


def run_server(
    host: str = "0.0.0.0",
    port: int = 3000,
    debug: bool = False,
    quiz_dir: str = None,
):
    """Start the quiz server."""
    app = create_app({"QUIZ_DIR": quiz_dir} if quiz_dir else None)
    logger.info(f"Quiz app running at http://{host}:{port}")
    app.run(host=host, port=port, debug=debug)


if __name__ == "__main__":
    run_server(debug=True)
