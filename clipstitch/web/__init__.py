"""Flask application factory for the clipstitch job API."""

import tempfile
from pathlib import Path

from flask import Flask, jsonify

from clipstitch.manifest import DEFAULT_CACHE_DIR


def create_app(work_dir: Path | None = None, cache_dir: Path | None = None) -> Flask:
    app = Flask(__name__)
    app.config["WORK_DIR"] = work_dir or Path(tempfile.mkdtemp(prefix="clipstitch_"))
    app.config["CACHE_DIR"] = cache_dir or DEFAULT_CACHE_DIR
    app.config["MAX_CONTENT_LENGTH"] = 1 * 1024 * 1024  # task lists only

    from clipstitch.web.routes import bp
    app.register_blueprint(bp)

    @app.route("/health")
    def health():
        return jsonify({"status": "ok", "message": "clipstitch API is running"})

    @app.errorhandler(413)
    def request_entity_too_large(error):
        return jsonify({"error": "Task list too large"}), 413

    return app
