"""
Web server — Flask app factory.

Exposes the pipeline over HTTP for local development: the chat
endpoint, the realtime SSE stream, and read-only views of the local
ledger and activity history.
"""

from __future__ import annotations

import logging
from typing import Callable

from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

from pineforge.adapters.base import GenerationAdapter
from pineforge.adapters.scripted import ScriptedGeneration
from pineforge.core.config.settings import PipelineSettings
from pineforge.core.engine.pipeline import ResponsePipeline, build_local_pipeline
from pineforge.core.errors import PipelineError
from pineforge.core.services.broadcast import BroadcastHub

logger = logging.getLogger(__name__)


def create_app(
    settings: PipelineSettings | None = None,
    *,
    generation: GenerationAdapter | None = None,
    pipeline: ResponsePipeline | None = None,
    hub: BroadcastHub | None = None,
    authenticate: Callable[[str], str | None] | None = None,
) -> Flask:
    """Create and configure the Flask application.

    Args:
        settings: Pipeline settings (defaults when None).
        generation: Generation adapter for a locally wired pipeline;
            defaults to an empty scripted reply.
        pipeline: Fully wired pipeline; overrides ``generation``.
        hub: Broadcast hub shared with the pipeline.
        authenticate: Maps a bearer token to a user id (None = reject).
            Defaults to treating the token itself as the user id.

    Returns:
        Configured Flask application.
    """
    app = Flask(__name__)

    settings = settings or PipelineSettings()
    if pipeline is None:
        hub = hub or BroadcastHub()
        pipeline = build_local_pipeline(settings, generation or ScriptedGeneration(), hub)
    elif hub is None:
        hub = pipeline.hub or BroadcastHub()

    app.config["PIPELINE_SETTINGS"] = settings
    app.extensions["pineforge"] = {
        "pipeline": pipeline,
        "hub": hub,
        "authenticate": authenticate or (lambda token: token or None),
    }

    from pineforge.ui.web.routes_chat import chat_bp
    from pineforge.ui.web.routes_events import events_bp
    from pineforge.ui.web.routes_rewards import rewards_bp

    app.register_blueprint(chat_bp, url_prefix="/api")
    app.register_blueprint(events_bp, url_prefix="/api")
    app.register_blueprint(rewards_bp, url_prefix="/api")

    @app.errorhandler(PipelineError)
    def _pipeline_error(e: PipelineError):  # type: ignore[no-untyped-def]
        if e.status_code >= 500:
            logger.error("Pipeline error: %s", e)
        return jsonify(e.to_dict()), e.status_code

    @app.errorhandler(Exception)
    def _unhandled(e: Exception):  # type: ignore[no-untyped-def]
        if isinstance(e, HTTPException):
            return e
        logger.exception("Unhandled error")
        return jsonify({"error": "Internal server error", "code": "INTERNAL"}), 500

    @app.route("/api/health")
    def health():  # type: ignore[no-untyped-def]
        return jsonify({
            "status": "ok",
            "subscribers": hub.subscriber_count,
            "collaborators": pipeline.collaborators.status(),
        })

    logger.info("Web app created (state_dir=%s)", settings.state_path)
    return app


def run_server(
    app: Flask,
    host: str = "127.0.0.1",
    port: int = 8000,
    debug: bool = False,
) -> None:
    """Run the Flask development server (threaded, one thread per request)."""
    logger.info("Starting pineforge on %s:%d", host, port)
    app.run(host=host, port=port, debug=debug, use_reloader=False, threaded=True)
