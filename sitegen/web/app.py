"""Flask app: generation jobs, version listing and sandbox previews."""

import logging
from datetime import datetime, timezone
from pathlib import Path

from flask import Flask, jsonify, request, send_from_directory
from pydantic import ValidationError

from sitegen import __version__
from sitegen.config import Settings, get_settings
from sitegen.core.preview import PREVIEW_HEADERS, render_preview
from sitegen.core.publisher import ArtifactPublisher
from sitegen.core.versions import VersionStore
from sitegen.db import get_session_factory, init_db
from sitegen.models.schemas import GenerationRequest
from sitegen.web.jobs import JobManager

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None) -> Flask:
    settings = settings or get_settings()
    init_db(settings.database_url)
    session_factory = get_session_factory(settings.database_url)

    app = Flask(__name__)
    app.config["settings"] = settings
    app.config["session_factory"] = session_factory
    app.config["publisher"] = ArtifactPublisher(session_factory, settings)
    app.config["job_manager"] = JobManager(settings.logs_dir)

    _register_routes(app)
    return app


def _register_routes(app: Flask) -> None:

    @app.get("/api/health")
    def health():
        return jsonify({
            "status": "ok",
            "time": datetime.now(timezone.utc).isoformat(),
            "version": __version__,
        })

    @app.post("/api/generate")
    def generate():
        payload = request.get_json(silent=True) or {}
        try:
            gen_request = GenerationRequest.model_validate(payload)
        except ValidationError as e:
            details = e.errors(include_url=False, include_context=False)
            return jsonify({"error": "invalid request", "details": details}), 400
        if not gen_request.prompt.strip() and gen_request.profile is None:
            return jsonify({"error": "prompt or profile required"}), 400

        manager: JobManager = app.config["job_manager"]
        if gen_request.conversation_id:
            active = manager.active_for_conversation(gen_request.conversation_id)
            if active is not None:
                return jsonify({"error": "generation already running", "job": active.to_dict()}), 409

        job = manager.submit(gen_request, app)
        return jsonify(job.to_dict()), 202

    @app.get("/api/jobs/<job_id>")
    def job_status(job_id: str):
        job = app.config["job_manager"].get(job_id)
        if job is None:
            return jsonify({"error": "job not found"}), 404
        return jsonify(job.to_dict())

    @app.get("/api/conversations/<conversation_id>/versions")
    def list_versions(conversation_id: str):
        session = app.config["session_factory"]()
        try:
            versions = VersionStore(session).history(conversation_id)
            return jsonify([
                {
                    "id": v.id,
                    "version_number": v.version_number,
                    "description": v.description,
                    "model": v.model,
                    "created_at": v.created_at.isoformat(),
                }
                for v in versions
            ])
        finally:
            session.close()

    @app.get("/preview/<identifier>")
    def preview(identifier: str):
        session = app.config["session_factory"]()
        try:
            rendered = render_preview(session, identifier, app.config["settings"])
        finally:
            session.close()
        if rendered is None:
            return jsonify({"error": "site not found"}), 404
        return rendered.html, 200, PREVIEW_HEADERS

    @app.get("/assets/<path:filename>")
    def assets(filename: str):
        assets_dir = Path(app.config["settings"].assets_dir).resolve()
        return send_from_directory(assets_dir, filename)
