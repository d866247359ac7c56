"""Background job manager for site generation requests.

Uses a single-thread ThreadPoolExecutor so jobs queue up and execute
one at a time, which keeps provider calls sequential across requests.
Jobs are stored in-memory; on process restart they are lost,
but the site_versions table is always the source of truth.
"""

import logging
import threading
import uuid
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path

from flask import Flask

from sitegen.models.schemas import GenerationRequest

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Job:
    job_id: str
    conversation_id: str
    request: GenerationRequest
    state: str = "queued"  # queued|running|success|error
    stage: str = ""
    message: str = ""
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)
    result: dict | None = None

    def to_dict(self) -> dict:
        return {
            "job_id": self.job_id,
            "conversation_id": self.conversation_id,
            "state": self.state,
            "stage": self.stage,
            "message": self.message,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
            "result": self.result,
        }


class JobManager:

    def __init__(self, logs_dir: str):
        self._executor = ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="sitegen-job",
        )
        self._jobs: dict[str, Job] = {}
        self._lock = threading.Lock()
        self._logs_dir = logs_dir
        (Path(logs_dir) / "conversations").mkdir(parents=True, exist_ok=True)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def submit(self, request: GenerationRequest, app: Flask) -> Job:
        job_id = uuid.uuid4().hex[:12]
        conversation_id = request.conversation_id or uuid.uuid4().hex
        request = request.model_copy(update={"conversation_id": conversation_id})
        job = Job(job_id=job_id, conversation_id=conversation_id, request=request)
        with self._lock:
            self._jobs[job_id] = job
        self._executor.submit(self._execute, job, app)
        logger.info("Job %s submitted for conversation %s", job_id, conversation_id)
        return job

    def get(self, job_id: str) -> Job | None:
        with self._lock:
            return self._jobs.get(job_id)

    def active_for_conversation(self, conversation_id: str) -> Job | None:
        with self._lock:
            for job in self._jobs.values():
                if job.conversation_id == conversation_id and job.state in ("queued", "running"):
                    return job
        return None

    def shutdown(self) -> None:
        self._executor.shutdown(wait=False)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _update(self, job: Job, **kwargs) -> None:
        with self._lock:
            for key, value in kwargs.items():
                setattr(job, key, value)
            job.updated_at = _utcnow()

    def _log(self, job: Job, msg: str) -> None:
        ts = _utcnow().strftime("%Y-%m-%d %H:%M:%S")
        line = f"{ts} [{job.job_id}] {msg}\n"
        log_path = Path(self._logs_dir) / "conversations" / f"{job.conversation_id}.log"
        try:
            with open(log_path, "a", encoding="utf-8") as f:
                f.write(line)
        except OSError:
            logger.warning("Failed to write conversation log: %s", log_path)

    # ------------------------------------------------------------------
    # Executor entry point
    # ------------------------------------------------------------------

    def _execute(self, job: Job, app: Flask) -> None:
        from sitegen.core.generator import SiteGenerator

        with app.app_context():
            settings = app.config["settings"]
            publisher = app.config["publisher"]

            self._update(job, state="running", stage="generating")
            self._log(job, "Generating site...")

            try:
                generator = SiteGenerator(settings, publisher=publisher)
                result = generator.generate(job.request)
                self._log(
                    job,
                    f"Generated via {result.provider} after {len(result.attempts)} "
                    f"attempt(s), {len(result.code)} chars, ${result.cost_usd:.4f}",
                )

                outcome = {
                    "success": True,
                    "provider": result.provider,
                    "attempts": result.attempts,
                    "cost_usd": result.cost_usd,
                    "version_id": None,
                    "version_number": None,
                }
                if result.publish is not None:
                    self._update(job, stage="publishing")
                    published = result.publish.result()
                    outcome["version_id"] = published.version_id
                    outcome["version_number"] = published.version_number
                    if published.error:
                        outcome["publish_error"] = published.error
                        self._log(job, f"Publish failed: {published.error}")
                    else:
                        self._log(job, f"Stored version {published.version_number}")

                self._update(job, state="success", stage="done", result=outcome)
                self._log(job, "Job completed successfully")

            except Exception as e:
                logger.exception("Job %s failed", job.job_id)
                self._update(job, state="error", message=str(e))
                self._log(job, f"ERROR: {e}")
