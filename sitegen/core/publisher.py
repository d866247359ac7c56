"""Detached persistence of generated sites.

Uses a single-thread ThreadPoolExecutor so writes queue up and execute one
at a time, which also suits SQLite's single-writer constraint. Asset
resolution happens before the version is written, so every stored version
is final and never updated afterwards.
"""

import logging
import uuid
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field

from sqlalchemy.orm import Session, sessionmaker

from sitegen.config import Settings
from sitegen.core.anchors import find_anchor_slots, resolve_anchors
from sitegen.core.assets import compose_assets, plan_slots
from sitegen.core.errors import PersistenceFailure
from sitegen.core.normalizer import has_min_length
from sitegen.core.versions import VersionStore
from sitegen.models.schemas import BusinessProfile

logger = logging.getLogger(__name__)


@dataclass
class PublishResult:
    conversation_id: str
    code: str
    version_id: str | None = None
    version_number: int | None = None
    media_map: dict = field(default_factory=dict)
    error: str | None = None

    @property
    def stored(self) -> bool:
        return self.version_id is not None


class ArtifactPublisher:

    def __init__(self, session_factory: sessionmaker[Session], settings: Settings):
        self._executor = ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="sitegen-publish",
        )
        self._session_factory = session_factory
        self._settings = settings

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def submit(
        self,
        conversation_id: str,
        code: str,
        profile: BusinessProfile | None = None,
        model: str | None = None,
        description: str | None = None,
    ) -> Future:
        """Queue a site for asset resolution and storage. Never raises."""
        logger.info("Publish queued for conversation %s", conversation_id)
        return self._executor.submit(
            self._run, conversation_id, code, profile, model, description,
        )

    def publish(
        self,
        conversation_id: str,
        code: str,
        profile: BusinessProfile | None = None,
        model: str | None = None,
        description: str | None = None,
    ) -> PublishResult:
        """Resolve assets (best effort), then store the final site as a new version.

        Raises:
            PersistenceFailure: If the version could not be written.
        """
        result = PublishResult(conversation_id=conversation_id, code=code)
        result.code, result.media_map = self._resolve_assets(conversation_id, code, profile)

        session = self._session_factory()
        try:
            version = VersionStore(session).create_version(
                conversation_id, result.code,
                description=description,
                media_map=result.media_map or None,
                model=model,
            )
            result.version_id = version.id
            result.version_number = version.version_number
        except Exception as e:
            session.rollback()
            raise PersistenceFailure(
                f"Could not store version for {conversation_id}: {e}"
            ) from e
        finally:
            session.close()

        return result

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _run(self, conversation_id, code, profile, model, description) -> PublishResult:
        try:
            return self.publish(conversation_id, code, profile, model, description)
        except PersistenceFailure as e:
            logger.exception("Publish failed for conversation %s", conversation_id)
            return PublishResult(conversation_id=conversation_id, code=code, error=str(e))

    def _resolve_assets(
        self,
        conversation_id: str,
        code: str,
        profile: BusinessProfile | None,
    ) -> tuple[str, dict]:
        anchored = find_anchor_slots(code)
        if not anchored or not self._settings.generate_images:
            return code, {}

        try:
            assets = compose_assets(
                plan_slots(profile, anchored),
                profile or BusinessProfile(),
                f"{conversation_id}_{uuid.uuid4().hex[:8]}",
                self._settings,
            )
            resolved = resolve_anchors(code, assets)
        except Exception:
            logger.exception("Asset resolution failed, storing site without images")
            return code, {}

        if not has_min_length(resolved, self._settings.min_artifact_length):
            logger.warning("Site after asset injection is invalid, keeping original")
            return code, {}

        return resolved, {a.slot.value: a.url for a in assets}
