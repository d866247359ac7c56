"""Append-only storage of site versions and identifier resolution."""

import logging
import threading
from contextlib import contextmanager

from sqlalchemy import func
from sqlalchemy.orm import Session

from sitegen.models.site_version import SiteVersion

logger = logging.getLogger(__name__)

_registry_lock = threading.Lock()
# conversation_id -> [lock, number of holders and waiters]
_conversation_locks: dict[str, list] = {}


@contextmanager
def conversation_lock(conversation_id: str):
    """Serialize version writes for one conversation within this process.

    The registry entry is dropped once nobody holds or waits on the lock.
    """
    with _registry_lock:
        entry = _conversation_locks.setdefault(conversation_id, [threading.Lock(), 0])
        entry[1] += 1
    try:
        with entry[0]:
            yield
    finally:
        with _registry_lock:
            entry[1] -= 1
            if entry[1] == 0:
                del _conversation_locks[conversation_id]


class VersionStore:
    """Persistence for SiteVersion rows. Rows are never updated or deleted here."""

    def __init__(self, session: Session):
        self.session = session

    def by_id(self, version_id: str) -> SiteVersion | None:
        return self.session.get(SiteVersion, version_id)

    def latest(self, conversation_id: str) -> SiteVersion | None:
        return (
            self.session.query(SiteVersion)
            .filter(SiteVersion.conversation_id == conversation_id)
            .order_by(SiteVersion.version_number.desc())
            .first()
        )

    def history(self, conversation_id: str) -> list[SiteVersion]:
        return (
            self.session.query(SiteVersion)
            .filter(SiteVersion.conversation_id == conversation_id)
            .order_by(SiteVersion.version_number.asc())
            .all()
        )

    def max_version_number(self, conversation_id: str) -> int:
        value = (
            self.session.query(func.max(SiteVersion.version_number))
            .filter(SiteVersion.conversation_id == conversation_id)
            .scalar()
        )
        return value or 0

    def insert(
        self,
        conversation_id: str,
        version_number: int,
        code: str,
        description: str | None = None,
        media_map: dict | None = None,
        model: str | None = None,
    ) -> str:
        """Insert one version row and commit. Returns the new id."""
        version = SiteVersion(
            conversation_id=conversation_id,
            version_number=version_number,
            site_code=code,
            description=description,
            media_map=media_map,
            model=model,
        )
        self.session.add(version)
        self.session.commit()
        return version.id

    def create_version(
        self,
        conversation_id: str,
        code: str,
        description: str | None = None,
        media_map: dict | None = None,
        model: str | None = None,
    ) -> SiteVersion:
        """Append the next version for a conversation.

        The max read and the insert happen under the conversation lock so
        concurrent requests never share a version number.
        """
        with conversation_lock(conversation_id):
            number = self.max_version_number(conversation_id) + 1
            version_id = self.insert(
                conversation_id, number, code,
                description=description, media_map=media_map, model=model,
            )
        logger.info("Stored version %d for conversation %s", number, conversation_id)
        return self.by_id(version_id)


def resolve_version(session: Session, identifier: str) -> SiteVersion | None:
    """Find the version an identifier refers to.

    An exact version id always wins, even if newer versions exist. Otherwise
    the identifier is treated as a conversation id and its highest-numbered
    version is returned.
    """
    if not identifier:
        return None
    store = VersionStore(session)

    version = store.by_id(identifier)
    if version is not None:
        logger.debug("Resolved %s as exact version id", identifier)
        return version

    version = store.latest(identifier)
    if version is not None:
        logger.debug(
            "Resolved %s as conversation, version %d", identifier, version.version_number
        )
    return version
