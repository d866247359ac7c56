"""Render pipeline: resolve a stored site, convert it to HTML, sanitize and harness it."""

import logging
from dataclasses import dataclass

from sqlalchemy.orm import Session

from sitegen.config import Settings
from sitegen.core.anchors import is_jsx
from sitegen.core.harness import inject_harness
from sitegen.core.jsx_html import to_html
from sitegen.core.sanitizer import sanitize
from sitegen.core.versions import resolve_version
from sitegen.models.schemas import CodeArtifact

logger = logging.getLogger(__name__)

PREVIEW_HEADERS = {
    "Content-Type": "text/html; charset=utf-8",
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Permissions-Policy": "geolocation=(), microphone=(), camera=()",
    "Cache-Control": "no-cache, no-store, must-revalidate",
    "X-Robots-Tag": "noindex, nofollow",
}


@dataclass
class RenderedPreview:
    version_id: str
    conversation_id: str
    version_number: int
    artifact: CodeArtifact

    @property
    def html(self) -> str:
        return self.artifact.final


def prepare_for_sandbox(code: str, artifact_id: str, settings: Settings) -> CodeArtifact:
    """Convert, sanitize and wrap a stored site. Pure; safe to call concurrently.

    JSX components are rewritten to a standalone HTML document first; HTML
    sites pass through as stored.
    """
    html = to_html(code) if is_jsx(code) else code
    sanitized = sanitize(html, blocked_hosts=settings.blocked_hosts)
    final = inject_harness(sanitized, artifact_id, watermark_text=settings.watermark_text)
    return CodeArtifact(raw=code, normalized=html, sanitized=sanitized, final=final)


def render_preview(session: Session, identifier: str, settings: Settings) -> RenderedPreview | None:
    """Build the sandbox document for a version id or conversation id.

    Sanitization runs on every render so stored sites benefit from rules
    added after they were generated.

    Returns:
        RenderedPreview, or None if nothing matches the identifier.
    """
    version = resolve_version(session, identifier)
    if version is None:
        logger.info("No site found for %s", identifier)
        return None

    artifact = prepare_for_sandbox(version.site_code or "", version.id, settings)
    logger.info(
        "Rendered %s v%d (%d -> %d chars)",
        version.conversation_id, version.version_number,
        len(artifact.raw), len(artifact.final),
    )
    return RenderedPreview(
        version_id=version.id,
        conversation_id=version.conversation_id,
        version_number=version.version_number,
        artifact=artifact,
    )
