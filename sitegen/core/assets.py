"""Sequential, rate-limited composition of slot images for a site."""

import logging
import time
from typing import Callable

from sitegen.core.errors import AssetResolutionFailure
from sitegen.models.schemas import AssetSlot, BusinessProfile, ResolvedAsset
from sitegen.services.image_service import generate_image

logger = logging.getLogger(__name__)

BASE_SLOTS = (AssetSlot.HERO, AssetSlot.ABOUT, AssetSlot.SERVICES_PRIMARY)
GALLERY_SLOTS = (AssetSlot.GALLERY_1, AssetSlot.GALLERY_2, AssetSlot.GALLERY_3)

_SERVICE_PAGES = {"services", "servicos", "serviços"}
_GALLERY_PAGES = {"gallery", "galeria", "portfolio"}


def plan_slots(
    profile: BusinessProfile | None,
    anchored: list[AssetSlot] | None = None,
) -> list[AssetSlot]:
    """Slots to generate images for.

    When the site carries anchors, exactly the anchored slots are planned.
    Otherwise the base slots plus whatever the profile's pages call for.
    """
    if anchored:
        return list(dict.fromkeys(anchored))

    slots = list(BASE_SLOTS)
    pages = {p.lower() for p in (profile.pages if profile else [])}
    if pages & _SERVICE_PAGES:
        slots.append(AssetSlot.SERVICES_SECONDARY)
    if pages & _GALLERY_PAGES:
        slots.extend(GALLERY_SLOTS)
    return slots


def compose_assets(
    slots: list[AssetSlot],
    profile: BusinessProfile,
    site_key: str,
    settings,
    generate: Callable[..., ResolvedAsset] = generate_image,
    sleep: Callable[[float], None] = time.sleep,
) -> list[ResolvedAsset]:
    """Generate one asset per slot, one call at a time.

    A fixed delay separates calls to respect the image provider's rate
    limits. A slot that fails gets the placeholder image; the remaining
    slots still run.
    """
    results: list[ResolvedAsset] = []

    for i, slot in enumerate(slots):
        logger.info("Generating %s (%d/%d)", slot.value, i + 1, len(slots))
        try:
            asset = generate(slot, profile, site_key, settings)
        except Exception as e:
            failure = AssetResolutionFailure(slot.value, str(e))
            logger.warning("%s, using placeholder", failure)
            asset = ResolvedAsset(
                slot=slot, url=settings.placeholder_image_url, placeholder=True,
            )
        results.append(asset)

        if i < len(slots) - 1:
            sleep(settings.image_delay_seconds)

    return results
