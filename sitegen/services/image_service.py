"""Image generation for site asset slots via the OpenAI Images API."""

import base64
import logging
from pathlib import Path

from sitegen.models.schemas import AssetSlot, BusinessProfile, ResolvedAsset
from sitegen.prompts.image import build_image_prompt

logger = logging.getLogger(__name__)


class LocalAssetStore:
    """Writes images under a directory served at a public base URL."""

    def __init__(self, assets_dir: str, base_url: str):
        self.assets_dir = Path(assets_dir)
        self.base_url = base_url.rstrip("/")

    def save(self, key: str, data: bytes) -> tuple[str, str]:
        """Store bytes under key. Returns (storage path, public URL)."""
        path = self.assets_dir / key
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        return str(path), f"{self.base_url}/{key}"


def generate_image(
    slot: AssetSlot,
    profile: BusinessProfile,
    site_key: str,
    settings,
    store: LocalAssetStore | None = None,
) -> ResolvedAsset:
    """Generate one slot image and store it.

    Raises:
        RuntimeError: If the API returns no image data.
        Any SDK or filesystem error propagates to the caller.
    """
    from openai import OpenAI

    store = store or LocalAssetStore(settings.assets_dir, settings.assets_base_url)
    prompt = build_image_prompt(slot, profile)

    client = OpenAI(
        api_key=settings.openai_api_key,
        max_retries=settings.max_retries,
        timeout=settings.provider_timeout_seconds,
    )
    response = client.images.generate(
        model=settings.image_model,
        prompt=prompt,
        size=settings.image_size,
        quality="standard",
        response_format="b64_json",
        n=1,
    )

    b64 = response.data[0].b64_json if response.data else None
    if not b64:
        raise RuntimeError("Image generation returned no data")

    storage_path, url = store.save(f"{site_key}_{slot.value}.png", base64.b64decode(b64))
    logger.info("Generated %s image: %s", slot.value, url)
    return ResolvedAsset(slot=slot, url=url, storage_path=storage_path)
