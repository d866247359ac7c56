"""Image prompt template for slot assets."""

from sitegen.models.schemas import AssetSlot, BusinessProfile

SLOT_DESCRIPTIONS = {
    AssetSlot.HERO: "main hero image (first impression)",
    AssetSlot.ABOUT: "about-section image (the place or the product)",
    AssetSlot.SERVICES_PRIMARY: "image of the main service",
    AssetSlot.SERVICES_SECONDARY: "image of a secondary service",
    AssetSlot.GALLERY_1: "first gallery image",
    AssetSlot.GALLERY_2: "second gallery image",
    AssetSlot.GALLERY_3: "third gallery image",
}


def build_image_prompt(slot: AssetSlot, profile: BusinessProfile) -> str:
    """Descriptive prompt for one slot image."""
    company = profile.company_name or "the business"
    sector = profile.sector or "general business"
    style = profile.style or "modern, clean"
    return (
        f"Professional commercial photograph for {company}, a {sector} business. "
        f"Used as the {SLOT_DESCRIPTIONS[slot]} of its website. "
        f"{style} style, suited to web composition, soft natural lighting, "
        "no people, no hands holding devices, no text, high quality."
    )
