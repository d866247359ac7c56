"""Inject resolved image assets into a generated site.

Each asset is placed at its explicit anchor when the site carries one,
otherwise before the first element matched by the slot's structural
heuristics. Assets that cannot be placed are dropped; the site stays
renderable without them. Only insertion happens here: apart from the
consumed anchor marker, existing content is left untouched.
"""

import logging
import re

from sitegen.models.schemas import AssetSlot, ResolvedAsset

logger = logging.getLogger(__name__)

_ANCHOR_TOKEN = re.compile(r"(?:IMAGE_)?ANCHOR:([a-z0-9_-]+)")

_HEURISTICS: dict[AssetSlot, list[tuple[str, re.Pattern]]] = {
    AssetSlot.HERO: [
        ("hero section", re.compile(
            r"<section[^>]*class(?:Name)?=\"[^\"]*(?:hero|banner)[^\"]*\"[^>]*>", re.I
        )),
    ],
    AssetSlot.ABOUT: [
        ("about section", re.compile(r"<section[^>]*id=\"(?:sobre|about)\"[^>]*>", re.I)),
        ("content container", re.compile(
            r"<div[^>]*class(?:Name)?=\"[^\"]*max-w-(?:7xl|6xl|5xl)[^\"]*\"[^>]*>", re.I
        )),
    ],
    AssetSlot.SERVICES_PRIMARY: [
        ("service card", re.compile(
            r"<div[^>]*class(?:Name)?=\"[^\"]*service-card[^\"]*\"[^>]*>", re.I
        )),
        ("generic card", re.compile(
            r"<div[^>]*class(?:Name)?=\"[^\"]*card[^\"]*\"[^>]*>", re.I
        )),
    ],
    AssetSlot.GALLERY_1: [
        ("gallery grid", re.compile(
            r"<div[^>]*class(?:Name)?=\"[^\"]*grid[^\"]*(?:cols-2|cols-3|cols-4)[^\"]*\"[^>]*>",
            re.I,
        )),
    ],
}
_HEURISTICS[AssetSlot.SERVICES_SECONDARY] = _HEURISTICS[AssetSlot.SERVICES_PRIMARY]
_HEURISTICS[AssetSlot.GALLERY_2] = _HEURISTICS[AssetSlot.GALLERY_1]
_HEURISTICS[AssetSlot.GALLERY_3] = _HEURISTICS[AssetSlot.GALLERY_1]


def _anchor_patterns(slot: str) -> list[re.Pattern]:
    """Marker forms for a slot, most specific first."""
    name = re.escape(slot)
    return [
        re.compile(r"\{\s*/\*\s*(?:IMAGE_)?ANCHOR:" + name + r"\s*\*/\s*\}"),
        re.compile(r"<!--\s*(?:IMAGE_)?ANCHOR:" + name + r"\s*-->"),
        re.compile(r"(?:IMAGE_)?ANCHOR:" + name + r"(?![a-z0-9_-])"),
    ]


def find_anchor_slots(code: str) -> list[AssetSlot]:
    """Slots referenced by anchor markers, in order of first appearance."""
    slots: list[AssetSlot] = []
    for name in _ANCHOR_TOKEN.findall(code or ""):
        try:
            slot = AssetSlot(name)
        except ValueError:
            logger.debug("Ignoring unknown anchor slot: %s", name)
            continue
        if slot not in slots:
            slots.append(slot)
    return slots


def is_jsx(code: str) -> bool:
    return "className=" in code or "export default" in code or "import React" in code


def build_fragment(asset: ResolvedAsset, jsx: bool = True) -> str:
    """Markup placing one asset, shaped for its slot."""
    cls = "className" if jsx else "class"
    url = asset.url
    slot = asset.slot

    if slot == AssetSlot.HERO:
        style = (
            f"style={{{{ backgroundImage: 'url({url})' }}}}" if jsx
            else f"style=\"background-image: url('{url}')\""
        )
        return (
            f'<div {cls}="absolute inset-0 -z-10 bg-cover bg-center opacity-90" {style} />\n'
            f'<div {cls}="absolute inset-0 bg-gradient-to-b from-black/70 '
            f'via-black/50 to-transparent -z-10" />'
        )

    if slot == AssetSlot.ABOUT:
        alt, classes = "About us", (
            "rounded-xl shadow-elegant mb-8 w-full max-w-3xl mx-auto object-cover aspect-video"
        )
    elif slot in (AssetSlot.SERVICES_PRIMARY, AssetSlot.SERVICES_SECONDARY):
        alt = "Main service" if slot == AssetSlot.SERVICES_PRIMARY else "Secondary service"
        classes = (
            "w-full h-64 object-cover rounded-lg mb-4 shadow-md "
            "hover:scale-105 transition-transform"
        )
    else:
        alt = f"Gallery {slot.value.removeprefix('gallery_')}"
        classes = (
            "w-full aspect-[4/3] object-cover rounded-xl shadow-elegant "
            "hover:scale-105 transition-transform cursor-pointer"
        )
    return f'<img src="{url}" alt="{alt}" {cls}="{classes}" loading="lazy" />'


def _inject_by_anchor(code: str, slot: str, fragment: str) -> str | None:
    for pattern in _anchor_patterns(slot):
        match = pattern.search(code)
        if match:
            return code[:match.start()] + fragment + code[match.end():]
    return None


def _inject_by_heuristic(code: str, slot: AssetSlot, fragment: str) -> str | None:
    for description, pattern in _HEURISTICS.get(slot, []):
        match = pattern.search(code)
        if match:
            logger.debug("Placing %s before %s", slot.value, description)
            return code[:match.start()] + fragment + "\n" + code[match.start():]
    return None


def resolve_anchors(code: str, assets: list[ResolvedAsset]) -> str:
    """Insert every asset that can be placed; drop the rest.

    Returns:
        The site with assets injected.
    """
    output = code or ""
    jsx = is_jsx(output)

    for asset in assets:
        fragment = build_fragment(asset, jsx=jsx)
        slot = asset.slot.value

        placed = _inject_by_anchor(output, slot, fragment)
        if placed is not None:
            logger.info("Injected %s by anchor", slot)
            output = placed
            continue

        placed = _inject_by_heuristic(output, asset.slot, fragment)
        if placed is not None:
            logger.info("Injected %s by heuristic", slot)
            output = placed
            continue

        logger.info("No placement found for %s, dropping asset", slot)

    return output
