"""Site generation prompt template."""

from sitegen.models.schemas import AssetSlot, BusinessProfile


def anchor_marker(slot: AssetSlot) -> str:
    return "{/* ANCHOR:" + slot.value + " */}"


def _profile_block(profile: BusinessProfile | None) -> str:
    if profile is None:
        return "(none provided)"
    lines = []
    if profile.company_name:
        lines.append(f"- Company: {profile.company_name}")
    if profile.sector:
        lines.append(f"- Sector: {profile.sector}")
    if profile.style:
        lines.append(f"- Style: {profile.style}")
    if profile.tone:
        lines.append(f"- Tone: {profile.tone}")
    if profile.pages:
        lines.append(f"- Pages/sections: {', '.join(profile.pages)}")
    if profile.features:
        lines.append(f"- Features: {', '.join(profile.features)}")
    return "\n".join(lines) if lines else "(none provided)"


def build_user_prompt(prompt: str, profile: BusinessProfile | None = None) -> str:
    """Build user prompt for a full site.

    Args:
        prompt: The client's free-text request.
        profile: Optional structured business profile.

    Returns:
        User prompt string.
    """
    client_request = prompt.strip()
    if not client_request and profile is not None:
        client_request = f"Website for {profile.company_name} in the {profile.sector} sector"

    anchors = "\n".join(
        f"- {anchor_marker(slot)}" for slot in AssetSlot
    )

    return f"""\
## TASK: Build a complete website

### CLIENT REQUEST:
"{client_request}"

### BUSINESS PROFILE:
{_profile_block(profile)}

You decide the color palette, layout, visual identity and where images go.

### TECHNICAL REQUIREMENTS:
- React/JSX + Tailwind CSS
- Fully responsive (sm:, md:, lg:, xl: breakpoints), mobile-first
- Subtle animations with Framer Motion
- Icons from react-icons when useful
- Clean, organized code

### IMAGE ANCHORS:
Place these anchors where images belong (use each at most once):
{anchors}

### OUTPUT FORMAT:
```jsx
import React from 'react';
import {{ motion }} from 'framer-motion';

export default function Site() {{
  return (
    <>
      {{/* YOUR COMPLETE, RESPONSIVE CODE HERE */}}
    </>
  );
}}
```

Return ONLY the JSX code, without explanations.
"""
