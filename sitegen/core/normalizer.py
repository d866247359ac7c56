"""Extract the runnable artifact from a free-form model response."""

import re

_FENCED_BLOCK = re.compile(r"```(?:[\w+-]*[^\S\n]*\n)?([\s\S]*?)```")
_FENCE_MARKER = re.compile(r"```(?:[\w+-]*[^\S\n]*(?=\n))?")
_ARTIFACT_START = re.compile(
    r"^[ \t]*(?:import\s|export\s|<!DOCTYPE|<html|<div|<header|<section|<main|<body)",
    re.IGNORECASE | re.MULTILINE,
)


def normalize_code(raw_text: str | None) -> str:
    """Return the artifact contained in a model response.

    A fenced code block wins; its inner content is returned trimmed. Without
    a fence, stray fence markers are removed and any preamble before the
    first line that looks like the start of an artifact (import/export
    statement or an opening structural tag) is discarded.

    Never raises. Callers validate emptiness and length themselves.
    """
    if not raw_text:
        return ""
    text = str(raw_text)

    match = _FENCED_BLOCK.search(text)
    if match and match.group(1).strip():
        return match.group(1).strip()

    cleaned = _FENCE_MARKER.sub("", text)
    start = _ARTIFACT_START.search(cleaned)
    if start:
        cleaned = cleaned[start.start():]
    return cleaned.strip()


def has_min_length(code: str, minimum: int) -> bool:
    return len(code.strip()) >= minimum
