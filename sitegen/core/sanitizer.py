"""Textual sanitization of generated sites before every render.

Each pass is a plain string rewrite that is idempotent on its own output.
Nothing here parses HTML; the goal is to strip secrets and neutralize
navigation to internal hosts that providers have echoed into sites.
"""

import logging
import re
from functools import partial
from typing import Callable

logger = logging.getLogger(__name__)

DEFAULT_BLOCKED_HOSTS = ("localhost:3001",)

SENSITIVE_ENV_NAMES = (
    "ANTHROPIC_API_KEY",
    "OPENAI_API_KEY",
    "CLAUDE_API_KEY",
    "GOOGLE_AI_API_KEY",
    "HUBSPOT_API_KEY",
    "SUPABASE_SERVICE_ROLE_KEY",
    "DATABASE_URL",
    "AWS_SECRET_ACCESS_KEY",
)

TOKEN_PLACEHOLDER = "[REDACTED_TOKEN]"
ENV_PLACEHOLDER = "[REDACTED_ENV]"

_HTML_COMMENT = re.compile(r"<!--[\s\S]*?-->")

_CREDENTIAL_ATTRIBUTE = re.compile(
    r"""\s?\b(?:data-api-key|data-token|data-secret|api[_-]?key|auth[_-]?token|"""
    r"""secret[_-]?key|access[_-]?token)=(?:"[^"]*"|'[^']*')""",
    re.IGNORECASE,
)

_TOKEN_PATTERNS = [
    re.compile(r"\bsk-ant-[A-Za-z0-9_-]{20,}"),
    re.compile(r"\bsk-(?!ant-)[A-Za-z0-9_-]{20,}"),
    re.compile(r"\bpat-[A-Za-z0-9_-]{20,}"),
    re.compile(r"\bhub_[A-Za-z0-9_-]{20,}"),
    re.compile(r"\bghp_[A-Za-z0-9]{20,}"),
    re.compile(r"\bAIza[A-Za-z0-9_-]{30,}"),
]

_AUTHORIZED_REQUESTS = [
    re.compile(
        r"\bfetch\([^)]*[\"']\s*,\s*\{[^}]*headers[^}]*Authorization[^}]*\}[^)]*\)",
        re.IGNORECASE,
    ),
    re.compile(
        r"\baxios\.(?:get|post|put|patch|delete)\([^)]*[\"']\s*,\s*\{[^}]*headers"
        r"[^}]*Authorization[^}]*\}[^)]*\)",
        re.IGNORECASE,
    ),
    re.compile(r"\b\w+\.setRequestHeader\(\s*[\"']Authorization[\"'][^)]*\)", re.IGNORECASE),
]

_META_REFRESH = re.compile(
    r"<meta[^>]*http-equiv\s*=\s*[\"']?refresh[\"']?[^>]*>", re.IGNORECASE
)


def _sub_until_stable(pattern: re.Pattern, repl: str, code: str) -> str:
    # A removal can splice the surrounding text into a fresh match
    while True:
        new = pattern.sub(repl, code)
        if new == code:
            return code
        code = new


def strip_html_comments(code: str) -> str:
    return _sub_until_stable(_HTML_COMMENT, "", code)


def strip_credential_attributes(code: str) -> str:
    return _sub_until_stable(_CREDENTIAL_ATTRIBUTE, "", code)


def strip_authorized_requests(code: str) -> str:
    """Drop fetch/axios/XHR calls that carry an Authorization header."""
    while True:
        new = code
        for pattern in _AUTHORIZED_REQUESTS:
            new = pattern.sub("", new)
        if new == code:
            return code
        code = new


def redact_tokens(code: str) -> str:
    for pattern in _TOKEN_PATTERNS:
        code = pattern.sub(TOKEN_PLACEHOLDER, code)
    return code


def neutralize_blocked_hosts(code: str, blocked_hosts=DEFAULT_BLOCKED_HOSTS) -> str:
    """Remove scripts, links and redirects that reach a blocked host."""
    for host in blocked_hosts:
        if not host:
            continue
        h = re.escape(host)

        # Scripts mentioning the host are dropped whole
        code = re.sub(
            r"<script\b[^>]*>(?:(?!</script>)[\s\S])*?" + h + r"[\s\S]*?</script>",
            "", code, flags=re.IGNORECASE,
        )
        # Navigation statements first so `location.href = ...` is not
        # mistaken for an href attribute below
        code = re.sub(
            r"\bwindow\.open\s*\([^)]*" + h + r"[^)]*\)",
            "void(0);", code, flags=re.IGNORECASE,
        )
        code = re.sub(
            r"\b(?:window\.top\.|window\.|top\.|document\.)?location\.(?:replace|assign)"
            r"\s*\([^)]*" + h + r"[^)]*\)",
            "void(0);", code, flags=re.IGNORECASE,
        )
        code = re.sub(
            r"\b(?:window\.top\.|window\.|top\.|document\.)?location(?:\.href)?\s*=\s*"
            r"[\"'`]?[^\"'`;)]*" + h + r"[^\"'`;)]*[\"'`]?",
            "void(0);", code, flags=re.IGNORECASE,
        )
        quoted = r"(?:\"[^\"]*" + h + r"[^\"]*\"|'[^']*" + h + r"[^']*')"
        code = re.sub(
            r"(?<![\w.])(href|src|action)\s*=\s*" + quoted,
            r'\1="#"', code, flags=re.IGNORECASE,
        )
        code = re.sub(
            r"(?<![\w.])onclick\s*=\s*" + quoted,
            'onclick="return false;"', code, flags=re.IGNORECASE,
        )
        # Anything left, e.g. bare URLs in text or CSS
        code = re.sub(
            r"(?:https?:)?(?://)?" + h + r"[^\s\"'<>]*", "#", code, flags=re.IGNORECASE,
        )

    return _sub_until_stable(_META_REFRESH, "", code)


def redact_env_references(code: str, env_names=SENSITIVE_ENV_NAMES) -> str:
    names = "|".join(re.escape(n) for n in env_names if n)
    if not names:
        return code
    code = re.sub(
        r"\b(?:process\.env|import\.meta\.env)\.(?:" + names + r")\b", ENV_PLACEHOLDER, code
    )
    code = re.sub(
        r"\b(?:process\.env|import\.meta\.env)\[\s*[\"'](?:" + names + r")[\"']\s*\]",
        ENV_PLACEHOLDER, code,
    )
    return re.sub(r"\b(?:" + names + r")\b", ENV_PLACEHOLDER, code)


SANITIZER_PASSES: list[tuple[str, Callable[[str], str]]] = [
    ("html_comments", strip_html_comments),
    ("credential_attributes", strip_credential_attributes),
    ("authorized_requests", strip_authorized_requests),
    ("tokens", redact_tokens),
    ("blocked_hosts", neutralize_blocked_hosts),
    ("env_references", redact_env_references),
]


def sanitize(
    code: str | None,
    blocked_hosts: list[str] | tuple[str, ...] | None = None,
    env_names: list[str] | tuple[str, ...] | None = None,
) -> str:
    """Run every pass in order. Never raises.

    A pass that fails is logged and skipped so the site can still render.
    """
    if not code:
        return ""
    code = str(code)

    passes = dict(SANITIZER_PASSES)
    if blocked_hosts is not None:
        passes["blocked_hosts"] = partial(neutralize_blocked_hosts, blocked_hosts=blocked_hosts)
    if env_names is not None:
        passes["env_references"] = partial(redact_env_references, env_names=env_names)

    for name, fn in passes.items():
        try:
            code = fn(code)
        except Exception:
            logger.exception("Sanitizer pass '%s' failed, skipping", name)

    return code
