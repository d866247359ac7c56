"""Turn a generated React component into a standalone HTML document.

Providers answer with a single JSX component. The sandbox renders plain
HTML, so before preview the returned markup is lifted out of the component,
JSX attribute syntax is rewritten to HTML, and JavaScript expressions are
reduced to their string literals or dropped. The result is wrapped in a
document that loads Tailwind from its CDN.

This is a textual rewrite, not a JavaScript evaluator: loops, conditionals
and component state are not executed.
"""

import re

TAILWIND_CDN = "https://cdn.tailwindcss.com"

_DOCUMENT = """<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8">
<meta name="viewport" content="width=device-width, initial-scale=1">
<title>Preview</title>
<script src="{tailwind}"></script>
<style>
* {{ margin: 0; padding: 0; box-sizing: border-box; }}
body {{ font-family: system-ui, -apple-system, 'Segoe UI', sans-serif; line-height: 1.6; }}
img {{ max-width: 100%; height: auto; }}
</style>
</head>
<body>
{body}
</body>
</html>"""

_HTML_DOCUMENT = re.compile(r"<!DOCTYPE", re.IGNORECASE)
_HTML_ROOT = re.compile(r"<html[\s>]", re.IGNORECASE)

_IMPORT = re.compile(
    r"^[ \t]*import\s(?:[^;\"']*?\sfrom\s*)?[\"'][^\"'\n]+[\"'];?[ \t]*$", re.MULTILINE
)
_EXPORT_LINE = re.compile(r"^[ \t]*export\s[^\n]*$", re.MULTILINE)
_DEFAULT_FUNCTION = re.compile(r"export\s+default\s+function\s*[\w$]*\s*\([^)]*\)\s*\{")
_DEFAULT_NAME = re.compile(r"export\s+default\s+([A-Za-z_$][\w$]*)\s*;?\s*$", re.MULTILINE)
_RETURN_JSX = re.compile(r"\breturn\s*(\()\s*(?=<)")
_BARE_RETURN = re.compile(r"\breturn\s*(<[\s\S]*>)\s*;?\s*$")

_RENAMED = {
    "className": "class",
    "htmlFor": "for",
    "strokeWidth": "stroke-width",
    "strokeLinecap": "stroke-linecap",
    "strokeLinejoin": "stroke-linejoin",
    "fillRule": "fill-rule",
    "clipRule": "clip-rule",
}
_RENAMED_ATTRIBUTE = re.compile(r"(\s)(" + "|".join(_RENAMED) + r")(\s*=)")
_ATTRIBUTE_BEFORE = re.compile(r"\s([A-Za-z_:][\w:.-]*)\s*=\s*$")

_QUOTED = re.compile(r"""^(?:"([^"]*)"|'([^']*)')$""")
_TEMPLATE = re.compile(r"^`([^`]*)`$")
_INTERPOLATION = re.compile(r"\$\{[^{}]*\}")
_STYLE_ENTRY = re.compile(
    r"""([A-Za-z_$][\w$]*|"[^"]+"|'[^']+')\s*:\s*("[^"]*"|'[^']*'|`[^`]*`|[^,]+)"""
)

_FRAGMENT = re.compile(r"</?>")
_COMPONENT_TAG = re.compile(r"</?[A-Z][\w.]*(?:\s[^<>]*)?/?>")
_SELF_CLOSING = re.compile(r"<([a-z][\w-]*)(\s[^<>]*?)?\s*/>")
_VOID_TAGS = frozenset((
    "area", "base", "br", "col", "embed", "hr", "img", "input",
    "link", "meta", "source", "track", "wbr",
))


def is_html_document(code: str) -> bool:
    """True for a full HTML document that needs no conversion."""
    return bool(_HTML_DOCUMENT.search(code)) or (
        bool(_HTML_ROOT.search(code)) and "className" not in code
    )


def _matching(text: str, index: int, open_ch: str, close_ch: str) -> int:
    depth = 0
    for i in range(index, len(text)):
        if text[i] == open_ch:
            depth += 1
        elif text[i] == close_ch:
            depth -= 1
            if depth == 0:
                return i
    return -1


def _component(code: str) -> tuple[str, bool] | None:
    """Body of the default-exported component, and whether it is an expression."""
    match = _DEFAULT_FUNCTION.search(code)
    if match is None:
        name = _DEFAULT_NAME.search(code)
        if name is None:
            return None
        n = re.escape(name.group(1))
        match = re.search(r"function\s+" + n + r"\s*\([^)]*\)\s*\{", code) or re.search(
            r"(?:const|let|var)\s+" + n + r"\s*=\s*(?:\([^)]*\)|[\w$]+)\s*=>\s*[({]", code
        )
        if match is None:
            return None

    open_index = match.end() - 1
    open_ch = code[open_index]
    close_ch = "}" if open_ch == "{" else ")"
    end = _matching(code, open_index, open_ch, close_ch)
    if end == -1:
        return None
    return code[open_index + 1:end], open_ch == "("


def _returned_jsx(body: str) -> str | None:
    # The component's own return sits outside any nested block
    chosen = None
    for match in _RETURN_JSX.finditer(body):
        before = body[:match.start()]
        if before.count("{") == before.count("}"):
            chosen = match
    if chosen is not None:
        start = chosen.start(1)
        end = _matching(body, start, "(", ")")
        if end != -1:
            return body[start + 1:end].strip()

    bare = _BARE_RETURN.search(body)
    if bare:
        return bare.group(1).strip()
    return None


def extract_jsx(code: str) -> str:
    """Markup returned by the default-exported component.

    Falls back to the input minus its import and export lines when no
    component can be found.
    """
    code = _IMPORT.sub("", code)
    found = _component(code)
    if found is not None:
        body, is_expression = found
        if is_expression:
            return body.strip()
        jsx = _returned_jsx(body)
        if jsx is not None:
            return jsx
    return _EXPORT_LINE.sub("", code).strip()


def _string_literal(expression: str) -> str | None:
    match = _QUOTED.match(expression)
    if match:
        return match.group(1) if match.group(1) is not None else match.group(2)
    match = _TEMPLATE.match(expression)
    if match:
        return _INTERPOLATION.sub("", match.group(1))
    return None


def style_to_css(body: str) -> str:
    """`backgroundImage: 'url(/a.png)', zIndex: 1` -> `background-image: url(/a.png); z-index: 1;`"""
    rules = []
    for match in _STYLE_ENTRY.finditer(body):
        key = match.group(1).strip("\"'")
        value = match.group(2).strip()
        if value[:1] in ("\"", "'", "`"):
            value = value[1:-1]
        prop = re.sub(r"([A-Z])", r"-\1", key).lower()
        rules.append(f"{prop}: {value};")
    return " ".join(rules)


def _attribute_value(name: str, expression: str) -> str | None:
    if name == "style" and expression.startswith("{") and expression.endswith("}"):
        return style_to_css(expression[1:-1])
    literal = _string_literal(expression)
    if literal is not None:
        return literal
    if name == "loading":
        return "lazy"
    return None


def _replace_expressions(jsx: str) -> str:
    out = ""
    i = 0
    while True:
        start = jsx.find("{", i)
        if start == -1:
            return out + jsx[i:]
        end = _matching(jsx, start, "{", "}")
        if end == -1:
            return out + jsx[i:]

        out += jsx[i:start]
        expression = jsx[start + 1:end].strip()
        attribute = None
        if out.rfind("<") > out.rfind(">"):
            tail = out[-256:]
            found = _ATTRIBUTE_BEFORE.search(tail)
            if found:
                attribute = (found, len(out) - len(tail))

        if attribute is not None:
            found, offset = attribute
            value = _attribute_value(found.group(1), expression)
            if value is None:
                out = out[:offset + found.start()]
            else:
                escaped = value.replace('"', "&quot;")
                out = out[:offset + found.end(1)] + f'="{escaped}"'
        else:
            text = _string_literal(expression)
            if text is not None:
                out += text
        i = end + 1


def _expand_self_closing(match: re.Match) -> str:
    tag, attrs = match.group(1), match.group(2) or ""
    if tag in _VOID_TAGS:
        return f"<{tag}{attrs}>"
    return f"<{tag}{attrs}></{tag}>"


def convert_markup(jsx: str) -> str:
    """Rewrite JSX markup as HTML markup."""
    html = _RENAMED_ATTRIBUTE.sub(lambda m: m.group(1) + _RENAMED[m.group(2)] + m.group(3), jsx)
    html = _replace_expressions(html)
    html = _FRAGMENT.sub("", html)
    html = _COMPONENT_TAG.sub("", html)
    html = _SELF_CLOSING.sub(_expand_self_closing, html)
    return html.strip()


def to_html(code: str | None) -> str:
    """Standalone HTML document for a generated site.

    Full HTML documents are returned unchanged.
    """
    if not code:
        return ""
    if is_html_document(code):
        return code
    return _DOCUMENT.format(tailwind=TAILWIND_CDN, body=convert_markup(extract_jsx(code)))
