"""Protective script injected into every previewed site.

The harness is assembled from named protections. Each protection is a
JavaScript installer that runs inside its own try/catch and may return a
handle with `reassert` and `dispose` callbacks. A single timer owned by the
harness calls every `reassert`; `dispose` callbacks run on page hide.
A protection that throws is skipped; the page keeps rendering.

None of this is a security boundary. The sandboxed iframe is the boundary;
the harness only discourages casual copying and inspection.
"""

import json
import re
from dataclasses import dataclass

HARNESS_ATTRIBUTE = "data-sitegen-harness"
ALLOWED_SCRIPT_HOSTS = ("cdn.tailwindcss.com",)
REASSERT_INTERVAL_MS = 100
DOM_CREDENTIAL_ATTRIBUTES = (
    "data-api-key", "data-token", "data-secret", "api-key", "auth-token", "access-token",
)

_HEAD_OPEN = re.compile(r"<head(?:\s[^>]*)?>", re.IGNORECASE)
_HEAD_CLOSE = re.compile(r"</head\s*>", re.IGNORECASE)
_HTML_OPEN = re.compile(r"<html[\s>]", re.IGNORECASE)
_DOCTYPE = re.compile(r"^\s*<!DOCTYPE[^>]*>", re.IGNORECASE)
_EXISTING_HARNESS = re.compile(
    r"<script\b[^>]*\b" + HARNESS_ATTRIBUTE + r"\b[^>]*>[\s\S]*?</script\s*>", re.IGNORECASE
)


@dataclass(frozen=True)
class Protection:
    name: str
    installer: str  # JS function body


CONSOLE = Protection("console", """
var noop = function() {};
var fake = {};
['log','warn','error','info','debug','trace','dir','dirxml','group',
 'groupCollapsed','groupEnd','time','timeEnd','assert','profile','profileEnd',
 'count','clear','table','exception'].forEach(function(k) { fake[k] = noop; });
var isSmallOrTouch = function() {
  return /iPhone|iPad|iPod|Android/i.test(navigator.userAgent) ||
    window.innerWidth < 768 || ('ontouchstart' in window) ||
    (navigator.maxTouchPoints > 0);
};
var original = window.console;
var apply = function() {
  if (window.console !== fake) {
    try { window.console = fake; } catch (e) {}
  }
};
var devtoolsOpen = false;
var detect = function() {
  if (isSmallOrTouch() || window.self !== window.top) { devtoolsOpen = false; return; }
  var h = window.outerHeight - window.innerHeight;
  var w = window.outerWidth - window.innerWidth;
  devtoolsOpen = (h > 200 || w > 200) &&
    h < window.innerHeight * 0.5 && w < window.innerWidth * 0.5;
  if (devtoolsOpen) { apply(); }
};
apply();
return {
  reassert: function() { apply(); detect(); },
  dispose: function() { try { window.console = original; } catch (e) {} }
};
""")

INTERACTION = Protection("interaction", """
var block = function(e) { e.preventDefault(); e.stopPropagation(); return false; };
var events = ['contextmenu', 'selectstart', 'dragstart', 'cut', 'paste'];
events.forEach(function(name) { document.addEventListener(name, block, true); });
var onCopy = function(e) {
  try { e.clipboardData.setData('text/plain', ''); } catch (err) {}
  return block(e);
};
document.addEventListener('copy', onCopy, true);
var onKey = function(e) {
  var k = e.keyCode;
  var inspect = k === 123 ||
    (e.ctrlKey && e.shiftKey && (k === 73 || k === 74 || k === 67)) ||
    (e.ctrlKey && (k === 85 || k === 83 || k === 80));
  if (inspect) { return block(e); }
  if (e.key === 'PrintScreen') {
    try { navigator.clipboard.writeText(''); } catch (err) {}
    return block(e);
  }
};
document.addEventListener('keydown', onKey, true);
document.addEventListener('keyup', function(e) {
  if (e.key === 'PrintScreen') {
    try { navigator.clipboard.writeText(''); } catch (err) {}
  }
}, true);
return {
  dispose: function() {
    events.forEach(function(name) { document.removeEventListener(name, block, true); });
    document.removeEventListener('copy', onCopy, true);
    document.removeEventListener('keydown', onKey, true);
  }
};
""")

STORAGE = Protection("storage", """
var empty = function() {
  return { getItem: function() { return null; }, setItem: function() {},
           removeItem: function() {}, clear: function() {}, key: function() { return null; },
           length: 0 };
};
['localStorage', 'sessionStorage'].forEach(function(name) {
  try {
    Object.defineProperty(window, name, { get: empty, set: function() {}, configurable: false });
  } catch (e) {}
});
try {
  if (typeof process !== 'undefined' && process.env) {
    Object.defineProperty(process, 'env', { get: function() { return {}; }, configurable: false });
  }
} catch (e) {}
return null;
""")

LOCATION = Protection("location", """
if (window.location.search || window.location.hash) {
  try {
    history.replaceState(null, '', window.location.pathname);
  } catch (e) {}
}
return null;
""")

SCRIPTS = Protection("scripts", """
var allowedHosts = __ALLOWED_HOSTS__;
var isAllowed = function(node) {
  if (!node || node.tagName !== 'SCRIPT') { return true; }
  if (!node.src) { return true; }
  if (node.dataset && node.dataset.allowed) { return true; }
  for (var i = 0; i < allowedHosts.length; i++) {
    if (node.src.indexOf(allowedHosts[i]) !== -1) { return true; }
  }
  return false;
};
var append = Node.prototype.appendChild;
var insert = Node.prototype.insertBefore;
Node.prototype.appendChild = function(child) {
  return isAllowed(child) ? append.call(this, child) : child;
};
Node.prototype.insertBefore = function(child, ref) {
  return isAllowed(child) ? insert.call(this, child, ref) : child;
};
return {
  dispose: function() {
    Node.prototype.appendChild = append;
    Node.prototype.insertBefore = insert;
  }
};
""")

DOM = Protection("dom", """
var attributes = __CREDENTIAL_ATTRIBUTES__;
var selector = attributes.map(function(a) { return '[' + a + ']'; }).concat(['iframe']).join(',');
var scrub = function(node) {
  if (!node || node.nodeType !== 1) { return; }
  var nodes = [node].concat(Array.prototype.slice.call(node.querySelectorAll(selector)));
  nodes.forEach(function(el) {
    attributes.forEach(function(attr) {
      if (el.hasAttribute(attr)) { el.removeAttribute(attr); }
    });
    if (el.tagName === 'IFRAME' && el.src &&
        el.src.indexOf(window.location.origin) !== 0 && el.parentNode) {
      el.parentNode.removeChild(el);
    }
  });
};
var observer = new MutationObserver(function(mutations) {
  mutations.forEach(function(mutation) {
    if (mutation.type === 'attributes') { scrub(mutation.target); return; }
    for (var i = 0; i < mutation.addedNodes.length; i++) { scrub(mutation.addedNodes[i]); }
  });
});
observer.observe(document.documentElement, {
  childList: true,
  subtree: true,
  attributes: true,
  attributeFilter: attributes.concat(['src'])
});
return {
  dispose: function() { observer.disconnect(); }
};
""")

WATERMARK = Protection("watermark", """
var mark = document.createElement('div');
mark.setAttribute('aria-hidden', 'true');
mark.style.cssText = 'position:fixed;inset:0;pointer-events:none;z-index:999999;' +
  'user-select:none;background:repeating-linear-gradient(45deg,transparent,' +
  'transparent 100px,rgba(0,0,0,0.03) 100px,rgba(0,0,0,0.03) 200px);';
var label = document.createElement('div');
label.textContent = __WATERMARK_TEXT__;
label.style.cssText = 'position:absolute;top:50%;left:50%;' +
  'transform:translate(-50%,-50%) rotate(-45deg);font-size:48px;font-weight:bold;' +
  'color:rgba(0,0,0,0.05);white-space:nowrap;pointer-events:none;user-select:none;';
mark.appendChild(label);
var attach = function() {
  if (document.body && !mark.isConnected) { document.body.appendChild(mark); }
};
if (document.body) { attach(); }
else { document.addEventListener('DOMContentLoaded', attach); }
return {
  reassert: attach,
  dispose: function() { if (mark.parentNode) { mark.parentNode.removeChild(mark); } }
};
""")

PROTECTIONS: tuple[Protection, ...] = (
    CONSOLE, INTERACTION, STORAGE, LOCATION, SCRIPTS, DOM, WATERMARK,
)

_HARNESS_TEMPLATE = """<script {attribute}="{artifact_id}">
(function() {{
  'use strict';
  var reasserts = [];
  var disposers = [];
  var install = function(name, installer) {{
    try {{
      var handle = installer();
      if (handle && handle.reassert) {{ reasserts.push(handle.reassert); }}
      if (handle && handle.dispose) {{ disposers.push(handle.dispose); }}
    }} catch (e) {{}}
  }};
{installs}
  var timer = setInterval(function() {{
    for (var i = 0; i < reasserts.length; i++) {{
      try {{ reasserts[i](); }} catch (e) {{}}
    }}
  }}, {interval});
  window.addEventListener('pagehide', function() {{
    clearInterval(timer);
    for (var i = 0; i < disposers.length; i++) {{
      try {{ disposers[i](); }} catch (e) {{}}
    }}
  }});
}})();
</script>"""


def _js_literal(value) -> str:
    return json.dumps(value).replace("</", "<\\/")


def build_harness(
    artifact_id: str,
    watermark_text: str = "PREVIEW",
    protections: tuple[Protection, ...] = PROTECTIONS,
    allowed_script_hosts: tuple[str, ...] = ALLOWED_SCRIPT_HOSTS,
    interval_ms: int = REASSERT_INTERVAL_MS,
) -> str:
    """Render the harness <script> element for one artifact."""
    installs = []
    for protection in protections:
        body = (
            protection.installer
            .replace("__ALLOWED_HOSTS__", _js_literal(list(allowed_script_hosts)))
            .replace("__WATERMARK_TEXT__", _js_literal(watermark_text))
            .replace("__CREDENTIAL_ATTRIBUTES__", _js_literal(list(DOM_CREDENTIAL_ATTRIBUTES)))
        )
        installs.append(
            f"  install({_js_literal(protection.name)}, function() {{{body}}});"
        )

    return _HARNESS_TEMPLATE.format(
        attribute=HARNESS_ATTRIBUTE,
        artifact_id=re.sub(r"[^A-Za-z0-9_-]", "", artifact_id or ""),
        installs="\n".join(installs),
        interval=interval_ms,
    )


def inject_harness(code: str | None, artifact_id: str, watermark_text: str = "PREVIEW") -> str:
    """Place the harness as early in the document as its structure allows.

    After the opening head tag; else before the closing head tag; else in a
    new head block before the root html tag; else right after a doctype;
    else at the very start. Harness script elements already present in
    the input are removed first, so injecting twice equals injecting once.
    """
    code = _EXISTING_HARNESS.sub("", code or "")
    script = build_harness(artifact_id, watermark_text)

    match = _HEAD_OPEN.search(code)
    if match:
        return code[:match.end()] + script + code[match.end():]

    match = _HEAD_CLOSE.search(code)
    if match:
        return code[:match.start()] + script + code[match.start():]

    head = f"<head>{script}</head>"
    match = _HTML_OPEN.search(code)
    if match:
        return code[:match.start()] + head + code[match.start():]

    match = _DOCTYPE.match(code)
    if match:
        return code[:match.end()] + head + code[match.end():]

    return head + code
