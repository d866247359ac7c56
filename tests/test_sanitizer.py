import pytest

from sitegen.core import sanitizer
from sitegen.core.sanitizer import (
    ENV_PLACEHOLDER,
    SANITIZER_PASSES,
    TOKEN_PLACEHOLDER,
    neutralize_blocked_hosts,
    redact_env_references,
    redact_tokens,
    sanitize,
    strip_authorized_requests,
    strip_credential_attributes,
    strip_html_comments,
)

SAMPLE = (
    "<html><head>"
    '<meta http-equiv="refresh" content="0;url=http://localhost:3001/x">'
    "</head><body>"
    "<!-- internal note -->"
    '<div data-api-key="abc123" class="card">'
    '<a href="http://localhost:3001/admin">admin</a>'
    '<img src="//localhost:3001/logo.png" alt="">'
    '<button onclick="go(\'http://localhost:3001\')">go</button>'
    "<p>Visit localhost:3001/help today</p>"
    "</div>"
    "<script>fetch('http://localhost:3001/api/keys')</script>"
    "<script>const k = 'sk-ant-" + "a" * 40 + "';"
    " const o = process.env.OPENAI_API_KEY;</script>"
    "</body></html>"
)

# Removing one match splices the surrounding text into another
SPLICED = (
    "<!-<!-- x -->- secret note -->"
    '<div data-to data-token="x"ken="y">'
    '<me<meta http-equiv="refresh" content="0">ta http-equiv="refresh" content="1">'
    "<script>xhr.setRequestHeader('Authorization', a);</script>"
)


class TestBlockedHosts:
    def test_link_to_internal_host(self):
        code = '<a href="http://internal-host:3001/x">link</a>'
        assert sanitize(code, blocked_hosts=["internal-host:3001"]) == '<a href="#">link</a>'

    def test_default_host(self):
        out = sanitize(SAMPLE)
        assert "localhost:3001" not in out

    def test_script_mentioning_host_removed(self):
        code = "<script>fetch('http://localhost:3001/api')</script><p>ok</p>"
        assert neutralize_blocked_hosts(code) == "<p>ok</p>"

    def test_other_scripts_kept(self):
        code = "<script>init()</script><script>fetch('http://localhost:3001')</script>"
        assert neutralize_blocked_hosts(code) == "<script>init()</script>"

    def test_location_assignment(self):
        code = "if (x) { window.location.href = 'http://localhost:3001/dashboard'; }"
        out = neutralize_blocked_hosts(code)
        assert "localhost:3001" not in out
        assert "void(0);" in out
        assert "href=" not in out

    def test_location_replace_and_window_open(self):
        code = (
            "location.replace('http://localhost:3001/a'); "
            "window.open('http://localhost:3001/b', '_blank');"
        )
        out = neutralize_blocked_hosts(code)
        assert out.count("void(0);") == 2
        assert "localhost" not in out

    def test_onclick_handler(self):
        code = "<button onclick=\"go('http://localhost:3001')\">x</button>"
        assert neutralize_blocked_hosts(code) == '<button onclick="return false;">x</button>'

    def test_meta_refresh_removed(self):
        code = '<meta http-equiv="refresh" content="0;url=/elsewhere"><p>a</p>'
        assert neutralize_blocked_hosts(code) == "<p>a</p>"

    def test_unrelated_links_untouched(self):
        code = '<a href="https://example.com/page">ok</a>'
        assert sanitize(code) == code


class TestSecrets:
    def test_html_comments(self):
        assert strip_html_comments("<!-- secret\nstuff --><p>x</p>") == "<p>x</p>"

    def test_credential_attributes(self):
        code = '<div data-api-key="abc123" class="x">'
        assert strip_credential_attributes(code) == '<div class="x">'

    def test_credential_attribute_single_quotes(self):
        code = "<span access_token='t0k' id=\"a\">"
        assert strip_credential_attributes(code) == '<span id="a">'

    def test_nested_comment_does_not_survive(self):
        assert strip_html_comments("<!-<!-- x -->- OPENAI secret note -->") == ""

    def test_spliced_credential_attribute(self):
        assert strip_credential_attributes('<div data-to data-token="x"ken="y">') == "<div>"

    def test_js_assignment_left_alone(self):
        code = "const apiKey = config.key;"
        assert strip_credential_attributes(code) == code

    @pytest.mark.parametrize("token", [
        "sk-ant-" + "a" * 40,
        "sk-" + "b" * 40,
        "ghp_" + "c" * 36,
        "AIza" + "d" * 35,
        "pat-na1-" + "e" * 30,
    ])
    def test_tokens_redacted(self, token):
        out = redact_tokens(f"const key = '{token}';")
        assert token not in out
        assert TOKEN_PLACEHOLDER in out

    def test_short_prefixes_not_redacted(self):
        code = "<div class=\"sk-grid task-list\">"
        assert redact_tokens(code) == code

    def test_env_references(self):
        code = (
            "const a = process.env.OPENAI_API_KEY;\n"
            "const b = import.meta.env['ANTHROPIC_API_KEY'];\n"
            "// DATABASE_URL"
        )
        out = redact_env_references(code)
        assert "OPENAI_API_KEY" not in out
        assert "ANTHROPIC_API_KEY" not in out
        assert "DATABASE_URL" not in out
        assert out.count(ENV_PLACEHOLDER) == 3

    def test_custom_env_names(self):
        out = sanitize("MY_SECRET and OPENAI_API_KEY", env_names=["MY_SECRET"])
        assert out == f"{ENV_PLACEHOLDER} and OPENAI_API_KEY"


class TestAuthorizedRequests:
    def test_fetch_with_authorization_removed(self):
        code = (
            "<script>fetch('https://api.example.com/x', "
            "{ headers: { Authorization: 'Bearer abcdefghijklmnop' } });init();</script>"
        )
        assert strip_authorized_requests(code) == "<script>;init();</script>"

    def test_axios_with_authorization_removed(self):
        code = "axios.post('/api/leads', { headers: { Authorization: token } }).then(done)"
        assert strip_authorized_requests(code) == ".then(done)"

    def test_xhr_header_removed(self):
        code = "xhr.open('GET', '/x'); xhr.setRequestHeader('Authorization', t); xhr.send();"
        assert strip_authorized_requests(code) == "xhr.open('GET', '/x'); ; xhr.send();"

    def test_plain_fetch_kept(self):
        code = "fetch('/menu.json', { method: 'GET' }).then(r => r.json())"
        assert strip_authorized_requests(code) == code

    def test_through_sanitize(self):
        out = sanitize(
            "<script>fetch('https://api.example.com/x', "
            "{ headers: { Authorization: 'Bearer abcdefghijklmnop' } })</script>"
        )
        assert "Authorization" not in out
        assert "Bearer" not in out


class TestSanitize:
    @pytest.mark.parametrize("sample", [SAMPLE, SPLICED], ids=["sample", "spliced"])
    @pytest.mark.parametrize("name,fn", SANITIZER_PASSES)
    def test_each_pass_is_idempotent(self, name, fn, sample):
        once = fn(sample)
        assert fn(once) == once

    def test_spliced_input_fully_cleaned(self):
        out = sanitize(SPLICED)
        assert "secret note" not in out
        assert "data-token" not in out
        assert "http-equiv" not in out
        assert "Authorization" not in out

    def test_nested_comment_hidden_text_removed(self):
        out = sanitize("<p>a</p><!-<!-- -->- internal password: hunter2 --><p>b</p>")
        assert out == "<p>a</p><p>b</p>"

    def test_whole_pipeline_is_idempotent(self):
        once = sanitize(SAMPLE)
        assert sanitize(once) == once

    def test_full_sample(self):
        out = sanitize(SAMPLE)
        assert "internal note" not in out
        assert "abc123" not in out
        assert "sk-ant-" not in out
        assert "process.env" not in out
        assert "http-equiv" not in out
        assert '<a href="#">admin</a>' in out
        assert '<img src="#"' in out

    def test_empty_input(self):
        assert sanitize("") == ""
        assert sanitize(None) == ""

    def test_failing_pass_is_skipped(self, monkeypatch):
        def boom(code):
            raise RuntimeError("bad pass")

        monkeypatch.setattr(sanitizer, "SANITIZER_PASSES", [
            ("boom", boom),
            ("html_comments", strip_html_comments),
        ])
        assert sanitize("<!-- x --><p>y</p>") == "<p>y</p>"
