"""Unit tests for pagescript.engine.actions — individual action handlers."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from conftest import FakeElement, FakePage, run_async
from pagescript.config import PageScriptConfig, PageScriptConfigError
from pagescript.engine import actions
from pagescript.engine.protocols import ActionContext
from pagescript.engine.resolver import TargetNotFoundError, TargetResolver


def _ctx(page: FakePage, resolver: TargetResolver, config: PageScriptConfig) -> ActionContext:
    return ActionContext(page=page, resolver=resolver, config=config)


# ---------------------------------------------------------------------------
# 1. Pure helpers
# ---------------------------------------------------------------------------

class TestNormalizeUrl:
    """Bare domains get https://; everything else is left alone."""

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("example.com", "https://example.com"),
            ("  example.com/path  ", "https://example.com/path"),
            ("localhost:3000", "https://localhost:3000"),
            ("http://example.com", "http://example.com"),
            ("https://example.com", "https://example.com"),
            ("file:///tmp/page.html", "file:///tmp/page.html"),
            ("about:blank", "about:blank"),
        ],
    )
    def test_normalize(self, raw: str, expected: str):
        assert actions.normalize_url(raw) == expected


class TestParseDuration:
    """wait accepts milliseconds, with optional ms/s units."""

    @pytest.mark.parametrize("raw, ms", [("500", 500), ("500ms", 500), ("2s", 2000), ("1.5 seconds", 1500)])
    def test_valid(self, raw: str, ms: int):
        assert actions.parse_duration_ms(raw) == ms

    def test_invalid(self):
        with pytest.raises(ValueError, match="Invalid wait duration"):
            actions.parse_duration_ms("a while")


# ---------------------------------------------------------------------------
# 2. Navigation
# ---------------------------------------------------------------------------

class TestNavigation:
    """goto normalises the URL before navigating."""

    def test_goto_prepends_https(self, resolver, test_config):
        page = FakePage()
        result = run_async(actions.goto(_ctx(page, resolver, test_config), ["example.com"]))
        assert page.url == "https://example.com"
        assert result == {"url": "https://example.com", "status": 200}

    def test_wait_for_navigation(self, resolver, test_config):
        page = FakePage(url="https://example.com")
        run_async(actions.wait_for_navigation(_ctx(page, resolver, test_config), []))
        assert ("wait_for_load_state", "load") in page.calls


# ---------------------------------------------------------------------------
# 3. Element interaction
# ---------------------------------------------------------------------------

class TestElementActions:
    """Handlers resolve targets before touching the page."""

    def test_click_resolves_description(self, resolver, test_config):
        page = FakePage(elements={'button:has-text("Buy now")': FakeElement(text="Buy now")})
        result = run_async(actions.click(_ctx(page, resolver, test_config), ["Buy now"]))
        assert result == {"selector": 'button:has-text("Buy now")'}
        assert page.calls == [("click", 'button:has-text("Buy now")')]

    def test_click_missing_target(self, resolver, test_config):
        with pytest.raises(TargetNotFoundError):
            run_async(actions.click(_ctx(FakePage(), resolver, test_config), ["Nowhere"]))

    def test_type_focuses_then_fills(self, resolver, test_config):
        field = 'input[placeholder*="search" i]'
        page = FakePage(elements={field: FakeElement()})
        run_async(actions.type_text(_ctx(page, resolver, test_config), ["search", "red shoes"]))
        assert page.calls == [("click", field), ("fill", field, "red shoes")]

    def test_type_and_submit_presses_enter(self, resolver, test_config):
        page = FakePage(elements={"#q": FakeElement()})
        run_async(actions.type_and_submit(_ctx(page, resolver, test_config), ["#q", "hello"]))
        assert page.calls[-1] == ("press", "#q", "Enter")

    def test_type_resolves_env_secret(self, resolver, test_config, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("SHOP_PASSWORD", "hunter22")
        page = FakePage(elements={"#pw": FakeElement()})
        run_async(actions.type_text(_ctx(page, resolver, test_config), ["#pw", "env:SHOP_PASSWORD"]))
        assert page.values["#pw"] == "hunter22"

    def test_type_missing_secret_fails(self, resolver, test_config, monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("NOPE_SECRET", raising=False)
        page = FakePage(elements={"#pw": FakeElement()})
        with pytest.raises(PageScriptConfigError, match="NOPE_SECRET"):
            run_async(actions.type_text(_ctx(page, resolver, test_config), ["#pw", "env:NOPE_SECRET"]))

    def test_type_resolves_secret_from_loaded_config(
        self, resolver, test_config, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
    ):
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("PW", raising=False)
        test_config.secrets = {"PW": "hunter2"}
        page = FakePage(elements={"#pw": FakeElement()})
        run_async(actions.type_text(_ctx(page, resolver, test_config), ["#pw", "env:PW"]))
        assert page.values["#pw"] == "hunter2"

    def test_select_by_value(self, resolver, test_config):
        page = FakePage(elements={"#country": FakeElement()}, scripts={actions.OPTION_MATCH_SCRIPT: "value"})
        assert run_async(actions.select_option(_ctx(page, resolver, test_config), ["#country", "us"])) == ["us"]
        assert ("select_option", "#country", "us", None) in page.calls

    def test_select_by_label_without_value_attempt(self, resolver, test_config):
        page = FakePage(
            elements={"#country": FakeElement()},
            scripts={actions.OPTION_MATCH_SCRIPT: lambda _el, wanted: "label" if wanted == "United States" else None},
        )
        run_async(actions.select_option(_ctx(page, resolver, test_config), ["#country", "United States"]))
        selects = [c for c in page.calls if c[0] == "select_option"]
        assert selects == [("select_option", "#country", None, "United States")]

    def test_select_unknown_option(self, resolver, test_config):
        page = FakePage(elements={"#country": FakeElement()}, scripts={actions.OPTION_MATCH_SCRIPT: None})
        with pytest.raises(ValueError, match="No option"):
            run_async(actions.select_option(_ctx(page, resolver, test_config), ["#country", "Atlantis"]))
        assert not [c for c in page.calls if c[0] == "select_option"]

    def test_focus(self, resolver, test_config):
        page = FakePage(elements={"#email": FakeElement()})
        run_async(actions.focus(_ctx(page, resolver, test_config), ["email"]))
        assert page.calls == [("focus", "#email")]

    def test_press_key_uses_keyboard(self, resolver, test_config):
        page = FakePage()
        run_async(actions.press_key(_ctx(page, resolver, test_config), ["Escape"]))
        assert page.keyboard.pressed == ["Escape"]

    def test_drag_and_drop_uses_box_centres(self, resolver, test_config):
        page = FakePage(
            elements={
                "#card": FakeElement(box={"x": 0, "y": 0, "width": 10, "height": 10}),
                "#done": FakeElement(box={"x": 100, "y": 50, "width": 20, "height": 20}),
            }
        )
        run_async(actions.drag_and_drop(_ctx(page, resolver, test_config), ["#card", "#done"]))
        assert page.mouse.events == [("move", 5, 5), ("down",), ("move", 110, 60), ("up",)]

    def test_upload_missing_file(self, resolver, test_config, tmp_path: Path):
        page = FakePage(elements={"#file": FakeElement()})
        with pytest.raises(FileNotFoundError):
            run_async(actions.upload_file(_ctx(page, resolver, test_config), ["#file", str(tmp_path / "nope.pdf")]))

    def test_upload_file(self, resolver, test_config, tmp_path: Path):
        doc = tmp_path / "cv.pdf"
        doc.write_bytes(b"%PDF")
        page = FakePage(elements={"#file": FakeElement()})
        run_async(actions.upload_file(_ctx(page, resolver, test_config), ["#file", str(doc)]))
        assert page.calls == [("set_input_files", "#file", str(doc))]


# ---------------------------------------------------------------------------
# 4. Extraction
# ---------------------------------------------------------------------------

class TestExtraction:
    """Extraction is read-only and repeatable."""

    def test_extract_text_is_idempotent(self, resolver, test_config):
        page = FakePage(elements={"h1": FakeElement(text="Example Domain")})
        ctx = _ctx(page, resolver, test_config)
        first = run_async(actions.extract_text(ctx, ["h1"]))
        second = run_async(actions.extract_text(ctx, ["h1"]))
        assert first == second == "Example Domain"
        assert page.calls == []

    def test_extract_html(self, resolver, test_config):
        page = FakePage(elements={".price": FakeElement(html='<span class="price">$5</span>')})
        html = run_async(actions.extract_html(_ctx(page, resolver, test_config), [".price"]))
        assert html == '<span class="price">$5</span>'

    def test_evaluate_returns_script_value(self, resolver, test_config):
        page = FakePage(scripts={"document.title": "Example"})
        assert run_async(actions.evaluate(_ctx(page, resolver, test_config), ["document.title"])) == "Example"


# ---------------------------------------------------------------------------
# 5. Screenshots
# ---------------------------------------------------------------------------

class TestScreenshot:
    """Screenshots land in the artifacts directory."""

    def test_default_path(self, resolver, test_config):
        page = FakePage()
        result = run_async(actions.screenshot(_ctx(page, resolver, test_config), []))
        path = Path(result["path"])
        assert path.parent == test_config.artifacts_dir
        assert path.name.startswith("screenshot-") and path.suffix == ".png"
        assert path.exists()
        assert result["full_page"] is False

    def test_full_page_keyword(self, resolver, test_config):
        result = run_async(actions.screenshot(_ctx(FakePage(), resolver, test_config), ["fullPage"]))
        assert result["full_page"] is True
        assert Path(result["path"]).name.startswith("screenshot-")

    def test_named_path_gets_png_suffix(self, resolver, test_config):
        result = run_async(actions.screenshot(_ctx(FakePage(), resolver, test_config), ["shots/home"]))
        assert Path(result["path"]) == test_config.artifacts_dir / "shots" / "home.png"


# ---------------------------------------------------------------------------
# 6. Cookies
# ---------------------------------------------------------------------------

class TestCookies:
    """Cookies round-trip through the browser context."""

    def test_set_then_get(self, resolver, test_config):
        page = FakePage(url="https://example.com/")
        ctx = _ctx(page, resolver, test_config)
        payload = json.dumps([{"name": "session", "value": "abc"}])
        assert run_async(actions.set_cookies(ctx, [payload])) == {"count": 1}
        cookies = run_async(actions.get_cookies(ctx, []))
        assert cookies == [{"name": "session", "value": "abc", "url": "https://example.com/"}]

    def test_single_object_accepted(self, resolver, test_config):
        ctx = _ctx(FakePage(), resolver, test_config)
        payload = json.dumps({"name": "a", "value": "1", "domain": "example.com", "path": "/"})
        assert run_async(actions.set_cookies(ctx, [payload])) == {"count": 1}

    def test_invalid_json(self, resolver, test_config):
        with pytest.raises(ValueError, match="JSON"):
            run_async(actions.set_cookies(_ctx(FakePage(), resolver, test_config), ["{not json"]))


# ---------------------------------------------------------------------------
# 7. Page helpers
# ---------------------------------------------------------------------------

class TestPageHelpers:
    """find/inspect/smart click run in-page scripts."""

    def test_find_element_passes_lowercased_needle(self, resolver, test_config):
        seen = {}

        def fake_find(page, arg):
            seen["arg"] = arg
            return [{"element": "button", "text": "checkout", "selector": "#checkout"}]

        page = FakePage(scripts={actions.FIND_SCRIPT: fake_find})
        result = run_async(actions.find_element(_ctx(page, resolver, test_config), ["Checkout"]))
        assert seen["arg"] == ["checkout", actions.FIND_LIMIT]
        assert result[0]["selector"] == "#checkout"

    def test_smart_click_clicks_first_match(self, resolver, test_config):
        page = FakePage(
            elements={"#buy": FakeElement()},
            scripts={actions.FIND_SCRIPT: [{"element": "a", "text": "buy", "selector": "#buy"}]},
        )
        run_async(actions.smart_click(_ctx(page, resolver, test_config), ["Buy"]))
        assert ("click", "#buy") in page.calls

    def test_smart_click_without_matches(self, resolver, test_config):
        page = FakePage(scripts={actions.FIND_SCRIPT: []})
        with pytest.raises(TargetNotFoundError):
            run_async(actions.smart_click(_ctx(page, resolver, test_config), ["Buy"]))

    def test_inspect_page(self, resolver, test_config):
        page = FakePage(scripts={actions.INSPECT_SCRIPT: lambda p, limit: [{"type": "Button"}] * limit})
        result = run_async(actions.inspect_page(_ctx(page, resolver, test_config), []))
        assert len(result) == actions.INSPECT_LIMIT == 15
