"""Shared fixtures and page doubles for pagescript unit tests.

The doubles mimic the slice of Playwright's async ``Page`` API the engine
uses.  Elements are keyed by the exact selector string that should find
them; any other selector behaves like a probe timeout.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, Callable

import pytest
import yaml
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from pagescript.config import PageScriptConfig
from pagescript.engine.resolver import TargetResolver, VISIBILITY_SCRIPT


def run_async(coro):
    """Run a coroutine synchronously in a new event loop."""
    return asyncio.run(coro)


# ---------------------------------------------------------------------------
# Page doubles
# ---------------------------------------------------------------------------

class FakeElement:
    def __init__(
        self,
        text: str = "",
        visible: bool = True,
        attrs: dict[str, str] | None = None,
        html: str = "",
        box: dict[str, float] | None = None,
    ) -> None:
        self.text = text
        self.visible = visible
        self.attrs = attrs or {}
        self.html = html or f"<div>{text}</div>"
        self.box = box if box is not None else {"x": 0, "y": 0, "width": 100, "height": 20}

    async def evaluate(self, script: str, arg: Any = None) -> Any:
        if script == VISIBILITY_SCRIPT:
            return self.visible
        return None

    async def text_content(self) -> str:
        return self.text

    async def get_attribute(self, name: str) -> str | None:
        return self.attrs.get(name)

    async def bounding_box(self) -> dict[str, float] | None:
        return self.box if self.visible else None


class FakeResponse:
    def __init__(self, status: int = 200) -> None:
        self.status = status


class FakeKeyboard:
    def __init__(self) -> None:
        self.pressed: list[str] = []

    async def press(self, key: str) -> None:
        self.pressed.append(key)


class FakeMouse:
    def __init__(self) -> None:
        self.events: list[tuple] = []

    async def move(self, x: float, y: float, steps: int = 1) -> None:
        self.events.append(("move", x, y))

    async def down(self) -> None:
        self.events.append(("down",))

    async def up(self) -> None:
        self.events.append(("up",))


class FakeContext:
    def __init__(self) -> None:
        self.pages: list[FakePage] = []
        self.cookie_jar: list[dict[str, Any]] = []
        self.handlers: dict[str, list[Callable]] = {}

    def on(self, event: str, handler: Callable) -> None:
        self.handlers.setdefault(event, []).append(handler)

    def open_page(self, page: FakePage | None = None, emit: bool = True) -> FakePage:
        """Simulate a new tab: add it to the context and fire ``page`` handlers."""
        page = page or FakePage(context=self)
        page.context = self
        if page not in self.pages:
            self.pages.append(page)
        if emit:
            for handler in self.handlers.get("page", []):
                handler(page)
        return page

    async def cookies(self) -> list[dict[str, Any]]:
        return list(self.cookie_jar)

    async def add_cookies(self, cookies: list[dict[str, Any]]) -> None:
        self.cookie_jar.extend(cookies)


class FakePage:
    """In-memory stand-in for ``playwright.async_api.Page``.

    Args:
        elements: selector -> FakeElement.
        url: Initial URL.
        scripts: page-script -> value, or ``callable(page, arg)`` for dynamic results.
        on_click: selector -> ``callable(page)`` run after a click (navigation etc.).
        routes: URL -> elements dict swapped in by ``goto``.
    """

    def __init__(
        self,
        elements: dict[str, FakeElement] | None = None,
        url: str = "about:blank",
        scripts: dict[str, Any] | None = None,
        on_click: dict[str, Callable[[FakePage], None]] | None = None,
        routes: dict[str, dict[str, FakeElement]] | None = None,
        context: FakeContext | None = None,
    ) -> None:
        self.elements = elements if elements is not None else {}
        self.url = url
        self.scripts = scripts or {}
        self.on_click = on_click or {}
        self.routes = routes or {}
        self.context = context or FakeContext()
        if self not in self.context.pages:
            self.context.pages.append(self)
        self.keyboard = FakeKeyboard()
        self.mouse = FakeMouse()
        self.calls: list[tuple] = []
        self.values: dict[str, str] = {}
        self.closed = False

    # -- lookup ------------------------------------------------------------

    def _element(self, selector: str) -> FakeElement:
        if selector not in self.elements:
            raise PlaywrightTimeoutError(f"Timeout exceeded waiting for {selector}")
        return self.elements[selector]

    async def wait_for_selector(self, selector: str, timeout: float | None = None, state: str = "visible"):
        element = self._element(selector)
        if state == "visible" and not element.visible:
            raise PlaywrightTimeoutError(f"Timeout exceeded waiting for {selector} to be visible")
        return element

    async def query_selector(self, selector: str):
        return self.elements.get(selector)

    # -- interaction -------------------------------------------------------

    async def click(self, selector: str) -> None:
        self._element(selector)
        self.calls.append(("click", selector))
        if selector in self.on_click:
            self.on_click[selector](self)

    async def fill(self, selector: str, value: str) -> None:
        self._element(selector)
        self.calls.append(("fill", selector, value))
        self.values[selector] = value

    async def press(self, selector: str, key: str) -> None:
        self.calls.append(("press", selector, key))

    async def check(self, selector: str) -> None:
        self.calls.append(("check", selector))

    async def uncheck(self, selector: str) -> None:
        self.calls.append(("uncheck", selector))

    async def hover(self, selector: str) -> None:
        self.calls.append(("hover", selector))

    async def focus(self, selector: str) -> None:
        self.calls.append(("focus", selector))

    async def set_input_files(self, selector: str, files: str) -> None:
        self.calls.append(("set_input_files", selector, files))

    async def select_option(self, selector: str, value: str | None = None, label: str | None = None) -> list[str]:
        self.calls.append(("select_option", selector, value, label))
        return [value or label or ""]

    # -- navigation --------------------------------------------------------

    async def goto(self, url: str, wait_until: str | None = None, timeout: float | None = None) -> FakeResponse:
        self.calls.append(("goto", url))
        self.url = url
        if url in self.routes:
            self.elements = self.routes[url]
        return FakeResponse()

    async def wait_for_load_state(self, state: str = "load", timeout: float | None = None) -> None:
        self.calls.append(("wait_for_load_state", state))

    async def wait_for_url(self, url: Any, timeout: float | None = None) -> None:
        matched = url(self.url) if callable(url) else self.url == url
        if not matched:
            raise PlaywrightTimeoutError(f"Timeout {timeout}ms exceeded waiting for navigation")

    async def wait_for_timeout(self, ms: float) -> None:
        self.calls.append(("wait_for_timeout", ms))

    # -- content -----------------------------------------------------------

    async def evaluate(self, script: str, arg: Any = None) -> Any:
        self.calls.append(("evaluate", script[:40]))
        value = self.scripts.get(script)
        if callable(value):
            return value(self, arg)
        return value

    async def eval_on_selector(self, selector: str, script: str, arg: Any = None) -> Any:
        element = self._element(selector)
        self.calls.append(("eval_on_selector", selector))
        if script in self.scripts:
            value = self.scripts[script]
            return value(element, arg) if callable(value) else value
        if "outerHTML" in script:
            return element.html
        return None

    async def text_content(self, selector: str) -> str | None:
        return self._element(selector).text

    async def screenshot(self, path: str, full_page: bool = False) -> bytes:
        self.calls.append(("screenshot", path, full_page))
        Path(path).write_bytes(b"\x89PNG")
        return b"\x89PNG"

    def is_closed(self) -> bool:
        return self.closed


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def resolver() -> TargetResolver:
    """Resolver with a tiny probe budget (the doubles answer instantly)."""
    return TargetResolver(probe_timeout_ms=1)


@pytest.fixture
def test_config(tmp_path: Path) -> PageScriptConfig:
    """Config rooted in tmp_path with no settle pauses."""
    return PageScriptConfig(
        project_dir=tmp_path / ".pagescript",
        instructions_file=tmp_path / "instructions.txt",
        artifacts_dir=tmp_path / "artifacts",
        probe_timeout_ms=1,
        submit_wait_ms=1,
        new_page_settle_ms=0,
    )


@pytest.fixture
def tmp_project_dir(tmp_path: Path) -> Path:
    """Create a temporary .pagescript/ project directory with a config file."""
    project_dir = tmp_path / ".pagescript"
    project_dir.mkdir(parents=True)

    config_data = {
        "browser": "chromium",
        "headless": True,
        "viewport": {"width": 1280, "height": 720},
        "probe_timeout_ms": 300,
    }
    (project_dir / "config.yaml").write_text(yaml.dump(config_data, default_flow_style=False), encoding="utf-8")

    return project_dir


@pytest.fixture
def sample_config_yaml() -> str:
    """Return a valid pagescript config.yaml as a string."""
    return """\
instructions_file: flows/checkout.txt
artifacts_dir: out
browser: firefox
headless: false
viewport:
  width: 1920
  height: 1080
navigation_timeout_ms: 45000
probe_timeout_ms: 500
comment_marker: "//"
secrets:
  SHOP_PASSWORD: hunter22
"""
