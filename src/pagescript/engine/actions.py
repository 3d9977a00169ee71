"""pagescript Actions -- the handlers behind every instruction keyword.

Each handler is an ``async (ctx, params)`` callable.  Handlers that act on
an element resolve their target description through the candidate table and
the visibility-checking resolver; handlers that take a URL, key name, script
or file path use the parameter as given.

``build_registry()`` assembles the closed vocabulary in registration order,
which is also the parser's tie-break order.
"""

from __future__ import annotations

import json
import logging
import re
import time
from pathlib import Path
from typing import Any

from pagescript.engine.auth import AuthEngine, AuthType, Credentials
from pagescript.engine.protocols import ActionContext
from pagescript.engine.registry import ActionDescriptor, ActionRegistry
from pagescript.engine.resolver import TargetNotFoundError, resolve_target

logger = logging.getLogger("pagescript.engine.actions")

_SCHEME_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*://")
_DURATION_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*(ms|s|sec|secs|seconds?)?\s*$", re.IGNORECASE)

INSPECT_LIMIT = 15
FIND_LIMIT = 10

# Shared by inspect/find: a stable-ish selector for an element.
_UNIQUE_SELECTOR_JS = """
    const uniqueSelector = (el) => {
        if (el.id) return '#' + CSS.escape(el.id);
        if (el.tagName === 'INPUT' && el.name) return 'input[name="' + el.name + '"]';
        for (const attr of ['data-testid', 'data-test', 'data-cy', 'data-qa']) {
            const value = el.getAttribute(attr);
            if (value) return '[' + attr + '="' + value + '"]';
        }
        if (el.classList.length > 0) {
            return el.tagName.toLowerCase() + '.' + Array.from(el.classList).map((c) => CSS.escape(c)).join('.');
        }
        let path = '';
        let current = el;
        while (current && current !== document.body) {
            let part = current.tagName.toLowerCase();
            if (current.id) {
                path = part + '#' + CSS.escape(current.id) + (path ? ' > ' + path : '');
                break;
            }
            const parent = current.parentElement;
            if (!parent) break;
            const siblings = Array.from(parent.children).filter((s) => s.tagName === current.tagName);
            if (siblings.length > 1) part += ':nth-of-type(' + (siblings.indexOf(current) + 1) + ')';
            path = part + (path ? ' > ' + path : '');
            current = parent;
        }
        return path;
    };
    const isVisible = (el) => {
        const style = window.getComputedStyle(el);
        const rect = el.getBoundingClientRect();
        return style.display !== 'none' && style.visibility !== 'hidden'
            && Number(style.opacity) > 0 && rect.width > 0 && rect.height > 0;
    };
"""

INSPECT_SCRIPT = (
    "(limit) => {"
    + _UNIQUE_SELECTOR_JS
    + """
    const found = [];
    const seen = new Set();
    const add = (type, el, text) => {
        if (seen.has(el) || !isVisible(el)) return;
        seen.add(el);
        found.push({type: type, selector: uniqueSelector(el), text: (text || '').trim().substring(0, 30)});
    };
    document.querySelectorAll(
        'input[type="search"], input[placeholder*="search" i], input[name*="search" i], input[id*="search" i]'
    ).forEach((el) => add('Search input', el, el.placeholder || el.name || el.id));
    document.querySelectorAll('input[type="text"], input[type="email"], input[type="password"], textarea')
        .forEach((el) => add('Text input', el, el.placeholder || el.name || el.id));
    document.querySelectorAll('button, [role="button"], input[type="submit"]')
        .forEach((el) => add('Button', el, el.innerText || el.value));
    document.querySelectorAll('a[href]').forEach((el) => {
        if ((el.innerText || '').trim()) add('Link', el, el.innerText);
    });
    document.querySelectorAll('select').forEach((el) => add('Select', el, el.name || el.id));
    return found.slice(0, limit);
}"""
)

FIND_SCRIPT = (
    "([needle, limit]) => {"
    + _UNIQUE_SELECTOR_JS
    + """
    const ownText = (el) => (el.innerText || el.textContent || '').trim().toLowerCase();
    const matches = [];
    for (const el of document.querySelectorAll('body *')) {
        if (matches.length >= limit) break;
        if (!isVisible(el)) continue;
        const text = ownText(el);
        const attrs = ['placeholder', 'aria-label', 'name', 'title']
            .map((a) => (el.getAttribute(a) || '').toLowerCase());
        // Text matches go to the innermost element carrying the text
        const textHit = text.includes(needle)
            && !Array.from(el.children).some((c) => ownText(c).includes(needle));
        const attrHit = attrs.some((a) => a && a.includes(needle));
        if (!textHit && !attrHit) continue;
        matches.push({
            element: el.tagName.toLowerCase(),
            text: (text || attrs.find((a) => a) || '').substring(0, 80),
            selector: uniqueSelector(el),
        });
    }
    return matches;
}"""
)


# Which attribute of a <select> option equals the requested text: "value", "label" or null.
OPTION_MATCH_SCRIPT = """(select, wanted) => {
    const options = Array.from(select.options || []);
    if (options.some((o) => o.value === wanted)) return 'value';
    if (options.some((o) => o.label === wanted)) return 'label';
    return null;
}"""


# -- Helpers ------------------------------------------------------------------


def normalize_url(url: str) -> str:
    """Prepend ``https://`` to bare domains; leave schemed and special URLs alone."""
    url = url.strip()
    if _SCHEME_RE.match(url) or url.startswith(("about:", "data:", "javascript:")):
        return url
    return f"https://{url}"


def parse_duration_ms(value: str) -> int:
    """``"500"`` / ``"500ms"`` -> 500, ``"2s"`` -> 2000."""
    match = _DURATION_RE.match(value)
    if not match:
        raise ValueError(f"Invalid wait duration: {value!r} (expected milliseconds, e.g. 'wait 500')")
    amount = float(match.group(1))
    unit = (match.group(2) or "ms").lower()
    return int(amount if unit == "ms" else amount * 1000)


def _screenshot_path(ctx: ActionContext, requested: str | None) -> Path:
    if requested:
        path = Path(requested).expanduser()
        if not path.suffix:
            path = path.with_suffix(".png")
        if not path.is_absolute():
            path = ctx.artifacts_dir / path
    else:
        path = ctx.artifacts_dir / f"screenshot-{int(time.time() * 1000)}.png"
    path.parent.mkdir(parents=True, exist_ok=True)
    return path


async def _box_centre(page: Any, selector: str) -> tuple[float, float]:
    handle = await page.query_selector(selector)
    box = await handle.bounding_box() if handle is not None else None
    if not box:
        raise ValueError(f"Element has no bounding box (not rendered?): {selector}")
    return box["x"] + box["width"] / 2, box["y"] + box["height"] / 2


async def find_elements(page: Any, text: str, limit: int = FIND_LIMIT) -> list[dict[str, str]]:
    """Visible elements whose text or placeholder/aria-label/name/title contains ``text``."""
    needle = text.strip().lower()
    if not needle:
        return []
    return list(await page.evaluate(FIND_SCRIPT, [needle, limit]) or [])


# -- Navigation ---------------------------------------------------------------


async def goto(ctx: ActionContext, params: list[str]) -> dict[str, Any]:
    url = normalize_url(params[0])
    logger.info("Navigating to %s", url)
    response = await ctx.page.goto(url, wait_until="domcontentloaded", timeout=ctx.config.navigation_timeout_ms)
    return {"url": ctx.page.url, "status": response.status if response is not None else None}


async def wait_for_navigation(ctx: ActionContext, params: list[str]) -> dict[str, Any]:
    await ctx.page.wait_for_load_state("load", timeout=ctx.config.navigation_timeout_ms)
    return {"url": ctx.page.url}


# -- Element interaction ------------------------------------------------------


async def click(ctx: ActionContext, params: list[str]) -> dict[str, str]:
    selector = await resolve_target(ctx.page, ctx.resolver, params[0])
    await ctx.page.click(selector)
    return {"selector": selector}


async def smart_click(ctx: ActionContext, params: list[str]) -> dict[str, str]:
    matches = await find_elements(ctx.page, params[0])
    if not matches:
        raise TargetNotFoundError(params[0])
    best = matches[0]
    logger.info("Smart clicking %s with text: %s", best["selector"], best.get("text", ""))
    await ctx.page.click(best["selector"])
    return best


async def type_text(ctx: ActionContext, params: list[str]) -> dict[str, str]:
    selector = await resolve_target(ctx.page, ctx.resolver, params[0])
    value = ctx.secret(params[1])
    await ctx.page.click(selector)
    await ctx.page.fill(selector, value)
    return {"selector": selector}


async def type_and_submit(ctx: ActionContext, params: list[str]) -> dict[str, str]:
    result = await type_text(ctx, params)
    await ctx.page.press(result["selector"], "Enter")
    return result


async def wait_for_selector(ctx: ActionContext, params: list[str]) -> dict[str, str]:
    selector = await resolve_target(ctx.page, ctx.resolver, params[0])
    await ctx.page.wait_for_selector(selector, state="visible", timeout=ctx.config.action_timeout_ms)
    return {"selector": selector}


async def wait(ctx: ActionContext, params: list[str]) -> dict[str, int]:
    ms = parse_duration_ms(params[0])
    await ctx.page.wait_for_timeout(ms)
    return {"waited_ms": ms}


async def scroll_into_view(ctx: ActionContext, params: list[str]) -> dict[str, str]:
    selector = await resolve_target(ctx.page, ctx.resolver, params[0])
    await ctx.page.eval_on_selector(selector, "el => el.scrollIntoView({block: 'center'})")
    return {"selector": selector}


async def select_option(ctx: ActionContext, params: list[str]) -> list[str]:
    selector = await resolve_target(ctx.page, ctx.resolver, params[0])
    option = params[1]
    # select_option waits for a missing option, so pick value or label up front
    match = await ctx.page.eval_on_selector(selector, OPTION_MATCH_SCRIPT, option)
    if match == "label":
        return await ctx.page.select_option(selector, label=option)
    if match != "value":
        raise ValueError(f"No option with value or label '{option}' in {selector}")
    return await ctx.page.select_option(selector, value=option)


async def check(ctx: ActionContext, params: list[str]) -> dict[str, str]:
    selector = await resolve_target(ctx.page, ctx.resolver, params[0])
    await ctx.page.check(selector)
    return {"selector": selector}


async def uncheck(ctx: ActionContext, params: list[str]) -> dict[str, str]:
    selector = await resolve_target(ctx.page, ctx.resolver, params[0])
    await ctx.page.uncheck(selector)
    return {"selector": selector}


async def hover(ctx: ActionContext, params: list[str]) -> dict[str, str]:
    selector = await resolve_target(ctx.page, ctx.resolver, params[0])
    await ctx.page.hover(selector)
    return {"selector": selector}


async def focus(ctx: ActionContext, params: list[str]) -> dict[str, str]:
    selector = await resolve_target(ctx.page, ctx.resolver, params[0])
    await ctx.page.focus(selector)
    return {"selector": selector}


async def press_key(ctx: ActionContext, params: list[str]) -> dict[str, str]:
    key = params[0].strip()
    await ctx.page.keyboard.press(key)
    return {"key": key}


async def upload_file(ctx: ActionContext, params: list[str]) -> dict[str, str]:
    path = Path(params[1]).expanduser()
    if not path.is_file():
        raise FileNotFoundError(f"Upload file not found: {path}")
    selector = await resolve_target(ctx.page, ctx.resolver, params[0])
    await ctx.page.set_input_files(selector, str(path))
    return {"selector": selector, "file": str(path)}


async def drag_and_drop(ctx: ActionContext, params: list[str]) -> dict[str, str]:
    source = await resolve_target(ctx.page, ctx.resolver, params[0])
    target = await resolve_target(ctx.page, ctx.resolver, params[1])
    sx, sy = await _box_centre(ctx.page, source)
    tx, ty = await _box_centre(ctx.page, target)

    mouse = ctx.page.mouse
    await mouse.move(sx, sy)
    await mouse.down()
    await mouse.move(tx, ty, steps=10)
    await mouse.up()
    return {"source": source, "target": target}


# -- Capture / extraction -----------------------------------------------------


async def screenshot(ctx: ActionContext, params: list[str]) -> dict[str, Any]:
    arg = params[0].strip() if params else ""
    full_page = arg.lower() == "fullpage"
    path = _screenshot_path(ctx, None if full_page or not arg else arg)
    await ctx.page.screenshot(path=str(path), full_page=full_page)
    logger.info("Screenshot saved: %s", path)
    return {"path": str(path), "full_page": full_page}


async def extract_text(ctx: ActionContext, params: list[str]) -> str:
    selector = await resolve_target(ctx.page, ctx.resolver, params[0])
    return await ctx.page.text_content(selector) or ""


async def extract_html(ctx: ActionContext, params: list[str]) -> str:
    selector = await resolve_target(ctx.page, ctx.resolver, params[0])
    return await ctx.page.eval_on_selector(selector, "el => el.outerHTML")


async def evaluate(ctx: ActionContext, params: list[str]) -> Any:
    return await ctx.page.evaluate(params[0])


async def get_cookies(ctx: ActionContext, params: list[str]) -> list[dict[str, Any]]:
    return await ctx.page.context.cookies()


async def set_cookies(ctx: ActionContext, params: list[str]) -> dict[str, int]:
    try:
        cookies = json.loads(params[0])
    except json.JSONDecodeError as exc:
        raise ValueError(f"Cookies must be a JSON object or list: {exc}") from exc
    if isinstance(cookies, dict):
        cookies = [cookies]
    if not isinstance(cookies, list) or not all(isinstance(c, dict) for c in cookies):
        raise ValueError("Cookies must be a JSON object or list of objects")
    for cookie in cookies:
        # Playwright needs either url or domain+path
        if "url" not in cookie and "domain" not in cookie:
            cookie["url"] = ctx.page.url
    await ctx.page.context.add_cookies(cookies)
    return {"count": len(cookies)}


async def inspect_page(ctx: ActionContext, params: list[str]) -> list[dict[str, str]]:
    return list(await ctx.page.evaluate(INSPECT_SCRIPT, INSPECT_LIMIT) or [])


async def find_element(ctx: ActionContext, params: list[str]) -> list[dict[str, str]]:
    return await find_elements(ctx.page, params[0])


# -- Authentication -----------------------------------------------------------


def _credentials(ctx: ActionContext, params: list[str]) -> Credentials:
    username = ctx.secret(params[0])
    password = ctx.secret(params[1])
    full_name = ctx.secret(params[2]) if len(params) > 2 and params[2] else None
    return Credentials(username=username, password=password, full_name=full_name)


async def _authenticate(ctx: ActionContext, params: list[str], auth_type: AuthType | None) -> dict[str, Any]:
    engine = AuthEngine(
        ctx.resolver,
        submit_wait_ms=ctx.config.submit_wait_ms,
        navigation_timeout_ms=ctx.config.navigation_timeout_ms,
    )
    attempt = await engine.authenticate(ctx.page, _credentials(ctx, params), auth_type)
    return attempt.to_dict()


async def login(ctx: ActionContext, params: list[str]) -> dict[str, Any]:
    return await _authenticate(ctx, params, AuthType.LOGIN)


async def signup(ctx: ActionContext, params: list[str]) -> dict[str, Any]:
    return await _authenticate(ctx, params, AuthType.SIGNUP)


async def authenticate(ctx: ActionContext, params: list[str]) -> dict[str, Any]:
    return await _authenticate(ctx, params, None)


# -- Vocabulary ---------------------------------------------------------------


def _phrase(text: str) -> tuple[str, ...]:
    return tuple(text.split())


def _aliases(*texts: str) -> tuple[tuple[str, ...], ...]:
    return tuple(_phrase(t) for t in texts)


def build_registry() -> ActionRegistry:
    """Build the built-in vocabulary (unfrozen)."""
    registry = ActionRegistry()
    descriptors = [
        ActionDescriptor(
            "goto", _phrase("go to"), goto, 1, 1,
            usage="go to <url>", description="Navigate to a URL",
            aliases=_aliases("goto", "navigate to", "open"),
        ),
        ActionDescriptor(
            "click", _phrase("click"), click, 1, 1,
            usage="click <target>", description="Click an element",
            aliases=_aliases("click on"), opens_new_page=True,
        ),
        ActionDescriptor(
            "smartClick", _phrase("smart click"), smart_click, 1, 1,
            usage="smart click <text>", description="Find an element by visible text and click it",
            opens_new_page=True,
        ),
        ActionDescriptor(
            "typeAndSubmit", _phrase("type and submit"), type_and_submit, 2, 2,
            usage="type and submit <target>, <text>", description="Type into a field and press Enter",
            opens_new_page=True,
        ),
        ActionDescriptor(
            "type", _phrase("type"), type_text, 2, 2,
            usage="type <target>, <text>", description="Type text into a field",
        ),
        ActionDescriptor(
            "waitForNavigation", _phrase("wait for navigation"), wait_for_navigation, 0, 0,
            usage="wait for navigation", description="Wait for the page to finish loading",
        ),
        ActionDescriptor(
            "waitForSelector", _phrase("wait for"), wait_for_selector, 1, 1,
            usage="wait for <target>", description="Wait until an element is visible",
        ),
        ActionDescriptor(
            "wait", _phrase("wait"), wait, 1, 1,
            usage="wait <milliseconds>", description="Pause for a fixed duration",
        ),
        ActionDescriptor(
            "screenshot", _phrase("screenshot"), screenshot, 0, 1,
            usage="screenshot [fullPage | <path>]", description="Save a screenshot",
            aliases=_aliases("take screenshot"),
        ),
        ActionDescriptor(
            "extractText", _phrase("extract text"), extract_text, 1, 1,
            usage="extract text <target>", description="Return an element's text content",
        ),
        ActionDescriptor(
            "extractHTML", _phrase("extract html"), extract_html, 1, 1,
            usage="extract html <target>", description="Return an element's outer HTML",
        ),
        ActionDescriptor(
            "scrollIntoView", _phrase("scroll to"), scroll_into_view, 1, 1,
            usage="scroll to <target>", description="Scroll an element into view",
            aliases=_aliases("scroll into view"),
        ),
        ActionDescriptor(
            "evaluate", _phrase("evaluate"), evaluate, 1, 1,
            usage="evaluate <javascript>", description="Run JavaScript in the page",
        ),
        ActionDescriptor(
            "selectOption", _phrase("select"), select_option, 2, 2,
            usage="select <target>, <option>", description="Choose a dropdown option by value or label",
        ),
        ActionDescriptor(
            "check", _phrase("check"), check, 1, 1,
            usage="check <target>", description="Tick a checkbox",
        ),
        ActionDescriptor(
            "uncheck", _phrase("uncheck"), uncheck, 1, 1,
            usage="uncheck <target>", description="Untick a checkbox",
        ),
        ActionDescriptor(
            "hover", _phrase("hover"), hover, 1, 1,
            usage="hover <target>", description="Move the mouse over an element",
            aliases=_aliases("hover over"),
        ),
        ActionDescriptor(
            "pressKey", _phrase("press"), press_key, 1, 1,
            usage="press <key>", description="Press a keyboard key",
            aliases=_aliases("press key"),
        ),
        ActionDescriptor(
            "uploadFile", _phrase("upload"), upload_file, 2, 2,
            usage="upload <target>, <file path>", description="Attach a file to a file input",
        ),
        ActionDescriptor(
            "getCookies", _phrase("get cookies"), get_cookies, 0, 0,
            usage="get cookies", description="Return the context's cookies",
        ),
        ActionDescriptor(
            "setCookies", _phrase("set cookies"), set_cookies, 1, 1,
            usage="set cookies <json>", description="Add cookies from a JSON object or list",
        ),
        ActionDescriptor(
            "dragAndDrop", _phrase("drag"), drag_and_drop, 2, 2,
            usage="drag <source>, <target>", description="Drag one element onto another",
            aliases=_aliases("drag and drop"),
        ),
        ActionDescriptor(
            "inspectPage", _phrase("inspect page"), inspect_page, 0, 0,
            usage="inspect page", description=f"List up to {INSPECT_LIMIT} interactive elements",
            aliases=_aliases("inspect"),
        ),
        ActionDescriptor(
            "findElement", _phrase("find element"), find_element, 1, 1,
            usage="find element <text>", description=f"List up to {FIND_LIMIT} visible matching elements",
        ),
        ActionDescriptor(
            "focus", _phrase("find"), focus, 1, 1,
            usage="find <target>", description="Find an element and focus it",
            aliases=_aliases("focus"),
        ),
        ActionDescriptor(
            "login", _phrase("login"), login, 2, 2,
            usage="login <username or email>, <password>", description="Log in on the current site",
            aliases=_aliases("log in", "sign in"), opens_new_page=True,
        ),
        ActionDescriptor(
            "signup", _phrase("signup"), signup, 2, 3,
            usage="signup <email>, <password>[, <full name>]", description="Create an account on the current site",
            aliases=_aliases("sign up", "register"), opens_new_page=True,
        ),
        ActionDescriptor(
            "authenticate", _phrase("authenticate"), authenticate, 2, 3,
            usage="authenticate <username or email>, <password>[, <full name>]",
            description="Log in or sign up, whichever form the site shows",
            aliases=_aliases("auth"), opens_new_page=True,
        ),
    ]
    for descriptor in descriptors:
        registry.register(descriptor)
    return registry
