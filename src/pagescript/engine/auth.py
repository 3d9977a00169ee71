"""pagescript Authentication Engine -- login / signup on sites it has never seen.

One attempt walks a small state machine::

    NOT_ON_AUTH_PAGE -> FINDING_AUTH_LINK -> ON_AUTH_PAGE -> DETECTING_FORM_TYPE
        -> FILLING_FIELDS -> SUBMITTING -> DONE | FAILED

1. Detect whether the page already shows an auth form (a visible form with a
   password input and a submit control, not just any password field).
2. Otherwise click a login/signup link, rejecting links that carry the
   opposite intent, and as a last resort probe conventional paths on the
   current origin.
3. For ``authenticate`` without an explicit type, classify the page as
   login or signup from its visible text and form structure.
4. Fill fields through ranked selector lists, submit, and wait for a
   navigation.  No navigation within the bound is logged, not raised.

A few well-known sites get a fixed selector sequence (``SITE_STRATEGIES``).
For a login it runs before step 1, since such sites may show the username
step alone with no password field yet.  When a site sequence fails, the
generic flow runs instead; this is the one fallback policy for every site.
"""

from __future__ import annotations

import dataclasses
import enum
import logging
import re
from typing import TYPE_CHECKING, Any
from urllib.parse import urlparse

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from pagescript.credentials import mask_secret
from pagescript.engine.browser_session import DriverError, is_session_closed_error
from pagescript.engine.resolver import TargetResolver
from pagescript.models import DEFAULT_NAVIGATION_TIMEOUT_MS, DEFAULT_SUBMIT_WAIT_MS

if TYPE_CHECKING:
    from playwright.async_api import ElementHandle, Page

logger = logging.getLogger("pagescript.engine.auth")


class AuthState(str, enum.Enum):
    NOT_ON_AUTH_PAGE = "not_on_auth_page"
    FINDING_AUTH_LINK = "finding_auth_link"
    ON_AUTH_PAGE = "on_auth_page"
    DETECTING_FORM_TYPE = "detecting_form_type"
    FILLING_FIELDS = "filling_fields"
    SUBMITTING = "submitting"
    DONE = "done"
    FAILED = "failed"


class AuthType(str, enum.Enum):
    LOGIN = "login"
    SIGNUP = "signup"


class AuthenticationError(Exception):
    """Raised when a required field, button or form cannot be resolved."""

    def __init__(self, message: str, field: str | None = None) -> None:
        self.field = field
        super().__init__(message)


@dataclasses.dataclass
class Credentials:
    """What to type into the auth form."""

    username: str
    password: str
    full_name: str | None = None

    def __repr__(self) -> str:
        return (
            f"Credentials(username={self.username!r}, password={mask_secret(self.password)!r}, "
            f"full_name={self.full_name!r})"
        )


@dataclasses.dataclass
class AuthAttempt:
    """State and outcome of one authentication attempt."""

    auth_type: AuthType | None = None
    state: AuthState = AuthState.NOT_ON_AUTH_PAGE
    history: list[AuthState] = dataclasses.field(default_factory=lambda: [AuthState.NOT_ON_AUTH_PAGE])
    strategy: str = "generic"
    submitted_via: str = ""
    navigated: bool = False
    url: str = ""

    def advance(self, state: AuthState) -> None:
        logger.debug("Auth attempt: %s -> %s", self.state.value, state.value)
        self.state = state
        self.history.append(state)

    def to_dict(self) -> dict[str, Any]:
        return {
            "auth_type": self.auth_type.value if self.auth_type else None,
            "state": self.state.value,
            "strategy": self.strategy,
            "submitted_via": self.submitted_via,
            "navigated": self.navigated,
            "url": self.url,
        }


# -- Keyword sets -------------------------------------------------------------

# Link/button intent (matched against text, href and aria-label)
LOGIN_INTENT_KEYWORDS = ("log in", "login", "log-in", "sign in", "signin", "sign-in")
SIGNUP_INTENT_KEYWORDS = ("sign up", "signup", "sign-up", "register", "create account", "join")

# Page text scoring for login-vs-signup inference
SIGNUP_PHRASES = (
    "create your account",
    "create an account",
    "create account",
    "sign up",
    "signup",
    "register",
    "join now",
    "get started",
    "already have an account",
    "confirm password",
    "choose a password",
)
LOGIN_PHRASES = (
    "sign in",
    "log in",
    "login",
    "welcome back",
    "forgot password",
    "forgot your password",
    "remember me",
    "don't have an account",
    "keep me signed in",
)

LOGIN_PATHS = ("/login", "/signin", "/auth/login", "/user/login", "/account/login")
SIGNUP_PATHS = ("/signup", "/register", "/join", "/auth/register", "/account/register")


# -- Ranked selector tables ---------------------------------------------------

LOGIN_LINK_SELECTORS = (
    'header a:has-text("Log in")',
    'header a:has-text("Sign in")',
    'nav a:has-text("Log in")',
    'nav a:has-text("Sign in")',
    'header button:has-text("Log in")',
    'header button:has-text("Sign in")',
    'a[href*="login" i]',
    'a[href*="signin" i]',
    'a[href*="sign-in" i]',
    'a:has-text("Log in")',
    'a:has-text("Login")',
    'a:has-text("Sign in")',
    'button:has-text("Log in")',
    'button:has-text("Sign in")',
    '[role="button"]:has-text("Sign in")',
    '[data-testid*="login" i]',
)

SIGNUP_LINK_SELECTORS = (
    'header a:has-text("Sign up")',
    'header a:has-text("Register")',
    'nav a:has-text("Sign up")',
    'nav a:has-text("Register")',
    'header button:has-text("Sign up")',
    'a[href*="signup" i]',
    'a[href*="sign-up" i]',
    'a[href*="register" i]',
    'a:has-text("Sign up")',
    'a:has-text("Create account")',
    'a:has-text("Register")',
    'button:has-text("Sign up")',
    'button:has-text("Create account")',
    '[role="button"]:has-text("Sign up")',
    '[data-testid*="signup" i]',
)

USERNAME_SELECTORS = (
    'input[type="email"]',
    'input[name="email" i]',
    'input[name="username" i]',
    'input[name="login" i]',
    'input[name="user" i]',
    'input[name*="email" i]',
    'input[name*="user" i]:not([type="checkbox"]):not([type="hidden"])',
    'input[name*="login" i]:not([type="checkbox"]):not([type="hidden"]):not([type="submit"])',
    'input[id*="email" i]',
    'input[id*="user" i]:not([type="checkbox"])',
    'input[id*="login" i]:not([type="checkbox"]):not([type="submit"]):not([id*="remember" i])',
    'input[autocomplete="username"]',
    'input[autocomplete="email"]',
    'input[placeholder*="email" i]',
    'input[placeholder*="username" i]',
    'input[aria-label*="email" i]',
    'input[aria-label*="username" i]',
    'input[class*="email" i]',
    'input[class*="user" i]:not([type="checkbox"])',
    'input[type="text"]:not([name*="search" i])',
    "input:not([type])",
)

FULL_NAME_SELECTORS = (
    'input[autocomplete="name"]',
    'input[name="name" i]',
    'input[name*="fullname" i]',
    'input[name*="full_name" i]',
    'input[name*="full-name" i]',
    'input[id*="fullname" i]',
    'input[id*="full_name" i]',
    'input[id*="full-name" i]',
    'input[placeholder*="full name" i]',
    'input[aria-label*="full name" i]',
    'input[placeholder*="your name" i]',
    'input[name*="name" i]:not([name*="user" i]):not([type="email"]):not([type="password"])',
)

PASSWORD_SELECTORS = (
    'input[type="password"]:not([name*="confirm" i]):not([id*="confirm" i])',
    'input[name="password" i]',
    'input[name*="pass" i]:not([type="checkbox"]):not([name*="confirm" i])',
    'input[id*="password" i]:not([id*="confirm" i]):not([type="checkbox"])',
    'input[placeholder*="password" i]:not([placeholder*="confirm" i])',
    'input[aria-label*="password" i]:not([aria-label*="confirm" i])',
    'input[class*="password" i]',
)

CONFIRM_PASSWORD_SELECTORS = (
    'input[type="password"][name*="confirm" i]',
    'input[type="password"][id*="confirm" i]',
    'input[name*="password2" i]',
    'input[name*="password_confirmation" i]',
    'input[type="password"][name*="repeat" i]',
    'input[placeholder*="confirm" i]',
    'input[aria-label*="confirm" i]',
    'input[type="password"] >> nth=1',
)

LOGIN_SUBMIT_SELECTORS = (
    'button[type="submit"]',
    'input[type="submit"]',
    'button[id*="login" i]',
    'button[id*="signin" i]',
    'button[class*="login" i]',
    'button[class*="signin" i]',
    'button:has-text("Log in")',
    'button:has-text("Sign in")',
    'button:has-text("Login")',
    'a:has-text("Log in")',
    'a:has-text("Sign in")',
    '[role="button"]:has-text("Sign in")',
    "form button",
)

SIGNUP_SUBMIT_SELECTORS = (
    'button[type="submit"]',
    'input[type="submit"]',
    'button[id*="signup" i]',
    'button[id*="register" i]',
    'button[class*="signup" i]',
    'button[class*="register" i]',
    'button:has-text("Sign up")',
    'button:has-text("Create account")',
    'button:has-text("Register")',
    'button:has-text("Join")',
    'a:has-text("Sign up")',
    '[role="button"]:has-text("Sign up")',
    "form button",
)


# -- Page scripts -------------------------------------------------------------

AUTH_FORM_SCRIPT = """() => {
    const visible = (el) => {
        const style = window.getComputedStyle(el);
        const rect = el.getBoundingClientRect();
        return style.display !== 'none' && style.visibility !== 'hidden'
            && rect.width > 0 && rect.height > 0;
    };
    return Array.from(document.querySelectorAll('form')).map((form) => ({
        visible: visible(form),
        action: form.getAttribute('action') || '',
        input_names: Array.from(form.querySelectorAll('input')).map((i) => i.name || ''),
        has_password: form.querySelector('input[type="password"]') !== null,
        has_submit: form.querySelector(
            'button[type="submit"], input[type="submit"], button:not([type])'
        ) !== null,
    }));
}"""

PAGE_SIGNALS_SCRIPT = """() => {
    const visible = (el) => {
        const style = window.getComputedStyle(el);
        const rect = el.getBoundingClientRect();
        return style.display !== 'none' && style.visibility !== 'hidden'
            && rect.width > 0 && rect.height > 0;
    };
    const inputs = Array.from(document.querySelectorAll('input')).filter(visible);
    const hint = (el) => [
        el.name, el.id, el.placeholder,
        el.getAttribute('autocomplete'), el.getAttribute('aria-label'),
    ].join(' ').toLowerCase();
    const hasName = inputs.some((el) => {
        const type = (el.type || 'text').toLowerCase();
        if (['email', 'password', 'hidden', 'checkbox', 'radio', 'submit'].includes(type)) return false;
        const h = hint(el);
        if (/user.?name|login|email/.test(h)) return false;
        return /full.?name|first.?name|last.?name|your name|(^|\\s)name(\\s|$)/.test(h);
    });
    const passwords = inputs.filter((el) => (el.type || '').toLowerCase() === 'password');
    const hasConfirm = passwords.length > 1
        || passwords.some((el) => /confirm|repeat|again|verify|password2/.test(hint(el)));
    const text = (document.body && document.body.innerText) || '';
    return {text: text.slice(0, 5000), has_name_field: hasName, has_confirm_password: hasConfirm};
}"""


# -- Detection ----------------------------------------------------------------


AUTH_ACTION_PATTERN = re.compile(r"login|signin|sign-in|auth", re.IGNORECASE)
AUTH_INPUT_NAME_PATTERN = re.compile(r"login|password|user", re.IGNORECASE)


def is_auth_form(form: dict[str, Any]) -> bool:
    """Decide whether one form description from ``AUTH_FORM_SCRIPT`` is a login form.

    The form must look like auth (action URL keyword, a password input, or an
    auth-ish input name) and also be visible with both a password input and a
    submit control. A lone password field or a search form never qualifies.
    """
    has_password = bool(form.get("has_password"))
    looks_auth = (
        bool(AUTH_ACTION_PATTERN.search(str(form.get("action") or "")))
        or has_password
        or any(AUTH_INPUT_NAME_PATTERN.search(str(name)) for name in form.get("input_names") or ())
    )
    return looks_auth and bool(form.get("visible")) and has_password and bool(form.get("has_submit"))


async def has_auth_form(page: Page) -> bool:
    """Whether any form on the page passes :func:`is_auth_form`."""
    try:
        forms = await page.evaluate(AUTH_FORM_SCRIPT)
    except PlaywrightError as exc:
        if is_session_closed_error(exc):
            raise DriverError(f"Browser session is gone: {exc}") from exc
        logger.debug("Auth form detection failed: %s", exc)
        return False
    return any(is_auth_form(form) for form in forms or () if isinstance(form, dict))


def classify_auth_type(page_text: str, has_name_field: bool, has_confirm_password: bool) -> AuthType:
    """Heuristic majority vote between signup and login signals."""
    text = page_text.lower()
    signup_score = sum(1 for phrase in SIGNUP_PHRASES if phrase in text)
    login_score = sum(1 for phrase in LOGIN_PHRASES if phrase in text)
    signup_score += int(has_name_field) + int(has_confirm_password)

    if has_name_field or has_confirm_password or signup_score > login_score:
        result = AuthType.SIGNUP
    else:
        result = AuthType.LOGIN
    logger.debug(
        "Auth type scores: signup=%d login=%d name_field=%s confirm=%s -> %s",
        signup_score,
        login_score,
        has_name_field,
        has_confirm_password,
        result.value,
    )
    return result


async def infer_auth_type(page: Page) -> AuthType:
    """Read page signals and classify the form as login or signup."""
    signals = await page.evaluate(PAGE_SIGNALS_SCRIPT) or {}
    return classify_auth_type(
        str(signals.get("text", "")),
        bool(signals.get("has_name_field")),
        bool(signals.get("has_confirm_password")),
    )


# -- Site strategies ----------------------------------------------------------


@dataclasses.dataclass(frozen=True)
class SiteStep:
    """One fixed step: fill ``username``/``password``, ``click`` or ``wait`` on a selector."""

    kind: str
    selector: str


@dataclasses.dataclass(frozen=True)
class SiteStrategy:
    """Hard-coded login sequence for one domain."""

    domain: str
    steps: tuple[SiteStep, ...]

    async def run(self, page: Page, credentials: Credentials, timeout_ms: int) -> None:
        for step in self.steps:
            await page.wait_for_selector(step.selector, state="visible", timeout=timeout_ms)
            if step.kind == "username":
                await page.fill(step.selector, credentials.username)
            elif step.kind == "password":
                await page.fill(step.selector, credentials.password)
            elif step.kind == "click":
                await page.click(step.selector)
            elif step.kind != "wait":
                raise ValueError(f"Unknown site step kind: {step.kind}")


SITE_STRATEGIES: dict[str, SiteStrategy] = {
    "github.com": SiteStrategy(
        domain="github.com",
        steps=(
            SiteStep("username", "#login_field"),
            SiteStep("password", "#password"),
            SiteStep("click", 'input[name="commit"]'),
        ),
    ),
    "google.com": SiteStrategy(
        domain="google.com",
        steps=(
            SiteStep("username", 'input[type="email"]'),
            SiteStep("click", "#identifierNext"),
            SiteStep("wait", 'input[name="Passwd"]'),
            SiteStep("password", 'input[name="Passwd"]'),
            SiteStep("click", "#passwordNext"),
        ),
    ),
}


def normalize_domain(url: str) -> str:
    """Lower-cased host without a leading ``www.``."""
    host = urlparse(url).hostname if "://" in url else url.split("/")[0].split(":")[0]
    host = (host or "").lower()
    if host.startswith("www."):
        host = host[4:]
    return host


def find_site_strategy(url: str) -> SiteStrategy | None:
    """Strategy for the URL's domain or any parent domain (accounts.google.com -> google.com)."""
    host = normalize_domain(url)
    if not host:
        return None
    for domain, strategy in SITE_STRATEGIES.items():
        if host == domain or host.endswith("." + domain):
            return strategy
    return None


# -- Engine -------------------------------------------------------------------


def _excluding(keywords: tuple[str, ...]):
    """Accept predicate rejecting elements whose text/href/aria-label carry a keyword."""

    async def accept(handle: ElementHandle) -> bool:
        parts = [
            await handle.text_content(),
            await handle.get_attribute("href"),
            await handle.get_attribute("aria-label"),
        ]
        haystack = " ".join(p for p in parts if p).lower()
        return not any(kw in haystack for kw in keywords)

    return accept


class AuthEngine:
    """Runs login / signup attempts against the active page."""

    def __init__(
        self,
        resolver: TargetResolver,
        submit_wait_ms: int = DEFAULT_SUBMIT_WAIT_MS,
        navigation_timeout_ms: int = DEFAULT_NAVIGATION_TIMEOUT_MS,
    ) -> None:
        self._resolver = resolver
        self.submit_wait_ms = submit_wait_ms
        self.navigation_timeout_ms = navigation_timeout_ms

    async def authenticate(
        self,
        page: Page,
        credentials: Credentials,
        auth_type: AuthType | None = None,
    ) -> AuthAttempt:
        """Reach an auth form, fill it and submit.

        Args:
            page: Active page.
            credentials: Username/email, password, optional full name.
            auth_type: Force login or signup; ``None`` infers it from the page.

        Raises:
            AuthenticationError: No form reachable, or a required field missing.
        """
        attempt = AuthAttempt(auth_type=auth_type)
        logger.info(
            "Authenticating (%s) as %s",
            auth_type.value if auth_type else "auto",
            credentials.username,
        )
        try:
            before_url = page.url
            # Site flows run before form detection: Google shows the email step without a password field
            site_first = auth_type is AuthType.LOGIN or (auth_type is None and not await has_auth_form(page))
            site_done = site_first and await self._run_site_strategy(page, credentials, attempt)
            if site_done:
                attempt.auth_type = AuthType.LOGIN
                attempt.advance(AuthState.ON_AUTH_PAGE)
                attempt.advance(AuthState.FILLING_FIELDS)
            else:
                await self._reach_auth_page(page, attempt, auth_type or AuthType.LOGIN)

                attempt.advance(AuthState.DETECTING_FORM_TYPE)
                if attempt.auth_type is None:
                    attempt.auth_type = await infer_auth_type(page)
                    logger.info("Detected %s form", attempt.auth_type.value)

                attempt.advance(AuthState.FILLING_FIELDS)
                before_url = page.url
                if not site_first and attempt.auth_type is AuthType.LOGIN:
                    site_done = await self._run_site_strategy(page, credentials, attempt)
                if not site_done:
                    await self._fill_generic(page, credentials, attempt.auth_type)

            attempt.advance(AuthState.SUBMITTING)
            if not site_done:
                attempt.submitted_via = await self._submit(page, attempt.auth_type)

            attempt.navigated = await self._wait_for_navigation(page, before_url)
            attempt.url = page.url
            attempt.advance(AuthState.DONE)
            return attempt
        except Exception:
            attempt.advance(AuthState.FAILED)
            raise

    # -- Reaching the form ---------------------------------------------------

    async def _reach_auth_page(self, page: Page, attempt: AuthAttempt, intent: AuthType) -> None:
        if await has_auth_form(page):
            attempt.advance(AuthState.ON_AUTH_PAGE)
            return

        attempt.advance(AuthState.FINDING_AUTH_LINK)
        if await self._click_auth_link(page, intent) and await has_auth_form(page):
            attempt.advance(AuthState.ON_AUTH_PAGE)
            return

        if await self._probe_auth_paths(page, intent):
            attempt.advance(AuthState.ON_AUTH_PAGE)
            return

        paths = ", ".join(SIGNUP_PATHS if intent is AuthType.SIGNUP else LOGIN_PATHS)
        raise AuthenticationError(
            f"Could not find a {intent.value} form: no {intent.value} link found and none of {paths} showed one",
            field="form",
        )

    async def _click_auth_link(self, page: Page, intent: AuthType) -> bool:
        if intent is AuthType.SIGNUP:
            selectors, excluded = SIGNUP_LINK_SELECTORS, LOGIN_INTENT_KEYWORDS
        else:
            selectors, excluded = LOGIN_LINK_SELECTORS, SIGNUP_INTENT_KEYWORDS

        resolved = await self._resolver.resolve(page, list(selectors), accept=_excluding(excluded))
        if not resolved.found:
            logger.info("No %s link found on %s", intent.value, page.url)
            return False

        logger.info("Clicking %s link: %s", intent.value, resolved.selector)
        await page.click(resolved.selector)
        await self._settle(page)
        return True

    async def _probe_auth_paths(self, page: Page, intent: AuthType) -> bool:
        parsed = urlparse(page.url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            logger.info("Cannot probe %s paths from %s", intent.value, page.url)
            return False
        origin = f"{parsed.scheme}://{parsed.netloc}"

        for path in SIGNUP_PATHS if intent is AuthType.SIGNUP else LOGIN_PATHS:
            url = origin + path
            try:
                await page.goto(url, wait_until="domcontentloaded", timeout=self.navigation_timeout_ms)
            except PlaywrightError as exc:
                if is_session_closed_error(exc):
                    raise DriverError(f"Browser session is gone: {exc}") from exc
                logger.debug("Probe %s failed: %s", url, exc)
                continue
            if await has_auth_form(page):
                logger.info("Found %s form at %s", intent.value, url)
                return True
        return False

    # -- Filling -------------------------------------------------------------

    async def _run_site_strategy(self, page: Page, credentials: Credentials, attempt: AuthAttempt) -> bool:
        """Run a site-specific login sequence. Returns False when the generic flow should run."""
        strategy = find_site_strategy(page.url)
        if strategy is None:
            return False

        logger.info("Using site login flow for %s", strategy.domain)
        try:
            await strategy.run(page, credentials, self.navigation_timeout_ms)
        except PlaywrightError as exc:
            if is_session_closed_error(exc):
                raise DriverError(f"Browser session is gone: {exc}") from exc
            logger.warning("Site login flow for %s failed (%s); falling back to generic flow", strategy.domain, exc)
            return False
        attempt.strategy = strategy.domain
        attempt.submitted_via = "site"
        return True

    async def _fill_generic(self, page: Page, credentials: Credentials, auth_type: AuthType) -> None:
        signup = auth_type is AuthType.SIGNUP

        username = await self._resolve_field(page, USERNAME_SELECTORS, "username", required=True)
        name = None
        if signup and credentials.full_name:
            name = await self._resolve_field(page, FULL_NAME_SELECTORS, "full name", required=False)
        password = await self._resolve_field(page, PASSWORD_SELECTORS, "password", required=True)
        confirm = None
        if signup:
            confirm = await self._resolve_field(page, CONFIRM_PASSWORD_SELECTORS, "confirm password", required=False)
            if confirm == password:
                confirm = None

        await page.fill(username, credentials.username)
        if name:
            await page.fill(name, credentials.full_name or "")
        await page.fill(password, credentials.password)
        if confirm:
            await page.fill(confirm, credentials.password)
        logger.debug(
            "Filled %s form (username=%s, password=%s)",
            auth_type.value,
            credentials.username,
            mask_secret(credentials.password),
        )

    async def _resolve_field(self, page: Page, selectors: tuple[str, ...], name: str, required: bool) -> str | None:
        resolved = await self._resolver.resolve(page, list(selectors))
        if resolved.found:
            return resolved.selector
        if required:
            raise AuthenticationError(f"Could not find {name} field", field=name)
        logger.debug("Optional %s field not found; skipping", name)
        return None

    async def _submit(self, page: Page, auth_type: AuthType) -> str:
        selectors = SIGNUP_SUBMIT_SELECTORS if auth_type is AuthType.SIGNUP else LOGIN_SUBMIT_SELECTORS
        resolved = await self._resolver.resolve(page, list(selectors))
        if resolved.found:
            logger.info("Submitting via %s", resolved.selector)
            await page.click(resolved.selector)
            return resolved.selector or ""

        # No submit control -- press Enter in the password field
        logger.warning("Could not find %s submit button; pressing Enter", auth_type.value)
        password = await self._resolve_field(page, PASSWORD_SELECTORS, "password", required=True)
        await page.press(password, "Enter")
        return "enter"

    # -- Waiting -------------------------------------------------------------

    async def _wait_for_navigation(self, page: Page, before_url: str) -> bool:
        try:
            await page.wait_for_url(lambda url: url != before_url, timeout=self.submit_wait_ms)
        except PlaywrightTimeoutError:
            logger.info(
                "No navigation within %dms after submit; success is uncertain (many forms submit in place)",
                self.submit_wait_ms,
            )
            return False
        await self._settle(page)
        return True

    async def _settle(self, page: Page) -> None:
        try:
            await page.wait_for_load_state("domcontentloaded", timeout=self.submit_wait_ms)
        except PlaywrightTimeoutError:
            # Page may already be loaded; don't fail on timeout
            pass
