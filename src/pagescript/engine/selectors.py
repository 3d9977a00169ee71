"""Selector candidate generation -- turns a loose target description into selectors.

Real pages rarely expose one canonical handle for a short human label like
"search" or "submit", so a description is expanded into a ranked list of
Playwright selector expressions.  The ranking lives in a single declarative
table (``CANDIDATE_TABLE``) rendered by ``generate_candidates``:

1. the raw description, so a fully formed selector is tried first
2. attribute substring matches on inputs, textareas, then any element
3. visible text matches on buttons, links, then any element
4. class / id literals (single-identifier descriptions only)
5. automation test attributes

Generation is pure: no page access, same input, same list.
"""

from __future__ import annotations

import re

# Quote characters are stripped before interpolation so rendered selectors
# can always wrap the value in double quotes.
_QUOTE_CHARS = re.compile(r"['\"`]")

# A bare CSS identifier ("search", "main-nav", "_q1") -- safe as .x / #x.
_CSS_IDENTIFIER = re.compile(r"^-?[A-Za-z_][\w-]*$")

# (group, templates, identifier_only).  Order is priority order.
CANDIDATE_TABLE: tuple[tuple[str, tuple[str, ...], bool], ...] = (
    (
        "field",
        (
            'input[placeholder*="{t}" i]',
            'input[aria-label*="{t}" i]',
            'input[name*="{t}" i]',
            'input[id*="{t}" i]',
            'textarea[placeholder*="{t}" i]',
            'textarea[aria-label*="{t}" i]',
            'textarea[name*="{t}" i]',
            'textarea[id*="{t}" i]',
        ),
        False,
    ),
    (
        "attribute",
        (
            '[placeholder*="{t}" i]',
            '[aria-label*="{t}" i]',
            '[name*="{t}" i]',
            '[id*="{t}" i]',
        ),
        False,
    ),
    (
        "text",
        (
            'button:has-text("{t}")',
            'a:has-text("{t}")',
            'text="{t}"',
            "text={t}",
        ),
        False,
    ),
    (
        "structural",
        (
            ".{t}",
            "#{t}",
        ),
        True,
    ),
    (
        "test-attribute",
        (
            '[data-testid="{t}"]',
            '[data-test="{t}"]',
            '[data-cy="{t}"]',
            '[data-qa="{t}"]',
        ),
        False,
    ),
)


def sanitize_target(target: str) -> str:
    """Strip quote characters and escape backslashes for selector interpolation."""
    cleaned = _QUOTE_CHARS.sub("", target).strip()
    return cleaned.replace("\\", "\\\\")


def generate_candidates(target: str, groups: tuple[str, ...] | None = None) -> list[str]:
    """Return the ordered candidate selectors for a target description.

    Args:
        target: Human-supplied description or a ready-made selector.
        groups: Restrict rendering to these table groups (raw target is
            always first).  ``None`` renders every group.

    Returns:
        Deduplicated selectors, most reliable first.  Empty for a blank target.
    """
    raw = target.strip()
    if not raw:
        return []

    clean = sanitize_target(raw)
    candidates = [raw]
    if clean:
        is_identifier = bool(_CSS_IDENTIFIER.match(clean))
        for group, templates, identifier_only in CANDIDATE_TABLE:
            if groups is not None and group not in groups:
                continue
            if identifier_only and not is_identifier:
                continue
            candidates.extend(t.replace("{t}", clean) for t in templates)

    # Deduplicate while preserving order
    seen: set[str] = set()
    deduped: list[str] = []
    for c in candidates:
        if c not in seen:
            seen.add(c)
            deduped.append(c)
    return deduped
