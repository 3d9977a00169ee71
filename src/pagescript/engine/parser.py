"""pagescript Instruction Parser -- one text line to one structured action.

A line is matched token-by-token against every keyword phrase in the
registry.  The longest matching phrase wins and equal lengths fall back to
registry order, so ``wait for navigation`` beats ``wait for`` which beats
``wait``.  A zero-parameter phrase followed by more text gives way to the
next shorter phrase, so ``wait for navigation bar`` waits for an element.
Whatever follows the phrase becomes the parameters:

* single-parameter actions take the remainder verbatim (URLs, selectors and
  sentences keep their spaces and commas)
* multi-parameter actions split on commas outside quotes, at most
  ``max_params`` pieces, the last piece keeping any further commas

Malformed input is an expected case for hand-written instruction files, so
``parse`` returns a ``ParseFailure`` value instead of raising.
"""

from __future__ import annotations

import dataclasses
import re
from typing import Union

from pagescript.engine.registry import ActionDescriptor, ActionRegistry, default_registry
from pagescript.models import DEFAULT_COMMENT_MARKER

SKIP_ACTION = "skip"

_TOKEN_RE = re.compile(r"\S+")
_QUOTES = ("'", '"')


@dataclasses.dataclass
class ParsedAction:
    """An instruction matched to an action key with its parameters."""

    action_key: str
    params: list[str] = dataclasses.field(default_factory=list)

    @property
    def is_skip(self) -> bool:
        return self.action_key == SKIP_ACTION


@dataclasses.dataclass(frozen=True)
class ParseFailure:
    """Why an instruction could not be turned into an action."""

    reason: str


ParseResult = Union[ParsedAction, ParseFailure]


def split_params(text: str, limit: int | None = None) -> list[str]:
    """Split on commas that are not inside single or double quotes.

    A backslash escapes the next character.  With ``limit``, at most
    ``limit`` pieces are produced and the last one keeps the rest verbatim.
    Pieces are returned untrimmed.
    """
    parts: list[str] = []
    current: list[str] = []
    quote: str | None = None
    escaped = False

    for ch in text:
        if escaped:
            current.append(ch)
            escaped = False
            continue
        if ch == "\\":
            current.append(ch)
            escaped = True
            continue
        if quote is not None:
            if ch == quote:
                quote = None
            current.append(ch)
            continue
        if ch in _QUOTES:
            quote = ch
            current.append(ch)
            continue
        if ch == "," and (limit is None or len(parts) < limit - 1):
            parts.append("".join(current))
            current = []
            continue
        current.append(ch)

    parts.append("".join(current))
    return parts


def unquote(value: str) -> str:
    """Remove one pair of matching wrapping quotes and unescape inner quotes."""
    if len(value) >= 2 and value[0] in _QUOTES and value[-1] == value[0]:
        quote = value[0]
        inner = value[1:-1]
        if not re.search(rf"(?<!\\){quote}", inner):
            return inner.replace(f"\\{quote}", quote)
    return value


class InstructionParser:
    """Parses instruction lines against an action registry."""

    def __init__(
        self,
        registry: ActionRegistry | None = None,
        comment_marker: str = DEFAULT_COMMENT_MARKER,
    ) -> None:
        self._registry = registry if registry is not None else default_registry()
        self.comment_marker = comment_marker

    @property
    def registry(self) -> ActionRegistry:
        return self._registry

    def is_ignorable(self, line: str) -> bool:
        """Blank lines and comments produce no action."""
        text = line.strip()
        return not text or text.startswith(self.comment_marker)

    def parse(self, line: str) -> ParseResult:
        """Parse one instruction line.

        Returns:
            ``ParsedAction`` (``skip`` for blank/comment lines) or ``ParseFailure``.
        """
        if self.is_ignorable(line):
            return ParsedAction(SKIP_ACTION, [])

        text = line.strip()
        tokens = list(_TOKEN_RE.finditer(text))
        matches = self._matches(tokens)
        if not matches:
            return ParseFailure(f"Unknown action: '{tokens[0].group()}' in instruction: {text}")

        failures: list[ParseResult] = []
        for descriptor, consumed in matches:
            remainder = text[tokens[consumed - 1].end():].strip()
            result = self._extract_params(descriptor, remainder)
            # A zero-parameter phrase followed by text yields to the next shorter phrase
            if isinstance(result, ParsedAction) or descriptor.max_params > 0 or not remainder:
                return result
            failures.append(result)
        return failures[0]

    def _matches(self, tokens: list[re.Match[str]]) -> list[tuple[ActionDescriptor, int]]:
        """Keyword phrases that prefix the tokens, longest first; ties keep registry order."""
        lowered = [t.group().lower() for t in tokens]
        found = [
            (descriptor, len(phrase))
            for phrase, descriptor in self._registry.phrases()
            if len(phrase) <= len(lowered) and tuple(lowered[: len(phrase)]) == phrase
        ]
        # sort is stable, so equal lengths stay in registration order
        found.sort(key=lambda match: -match[1])
        return found

    @staticmethod
    def _extract_params(descriptor: ActionDescriptor, remainder: str) -> ParseResult:
        if descriptor.max_params == 0:
            if remainder:
                return ParseFailure(
                    f"'{descriptor.key}' takes no parameters, got: {remainder}. Usage: {descriptor.usage}"
                )
            return ParsedAction(descriptor.key, [])

        if descriptor.max_params == 1:
            params = [remainder] if remainder else []
        else:
            params = [unquote(p.strip()) for p in split_params(remainder, descriptor.max_params)] if remainder else []
            while params and not params[-1]:
                params.pop()

        required = params[: descriptor.min_params]
        if len(params) < descriptor.min_params or not all(required):
            return ParseFailure(
                f"Missing parameters for '{descriptor.key}' "
                f"(expected at least {descriptor.min_params}, got {len([p for p in params if p])}). "
                f"Usage: {descriptor.usage}"
            )
        return ParsedAction(descriptor.key, params)


def parse_instruction(line: str) -> ParseResult:
    """Parse a line against the default vocabulary."""
    return InstructionParser().parse(line)
