"""pagescript Action Registry -- the closed instruction vocabulary.

Each ``ActionDescriptor`` pairs an action key with the keyword phrase that
introduces it in an instruction line, its arity contract and the async
handler that performs it.  The registry keeps registration order because the
parser breaks equal-length keyword ties by that order.
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Iterator

from pagescript.engine.protocols import ActionHandler

logger = logging.getLogger("pagescript.engine.registry")


@dataclasses.dataclass(frozen=True)
class ActionDescriptor:
    """Static description of one action in the vocabulary."""

    key: str
    keyword_phrase: tuple[str, ...]
    handler: ActionHandler
    min_params: int = 0
    max_params: int = 1  # 1 means "the whole remainder is one parameter"
    usage: str = ""
    description: str = ""
    aliases: tuple[tuple[str, ...], ...] = ()
    opens_new_page: bool = False

    def __post_init__(self) -> None:
        if not self.keyword_phrase:
            raise ValueError(f"Action {self.key!r} needs a keyword phrase")
        if self.min_params < 0 or self.max_params < self.min_params:
            raise ValueError(
                f"Action {self.key!r} has an invalid arity: min={self.min_params}, max={self.max_params}"
            )
        # Phrases are matched case-insensitively
        object.__setattr__(self, "keyword_phrase", tuple(t.lower() for t in self.keyword_phrase))
        object.__setattr__(self, "aliases", tuple(tuple(t.lower() for t in a) for a in self.aliases))

    @property
    def phrases(self) -> tuple[tuple[str, ...], ...]:
        """Primary phrase followed by aliases."""
        return (self.keyword_phrase, *self.aliases)


class ActionRegistry:
    """Ordered, closed mapping of action key to descriptor.

    Registration happens once at start-up; ``freeze()`` rejects anything
    registered after the vocabulary is in use.
    """

    def __init__(self) -> None:
        self._descriptors: dict[str, ActionDescriptor] = {}
        self._frozen = False

    def register(self, descriptor: ActionDescriptor) -> None:
        if self._frozen:
            raise RuntimeError(f"Registry is frozen; cannot register {descriptor.key!r}")
        if descriptor.key in self._descriptors:
            raise ValueError(f"Action already registered: {descriptor.key}")
        self._descriptors[descriptor.key] = descriptor

    def freeze(self) -> None:
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def lookup(self, key: str) -> ActionDescriptor | None:
        return self._descriptors.get(key)

    def descriptors(self) -> list[ActionDescriptor]:
        """All descriptors in registration order."""
        return list(self._descriptors.values())

    def phrases(self) -> Iterator[tuple[tuple[str, ...], ActionDescriptor]]:
        """Yield ``(phrase, descriptor)`` pairs in registration order."""
        for descriptor in self._descriptors.values():
            for phrase in descriptor.phrases:
                yield phrase, descriptor

    def __contains__(self, key: object) -> bool:
        return key in self._descriptors

    def __len__(self) -> int:
        return len(self._descriptors)


_DEFAULT_REGISTRY: ActionRegistry | None = None


def default_registry() -> ActionRegistry:
    """Return the built-in vocabulary (built once, frozen)."""
    global _DEFAULT_REGISTRY
    if _DEFAULT_REGISTRY is None:
        from pagescript.engine.actions import build_registry

        _DEFAULT_REGISTRY = build_registry()
        _DEFAULT_REGISTRY.freeze()
        logger.debug("Built default registry with %d actions", len(_DEFAULT_REGISTRY))
    return _DEFAULT_REGISTRY
