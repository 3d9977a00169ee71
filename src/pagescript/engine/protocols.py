"""Action handler protocols.

These define the contract between the instruction runner and the action
handlers registered in the vocabulary.  A handler receives an
``ActionContext`` built at dispatch time (so it always sees the page that was
active when the instruction started) and the parsed parameter list.
"""

from __future__ import annotations

import dataclasses
from pathlib import Path
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from pagescript.config import PageScriptConfig
from pagescript.credentials import resolve_secret

if TYPE_CHECKING:
    from playwright.async_api import Page

    from pagescript.engine.resolver import TargetResolver


@dataclasses.dataclass
class ActionContext:
    """Everything a handler may touch while executing one instruction."""

    page: Page
    resolver: TargetResolver
    config: PageScriptConfig = dataclasses.field(default_factory=PageScriptConfig)

    @property
    def artifacts_dir(self) -> Path:
        return self.config.artifacts_dir

    @property
    def project_dir(self) -> Path:
        return self.config.project_dir

    def secret(self, value: str) -> str:
        """Resolve an ``env:NAME`` parameter against the environment and this run's config."""
        return resolve_secret(value, self.project_dir, self.config.secrets)


@runtime_checkable
class ActionHandler(Protocol):
    """Performs one action against the page.

    Returns an arbitrary success payload (``None`` allowed) or raises with a
    descriptive message.
    """

    async def __call__(self, ctx: ActionContext, params: list[str]) -> Any: ...
