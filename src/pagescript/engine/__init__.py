"""pagescript engine -- instruction interpretation and target resolution.

Provides:
- InstructionParser: text line to ParsedAction / ParseFailure
- ActionRegistry: the closed instruction vocabulary (``default_registry()``)
- TargetResolver: first present-and-visible selector from a candidate list
- AuthEngine: login / signup heuristics for unfamiliar sites
- ActivePage: which tab the next instruction acts on
- InstructionRunner: ordered execution, one ExecutionResult per line
- BrowserSession: Playwright lifecycle
- ReportGenerator: Markdown report generation from run results
"""

from pagescript.engine.selectors import generate_candidates
from pagescript.engine.browser_session import BrowserSession, DriverError
from pagescript.engine.resolver import ResolvedTarget, TargetNotFoundError, TargetResolver, resolve_target
from pagescript.engine.registry import ActionDescriptor, ActionRegistry, default_registry
from pagescript.engine.parser import InstructionParser, ParsedAction, ParseFailure, parse_instruction
from pagescript.engine.auth import AuthEngine, AuthenticationError, AuthType, Credentials
from pagescript.engine.active_page import ActivePage
from pagescript.engine.runner import ExecutionResult, InstructionRunner
from pagescript.engine.report_generator import ReportGenerator, RunReport

__all__ = [
    "ActionDescriptor",
    "ActionRegistry",
    "ActivePage",
    "AuthEngine",
    "AuthType",
    "AuthenticationError",
    "BrowserSession",
    "Credentials",
    "DriverError",
    "ExecutionResult",
    "InstructionParser",
    "InstructionRunner",
    "ParseFailure",
    "ParsedAction",
    "ReportGenerator",
    "ResolvedTarget",
    "RunReport",
    "TargetNotFoundError",
    "TargetResolver",
    "default_registry",
    "generate_candidates",
    "parse_instruction",
    "resolve_target",
]
