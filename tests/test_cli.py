"""Unit tests for pagescript.cli — init, validate, actions, run and install."""

from __future__ import annotations

import json
import sys
from pathlib import Path

import pytest
from rich.console import Console
from typer.testing import CliRunner

from pagescript import __version__
from pagescript.cli import actions_cmd
from pagescript.cli import run as run_module
from pagescript.cli import validate as validate_module
from pagescript.cli.app import app
from pagescript.cli.init_cmd import _SAMPLE_CONFIG, _SAMPLE_INSTRUCTIONS
from pagescript.cli.install import build_install_command
from pagescript.cli.validate import validate_lines
from pagescript.config import PageScriptConfig
from pagescript.engine.parser import InstructionParser
from pagescript.engine.runner import ExecutionResult

runner = CliRunner()


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """An initialized project rooted at tmp_path."""
    result = runner.invoke(app, ["init", "--dir", str(tmp_path)])
    assert result.exit_code == 0, result.output
    return tmp_path


# ---------------------------------------------------------------------------
# 1. Global options
# ---------------------------------------------------------------------------

class TestGlobalOptions:
    """--version prints and exits cleanly."""

    def test_version(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output


# ---------------------------------------------------------------------------
# 2. init
# ---------------------------------------------------------------------------

class TestInit:
    """pagescript init writes a loadable config and a clean sample."""

    def test_creates_project_files(self, project: Path):
        assert (project / ".pagescript" / "config.yaml").is_file()
        assert (project / "instructions.txt").read_text(encoding="utf-8") == _SAMPLE_INSTRUCTIONS

    def test_sample_config_loads(self, project: Path):
        cfg = PageScriptConfig.from_file(project / ".pagescript" / "config.yaml")
        assert cfg.browser == "chromium"
        assert cfg.instructions_file == project / "instructions.txt"
        assert cfg.secrets == {}

    def test_sample_instructions_parse_cleanly(self):
        assert validate_lines(_SAMPLE_INSTRUCTIONS.splitlines(), InstructionParser()) == []

    def test_gitignore_entries(self, project: Path):
        lines = (project / ".gitignore").read_text(encoding="utf-8").splitlines()
        assert ".env" in lines
        assert "artifacts/" in lines

    def test_gitignore_entries_not_duplicated(self, project: Path):
        runner.invoke(app, ["init", "--dir", str(project), "--force"])
        lines = (project / ".gitignore").read_text(encoding="utf-8").splitlines()
        assert lines.count(".env") == 1

    def test_existing_project_needs_force(self, project: Path):
        result = runner.invoke(app, ["init", "--dir", str(project)])
        assert result.exit_code == 2

    def test_force_overwrites_config(self, project: Path):
        config_path = project / ".pagescript" / "config.yaml"
        config_path.write_text("browser: webkit\n", encoding="utf-8")
        result = runner.invoke(app, ["init", "--dir", str(project), "--force"])
        assert result.exit_code == 0
        assert config_path.read_text(encoding="utf-8") == _SAMPLE_CONFIG


# ---------------------------------------------------------------------------
# 3. validate
# ---------------------------------------------------------------------------

class TestValidate:
    """pagescript validate parses without a browser."""

    def test_validate_lines_reports_line_numbers(self):
        lines = ["go to example.com", "", "teleport home", "type onlyone"]
        failures = validate_lines(lines, InstructionParser())
        assert [number for number, _, _ in failures] == [3, 4]
        assert failures[0][2].startswith("Unknown action")

    def test_default_file_is_clean(self, project: Path):
        result = runner.invoke(app, ["validate", "--dir", str(project)])
        assert result.exit_code == 0

    def test_bad_file_exits_one(self, project: Path):
        bad = project / "bad.txt"
        bad.write_text("go to example.com\nteleport home\n", encoding="utf-8")
        result = runner.invoke(app, ["validate", str(bad), "--dir", str(project)])
        assert result.exit_code == 1

    def test_missing_file_exits_two(self, project: Path):
        result = runner.invoke(app, ["validate", str(project / "nope.txt"), "--dir", str(project)])
        assert result.exit_code == 2

    def test_bracketed_text_is_printed_literally(self, project: Path, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setattr(validate_module, "console", Console(stderr=True, width=200))
        bad = project / "bad.txt"
        bad.write_text("teleport [/b] home\n", encoding="utf-8")
        result = runner.invoke(app, ["validate", str(bad), "--dir", str(project)])
        assert result.exit_code == 1
        assert isinstance(result.exception, SystemExit)
        assert "teleport [/b] home" in result.output

    def test_custom_comment_marker(self, project: Path):
        (project / ".pagescript" / "config.yaml").write_text('comment_marker: "//"\n', encoding="utf-8")
        flow = project / "flow.txt"
        flow.write_text("// a note\nwait 1\n", encoding="utf-8")
        result = runner.invoke(app, ["validate", str(flow), "--dir", str(project)])
        assert result.exit_code == 0


# ---------------------------------------------------------------------------
# 4. actions
# ---------------------------------------------------------------------------

class TestActions:
    """pagescript actions lists the vocabulary."""

    def test_lists_goto(self):
        result = runner.invoke(app, ["actions"])
        assert result.exit_code == 0
        assert "goto" in result.output

    def test_bracketed_usage_is_shown(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setattr(actions_cmd, "console", Console(width=200))
        result = runner.invoke(app, ["actions"])
        assert "screenshot [fullPage | <path>]" in result.output


# ---------------------------------------------------------------------------
# 5. run (browser replaced)
# ---------------------------------------------------------------------------

def _fake_execute(outcomes: list[bool]):
    async def fake(config, lines):
        return [
            ExecutionResult(line, ok, result="ok" if ok else None, error="" if ok else "boom", action="wait")
            for line, ok in zip(lines, outcomes)
        ]

    return fake


class TestRun:
    """pagescript run maps outcomes onto exit codes."""

    def test_all_pass_exits_zero(self, project: Path, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setattr(run_module, "_execute", _fake_execute([True] * 20))
        result = runner.invoke(app, ["run", "--dir", str(project)])
        assert result.exit_code == 0, result.output

    def test_any_failure_exits_one(self, project: Path, monkeypatch: pytest.MonkeyPatch):
        flow = project / "flow.txt"
        flow.write_text("wait 1\nwait 2\n", encoding="utf-8")
        monkeypatch.setattr(run_module, "_execute", _fake_execute([True, False]))
        result = runner.invoke(app, ["run", str(flow), "--dir", str(project)])
        assert result.exit_code == 1

    def test_json_output_and_files(self, project: Path, monkeypatch: pytest.MonkeyPatch):
        flow = project / "flow.txt"
        flow.write_text("wait 1\n", encoding="utf-8")
        monkeypatch.setattr(run_module, "_execute", _fake_execute([True]))
        report_path = project / "out" / "report.md"
        results_path = project / "out" / "results.json"

        result = runner.invoke(
            app,
            ["run", str(flow), "--dir", str(project), "--json", "--report", str(report_path), "--results", str(results_path)],
        )

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["passed"] is True
        assert data["results"][0]["instruction"] == "wait 1"
        assert json.loads(results_path.read_text(encoding="utf-8")) == data
        assert "**Verdict:** PASS" in report_path.read_text(encoding="utf-8")

    def test_cli_options_override_config(self, project: Path, monkeypatch: pytest.MonkeyPatch):
        seen = {}

        async def capture(config, lines):
            seen["config"] = config
            return []

        monkeypatch.setattr(run_module, "_execute", capture)
        result = runner.invoke(
            app, ["run", "--dir", str(project), "--headed", "--viewport", "800x600", "--browser", "Firefox"]
        )
        assert result.exit_code == 0
        assert seen["config"].headless is False
        assert seen["config"].viewport == (800, 600)
        assert seen["config"].browser == "firefox"

    @pytest.mark.parametrize(
        "args",
        [["--viewport", "wide"], ["--browser", "netscape"], ["missing.txt"]],
    )
    def test_usage_errors_exit_two(self, project: Path, args: list[str]):
        result = runner.invoke(app, ["run", "--dir", str(project), *args])
        assert result.exit_code == 2

    def test_bad_config_exits_two(self, project: Path):
        (project / ".pagescript" / "config.yaml").write_text("browser: netscape\n", encoding="utf-8")
        result = runner.invoke(app, ["run", "--dir", str(project)])
        assert result.exit_code == 2


class TestRunOutput:
    """Instruction text and errors are printed literally, never as rich markup."""

    def test_bracketed_selectors_survive(self, project: Path, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setattr(run_module, "console", Console(stderr=True, width=200))
        flow = project / "flow.txt"
        flow.write_text("click [data-testid=\"buy\"]\nevaluate 'a[/b]'.length\n", encoding="utf-8")

        async def fake(config, lines):
            return [
                ExecutionResult(lines[0], True, result={"selector": '[data-testid="buy"]'}, action="click"),
                ExecutionResult(lines[1], False, error="SyntaxError: unexpected [/b]", action="evaluate"),
            ]

        monkeypatch.setattr(run_module, "_execute", fake)
        results_path = project / "results.json"
        result = runner.invoke(app, ["run", str(flow), "--dir", str(project), "--results", str(results_path)])

        assert result.exit_code == 1
        assert isinstance(result.exception, SystemExit)
        assert 'click [data-testid="buy"]' in result.output
        assert "evaluate 'a[/b]'.length" in result.output
        assert "SyntaxError: unexpected [/b]" in result.output
        assert json.loads(results_path.read_text(encoding="utf-8"))["passed"] is False


class TestProjectDir:
    """resolve_project_dir accepts either the root or .pagescript itself."""

    def test_explicit_root(self, tmp_path: Path):
        assert run_module.resolve_project_dir(tmp_path) == tmp_path.resolve() / ".pagescript"

    def test_explicit_project_dir(self, tmp_path: Path):
        target = tmp_path / ".pagescript"
        assert run_module.resolve_project_dir(target) == target.resolve()

    def test_search_upward(self, project: Path, monkeypatch: pytest.MonkeyPatch):
        nested = project / "a" / "b"
        nested.mkdir(parents=True)
        monkeypatch.chdir(nested)
        assert run_module.resolve_project_dir() == project / ".pagescript"

    def test_defaults_without_config(self, tmp_path: Path):
        cfg = run_module.load_config(tmp_path / ".pagescript")
        assert cfg.instructions_file == tmp_path / "instructions.txt"


# ---------------------------------------------------------------------------
# 6. install
# ---------------------------------------------------------------------------

class TestInstall:
    """pagescript install shells out to playwright."""

    def test_build_install_command(self):
        assert build_install_command(["chromium", "firefox"]) == [
            sys.executable, "-m", "playwright", "install", "chromium", "firefox",
        ]

    def test_with_deps_precedes_browsers(self):
        assert build_install_command(["webkit"], with_deps=True)[-2:] == ["--with-deps", "webkit"]

    def test_unknown_browser_exits_two(self):
        result = runner.invoke(app, ["install", "--browsers", "netscape"])
        assert result.exit_code == 2
