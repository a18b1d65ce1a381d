"""Tests for the command-line entry point (src.cli).

Network access is never attempted: the upgrade tests patch the release fetch.
"""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest
from rich.console import Console

from src.cli import build_parser, main
from src.scaffolder import GenerationError
from src.upgrade import ReleaseInfo, parse_manifest

pytestmark = pytest.mark.unit


@pytest.fixture
def recorded_console():
    console = Console(record=True, width=160)
    with patch("src.cli.console", console), patch("src.utils.console", console):
        yield console


def _fetch(tag: str, props: str) -> AsyncMock:
    return AsyncMock(return_value=(ReleaseInfo(tag=tag), props))


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------


class TestBuildParser:
    def test_new_defaults(self):
        args = build_parser().parse_args(["new", "Demo"])
        assert args.output == "."
        assert args.type == "Api"
        assert args.architecture == "Monolith"
        assert args.database == "PostgreSQL"
        assert not args.docker

    def test_check_and_apply_exclusive(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["upgrade", "--check", "--apply"])

    def test_unknown_database_rejected(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["new", "Demo", "--database", "Oracle"])


# ---------------------------------------------------------------------------
# new
# ---------------------------------------------------------------------------


class TestNewCommand:
    def test_creates_project(self, tmp_path: Path, recorded_console: Console):
        assert main(["new", "Demo", "-o", str(tmp_path), "--docker"]) == 0
        root = tmp_path / "Demo"
        assert (root / "Demo.slnx").is_file()
        assert (root / "docker-compose.yml").is_file()
        assert json.loads((root / ".fsh" / "manifest.json").read_text(encoding="utf-8"))["name"] == "Demo"
        assert "Project created" in recorded_console.export_text()

    def test_dry_run_writes_nothing(self, tmp_path: Path, recorded_console: Console):
        assert main(["new", "Demo", "-o", str(tmp_path), "--dry-run"]) == 0
        assert not (tmp_path / "Demo").exists()
        assert "Directory.Packages.props" in recorded_console.export_text()

    def test_existing_project_needs_force(self, tmp_path: Path, recorded_console: Console):
        assert main(["new", "Demo", "-o", str(tmp_path)]) == 0
        assert main(["new", "Demo", "-o", str(tmp_path)]) == 1
        assert "Refusing to overwrite" in recorded_console.export_text()
        assert main(["new", "Demo", "-o", str(tmp_path), "--force"]) == 0

    def test_invalid_name(self, tmp_path: Path, recorded_console: Console):
        assert main(["new", "2fast", "-o", str(tmp_path)]) == 1
        assert "Invalid options" in recorded_console.export_text()

    def test_config_file(self, tmp_path: Path, recorded_console: Console):
        config_path = tmp_path / "fsh.json"
        config_path.write_text('{"scaffold": {"framework_version": "10.4.0"}}', encoding="utf-8")
        assert main(["--config", str(config_path), "new", "Demo", "-o", str(tmp_path)]) == 0
        manifest = json.loads((tmp_path / "Demo" / ".fsh" / "manifest.json").read_text(encoding="utf-8"))
        assert manifest["fshVersion"] == "10.4.0"


# ---------------------------------------------------------------------------
# diff
# ---------------------------------------------------------------------------


class TestDiffCommand:
    def test_diff(self, tmp_path: Path, current_props: str, latest_props: str, recorded_console: Console):
        (tmp_path / "a.props").write_text(current_props, encoding="utf-8")
        (tmp_path / "b.props").write_text(latest_props, encoding="utf-8")
        assert main(["diff", str(tmp_path / "a.props"), str(tmp_path / "b.props")]) == 0
        assert "Package changes" in recorded_console.export_text()

    def test_no_changes(self, tmp_path: Path, current_props: str, recorded_console: Console):
        (tmp_path / "a.props").write_text(current_props, encoding="utf-8")
        assert main(["diff", str(tmp_path / "a.props"), str(tmp_path / "a.props")]) == 0
        assert "No package changes" in recorded_console.export_text()

    def test_strict_malformed(self, tmp_path: Path, current_props: str, recorded_console: Console):
        (tmp_path / "a.props").write_text(current_props, encoding="utf-8")
        (tmp_path / "bad.props").write_text('<PackageVersion Include="X" />\n', encoding="utf-8")
        args = ["diff", str(tmp_path / "a.props"), str(tmp_path / "bad.props")]
        assert main(args) == 0
        assert main([*args, "--strict"]) == 1
        assert "Line 1" in recorded_console.export_text()

    def test_missing_file(self, tmp_path: Path, recorded_console: Console):
        assert main(["diff", str(tmp_path / "nope"), str(tmp_path / "nope")]) == 1


# ---------------------------------------------------------------------------
# upgrade
# ---------------------------------------------------------------------------


class TestUpgradeCommand:
    def _props(self, project: Path) -> str:
        return (project / "Directory.Packages.props").read_text(encoding="utf-8")

    def _version(self, project: Path) -> str:
        return json.loads((project / ".fsh" / "manifest.json").read_text(encoding="utf-8"))["fshVersion"]

    def test_not_a_project(self, tmp_path: Path, recorded_console: Console):
        assert main(["upgrade", "--check", "--path", str(tmp_path)]) == 1
        assert "Not an FSH project" in recorded_console.export_text()

    def test_check_writes_nothing(self, generated_project: Path, recorded_console: Console):
        original = self._props(generated_project)
        latest = original.replace('"10.0.0"', '"10.1.0"')
        with patch("src.cli._fetch_release", _fetch("v10.1.0", latest)):
            assert main(["upgrade", "--check", "--path", str(generated_project)]) == 0
        assert self._props(generated_project) == original
        assert self._version(generated_project) == "10.0.0"
        assert "Upgrade" in recorded_console.export_text()

    def test_up_to_date(self, generated_project: Path, recorded_console: Console):
        props = self._props(generated_project)
        with patch("src.cli._fetch_release", _fetch("v10.0.0", props)):
            assert main(["upgrade", "--check", "--path", str(generated_project)]) == 0
        assert "Already up to date" in recorded_console.export_text()

    def test_apply(self, generated_project: Path, recorded_console: Console):
        latest = self._props(generated_project).replace('"10.0.0"', '"10.1.0"')
        with patch("src.cli._fetch_release", _fetch("v10.1.0", latest)):
            assert main(["upgrade", "--apply", "--path", str(generated_project)]) == 0
        assert parse_manifest(self._props(generated_project)) == parse_manifest(latest)
        assert self._version(generated_project) == "10.1.0"

    def test_apply_dry_run(self, generated_project: Path, recorded_console: Console):
        original = self._props(generated_project)
        latest = original.replace('"10.0.0"', '"10.1.0"')
        with patch("src.cli._fetch_release", _fetch("v10.1.0", latest)):
            assert main(["upgrade", "--apply", "--dry-run", "--path", str(generated_project)]) == 0
        assert self._props(generated_project) == original
        assert "Dry run" in recorded_console.export_text()

    def test_apply_skip_breaking(self, generated_project: Path, recorded_console: Console):
        original = self._props(generated_project)
        latest = original.replace('"10.0.0"', '"11.0.0"')
        with patch("src.cli._fetch_release", _fetch("v11.0.0", latest)):
            assert main(["upgrade", "--apply", "--skip-breaking", "--path", str(generated_project)]) == 0
        assert self._props(generated_project) == original
        assert self._version(generated_project) == "10.0.0"
        assert "Skipping breaking update" in recorded_console.export_text()

    def test_release_error(self, generated_project: Path, recorded_console: Console):
        from src.upgrade.releases import ReleaseFetchError

        failing = AsyncMock(side_effect=ReleaseFetchError("https://api.github.com", "HTTP 503: down", 503))
        with patch("src.cli._fetch_release", failing):
            assert main(["upgrade", "--check", "--path", str(generated_project)]) == 1
        assert "HTTP 503" in recorded_console.export_text()


class TestUpgradeModes:
    def test_mode_required(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(["upgrade", "--path", "."])
        assert exc_info.value.code == 2
        assert "--check" in capsys.readouterr().err

    def test_dry_run_requires_apply(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(["upgrade", "--check", "--dry-run"])
        assert exc_info.value.code == 2
        assert "--dry-run requires --apply" in capsys.readouterr().err


# ---------------------------------------------------------------------------
# Error reporting
# ---------------------------------------------------------------------------


class TestErrorReporting:
    def test_generation_stage_shown(self, tmp_path: Path, recorded_console: Console):
        failure = GenerationError("gitignore", ".gitignore", "parse", "boom")
        with patch("src.cli.TemplateEngine") as engine_cls:
            engine_cls.return_value.run.side_effect = failure
            assert main(["new", "Demo", "-o", str(tmp_path)]) == 1
        assert "Error: [parse] .gitignore: boom" in recorded_console.export_text()

    def test_markup_like_message_printed_literally(self, tmp_path: Path, recorded_console: Console):
        failure = GenerationError("readme", "README.md", "render", "unexpected [/bold] tag")
        with patch("src.cli.TemplateEngine") as engine_cls:
            engine_cls.return_value.run.side_effect = failure
            assert main(["new", "Demo", "-o", str(tmp_path)]) == 1
        assert "[render] README.md: unexpected [/bold] tag" in recorded_console.export_text()
