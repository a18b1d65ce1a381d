"""Tests for upgrade planning (src.upgrade.plan).

Covers:
- ReleaseInfo.version
- build_upgrade_plan with and without skip_breaking
- apply_plan rewriting versions and inserting added packages
- read_project_manifest / update_project_manifest
"""

from __future__ import annotations

import json

import pytest

from src.upgrade import parse_manifest
from src.upgrade.plan import (
    ProjectManifestError,
    ReleaseInfo,
    UpgradePlan,
    apply_plan,
    build_upgrade_plan,
    read_project_manifest,
    update_project_manifest,
)
from src.upgrade.versions import VersionDiff

pytestmark = pytest.mark.unit


@pytest.fixture
def release() -> ReleaseInfo:
    return ReleaseInfo(tag="v1.1.0", notes="Bug fixes")


def make_plan(current: str, latest: str, release: ReleaseInfo, skip_breaking: bool = False) -> UpgradePlan:
    return build_upgrade_plan(
        "1.0.0", release, parse_manifest(current), parse_manifest(latest), skip_breaking=skip_breaking
    )


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------


class TestReleaseInfo:
    def test_version_strips_prefix(self):
        assert ReleaseInfo(tag="v10.0.1").version == "10.0.1"
        assert ReleaseInfo(tag="10.0.1").version == "10.0.1"

    def test_defaults(self):
        info = ReleaseInfo(tag="v1.0.0")
        assert info.prerelease is False
        assert info.notes == ""


class TestBuildUpgradePlan:
    def test_plan_contents(self, release: ReleaseInfo, current_props: str, latest_props: str):
        plan = make_plan(current_props, latest_props, release)
        assert plan.current_version == "1.0.0"
        assert plan.latest_version == "1.1.0"
        assert plan.update_available
        assert plan.notes == "Bug fixes"
        assert [c.package for c in plan.diff.added] == ["C"]
        assert [u.package for u in plan.applicable] == ["A"]
        assert plan.skipped == []

    def test_no_update_when_current(self):
        plan = build_upgrade_plan("1.1.0", ReleaseInfo(tag="v1.1.0"), {}, {})
        assert not plan.update_available
        assert not plan.diff.has_changes

    def test_prerelease_flag(self):
        plan = build_upgrade_plan("1.0.0", ReleaseInfo(tag="v2.0.0-rc.1", prerelease=True), {}, {})
        assert plan.prerelease
        assert plan.update_available

    def test_skip_breaking(self, release: ReleaseInfo):
        current = {"A": "1.0.0", "B": "1.0.0"}
        latest = {"A": "1.2.0", "B": "2.0.0"}
        plan = build_upgrade_plan("1.0.0", release, current, latest, skip_breaking=True)
        assert [u.package for u in plan.applicable] == ["A"]
        assert [u.package for u in plan.skipped] == ["B"]

        plan = build_upgrade_plan("1.0.0", release, current, latest)
        assert [u.package for u in plan.applicable] == ["A", "B"]
        assert plan.skipped == []


# ---------------------------------------------------------------------------
# apply_plan
# ---------------------------------------------------------------------------


class TestApplyPlan:
    def test_updates_and_additions(self, release: ReleaseInfo, current_props: str, latest_props: str):
        plan = make_plan(current_props, latest_props, release)
        result = apply_plan(current_props, plan)
        assert '<PackageVersion Include="A" Version="1.1.0" />' in result
        # Removal is left to the user.
        assert '<PackageVersion Include="B" Version="2.0.0" />' in result
        assert '    <PackageVersion Include="C" Version="1.0.0" />\n  </ItemGroup>' in result
        assert parse_manifest(result) == {"A": "1.1.0", "B": "2.0.0", "C": "1.0.0"}

    def test_skipped_updates_untouched(self, release: ReleaseInfo, current_props: str):
        latest = {"A": "2.0.0", "B": "2.1.0"}
        plan = build_upgrade_plan("1.0.0", release, parse_manifest(current_props), latest, skip_breaking=True)
        result = apply_plan(current_props, plan)
        assert parse_manifest(result) == {"A": "1.0.0", "B": "2.1.0"}

    def test_no_changes_is_identity(self, release: ReleaseInfo, current_props: str):
        plan = make_plan(current_props, current_props, release)
        assert apply_plan(current_props, plan) == current_props

    def test_preserves_other_attributes_and_quotes(self, release: ReleaseInfo):
        text = "<ItemGroup>\n  <PackageVersion Include='A' Version='1.0.0' Condition=\"x\" />\n</ItemGroup>\n"
        plan = build_upgrade_plan("1.0.0", release, {"A": "1.0.0"}, {"A": "1.0.5"})
        assert apply_plan(text, plan) == (
            "<ItemGroup>\n  <PackageVersion Include='A' Version='1.0.5' Condition=\"x\" />\n</ItemGroup>\n"
        )

    def test_crlf_preserved(self, release: ReleaseInfo):
        text = '<ItemGroup>\r\n  <PackageVersion Include="A" Version="1.0.0" />\r\n</ItemGroup>\r\n'
        plan = build_upgrade_plan("1.0.0", release, {"A": "1.0.0"}, {"A": "1.0.0", "B": "3.0.0"})
        result = apply_plan(text, plan)
        assert result == (
            '<ItemGroup>\r\n'
            '  <PackageVersion Include="A" Version="1.0.0" />\r\n'
            '  <PackageVersion Include="B" Version="3.0.0" />\r\n'
            '</ItemGroup>\r\n'
        )

    def test_comments_untouched(self, release: ReleaseInfo):
        text = (
            "<ItemGroup>\n"
            "  <!--\n"
            '  <PackageVersion Include="A" Version="0.9.0" />\n'
            "  -->\n"
            '  <PackageVersion Include="A" Version="1.0.0" />\n'
            "</ItemGroup>\n"
            "<!-- </ItemGroup> -->\n"
        )
        plan = build_upgrade_plan("1.0.0", release, {"A": "1.0.0"}, {"A": "1.2.0", "B": "1.0.0"})
        assert apply_plan(text, plan) == (
            "<ItemGroup>\n"
            "  <!--\n"
            '  <PackageVersion Include="A" Version="0.9.0" />\n'
            "  -->\n"
            '  <PackageVersion Include="A" Version="1.2.0" />\n'
            '  <PackageVersion Include="B" Version="1.0.0" />\n'
            "</ItemGroup>\n"
            "<!-- </ItemGroup> -->\n"
        )

    def test_several_declarations_on_one_line(self, release: ReleaseInfo):
        text = '<ItemGroup><PackageVersion Include="A" Version="1.0.0" /><PackageVersion Include="B" Version="2.0.0" /></ItemGroup>\n'
        plan = build_upgrade_plan("1.0.0", release, {"A": "1.0.0", "B": "2.0.0"}, {"A": "1.0.1", "B": "2.0.1"})
        assert apply_plan(text, plan) == (
            '<ItemGroup><PackageVersion Include="A" Version="1.0.1" /><PackageVersion Include="B" Version="2.0.1" /></ItemGroup>\n'
        )

    def test_empty_item_group(self, release: ReleaseInfo):
        text = "<Project>\n  <ItemGroup>\n  </ItemGroup>\n</Project>\n"
        plan = build_upgrade_plan("1.0.0", release, {}, {"A": "1.0.0"})
        assert '    <PackageVersion Include="A" Version="1.0.0" />\n  </ItemGroup>' in apply_plan(text, plan)

    def test_missing_item_group(self, release: ReleaseInfo):
        plan = build_upgrade_plan("1.0.0", release, {}, {"A": "1.0.0"})
        with pytest.raises(ValueError, match="ItemGroup"):
            apply_plan("<Project />\n", plan)

    def test_empty_plan_on_any_text(self):
        plan = UpgradePlan(current_version="1.0.0", latest_version="1.0.0", diff=VersionDiff())
        assert apply_plan("anything\n", plan) == "anything\n"


# ---------------------------------------------------------------------------
# Project manifest
# ---------------------------------------------------------------------------


class TestProjectManifest:
    def test_read(self):
        assert read_project_manifest('{"fshVersion": "10.0.0", "name": "Demo"}') == "10.0.0"

    @pytest.mark.parametrize("text", ["not json", "[]", "{}", '{"fshVersion": ""}', '{"fshVersion": 10}'])
    def test_read_invalid(self, text: str):
        with pytest.raises(ProjectManifestError):
            read_project_manifest(text)

    def test_update_keeps_other_fields(self):
        updated = update_project_manifest('{"fshVersion": "1.0.0", "name": "Demo"}', "1.1.0")
        assert json.loads(updated) == {"fshVersion": "1.1.0", "name": "Demo"}
        assert updated.endswith("}\n")

    def test_update_generated_manifest(self, generated_project):
        manifest = (generated_project / ".fsh" / "manifest.json").read_text(encoding="utf-8")
        updated = update_project_manifest(manifest, "10.1.0")
        assert read_project_manifest(updated) == "10.1.0"
        assert json.loads(updated)["name"] == "Acme.Shop"
