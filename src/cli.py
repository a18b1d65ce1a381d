"""FSH command-line entry point.

Commands:

new     -- Scaffold a new solution from the built-in templates.
diff    -- Compare two ``Directory.Packages.props`` files.
upgrade -- Check for (or apply) package updates from the latest release.

Usage::

    python -m src.cli new Acme.Shop --database SqlServer --docker
    python -m src.cli diff old/Directory.Packages.props new/Directory.Packages.props
    python -m src.cli upgrade --check --path ./Acme.Shop
    python -m src.cli upgrade --apply --skip-breaking --path ./Acme.Shop
"""

from __future__ import annotations

import argparse
import asyncio
import sys
import time
from pathlib import Path

from pydantic import ValidationError
from rich.markup import escape

from src.config import Config
from src.scaffolder import (
    Architecture,
    DatabaseProvider,
    ProjectOptions,
    ProjectType,
    ScaffoldError,
    TemplateEngine,
)
from src.upgrade import (
    ManifestParseError,
    ProjectManifestError,
    ReleaseInfo,
    UpgradePlan,
    apply_plan,
    build_upgrade_plan,
    diff,
    parse_manifest,
    read_project_manifest,
    update_project_manifest,
)
from src.upgrade.releases import ReleaseClient, ReleaseFetchError
from src.utils import (
    console,
    format_duration,
    print_diff_table,
    print_error,
    print_findings,
    print_success,
    print_summary_table,
    print_warning,
    write_generated_files,
)

PACKAGES_PROPS = "Directory.Packages.props"
PROJECT_MANIFEST = Path(".fsh") / "manifest.json"


# ---------------------------------------------------------------------------
# new
# ---------------------------------------------------------------------------


def cmd_new(args: argparse.Namespace, config: Config) -> int:
    options = ProjectOptions(
        name=args.name,
        output_path=Path(args.output) / args.name,
        project_type=ProjectType(args.type),
        architecture=Architecture(args.architecture),
        database=DatabaseProvider(args.database),
        include_aspire=args.aspire,
        include_docker=args.docker,
        include_sample_module=args.sample_module,
    )

    start = time.monotonic()
    result = TemplateEngine(config.scaffold).run(options)
    print_findings(result.findings)

    if args.dry_run:
        for generated in result.files:
            console.print(f"  [dim]{escape(generated.path)}[/dim]")
        print_success(f"{len(result.files)} files would be generated (dry run)")
        return 0

    written = asyncio.run(
        write_generated_files(result.files, options.output_path, overwrite=args.force)
    )
    print_summary_table(
        {
            "Project": options.name,
            "Type": options.project_type.value,
            "Architecture": options.architecture.value,
            "Database": options.database.value,
            "Files": str(len(written)),
            "Location": str(options.output_path.resolve()),
            "Duration": format_duration(time.monotonic() - start),
        },
        title="Project created",
    )
    print_success(f"Created {options.name}")
    return 0


# ---------------------------------------------------------------------------
# diff
# ---------------------------------------------------------------------------


def cmd_diff(args: argparse.Namespace, config: Config) -> int:
    current = parse_manifest(Path(args.current).read_text(encoding="utf-8"), strict=args.strict)
    latest = parse_manifest(Path(args.latest).read_text(encoding="utf-8"), strict=args.strict)
    result = diff(current, latest)
    if not result.has_changes:
        print_success("No package changes")
        return 0
    print_diff_table(result)
    if result.breaking:
        print_warning(f"{len(result.breaking)} breaking update(s)")
    return 0


# ---------------------------------------------------------------------------
# upgrade
# ---------------------------------------------------------------------------


async def _fetch_release(config: Config, tag: str | None) -> tuple[ReleaseInfo, str]:
    client = ReleaseClient(config.release)
    release = ReleaseInfo(tag=tag) if tag else await client.latest_release()
    manifest = await client.fetch_manifest(release.tag)
    return release, manifest


def _print_plan(plan: UpgradePlan) -> None:
    print_summary_table(
        {
            "Current version": plan.current_version,
            "Latest version": plan.latest_version + (" (pre-release)" if plan.prerelease else ""),
            "Added": str(len(plan.diff.added)),
            "Removed": str(len(plan.diff.removed)),
            "Safe updates": str(len(plan.diff.safe)),
            "Breaking updates": str(len(plan.diff.breaking)),
        },
        title="Upgrade",
    )
    if plan.diff.has_changes:
        print_diff_table(plan.diff)


def cmd_upgrade(args: argparse.Namespace, config: Config) -> int:
    root = Path(args.path)
    manifest_file = root / PROJECT_MANIFEST
    props_file = root / PACKAGES_PROPS
    if not manifest_file.exists():
        print_error(f"Not an FSH project: {manifest_file} not found")
        return 1

    manifest_text = manifest_file.read_text(encoding="utf-8")
    current_version = read_project_manifest(manifest_text)
    props_text = props_file.read_text(encoding="utf-8")

    release, latest_props = asyncio.run(_fetch_release(config, args.tag))
    plan = build_upgrade_plan(
        current_version,
        release,
        parse_manifest(props_text),
        parse_manifest(latest_props),
        skip_breaking=args.skip_breaking,
    )

    if not plan.update_available and not plan.diff.has_changes:
        print_success(f"Already up to date ({plan.current_version})")
        return 0
    _print_plan(plan)

    if args.check:
        if plan.diff.breaking:
            console.print("Run [green]upgrade --apply --skip-breaking[/green] for safe updates only.")
        return 0

    for update in plan.skipped:
        print_warning(f"Skipping breaking update {update.package} {update.from_version} -> {update.to_version}")
    new_props = apply_plan(props_text, plan)
    if args.dry_run:
        console.print(new_props, markup=False, highlight=False)
        print_success("Dry run, nothing written")
        return 0

    props_file.write_text(new_props, encoding="utf-8")
    if not plan.skipped:
        manifest_file.write_text(
            update_project_manifest(manifest_text, plan.latest_version), encoding="utf-8"
        )
    print_success(
        f"Applied {len(plan.applicable)} update(s) and {len(plan.diff.added)} addition(s)"
    )
    return 0


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="fsh",
        description="FSH -- .NET starter-kit scaffolder and upgrade assistant",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  python -m src.cli new Acme.Shop --architecture Microservices --aspire\n"
            "  python -m src.cli upgrade --check --path ./Acme.Shop\n"
        ),
    )
    parser.add_argument("--config", default=None, help="Path to a saved JSON configuration")
    commands = parser.add_subparsers(dest="command", required=True)

    new = commands.add_parser("new", help="Create a new solution")
    new.add_argument("name", help="Solution name, also the root namespace")
    new.add_argument("--output", "-o", default=".", help="Parent directory (default: .)")
    new.add_argument("--type", default=ProjectType.API.value, choices=[t.value for t in ProjectType])
    new.add_argument(
        "--architecture",
        default=Architecture.MONOLITH.value,
        choices=[a.value for a in Architecture],
    )
    new.add_argument(
        "--database",
        default=DatabaseProvider.POSTGRESQL.value,
        choices=[d.value for d in DatabaseProvider],
    )
    new.add_argument("--aspire", action="store_true", help="Add an Aspire AppHost")
    new.add_argument("--docker", action="store_true", help="Add Dockerfile and docker-compose.yml")
    new.add_argument("--sample-module", action="store_true", help="Add the Catalog sample module")
    new.add_argument("--force", action="store_true", help="Overwrite existing files")
    new.add_argument("--dry-run", action="store_true", help="List files without writing them")
    new.set_defaults(handler=cmd_new)

    compare = commands.add_parser("diff", help="Compare two package manifests")
    compare.add_argument("current", help="Current Directory.Packages.props")
    compare.add_argument("latest", help="Newer Directory.Packages.props")
    compare.add_argument("--strict", action="store_true", help="Fail on malformed package lines")
    compare.set_defaults(handler=cmd_diff)

    upgrade = commands.add_parser("upgrade", help="Check for or apply framework updates")
    mode = upgrade.add_mutually_exclusive_group(required=True)
    mode.add_argument("--check", action="store_true", help="Show available updates")
    mode.add_argument("--apply", action="store_true", help="Apply updates")
    upgrade.add_argument("--skip-breaking", action="store_true", help="Only apply non-breaking updates")
    upgrade.add_argument("--dry-run", action="store_true", help="With --apply, print the result instead of writing")
    upgrade.add_argument("--path", "-p", default=".", help="Project root (default: .)")
    upgrade.add_argument("--tag", default=None, help="Upgrade to a specific release tag")
    upgrade.set_defaults(handler=cmd_upgrade)

    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entry point for ``python -m src.cli``."""
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.command == "upgrade" and args.dry_run and not args.apply:
        parser.error("--dry-run requires --apply")
    try:
        config = Config.load(Path(args.config)) if args.config else Config.from_env()
        return args.handler(args, config)
    except ValidationError as exc:
        print_error(f"Invalid options: {exc.errors()[0]['msg']}")
    except (ScaffoldError, ManifestParseError, ProjectManifestError, ReleaseFetchError) as exc:
        print_error(f"Error: {exc}")
    except (FileExistsError, FileNotFoundError, ValueError) as exc:
        print_error(f"Error: {exc}")
    return 1


if __name__ == "__main__":
    sys.exit(main())
