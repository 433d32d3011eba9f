"""Release pipeline: plan → check → publish → tag → release.

This module orchestrates the crate-cascade release process:
1. Discover all packages in the workspace
2. Work out which crates are not tagged at their current version
3. Build, document and test the workspace with cargo
4. Publish those crates in dependency order
5. Create git tags for them and push the tags
6. Create GitHub releases with notes taken from the changelogs

Publishing is strictly sequential and stops at the first failure. There is
no retry and no rollback: tags are only created once every crate in the plan
has been published.
"""

from __future__ import annotations

import glob
from pathlib import Path

from .deps import get_dependency_names
from .models import (
    ChangelogDocument,
    Changelogs,
    ExplicitVersion,
    ManifestRecord,
    ReleasePlan,
    RunOptions,
    WorkspaceManifest,
)
from .planner import build_release_plan
from .shell import fatal, gh, git, run, section, step
from .toml import (
    get_declared_version,
    get_package_name,
    get_workspace_dependencies,
    get_workspace_exclude,
    get_workspace_member_globs,
    get_workspace_version,
    is_package_manifest,
    is_publish_disabled,
    load_manifest,
    missing_registry_fields,
)

CHANGELOG_FILE = "CHANGELOG.md"


def _member_dirs(root: Path, root_doc: dict) -> list[Path]:
    """Expand [workspace].members globs into package directories.

    A root manifest with a [package] table is itself a member.
    """
    member_dirs: list[Path] = [root] if is_package_manifest(root_doc) else []
    excluded = {(root / p).resolve() for p in get_workspace_exclude(root_doc)}
    seen = {root.resolve()}

    for pattern in get_workspace_member_globs(root_doc):
        for match in sorted(glob.glob(str(root / pattern))):
            p = Path(match)
            if not (p / "Cargo.toml").exists():
                continue
            if p.resolve() in excluded or p.resolve() in seen:
                continue
            seen.add(p.resolve())
            member_dirs.append(p)

    return member_dirs


def discover_workspace(root: Path) -> WorkspaceManifest:
    """Scan the workspace and read every member manifest.

    Reads [workspace].members from the root Cargo.toml to find package
    directories, then extracts name, declared version, registry metadata and
    internal deps from each package's Cargo.toml.

    Returns:
        WorkspaceManifest with unresolved (declared) versions.
    """
    step("Discovering workspace packages")

    manifest_path = root / "Cargo.toml"
    if not manifest_path.exists():
        fatal(f"`Cargo.toml` does not exist in {root}")

    root_doc = load_manifest(manifest_path)
    member_dirs = _member_dirs(root, root_doc)
    if not member_dirs:
        fatal("No packages found matching workspace members")

    workspace_deps = get_workspace_dependencies(root_doc)

    # First pass: collect basic info from each package
    records: list[ManifestRecord] = []
    raw_deps: dict[str, list[str]] = {}

    for d in member_dirs:
        doc = root_doc if d == root else load_manifest(d / "Cargo.toml")
        name = get_package_name(doc, d.name)
        declared = get_declared_version(doc)
        missing = missing_registry_fields(doc, root_doc)

        # Cargo treats a crate without a version as 0.0.0 and unpublishable
        publishable = declared is not None and not missing
        if is_publish_disabled(doc):
            publishable = False
            print(f"  {name}: publish disabled, skipping")
        elif declared is None:
            print(f"  {name}: no version, skipping")
        elif missing:
            print(f"  {name}: missing {', '.join(missing)}, skipping")

        records.append(
            ManifestRecord(
                name=name,
                path=str(d.relative_to(root)),
                declared_version=declared or ExplicitVersion(version="0.0.0"),
                has_registry_metadata=publishable,
            )
        )
        raw_deps[name] = get_dependency_names(doc, workspace_deps)

    # Second pass: identify which deps are internal (within workspace)
    workspace_names = {record.name for record in records}
    for record in records:
        record.deps = [
            dep
            for dep in raw_deps[record.name]
            if dep in workspace_names and dep != record.name
        ]

    # Print discovered packages for user feedback
    for record in records:
        declared = record.declared_version
        version = (
            declared.version if isinstance(declared, ExplicitVersion) else "(workspace)"
        )
        deps = f" → [{', '.join(record.deps)}]" if record.deps else ""
        print(f"  {record.name} {version} ({record.path}){deps}")

    return WorkspaceManifest(version=get_workspace_version(root_doc), members=records)


def list_tags() -> list[str]:
    """List every tag in the repository."""
    step("Listing existing tags")
    tags = git("tag", "--list").splitlines()
    print(f"  existing git tags: {tags}")
    return tags


def load_changelogs(root: Path, workspace: WorkspaceManifest) -> Changelogs:
    """Read the workspace changelog and any per-package changelogs.

    CHANGELOG.md at the root covers every package without its own
    CHANGELOG.md in its package directory.
    """
    workspace_doc = None
    root_changelog = root / CHANGELOG_FILE
    if root_changelog.exists():
        workspace_doc = ChangelogDocument(
            path=CHANGELOG_FILE, text=root_changelog.read_text()
        )

    packages: dict[str, ChangelogDocument] = {}
    for member in workspace.members:
        if member.path == ".":
            continue
        changelog = root / member.path / CHANGELOG_FILE
        if changelog.exists():
            packages[member.name] = ChangelogDocument(
                path=f"{member.path}/{CHANGELOG_FILE}",
                text=changelog.read_text(),
                package=member.name,
            )

    return Changelogs(workspace=workspace_doc, packages=packages)


def plan_release(root: Path) -> ReleasePlan:
    """Read the workspace, tags and changelogs, and compute the release plan."""
    workspace = discover_workspace(root)
    tags = list_tags()
    changelogs = load_changelogs(root, workspace)

    step("Planning release")
    plan = build_release_plan(workspace, tags, changelogs)
    if plan.order:
        count = len(plan.order)
        noun = "package needs" if count == 1 else "packages need"
        print(f"  {count} {noun} publishing: [{', '.join(map(str, plan.order))}]")
    else:
        print("  no packages need publishing")
    return plan


def _cargo(*args: str, sudo: bool = False) -> None:
    cmd = ("sudo", "cargo", *args) if sudo else ("cargo", *args)
    result = run(*cmd, check=False)
    if result.returncode != 0:
        fatal(f"`{' '.join(cmd)}` failed with exit code {result.returncode}")


def run_checks(options: RunOptions) -> None:
    """Build, document and test the workspace before anything is published.

    With `sudo`, only the test run is elevated; building stays unprivileged.
    """
    if options.check_only:
        with section("CHECK"):
            _cargo("check", "--workspace", *options.cargo_args)
    else:
        with section("BUILD"):
            _cargo("test", "--workspace", "--no-run", *options.cargo_args)

    if not options.skip_docs:
        with section("BUILD_DOCS"):
            _cargo("doc", "--workspace")

    if not options.check_only:
        with section("TEST"):
            _cargo("test", "--workspace", *options.cargo_args, sudo=options.sudo)


def publish_packages(plan: ReleasePlan, token: str) -> None:
    """Publish crates one at a time in plan order, stopping at the first failure.

    `--no-verify` is needed because verification would build each crate
    against the registry, where its freshly published dependencies may not
    be visible yet.
    """
    step(f"Publishing {len(plan.order)} packages")

    for gap in plan.order:
        print(f"  publishing {gap}")
        result = run(
            "cargo",
            "publish",
            "--no-verify",
            "-p",
            gap.name,
            check=False,
            env={"CARGO_REGISTRY_TOKEN": token},
        )
        if result.returncode != 0:
            fatal(f"Failed to publish {gap}")


def push_tags(plan: ReleasePlan) -> None:
    """Create the planned git tags and push them."""
    step("Tagging release")

    for tag in plan.tags:
        git("tag", tag)
        print(f"  {tag}")
    git("push", "--tags")


def create_releases(plan: ReleasePlan) -> None:
    """Create a GitHub release for every tag backed by a changelog."""
    step("Creating GitHub releases")

    for release in plan.releases:
        if not release.has_changelog:
            print(f"  {release.tag}: no changelog, skipping")
            continue
        gh(
            "release",
            "create",
            release.tag,
            "--title",
            release.tag,
            "--notes-file",
            "-",
            input=release.notes,
        )
        print(f"  {release.tag}")


def run_release(options: RunOptions) -> ReleasePlan | None:
    """Execute the full release pipeline.

    The plan is computed first, on every branch, so a configuration problem
    fails the run before anything is built. Checks always
    run. Publishing only happens on the release branch and with a registry
    token; a dry run prints the plan instead.

    Returns:
        The executed (or, for a dry run, computed) plan, or None when
        publishing was skipped.
    """
    with section("INIT"):
        plan = plan_release(Path.cwd())

    run_checks(options)

    if not options.dry_run:
        branch = git("branch", "--show-current")
        if branch != options.release_branch:
            print(f"on branch `{branch}`, not `{options.release_branch}`: skipping publish")
            return None
        if not options.token:
            print("no `CRATES_IO_TOKEN` set, skipping autopublish step")
            return None

    with section("PUBLISH"):
        if not plan.order:
            print("no packages need publishing, done")
            return plan
        if options.dry_run:
            print(plan.to_json())
            return plan

        publish_packages(plan, options.token)
        push_tags(plan)
        create_releases(plan)

    print(f"\n{'=' * 60}\nDone!\n{'=' * 60}")
    return plan
