"""Release planning: resolve → order → validate → plan.

This module turns a snapshot of manifests, tags and changelogs into the
ordered ReleasePlan the pipeline executes. It performs no I/O; each stage
either succeeds or raises, so a plan is never partial.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from .changelog import applicable_changelog, extract_notes, find_section, validate_changelogs
from .graph import publish_order
from .manifest import resolve_workspace
from .models import (
    WORKSPACE_RELEASE,
    Changelogs,
    PublishGap,
    ReleaseDescriptor,
    ReleasePlan,
    ReleaseTag,
    WorkspaceManifest,
)
from .resolver import find_publish_gaps
from .tags import global_tag_name, parse_tags, scoped_tag_name
from .versions import same_version


def shared_version(gaps: Sequence[PublishGap]) -> str | None:
    """Return the version every gap is released at, or None if they differ."""
    versions = {gap.version for gap in gaps}
    return versions.pop() if len(versions) == 1 else None


def version_already_tagged(version: str, tags: Sequence[ReleaseTag]) -> bool:
    """Return True if any release tag, workspace or package, is at version.

    A workspace tag `vX` would then be ambiguous with that earlier release.
    """
    return any(same_version(tag.version, version) for tag in tags)


def uses_single_changelog(gaps: Sequence[PublishGap], changelogs: Changelogs) -> bool:
    """Return True if no package being released keeps its own changelog."""
    return not any(gap.name in changelogs.packages for gap in gaps)


def plan_releases(
    order: Sequence[PublishGap],
    tags: Sequence[ReleaseTag],
    changelogs: Changelogs,
) -> list[ReleaseDescriptor]:
    """Choose tag names and assemble release descriptors.

    When the whole release shares one version that no tag uses yet, and all
    notes come from the workspace changelog, one combined `vX.Y.Z` release is
    created. Otherwise every package gets its own `<name>-vX.Y.Z` release.
    """
    if not order:
        return []

    version = shared_version(order)
    if (
        version is not None
        and not version_already_tagged(version, tags)
        and uses_single_changelog(order, changelogs)
    ):
        doc = changelogs.workspace
        notes = ""
        if doc is not None:
            notes = find_section(doc.text, version) or ""
        return [
            ReleaseDescriptor(
                scope="global",
                package=WORKSPACE_RELEASE,
                version=version,
                tag=global_tag_name(version),
                notes=notes,
                packages=[gap.name for gap in order],
                has_changelog=doc is not None,
            )
        ]

    return [
        ReleaseDescriptor(
            scope="scoped",
            package=gap.name,
            version=gap.version,
            tag=scoped_tag_name(gap.name, gap.version),
            notes=extract_notes(gap, changelogs),
            packages=[gap.name],
            has_changelog=applicable_changelog(gap.name, changelogs) is not None,
        )
        for gap in order
    ]


def build_release_plan(
    workspace: WorkspaceManifest,
    raw_tags: Iterable[str],
    changelogs: Changelogs,
) -> ReleasePlan:
    """Compute the full release plan for a workspace snapshot.

    Args:
        workspace: Root version and member manifests.
        raw_tags: Every existing git tag.
        changelogs: Workspace and per-package changelog documents.

    Returns:
        ReleasePlan with packages in publish order and their releases.
        Empty when everything is already tagged.

    Raises:
        ManifestError, AmbiguousTagError, CycleError, ChangelogIncompleteError
    """
    # Resolve
    packages = resolve_workspace(workspace)
    tags = parse_tags(raw_tags, packages)
    gaps = find_publish_gaps(packages, tags)

    # Order
    order = publish_order(gaps, packages)

    # Validate
    validate_changelogs(order, changelogs)

    # Plan
    return ReleasePlan(order=order, releases=plan_releases(order, tags, changelogs))
