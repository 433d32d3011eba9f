"""Changelog validation and release-note extraction.

Changelogs are Markdown files with one heading per released version:

    ## v1.2.0

    - Added a thing.

A heading is any `#`-marked line whose first word is a semantic version,
optionally prefixed with `v` or wrapped in brackets (`## [1.2.0] - 2024-05-01`).
The notes for a version are everything up to the next heading of the same or
a higher level.
"""

from __future__ import annotations

import re
from collections.abc import Sequence

from .errors import ChangelogIncompleteError
from .models import ChangelogDocument, Changelogs, PublishGap
from .versions import is_valid_version, same_version

_HEADING_RE = re.compile(r"^(#+)\s+(\S.*)$")
_FENCE_MARKERS = ("```", "~~~")


def parse_heading(line: str) -> tuple[int, str] | None:
    """Return (level, title) if line is a Markdown heading."""
    match = _HEADING_RE.match(line.strip())
    if match is None:
        return None
    return len(match.group(1)), match.group(2).strip()


def heading_version(title: str) -> str | None:
    """Extract the version a heading title announces, if any.

    Examples:
        "v1.2.0" → "1.2.0"
        "[1.2.0] - 2024-05-01" → "1.2.0"
        "Unreleased" → None
    """
    token = title.split()[0].strip("[]")
    if token.startswith("v"):
        token = token[1:]
    return token if is_valid_version(token) else None


def _body(lines: list[str]) -> str:
    while lines and not lines[0].strip():
        lines = lines[1:]
    while lines and not lines[-1].strip():
        lines = lines[:-1]
    return "\n".join(lines)


def find_section(text: str, version: str) -> str | None:
    """Extract the notes for version from a changelog.

    Returns:
        The body under the matching heading (possibly ""), without its
        leading and trailing blank lines, or None if the changelog has no
        heading for version. Indentation and inner blank lines are kept.
    """
    lines = text.splitlines()
    in_fence = False
    start: int | None = None
    level = 0

    for i, line in enumerate(lines):
        if line.strip().startswith(_FENCE_MARKERS):
            in_fence = not in_fence
            continue
        if in_fence:
            continue
        heading = parse_heading(line)
        if heading is None:
            continue
        if start is not None:
            if heading[0] <= level:
                return _body(lines[start:i])
            continue
        found = heading_version(heading[1])
        if found is not None and same_version(found, version):
            start, level = i + 1, heading[0]

    if start is None:
        return None
    return _body(lines[start:])


def applicable_changelog(name: str, changelogs: Changelogs) -> ChangelogDocument | None:
    """Pick the changelog covering a package: its own, else the workspace one."""
    return changelogs.packages.get(name, changelogs.workspace)


def validate_changelogs(gaps: Sequence[PublishGap], changelogs: Changelogs) -> None:
    """Check that every version about to be published has a changelog entry.

    Packages without any applicable changelog are not checked. When every
    package covered by the workspace changelog ships the same version, one
    heading for that version covers them all; otherwise each distinct version
    needs its own heading.

    Raises:
        ChangelogIncompleteError: Listing every missing entry at once.
    """
    missing: list[tuple[str, str, str]] = []

    shared = [gap for gap in gaps if gap.name not in changelogs.packages]
    workspace_doc = changelogs.workspace
    if workspace_doc is not None and shared:
        versions = sorted({gap.version for gap in shared})
        present = {v for v in versions if find_section(workspace_doc.text, v) is not None}
        for gap in shared:
            if gap.version not in present:
                missing.append((gap.name, gap.version, workspace_doc.path))

    for gap in gaps:
        doc = changelogs.packages.get(gap.name)
        if doc is not None and find_section(doc.text, gap.version) is None:
            missing.append((gap.name, gap.version, doc.path))

    if missing:
        raise ChangelogIncompleteError(sorted(missing))


def extract_notes(gap: PublishGap, changelogs: Changelogs) -> str:
    """Return the release notes for a package version ("" without a changelog)."""
    doc = applicable_changelog(gap.name, changelogs)
    if doc is None:
        return ""
    return find_section(doc.text, gap.version) or ""
