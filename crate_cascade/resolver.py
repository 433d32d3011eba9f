"""Decide which packages still need publishing.

"Published" here means "tagged": a tag is only created once the registry
accepted the crate, so the tag snapshot is the record of past releases.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence

from .models import Package, PublishGap, ReleaseTag, ScopedTag
from .versions import same_version


def is_published(package: Package, tags: Sequence[ReleaseTag]) -> bool:
    """Return True if a tag marks package as released at its current version.

    Either a workspace tag `v<version>` or a package tag
    `<name>-v<version>` counts.
    """
    for tag in tags:
        if isinstance(tag, ScopedTag) and tag.package != package.name:
            continue
        if same_version(tag.version, package.version):
            return True
    return False


def find_publish_gaps(
    packages: Mapping[str, Package], tags: Sequence[ReleaseTag]
) -> list[PublishGap]:
    """Collect publishable packages that are not tagged at their version.

    Args:
        packages: Map of package name → Package.
        tags: Parsed release tags.

    Returns:
        PublishGaps sorted by package name.
    """
    return [
        PublishGap(name=name, version=package.version)
        for name, package in sorted(packages.items())
        if package.publishable and not is_published(package, tags)
    ]
