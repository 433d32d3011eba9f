"""Effective version resolution for workspace members."""

from __future__ import annotations

from .errors import ManifestError
from .models import ExplicitVersion, ManifestRecord, Package, WorkspaceManifest
from .versions import is_valid_version


def resolve_version(record: ManifestRecord, workspace_version: str | None) -> str:
    """Return the concrete version a member will be published at.

    An explicit version always wins over the workspace root's version; the
    inheritance marker defers to the root, which must declare one.

    Raises:
        ManifestError: If the version cannot be resolved or is not semver.
    """
    if isinstance(record.declared_version, ExplicitVersion):
        version = record.declared_version.version
        source = "version"
    elif workspace_version is None:
        raise ManifestError(
            f"package `{record.name}` inherits its version from the workspace, "
            "but the workspace does not declare one"
        )
    else:
        version = workspace_version
        source = "workspace version"

    if not is_valid_version(version):
        raise ManifestError(
            f"package `{record.name}` has invalid {source} `{version}` "
            "(expected MAJOR.MINOR.PATCH)"
        )
    return version


def resolve_workspace(workspace: WorkspaceManifest) -> dict[str, Package]:
    """Resolve every member of the workspace into a Package.

    Returns:
        Map of package name → Package, sorted by name.

    Raises:
        ManifestError: On duplicate package names or unresolvable versions.
    """
    packages: dict[str, Package] = {}
    for record in sorted(workspace.members, key=lambda r: r.name):
        if record.name in packages:
            raise ManifestError(
                f"package `{record.name}` is declared twice "
                f"({packages[record.name].path} and {record.path})"
            )
        packages[record.name] = Package(
            name=record.name,
            path=record.path,
            version=resolve_version(record, workspace.version),
            deps=list(dict.fromkeys(record.deps)),
            publishable=record.has_registry_metadata,
        )
    return packages
