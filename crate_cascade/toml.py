"""Cargo.toml reading utilities.

Manifests are parsed with tomlkit and unwrapped into plain Python values;
crate-cascade never writes manifests back, so formatting doesn't need to be
preserved.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import tomlkit

from .errors import ManifestError
from .models import DeclaredVersion, ExplicitVersion, InheritedVersion

# Fields crates.io refuses to publish without. `license-file` may stand in
# for `license`.
REQUIRED_METADATA = ("description", "license")


def load_manifest(path: Path) -> dict[str, Any]:
    """Load and parse a Cargo.toml file into plain dicts and lists."""
    return tomlkit.parse(path.read_text()).unwrap()


def is_package_manifest(doc: dict[str, Any]) -> bool:
    """True if the manifest has a [package] table (not a virtual manifest)."""
    return isinstance(doc.get("package"), dict)


def get_package_name(doc: dict[str, Any], fallback: str) -> str:
    """Extract [package].name, or fallback if it is not specified.

    Unlike Python distributions, crate names are not normalized: `my_crate`
    and `my-crate` are compared as written.
    """
    return doc.get("package", {}).get("name", fallback)


def get_declared_version(doc: dict[str, Any]) -> DeclaredVersion | None:
    """Read [package].version.

    Only the package table is consulted, so `version = "…"` requirements in
    dependency tables can never be mistaken for the package's own version.

    Returns:
        ExplicitVersion, InheritedVersion for `version.workspace = true`, or
        None if the package declares no version at all.

    Raises:
        ManifestError: If the field is neither a string nor the marker.
    """
    version = doc.get("package", {}).get("version")
    if version is None:
        return None
    if isinstance(version, str):
        return ExplicitVersion(version=version)
    if isinstance(version, dict) and version.get("workspace") is True:
        return InheritedVersion()
    name = get_package_name(doc, "<unnamed>")
    raise ManifestError(f"package `{name}` has a version that is not a string")


def get_workspace_version(doc: dict[str, Any]) -> str | None:
    """Extract the shared version from [workspace.package].version."""
    return doc.get("workspace", {}).get("package", {}).get("version")


def get_workspace_member_globs(doc: dict[str, Any]) -> list[str]:
    """Extract [workspace].members glob patterns (e.g. "crates/*")."""
    return list(doc.get("workspace", {}).get("members", []))


def get_workspace_exclude(doc: dict[str, Any]) -> list[str]:
    """Extract [workspace].exclude paths."""
    return list(doc.get("workspace", {}).get("exclude", []))


def get_workspace_dependencies(doc: dict[str, Any]) -> dict[str, Any]:
    """Extract the [workspace.dependencies] table members can inherit from."""
    return dict(doc.get("workspace", {}).get("dependencies", {}))


def is_publish_disabled(doc: dict[str, Any]) -> bool:
    """True for `publish = false` or an empty list of allowed registries."""
    publish = doc.get("package", {}).get("publish", True)
    return publish is False or publish == []


def missing_registry_fields(doc: dict[str, Any], root_doc: dict[str, Any]) -> list[str]:
    """List the registry-required fields a package lacks.

    Fields marked `field.workspace = true` are looked up in the root's
    [workspace.package] table.

    Args:
        doc: The package manifest.
        root_doc: The workspace root manifest (may be the same document).
    """
    package = doc.get("package", {})
    inheritable = root_doc.get("workspace", {}).get("package", {})

    def has(field: str) -> bool:
        value = package.get(field)
        if isinstance(value, dict) and value.get("workspace") is True:
            return bool(inheritable.get(field))
        return bool(value)

    missing: list[str] = []
    for field in REQUIRED_METADATA:
        if field == "license" and has("license-file"):
            continue
        if not has(field):
            missing.append(field)
    return missing
