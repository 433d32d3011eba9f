"""Dependency handling utilities.

Extracts the names of crates a manifest depends on, so that dependencies
between workspace members can be ordered.
"""

from __future__ import annotations

from typing import Any

# Dependency kinds that must already be on the registry when a crate is
# published. Path-only dev-dependencies are stripped by `cargo publish`, so
# they never constrain publish order.
DEPENDENCY_TABLES = ("dependencies", "build-dependencies")


def dep_package_name(
    key: str, spec: Any, workspace_deps: dict[str, Any] | None = None
) -> str:
    """Resolve the real crate name behind a dependency entry.

    Handles renamed dependencies (`alias = { package = "real" }`) and
    entries inherited from [workspace.dependencies].

    Examples:
        dep_package_name("serde", "1.0") → "serde"
        dep_package_name("alias", {"package": "real", "path": "../real"}) → "real"
    """
    if not isinstance(spec, dict):
        return key
    if spec.get("workspace") is True and workspace_deps:
        inherited = workspace_deps.get(key)
        if isinstance(inherited, dict):
            return inherited.get("package", key)
        return key
    return spec.get("package", key)


def _dependency_tables(doc: dict[str, Any]) -> list[dict[str, Any]]:
    tables = [doc.get(name, {}) for name in DEPENDENCY_TABLES]
    # Platform-specific tables, e.g. [target.'cfg(unix)'.dependencies]
    for target in doc.get("target", {}).values():
        if isinstance(target, dict):
            tables.extend(target.get(name, {}) for name in DEPENDENCY_TABLES)
    return [t for t in tables if isinstance(t, dict)]


def get_dependency_names(
    doc: dict[str, Any], workspace_deps: dict[str, Any] | None = None
) -> list[str]:
    """Collect the crate names of all normal and build dependencies.

    Gathers dependencies from:
    - [dependencies] and [build-dependencies]
    - [target.*.dependencies] and [target.*.build-dependencies]

    Returns:
        Crate names in declaration order, without duplicates.
    """
    names: list[str] = []
    for table in _dependency_tables(doc):
        for key, spec in table.items():
            names.append(dep_package_name(key, spec, workspace_deps))
    return list(dict.fromkeys(names))
