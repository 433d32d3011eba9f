"""Shared test fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

from crate_cascade.models import ExplicitVersion, InheritedVersion, ManifestRecord

METADATA = 'description = "A crate"\nlicense = "MIT"\n'


def write_crate(
    root: Path,
    rel: str,
    name: str,
    version: str | None = '"1.0.0"',
    body: str = "",
    metadata: str = METADATA,
) -> Path:
    """Write a member Cargo.toml. version is raw TOML (None omits the field)."""
    crate_dir = root / rel
    crate_dir.mkdir(parents=True, exist_ok=True)
    lines = ["[package]", f'name = "{name}"']
    if version is not None:
        lines.append(f"version = {version}")
    content = "\n".join(lines) + "\n" + metadata + body
    (crate_dir / "Cargo.toml").write_text(content)
    return crate_dir


def record(
    name: str,
    version: str | None = "1.0.0",
    deps: list[str] | None = None,
    publishable: bool = True,
) -> ManifestRecord:
    """Build a ManifestRecord; version None means inherited from the workspace."""
    return ManifestRecord(
        name=name,
        path=f"crates/{name}",
        declared_version=InheritedVersion()
        if version is None
        else ExplicitVersion(version=version),
        deps=deps or [],
        has_registry_metadata=publishable,
    )


@pytest.fixture
def cargo_workspace(tmp_path: Path) -> Path:
    """Create a virtual workspace with three crates.

    `app` depends on `core` (renamed) and `macros`; `internal-tools` has
    `publish = false`; `macros` inherits the workspace version.
    """
    (tmp_path / "Cargo.toml").write_text(
        """\
[workspace]
members = ["crates/*"]
exclude = ["crates/scratch"]

[workspace.package]
version = "0.3.0"
license = "MIT"

[workspace.dependencies]
macros = { path = "crates/macros", version = "0.3.0" }
"""
    )
    write_crate(
        tmp_path,
        "crates/core",
        "app-core",
        body='\n[dependencies]\nserde = { version = "1.2", features = ["derive"] }\n',
    )
    write_crate(
        tmp_path,
        "crates/macros",
        "macros",
        version="{ workspace = true }",
        metadata='description = "Macros"\nlicense.workspace = true\n',
    )
    write_crate(
        tmp_path,
        "crates/app",
        "app",
        version='"0.3.0"',
        body=(
            "\n[dependencies]\n"
            'core = { package = "app-core", path = "../core", version = "1.0.0" }\n'
            "macros.workspace = true\n"
            "\n[dev-dependencies]\n"
            'internal-tools = { path = "../tools" }\n'
        ),
    )
    write_crate(
        tmp_path,
        "crates/tools",
        "internal-tools",
        body="publish = false\n",
    )
    write_crate(tmp_path, "crates/scratch", "scratch")
    return tmp_path
