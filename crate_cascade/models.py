"""Data models for crate-cascade.

These Pydantic models represent the core data structures used throughout
release planning. Everything is rebuilt from manifests, tags and changelogs
on each run; nothing here is persisted.
"""

from __future__ import annotations

from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

WORKSPACE_RELEASE = "workspace"


class ExplicitVersion(BaseModel):
    """A version written out in the package's own manifest."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["explicit"] = "explicit"
    version: str


class InheritedVersion(BaseModel):
    """The `version.workspace = true` marker: use the workspace root's version."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["workspace"] = "workspace"


DeclaredVersion = Annotated[
    Union[ExplicitVersion, InheritedVersion], Field(discriminator="kind")
]


class ManifestRecord(BaseModel):
    """A member manifest as read from disk, before version resolution.

    Attributes:
        name: Package name from [package].name.
        path: Relative path from workspace root to the package directory.
        declared_version: Explicit version or the inheritance marker.
        deps: Names of workspace members this package depends on. External
              crates are not tracked since they don't affect publish order.
        has_registry_metadata: Whether the registry would accept the package
              (description, license, publishing not disabled).
    """

    name: str
    path: str
    declared_version: DeclaredVersion
    deps: list[str] = Field(default_factory=list)
    has_registry_metadata: bool = True


class WorkspaceManifest(BaseModel):
    """The workspace root: an optional shared version and its members."""

    version: str | None = None
    members: list[ManifestRecord] = Field(default_factory=list)


class Package(BaseModel):
    """A workspace package with its effective version resolved."""

    model_config = ConfigDict(frozen=True)

    name: str
    path: str
    version: str
    deps: list[str] = Field(default_factory=list)
    publishable: bool = True

    def __str__(self) -> str:
        return f"{self.name}@{self.version}"


class PublishGap(BaseModel):
    """A package that has not been tagged at its current version yet."""

    model_config = ConfigDict(frozen=True)

    name: str
    version: str

    def __str__(self) -> str:
        return f"{self.name}@{self.version}"


class GlobalTag(BaseModel):
    """A `v<semver>` tag, marking every package released at that version."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["global"] = "global"
    raw: str
    version: str


class ScopedTag(BaseModel):
    """A `<package>-v<semver>` tag, marking one package released."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["scoped"] = "scoped"
    raw: str
    package: str
    version: str


class UnrecognizedTag(BaseModel):
    """Any tag this tool did not create. Ignored."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["unrecognized"] = "unrecognized"
    raw: str


ReleaseTag = Union[GlobalTag, ScopedTag]
ParsedTag = Union[GlobalTag, ScopedTag, UnrecognizedTag]


class ChangelogDocument(BaseModel):
    """Raw text of one changelog file.

    Attributes:
        path: Where the document was read from, for error messages.
        text: Markdown content.
        package: Owning package for a package-scoped changelog, or None for
                 the workspace-scoped one that covers every member.
    """

    path: str
    text: str
    package: str | None = None


class Changelogs(BaseModel):
    """All changelog documents of a workspace."""

    workspace: ChangelogDocument | None = None
    packages: dict[str, ChangelogDocument] = Field(default_factory=dict)


class ReleaseDescriptor(BaseModel):
    """What to tag and announce for one package, or the whole workspace.

    Attributes:
        scope: "global" for a combined `vX.Y.Z` release, "scoped" otherwise.
        package: Package name, or "workspace" for a combined release.
        version: Released version.
        tag: Git tag to create.
        notes: Release notes extracted from the changelog (may be empty).
        packages: Packages covered by this release.
        has_changelog: Whether a changelog document backs the notes.
    """

    scope: Literal["global", "scoped"]
    package: str
    version: str
    tag: str
    notes: str = ""
    packages: list[str] = Field(default_factory=list)
    has_changelog: bool = False


class ReleasePlan(BaseModel):
    """The ordered publish plan handed to the executor."""

    order: list[PublishGap] = Field(default_factory=list)
    releases: list[ReleaseDescriptor] = Field(default_factory=list)

    @property
    def tags(self) -> list[str]:
        return [release.tag for release in self.releases]

    def to_json(self) -> str:
        return self.model_dump_json(indent=2)


class RunOptions(BaseModel):
    """Settings for one `crate-cascade run` invocation."""

    token: str | None = None
    check_only: bool = False
    skip_docs: bool = False
    sudo: bool = False
    release_branch: str = "main"
    cargo_args: list[str] = Field(default_factory=list)
    dry_run: bool = False
