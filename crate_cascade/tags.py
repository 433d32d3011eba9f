"""Classification of git tags into release markers.

Two tag forms are created by this tool:
- `v<semver>`: the whole workspace was released at that version
- `<package>-v<semver>`: a single package was released

Anything else (or a form whose version part is not strict semver) is left
alone, so unrelated tags in the repository never break a release.
"""

from __future__ import annotations

from collections.abc import Iterable

from .errors import AmbiguousTagError
from .models import GlobalTag, ParsedTag, ReleaseTag, ScopedTag, UnrecognizedTag
from .versions import is_valid_version, same_version

GLOBAL_PREFIX = "v"
SCOPED_SEPARATOR = "-v"


def global_tag_name(version: str) -> str:
    return f"{GLOBAL_PREFIX}{version}"


def scoped_tag_name(package: str, version: str) -> str:
    return f"{package}{SCOPED_SEPARATOR}{version}"


def _match_scoped(raw: str, package_names: Iterable[str]) -> ScopedTag | None:
    """Find the longest package name whose `<name>-v` prefix leaves a semver.

    With packages `foo` and `foo-vendor`, `foo-vendor-v1.0.0` belongs to
    `foo-vendor`: the `foo-v` prefix leaves "endor-v1.0.0", which is not a
    version.
    """
    best: ScopedTag | None = None
    for name in package_names:
        prefix = scoped_tag_name(name, "")
        if not raw.startswith(prefix):
            continue
        version = raw[len(prefix) :]
        if not is_valid_version(version):
            continue
        if best is None or len(name) > len(best.package):
            best = ScopedTag(raw=raw, package=name, version=version)
    return best


def parse_tag(raw: str, package_names: Iterable[str]) -> ParsedTag:
    """Classify a raw tag string.

    Args:
        raw: Tag as listed by git.
        package_names: Names of all workspace packages.

    Returns:
        GlobalTag, ScopedTag or UnrecognizedTag. Never raises for tags that
        merely don't look like release tags.

    Raises:
        AmbiguousTagError: If the tag is both a valid global tag and a valid
            tag for one of the packages.
    """
    scoped = _match_scoped(raw, package_names)

    global_version = None
    if raw.startswith(GLOBAL_PREFIX) and is_valid_version(raw[len(GLOBAL_PREFIX) :]):
        global_version = raw[len(GLOBAL_PREFIX) :]

    if scoped is not None and global_version is not None:
        raise AmbiguousTagError(
            raw,
            f"matches both the workspace release v{global_version} "
            f"and the `{scoped.package}` release v{scoped.version}",
        )
    if scoped is not None:
        return scoped
    if global_version is not None:
        return GlobalTag(raw=raw, version=global_version)
    return UnrecognizedTag(raw=raw)


def parse_tags(raw_tags: Iterable[str], package_names: Iterable[str]) -> list[ReleaseTag]:
    """Parse every tag, dropping the ones that aren't release markers.

    Raises:
        AmbiguousTagError: If a tag is ambiguous, or two different tags claim
            the same release (e.g. `foo-v1.0.0+a` and `foo-v1.0.0+b`).
    """
    names = list(package_names)
    seen: dict[tuple[str, str | None], list[ReleaseTag]] = {}
    recognized: list[ReleaseTag] = []

    for raw in raw_tags:
        tag = parse_tag(raw, names)
        if isinstance(tag, UnrecognizedTag):
            continue

        scope = (tag.kind, tag.package if isinstance(tag, ScopedTag) else None)
        for other in seen.get(scope, []):
            if other.raw != tag.raw and same_version(other.version, tag.version):
                raise AmbiguousTagError(
                    tag.raw,
                    f"conflicts with `{other.raw}` for the same release",
                )
        seen.setdefault(scope, []).append(tag)
        recognized.append(tag)

    return recognized
