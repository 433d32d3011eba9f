"""Errors raised while planning a release.

Every error aborts the run before any tag is created or crate published.
They carry the offending identifiers so the CLI can report them verbatim.
"""

from __future__ import annotations


class ReleaseError(Exception):
    """Base class for configuration and data problems found while planning."""


class ManifestError(ReleaseError):
    """A package version or dependency declaration cannot be resolved."""


class CycleError(ReleaseError):
    """The dependency graph among packages to publish is not acyclic.

    Attributes:
        cycle: Package names along the cycle, each depending on the next,
               with the last depending on the first.
    """

    def __init__(self, cycle: list[str]) -> None:
        self.cycle = cycle
        path = " -> ".join([*cycle, cycle[0]]) if cycle else ""
        super().__init__(f"dependency cycle detected: {path}")


class ChangelogIncompleteError(ReleaseError):
    """One or more package versions about to be published lack a changelog entry.

    Attributes:
        missing: Every (package, version, changelog path) without a heading.
    """

    def __init__(self, missing: list[tuple[str, str, str]]) -> None:
        self.missing = missing
        super().__init__(
            "\n".join(
                f"changelog at '{path}' does not contain an entry for {name}@{version}"
                for name, version, path in missing
            )
        )


class AmbiguousTagError(ReleaseError):
    """A tag cannot be attributed to exactly one release.

    Attributes:
        tag: The offending raw tag string.
    """

    def __init__(self, tag: str, reason: str) -> None:
        self.tag = tag
        super().__init__(f"ambiguous tag `{tag}`: {reason}")
