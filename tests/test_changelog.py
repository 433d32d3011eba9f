"""Tests for crate_cascade.changelog."""

from __future__ import annotations

import pytest

from crate_cascade.changelog import (
    applicable_changelog,
    extract_notes,
    find_section,
    heading_version,
    parse_heading,
    validate_changelogs,
)
from crate_cascade.errors import ChangelogIncompleteError
from crate_cascade.models import ChangelogDocument, Changelogs, PublishGap

CHANGELOG = """\
# Changelog

## Unreleased

- Work in progress

## v1.1.0

- Added `frobnicate`

### Fixes

- Fixed a crash

```rust
# fn main() {}
## not a heading
```

## v1.0.0

- Initial release
"""


def _gap(name: str, version: str) -> PublishGap:
    return PublishGap(name=name, version=version)


def _workspace(text: str) -> Changelogs:
    return Changelogs(workspace=ChangelogDocument(path="CHANGELOG.md", text=text))


class TestParseHeading:
    def test_heading(self) -> None:
        assert parse_heading("## v1.0.0") == (2, "v1.0.0")

    def test_indented_heading(self) -> None:
        assert parse_heading("   ### Fixes  ") == (3, "Fixes")

    def test_not_a_heading(self) -> None:
        assert parse_heading("- ## item") is None
        assert parse_heading("##") is None


class TestHeadingVersion:
    @pytest.mark.parametrize(
        ("title", "expected"),
        [
            ("v1.0.0", "1.0.0"),
            ("1.0.0", "1.0.0"),
            ("[1.2.0] - 2024-05-01", "1.2.0"),
            ("v2.0.0-rc.1 (yanked)", "2.0.0-rc.1"),
            ("Unreleased", None),
            ("v1.0", None),
            ("blabla 1.0.0", None),
        ],
    )
    def test_heading_version(self, title: str, expected: str | None) -> None:
        assert heading_version(title) == expected


class TestFindSection:
    def test_stops_at_next_same_level_heading(self) -> None:
        assert find_section(CHANGELOG, "1.0.0") == "- Initial release"

    def test_keeps_lower_level_headings_and_code(self) -> None:
        section = find_section(CHANGELOG, "1.1.0")
        assert section is not None
        assert section.startswith("- Added `frobnicate`")
        assert "### Fixes" in section
        assert "# fn main() {}" in section
        assert "## not a heading" in section
        assert "Initial release" not in section

    def test_missing_version(self) -> None:
        assert find_section(CHANGELOG, "0.9.0") is None

    def test_empty_section(self) -> None:
        assert find_section("## v1.0.0\n## v0.9.0\n- old\n", "1.0.0") == ""

    def test_higher_level_heading_ends_section(self) -> None:
        text = "## v1.0.0\n- one\n# Archive\n- old\n"
        assert find_section(text, "1.0.0") == "- one"

    def test_heading_inside_code_fence_ignored(self) -> None:
        text = "```\n## v1.0.0\n```\n"
        assert find_section(text, "1.0.0") is None

    def test_last_section_runs_to_end(self) -> None:
        assert find_section("## 0.1.0\n\nNotes for 0.1.0\n", "0.1.0") == "Notes for 0.1.0"

    def test_keeps_indentation_and_inner_blank_lines(self) -> None:
        text = "## v1.0.0\n\n    let x = 1;\n\n- item  \n\n## v0.9.0\n"
        assert find_section(text, "1.0.0") == "    let x = 1;\n\n- item  "


class TestApplicableChangelog:
    def test_package_document_preferred(self) -> None:
        own = ChangelogDocument(path="a/CHANGELOG.md", text="", package="a")
        changelogs = Changelogs(
            workspace=ChangelogDocument(path="CHANGELOG.md", text=""),
            packages={"a": own},
        )
        assert applicable_changelog("a", changelogs) == own
        assert applicable_changelog("b", changelogs) == changelogs.workspace

    def test_none_without_documents(self) -> None:
        assert applicable_changelog("a", Changelogs()) is None


class TestValidateChangelogs:
    def test_shared_version_single_heading(self) -> None:
        changelogs = _workspace("## v1.0.0\n- both\n")
        validate_changelogs([_gap("a", "1.0.0"), _gap("b", "1.0.0")], changelogs)

    def test_differing_versions_need_each_heading(self) -> None:
        changelogs = _workspace("## v1.0.0\n- both\n")
        with pytest.raises(ChangelogIncompleteError) as exc_info:
            validate_changelogs([_gap("a", "1.0.0"), _gap("b", "1.1.0")], changelogs)
        assert exc_info.value.missing == [("b", "1.1.0", "CHANGELOG.md")]

    def test_differing_versions_with_both_headings(self) -> None:
        changelogs = _workspace("## v1.1.0\n- b\n## v1.0.0\n- a\n")
        validate_changelogs([_gap("a", "1.0.0"), _gap("b", "1.1.0")], changelogs)

    def test_package_document_needs_exact_version(self) -> None:
        changelogs = Changelogs(
            packages={
                "mypkg": ChangelogDocument(
                    path="mypkg/CHANGELOG.md", text="## v0.1.0\n", package="mypkg"
                )
            }
        )
        with pytest.raises(ChangelogIncompleteError) as exc_info:
            validate_changelogs([_gap("mypkg", "0.1.1")], changelogs)
        assert str(exc_info.value) == (
            "changelog at 'mypkg/CHANGELOG.md' does not contain an entry for mypkg@0.1.1"
        )

    def test_reports_every_missing_pair(self) -> None:
        changelogs = Changelogs(
            workspace=ChangelogDocument(path="CHANGELOG.md", text="# Changelog\n"),
            packages={
                "c": ChangelogDocument(path="c/CHANGELOG.md", text="", package="c")
            },
        )
        with pytest.raises(ChangelogIncompleteError) as exc_info:
            validate_changelogs(
                [_gap("a", "1.0.0"), _gap("b", "2.0.0"), _gap("c", "3.0.0")],
                changelogs,
            )
        assert exc_info.value.missing == [
            ("a", "1.0.0", "CHANGELOG.md"),
            ("b", "2.0.0", "CHANGELOG.md"),
            ("c", "3.0.0", "c/CHANGELOG.md"),
        ]

    def test_packages_without_changelog_are_not_checked(self) -> None:
        validate_changelogs([_gap("a", "1.0.0")], Changelogs())

    def test_package_document_overrides_workspace(self) -> None:
        changelogs = Changelogs(
            workspace=ChangelogDocument(path="CHANGELOG.md", text=""),
            packages={
                "a": ChangelogDocument(
                    path="a/CHANGELOG.md", text="## v1.0.0\n", package="a"
                )
            },
        )
        validate_changelogs([_gap("a", "1.0.0")], changelogs)


class TestExtractNotes:
    def test_from_workspace_document(self) -> None:
        notes = extract_notes(_gap("a", "1.0.0"), _workspace(CHANGELOG))
        assert notes == "- Initial release"

    def test_without_changelog(self) -> None:
        assert extract_notes(_gap("a", "1.0.0"), Changelogs()) == ""

    def test_missing_heading_gives_empty(self) -> None:
        assert extract_notes(_gap("a", "9.9.9"), _workspace(CHANGELOG)) == ""
