"""Tests for in-place manifest mutation."""

import pytest

from envpromote.manifest.mutator import MalformedManifestError, apply_mutation, read_dependencies
from envpromote.manifest.types import ManifestMutation

REQUIREMENTS = """\
# staging environment
dependencies:
- name: app-a
  repository: http://chartmuseum
  version: 1.0.0
- name: app-b
  version: 2.0.0
"""

FLAT = """\
# staging environment
app-a: 1.0.0
app-b: 2.0.0  # pinned
"""


# ============================================================================
# Requirements shape
# ============================================================================


def test_upgrade_requirements_changes_only_the_version_line() -> None:
    result = apply_mutation(REQUIREMENTS, ManifestMutation.upgrade("app-a", "1.1.0"))

    assert result == REQUIREMENTS.replace("version: 1.0.0", "version: 1.1.0")


def test_upgrade_quotes_versions_that_would_parse_as_numbers() -> None:
    result = apply_mutation(REQUIREMENTS, ManifestMutation.upgrade("app-b", "2.10"))

    assert '  version: "2.10"\n' in result
    assert read_dependencies(result)["app-b"] == "2.10"


def test_upgrade_to_current_version_returns_content_unchanged() -> None:
    result = apply_mutation(REQUIREMENTS, ManifestMutation.upgrade("app-b", "2.0.0"))

    assert result == REQUIREMENTS


def test_upgrade_fills_empty_version() -> None:
    content = "dependencies:\n- name: app-a\n  version:\n"

    result = apply_mutation(content, ManifestMutation.upgrade("app-a", "1.0.0"))

    assert result == "dependencies:\n- name: app-a\n  version: 1.0.0\n"


def test_remove_requirements_entry_deletes_its_lines() -> None:
    result = apply_mutation(REQUIREMENTS, ManifestMutation.remove("app-a"))

    assert result == "# staging environment\ndependencies:\n- name: app-b\n  version: 2.0.0\n"


def test_remove_absent_entry_is_byte_identical() -> None:
    result = apply_mutation(REQUIREMENTS, ManifestMutation.remove("app-z"))

    assert result == REQUIREMENTS


def test_add_requirements_entry_appends_after_last_item() -> None:
    mutation = ManifestMutation.add("app-c", "3.0.0", repository="http://charts", alias=None)

    result = apply_mutation(REQUIREMENTS, mutation)

    assert result == REQUIREMENTS + (
        "- name: app-c\n  version: 3.0.0\n  repository: http://charts\n"
    )


def test_add_to_empty_document_creates_dependencies_list() -> None:
    mutation = ManifestMutation.add("app-a", "1.0.0", repository=None, alias=None)

    result = apply_mutation("", mutation)

    assert read_dependencies(result) == {"app-a": "1.0.0"}


def test_flow_style_requirements_upgrade_in_place() -> None:
    content = "dependencies: [{name: app-a, version: 1.0.0}]\n"

    result = apply_mutation(content, ManifestMutation.upgrade("app-a", "1.1.0"))

    assert result == "dependencies: [{name: app-a, version: 1.1.0}]\n"


def test_flow_style_requirements_remove_last_entry() -> None:
    content = "dependencies: [{name: app-a, version: 1.0.0}]\n"

    result = apply_mutation(content, ManifestMutation.remove("app-a"))

    assert result == "dependencies: []\n"
    assert read_dependencies(result) == {}


def test_flow_style_requirements_add_and_remove_leave_siblings_alone() -> None:
    content = "dependencies: [{name: app-a, version: 1.10}, {name: app-b, version: 2.0.0}]\n"

    added = apply_mutation(
        content, ManifestMutation.add("app-c", "3.0.0", repository=None, alias=None)
    )
    removed = apply_mutation(content, ManifestMutation.remove("app-a"))

    assert added == (
        "dependencies: [{name: app-a, version: 1.10}, {name: app-b, version: 2.0.0},"
        " {name: app-c, version: 3.0.0}]\n"
    )
    assert read_dependencies(added)["app-a"] == "1.10"
    assert removed == "dependencies: [{name: app-b, version: 2.0.0}]\n"


def test_flow_style_entry_without_version_gets_one() -> None:
    mutation = ManifestMutation.upgrade("app-a", "1.1.0")

    result = apply_mutation("dependencies: [{name: app-a}]\n", mutation)

    assert result == "dependencies: [{name: app-a, version: 1.1.0}]\n"


def test_add_to_empty_flow_list() -> None:
    mutation = ManifestMutation.add("app-a", "1.0.0", repository=None, alias=None)

    assert apply_mutation("dependencies: []\n", mutation) == (
        "dependencies: [{name: app-a, version: 1.0.0}]\n"
    )


def test_add_to_null_dependencies_keeps_the_rest_of_the_document() -> None:
    content = "# staging\ndependencies: null  # none yet\nversion: 010\n"
    mutation = ManifestMutation.add("app-a", "1.0.0", repository=None, alias=None)

    result = apply_mutation(content, mutation)

    assert result == (
        "# staging\ndependencies:  # none yet\n- name: app-a\n  version: 1.0.0\nversion: 010\n"
    )


def test_add_to_empty_dependencies_key() -> None:
    mutation = ManifestMutation.add("app-a", "1.0.0", repository=None, alias=None)

    result = apply_mutation("dependencies:\n", mutation)

    assert result == "dependencies:\n- name: app-a\n  version: 1.0.0\n"


def test_numeric_names_match_as_text() -> None:
    content = "dependencies: [{name: 123, version: 1.0.0}, {name: app-b, version: 1.10}]\n"

    result = apply_mutation(content, ManifestMutation.remove("123"))

    assert result == "dependencies: [{name: app-b, version: 1.10}]\n"


def test_remove_item_written_after_bare_dash() -> None:
    content = (
        "dependencies:\n-\n  name: app-a\n  version: 1.0.0\n- name: app-b\n  version: 2.0.0\n"
    )

    result = apply_mutation(content, ManifestMutation.remove("app-a"))

    assert result == "dependencies:\n- name: app-b\n  version: 2.0.0\n"
    assert read_dependencies(result) == {"app-b": "2.0.0"}


def test_add_matches_existing_item_indentation() -> None:
    content = "dependencies:\n-   name: app-a\n    version: 1.0.0\n"
    mutation = ManifestMutation.add("app-b", "2.0.0", repository=None, alias=None)

    result = apply_mutation(content, mutation)

    assert result == content + "-   name: app-b\n    version: 2.0.0\n"

# ============================================================================
# Flat shape
# ============================================================================


def test_upgrade_flat_keeps_trailing_comment() -> None:
    result = apply_mutation(FLAT, ManifestMutation.upgrade("app-b", "2.1.0"))

    assert result == FLAT.replace("app-b: 2.0.0", "app-b: 2.1.0")
    assert "# pinned" in result


def test_remove_flat_entry() -> None:
    result = apply_mutation(FLAT, ManifestMutation.remove("app-a"))

    assert result == "# staging environment\napp-b: 2.0.0  # pinned\n"


def test_add_flat_entry_goes_after_last_line() -> None:
    mutation = ManifestMutation.add("app-c", "3.0.0", repository=None, alias=None)

    result = apply_mutation(FLAT, mutation)

    assert result == FLAT + "app-c: 3.0.0\n"


def test_upgrade_json_manifest() -> None:
    result = apply_mutation('{"app-a": "1.0.0"}', ManifestMutation.upgrade("app-a", "1.1.0"))

    assert result == '{"app-a": "1.1.0"}'


def test_add_and_remove_json_manifest_entries() -> None:
    added = apply_mutation(
        '{"app-a": "1.0.0"}',
        ManifestMutation.add("app-b", "2.0.0", repository=None, alias=None),
    )
    assert added == '{"app-a": "1.0.0", "app-b": "2.0.0"}'

    assert apply_mutation(added, ManifestMutation.remove("app-a")) == '{"app-b": "2.0.0"}'
    assert apply_mutation(added, ManifestMutation.remove("app-b")) == '{"app-a": "1.0.0"}'


def test_add_to_multiline_json_keeps_layout() -> None:
    content = '{\n  "app-a": "1.0.0"\n}\n'

    result = apply_mutation(
        content, ManifestMutation.add("app-b", "2.0.0", repository=None, alias=None)
    )

    assert result == '{\n  "app-a": "1.0.0",\n  "app-b": "2.0.0"\n}\n'


def test_single_quoted_version_keeps_its_quotes() -> None:
    result = apply_mutation("app-a: '1.0'\n", ManifestMutation.upgrade("app-a", "1.1"))

    assert result == "app-a: '1.1'\n"


def test_crlf_line_endings_survive() -> None:
    content = "app-a: 1.0.0\r\napp-b: 2.0.0\r\n"

    result = apply_mutation(content, ManifestMutation.upgrade("app-b", "2.1.0"))

    assert result == "app-a: 1.0.0\r\napp-b: 2.1.0\r\n"


def test_crlf_flat_add_and_remove() -> None:
    content = "app-a: 1.0.0\r\napp-b: 2.0.0\r\n"
    mutation = ManifestMutation.add("app-c", "3.0.0", repository=None, alias=None)

    added = apply_mutation(content, mutation)

    assert added == content + "app-c: 3.0.0\r\n"
    assert apply_mutation(added, ManifestMutation.remove("app-c")) == content
    assert apply_mutation(content, ManifestMutation.remove("app-a")) == "app-b: 2.0.0\r\n"


def test_crlf_requirements_add_and_remove() -> None:
    content = REQUIREMENTS.replace("\n", "\r\n")
    mutation = ManifestMutation.add("app-c", "3.0.0", repository="http://charts", alias=None)

    added = apply_mutation(content, mutation)

    assert added == content + (
        "- name: app-c\r\n  version: 3.0.0\r\n  repository: http://charts\r\n"
    )
    assert apply_mutation(content, ManifestMutation.remove("app-a")) == (
        "# staging environment\r\ndependencies:\r\n- name: app-b\r\n  version: 2.0.0\r\n"
    )


# ============================================================================
# Round trips
# ============================================================================


@pytest.mark.parametrize(
    "content",
    [
        REQUIREMENTS,
        FLAT,
        '{"app-a": "1.0.0"}',
        "dependencies: [{name: app-a, version: 1.10}]\n",
        REQUIREMENTS.replace("\n", "\r\n"),
    ],
)
def test_add_then_remove_restores_original(content: str) -> None:
    added = apply_mutation(
        content, ManifestMutation.add("app-new", "9.9.9", repository=None, alias=None)
    )

    assert apply_mutation(added, ManifestMutation.remove("app-new")) == content


@pytest.mark.parametrize("content", [REQUIREMENTS, FLAT, '{"app-a": "1.0.0"}'])
def test_upgrade_and_back_restores_original(content: str) -> None:
    upgraded = apply_mutation(content, ManifestMutation.upgrade("app-a", "7.0.0"))

    assert upgraded != content
    assert apply_mutation(upgraded, ManifestMutation.upgrade("app-a", "1.0.0")) == content


# ============================================================================
# Malformed input
# ============================================================================


@pytest.mark.parametrize(
    "content",
    [
        "dependencies: [\n",
        "- app-a\n- app-b\n",
        "dependencies: {app-a: 1.0.0}\n",
        "dependencies:\n- version: 1.0.0\n",
        "dependencies:\n- app-a\n",
    ],
)
def test_malformed_manifest_raises(content: str) -> None:
    with pytest.raises(MalformedManifestError):
        apply_mutation(content, ManifestMutation.upgrade("app-a", "1.1.0"))


def test_read_dependencies_both_shapes() -> None:
    assert read_dependencies(REQUIREMENTS) == {"app-a": "1.0.0", "app-b": "2.0.0"}
    assert read_dependencies(FLAT) == {"app-a": "1.0.0", "app-b": "2.0.0"}
    assert read_dependencies('{"app-a": "1.0.0"}') == {"app-a": "1.0.0"}


def test_mutation_validation() -> None:
    with pytest.raises(ValueError):
        ManifestMutation(dependency_name="app-a", operation="upgrade")
    with pytest.raises(ValueError):
        ManifestMutation(dependency_name="", operation="remove")

    assert ManifestMutation.upgrade("app-a", "1.1.0").describe() == "upgrade app-a to 1.1.0"
    assert ManifestMutation.remove("app-a").describe() == "remove app-a"
