"""Apply a single dependency mutation to an environment manifest.

Manifests are YAML documents in one of two shapes:

- requirements: a root mapping with a `dependencies` list of mappings keyed
  by `name` and carrying a `version` (the Helm requirements.yaml layout)
- flat: a root mapping of `name: version` pairs (JSON such as
  `{"app-a": "1.0.0"}` is valid YAML flow style and falls in this shape)

Edits are made on the original text using the node positions reported by
PyYAML's composer, so every byte outside the touched entry survives the
round trip and the resulting pull request diff only shows the real change.
Added lines follow the newline convention of the document (LF or CRLF).
"""

import json
from dataclasses import dataclass
from typing import Literal

import yaml

from envpromote.manifest.types import ManifestMutation

_NULL_TAG = "tag:yaml.org,2002:null"
_FLOW_INDICATORS = frozenset(",[]{}")


class ManifestError(Exception):
    """Base class for manifest problems."""


class MalformedManifestError(ManifestError):
    """The manifest cannot be parsed or does not have a supported shape."""


@dataclass(frozen=True)
class _Layout:
    shape: Literal["requirements", "flat"]
    root: yaml.MappingNode | None
    # requirements shape only: None when the list is missing or null
    dependencies: yaml.SequenceNode | None


def apply_mutation(content: str, mutation: ManifestMutation) -> str:
    """Return `content` with `mutation` applied.

    Removing an absent dependency, or setting a dependency to the version it
    already has, returns `content` unchanged.

    Raises:
        MalformedManifestError: If `content` is not a supported manifest
    """
    layout = _locate(content)
    if layout.shape == "requirements":
        return _apply_requirements(content, layout, mutation)
    assert layout.root is not None
    return _apply_flat(content, layout.root, mutation)


def read_dependencies(content: str) -> dict[str, str | None]:
    """Return the declared dependencies as a name -> version mapping.

    Versions are returned as written in the document; entries without a
    version map to None.
    """
    layout = _locate(content)
    result: dict[str, str | None] = {}
    if layout.shape == "requirements":
        items = layout.dependencies.value if layout.dependencies is not None else []
        for item in items:
            name = _dependency_name(item)
            version = _find_key(item, "version")
            result[name] = _scalar_text(version[1]) if version is not None else None
        return result

    assert layout.root is not None
    for key, value in layout.root.value:
        result[_scalar_text(key) or ""] = _scalar_text(value)
    return result


# ============================================================================
# Shape detection
# ============================================================================


def _locate(content: str) -> _Layout:
    try:
        root = yaml.compose(content, Loader=yaml.SafeLoader)
    except yaml.YAMLError as e:
        msg = f"Failed to parse manifest: {e}"
        raise MalformedManifestError(msg) from e

    if root is None:
        return _Layout(shape="requirements", root=None, dependencies=None)
    if not isinstance(root, yaml.MappingNode):
        msg = f"Manifest root must be a mapping, found {root.id}"
        raise MalformedManifestError(msg)

    pair = _find_key(root, "dependencies")
    if pair is None:
        return _Layout(shape="flat", root=root, dependencies=None)

    value = pair[1]
    if isinstance(value, yaml.SequenceNode):
        for item in value.value:
            _dependency_name(item)
        return _Layout(shape="requirements", root=root, dependencies=value)
    if isinstance(value, yaml.ScalarNode) and value.tag == _NULL_TAG:
        return _Layout(shape="requirements", root=root, dependencies=None)
    if isinstance(value, yaml.ScalarNode):
        # an application literally named "dependencies" in a flat manifest
        return _Layout(shape="flat", root=root, dependencies=None)

    msg = "Manifest 'dependencies' must be a list"
    raise MalformedManifestError(msg)


def _find_key(mapping: yaml.MappingNode, key: str) -> tuple[yaml.Node, yaml.Node] | None:
    for key_node, value_node in mapping.value:
        if isinstance(key_node, yaml.ScalarNode) and key_node.value == key:
            return key_node, value_node
    return None


def _dependency_name(item: yaml.Node) -> str:
    if not isinstance(item, yaml.MappingNode):
        msg = f"Dependency entries must be mappings (line {item.start_mark.line + 1})"
        raise MalformedManifestError(msg)
    pair = _find_key(item, "name")
    if pair is None or not isinstance(pair[1], yaml.ScalarNode):
        msg = f"Dependency entry without a name (line {item.start_mark.line + 1})"
        raise MalformedManifestError(msg)
    return pair[1].value


def _scalar_text(node: yaml.Node) -> str | None:
    if not isinstance(node, yaml.ScalarNode) or node.tag == _NULL_TAG:
        return None
    return node.value


# ============================================================================
# Requirements shape
# ============================================================================


def _apply_requirements(text: str, layout: _Layout, mutation: ManifestMutation) -> str:
    sequence = layout.dependencies
    items = sequence.value if sequence is not None else []
    index = next(
        (i for i, item in enumerate(items) if _dependency_name(item) == mutation.dependency_name),
        None,
    )

    if mutation.operation == "remove":
        if index is None:
            return text
        assert sequence is not None
        if sequence.flow_style:
            spans = [(i.start_mark.index, _node_end(i)) for i in items]
            return _remove_flow_span(text, spans, index)
        return _remove_block_item(text, items[index])

    version = mutation.target_version
    assert version is not None
    nl = _newline(text)

    if index is not None:
        item = items[index]
        version_pair = _find_key(item, "version")
        if version_pair is not None:
            return _replace_scalar(text, version_pair[1], version, in_flow=bool(item.flow_style))
        if item.flow_style:
            return _insert_flow_entry(text, item, "version", version)
        name_key, name_value = _find_key(item, "name")  # type: ignore[misc]
        pad = " " * name_key.start_mark.column
        line = f"{pad}version: {_render_scalar(version, None, in_flow=False)}{nl}"
        return _insert(text, _line_end(text, _node_end(name_value)), line)

    if sequence is None:
        return _add_dependencies_list(text, layout.root, mutation)
    if sequence.flow_style:
        return _insert_flow_item(text, sequence, _flow_dependency(mutation))

    first = items[0]
    dash_column = sequence.start_mark.column
    item_column = first.start_mark.column
    dash_prefix = " " * dash_column + "-" + " " * (item_column - dash_column - 1)
    lines = _block_dependency(mutation, dash_prefix, " " * item_column)
    return _insert(text, _line_end(text, _node_end(items[-1])), nl.join(lines) + nl)


def _block_dependency(mutation: ManifestMutation, dash_prefix: str, pad: str) -> list[str]:
    lines = [f"{dash_prefix}name: {_render_scalar(mutation.dependency_name, None, in_flow=False)}"]
    for key, value in _dependency_fields(mutation):
        lines.append(f"{pad}{key}: {_render_scalar(value, None, in_flow=False)}")
    return lines


def _flow_dependency(mutation: ManifestMutation) -> str:
    fields = [("name", mutation.dependency_name), *_dependency_fields(mutation)]
    rendered = [f"{key}: {_render_scalar(value, None, in_flow=True)}" for key, value in fields]
    return "{" + ", ".join(rendered) + "}"


def _dependency_fields(mutation: ManifestMutation) -> list[tuple[str, str]]:
    assert mutation.target_version is not None
    fields = [("version", mutation.target_version)]
    if mutation.repository is not None:
        fields.append(("repository", mutation.repository))
    if mutation.alias is not None:
        fields.append(("alias", mutation.alias))
    return fields


def _add_dependencies_list(
    text: str, root: yaml.MappingNode | None, mutation: ManifestMutation
) -> str:
    """Add the first dependency to a document whose list is missing or null."""
    nl = _newline(text)
    if root is None:
        lines = ["dependencies:", *_block_dependency(mutation, "- ", "  ")]
        return _insert(text, len(text), nl.join(lines) + nl)

    key, value = _find_key(root, "dependencies")  # type: ignore[misc]
    if root.flow_style:
        rendered = "[" + _flow_dependency(mutation) + "]"
        if value.start_mark.index == value.end_mark.index:
            rendered = " " + rendered
        return text[: value.start_mark.index] + rendered + text[value.end_mark.index :]

    # "dependencies: null" becomes "dependencies:" followed by block items
    text = text[: key.end_mark.index] + ":" + text[value.end_mark.index :]
    pad = " " * key.start_mark.column
    lines = _block_dependency(mutation, pad + "- ", pad + "  ")
    return _insert(text, _line_end(text, key.end_mark.index + 1), nl.join(lines) + nl)


def _remove_block_item(text: str, item: yaml.Node) -> str:
    start = _line_start(text, item.start_mark.index)
    if not text[start : item.start_mark.index].strip():
        # item written on the line after a bare "-"
        dash = text.rfind("-", 0, start)
        if dash != -1 and not text[dash + 1 : item.start_mark.index].strip():
            start = _line_start(text, dash)
    end = _line_end(text, _node_end(item))
    return text[:start] + text[end:]


def _insert_flow_item(text: str, sequence: yaml.SequenceNode, entry: str) -> str:
    if not sequence.value:
        closing = sequence.end_mark.index - 1
        return text[:closing] + entry + text[closing:]

    first = sequence.value[0]
    if "\n" in text[sequence.start_mark.index : first.start_mark.index]:
        separator = "," + _newline(text) + " " * first.start_mark.column
    else:
        separator = ", "
    position = _node_end(sequence.value[-1])
    return text[:position] + separator + entry + text[position:]


# ============================================================================
# Flat shape
# ============================================================================


def _apply_flat(text: str, root: yaml.MappingNode, mutation: ManifestMutation) -> str:
    index = next(
        (
            i
            for i, (key, _) in enumerate(root.value)
            if isinstance(key, yaml.ScalarNode) and key.value == mutation.dependency_name
        ),
        None,
    )

    if mutation.operation == "remove":
        if index is None:
            return text
        if root.flow_style:
            spans = [(k.start_mark.index, _node_end(v)) for k, v in root.value]
            return _remove_flow_span(text, spans, index)
        key, value = root.value[index]
        start = _line_start(text, key.start_mark.index)
        end = _line_end(text, _node_end(value))
        return text[:start] + text[end:]

    version = mutation.target_version
    assert version is not None

    if index is not None:
        return _replace_scalar(text, root.value[index][1], version, in_flow=bool(root.flow_style))
    if root.flow_style:
        return _insert_flow_entry(text, root, mutation.dependency_name, version)

    first_key = root.value[0][0]
    pad = " " * first_key.start_mark.column
    name = _render_scalar(mutation.dependency_name, None, in_flow=False)
    line = f"{pad}{name}: {_render_scalar(version, None, in_flow=False)}{_newline(text)}"
    return _insert(text, _line_end(text, _node_end(root.value[-1][1])), line)


def _insert_flow_entry(text: str, mapping: yaml.MappingNode, name: str, version: str) -> str:
    closing = mapping.end_mark.index - 1
    if not mapping.value:
        entry = f"{json.dumps(name)}: {json.dumps(version)}"
        return text[:closing] + entry + text[closing:]

    first_key = mapping.value[0][0]
    last_value = mapping.value[-1][1]
    value_style = last_value.style if isinstance(last_value, yaml.ScalarNode) else None
    entry = (
        f"{_render_scalar(name, first_key.style, in_flow=True)}: "
        f"{_render_scalar(version, value_style, in_flow=True)}"
    )

    if "\n" in text[mapping.start_mark.index : first_key.start_mark.index]:
        separator = "," + _newline(text) + " " * first_key.start_mark.column
    else:
        separator = ", "
    position = _node_end(last_value)
    return text[:position] + separator + entry + text[position:]


def _remove_flow_span(text: str, spans: list[tuple[int, int]], index: int) -> str:
    """Cut entry `index` of a flow collection along with one adjoining separator."""
    start, end = spans[index]
    if index < len(spans) - 1:
        return text[:start] + text[spans[index + 1][0] :]
    if index > 0:
        return text[: spans[index - 1][1]] + text[end:]
    return text[:start] + text[end:]


# ============================================================================
# Text helpers
# ============================================================================


def _replace_scalar(text: str, node: yaml.Node, value: str, *, in_flow: bool) -> str:
    if not isinstance(node, yaml.ScalarNode):
        msg = f"Expected a scalar version at line {node.start_mark.line + 1}"
        raise MalformedManifestError(msg)
    if node.tag != _NULL_TAG and node.value == value:
        return text

    start = node.start_mark.index
    end = node.end_mark.index
    rendered = _render_scalar(value, node.style, in_flow=in_flow)
    if start == end:
        # empty value, e.g. "version:" with nothing after the colon
        rendered = " " + rendered
    return text[:start] + rendered + text[end:]


def _render_scalar(value: str, style: str | None, *, in_flow: bool) -> str:
    if style == '"':
        return json.dumps(value, ensure_ascii=False)
    if style == "'":
        return "'" + value.replace("'", "''") + "'"
    if _is_plain_safe(value, in_flow=in_flow):
        return value
    return json.dumps(value, ensure_ascii=False)


def _is_plain_safe(value: str, *, in_flow: bool) -> bool:
    if not value or "\n" in value:
        return False
    if in_flow and any(c in _FLOW_INDICATORS for c in value):
        return False
    try:
        return yaml.safe_load(value) == value
    except yaml.YAMLError:
        return False


def _node_end(node: yaml.Node) -> int:
    """Index just past the last character belonging to `node`."""
    if isinstance(node, yaml.MappingNode):
        if node.flow_style or not node.value:
            return node.end_mark.index
        return _node_end(node.value[-1][1])
    if isinstance(node, yaml.SequenceNode):
        if node.flow_style or not node.value:
            return node.end_mark.index
        return _node_end(node.value[-1])
    return node.end_mark.index


def _line_start(text: str, index: int) -> int:
    return text.rfind("\n", 0, index) + 1


def _line_end(text: str, index: int) -> int:
    """Index of the start of the line following `index`."""
    if index > 0 and text[index - 1] == "\n":
        return index
    newline = text.find("\n", index)
    if newline == -1:
        return len(text)
    return newline + 1


def _insert(text: str, position: int, chunk: str) -> str:
    if position == len(text) and text and not text.endswith("\n"):
        chunk = _newline(text) + chunk
    return text[:position] + chunk + text[position:]


def _newline(text: str) -> str:
    return "\r\n" if "\r\n" in text else "\n"
