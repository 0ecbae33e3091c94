"""Tests for JSON flattening, path syntax and safe serialization."""

import pytest

from vinet.core import json_tree
from vinet.core.models import ValueKind

BODY = {"user": {"name": "Ada"}, "tags": ["a", "b"]}


def paths(value, expanded=None):
    return [n.path for n in json_tree.flatten(value, expanded or {})]


def test_flatten_paths_in_structural_order():
    assert paths(BODY) == ["user", "user.name", "tags", "tags[0]", "tags[1]"]


def test_depths_and_keys():
    nodes = list(json_tree.flatten(BODY, {}))
    assert [(n.key, n.depth) for n in nodes] == [
        ("user", 0), ("name", 1), ("tags", 0), ("0", 1), ("1", 1),
    ]


def test_missing_path_defaults_to_expanded():
    node = next(iter(json_tree.flatten(BODY, {})))
    assert node.expanded


def test_collapsed_container_hides_children():
    assert paths(BODY, {"tags": False}) == ["user", "user.name", "tags"]


def test_collapsed_parent_hides_expanded_grandchildren():
    value = {"a": {"b": {"c": 1}}}
    assert paths(value, {"a": False, "a.b": True}) == ["a"]


def test_top_level_array_paths():
    assert paths([{"id": 1}, 2]) == ["[0]", "[0].id", "[1]"]


def test_primitive_root():
    nodes = list(json_tree.flatten(42, {}))
    assert len(nodes) == 1
    assert nodes[0].path == json_tree.ROOT_PATH
    assert nodes[0].kind is ValueKind.NUMBER


def test_flat_tree_is_restartable():
    tree = json_tree.FlatTree(BODY, {})
    assert [n.path for n in tree] == [n.path for n in tree]


@pytest.mark.parametrize(
    "value, kind",
    [
        (None, ValueKind.NULL),
        (True, ValueKind.BOOLEAN),
        (0, ValueKind.NUMBER),
        (1.5, ValueKind.NUMBER),
        ("x", ValueKind.STRING),
        ([], ValueKind.ARRAY),
        ({}, ValueKind.OBJECT),
    ],
)
def test_value_kind(value, kind):
    assert json_tree.value_kind(value) is kind


@pytest.mark.parametrize(
    "path, parent",
    [
        ("user", ""),
        ("user.name", "user"),
        ("tags[0]", "tags"),
        ("data.users[3]", "data.users"),
        ("data.users[3].id", "data.users[3]"),
        ("[0]", ""),
        ("[0].id", "[0]"),
    ],
)
def test_parent_path(path, parent):
    assert json_tree.parent_path(path) == parent


def test_with_expansion_returns_new_map():
    original = {"a": True}
    updated = json_tree.with_expansion(original, "b", False)
    assert updated == {"a": True, "b": False}
    assert original == {"a": True}


def test_collapsed_summary():
    nodes = {n.path: n for n in json_tree.flatten(BODY, {})}
    assert json_tree.collapsed_summary(nodes["tags"]) == "[2 items]"
    assert json_tree.collapsed_summary(nodes["user"]) == "{1 items}"


def test_safe_stringify_handles_cycles():
    value = {"name": "loop"}
    value["self"] = value
    assert json_tree.safe_stringify(value) == '{"name": "loop", "self": "[Circular]"}'


def test_safe_stringify_keeps_shared_non_cyclic_values():
    shared = [1]
    assert json_tree.safe_stringify({"a": shared, "b": shared}) == '{"a": [1], "b": [1]}'


def test_format_value():
    assert json_tree.format_value("plain") == "plain"
    assert json_tree.format_value(3) == "3"
    assert json_tree.format_value(None) == "null"
    assert json_tree.format_value({"a": 1}) == '{\n  "a": 1\n}'
