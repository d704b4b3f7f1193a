"""Position-annotated JSON syntax tree built on the tree-sitter JSON grammar.

The tree mirrors the decoded document (objects, arrays, scalar literals) but
every node also remembers the 1-based line it starts on, which the decoded
``dict`` / ``list`` values coming out of ``json.loads`` cannot.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Union

from tree_sitter import Node
from tree_sitter_language_pack import get_parser

from presence_audit.errors import JsonAstError

_LITERAL_TYPES = frozenset({"string", "number", "true", "false", "null"})


@dataclass(frozen=True, slots=True)
class LiteralNode:
    value: Any
    line: int


@dataclass(frozen=True, slots=True)
class PropertyNode:
    """One ``"key": value`` pair; ``line`` is where the key starts."""

    key: str
    value: "JsonNode"
    line: int


@dataclass(frozen=True, slots=True)
class ObjectNode:
    properties: tuple[PropertyNode, ...]
    line: int

    def find(self, key: str) -> PropertyNode | None:
        """First property named *key*, in document order."""
        for prop in self.properties:
            if prop.key == key:
                return prop
        return None


@dataclass(frozen=True, slots=True)
class ArrayNode:
    items: tuple["JsonNode", ...]
    line: int


JsonNode = Union[LiteralNode, ObjectNode, ArrayNode]


def _line(node: Node) -> int:
    return node.start_point[0] + 1


def _decode_scalar(node: Node) -> Any:
    # tree-sitter keeps the raw token; json.loads handles escapes and numbers.
    raw = node.text.decode("utf-8") if node.text is not None else ""
    try:
        return json.loads(raw)
    except json.JSONDecodeError as exc:
        raise JsonAstError(
            f"invalid {node.type} token at line {_line(node)}: {raw!r}"
        ) from exc


def _value_children(node: Node) -> list[Node]:
    return [c for c in node.named_children if c.type != "comment"]


def _convert(node: Node) -> JsonNode:
    if node.type in _LITERAL_TYPES:
        return LiteralNode(value=_decode_scalar(node), line=_line(node))

    if node.type == "object":
        props: list[PropertyNode] = []
        for pair in _value_children(node):
            key_node = pair.child_by_field_name("key")
            value_node = pair.child_by_field_name("value")
            if pair.type != "pair" or key_node is None or value_node is None:
                raise JsonAstError(f"malformed object member at line {_line(pair)}")
            props.append(
                PropertyNode(
                    key=str(_decode_scalar(key_node)),
                    value=_convert(value_node),
                    line=_line(pair),
                )
            )
        return ObjectNode(properties=tuple(props), line=_line(node))

    if node.type == "array":
        return ArrayNode(
            items=tuple(_convert(c) for c in _value_children(node)),
            line=_line(node),
        )

    raise JsonAstError(f"unexpected {node.type!r} node at line {_line(node)}")


def parse_json(text: str) -> JsonNode:
    """Parse *text* into a position-annotated tree.

    Raises
    ------
    JsonAstError
        If *text* is not syntactically valid JSON.
    """
    tree = get_parser("json").parse(text.encode("utf-8"))
    root = tree.root_node
    if root.has_error:
        raise JsonAstError("document is not valid JSON")

    values = _value_children(root)
    if len(values) != 1:
        raise JsonAstError(
            f"expected exactly one top-level JSON value, found {len(values)}"
        )
    return _convert(values[0])


def parse_json_object(text: str) -> ObjectNode:
    """Like :func:`parse_json`, but the document must be an object."""
    node = parse_json(text)
    if not isinstance(node, ObjectNode):
        raise JsonAstError("top-level JSON value is not an object")
    return node
