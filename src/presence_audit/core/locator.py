"""Line locator — map a field reference back to its line in a JSON document.

Validation runs against the decoded document, which has no positions.  When
a rule fails, the offending field is looked up again in a parse tree of the
raw text so the diagnostic can point at the exact line.

Usage::

    from presence_audit.core.locator import locate

    locate(text, "version")               # line of "version": ...
    locate(text, "description", "en")     # line of description.en
    locate(text, "tags", 2)               # line of tags[2]
    locate(text, "settings", "title")     # first settings[] item with a "title" key
"""

from __future__ import annotations

from presence_audit.core.json_ast import (
    ArrayNode,
    JsonNode,
    LiteralNode,
    ObjectNode,
    parse_json_object,
)

Selector = str | int

# Returned for a missing top-level key when no selector is given, so callers
# that always attach a line have something to attach.
MISSING_KEY_LINE = 0


def _array_item_matches(item: JsonNode, selector: Selector) -> bool:
    if isinstance(item, LiteralNode):
        return type(item.value) is type(selector) and item.value == selector
    if isinstance(item, ObjectNode):
        return item.find(selector) is not None
    return False


def _locate_nested(node: JsonNode, selector: Selector) -> int | None:
    if isinstance(node, LiteralNode):
        return node.line

    if isinstance(node, ObjectNode):
        if not isinstance(selector, str):
            return None
        prop = node.find(selector)
        return prop.line if prop is not None else None

    if isinstance(node, ArrayNode):
        if isinstance(selector, int) and not isinstance(selector, bool):
            if 0 <= selector < len(node.items):
                return node.items[selector].line
            return None
        for item in node.items:
            if _array_item_matches(item, selector):
                return item.line
        return None

    return None


def locate_node(
    root: ObjectNode, key: str, selector: Selector | None = None
) -> int | None:
    """Locate *key* (and optionally *selector* inside it) in a parsed tree."""
    prop = root.find(key)
    if selector is None:
        return prop.line if prop is not None else MISSING_KEY_LINE
    if prop is None:
        return None
    return _locate_nested(prop.value, selector)


def locate(
    document_text: str, key: str, selector: Selector | None = None
) -> int | None:
    """Return the 1-based line declaring *key* in *document_text*.

    Parameters
    ----------
    document_text:
        Raw JSON text whose top-level value is an object.  It must already
        be known to be valid JSON.
    key:
        Top-level property name.
    selector:
        Optional second path element.  For an object value it is a property
        name; for an array value an ``int`` is an index and anything else is
        matched against literal items by equality and against object items
        by property name (first match wins).  For a literal value the
        literal's own line is returned.

    Returns
    -------
    The line number, ``None`` when a nested lookup finds nothing, or ``0``
    when *key* itself is absent and no *selector* was given.

    Raises
    ------
    JsonAstError
        If *document_text* is not a JSON object.
    """
    return locate_node(parse_json_object(document_text), key, selector)
