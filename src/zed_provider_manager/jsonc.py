"""Parsing and patching of JSON-with-comments documents.

Zed's settings file is JSON that allows ``//`` and ``/* */`` comments and
trailing commas. The functions in this module change one value at a time and
leave every other character of the document alone, so hand-written comments
and layout survive an edit.

Typical usage:

    text = set_value(text, ["language_models", "openai_compatible", "Ollama"], provider)
    text = remove_value(text, ["language_models", "openai_compatible", "Ollama"])
"""

import json
import re
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Optional, Sequence

from .errors import InvalidPathError, MalformedDocumentError, PathSegment
from .logging import LogEvent, log_debug

_STRING = re.compile(r'"(?:[^"\\\x00-\x1f]|\\(?:["\\/bfnrt]|u[0-9a-fA-F]{4}))*"')
_NUMBER = re.compile(r"-?(?:0|[1-9]\d*)(?:\.\d+)?(?:[eE][+-]?\d+)?")
_SYMBOL = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
_LITERALS = {"true": ("boolean", True), "false": ("boolean", False), "null": ("null", None)}
_JSON_LINE_START = re.compile(r'["{}\[\]]')


@dataclass(eq=False)
class Node:
    """A syntax node with its location in the source text.

    Property nodes span from the key to the end of the value and hold the key
    string as ``value`` and ``[key, value]`` as ``children``.
    """

    type: str
    offset: int
    length: int = 0
    value: Any = None
    parent: Optional["Node"] = field(default=None, repr=False)
    children: List["Node"] = field(default_factory=list, repr=False)
    # Offset of the comma that follows this entry inside its container
    comma_offset: Optional[int] = None

    @property
    def end(self) -> int:
        return self.offset + self.length

    @property
    def is_container(self) -> bool:
        return self.type in ("object", "array")


@dataclass(frozen=True)
class Edit:
    """Replace ``length`` characters at ``offset`` with ``content``."""

    offset: int
    length: int
    content: str


@dataclass(frozen=True)
class FormattingOptions:
    """Indentation unit and line ending used for inserted text."""

    indent: str = "  "
    eol: str = "\n"

    @classmethod
    def detect(cls, text: str) -> "FormattingOptions":
        """Infer formatting from the first indented JSON line of a document."""
        eol = "\r\n" if "\r\n" in text else "\n"
        for line in text.splitlines():
            stripped = line.lstrip(" \t")
            if stripped == line or not _JSON_LINE_START.match(stripped):
                continue
            lead = line[: len(line) - len(stripped)]
            if lead.startswith("\t"):
                return cls(indent="\t", eol=eol)
            return cls(indent=" " * min(len(lead), 8), eol=eol)
        return cls(eol=eol)


class _Parser:
    def __init__(self, text: str) -> None:
        self.text = text
        self.pos = 0

    def error(self, message: str, offset: Optional[int] = None) -> MalformedDocumentError:
        offset = self.pos if offset is None else offset
        line = self.text.count("\n", 0, offset) + 1
        column = offset - (self.text.rfind("\n", 0, offset) + 1) + 1
        return MalformedDocumentError(f"{message} at line {line}, column {column}", offset, line, column)

    def peek(self) -> str:
        return self.text[self.pos] if self.pos < len(self.text) else ""

    def skip_trivia(self) -> None:
        text, n = self.text, len(self.text)
        while self.pos < n:
            ch = text[self.pos]
            if ch in " \t\r\n\ufeff":
                self.pos += 1
            elif text.startswith("//", self.pos):
                newline = text.find("\n", self.pos)
                self.pos = n if newline == -1 else newline
            elif text.startswith("/*", self.pos):
                close = text.find("*/", self.pos + 2)
                if close == -1:
                    raise self.error("Unterminated block comment")
                self.pos = close + 2
            else:
                break

    def parse_document(self) -> Optional[Node]:
        self.skip_trivia()
        if self.pos >= len(self.text):
            return None
        root = self.parse_value(None)
        self.skip_trivia()
        if self.pos < len(self.text):
            raise self.error("Unexpected content after end of document")
        return root

    def parse_value(self, parent: Optional[Node]) -> Node:
        ch = self.peek()
        if ch == "{":
            return self.parse_object(parent)
        if ch == "[":
            return self.parse_array(parent)
        if ch == '"':
            return self.parse_string(parent)
        if ch == "-" or ch.isdigit():
            return self.parse_number(parent)
        if ch == "":
            raise self.error("Unexpected end of document, expected a value")

        symbol = _SYMBOL.match(self.text, self.pos)
        if symbol and symbol.group() in _LITERALS:
            kind, value = _LITERALS[symbol.group()]
            self.pos = symbol.end()
            return Node(kind, symbol.start(), symbol.end() - symbol.start(), value, parent)
        raise self.error("Expected a value")

    def parse_string(self, parent: Optional[Node]) -> Node:
        token = _STRING.match(self.text, self.pos)
        if token is None:
            raise self.error("Invalid or unterminated string")
        self.pos = token.end()
        return Node("string", token.start(), token.end() - token.start(), json.loads(token.group()), parent)

    def parse_number(self, parent: Optional[Node]) -> Node:
        token = _NUMBER.match(self.text, self.pos)
        if token is None:
            raise self.error("Invalid number")
        self.pos = token.end()
        return Node("number", token.start(), token.end() - token.start(), json.loads(token.group()), parent)

    def parse_object(self, parent: Optional[Node]) -> Node:
        node = Node("object", self.pos, parent=parent)
        self.pos += 1
        while True:
            self.skip_trivia()
            ch = self.peek()
            if ch == "}":
                self.pos += 1
                break
            if ch != '"':
                raise self.error("Expected a property name or '}'")

            key = self.parse_string(None)
            prop = Node("property", key.offset, value=key.value, parent=node)
            key.parent = prop

            self.skip_trivia()
            if self.peek() != ":":
                raise self.error("Expected ':'")
            self.pos += 1
            self.skip_trivia()

            value = self.parse_value(prop)
            prop.children = [key, value]
            prop.length = value.end - prop.offset
            node.children.append(prop)

            self.skip_trivia()
            ch = self.peek()
            if ch == ",":
                prop.comma_offset = self.pos
                self.pos += 1
            elif ch == "}":
                self.pos += 1
                break
            else:
                raise self.error("Expected ',' or '}'")
        node.length = self.pos - node.offset
        return node

    def parse_array(self, parent: Optional[Node]) -> Node:
        node = Node("array", self.pos, parent=parent)
        self.pos += 1
        while True:
            self.skip_trivia()
            if self.peek() == "]":
                self.pos += 1
                break

            element = self.parse_value(node)
            node.children.append(element)

            self.skip_trivia()
            ch = self.peek()
            if ch == ",":
                element.comma_offset = self.pos
                self.pos += 1
            elif ch == "]":
                self.pos += 1
                break
            else:
                raise self.error("Expected ',' or ']'")
        node.length = self.pos - node.offset
        return node


def parse_tree(text: str) -> Optional[Node]:
    """Parse a document into a syntax tree.

    Args:
        text: Document text

    Returns:
        The root node, or None if the document holds only whitespace and comments

    Raises:
        MalformedDocumentError: If the text is not valid JSON with comments
    """
    return _Parser(text).parse_document()


def node_value(node: Optional[Node]) -> Any:
    """Convert a syntax node to the plain Python value it denotes."""
    if node is None:
        return None
    if node.type == "object":
        return {prop.value: node_value(prop.children[1]) for prop in node.children}
    if node.type == "array":
        return [node_value(child) for child in node.children]
    if node.type == "property":
        return node_value(node.children[1])
    return node.value


def parse(text: str) -> Any:
    """Parse a document into plain Python values.

    Raises:
        MalformedDocumentError: If the text is not valid JSON with comments
    """
    return node_value(parse_tree(text))


def _check_path(path: Sequence[PathSegment]) -> List[PathSegment]:
    segments = list(path)
    for segment in segments:
        if isinstance(segment, bool) or not isinstance(segment, (str, int)):
            raise InvalidPathError(f"Path segment {segment!r} must be a string or an integer", segments)
    return segments


def _find_property(node: Node, key: str) -> Optional[Node]:
    # Later duplicates win, as in json.loads
    for prop in reversed(node.children):
        if prop.value == key:
            return prop
    return None


def _child(node: Node, segment: PathSegment, full_path: Sequence[PathSegment]) -> Optional[Node]:
    if node.type == "object":
        if not isinstance(segment, str):
            raise InvalidPathError(f"Cannot index an object with {segment!r}", full_path)
        prop = _find_property(node, segment)
        return prop.children[1] if prop is not None else None
    if node.type == "array":
        if not isinstance(segment, int):
            raise InvalidPathError(f"Cannot look up key {segment!r} in an array", full_path)
        if 0 <= segment < len(node.children):
            return node.children[segment]
        return None
    raise InvalidPathError(f"Cannot descend into a {node.type} value with {segment!r}", full_path)


def _locate(root: Optional[Node], path: Sequence[PathSegment], full_path: Sequence[PathSegment]) -> Optional[Node]:
    """Walk ``path``; None means some container along it is missing."""
    node = root
    for segment in path:
        if node is None:
            return None
        node = _child(node, segment, full_path)
    return node


def find_node(root: Optional[Node], path: Sequence[PathSegment]) -> Optional[Node]:
    """Find the value node at ``path``, or None if it does not exist.

    Raises:
        InvalidPathError: If the path runs through a non-container value
    """
    segments = _check_path(path)
    return _locate(root, segments, segments)


def get_value(text: str, path: Sequence[PathSegment], default: Any = None) -> Any:
    """Return the plain value at ``path`` or ``default`` when it is missing."""
    node = find_node(parse_tree(text), path)
    return default if node is None else node_value(node)


def apply_edits(text: str, edits: Iterable[Edit]) -> str:
    """Apply edits computed against the same text.

    Edits at the same offset are inserted in the order given.

    Raises:
        ValueError: If two edits overlap
    """
    ordered = sorted(enumerate(edits), key=lambda item: (item[1].offset, item[0]), reverse=True)
    result = text
    limit = len(text)
    for _, edit in ordered:
        if edit.offset < 0 or edit.offset + edit.length > limit:
            raise ValueError(f"Overlapping or out-of-range edit at offset {edit.offset}")
        result = result[: edit.offset] + edit.content + result[edit.offset + edit.length :]
        limit = edit.offset
    return result


def _line_start(text: str, pos: int) -> int:
    return text.rfind("\n", 0, pos) + 1


def _indent_at(text: str, pos: int) -> str:
    start = end = _line_start(text, pos)
    while end < len(text) and text[end] in " \t":
        end += 1
    return text[start:end]


def _starts_line(text: str, pos: int) -> bool:
    return text[_line_start(text, pos) : pos].strip(" \t") == ""


def _trivia_line_end(text: str, pos: int) -> Optional[int]:
    """Offset of the line break after ``pos`` if only blanks/comments precede it."""
    n = len(text)
    i = pos
    while i < n:
        if text[i] in " \t":
            i += 1
        elif text[i] == "\n" or text.startswith("\r\n", i):
            return i
        elif text.startswith("//", i):
            newline = text.find("\n", i)
            if newline == -1:
                return n
            return newline - 1 if text[newline - 1] == "\r" else newline
        elif text.startswith("/*", i):
            close = text.find("*/", i + 2)
            if close == -1 or "\n" in text[i:close]:
                return None
            i = close + 2
        else:
            return None
    return n


def _after_line_break(text: str, pos: int) -> int:
    if text.startswith("\r\n", pos):
        return pos + 2
    if text.startswith("\n", pos):
        return pos + 1
    return pos


def _serialize(value: Any, options: FormattingOptions, base_indent: str, inline: bool) -> str:
    if inline:
        return json.dumps(value, ensure_ascii=False)
    return json.dumps(value, ensure_ascii=False, indent=options.indent).replace("\n", options.eol + base_indent)


def _prefers_inline(text: str, container: Node) -> bool:
    # Single-line containers that already hold entries stay single-line
    return bool(container.children) and "\n" not in text[container.offset : container.end]


def _insert_entry(text: str, container: Node, prefix: str, value: Any, options: FormattingOptions) -> str:
    open_pos, close_pos = container.offset, container.end - 1
    parent_indent = _indent_at(text, open_pos)

    if not container.children:
        child_indent = parent_indent + options.indent
        entry = prefix + _serialize(value, options, child_indent, inline=False)
        interior = text[open_pos + 1 : close_pos]
        if not interior.strip():
            content = options.eol + child_indent + entry + options.eol + parent_indent
            return apply_edits(text, [Edit(open_pos + 1, len(interior), content)])
        # Only comments inside: add the entry after the last of them
        anchor = open_pos + 1 + len(interior.rstrip())
        return apply_edits(text, [Edit(anchor, 0, options.eol + child_indent + entry)])

    last = container.children[-1]
    if _prefers_inline(text, container):
        entry = prefix + _serialize(value, options, "", inline=True)
        if last.comma_offset is not None:
            return apply_edits(text, [Edit(last.comma_offset + 1, 0, f" {entry},")])
        return apply_edits(text, [Edit(last.end, 0, f", {entry}")])

    if _starts_line(text, last.offset):
        child_indent = _indent_at(text, last.offset)
    else:
        child_indent = parent_indent + options.indent
    entry = prefix + _serialize(value, options, child_indent, inline=False)

    edits: List[Edit] = []
    if last.comma_offset is None:
        anchor = last.end
        trailer = ""
        edits.append(Edit(last.end, 0, ","))
    else:
        anchor = last.comma_offset + 1
        trailer = ","

    line_end = _trivia_line_end(text, anchor)
    position = anchor if line_end is None else line_end
    edits.append(Edit(position, 0, options.eol + child_indent + entry + trailer))
    return apply_edits(text, edits)


def _replace_node(text: str, target: Node, anchor: Node, container: Node, value: Any, options: FormattingOptions) -> str:
    inline = _prefers_inline(text, container)
    content = _serialize(value, options, _indent_at(text, anchor.offset), inline)
    return apply_edits(text, [Edit(target.offset, target.length, content)])


def _set_in_existing_parent(text: str, path: List[PathSegment], value: Any, options: FormattingOptions) -> str:
    root = parse_tree(text)

    if not path:
        if root is not None:
            return apply_edits(text, [Edit(root.offset, root.length, _serialize(value, options, "", False))])
        body = _serialize(value, options, "", False) + options.eol
        if not text.strip():
            return body
        return text + ("" if text.endswith("\n") else options.eol) + body

    container = _locate(root, path[:-1], path)
    if container is None or not container.is_container:
        raise InvalidPathError(f"No container to hold {path[-1]!r}", path)

    segment = path[-1]
    if container.type == "object":
        if not isinstance(segment, str):
            raise InvalidPathError(f"Cannot index an object with {segment!r}", path)
        prop = _find_property(container, segment)
        if prop is not None:
            return _replace_node(text, prop.children[1], prop, container, value, options)
        return _insert_entry(text, container, json.dumps(segment, ensure_ascii=False) + ": ", value, options)

    if not isinstance(segment, int):
        raise InvalidPathError(f"Cannot look up key {segment!r} in an array", path)
    size = len(container.children)
    if 0 <= segment < size:
        element = container.children[segment]
        return _replace_node(text, element, element, container, value, options)
    if segment in (-1, size):
        return _insert_entry(text, container, "", value, options)
    raise InvalidPathError(f"Array index {segment} is out of range for {size} elements", path)


def set_value(
    text: str,
    path: Sequence[PathSegment],
    value: Any,
    formatting: Optional[FormattingOptions] = None,
) -> str:
    """Place ``value`` at ``path`` and return the new document text.

    Missing containers along the path are created first (an object for a
    string segment, an array for an integer segment); every step is computed
    against the text produced by the step before it. Setting the same value
    twice gives the same text as setting it once. An index of -1 or equal to
    the array length appends.

    Args:
        text: Current document text
        path: Keys and indices locating the value
        value: JSON-serializable value
        formatting: Indentation and line ending for new text (detected if None)

    Returns:
        The patched document

    Raises:
        MalformedDocumentError: If the document cannot be parsed
        InvalidPathError: If the path runs through a scalar or mismatched container
    """
    segments = _check_path(path)
    if any(isinstance(segment, int) and segment < 0 for segment in segments[:-1]):
        raise InvalidPathError("Only the last path segment may append with -1", segments)
    options = formatting or FormattingOptions.detect(text)

    current = text
    for depth, segment in enumerate(segments):
        existing = _locate(parse_tree(current), segments[:depth], segments)
        if existing is None:
            container: Any = {} if isinstance(segment, str) else []
            log_debug(LogEvent.DOCUMENT_PATCH, "Creating missing container", path=segments[:depth])
            current = _set_in_existing_parent(current, segments[:depth], container, options)
        elif not existing.is_container:
            raise InvalidPathError(f"Cannot descend into a {existing.type} value with {segment!r}", segments)
        elif existing.type == "object" and not isinstance(segment, str):
            raise InvalidPathError(f"Cannot index an object with {segment!r}", segments)
        elif existing.type == "array" and not isinstance(segment, int):
            raise InvalidPathError(f"Cannot look up key {segment!r} in an array", segments)

    return _set_in_existing_parent(current, segments, value, options)


def _removal_edits(text: str, container: Node, entry: Node) -> List[Edit]:
    siblings = container.children
    index = next(i for i, child in enumerate(siblings) if child is entry)
    prev = siblings[index - 1] if index > 0 else None
    nxt = siblings[index + 1] if index + 1 < len(siblings) else None
    entry_end = entry.comma_offset + 1 if entry.comma_offset is not None else entry.end

    if _starts_line(text, entry.offset):
        line_end = _trivia_line_end(text, entry_end)
        if line_end is not None:
            start = _line_start(text, entry.offset)
            end = _after_line_break(text, line_end)
            if prev is None and nxt is None:
                interior_start, interior_end = container.offset + 1, container.end - 1
                if not text[interior_start:start].strip() and not text[end:interior_end].strip():
                    return [Edit(interior_start, interior_end - interior_start, "")]
            edits = [Edit(start, end - start, "")]
            # Keep the container's trailing-comma convention
            if nxt is None and entry.comma_offset is None and prev is not None and prev.comma_offset is not None:
                edits.append(Edit(prev.comma_offset, 1, ""))
            return edits

    if nxt is not None:
        return [Edit(entry.offset, nxt.offset - entry.offset, "")]
    if prev is not None and prev.comma_offset is not None:
        if entry.comma_offset is not None:
            start = prev.comma_offset + 1
            return [Edit(start, entry_end - start, "")]
        return [Edit(prev.comma_offset, entry.end - prev.comma_offset, "")]
    return [Edit(entry.offset, entry_end - entry.offset, "")]


def remove_value(text: str, path: Sequence[PathSegment]) -> str:
    """Remove the property or element at ``path`` and return the new text.

    Comments on the removed entry's own lines go with it; neighbouring
    entries, their comments and the container's trailing-comma convention are
    kept. Removing something that does not exist returns ``text`` unchanged.

    Raises:
        MalformedDocumentError: If the document cannot be parsed
        InvalidPathError: If the path is empty or runs through a non-container
    """
    segments = _check_path(path)
    if not segments:
        raise InvalidPathError("Cannot remove the document root", segments)

    current = text
    while True:
        root = parse_tree(current)
        container = _locate(root, segments[:-1], segments)
        if container is None:
            return current
        if not container.is_container:
            raise InvalidPathError(f"Cannot descend into a {container.type} value", segments)

        segment = segments[-1]
        entry: Optional[Node]
        if container.type == "object":
            if not isinstance(segment, str):
                raise InvalidPathError(f"Cannot index an object with {segment!r}", segments)
            entry = _find_property(container, segment)
        else:
            if not isinstance(segment, int):
                raise InvalidPathError(f"Cannot look up key {segment!r} in an array", segments)
            entry = container.children[segment] if 0 <= segment < len(container.children) else None

        if entry is None:
            return current
        current = apply_edits(current, _removal_edits(current, container, entry))
        if container.type == "array":
            return current
