"""
xml_archive.py - reader and writer for XML documents

Layout:
- One root element (``archive`` by default) wraps the top-level entries
- Leaves are text-only elements: <id>22</id>
- Blocks are elements with child elements
- Byte ranges are base64 text, booleans true/false
- <name></name> is an empty string leaf, or an empty block when read as one
"""

from __future__ import annotations

import io
import re
import xml.etree.ElementTree as ET
from collections import deque
from pathlib import Path
from typing import IO, Any, Optional, Union
from xml.sax.saxutils import escape

from .element import DataElement
from .errors import FormatError, IOFailure, ParseError
from .reader import Reader
from .values import ValueType, format_text
from .writer import Writer

DEFAULT_ROOT_TAG = "archive"
DEFAULT_CHUNK_SIZE = 64 * 1024

_NAME_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_.\-]*$")
_INVALID_CHARS_RE = re.compile("[\x00-\x08\x0b\x0c\x0e-\x1f\ud800-\udfff\ufffe\uffff]")
# Carriage returns would be normalized away by any XML parser
_ENTITIES = {"\r": "&#13;"}


class XmlReader(Reader):
    """Reader for XML documents.

    Parsing is incremental: the file is fed to an
    :class:`xml.etree.ElementTree.XMLPullParser` in chunks, and an element is
    classified as a leaf or a block by the parser event that follows its start
    tag.
    """

    def __init__(
        self,
        source: Union[str, Path, IO],
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ):
        super().__init__()
        if isinstance(source, (str, Path)):
            try:
                self._file = open(source, "rb")
            except OSError as e:
                raise IOFailure(f"Cannot open {source}: {e}") from e
            self._owns_file = True
        else:
            self._file = source
            self._owns_file = False
        self._chunk_size = chunk_size
        self._parser = ET.XMLPullParser(events=("start", "end"))
        self._events: deque = deque()
        self._pending: deque[DataElement] = deque()
        self._root: Optional[ET.Element] = None
        self._exhausted = False

    @property
    def root_tag(self) -> Optional[str]:
        """Tag of the wrapping root element, once it has been read."""
        return self._root.tag if self._root is not None else None

    def _release(self):
        if self._owns_file:
            self._file.close()

    def _next_event(self):
        while not self._events:
            if self._exhausted:
                return None
            try:
                chunk = self._file.read(self._chunk_size)
                if chunk:
                    self._parser.feed(chunk)
                else:
                    self._exhausted = True
                    self._parser.close()
                # Syntax errors are queued by feed() and raised from here
                self._events.extend(self._parser.read_events())
            except ET.ParseError as e:
                raise ParseError(str(e), e.position[0])
            except UnicodeDecodeError as e:
                raise ParseError(f"Invalid text encoding: {e}")
        return self._events.popleft()

    def _parse_next(self) -> Optional[DataElement]:
        if self._pending:
            return self._pending.popleft()

        event = self._next_event()
        if event is None:
            return None
        kind, elem = event

        if self._root is None:
            self._root = elem
            return self._parse_next()

        if kind == "end":
            elem.clear()
            if elem is self._root:
                return self._parse_next()
            return DataElement.end(elem.tag)

        following = self._next_event()
        if following is None:
            raise ParseError(f"Unexpected end of document inside <{elem.tag}>")
        if following[0] == "end" and following[1] is elem:
            text = elem.text or ""
            elem.clear()
            return DataElement.leaf(elem.tag, text)

        # A child element follows, so this one is a block
        self._events.appendleft(following)
        return DataElement.start(elem.tag)

    def _empty_block(self, element: DataElement) -> Optional[DataElement]:
        if element.content.strip():
            return None
        self._pending.appendleft(DataElement.end(element.name))
        return DataElement.start(element.name)


class XmlWriter(Writer):
    """Writer for XML documents."""

    def __init__(
        self,
        dest: Union[str, Path, IO],
        indent_size: int = 4,
        encoding: str = "utf-8",
        root_tag: str = DEFAULT_ROOT_TAG,
    ):
        super().__init__()
        if not _NAME_RE.match(root_tag):
            raise FormatError(f"Root tag '{root_tag}' is not a valid XML name")
        if isinstance(dest, (str, Path)):
            try:
                self._file = open(dest, "w", encoding=encoding, newline="\n")
            except OSError as e:
                raise IOFailure(f"Cannot open {dest}: {e}") from e
            self._owns_file = True
            self._detach = False
        elif isinstance(dest, io.TextIOBase):
            self._file = dest
            self._owns_file = False
            self._detach = False
        else:
            self._file = io.TextIOWrapper(dest, encoding=encoding, newline="\n", write_through=True)
            self._owns_file = False
            self._detach = True
        self._encoding = encoding
        self._indent_size = indent_size
        self._root_tag = root_tag
        self._started = False
        # One entry per open element: whether it has children yet
        self._has_children: list[bool] = []

    def _release(self):
        if self._owns_file:
            self._file.close()
        elif self._detach:
            self._file.detach()

    def _check_name(self, name: str):
        super()._check_name(name)
        if not _NAME_RE.match(name):
            raise FormatError(f"Name '{name}' is not a valid XML element name")

    def _indent(self) -> str:
        return " " * (len(self._has_children) * self._indent_size)

    def _ensure_started(self):
        if not self._started:
            self._file.write(f'<?xml version="1.0" encoding="{self._encoding}"?>\n')
            self._file.write(f"<{self._root_tag}>")
            self._has_children.append(False)
            self._started = True

    def _begin_child(self):
        self._ensure_started()
        self._has_children[-1] = True
        self._file.write(f"\n{self._indent()}")

    def _emit_leaf(self, name: str, value_type: ValueType, value: Any):
        text = format_text(value_type, value)
        if _INVALID_CHARS_RE.search(text):
            raise FormatError(f"Value of '{name}' contains characters XML cannot carry")
        self._begin_child()
        self._file.write(f"<{name}>{escape(text, _ENTITIES)}</{name}>")

    def _emit_start(self, name: str):
        self._begin_child()
        self._file.write(f"<{name}>")
        self._has_children.append(False)

    def _close_element(self, name: str):
        if self._has_children.pop():
            self._file.write(f"\n{self._indent()}")
        self._file.write(f"</{name}>")

    def _emit_end(self, name: str):
        self._close_element(name)

    def _finish(self):
        self._ensure_started()
        self._close_element(self._root_tag)
        self._file.write("\n")
        self._file.flush()
