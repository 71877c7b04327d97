"""
json_archive.py - reader and writer for JSON documents

Layout:
- The document is one root object; its members are the top-level entries
- Leaves: "name": value (byte ranges as base64 strings, chars as strings)
- Blocks: "name": { ... }
- Member order is element order, and a name may repeat within an object
  ({"city": "A", "city": "B"} is two entries)
- Arrays read as blocks of anonymous entries
"""

from __future__ import annotations

import base64
import json
from pathlib import Path
from typing import Any, Iterator, Optional, TextIO, Union

from .element import DataElement
from .errors import IOFailure, ParseError
from .reader import Reader
from .values import ValueType
from .writer import Writer


class _Members(list):
    """(name, value) pairs of one JSON object, in document order."""


def _walk(name: Optional[str], value: Any) -> Iterator[DataElement]:
    if isinstance(value, _Members):
        yield DataElement.start(name)
        for key, item in value:
            yield from _walk(key, item)
        yield DataElement.end(name)
    elif isinstance(value, list):
        yield DataElement.start(name)
        for item in value:
            yield from _walk(None, item)
        yield DataElement.end(name)
    else:
        yield DataElement.leaf(name, value)


class JsonReader(Reader):
    """Reader for JSON documents.

    The document is parsed with :mod:`json` on the first read; elements are
    then produced one at a time from the parsed members.
    """

    def __init__(self, source: Union[str, Path, TextIO], encoding: str = "utf-8"):
        super().__init__()
        if isinstance(source, (str, Path)):
            try:
                self._file = open(source, "r", encoding=encoding)
            except OSError as e:
                raise IOFailure(f"Cannot open {source}: {e}") from e
            self._owns_file = True
        else:
            self._file = source
            self._owns_file = False
        self._elements: Optional[Iterator[DataElement]] = None

    def _release(self):
        if self._owns_file:
            self._file.close()

    def _load(self) -> Iterator[DataElement]:
        try:
            root = json.load(self._file, object_pairs_hook=_Members)
        except json.JSONDecodeError as e:
            raise ParseError(e.msg, e.lineno)
        except UnicodeDecodeError as e:
            raise ParseError(f"Invalid text encoding: {e}")
        if not isinstance(root, _Members):
            raise ParseError(f"Document root must be an object, got {type(root).__name__}")
        return (element for key, value in root for element in _walk(key, value))

    def _parse_next(self) -> Optional[DataElement]:
        if self._elements is None:
            self._elements = self._load()
        return next(self._elements, None)


class JsonWriter(Writer):
    """Writer for JSON documents."""

    def __init__(
        self,
        dest: Union[str, Path, TextIO],
        indent_size: int = 4,
        encoding: str = "utf-8",
    ):
        super().__init__()
        if isinstance(dest, (str, Path)):
            try:
                self._file = open(dest, "w", encoding=encoding)
            except OSError as e:
                raise IOFailure(f"Cannot open {dest}: {e}") from e
            self._owns_file = True
        else:
            self._file = dest
            self._owns_file = False
        self._indent_size = indent_size
        self._member_counts: list[int] = []

    def _release(self):
        if self._owns_file:
            self._file.close()

    def _indent(self) -> str:
        return " " * (len(self._member_counts) * self._indent_size)

    def _ensure_started(self):
        if not self._member_counts:
            self._file.write("{")
            self._member_counts.append(0)

    def _begin_member(self, name: str):
        self._ensure_started()
        self._file.write(",\n" if self._member_counts[-1] else "\n")
        self._member_counts[-1] += 1
        self._file.write(f"{self._indent()}{json.dumps(name, ensure_ascii=False)}: ")

    def _emit_leaf(self, name: str, value_type: ValueType, value: Any):
        if value_type is ValueType.BYTES:
            value = base64.b64encode(value).decode("ascii")
        self._begin_member(name)
        self._file.write(json.dumps(value, ensure_ascii=False))

    def _emit_start(self, name: str):
        self._begin_member(name)
        self._file.write("{")
        self._member_counts.append(0)

    def _close_object(self):
        count = self._member_counts.pop()
        if count:
            self._file.write(f"\n{self._indent()}}}")
        else:
            self._file.write("}")

    def _emit_end(self, name: str):
        self._close_object()

    def _finish(self):
        self._ensure_started()
        self._close_object()
        self._file.write("\n")
        self._file.flush()
