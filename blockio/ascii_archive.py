"""
ascii_archive.py - reader and writer for the blockio ASCII archive format

Format specification:
- Leaves: name = value
- Integers: 42, -7
- Floats: 3.25, 1e+16, nan, inf, -inf
- Booleans: true, false
- Strings and chars: name = "value" (with escape sequences)
- Byte ranges: name = [0, 17, 255]
- Blocks: name { ... }
- Anonymous entries inside a block: { ... } groups and bare "strings"
- Comments: # to end of line

Example:
    Employee {
        id = 22
        name = "No One"
        cities {
            city = "City A"
        }
    }
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any, Optional, TextIO, Union

import numpy as np

from .element import DataElement
from .errors import FormatError, IOFailure, ParseError
from .reader import Reader
from .values import ValueType, format_number
from .writer import Writer

_NAME_RE = re.compile(r"^[A-Za-z0-9_.\-]+$")
_ESCAPE_MAP = {"n": "\n", "t": "\t", "r": "\r", "\\": "\\", '"': '"'}
_BARE_WORDS = {"true": True, "false": False, "nan": float("nan"), "inf": float("inf")}


def _is_name_char(c: str) -> bool:
    return c != "" and (c.isalnum() or c in "_-.")


class AsciiReader(Reader):
    """Reader for the blockio ASCII archive format."""

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
        self._line_num = 1
        self._lookahead = ""
        self._group_stack: list[Optional[str]] = []

    def _release(self):
        if self._owns_file:
            self._file.close()

    @property
    def _location(self) -> str:
        if not self._group_stack:
            return "root"
        return "/".join(n if n is not None else "{}" for n in self._group_stack)

    def _error(self, message: str) -> ParseError:
        return ParseError(message, self._line_num, self._location)

    # --- Character stream ---

    def _peek(self) -> str:
        if not self._lookahead:
            try:
                self._lookahead = self._file.read(1)
            except UnicodeDecodeError as e:
                raise self._error(f"Invalid text encoding: {e}")
        return self._lookahead

    def _get(self) -> str:
        c = self._peek()
        self._lookahead = ""
        return c

    def _skip_whitespace_and_comments(self):
        """Skip whitespace and # comments."""
        while True:
            c = self._peek()
            if c == "":
                return
            if c in " \t\r":
                self._get()
            elif c == "\n":
                self._get()
                self._line_num += 1
            elif c == "#":
                # Skip to end of line
                while self._peek() not in ("", "\n"):
                    self._get()
            else:
                return

    def _expect_char(self, expected: str):
        c = self._get()
        if c != expected:
            raise self._error(f"Expected '{expected}', got '{c}'")

    def _read_identifier(self) -> str:
        """Read a name (a-z, A-Z, 0-9, _, -, .)."""
        result = []
        while _is_name_char(self._peek()):
            result.append(self._get())
        return "".join(result)

    # --- Values ---

    def _read_number(self) -> Union[int, float]:
        """Read a numeric value."""
        result = []
        is_float = False

        # Handle negative
        if self._peek() == "-":
            result.append(self._get())
            if self._peek().isalpha():
                word = self._read_identifier()
                if word == "inf":
                    return float("-inf")
                raise self._error(f"Invalid number: -{word}")

        while True:
            c = self._peek()
            if c.isdigit():
                result.append(self._get())
            elif c in ".eE" and c != "":
                is_float = True
                result.append(self._get())
            elif c in "+-" and c != "":
                # Only valid after e/E
                if result and result[-1] in "eE":
                    result.append(self._get())
                else:
                    break
            else:
                break

        value_str = "".join(result)
        try:
            if is_float:
                return float(value_str)
            return int(value_str)
        except ValueError:
            raise self._error(f"Invalid number: '{value_str}'")

    def _read_quoted_string(self) -> str:
        """Read a quoted string with escape sequences."""
        self._expect_char('"')
        result = []

        while True:
            c = self._get()
            if c == "":
                raise self._error("Unterminated string")
            if c == '"':
                break
            if c == "\\":
                escaped = self._get()
                result.append(_ESCAPE_MAP.get(escaped, escaped))
            else:
                if c == "\n":
                    self._line_num += 1
                result.append(c)

        return "".join(result)

    def _read_array(self) -> np.ndarray:
        """Read an array [v1, v2, ...]."""
        self._expect_char("[")
        values = []

        self._skip_whitespace_and_comments()

        if self._peek() == "]":
            self._get()
            return np.array([], dtype=np.int64)

        while True:
            self._skip_whitespace_and_comments()
            values.append(self._read_number())
            self._skip_whitespace_and_comments()

            c = self._peek()
            if c == "]":
                self._get()
                break
            elif c == ",":
                self._get()
            else:
                raise self._error(f"Expected ',' or ']', got '{c}'")

        return np.array(values)

    def _read_value(self) -> Any:
        """Read a value (number, bare word, string, or array)."""
        self._skip_whitespace_and_comments()
        c = self._peek()

        if c == '"':
            return self._read_quoted_string()
        if c == "[":
            return self._read_array()
        if c.isalpha():
            word = self._read_identifier()
            if word not in _BARE_WORDS:
                raise self._error(f"Invalid value: '{word}'")
            return _BARE_WORDS[word]
        return self._read_number()

    # --- Elements ---

    def _parse_next(self) -> Optional[DataElement]:
        self._skip_whitespace_and_comments()
        c = self._peek()

        if c == "":
            if self._group_stack:
                raise self._error("Unexpected end of archive inside a group")
            return None

        if c == "}":
            self._get()
            if not self._group_stack:
                raise self._error("Unexpected '}' outside of any group")
            return DataElement.end(self._group_stack.pop())

        if self._group_stack:
            # Anonymous entries are only allowed inside a group
            if c == "{":
                self._get()
                self._group_stack.append(None)
                return DataElement.start(None)
            if c == '"':
                return DataElement.leaf(None, self._read_quoted_string())

        name = self._read_identifier()
        if not name:
            raise self._error(f"Expected field name, got '{c}'")

        self._skip_whitespace_and_comments()
        c = self._peek()

        if c == "=":
            self._get()
            return DataElement.leaf(name, self._read_value())
        if c == "{":
            self._get()
            self._group_stack.append(name)
            return DataElement.start(name)
        raise self._error(f"Expected '=' or '{{', got '{c}'")


class AsciiWriter(Writer):
    """Writer for the blockio ASCII archive format."""

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
        self._indent_level = 0

    def _release(self):
        if self._owns_file:
            self._file.close()

    def _finish(self):
        self._file.flush()

    def _check_name(self, name: str):
        super()._check_name(name)
        if not _NAME_RE.match(name):
            raise FormatError(
                f"Name '{name}' is not valid in an ASCII archive "
                "(letters, digits, '_', '-' and '.' only)"
            )

    def _indent(self) -> str:
        return " " * (self._indent_level * self._indent_size)

    def _format_string(self, value: str) -> str:
        escaped = value.replace("\\", "\\\\").replace('"', '\\"')
        escaped = escaped.replace("\n", "\\n").replace("\t", "\\t").replace("\r", "\\r")
        return f'"{escaped}"'

    def _format_array(self, data: bytes) -> str:
        values = ", ".join(str(v) for v in np.frombuffer(data, dtype=np.uint8))
        return f"[{values}]"

    def _format_value(self, value_type: ValueType, value: Any) -> str:
        if value_type is ValueType.BOOLEAN:
            return "true" if value else "false"
        if value_type is ValueType.DOUBLE or value_type is ValueType.FLOAT:
            return format_number(value)
        if value_type is ValueType.STRING or value_type is ValueType.CHAR:
            return self._format_string(value)
        if value_type is ValueType.BYTES:
            return self._format_array(value)
        return str(int(value))

    def _emit_leaf(self, name: str, value_type: ValueType, value: Any):
        self._file.write(f"{self._indent()}{name} = {self._format_value(value_type, value)}\n")

    def _emit_start(self, name: str):
        self._file.write(f"{self._indent()}{name} {{\n")
        self._indent_level += 1

    def _emit_end(self, name: str):
        self._indent_level -= 1
        self._file.write(f"{self._indent()}}}\n")
