"""
binary_archive.py - reader and writer for the blockio binary archive format

Binary format specification (little-endian):
- Header: uint32 magic 0x424C4B53 ("BLKS") + uint8 version
- Every element: uint8 type tag + uint64 name length + UTF-8 name
  (length 0 marks an anonymous entry)
- Leaves follow the name with their value:
  - bool/int8/int16/int32/int64/float32/float64: fixed width
  - string/char/bytes: uint64 length + payload
- Start and end markers carry no value; both carry the block name, so a
  reader can check block balance without trusting its own bookkeeping.
"""

from __future__ import annotations

import struct
from pathlib import Path
from typing import Any, BinaryIO, Optional, Union

from .element import DataElement
from .errors import IOFailure, ParseError
from .reader import Reader
from .values import ValueType
from .writer import Writer

# Magic header and version
BINARY_MAGIC = 0x424C4B53  # "BLKS" in ASCII
BINARY_VERSION = 1

# Largest single read of a length-prefixed payload
READ_CHUNK_SIZE = 64 * 1024

# Type tags
TYPE_BOOLEAN = 0x01
TYPE_BYTE = 0x02
TYPE_CHAR = 0x03
TYPE_DOUBLE = 0x04
TYPE_FLOAT = 0x05
TYPE_INT = 0x06
TYPE_LONG = 0x07
TYPE_SHORT = 0x08
TYPE_STRING = 0x09
TYPE_BYTES = 0x0A
TYPE_START = 0x10
TYPE_END = 0x11

# Fixed-width leaves: tag -> struct format
_FIXED = {
    ValueType.BOOLEAN: (TYPE_BOOLEAN, "<?"),
    ValueType.BYTE: (TYPE_BYTE, "<b"),
    ValueType.DOUBLE: (TYPE_DOUBLE, "<d"),
    ValueType.FLOAT: (TYPE_FLOAT, "<f"),
    ValueType.INT: (TYPE_INT, "<i"),
    ValueType.LONG: (TYPE_LONG, "<q"),
    ValueType.SHORT: (TYPE_SHORT, "<h"),
}
_FIXED_BY_TAG = {tag: fmt for tag, fmt in _FIXED.values()}

# Length-prefixed leaves
_SIZED = {
    ValueType.CHAR: TYPE_CHAR,
    ValueType.STRING: TYPE_STRING,
    ValueType.BYTES: TYPE_BYTES,
}


class BinaryReader(Reader):
    """Reader for the blockio binary archive format."""

    def __init__(self, source: Union[str, Path, BinaryIO]):
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
        self._header_read = False
        self._offset = 0

    def _release(self):
        if self._owns_file:
            self._file.close()

    def _read_exact(self, size: int, what: str) -> bytes:
        chunks = []
        remaining = size
        while remaining > 0:
            chunk = self._file.read(min(remaining, READ_CHUNK_SIZE))
            if not chunk:
                break
            chunks.append(chunk)
            remaining -= len(chunk)
        data = b"".join(chunks)
        if remaining > 0:
            raise ParseError(
                f"Unexpected end of binary data while reading {what} at offset {self._offset}"
            )
        self._offset += size
        return data

    def _read_uint8(self) -> int:
        return self._read_exact(1, "type tag")[0]

    def _read_uint64(self) -> int:
        return struct.unpack("<Q", self._read_exact(8, "length"))[0]

    def _ensure_header(self):
        if not self._header_read:
            magic = struct.unpack("<I", self._read_exact(4, "header"))[0]
            if magic != BINARY_MAGIC:
                raise ParseError(f"Invalid binary archive: bad magic number 0x{magic:08X}")
            version = self._read_uint8()
            if version != BINARY_VERSION:
                raise ParseError(f"Unsupported binary archive version: {version}")
            self._header_read = True

    def _read_text(self, what: str) -> str:
        length = self._read_uint64()
        data = self._read_exact(length, what)
        try:
            return data.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ParseError(f"Invalid UTF-8 in {what} at offset {self._offset}: {e}")

    def _parse_next(self) -> Optional[DataElement]:
        self._ensure_header()

        first = self._file.read(1)
        if not first:
            return None
        self._offset += 1
        type_tag = first[0]

        name = self._read_text("name") or None

        if type_tag == TYPE_START:
            return DataElement.start(name)
        if type_tag == TYPE_END:
            return DataElement.end(name)
        if type_tag in _FIXED_BY_TAG:
            fmt = _FIXED_BY_TAG[type_tag]
            data = self._read_exact(struct.calcsize(fmt), f"value of '{name}'")
            return DataElement.leaf(name, struct.unpack(fmt, data)[0])
        if type_tag == TYPE_CHAR or type_tag == TYPE_STRING:
            return DataElement.leaf(name, self._read_text(f"value of '{name}'"))
        if type_tag == TYPE_BYTES:
            length = self._read_uint64()
            return DataElement.leaf(name, self._read_exact(length, f"value of '{name}'"))
        raise ParseError(f"Unknown type tag 0x{type_tag:02X} at offset {self._offset - 1}")


class BinaryWriter(Writer):
    """Writer for the blockio binary archive format."""

    def __init__(self, dest: Union[str, Path, BinaryIO]):
        super().__init__()
        if isinstance(dest, (str, Path)):
            try:
                self._file = open(dest, "wb")
            except OSError as e:
                raise IOFailure(f"Cannot open {dest}: {e}") from e
            self._owns_file = True
        else:
            self._file = dest
            self._owns_file = False
        self._header_written = False

    def _release(self):
        if self._owns_file:
            self._file.close()

    def _ensure_header(self):
        if not self._header_written:
            self._file.write(struct.pack("<I", BINARY_MAGIC))
            self._file.write(struct.pack("<B", BINARY_VERSION))
            self._header_written = True

    def _finish(self):
        # An empty document still gets a header
        self._ensure_header()
        self._file.flush()

    def _write_uint64(self, value: int):
        self._file.write(struct.pack("<Q", value))

    def _write_sized(self, data: bytes):
        self._write_uint64(len(data))
        self._file.write(data)

    def _write_head(self, tag: int, name: str):
        self._ensure_header()
        self._file.write(struct.pack("<B", tag))
        self._write_sized(name.encode("utf-8"))

    def _emit_leaf(self, name: str, value_type: ValueType, value: Any):
        if value_type in _FIXED:
            tag, fmt = _FIXED[value_type]
            self._write_head(tag, name)
            self._file.write(struct.pack(fmt, value))
        else:
            self._write_head(_SIZED[value_type], name)
            self._write_sized(value if value_type is ValueType.BYTES else value.encode("utf-8"))

    def _emit_start(self, name: str):
        self._write_head(TYPE_START, name)

    def _emit_end(self, name: str):
        self._write_head(TYPE_END, name)
