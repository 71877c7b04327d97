"""
formats.py - backend selection and one-call load/dump helpers

Usage:
    import blockio

    # Self-describing values
    blockio.dump(employee, "employee.json")
    employee = blockio.load("employee.json", Employee)

    # Values with a separate factory
    blockio.dump(sub, "sub.xml", factory=SubWidgetFactory())
    sub = blockio.load("sub.xml", SubWidgetFactory())

    # In-memory documents
    text = blockio.dumps(employee, format="ascii")
    employee = blockio.loads(text, Employee)

The backend is picked from the file extension unless a format is given:
.bin (binary), .json (JSON), .xml (XML), anything else ASCII.
"""

from __future__ import annotations

import io
import logging
from enum import Enum
from pathlib import Path
from typing import IO, Any, Optional, Union

from .ascii_archive import AsciiReader, AsciiWriter
from .binary_archive import BinaryReader, BinaryWriter
from .errors import StructureError
from .factory import Codec, as_factory
from .json_archive import JsonReader, JsonWriter
from .reader import Reader
from .writer import Writer
from .xml_archive import XmlReader, XmlWriter

logger = logging.getLogger(__name__)


class Format(Enum):
    ASCII = "ascii"
    BINARY = "binary"
    JSON = "json"
    XML = "xml"


DEFAULT_FORMAT = Format.ASCII

EXTENSIONS = {
    ".bin": Format.BINARY,
    ".json": Format.JSON,
    ".xml": Format.XML,
    ".cfg": Format.ASCII,
    ".dat": Format.ASCII,
    ".txt": Format.ASCII,
}

_READERS = {
    Format.ASCII: AsciiReader,
    Format.BINARY: BinaryReader,
    Format.JSON: JsonReader,
    Format.XML: XmlReader,
}

_WRITERS = {
    Format.ASCII: AsciiWriter,
    Format.BINARY: BinaryWriter,
    Format.JSON: JsonWriter,
    Format.XML: XmlWriter,
}

Source = Union[str, Path, IO]
FormatArg = Optional[Union[Format, str]]


def detect_format(source: Source) -> Format:
    """Pick a format for a path or file object.

    Paths and named file objects are matched by extension. Unnamed file
    objects are binary if opened in binary mode, otherwise ASCII.
    """
    if isinstance(source, (str, Path)):
        return EXTENSIONS.get(Path(source).suffix.lower(), DEFAULT_FORMAT)

    name = getattr(source, "name", None)
    if isinstance(name, str) and Path(name).suffix.lower() in EXTENSIONS:
        return EXTENSIONS[Path(name).suffix.lower()]

    if "b" in getattr(source, "mode", "") or isinstance(source, (io.RawIOBase, io.BufferedIOBase)):
        return Format.BINARY
    return DEFAULT_FORMAT


def sniff_format(data: Union[str, bytes]) -> Format:
    """Guess the format of an in-memory document from its first character."""
    if isinstance(data, (bytes, bytearray)):
        head = bytes(data).lstrip()[:1]
        if head == b"<":
            return Format.XML
        if head == b"{":
            return Format.JSON
        return Format.BINARY
    head = data.lstrip()[:1]
    if head == "<":
        return Format.XML
    if head == "{":
        return Format.JSON
    return Format.ASCII


def _resolve(format: FormatArg) -> Optional[Format]:
    if format is None or isinstance(format, Format):
        return format
    return Format(format.lower())


def open_reader(source: Source, format: FormatArg = None, **options) -> Reader:
    """Open a reader on a path or file object.

    Args:
        source: File path (str or Path) or file-like object
        format: Format or format name; detected from ``source`` if omitted
        **options: Backend options (``encoding``, ``chunk_size``)

    Returns:
        A reader for the selected backend; use it as a context manager
    """
    fmt = _resolve(format) or detect_format(source)
    reader = _READERS[fmt](source, **options)
    logger.debug("Opened %s reader on %s", fmt.value, source)
    return reader


def open_writer(dest: Source, format: FormatArg = None, **options) -> Writer:
    """Open a writer on a path or file object.

    Args:
        dest: File path (str or Path) or file-like object
        format: Format or format name; detected from ``dest`` if omitted
        **options: Backend options (``indent_size``, ``encoding``, ``root_tag``)

    Returns:
        A writer for the selected backend; use it as a context manager
    """
    fmt = _resolve(format) or detect_format(dest)
    writer = _WRITERS[fmt](dest, **options)
    logger.debug("Opened %s writer on %s", fmt.value, dest)
    return writer


def _encode(writer: Writer, value: Any, factory: Optional[Codec]):
    if factory is not None:
        as_factory(factory).encode(writer, value)
    else:
        value.write_data(writer)


def _decode(reader: Reader, codec: Codec) -> Any:
    value = as_factory(codec).decode(reader)
    trailing = reader.peek_next()
    if trailing is not None:
        raise StructureError(f"Unexpected content after the decoded value: {trailing}")
    return value


def dump(
    value: Any,
    dest: Source,
    factory: Optional[Codec] = None,
    format: FormatArg = None,
    **options,
):
    """Write one value to a document.

    Args:
        value: Value to write; must be Transferable unless ``factory`` is given
        dest: File path (str or Path) or file-like object
        factory: Factory writing ``value``
        format: Format or format name; detected from ``dest`` if omitted
        **options: Backend options, e.g. ``indent_size`` (default: 4)

    Example:
        blockio.dump(employee, "employee.cfg")
        blockio.dump(employee, "employee.bin")  # Binary format
    """
    with open_writer(dest, format, **options) as writer:
        _encode(writer, value, factory)


def load(source: Source, codec: Codec, format: FormatArg = None, **options) -> Any:
    """Read one value from a document.

    Args:
        source: File path (str or Path) or file-like object
        codec: Factory or Transferable type decoding the value
        format: Format or format name; detected from ``source`` if omitted

    Returns:
        The decoded value

    Example:
        employee = blockio.load("employee.json", Employee)

        with open("sub.bin", "rb") as f:
            sub = blockio.load(f, SubWidgetFactory())
    """
    with open_reader(source, format, **options) as reader:
        return _decode(reader, codec)


def dumps(
    value: Any,
    factory: Optional[Codec] = None,
    format: FormatArg = DEFAULT_FORMAT,
    **options,
) -> Union[str, bytes]:
    """Write one value to an in-memory document.

    Returns ``bytes`` for the binary format and ``str`` otherwise.

    Example:
        text = blockio.dumps(employee, format="json")
    """
    fmt = _resolve(format) or DEFAULT_FORMAT
    buffer = io.BytesIO() if fmt is Format.BINARY else io.StringIO()
    writer = _WRITERS[fmt](buffer, **options)
    with writer:
        _encode(writer, value, factory)
    return buffer.getvalue()


def loads(data: Union[str, bytes], codec: Codec, format: FormatArg = None, **options) -> Any:
    """Read one value from an in-memory document.

    The format is guessed from the data when not given: ``<`` starts XML,
    ``{`` starts JSON, other bytes are binary and other text is ASCII.

    Example:
        employee = blockio.loads(text, Employee)
    """
    fmt = _resolve(format) or sniff_format(data)
    buffer = io.BytesIO(data) if isinstance(data, (bytes, bytearray)) else io.StringIO(data)
    with _READERS[fmt](buffer, **options) as reader:
        return _decode(reader, codec)
