"""Collection helpers: ordered sequences and string maps stored as named blocks.

Every helper writes one block and reads it back with a peek-driven loop, so the
element count is never stored; the end of the block ends the collection.
"""

from __future__ import annotations

import json
from typing import Iterable, Mapping, Optional

from .errors import FormatError, StructureError
from .factory import Codec, Factory, as_factory
from .reader import Reader
from .values import ValueType, convert
from .writer import Writer


def write_block(
    writer: Writer,
    block_name: str,
    elements: Iterable,
    factory: Optional[Codec] = None,
):
    """Write ``elements`` as the entries of block ``block_name``.

    Each element is written by ``factory`` if given, else by its own
    ``write_data``. Every element must be written as exactly one balanced
    entry, named after the codec's ``block_name`` when it declares one.

    Example:
        write_block(writer, "subObjs", widget.sub_widgets, SubWidgetFactory())
        write_block(writer, "employees", employees)  # Transferable elements
    """
    codec = as_factory(factory) if factory is not None else None
    writer.write_start_block(block_name)
    depth = writer.depth
    for element in elements:
        entries = writer.entries_written
        if codec is not None:
            codec.encode(writer, element)
            expected = codec.block_name
        else:
            element.write_data(writer)
            expected = getattr(element, "block_name", None)
        what = type(element).__name__
        if writer.depth != depth:
            raise StructureError(
                f"Writing {what} left the writer at depth {writer.depth}, expected {depth}",
                "/".join(writer.open_blocks),
            )
        written = writer.entries_written - entries
        if written != 1:
            raise StructureError(
                f"Writing {what} produced {written} entries in block '{block_name}', expected 1"
            )
        if expected is not None and writer.last_entry != expected:
            raise StructureError(
                f"Writing {what} produced entry '{writer.last_entry}' in block "
                f"'{block_name}', expected '{expected}'"
            )
    writer.write_end_block()


def read_block(
    reader: Reader,
    block_name: str,
    codec: Codec,
    into: Optional[list] = None,
) -> list:
    """Read the entries of block ``block_name`` in document order.

    Args:
        reader: Reader positioned before the block
        block_name: Name of the enclosing block
        codec: :class:`~blockio.factory.Factory` or Transferable type
            decoding one entry
        into: Optional list to append to (a new list by default)

    Returns:
        The list of decoded values

    If the codec declares a ``block_name``, every entry must carry that name.
    """
    factory: Factory = as_factory(codec)
    values = into if into is not None else []
    reader.read_start_block(block_name)
    while True:
        element = reader.peek_next()
        if element is None or element.is_end_block:
            break
        # A leaf here is a leaf codec's entry or an empty XML block
        expected = factory.block_name
        if expected is not None and element.name != expected:
            raise StructureError(
                f"Expected entry '{expected}' in block '{block_name}', got {element}"
            )
        values.append(factory.decode(reader))
    reader.read_end_block()
    return values


def write_strings(writer: Writer, block_name: str, element_name: str, values: Iterable[str]):
    """Write a block of string leaves all named ``element_name``."""
    writer.write_start_block(block_name)
    for value in values:
        writer.write_string(element_name, value)
    writer.write_end_block()


def read_strings(
    reader: Reader,
    block_name: str,
    element_name: str,
    into: Optional[list] = None,
) -> list[str]:
    values = into if into is not None else []
    reader.read_start_block(block_name)
    while True:
        element = reader.peek_next()
        if element is None or element.is_end_block:
            break
        values.append(reader.read_string(element_name))
    reader.read_end_block()
    return values


def write_entries(writer: Writer, block_name: str, mapping: Mapping[str, str]):
    """Write a string map as a block whose leaf names are the keys."""
    writer.write_start_block(block_name)
    for key, value in mapping.items():
        writer.write_string(key, value)
    writer.write_end_block()


def read_entries(reader: Reader, block_name: str) -> dict[str, str]:
    """Read a block written by :func:`write_entries`.

    Leaf names are not known in advance, so entries are taken with
    ``read_next`` until the block's end.
    """
    entries: dict[str, str] = {}
    reader.read_start_block(block_name)
    while True:
        element = reader.read_next()
        if element.is_end_block:
            break
        if not element.is_leaf or element.name is None:
            raise StructureError(f"Expected a named leaf in block '{block_name}', got {element}")
        entries[element.name] = convert(ValueType.STRING, element.content)
    return entries


def write_string_array(writer: Writer, name: str, values: Iterable[str]):
    """Pack a list of strings into one string leaf: ``["a", "b \\"q\\""]``."""
    values = list(values)
    if not all(isinstance(v, str) for v in values):
        raise FormatError(f"String array '{name}' may only hold strings")
    writer.write_string(name, json.dumps(values, ensure_ascii=False))


def read_string_array(reader: Reader, name: str) -> list[str]:
    text = reader.read_string(name)
    try:
        values = json.loads(text)
    except json.JSONDecodeError as e:
        raise FormatError(f"Malformed string array '{name}': {e}")
    if not isinstance(values, list) or not all(isinstance(v, str) for v in values):
        raise FormatError(f"Malformed string array '{name}': {text!r}")
    return values
