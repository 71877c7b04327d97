"""Generic traversal: walk any document, or copy it from one backend to another."""

from __future__ import annotations

import logging
from typing import Iterator

from .element import DataElement
from .formats import FormatArg, Source, open_reader, open_writer
from .reader import Reader
from .values import infer_type
from .writer import Writer

logger = logging.getLogger(__name__)

DEFAULT_ITEM_NAME = "item"


def iter_elements(reader: Reader) -> Iterator[tuple[int, DataElement]]:
    """Yield ``(depth, element)`` for every remaining element of ``reader``.

    A block's start and end are reported at the depth of the block itself,
    its entries one level deeper.
    """
    while reader.peek_next() is not None:
        element = reader.read_next()
        if element.is_start_block:
            yield reader.depth - 1, element
        else:
            yield reader.depth, element


def copy_elements(reader: Reader, writer: Writer, item_name: str = DEFAULT_ITEM_NAME) -> int:
    """Re-emit every remaining element of ``reader`` through ``writer``.

    Leaf types are inferred from the parsed content, so text-based sources
    (XML) copy as strings. Anonymous entries are written as ``item_name``.
    Returns the number of elements copied.
    """
    count = 0
    for _, element in iter_elements(reader):
        name = element.name if element.name is not None else item_name
        if element.is_start_block:
            writer.write_start_block(name)
        elif element.is_end_block:
            writer.write_end_block()
        else:
            writer.write_value(name, infer_type(element.content), element.content)
        count += 1
    return count


def convert(
    source: Source,
    dest: Source,
    from_format: FormatArg = None,
    to_format: FormatArg = None,
    item_name: str = DEFAULT_ITEM_NAME,
) -> int:
    """Convert a document between formats; formats default to detection by extension."""
    with open_reader(source, from_format) as reader, open_writer(dest, to_format) as writer:
        count = copy_elements(reader, writer, item_name)
    logger.info("Converted %d elements from %s to %s", count, source, dest)
    return count
