"""Structured-document I/O: typed leaves and named blocks over interchangeable backends."""

from .ascii_archive import AsciiReader, AsciiWriter
from .binary_archive import BinaryReader, BinaryWriter
from .blocks import (
    read_block,
    read_entries,
    read_string_array,
    read_strings,
    write_block,
    write_entries,
    write_string_array,
    write_strings,
)
from .element import DataElement, ElementKind
from .errors import (
    BlockIOError,
    FormatError,
    IOFailure,
    ParseError,
    StructureError,
    UnbalancedBlockError,
    UnsupportedOperation,
)
from .factory import Factory, FactoryRegistry, Transferable
from .formats import Format, detect_format, dump, dumps, load, loads, open_reader, open_writer
from .json_archive import JsonReader, JsonWriter
from .reader import Reader
from .transfer import copy_elements, iter_elements
from .values import ValueType
from .writer import Writer
from .xml_archive import XmlReader, XmlWriter

__version__ = "0.1.0"
