"""Backend-independent reader: open-block stack, peek buffer and typed reads.

Backends subclass :class:`Reader` and implement :meth:`Reader._parse_next`,
which produces the next :class:`~blockio.element.DataElement` from the wrapped
transport (or ``None`` at the end of the document), and optionally
:meth:`Reader._release` to close the transport.
"""

from __future__ import annotations

import logging
from typing import Optional

from .element import DataElement, ElementKind
from .errors import IOFailure, StructureError, UnbalancedBlockError
from .values import ValueType, convert

logger = logging.getLogger(__name__)


class Reader:
    """Stateful cursor over the element stream of one document."""

    def __init__(self):
        self._block_stack: list[str] = []
        self._peeked: Optional[DataElement] = None
        self._current: Optional[DataElement] = None
        self._closed = False

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        if exc_type is None:
            self.close()
        else:
            self._close_quietly()

    # --- Backend hooks ---

    def _parse_next(self) -> Optional[DataElement]:
        raise NotImplementedError

    def _release(self):
        """Release the wrapped transport. Called at most once."""

    def _empty_block(self, element: DataElement) -> Optional[DataElement]:
        """Reinterpret a leaf as an empty block, for formats where they look alike."""
        return None

    # --- Session ---

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def depth(self) -> int:
        return len(self._block_stack)

    @property
    def open_blocks(self) -> tuple[str, ...]:
        return tuple(self._block_stack)

    @property
    def current_element(self) -> Optional[DataElement]:
        """The element returned by the last consuming read."""
        return self._current

    @property
    def current_name(self) -> Optional[str]:
        return self._current.name if self._current is not None else None

    @property
    def _context(self) -> str:
        return "/".join(str(n) for n in self._block_stack) if self._block_stack else "root"

    def close(self):
        """Release the transport and verify every block was closed.

        Safe to call more than once; only the first call does anything.
        """
        if self._closed:
            return
        self._closed = True
        try:
            self._release()
        except OSError as e:
            raise IOFailure(f"Failed to close {type(self).__name__}: {e}") from e
        logger.debug("Closed %s at depth %d", type(self).__name__, self.depth)
        if self._block_stack:
            raise UnbalancedBlockError(
                f"Reader closed with {len(self._block_stack)} unclosed block(s)",
                self._context,
            )

    def _close_quietly(self):
        if self._closed:
            return
        self._closed = True
        try:
            self._release()
        except OSError:
            logger.debug("Ignoring close failure of %s", type(self).__name__, exc_info=True)

    # --- Element stream ---

    def _fetch(self) -> Optional[DataElement]:
        if self._closed:
            raise IOFailure(f"{type(self).__name__} is closed")
        try:
            return self._parse_next()
        except OSError as e:
            raise IOFailure(f"Read failed: {e}") from e

    def _next_element(self) -> DataElement:
        if self._peeked is not None:
            element = self._peeked
            self._peeked = None
        else:
            element = self._fetch()
            if element is None:
                raise StructureError("Unexpected end of document", self._context)
        self._current = element
        return element

    def peek_next(self) -> Optional[DataElement]:
        """Return the next element without consuming it.

        Repeated calls return the same element until a consuming read takes
        it. Returns ``None`` at the end of the document.
        """
        if self._peeked is None:
            self._peeked = self._fetch()
        return self._peeked

    def read_next(self) -> DataElement:
        """Consume the next element whatever its kind or name.

        Start and end blocks still update the open-block stack, so a loop of
        ``read_next`` calls that stops at an end block leaves the reader at the
        enclosing depth.
        """
        element = self._next_element()
        if element.is_start_block:
            self._block_stack.append(element.name)
        elif element.is_end_block:
            self._pop_block(element)
        return element

    def read_start_block(self, name: str) -> DataElement:
        element = self._next_element()
        if element.is_leaf and element.name == name:
            element = self._empty_block(element) or element
            self._current = element
        self._expect(element, ElementKind.START_BLOCK, name)
        self._block_stack.append(name)
        return element

    def read_end_block(self):
        if not self._block_stack:
            raise UnbalancedBlockError("End block read with no open block", self._context)
        element = self._next_element()
        if not element.is_end_block:
            raise StructureError(
                f"Expected end of block '{self._block_stack[-1]}', got {element}",
                self._context,
            )
        self._pop_block(element)

    def _pop_block(self, element: DataElement):
        if not self._block_stack:
            raise UnbalancedBlockError(
                f"End of block '{element.name}' with no open block", self._context
            )
        top = self._block_stack[-1]
        if element.name != top:
            raise UnbalancedBlockError(
                f"End of block '{element.name}' does not match open block '{top}'",
                self._context,
            )
        self._block_stack.pop()

    def _expect(self, element: DataElement, kind: ElementKind, name: str):
        if element.kind is not kind:
            raise StructureError(
                f"Expected {kind.name.lower()} '{name}', got {element}", self._context
            )
        if element.name != name:
            raise StructureError(
                f"Expected {kind.name.lower()} '{name}', got '{element.name}'",
                self._context,
            )

    # --- Typed leaf reads ---

    def _read_leaf(self, name: str, value_type: ValueType):
        element = self._next_element()
        self._expect(element, ElementKind.LEAF, name)
        return convert(value_type, element.content)

    def read_boolean(self, name: str) -> bool:
        return self._read_leaf(name, ValueType.BOOLEAN)

    def read_byte(self, name: str) -> int:
        return self._read_leaf(name, ValueType.BYTE)

    def read_char(self, name: str) -> str:
        return self._read_leaf(name, ValueType.CHAR)

    def read_double(self, name: str) -> float:
        return self._read_leaf(name, ValueType.DOUBLE)

    def read_float(self, name: str) -> float:
        return self._read_leaf(name, ValueType.FLOAT)

    def read_int(self, name: str) -> int:
        return self._read_leaf(name, ValueType.INT)

    def read_long(self, name: str) -> int:
        return self._read_leaf(name, ValueType.LONG)

    def read_short(self, name: str) -> int:
        return self._read_leaf(name, ValueType.SHORT)

    def read_string(self, name: str) -> str:
        return self._read_leaf(name, ValueType.STRING)

    def read_bytes(self, name: str) -> bytes:
        return self._read_leaf(name, ValueType.BYTES)
