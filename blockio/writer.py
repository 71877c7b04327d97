"""Backend-independent writer: open-block stack and typed leaf writes.

Backends subclass :class:`Writer` and implement the three ``_emit_*`` hooks.
Values are validated with :func:`~blockio.values.coerce` before a hook is
called, so a rejected value leaves nothing half-written.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from .errors import FormatError, IOFailure, UnbalancedBlockError
from .values import ValueType, coerce

logger = logging.getLogger(__name__)


class Writer:
    """Stateful cursor producing the element stream of one document."""

    def __init__(self):
        self._block_stack: list[str] = []
        self._blocks_written = 0
        self._entry_counts: list[int] = [0]
        self._last_entry: Optional[str] = None
        self._closed = False

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        if exc_type is None:
            self.close()
        else:
            self._close_quietly()

    # --- Backend hooks ---

    def _emit_leaf(self, name: str, value_type: ValueType, value: Any):
        raise NotImplementedError

    def _emit_start(self, name: str):
        raise NotImplementedError

    def _emit_end(self, name: str):
        raise NotImplementedError

    def _finish(self):
        """Complete the document (closing wrappers, flushing)."""

    def _release(self):
        """Release the wrapped transport. Called at most once."""

    def _check_name(self, name: str):
        if not isinstance(name, str) or not name:
            raise FormatError(f"Element name must be a non-empty string, got {name!r}")

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
    def blocks_written(self) -> int:
        """Number of start and end markers written so far."""
        return self._blocks_written

    @property
    def entries_written(self) -> int:
        """Number of entries written directly into the innermost open block."""
        return self._entry_counts[-1]

    @property
    def last_entry(self) -> Optional[str]:
        """Name of the most recent entry completed at the current depth."""
        return self._last_entry

    @property
    def _context(self) -> str:
        return "/".join(self._block_stack) if self._block_stack else "root"

    def close(self):
        """Finish the document and release the transport.

        Raises :class:`UnbalancedBlockError` (after releasing the transport)
        if blocks are still open. Safe to call more than once.
        """
        if self._closed:
            return
        if self._block_stack:
            unclosed = len(self._block_stack)
            context = self._context
            self._close_quietly()
            raise UnbalancedBlockError(
                f"Writer closed with {unclosed} unclosed block(s)", context
            )
        self._closed = True
        try:
            self._finish()
        except OSError as e:
            self._release_quietly()
            raise IOFailure(f"Failed to finish document: {e}") from e
        try:
            self._release()
        except OSError as e:
            raise IOFailure(f"Failed to close {type(self).__name__}: {e}") from e
        logger.debug("Closed %s after %d block markers", type(self).__name__, self._blocks_written)

    def _close_quietly(self):
        if self._closed:
            return
        self._closed = True
        self._release_quietly()

    def _release_quietly(self):
        try:
            self._release()
        except OSError:
            logger.debug("Ignoring close failure of %s", type(self).__name__, exc_info=True)

    def _guard(self):
        if self._closed:
            raise IOFailure(f"{type(self).__name__} is closed")

    # --- Blocks ---

    def write_start_block(self, name: str):
        self._guard()
        self._check_name(name)
        try:
            self._emit_start(name)
        except OSError as e:
            raise IOFailure(f"Write failed: {e}") from e
        self._block_stack.append(name)
        self._blocks_written += 1
        self._entry_counts[-1] += 1
        self._entry_counts.append(0)
        self._last_entry = None

    def write_end_block(self):
        """Close the most recently opened block; its name comes from the stack."""
        self._guard()
        if not self._block_stack:
            raise UnbalancedBlockError("End block written with no open block")
        name = self._block_stack.pop()
        try:
            self._emit_end(name)
        except OSError as e:
            raise IOFailure(f"Write failed: {e}") from e
        self._blocks_written += 1
        self._entry_counts.pop()
        self._last_entry = name

    # --- Typed leaf writes ---

    def _write_leaf(self, name: str, value_type: ValueType, value: Any):
        self._guard()
        self._check_name(name)
        value = coerce(value_type, value)
        try:
            self._emit_leaf(name, value_type, value)
        except OSError as e:
            raise IOFailure(f"Write failed: {e}") from e
        self._entry_counts[-1] += 1
        self._last_entry = name

    def write_value(self, name: str, value_type: ValueType, value: Any):
        """Write a leaf whose type is chosen at runtime."""
        self._write_leaf(name, value_type, value)

    def write_boolean(self, name: str, v: bool):
        self._write_leaf(name, ValueType.BOOLEAN, v)

    def write_byte(self, name: str, v: int):
        self._write_leaf(name, ValueType.BYTE, v)

    def write_char(self, name: str, v: str):
        self._write_leaf(name, ValueType.CHAR, v)

    def write_double(self, name: str, v: float):
        self._write_leaf(name, ValueType.DOUBLE, v)

    def write_float(self, name: str, v: float):
        self._write_leaf(name, ValueType.FLOAT, v)

    def write_int(self, name: str, v: int):
        self._write_leaf(name, ValueType.INT, v)

    def write_long(self, name: str, v: int):
        self._write_leaf(name, ValueType.LONG, v)

    def write_short(self, name: str, v: int):
        self._write_leaf(name, ValueType.SHORT, v)

    def write_string(self, name: str, s: str):
        self._write_leaf(name, ValueType.STRING, s)

    def write_bytes(self, name: str, b: bytes):
        self._write_leaf(name, ValueType.BYTES, b)
