"""Exception hierarchy shared by every reader, writer and backend."""

from __future__ import annotations


class BlockIOError(Exception):
    """Base class for all blockio errors."""


class StructureError(BlockIOError):
    """Wrong element kind or name, or a broken block structure."""

    def __init__(self, message: str, context: str = None):
        self.context = context
        full_msg = message
        if context:
            full_msg += f" (in {context})"
        super().__init__(full_msg)


class UnbalancedBlockError(StructureError):
    """End-block without a matching start, or a session closed with open blocks."""


class FormatError(BlockIOError, ValueError):
    """Content that cannot be parsed as, or represented by, the requested type."""


class ParseError(FormatError):
    """Malformed document syntax in the underlying wire format."""

    def __init__(self, message: str, line: int = None, context: str = None):
        self.line = line
        self.context = context
        full_msg = message
        if line is not None:
            full_msg = f"Line {line}: {message}"
        if context:
            full_msg += f" (in {context})"
        super().__init__(full_msg)


class IOFailure(BlockIOError, OSError):
    """The wrapped transport failed to read or write."""


class UnsupportedOperation(BlockIOError, NotImplementedError):
    """The operation is not supported by this factory or backend."""
