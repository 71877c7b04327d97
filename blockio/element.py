"""Parsed document elements: leaves, block starts and block ends."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Optional

import numpy as np


class ElementKind(Enum):
    LEAF = auto()
    START_BLOCK = auto()
    END_BLOCK = auto()


@dataclass(frozen=True, eq=False)
class DataElement:
    """One token of a document.

    ``name`` is ``None`` for anonymous entries (bare strings or anonymous
    groups inside an ASCII block, JSON array items). ``content`` holds the
    leaf payload and is always ``None`` for block markers.
    """

    kind: ElementKind
    name: Optional[str] = None
    content: Any = None

    @classmethod
    def leaf(cls, name: Optional[str], content: Any) -> "DataElement":
        return cls(ElementKind.LEAF, name, content)

    @classmethod
    def start(cls, name: Optional[str]) -> "DataElement":
        return cls(ElementKind.START_BLOCK, name)

    @classmethod
    def end(cls, name: Optional[str]) -> "DataElement":
        return cls(ElementKind.END_BLOCK, name)

    @property
    def is_leaf(self) -> bool:
        return self.kind is ElementKind.LEAF

    @property
    def is_start_block(self) -> bool:
        return self.kind is ElementKind.START_BLOCK

    @property
    def is_end_block(self) -> bool:
        return self.kind is ElementKind.END_BLOCK

    def __eq__(self, other):
        if not isinstance(other, DataElement):
            return NotImplemented
        if self.kind is not other.kind or self.name != other.name:
            return False
        # ASCII integer arrays arrive as numpy arrays
        if isinstance(self.content, np.ndarray) or isinstance(other.content, np.ndarray):
            return np.array_equal(self.content, other.content)
        return self.content == other.content

    def __hash__(self):
        return hash((self.kind, self.name))

    def __str__(self) -> str:
        label = self.name if self.name is not None else "<anonymous>"
        if self.is_start_block:
            return f"{label} {{"
        if self.is_end_block:
            return f"}} {label}"
        return f"{label} = {self.content!r}"
