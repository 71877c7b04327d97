"""Factories and self-describing types: how application values meet readers and writers.

A :class:`Factory` is a stateless strategy that encodes and decodes one type.
A :class:`Transferable` type encodes and decodes itself. Both write exactly one
entry per value, conventionally a block named after the type, and advertise
that name as ``block_name`` so collection helpers and the
:class:`FactoryRegistry` can check or dispatch on it.
"""

from __future__ import annotations

import logging
from typing import Any, ClassVar, Generic, Optional, TypeVar, Union

from .errors import StructureError, UnsupportedOperation
from .reader import Reader
from .writer import Writer

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Factory(Generic[T]):
    """Encode/decode strategy for values of one type.

    Subclasses implement :meth:`encode` and :meth:`decode`. A factory able to
    load data into an existing object sets ``supports_reload = True`` and
    overrides :meth:`decode_into`.
    """

    block_name: ClassVar[Optional[str]] = None
    supports_reload: ClassVar[bool] = False

    def encode(self, writer: Writer, value: T):
        """Write ``value`` as one entry."""
        raise NotImplementedError(f"{type(self).__name__} must implement encode()")

    def decode(self, reader: Reader) -> T:
        """Read one entry and return a new value."""
        raise NotImplementedError(f"{type(self).__name__} must implement decode()")

    def decode_into(self, reader: Reader, value: T) -> T:
        """Read one entry into the existing ``value`` and return it."""
        raise UnsupportedOperation(f"{type(self).__name__} cannot reload an existing object")


class Transferable:
    """A type that writes and reads itself.

    ``write_data`` writes the instance as one entry; the classmethod
    ``read_data`` reads one entry and returns a new instance.
    """

    block_name: ClassVar[Optional[str]] = None

    def write_data(self, writer: Writer):
        raise NotImplementedError(f"{type(self).__name__} must implement write_data()")

    @classmethod
    def read_data(cls, reader: Reader):
        raise NotImplementedError(f"{cls.__name__} must implement read_data()")


class TransferableFactory(Factory):
    """Factory view of a :class:`Transferable` type."""

    def __init__(self, cls: type):
        self.cls = cls

    @property
    def block_name(self) -> Optional[str]:
        return self.cls.block_name

    def encode(self, writer: Writer, value):
        value.write_data(writer)

    def decode(self, reader: Reader):
        return self.cls.read_data(reader)

    def __repr__(self) -> str:
        return f"TransferableFactory({self.cls.__name__})"


Codec = Union[Factory, type]


def as_factory(codec: Codec) -> Factory:
    """Return ``codec`` as a factory; a Transferable class gets wrapped."""
    if isinstance(codec, Factory):
        return codec
    if isinstance(codec, type) and issubclass(codec, Transferable):
        return TransferableFactory(codec)
    raise TypeError(f"Expected a Factory or a Transferable type, got {codec!r}")


class FactoryRegistry:
    """Factories looked up by value type (for writing) and block name (for reading).

    Example:
        registry = FactoryRegistry()
        registry.register(Employee)
        registry.register(SubWidget, SubWidgetFactory())

        registry.encode(writer, employee)
        value = registry.decode(reader)  # dispatches on the next block's name
    """

    def __init__(self):
        self._by_type: dict[type, Factory] = {}
        self._by_name: dict[str, Factory] = {}

    def register(
        self,
        value_type: type,
        factory: Optional[Factory] = None,
        block_name: Optional[str] = None,
    ) -> Factory:
        """Register ``factory`` for ``value_type``.

        Without a factory, ``value_type`` must be :class:`Transferable`. The
        block name defaults to the factory's ``block_name``.
        """
        factory = as_factory(factory if factory is not None else value_type)
        name = block_name or factory.block_name
        if not name:
            raise ValueError(f"No block name given or declared for {value_type.__name__}")
        self._by_type[value_type] = factory
        self._by_name[name] = factory
        logger.debug("Registered %r for %s as block '%s'", factory, value_type.__name__, name)
        return factory

    def __contains__(self, key: Union[type, str]) -> bool:
        return key in self._by_name if isinstance(key, str) else key in self._by_type

    def __len__(self) -> int:
        return len(self._by_type)

    @property
    def block_names(self) -> tuple[str, ...]:
        return tuple(self._by_name)

    def factory_for(self, value_type: type) -> Factory:
        for cls in value_type.__mro__:
            if cls in self._by_type:
                return self._by_type[cls]
        raise UnsupportedOperation(f"No factory registered for {value_type.__name__}")

    def factory_named(self, block_name: str) -> Factory:
        try:
            return self._by_name[block_name]
        except KeyError:
            raise UnsupportedOperation(f"No factory registered for block '{block_name}'") from None

    def encode(self, writer: Writer, value: Any):
        self.factory_for(type(value)).encode(writer, value)

    def decode(self, reader: Reader) -> Any:
        element = reader.peek_next()
        if element is None:
            raise StructureError("Unexpected end of document")
        if not element.is_start_block:
            raise StructureError(f"Expected a block to decode, got {element}")
        if element.name not in self._by_name:
            raise StructureError(f"No factory registered for block '{element.name}'")
        return self._by_name[element.name].decode(reader)
