"""Leaf value types and the conversions shared by every backend.

Readers call :func:`convert` to turn element content (native values from the
JSON and binary backends, text from the ASCII and XML backends) into the
requested type. Writers call :func:`coerce` to validate a value before it is
emitted. Both raise :class:`~blockio.errors.FormatError`.
"""

from __future__ import annotations

import base64
import binascii
import math
from enum import Enum
from typing import Any

import numpy as np

from .errors import FormatError


class ValueType(Enum):
    BOOLEAN = "boolean"
    BYTE = "byte"
    CHAR = "char"
    DOUBLE = "double"
    FLOAT = "float"
    INT = "int"
    LONG = "long"
    SHORT = "short"
    STRING = "string"
    BYTES = "bytes"


INTEGER_DTYPES = {
    ValueType.BYTE: np.int8,
    ValueType.SHORT: np.int16,
    ValueType.INT: np.int32,
    ValueType.LONG: np.int64,
}

_BYTES_LIKE = (bytes, bytearray, memoryview)


def _describe(value: Any) -> str:
    text = repr(value)
    if len(text) > 40:
        text = text[:37] + "..."
    return f"{text} ({type(value).__name__})"


# =============================================================================
# Content -> value (reading)
# =============================================================================


def _read_boolean(content: Any) -> bool:
    if isinstance(content, (bool, np.bool_)):
        return bool(content)
    if isinstance(content, str):
        text = content.strip().lower()
        if text == "true":
            return True
        if text == "false":
            return False
    raise FormatError(f"Cannot read {_describe(content)} as boolean")


def _read_integer(value_type: ValueType, content: Any) -> int:
    if isinstance(content, (bool, np.bool_)):
        raise FormatError(f"Cannot read {_describe(content)} as {value_type.value}")
    if isinstance(content, (int, np.integer)):
        value = int(content)
    elif isinstance(content, str):
        try:
            value = int(content.strip(), 10)
        except ValueError:
            raise FormatError(f"Cannot read {_describe(content)} as {value_type.value}")
    else:
        raise FormatError(f"Cannot read {_describe(content)} as {value_type.value}")
    return _check_range(value_type, value)


def _check_range(value_type: ValueType, value: int) -> int:
    info = np.iinfo(INTEGER_DTYPES[value_type])
    if not info.min <= value <= info.max:
        raise FormatError(
            f"{value} out of range for {value_type.value} [{info.min}, {info.max}]"
        )
    return value


def _check_text(value_type: ValueType, value: str) -> str:
    try:
        value.encode("utf-8")
    except UnicodeEncodeError as e:
        raise FormatError(
            f"Cannot write {value!r} as {value_type.value}: {e.reason} at index {e.start}"
        )
    return value


def _read_double(content: Any) -> float:
    if isinstance(content, (bool, np.bool_)):
        raise FormatError(f"Cannot read {_describe(content)} as double")
    if isinstance(content, (int, float, np.integer, np.floating)):
        return float(content)
    if isinstance(content, str):
        try:
            return float(content.strip())
        except ValueError:
            raise FormatError(f"Cannot read {_describe(content)} as double")
    raise FormatError(f"Cannot read {_describe(content)} as double")


def _to_single(value: float) -> float:
    with np.errstate(over="ignore"):
        single = float(np.float32(value))
    if math.isinf(single) and not math.isinf(value):
        raise FormatError(f"{value!r} out of range for float")
    return single


def _read_float(content: Any) -> float:
    return _to_single(_read_double(content))


def _read_char(content: Any) -> str:
    if isinstance(content, str) and len(content) == 1:
        return content
    raise FormatError(f"Expected a single character, got {_describe(content)}")


def _read_string(content: Any) -> str:
    if isinstance(content, str):
        return content
    raise FormatError(f"Cannot read {_describe(content)} as string")


def _read_bytes(content: Any) -> bytes:
    if isinstance(content, _BYTES_LIKE):
        return bytes(content)
    if isinstance(content, np.ndarray):
        return _array_to_bytes(content)
    if isinstance(content, str):
        try:
            return base64.b64decode(content.strip(), validate=True)
        except (binascii.Error, ValueError):
            raise FormatError(f"Cannot read {_describe(content)} as base64 bytes")
    raise FormatError(f"Cannot read {_describe(content)} as bytes")


def _array_to_bytes(arr: np.ndarray) -> bytes:
    if arr.size == 0:
        return b""
    if arr.dtype == np.uint8:
        return arr.tobytes()
    if not np.issubdtype(arr.dtype, np.integer):
        if not np.all(np.mod(arr, 1) == 0):
            raise FormatError("Byte array contains non-integer values")
    if arr.min() < 0 or arr.max() > 255:
        raise FormatError("Byte array values must be in [0, 255]")
    return arr.astype(np.uint8).tobytes()


def convert(value_type: ValueType, content: Any) -> Any:
    """Convert element content to the Python value for ``value_type``."""
    if value_type is ValueType.BOOLEAN:
        return _read_boolean(content)
    if value_type in INTEGER_DTYPES:
        return _read_integer(value_type, content)
    if value_type is ValueType.DOUBLE:
        return _read_double(content)
    if value_type is ValueType.FLOAT:
        return _read_float(content)
    if value_type is ValueType.CHAR:
        return _read_char(content)
    if value_type is ValueType.STRING:
        return _read_string(content)
    return _read_bytes(content)


# =============================================================================
# Value -> canonical value (writing)
# =============================================================================


def coerce(value_type: ValueType, value: Any) -> Any:
    """Validate ``value`` for ``value_type`` and return its canonical form.

    Unlike :func:`convert` this never parses text: a writer is handed Python
    values, so ``"1"`` is not an int and ``1`` is not a boolean.
    """
    if value_type is ValueType.BOOLEAN:
        if isinstance(value, (bool, np.bool_)):
            return bool(value)
    elif value_type in INTEGER_DTYPES:
        if isinstance(value, (int, np.integer)) and not isinstance(value, (bool, np.bool_)):
            return _check_range(value_type, int(value))
    elif value_type is ValueType.DOUBLE or value_type is ValueType.FLOAT:
        if isinstance(value, (int, float, np.integer, np.floating)) and not isinstance(
            value, (bool, np.bool_)
        ):
            value = float(value)
            return _to_single(value) if value_type is ValueType.FLOAT else value
    elif value_type is ValueType.CHAR:
        if isinstance(value, str) and len(value) == 1:
            return _check_text(value_type, value)
    elif value_type is ValueType.STRING:
        if isinstance(value, str):
            return _check_text(value_type, value)
    else:
        if isinstance(value, _BYTES_LIKE):
            return bytes(value)
        if isinstance(value, np.ndarray):
            return _array_to_bytes(value)
    raise FormatError(f"Cannot write {_describe(value)} as {value_type.value}")


def infer_type(content: Any) -> ValueType:
    """Pick the widest value type able to carry ``content`` unchanged."""
    if isinstance(content, (bool, np.bool_)):
        return ValueType.BOOLEAN
    if isinstance(content, (int, np.integer)):
        return ValueType.LONG
    if isinstance(content, (float, np.floating)):
        return ValueType.DOUBLE
    if isinstance(content, str):
        return ValueType.STRING
    if isinstance(content, _BYTES_LIKE + (np.ndarray,)):
        return ValueType.BYTES
    raise FormatError(f"No value type for {_describe(content)}")


# =============================================================================
# Text formatting shared by the text backends
# =============================================================================


def format_number(value: float) -> str:
    """Format a float so that parsing it back gives the identical value."""
    if math.isnan(value):
        return "nan"
    if math.isinf(value):
        return "inf" if value > 0 else "-inf"
    return repr(float(value))


def format_text(value_type: ValueType, value: Any) -> str:
    """Render a coerced value as element text (XML leaves)."""
    if value_type is ValueType.BOOLEAN:
        return "true" if value else "false"
    if value_type is ValueType.DOUBLE or value_type is ValueType.FLOAT:
        return format_number(value)
    if value_type is ValueType.BYTES:
        return base64.b64encode(value).decode("ascii")
    return str(value)
