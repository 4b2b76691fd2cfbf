"""
Value marshaling between JDBC types and Avatica typed values.

Maps JDBC type ids (``java.sql.Types`` plus the Apache Phoenix extensions) to
wire representations, and converts single values and whole rows in both
directions. Temporal values travel as integers (milliseconds since midnight,
days since epoch, milliseconds since epoch) and are exposed as UTC text.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from datetime import UTC, date, datetime, time, timedelta
from enum import Enum
from typing import Any

from .exceptions import ArityMismatchError, MarshalError, UnknownNativeTypeError, UnknownRepresentationError
from .protocol.schema import Rep, TypedValue

# java.sql.Types, see https://docs.oracle.com/javase/8/docs/api/constant-values.html#java.sql.Types
JDBC_TO_REP: dict[int, Rep] = {
    -6: Rep.BYTE,  # TINYINT
    5: Rep.SHORT,  # SMALLINT
    4: Rep.INTEGER,  # INTEGER
    -5: Rep.LONG,  # BIGINT
    6: Rep.DOUBLE,  # FLOAT
    8: Rep.DOUBLE,  # DOUBLE
    2: Rep.BIG_DECIMAL,  # NUMERIC
    1: Rep.STRING,  # CHAR
    91: Rep.JAVA_SQL_DATE,  # DATE
    92: Rep.JAVA_SQL_TIME,  # TIME
    93: Rep.JAVA_SQL_TIMESTAMP,  # TIMESTAMP
    -2: Rep.BYTE_STRING,  # BINARY
    -3: Rep.BYTE_STRING,  # VARBINARY
    16: Rep.BOOLEAN,  # BOOLEAN
    # Phoenix unsigned types
    18: Rep.JAVA_SQL_TIME,  # UNSIGNED_TIME
    19: Rep.JAVA_SQL_DATE,  # UNSIGNED_DATE
    15: Rep.DOUBLE,  # UNSIGNED_DOUBLE
    14: Rep.DOUBLE,  # UNSIGNED_FLOAT
    9: Rep.INTEGER,  # UNSIGNED_INT
    10: Rep.LONG,  # UNSIGNED_LONG
    13: Rep.SHORT,  # UNSIGNED_SMALLINT
    20: Rep.JAVA_SQL_TIMESTAMP,  # UNSIGNED_TIMESTAMP
    11: Rep.BYTE,  # UNSIGNED_TINYINT
    # Not produced by Phoenix, but used by Avatica for parameter types
    -7: Rep.BOOLEAN,  # BIT
    7: Rep.DOUBLE,  # REAL
    3: Rep.BIG_DECIMAL,  # DECIMAL
    12: Rep.STRING,  # VARCHAR
    -1: Rep.STRING,  # LONGVARCHAR
    -4: Rep.BYTE_STRING,  # LONGVARBINARY
    2004: Rep.BYTE_STRING,  # BLOB
    2005: Rep.STRING,  # CLOB
    -15: Rep.STRING,  # NCHAR
    -9: Rep.STRING,  # NVARCHAR
    -16: Rep.STRING,  # LONGNVARCHAR
    2011: Rep.STRING,  # NCLOB
    2009: Rep.STRING,  # SQLXML
    2013: Rep.JAVA_SQL_TIME,  # TIME_WITH_TIMEZONE
    2014: Rep.JAVA_SQL_TIMESTAMP,  # TIMESTAMP_WITH_TIMEZONE
    # Avatica reports arrays in empty result sets as JAVA_OBJECT
    2000: Rep.BYTE_STRING,  # JAVA_OBJECT
}

# Phoenix encodes ARRAY types as 3000 + element type id.
ARRAY_TYPE_BASE = 3000
ARRAY_TYPE_MIN = 2900
ARRAY_TYPE_MAX = 3100


class StorageKind(str, Enum):
    """Physical ``TypedValue`` field that carries a representation."""

    NUMBER = "number_value"
    BYTES = "bytes_value"
    DOUBLE = "double_value"
    STRING = "string_value"
    BOOL = "bool_value"


REP_TO_STORAGE: dict[Rep, StorageKind] = {
    Rep.INTEGER: StorageKind.NUMBER,
    Rep.PRIMITIVE_INT: StorageKind.NUMBER,
    Rep.SHORT: StorageKind.NUMBER,
    Rep.PRIMITIVE_SHORT: StorageKind.NUMBER,
    Rep.LONG: StorageKind.NUMBER,
    Rep.PRIMITIVE_LONG: StorageKind.NUMBER,
    Rep.BYTE: StorageKind.NUMBER,
    Rep.PRIMITIVE_BYTE: StorageKind.NUMBER,
    Rep.JAVA_SQL_TIME: StorageKind.NUMBER,
    Rep.JAVA_SQL_DATE: StorageKind.NUMBER,
    Rep.JAVA_SQL_TIMESTAMP: StorageKind.NUMBER,
    Rep.BYTE_STRING: StorageKind.BYTES,
    Rep.DOUBLE: StorageKind.DOUBLE,
    Rep.PRIMITIVE_DOUBLE: StorageKind.DOUBLE,
    Rep.FLOAT: StorageKind.DOUBLE,
    Rep.PRIMITIVE_FLOAT: StorageKind.DOUBLE,
    Rep.PRIMITIVE_CHAR: StorageKind.STRING,
    Rep.CHARACTER: StorageKind.STRING,
    Rep.BIG_DECIMAL: StorageKind.STRING,
    Rep.STRING: StorageKind.STRING,
    Rep.BOOLEAN: StorageKind.BOOL,
    Rep.PRIMITIVE_BOOLEAN: StorageKind.BOOL,
}

_EPOCH = datetime(1970, 1, 1)
_MILLISECOND = timedelta(milliseconds=1)
_INTEGER = re.compile(r"[+-]?\d+")
_DATE_TIME_SEPARATOR = re.compile(r"[tT ]")


def to_signed(type_id: int) -> int:
    """Reinterpret an unsigned 32-bit type id as signed."""
    if type_id > 0x7FFFFFFF:
        type_id -= 0x100000000
    return type_id


def type_to_representation(type_id: int) -> Rep:
    """
    Resolve the wire representation of a JDBC type id.

    Args:
        type_id: JDBC type id, signed or in its unsigned 32-bit form

    Raises:
        UnknownNativeTypeError: If the type id is not supported
    """
    type_id = to_signed(type_id)
    try:
        return JDBC_TO_REP[type_id]
    except KeyError:
        raise UnknownNativeTypeError(type_id) from None


def representation_to_storage(rep: int) -> StorageKind:
    """
    Resolve which ``TypedValue`` field carries a representation.

    Raises:
        UnknownRepresentationError: If the representation has no scalar storage
    """
    try:
        return REP_TO_STORAGE[rep]  # type: ignore[index]
    except KeyError:
        raise UnknownRepresentationError(rep) from None


def is_array_type(type_id: int) -> bool:
    return ARRAY_TYPE_MIN < to_signed(type_id) < ARRAY_TYPE_MAX


def _read(value: Any, kind: StorageKind) -> Any:
    match kind:
        case StorageKind.NUMBER:
            return value.number_value
        case StorageKind.BYTES:
            return value.bytes_value
        case StorageKind.DOUBLE:
            return value.double_value
        case StorageKind.STRING:
            return value.string_value
        case StorageKind.BOOL:
            return value.bool_value


def _write(value: Any, kind: StorageKind, native: Any) -> None:
    match kind:
        case StorageKind.NUMBER:
            value.number_value = int(native)
        case StorageKind.BYTES:
            value.bytes_value = native.encode() if isinstance(native, str) else bytes(native)
        case StorageKind.DOUBLE:
            value.double_value = float(native)
        case StorageKind.STRING:
            value.string_value = str(native)
        case StorageKind.BOOL:
            value.bool_value = bool(native)


# Temporal conversions


def _millis_suffix(millis: int) -> str:
    return f".{millis:03d}" if millis else ""


def _pad_millis(millis: str) -> int:
    return int((millis + "00")[:3]) if millis else 0


def _as_number(value: Any) -> int | None:
    """Return ``value`` as an already encoded number, or None for text/objects."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    if isinstance(value, str) and _INTEGER.fullmatch(value.strip()):
        return int(value)
    return None


def _naive_utc(value: datetime) -> datetime:
    if value.tzinfo is not None:
        value = value.astimezone(UTC).replace(tzinfo=None)
    return value


def time_from_wire(value: int) -> str:
    """Milliseconds since midnight to ``HH:MM:SS[.mmm]``."""
    seconds, millis = divmod(value, 1000)
    return (_EPOCH + timedelta(seconds=seconds)).time().isoformat() + _millis_suffix(millis)


def date_from_wire(value: int) -> str:
    """Days since epoch to ``YYYY-MM-DD``."""
    return (_EPOCH + timedelta(days=value)).date().isoformat()


def timestamp_from_wire(value: int) -> str:
    """Milliseconds since epoch to ``YYYY-MM-DD HH:MM:SS[.mmm]``."""
    seconds, millis = divmod(value, 1000)
    moment = _EPOCH + timedelta(seconds=seconds)
    return moment.isoformat(sep=" ", timespec="seconds") + _millis_suffix(millis)


def time_to_wire(value: Any) -> int:
    """
    Encode a TIME value as milliseconds since midnight.

    Accepts an already encoded number, a ``datetime.time``/``datetime`` or text
    in the form ``[date[ T]]hh[:mm[:ss]][.millis]``.
    """
    number = _as_number(value)
    if number is not None:
        return number
    if isinstance(value, datetime):
        value = _naive_utc(value).time()
    if isinstance(value, time):
        return ((value.hour * 60 + value.minute) * 60 + value.second) * 1000 + value.microsecond // 1000

    text, _, millis = str(value).partition(".")
    parts = _DATE_TIME_SEPARATOR.split(text)
    clock = parts[1] if len(parts) > 1 and parts[1] else parts[0]
    try:
        hours, minutes, seconds = ([int(p) if p else 0 for p in clock.split(":")] + [0, 0, 0])[:3]
        return ((hours * 60 + minutes) * 60 + seconds) * 1000 + _pad_millis(millis)
    except ValueError as e:
        raise MarshalError(f"Invalid TIME value '{value}'") from e


def date_to_wire(value: Any) -> int:
    """Encode a DATE value as days since epoch."""
    number = _as_number(value)
    if number is not None:
        return number
    if isinstance(value, datetime):
        value = _naive_utc(value).date()
    if not isinstance(value, date):
        text = _DATE_TIME_SEPARATOR.split(str(value).partition(".")[0])[0]
        try:
            value = datetime.strptime(text, "%Y-%m-%d").date()
        except ValueError as e:
            raise MarshalError(f"Invalid DATE value '{value}'") from e
    return (value - _EPOCH.date()).days


def timestamp_to_wire(value: Any) -> int:
    """Encode a TIMESTAMP value as milliseconds since epoch."""
    number = _as_number(value)
    if number is not None:
        return number
    if isinstance(value, datetime):
        return (_naive_utc(value) - _EPOCH) // _MILLISECOND
    if isinstance(value, date):
        return (value - _EPOCH.date()).days * 86400 * 1000

    text, _, millis = _DATE_TIME_SEPARATOR.sub(" ", str(value)).partition(".")
    try:
        moment = datetime.strptime(text, "%Y-%m-%d %H:%M:%S")
        return (moment - _EPOCH) // timedelta(seconds=1) * 1000 + _pad_millis(millis)
    except ValueError as e:
        raise MarshalError(f"Invalid TIMESTAMP value '{value}'") from e


def from_wire(value: Any, rep: Rep) -> Any:
    """Convert a raw storage value to its native form."""
    match rep:
        case Rep.JAVA_SQL_TIME:
            return time_from_wire(value)
        case Rep.JAVA_SQL_DATE:
            return date_from_wire(value)
        case Rep.JAVA_SQL_TIMESTAMP:
            return timestamp_from_wire(value)
        case _:
            return value


def to_wire(value: Any, rep: Rep) -> Any:
    """Convert a native value to its raw storage form."""
    match rep:
        case Rep.JAVA_SQL_TIME:
            return time_to_wire(value)
        case Rep.JAVA_SQL_DATE:
            return date_to_wire(value)
        case Rep.JAVA_SQL_TIMESTAMP:
            return timestamp_to_wire(value)
        case _:
            return value


# Values


def null_value() -> Any:
    """A ``TypedValue`` flagged null."""
    return TypedValue(null=True, type=Rep.NULL)


def _encode_scalar(value: Any, rep: Rep, kind: StorageKind) -> Any:
    if value is None:
        return null_value()
    typed_value = TypedValue(type=rep, null=False)
    _write(typed_value, kind, to_wire(value, rep))
    return typed_value


def decode_value(column_value: Any, column_meta: Any) -> Any:
    """
    Decode a ``ColumnValue`` using its ``ColumnMetaData``.

    Returns None for a null value, a list for an array column (elements may
    be None) and a single native value otherwise.

    Raises:
        UnknownNativeTypeError: If the column type is not supported
        UnknownRepresentationError: If the representation has no storage
    """
    scalar = column_value.scalar_value
    if scalar.null:
        return None

    if column_value.has_array_value:
        rep = type_to_representation(column_meta.type.component.id)
        kind = representation_to_storage(rep)
        return [None if element.null else from_wire(_read(element, kind), rep) for element in column_value.array_value]

    rep = type_to_representation(column_meta.type.id)
    return from_wire(_read(scalar, representation_to_storage(rep)), rep)


def encode_value(value: Any, parameter: Any) -> Any:
    """
    Encode a native value as a ``TypedValue`` for an ``AvaticaParameter``.

    None always encodes as NULL. Parameters of a Phoenix array type take an
    iterable and encode every element under the element representation.

    Raises:
        UnknownNativeTypeError: If the parameter type is not supported
        UnknownRepresentationError: If the representation has no storage
    """
    if value is None:
        return null_value()

    type_id = to_signed(parameter.parameter_type)
    if is_array_type(type_id):
        rep = type_to_representation(type_id - ARRAY_TYPE_BASE)
        kind = representation_to_storage(rep)
        typed_value = TypedValue(type=Rep.ARRAY, component_type=rep, null=False)
        typed_value.array_value.extend([_encode_scalar(element, rep, kind) for element in value])
        return typed_value

    rep = type_to_representation(type_id)
    return _encode_scalar(value, rep, representation_to_storage(rep))


def decode_row(column_values: Sequence[Any], columns: Sequence[Any]) -> list[Any]:
    """
    Decode one row against the signature columns.

    Raises:
        ArityMismatchError: If the row and the columns differ in length
    """
    if len(column_values) != len(columns):
        raise ArityMismatchError(len(column_values), len(columns))
    return [decode_value(value, meta) for value, meta in zip(column_values, columns)]


def encode_row(values: Sequence[Any], parameters: Sequence[Any]) -> list[Any]:
    """
    Encode one row of native values against the signature parameters.

    Raises:
        ArityMismatchError: If the values and the parameters differ in length
    """
    if len(values) != len(parameters):
        raise ArityMismatchError(len(values), len(parameters))
    return [encode_value(value, parameter) for value, parameter in zip(values, parameters)]


def encode_rows(rows: Iterable[Sequence[Any]], parameters: Sequence[Any]) -> list[list[Any]]:
    """Encode a batch of rows, e.g. for ``execute_batch``."""
    return [encode_row(row, parameters) for row in rows]


row_from_jdbc = decode_row
row_to_jdbc = encode_row

__all__ = [
    "JDBC_TO_REP",
    "REP_TO_STORAGE",
    "StorageKind",
    "to_signed",
    "type_to_representation",
    "representation_to_storage",
    "is_array_type",
    "decode_value",
    "encode_value",
    "decode_row",
    "encode_row",
    "encode_rows",
    "row_from_jdbc",
    "row_to_jdbc",
    "null_value",
]
