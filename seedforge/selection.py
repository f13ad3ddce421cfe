"""
Default column -> generator mapping.

Dispatches on the column's ColumnKind. String columns additionally look at
the column name (e.g. 'email' -> email generator, 'city' -> city generator)
and fall back to random strings when nothing matches or when the matching
generator cannot honour the column's uniqueness or length.
"""

import re

from seedforge.geometry import GenerateLine, GeneratePoint, GenerateVector
from seedforge.numeric import (
    GenerateBitString,
    GenerateBoolean,
    GenerateInet,
    GenerateInt,
    GenerateIntPrimaryKey,
    GenerateNumber,
)
from seedforge.people import (
    GenerateEmail,
    GenerateFirstName,
    GenerateFullName,
    GenerateJobTitle,
    GenerateLastName,
    GeneratePhoneNumber,
)
from seedforge.places import (
    GenerateCity,
    GenerateCompanyName,
    GenerateCountry,
    GeneratePostcode,
    GenerateState,
    GenerateStreetAddress,
)
from seedforge.schema import ColumnKind
from seedforge.temporal import (
    GenerateDate,
    GenerateDatetime,
    GenerateInterval,
    GenerateTime,
    GenerateTimestamp,
    GenerateYear,
)
from seedforge.values import GenerateEnum, GenerateJson, GenerateLoremIpsum, GenerateString, GenerateUUID


# Column name patterns for string columns.
# Order matters - more specific patterns should come first
NAME_HEURISTICS = [
    (r"e[-_]?mail", GenerateEmail),
    (r"phone|mobile|cell|tel", GeneratePhoneNumber),
    (r"first[-_]?name", GenerateFirstName),
    (r"last[-_]?name|surname", GenerateLastName),
    (r"full[-_]?name|(?:^name$)", GenerateFullName),
    (r"(?:^address$)|street", GenerateStreetAddress),
    (r"city", GenerateCity),
    (r"state|province", GenerateState),
    (r"country", GenerateCountry),
    (r"zip|postal|postcode", GeneratePostcode),
    (r"company|org", GenerateCompanyName),
    (r"job|title|position", GenerateJobTitle),
    (r"description|comment|note|bio|text", GenerateLoremIpsum),
    (r"uuid|guid", GenerateUUID),
]

INT_RANGES = {
    ColumnKind.SMALLINT: (-32768, 32767),
    ColumnKind.INTEGER: (-2147483648, 2147483647),
    ColumnKind.BIGINT: (-9223372036854775808, 9223372036854775807),
}

_KIND_GENERATORS = {
    ColumnKind.NUMBER: GenerateNumber,
    ColumnKind.BOOLEAN: GenerateBoolean,
    ColumnKind.UUID: GenerateUUID,
    ColumnKind.DATE: GenerateDate,
    ColumnKind.TIME: GenerateTime,
    ColumnKind.TIMESTAMP: GenerateTimestamp,
    ColumnKind.DATETIME: GenerateDatetime,
    ColumnKind.YEAR: GenerateYear,
    ColumnKind.INTERVAL: GenerateInterval,
    ColumnKind.JSON: GenerateJson,
    ColumnKind.POINT: GeneratePoint,
    ColumnKind.LINE: GenerateLine,
    ColumnKind.BIT: GenerateBitString,
    ColumnKind.INET: GenerateInet,
    ColumnKind.VECTOR: GenerateVector,
}


def _fits(gen, column) -> bool:
    if column.is_unique and gen.unique_version is None and not gen.generates_unique:
        return False
    length = column.type_params.get("length")
    required = gen.required_length()
    return length is None or required is None or required <= length


def _string_generator(column):
    col_lower = column.name.lower()
    for pattern, cls in NAME_HEURISTICS:
        if re.search(pattern, col_lower):
            gen = cls()
            gen.type_params = dict(column.type_params)
            if _fits(gen, column):
                return gen
    return GenerateString()


def pick_generator(table, column):
    """
    Return a fresh generator for `column`, or None when the kind is unknown.

    Constraint flags (unique, not null, data type) are applied later by the
    engine, so the returned generator is still unconfigured.
    """
    kind = column.kind
    if column.enum_values:
        return GenerateEnum(enum_values=list(column.enum_values))

    if kind in INT_RANGES:
        min_value, max_value = INT_RANGES[kind]
        if column.primary and len(table.primary_keys) == 1:
            return GenerateIntPrimaryKey(max_value=max_value)
        if column.is_unique:
            return GenerateInt(min_value=min_value, max_value=max_value)
        return GenerateInt()

    if kind == ColumnKind.STRING:
        return _string_generator(column)

    cls = _KIND_GENERATORS.get(kind)
    return cls() if cls is not None else None
