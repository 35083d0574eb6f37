"""TIFF field type enumeration and binary layout constants."""

from enum import IntEnum
from typing import Dict, Tuple


class FieldType(IntEnum):
    """TIFF field types (TIFF 6.0 plus the 64-bit BigTIFF additions)."""
    BYTE = 1
    ASCII = 2
    SHORT = 3
    LONG = 4
    RATIONAL = 5
    SBYTE = 6
    UNDEFINED = 7
    SSHORT = 8
    SLONG = 9
    SRATIONAL = 10
    FLOAT = 11
    DOUBLE = 12
    IFD = 13
    LONG8 = 16
    SLONG8 = 17
    IFD8 = 18


# {type: (element_size_bytes, struct_format)}
# Rationals use two format chars per element (numerator, denominator).
TIFF_TYPES: Dict[FieldType, Tuple[int, str]] = {
    FieldType.BYTE: (1, 'B'),
    FieldType.ASCII: (1, 's'),
    FieldType.SHORT: (2, 'H'),
    FieldType.LONG: (4, 'I'),
    FieldType.RATIONAL: (8, 'II'),
    FieldType.SBYTE: (1, 'b'),
    FieldType.UNDEFINED: (1, 's'),
    FieldType.SSHORT: (2, 'h'),
    FieldType.SLONG: (4, 'i'),
    FieldType.SRATIONAL: (8, 'ii'),
    FieldType.FLOAT: (4, 'f'),
    FieldType.DOUBLE: (8, 'd'),
    FieldType.IFD: (4, 'I'),
    FieldType.LONG8: (8, 'Q'),
    FieldType.SLONG8: (8, 'q'),
    FieldType.IFD8: (8, 'Q'),
}

RATIONAL_TYPES = frozenset({FieldType.RATIONAL, FieldType.SRATIONAL})

LITTLE_ENDIAN = '<'
BIG_ENDIAN = '>'

BYTE_ORDER_MARKS: Dict[str, bytes] = {
    LITTLE_ENDIAN: b'II',
    BIG_ENDIAN: b'MM',
}

TIFF_MAGIC = 42
BIGTIFF_MAGIC = 43

# Classic TIFF layout sizes
HEADER_SIZE = 8
ENTRY_COUNT_SIZE = 2
ENTRY_SIZE = 12
NEXT_IFD_SIZE = 4
INLINE_SIZE = 4


def ifd_block_size(num_entries: int) -> int:
    """Bytes taken by an IFD with ``num_entries`` entries."""
    return ENTRY_COUNT_SIZE + ENTRY_SIZE * num_entries + NEXT_IFD_SIZE


def to_field_type(code: int):
    """Return the FieldType for ``code``, or None if it is not recognized."""
    try:
        return FieldType(code)
    except ValueError:
        return None
