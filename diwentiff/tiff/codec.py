"""Value codec -- converts field values to and from their raw TIFF bytes.

Every multi-byte element is packed with the document's byte order
(``'<'`` or ``'>'``, the struct prefixes).  ASCII fields may hold several
NUL-separated strings; the final NUL is implicit in the byte count.
"""

import struct
from fractions import Fraction
from typing import List, Sequence, Union

from diwentiff.exceptions import MalformedFieldError, UnsupportedTypeError
from diwentiff.tiff.types import (
    INLINE_SIZE,
    RATIONAL_TYPES,
    TIFF_TYPES,
    FieldType,
    to_field_type,
)

# ASCII is stored as latin-1 so every byte value survives a round trip.
TEXT_ENCODING = 'latin-1'


def _resolve(ftype: Union[FieldType, int]) -> FieldType:
    resolved = to_field_type(ftype)
    if resolved is None:
        raise UnsupportedTypeError(int(ftype))
    return resolved


def element_width(ftype: Union[FieldType, int]) -> int:
    """Size in bytes of one element of ``ftype``."""
    return TIFF_TYPES[_resolve(ftype)][0]


def is_inline(size: int) -> bool:
    """True if ``size`` bytes fit in a directory entry's value slot."""
    return size <= INLINE_SIZE


def decode(ftype: Union[FieldType, int], count: int, raw: bytes,
           byte_order: str) -> Union[List, bytes]:
    """Decode ``count`` elements of ``ftype`` from ``raw``."""
    ftype = _resolve(ftype)
    elem_size, fmt_char = TIFF_TYPES[ftype]
    if len(raw) != count * elem_size:
        raise MalformedFieldError(
            f'{ftype.name} field with count {count} needs '
            f'{count * elem_size} bytes, got {len(raw)}')

    if ftype == FieldType.ASCII:
        return _decode_ascii(bytes(raw))
    if ftype == FieldType.UNDEFINED:
        return bytes(raw)

    flat = struct.unpack(byte_order + fmt_char * count, raw)
    if ftype in RATIONAL_TYPES:
        return [(flat[i], flat[i + 1]) for i in range(0, len(flat), 2)]
    return list(flat)


def _decode_ascii(raw: bytes) -> List[str]:
    if not raw:
        return []
    if raw.endswith(b'\x00'):
        raw = raw[:-1]
    return [part.decode(TEXT_ENCODING) for part in raw.split(b'\x00')]


def encode(ftype: Union[FieldType, int], values, byte_order: str) -> bytes:
    """Encode ``values`` as raw bytes of ``ftype``."""
    ftype = _resolve(ftype)
    values = normalize(ftype, values)

    if ftype == FieldType.ASCII:
        try:
            return b''.join(s.encode(TEXT_ENCODING) + b'\x00' for s in values)
        except UnicodeEncodeError as exc:
            raise MalformedFieldError(f'ASCII value cannot be encoded: {exc}') from exc
    if ftype == FieldType.UNDEFINED:
        return values

    fmt_char = TIFF_TYPES[ftype][1]
    if ftype in RATIONAL_TYPES:
        flat = [part for pair in values for part in pair]
        count = len(values)
    else:
        flat = values
        count = len(values)
    try:
        return struct.pack(byte_order + fmt_char * count, *flat)
    except (struct.error, OverflowError) as exc:
        raise MalformedFieldError(
            f'{ftype.name} values cannot be encoded: {exc}') from exc


def normalize(ftype: FieldType, values) -> Union[List, bytes]:
    """Coerce caller-supplied values into the canonical form for ``ftype``.

    Scalars become one-element lists, a lone ``str`` becomes a one-segment
    ASCII list, and rationals accept ``(num, den)`` pairs or ``Fraction``.
    """
    if ftype == FieldType.UNDEFINED:
        if isinstance(values, str):
            raise MalformedFieldError('UNDEFINED values must be bytes, not str')
        try:
            return bytes(values)
        except (TypeError, ValueError) as exc:
            raise MalformedFieldError(f'UNDEFINED values must be bytes: {exc}') from exc

    if ftype == FieldType.ASCII:
        if isinstance(values, (bytes, bytearray)):
            return _decode_ascii(bytes(values))
        result = [values] if isinstance(values, str) else list(values)
        for value in result:
            if not isinstance(value, str):
                raise MalformedFieldError(f'ASCII values must be str, got {value!r}')
            # NUL separates segments; it cannot appear inside one
            if '\x00' in value:
                raise MalformedFieldError(f'ASCII segment contains NUL: {value!r}')
        return result

    if ftype in RATIONAL_TYPES:
        if isinstance(values, Fraction) or _is_pair(values):
            values = [values]
        pairs = []
        for value in values:
            if isinstance(value, Fraction):
                pairs.append((value.numerator, value.denominator))
            elif _is_pair(value):
                pairs.append((value[0], value[1]))
            else:
                raise MalformedFieldError(
                    f'{ftype.name} values must be (numerator, denominator) '
                    f'pairs, got {value!r}')
        return pairs

    if isinstance(values, (int, float)):
        return [values]
    return list(values)


def _is_pair(value) -> bool:
    return (isinstance(value, tuple) and len(value) == 2
            and all(isinstance(v, int) for v in value))


def count_of(ftype: FieldType, values: Sequence) -> int:
    """The directory entry count for already-normalized ``values``."""
    if ftype == FieldType.ASCII:
        return sum(len(s.encode(TEXT_ENCODING)) + 1 for s in values)
    return len(values)
