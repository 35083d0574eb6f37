"""Field and Page -- the in-memory model of a TIFF image file directory."""

from collections.abc import MutableSequence
from typing import Dict, Iterable, List, Optional, Union

from diwentiff.exceptions import (
    ArgumentNullError,
    FieldTypeError,
    MalformedFieldError,
    UnsupportedTypeError,
)
from diwentiff.tiff import codec
from diwentiff.tiff.tags import MAX_TAG, tag_name
from diwentiff.tiff.types import FieldType, to_field_type

# Number of values shown by str(field) before truncating
PREVIEW_VALUES = 10


class Field:
    """One IFD entry: tag, type, and the decoded values.

    ``count`` is derived from the values and never stored separately,
    except for fields loaded from a file whose values have not been
    decoded yet and for opaque fields of an unrecognized type.
    """
    __slots__ = ('tag', '_type', '_values', '_raw', '_raw_order',
                 '_raw_count', 'sub_pages')

    def __init__(self, tag: int, ftype: Union[FieldType, int], values=(),
                 sub_pages: Optional[List['Page']] = None):
        if tag is None:
            raise ArgumentNullError('tag')
        if ftype is None:
            raise ArgumentNullError('ftype')
        resolved = to_field_type(ftype)
        if resolved is None:
            raise UnsupportedTypeError(int(ftype))
        if values is None:
            raise ArgumentNullError('values')
        if not 0 <= int(tag) <= MAX_TAG:
            raise MalformedFieldError(f'Tag {tag} is outside 0..{MAX_TAG}')
        self.tag = int(tag)
        self._type = resolved
        self._values = codec.normalize(resolved, values)
        # Fail at construction rather than at save time.
        codec.encode(resolved, self._values, '<')
        self._raw = None
        self._raw_order = None
        self._raw_count = None
        self.sub_pages = list(sub_pages) if sub_pages else []

    @classmethod
    def from_raw(cls, tag: int, ftype: FieldType, count: int, raw,
                 byte_order: str) -> 'Field':
        """A field whose values are decoded from ``raw`` on first access."""
        field = cls.__new__(cls)
        field.tag = tag
        field._type = ftype
        field._values = None
        field._raw = raw
        field._raw_order = byte_order
        field._raw_count = count
        field.sub_pages = []
        return field

    @classmethod
    def opaque(cls, tag: int, type_code: int, count: int, slot: bytes,
               byte_order: str) -> 'Field':
        """A field of an unrecognized type, kept as its 4 raw slot bytes."""
        field = cls.from_raw(tag, type_code, count, bytes(slot), byte_order)
        field._values = field._raw
        return field

    @property
    def type(self) -> Union[FieldType, int]:
        return self._type

    @property
    def is_opaque(self) -> bool:
        return not isinstance(self._type, FieldType)

    @property
    def values(self):
        if self._values is None:
            self._values = codec.decode(self._type, self._raw_count,
                                        self._raw, self._raw_order)
            self._raw = None
            self._raw_count = None
        return self._values

    @values.setter
    def values(self, values):
        if self.is_opaque:
            raise UnsupportedTypeError(self._type)
        if values is None:
            raise ArgumentNullError('values')
        values = codec.normalize(self._type, values)
        codec.encode(self._type, values, '<')
        self._values = values
        self._raw = None
        self._raw_count = None

    @property
    def count(self) -> int:
        if self._raw_count is not None:
            return self._raw_count
        return codec.count_of(self._type, self._values)

    @property
    def value(self):
        """The first value, or None for an empty field."""
        values = self.values
        return values[0] if len(values) else None

    @property
    def name(self) -> str:
        return tag_name(self.tag)

    def expect(self, *ftypes: FieldType):
        """Return the values if this field has one of ``ftypes``.

        Raises FieldTypeError otherwise, e.g. when a PageNumber field was
        written as LONG but the caller expects SHORT.
        """
        if self._type not in ftypes:
            wanted = ', '.join(FieldType(t).name for t in ftypes)
            raise FieldTypeError(
                f'{self.name} is {self.type_name}, expected {wanted}')
        return self.values

    @property
    def type_name(self) -> str:
        if self.is_opaque:
            return f'TYPE_{self._type}'
        return self._type.name

    def encoded(self, byte_order: str) -> bytes:
        """Raw value bytes in ``byte_order``.

        For opaque fields this is the original 4-byte slot.
        """
        if self.is_opaque:
            return self._raw
        if self._raw is not None and self._raw_order == byte_order:
            return bytes(self._raw)
        return codec.encode(self._type, self.values, byte_order)

    def copy(self) -> 'Field':
        field = Field.__new__(Field)
        field.tag = self.tag
        field._type = self._type
        values = self._values
        if isinstance(values, list):
            values = list(values)
        field._values = values
        field._raw = self._raw
        field._raw_order = self._raw_order
        field._raw_count = self._raw_count
        field.sub_pages = [page.copy() for page in self.sub_pages]
        return field

    def __eq__(self, other):
        if not isinstance(other, Field):
            return NotImplemented
        return (self.tag == other.tag and self._type == other._type
                and self.count == other.count and self.values == other.values
                and self.sub_pages == other.sub_pages)

    __hash__ = None

    def __repr__(self):
        return (f'Field(tag={self.tag}, type={self.type_name}, '
                f'count={self.count}, values={self.values!r})')

    def __str__(self):
        values = self.values
        if isinstance(values, bytes):
            preview = values[:PREVIEW_VALUES * 2].hex(' ')
            if len(values) > PREVIEW_VALUES * 2:
                preview += ' ...'
        else:
            shown = [f'{v[0]}/{v[1]}' if isinstance(v, tuple) else repr(v)
                     for v in values[:PREVIEW_VALUES]]
            preview = ', '.join(shown)
            if len(values) > PREVIEW_VALUES:
                preview += ', ...'
        return f'{self.name} ({self.tag}) {self.type_name}[{self.count}]: {preview}'


def _check_field(field) -> 'Field':
    if field is None:
        raise ArgumentNullError('field')
    if not isinstance(field, Field):
        raise TypeError(f'Page entries must be Field, not {type(field).__name__}')
    return field


class Page(MutableSequence):
    """An ordered list of Fields -- one image file directory.

    Duplicate tags are allowed; lookups by tag return the first match.
    ``image_data`` maps an offsets tag (StripOffsets, TileOffsets,
    JPEGInterchangeFormat) to the opaque chunks it locates.
    """

    def __init__(self, fields: Optional[Iterable[Field]] = None):
        self._fields: List[Field] = []
        self.image_data: Dict[int, List[bytes]] = {}
        self._owned = False
        if fields is not None:
            self.extend(fields)

    def __getitem__(self, index):
        return self._fields[index]

    def __setitem__(self, index, field):
        if isinstance(index, slice):
            field = [_check_field(f) for f in field]
        else:
            _check_field(field)
        self._fields[index] = field

    def __delitem__(self, index):
        del self._fields[index]

    def __len__(self):
        return len(self._fields)

    def insert(self, index, field):
        self._fields.insert(index, _check_field(field))

    def extend(self, fields):
        if fields is None:
            raise ArgumentNullError('fields')
        for field in list(fields):
            self.append(field)

    def get(self, tag: int, default=None) -> Optional[Field]:
        """First field with ``tag``, or ``default``."""
        for field in self._fields:
            if field.tag == tag:
                return field
        return default

    def field(self, tag: int) -> Field:
        """First field with ``tag``; raises KeyError when absent."""
        found = self.get(tag)
        if found is None:
            raise KeyError(tag)
        return found

    def __contains__(self, item):
        if isinstance(item, Field):
            return item in self._fields
        return self.get(item) is not None

    def set(self, field: Field) -> Field:
        """Replace the first field with the same tag, or append it."""
        _check_field(field)
        for i, existing in enumerate(self._fields):
            if existing.tag == field.tag:
                self._fields[i] = field
                return field
        self._fields.append(field)
        return field

    def remove_tag(self, tag: int) -> int:
        """Remove every field with ``tag``; returns how many were removed."""
        before = len(self._fields)
        self._fields = [f for f in self._fields if f.tag != tag]
        return before - len(self._fields)

    def tags(self) -> List[int]:
        return [f.tag for f in self._fields]

    def copy(self) -> 'Page':
        page = Page(f.copy() for f in self._fields)
        page.image_data = {tag: list(chunks) for tag, chunks in self.image_data.items()}
        return page

    def __eq__(self, other):
        if not isinstance(other, Page):
            return NotImplemented
        return self._fields == other._fields and self.image_data == other.image_data

    __hash__ = None

    def __repr__(self):
        return f'Page({self._fields!r})'

    def __str__(self):
        return '\n'.join(str(f) for f in self._fields)
