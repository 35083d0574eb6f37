"""Exception hierarchy for TIFF loading, saving and field access."""

from typing import Optional


class TiffError(Exception):
    """Base class for every error raised by diwentiff."""


class ArgumentNullError(TiffError, TypeError):
    """A required argument (source, destination, page, field) was None."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f'{name} must not be None')


class NotATiffError(TiffError, ValueError):
    """The byte source does not start with a classic TIFF header."""


class MalformedFileError(TiffError, ValueError):
    """Structural corruption: truncation, bad offsets, broken IFD chain."""

    def __init__(self, message: str, offset: Optional[int] = None):
        self.message = message
        self.offset = offset
        super().__init__(message)

    def __str__(self) -> str:
        if self.offset is None:
            return self.message
        return f'{self.message} (0x{self.offset:08x})'


class MalformedFieldError(TiffError, ValueError):
    """A field's bytes do not match its declared type and count."""


class UnsupportedTypeError(TiffError, ValueError):
    """A field type code outside the recognized enumeration."""

    def __init__(self, type_code: int):
        self.type_code = type_code
        super().__init__(f'Unsupported TIFF field type {type_code}')


class FieldTypeError(TiffError, TypeError):
    """A typed accessor was used on a field of another type."""
