"""Tif -- a TIFF document as an ordered list of pages."""

import logging
import os
from collections.abc import MutableSequence
from typing import BinaryIO, Iterable, List, Optional, Union

from diwentiff.config import CodecConfig
from diwentiff.exceptions import ArgumentNullError
from diwentiff.models import Field, Page
from diwentiff.tiff.parser import parse_tiff
from diwentiff.tiff.tags import PAGE_NUMBER
from diwentiff.tiff.types import BIG_ENDIAN, BYTE_ORDER_MARKS, LITTLE_ENDIAN, FieldType
from diwentiff.tiff.writer import write_tiff

logger = logging.getLogger(__name__)

Source = Union[bytes, bytearray, memoryview, BinaryIO, str, os.PathLike]


def _check_page(page) -> Page:
    if page is None:
        raise ArgumentNullError('page')
    if not isinstance(page, Page):
        raise TypeError(f'Tif entries must be Page, not {type(page).__name__}')
    return page


class Tif(MutableSequence):
    """An ordered list of Pages plus the file-wide byte order.

    A Page belongs to at most one Tif.  Adding a page that already belongs
    to a Tif (this one included) stores an independent copy, so
    ``tif.append(tif[0])`` duplicates the first page.
    """

    def __init__(self, pages: Optional[Iterable[Page]] = None,
                 byte_order: str = LITTLE_ENDIAN):
        if byte_order not in BYTE_ORDER_MARKS:
            raise ValueError(f"byte_order must be '<' or '>', not {byte_order!r}")
        self.byte_order = byte_order
        self._pages: List[Page] = []
        if pages is not None:
            self.extend(pages)

    # -- sequence protocol ------------------------------------------------

    def _adopt(self, page) -> Page:
        page = _check_page(page)
        if page._owned:
            page = page.copy()
        page._owned = True
        return page

    def __getitem__(self, index):
        return self._pages[index]

    def __setitem__(self, index, page):
        if isinstance(index, slice):
            new = [self._adopt(p) for p in list(page)]
            for old in self._pages[index]:
                old._owned = False
        else:
            new = self._adopt(page)
            self._pages[index]._owned = False
        self._pages[index] = new

    def __delitem__(self, index):
        removed = self._pages[index]
        for page in removed if isinstance(index, slice) else [removed]:
            page._owned = False
        del self._pages[index]

    def __len__(self):
        return len(self._pages)

    def insert(self, index, page):
        self._pages.insert(index, self._adopt(page))

    def extend(self, pages):
        if pages is None:
            raise ArgumentNullError('pages')
        for page in list(pages):
            self.append(page)

    def remove_at(self, index: int) -> None:
        del self[index]

    @property
    def big_endian(self) -> bool:
        return self.byte_order == BIG_ENDIAN

    # -- load -------------------------------------------------------------

    @classmethod
    def load(cls, source: Source, config: Optional[CodecConfig] = None) -> 'Tif':
        """Load a document from bytes, a binary stream, or a file path.

        Streams are read from their current position and left open.
        """
        if source is None:
            raise ArgumentNullError('source')
        if isinstance(source, (bytes, bytearray, memoryview)):
            data = source
        elif hasattr(source, 'read'):
            data = source.read()
        else:
            with open(os.fspath(source), 'rb') as f:
                data = f.read()

        byte_order, pages = parse_tiff(data, config)
        logger.debug('Loaded %d page(s), byte order %s', len(pages),
                     BYTE_ORDER_MARKS[byte_order].decode())
        return cls(pages, byte_order=byte_order)

    # -- save -------------------------------------------------------------

    def get_data(self) -> bytes:
        """The complete TIFF file as bytes."""
        return write_tiff(self._pages, self.byte_order)

    def save(self, dest: Union[BinaryIO, str, os.PathLike]) -> int:
        """Write the TIFF file to a stream or path; returns bytes written.

        The file is encoded in full before anything reaches ``dest``.
        Streams are written at their current position and left open.
        """
        if dest is None:
            raise ArgumentNullError('dest')
        data = self.get_data()
        if hasattr(dest, 'write'):
            dest.write(data)
        else:
            with open(os.fspath(dest), 'wb') as f:
                f.write(data)
        logger.debug('Wrote %d page(s), %d bytes', len(self._pages), len(data))
        return len(data)

    # -- document operations ----------------------------------------------

    def copy(self) -> 'Tif':
        return Tif((p.copy() for p in self._pages), byte_order=self.byte_order)

    def set_page_numbers(self) -> None:
        """Write PageNumber = (index, total) on every page.

        An existing PageNumber field is replaced in place.
        """
        total = len(self._pages)
        for index, page in enumerate(self._pages):
            page.set(Field(PAGE_NUMBER, FieldType.SHORT, [index, total]))

    def __eq__(self, other):
        if not isinstance(other, Tif):
            return NotImplemented
        return self.byte_order == other.byte_order and self._pages == other._pages

    __hash__ = None

    def __repr__(self):
        return f'Tif(pages={len(self._pages)}, byte_order={self.byte_order!r})'

    def __str__(self):
        return '\n\n'.join(str(page) for page in self._pages)
