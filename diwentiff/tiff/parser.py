"""Classic TIFF binary parser -- stdlib only (struct module).

Handles little-endian (II) and big-endian (MM) files with magic 42.  The
whole file is read into one buffer; loaded fields keep memoryview slices of
it and decode their values on first access.
"""

import logging
import struct
from typing import List, Optional, Set, Tuple

from diwentiff.config import CodecConfig
from diwentiff.exceptions import (
    MalformedFileError,
    NotATiffError,
    UnsupportedTypeError,
)
from diwentiff.models import Field, Page
from diwentiff.tiff.codec import element_width, is_inline
from diwentiff.tiff.tags import IMAGE_DATA_TAGS, SUB_IFD_TAGS, tag_name
from diwentiff.tiff.types import (
    BIG_ENDIAN,
    BIGTIFF_MAGIC,
    ENTRY_COUNT_SIZE,
    ENTRY_SIZE,
    HEADER_SIZE,
    INLINE_SIZE,
    LITTLE_ENDIAN,
    TIFF_MAGIC,
    FieldType,
    ifd_block_size,
    to_field_type,
)

logger = logging.getLogger(__name__)

INTEGER_TYPES = frozenset({
    FieldType.BYTE, FieldType.SHORT, FieldType.LONG, FieldType.IFD,
    FieldType.LONG8, FieldType.IFD8,
})

SUB_IFD_POINTER_TYPES = frozenset({FieldType.LONG, FieldType.IFD})


class TIFFHeader:
    """Parsed TIFF file header."""
    __slots__ = ('endian', 'first_ifd_offset')

    def __init__(self, endian: str, first_ifd_offset: int):
        self.endian = endian
        self.first_ifd_offset = first_ifd_offset


def _unpack(buf, fmt: str, offset: int, what: str) -> tuple:
    size = struct.calcsize(fmt)
    if offset < 0 or offset + size > len(buf):
        raise MalformedFileError(f'Truncated {what}', offset)
    return struct.unpack_from(fmt, buf, offset)


def read_header(buf) -> TIFFHeader:
    """Read and validate the 8-byte classic TIFF header."""
    bo = bytes(buf[:2])
    if bo == b'II':
        endian = LITTLE_ENDIAN
    elif bo == b'MM':
        endian = BIG_ENDIAN
    else:
        raise NotATiffError(f'Unknown byte order mark {bo!r}')

    if len(buf) < 4:
        raise NotATiffError('File too short for a TIFF header')
    magic = struct.unpack_from(endian + 'H', buf, 2)[0]
    if magic == BIGTIFF_MAGIC:
        raise NotATiffError('BigTIFF files are not supported')
    if magic != TIFF_MAGIC:
        raise NotATiffError(f'Wrong TIFF magic number {magic}')

    first_ifd_offset = _unpack(buf, endian + 'I', 4, 'TIFF header')[0]
    return TIFFHeader(endian, first_ifd_offset)


def read_ifd(buf, header: TIFFHeader, ifd_offset: int,
             config: CodecConfig) -> Tuple[Page, int]:
    """Read all entries of one IFD. Returns (page, next_ifd_offset)."""
    endian = header.endian
    num_entries = _unpack(buf, endian + 'H', ifd_offset, 'IFD entry count')[0]
    if num_entries > config.max_ifd_entries:
        raise MalformedFileError(
            f'IFD claims {num_entries} entries (limit {config.max_ifd_entries})',
            ifd_offset)
    if ifd_offset + ifd_block_size(num_entries) > len(buf):
        raise MalformedFileError('Truncated IFD', ifd_offset)

    page = Page()
    for e in range(num_entries):
        entry_offset = ifd_offset + ENTRY_COUNT_SIZE + e * ENTRY_SIZE
        tag_id, type_code, count = struct.unpack_from(endian + 'HHI', buf, entry_offset)
        slot_offset = entry_offset + 8

        ftype = to_field_type(type_code)
        if ftype is None:
            if config.strict_types:
                raise UnsupportedTypeError(type_code)
            logger.warning('Keeping %s (%d) with unknown type %d as opaque bytes',
                           tag_name(tag_id), tag_id, type_code)
            page.append(Field.opaque(tag_id, type_code, count,
                                     buf[slot_offset:slot_offset + INLINE_SIZE], endian))
            continue

        total = element_width(ftype) * count
        if is_inline(total):
            value_offset = slot_offset
        else:
            value_offset = struct.unpack_from(endian + 'I', buf, slot_offset)[0]
            if value_offset + total > len(buf):
                raise MalformedFileError(
                    f'{tag_name(tag_id)} value ({total} bytes) runs past end of file',
                    value_offset)
        page.append(Field.from_raw(tag_id, ftype, count,
                                   buf[value_offset:value_offset + total], endian))

    next_offset = struct.unpack_from(
        endian + 'I', buf, ifd_offset + ENTRY_COUNT_SIZE + num_entries * ENTRY_SIZE)[0]
    return page, next_offset


def read_image_data(buf, page: Page) -> None:
    """Copy the strip/tile chunks located by ``page`` into page.image_data."""
    for offsets_tag, counts_tag in IMAGE_DATA_TAGS.items():
        offsets_field = page.get(offsets_tag)
        if offsets_field is None:
            continue
        counts_field = page.get(counts_tag)
        if counts_field is None:
            logger.warning('%s without %s; image data not loaded',
                           tag_name(offsets_tag), tag_name(counts_tag))
            continue
        if offsets_field.type not in INTEGER_TYPES or counts_field.type not in INTEGER_TYPES:
            logger.warning('%s/%s have non-integer types; image data not loaded',
                           tag_name(offsets_tag), tag_name(counts_tag))
            continue

        offsets = offsets_field.values
        counts = counts_field.values
        if len(offsets) != len(counts):
            raise MalformedFileError(
                f'{tag_name(offsets_tag)} has {len(offsets)} entries but '
                f'{tag_name(counts_tag)} has {len(counts)}')

        chunks = []
        for off, cnt in zip(offsets, counts):
            if off + cnt > len(buf):
                raise MalformedFileError(
                    f'{tag_name(offsets_tag)} chunk ({cnt} bytes) runs past end of file',
                    off)
            chunks.append(bytes(buf[off:off + cnt]))
        page.image_data[offsets_tag] = chunks


def read_sub_ifds(buf, header: TIFFHeader, page: Page, config: CodecConfig,
                  seen: Set[int]) -> None:
    """Resolve SubIFDs/Exif/GPS/Interoperability pointers into sub-pages."""
    for field in page:
        if field.tag not in SUB_IFD_TAGS or field.type not in SUB_IFD_POINTER_TYPES:
            continue
        offsets = field.values
        if not offsets or 0 in offsets:
            logger.warning('%s has a null offset; sub-IFDs not loaded', field.name)
            continue
        for sub_offset in offsets:
            if sub_offset in seen:
                raise MalformedFileError(
                    f'{field.name} points to an already visited IFD', sub_offset)
            seen.add(sub_offset)
            sub_page, _ = read_ifd(buf, header, sub_offset, config)
            _resolve_page(buf, header, sub_page, config, seen)
            field.sub_pages.append(sub_page)
        logger.debug('%s: loaded %d sub-IFD(s)', field.name, len(field.sub_pages))


def _resolve_page(buf, header: TIFFHeader, page: Page, config: CodecConfig,
                  seen: Set[int]) -> None:
    if config.load_image_data:
        read_image_data(buf, page)
    read_sub_ifds(buf, header, page, config, seen)


def iter_ifds(buf, header: TIFFHeader,
              config: Optional[CodecConfig] = None) -> List[Tuple[int, Page]]:
    """Walk the IFD chain. Returns list of (ifd_offset, page)."""
    if config is None:
        config = CodecConfig.default()
    result = []
    offset = header.first_ifd_offset
    previous = HEADER_SIZE - 1
    seen: Set[int] = set()

    while offset != 0:
        if offset in seen:
            raise MalformedFileError('IFD chain loops back to a visited IFD', offset)
        if offset <= previous:
            raise MalformedFileError('IFD chain points backward', offset)
        if len(result) >= config.max_pages:
            raise MalformedFileError(
                f'IFD chain longer than {config.max_pages} pages', offset)
        seen.add(offset)

        page, next_offset = read_ifd(buf, header, offset, config)
        _resolve_page(buf, header, page, config, seen)
        logger.debug('IFD %d at offset %d: %d entries, next %d',
                     len(result), offset, len(page), next_offset)
        result.append((offset, page))
        previous = offset
        offset = next_offset

    return result


def parse_tiff(data, config: Optional[CodecConfig] = None) -> Tuple[str, List[Page]]:
    """Parse a complete TIFF held in memory. Returns (byte_order, pages)."""
    if not isinstance(data, bytes):
        data = bytes(data)
    buf = memoryview(data)
    header = read_header(buf)
    pages = [page for _, page in iter_ifds(buf, header, config)]
    return header.endian, pages
