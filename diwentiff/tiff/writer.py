"""Layout planner and writer for classic TIFF files.

Offsets depend on sizes, so saving runs in passes: every entry is sized
first, then each region gets its final offset, and only then are bytes
produced.  Region order per page is: IFD block, out-of-line values, image
data chunks, sub-IFDs (recursively).  Every region starts on a word
boundary.
"""

import logging
import struct
from typing import List, Optional, Tuple

from diwentiff.exceptions import MalformedFileError
from diwentiff.models import Field, Page
from diwentiff.tiff.codec import encode, is_inline
from diwentiff.tiff.tags import IMAGE_DATA_TAGS, tag_name
from diwentiff.tiff.types import (
    BYTE_ORDER_MARKS,
    HEADER_SIZE,
    INLINE_SIZE,
    TIFF_MAGIC,
    FieldType,
    ifd_block_size,
)

logger = logging.getLogger(__name__)

MAX_OFFSET = 0xFFFFFFFF

# {byte counts tag: offsets tag}
BYTE_COUNT_TAGS = {counts: offsets for offsets, counts in IMAGE_DATA_TAGS.items()}

# Entry kinds whose values are offsets known only after placement
CHUNK_OFFSETS = 'chunks'
SUB_IFD_OFFSETS = 'sub_ifds'


class EntryPlan:
    """One directory entry with its encoded bytes and placement."""
    __slots__ = ('tag', 'type_code', 'count', 'data', 'size', 'offset',
                 'field', 'kind')

    def __init__(self, field: Field, type_code: int, count: int,
                 data: Optional[bytes] = None, kind: Optional[str] = None):
        self.field = field
        self.tag = field.tag
        self.type_code = type_code
        self.count = count
        self.data = data
        self.kind = kind
        # Deferred kinds are always 4-byte offsets
        self.size = len(data) if data is not None else 4 * count
        self.offset = 0

    @property
    def inline(self) -> bool:
        return is_inline(self.size)


class PagePlan:
    """Planned placement of one IFD and everything it owns."""

    def __init__(self, page: Page, ifd_offset: int):
        self.page = page
        self.ifd_offset = ifd_offset
        self.next_offset = 0
        self.entries: List[EntryPlan] = []
        self.chunks: List[Tuple[int, bytes]] = []
        self.sub_plans: List['PagePlan'] = []


class Layout:
    """Result of planning a whole document."""

    def __init__(self, byte_order: str, pages: List[PagePlan], size: int):
        self.byte_order = byte_order
        self.pages = pages
        self.size = size

    @property
    def first_ifd_offset(self) -> int:
        return self.pages[0].ifd_offset if self.pages else 0


def _align(offset: int) -> int:
    return offset + (offset & 1)


def _size_entry(field: Field, page: Page, byte_order: str) -> EntryPlan:
    """Size pass for one field."""
    if field.is_opaque:
        # Every type is at least 1 byte wide, so count > 4 means the slot
        # held an offset into the source file.
        if field.count > INLINE_SIZE:
            logger.warning('%s (%d) has unknown type %d and count %d; its '
                           'out-of-line value is not carried and the offset '
                           'is written back verbatim',
                           field.name, field.tag, field.type, field.count)
        return EntryPlan(field, field.type, field.count, field.encoded(byte_order))

    # Only the first field of a tag locates image data
    first = page.get(field.tag) is field

    if first and field.tag in page.image_data and field.tag in IMAGE_DATA_TAGS:
        return EntryPlan(field, FieldType.LONG, len(page.image_data[field.tag]),
                         kind=CHUNK_OFFSETS)

    offsets_tag = BYTE_COUNT_TAGS.get(field.tag)
    if first and offsets_tag in page.image_data and page.get(offsets_tag) is not None:
        lengths = [len(chunk) for chunk in page.image_data[offsets_tag]]
        ftype = field.type
        if ftype != FieldType.SHORT or any(n > 0xFFFF for n in lengths):
            ftype = FieldType.LONG
        return EntryPlan(field, ftype, len(lengths), encode(ftype, lengths, byte_order))

    if field.sub_pages:
        ftype = FieldType.IFD if field.type == FieldType.IFD else FieldType.LONG
        return EntryPlan(field, ftype, len(field.sub_pages), kind=SUB_IFD_OFFSETS)

    return EntryPlan(field, field.type, field.count, field.encoded(byte_order))


def _plan_page(page: Page, cursor: int, byte_order: str) -> Tuple[PagePlan, int]:
    """Size and place ``page`` starting at ``cursor``; returns the new cursor."""
    cursor = _align(cursor)
    plan = PagePlan(page, cursor)
    plan.entries = [_size_entry(f, page, byte_order)
                    for f in sorted(page, key=lambda f: f.tag)]
    cursor += ifd_block_size(len(plan.entries))

    for entry in plan.entries:
        if not entry.inline:
            cursor = _align(cursor)
            entry.offset = cursor
            cursor += entry.size

    offset_values = {}
    for entry in plan.entries:
        if entry.kind != CHUNK_OFFSETS:
            continue
        offsets = []
        for chunk in page.image_data[entry.tag]:
            cursor = _align(cursor)
            offsets.append(cursor)
            plan.chunks.append((cursor, chunk))
            cursor += len(chunk)
        offset_values[id(entry)] = offsets

    for entry in plan.entries:
        if entry.kind != SUB_IFD_OFFSETS:
            continue
        offsets = []
        for sub_page in entry.field.sub_pages:
            sub_plan, cursor = _plan_page(sub_page, cursor, byte_order)
            offsets.append(sub_plan.ifd_offset)
            plan.sub_plans.append(sub_plan)
        offset_values[id(entry)] = offsets

    for entry in plan.entries:
        if entry.kind is not None:
            entry.data = encode(entry.type_code, offset_values[id(entry)], byte_order)

    for offsets_tag in page.image_data:
        if page.get(offsets_tag) is None:
            logger.warning('Image data for %s dropped: page has no such field',
                           tag_name(offsets_tag))
    return plan, cursor


def plan_layout(pages: List[Page], byte_order: str) -> Layout:
    """Assign a file offset to every IFD, value block and image chunk."""
    plans = []
    cursor = HEADER_SIZE
    for page in pages:
        plan, cursor = _plan_page(page, cursor, byte_order)
        plans.append(plan)
    for plan, following in zip(plans, plans[1:]):
        plan.next_offset = following.ifd_offset

    if cursor > MAX_OFFSET:
        raise MalformedFileError(
            f'Document needs {cursor} bytes, more than classic TIFF can address')
    logger.debug('Planned %d page(s), %d bytes', len(plans), cursor)
    return Layout(byte_order, plans, cursor)


def _seek(out: bytearray, offset: int) -> None:
    if len(out) > offset:
        raise RuntimeError(
            f'Layout mismatch: write cursor {len(out)} is past planned offset {offset}')
    out.extend(b'\x00' * (offset - len(out)))


def _write_page(out: bytearray, plan: PagePlan, byte_order: str) -> None:
    _seek(out, plan.ifd_offset)
    out += struct.pack(byte_order + 'H', len(plan.entries))
    for entry in plan.entries:
        out += struct.pack(byte_order + 'HHI', entry.tag, entry.type_code, entry.count)
        if entry.inline:
            out += entry.data.ljust(INLINE_SIZE, b'\x00')
        else:
            out += struct.pack(byte_order + 'I', entry.offset)
    out += struct.pack(byte_order + 'I', plan.next_offset)

    for entry in plan.entries:
        if not entry.inline:
            _seek(out, entry.offset)
            out += entry.data
    for offset, chunk in plan.chunks:
        _seek(out, offset)
        out += chunk
    for sub_plan in plan.sub_plans:
        _write_page(out, sub_plan, byte_order)


def write_tiff(pages: List[Page], byte_order: str) -> bytes:
    """Encode ``pages`` as a complete classic TIFF file."""
    layout = plan_layout(pages, byte_order)
    out = bytearray(BYTE_ORDER_MARKS[byte_order])
    out += struct.pack(byte_order + 'HI', TIFF_MAGIC, layout.first_ifd_offset)
    for plan in layout.pages:
        _write_page(out, plan, byte_order)
    _seek(out, layout.size)
    return bytes(out)
